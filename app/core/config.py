from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Backend MarketDash (API remota consumida pelo dashboard)
    API_URL: Optional[str] = None
    # Hostname em que o dashboard está publicado (usado na política de base URL)
    APP_HOSTNAME: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: int = 30

    # App Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "MarketDash Dashboard"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Sessão: um 401 recebido logo após o login não derruba o token recém-criado
    SESSION_GRACE_SECONDS: int = 5

    # Rotas do front para onde o usuário é redirecionado
    LOGIN_ROUTE: str = "/login"
    SUBSCRIBE_URL: str = "https://www.cakto.com.br/#integracoes"

    # Cache / Redis (armazenamento persistente dos stores; sem Redis fica em memória)
    REDIS_URL: Optional[str] = None
    REDIS_PASSWORD: Optional[str] = None
    CACHE_TTL_SECONDS: int = 7 * 24 * 3600

    # Tabelas
    MAX_CHANNEL_ROWS: int = 50
    DEFAULT_PAGE_SIZE: int = 5

    @model_validator(mode='after')
    def assemble_redis_url(self) -> 'Settings':
        if self.REDIS_PASSWORD and self.REDIS_URL:
            # Se a URL já contiver senha (ex: :password@...), não fazemos nada
            if "@" in self.REDIS_URL:
                return self

            import urllib.parse
            if "redis://" in self.REDIS_URL:
                encoded_pwd = urllib.parse.quote_plus(self.REDIS_PASSWORD)
                # Formato: redis://:PASSWORD@HOST:PORT/DB
                self.REDIS_URL = self.REDIS_URL.replace("redis://", f"redis://:{encoded_pwd}@", 1)
        return self

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
        "https://marketdash.com.br",
        "https://hml.marketdash.com.br",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
