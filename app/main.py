import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.dependencies import get_storage
from app.api.v1.routes import router as api_v1_router
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.core.storage import KeyValueStorage
from app.gateway.client import resolve_base_url

configure_logging()
logger = logging.getLogger(__name__)

UNHEALTHY_STORAGE = ("auth_required", "disconnected")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Dashboard de afiliados: KPIs de comissão, investimento em anúncios, ROAS e lucro",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

register_exception_handlers(app)

# Content-Disposition exposto para os downloads de planilha
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Content-Type"],
    max_age=3600,
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    return {
        "message": "MarketDash Dashboard",
        "version": "1.0.0",
        "docs": "/docs",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
def health_check(storage: KeyValueStorage = Depends(get_storage)):
    """
    Status do serviço: backend remoto configurado e armazenamento dos caches
    (memory quando não há Redis).
    """
    storage_status = storage.status()
    healthy = storage_status not in UNHEALTHY_STORAGE
    if not healthy:
        logger.warning(f"Health check: armazenamento indisponível ({storage_status})")

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "environment": settings.ENVIRONMENT,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "api_url": resolve_base_url(settings.API_URL, settings.APP_HOSTNAME),
            "storage": storage_status,
        },
    )
