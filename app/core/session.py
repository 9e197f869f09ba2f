import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from app.core.config import settings
from app.core.errors import GatewayError, SessionExpiredError, SubscriptionRequiredError
from app.core.storage import KeyValueStorage

logger = logging.getLogger(__name__)


def user_key(user_id: Any) -> str:
    """Normaliza o id do usuário para o sufixo das chaves de cache (user_<id> ou anon)."""
    if user_id is None or str(user_id).strip() == "":
        return "anon"
    id_str = str(user_id).strip()
    if id_str.startswith("user_"):
        return id_str
    return f"user_{id_str}"


def hash_token(token: str) -> str:
    return hashlib.sha256((token or "").encode("utf-8")).hexdigest()


@dataclass
class Session:
    token: str
    user_id: Optional[str]
    user: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    token_hash: str = ""

    def __post_init__(self):
        if not self.token_hash:
            self.token_hash = hash_token(self.token)

    def is_fresh(self, grace_seconds: float, now: Optional[float] = None) -> bool:
        """True quando o token foi criado há menos de grace_seconds."""
        now = time.time() if now is None else now
        return (now - self.created_at) < grace_seconds

    def to_dict(self) -> dict:
        # O token em si nunca vai para o storage, só o hash
        return {
            "token_hash": self.token_hash,
            "user_id": self.user_id,
            "user": self.user,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Optional["Session"]:
        if not isinstance(data, dict) or not data.get("token_hash"):
            return None
        return cls(
            token="",
            user_id=str(data["user_id"]) if data.get("user_id") is not None else None,
            user=data.get("user") or {},
            created_at=float(data.get("created_at") or 0),
            token_hash=str(data["token_hash"]),
        )


SessionValidator = Callable[[Session], Any]


class SessionStore:
    """
    Guarda a sessão de cada usuário no storage (hash do token, dados do usuário
    e momento do login). Um token desconhecido só substitui a sessão guardada
    depois de aceito pelo backend.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    @staticmethod
    def _key(user_id: Any) -> str:
        return f"session:{user_key(user_id)}"

    def get(self, user_id: Any) -> Optional[Session]:
        return Session.from_dict(self.storage.get(self._key(user_id)))

    def save(self, session: Session) -> Session:
        self.storage.set(self._key(session.user_id), session.to_dict())
        return session

    def register(self, session: Session, validate: SessionValidator) -> Session:
        """Valida o token no backend e só então grava a sessão."""
        try:
            validate(session)
        except SubscriptionRequiredError:
            # Token autenticado, apenas sem assinatura ativa
            pass
        except GatewayError as e:
            if e.status_code == 401:
                logger.warning(f"Token recusado pelo backend para {user_key(session.user_id)}")
                raise SessionExpiredError("Token inválido ou expirado", redirect_to=settings.LOGIN_ROUTE)
            raise
        logger.info(f"Sessão registrada para {user_key(session.user_id)}")
        return self.save(session)

    def resolve(self, token: str, user_id: Optional[str], validate: SessionValidator) -> Session:
        """
        Sessão conhecida quando o token bate com o hash guardado; um token novo
        passa por register (created_at = agora).
        """
        stored = self.get(user_id)
        if stored and stored.token_hash == hash_token(token):
            stored.token = token
            return stored
        return self.register(Session(token=token, user_id=user_id), validate)

    def clear(self, user_id: Any) -> None:
        logger.info(f"Encerrando sessão de {user_key(user_id)}")
        self.storage.remove(self._key(user_id))
