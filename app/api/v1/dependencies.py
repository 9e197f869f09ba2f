import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.errors import SessionExpiredError
from app.core.session import Session, SessionStore, SessionValidator
from app.core.storage import KeyValueStorage, create_storage
from app.gateway.client import RemoteGateway
from app.services.ad_spend_import import AdSpendImportService
from app.services.ad_spend_service import AdSpendService
from app.services.dashboard_service import DashboardService
from app.services.report_service import ReportService
from app.stores.ad_spends import AdSpendsStore
from app.stores.clicks import ClicksStore
from app.stores.datasets import DatasetsStore
from app.stores.registry import StoreRegistry

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


@lru_cache
def get_storage() -> KeyValueStorage:
    return create_storage()


@lru_cache
def get_registry() -> StoreRegistry:
    return StoreRegistry(get_storage())


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore(get_storage())


def validate_with_backend(session: Session) -> None:
    """Token novo: confirma no backend (status da assinatura) antes de aceitá-lo."""
    RemoteGateway(session).subscription_status()


def get_session_validator() -> SessionValidator:
    return validate_with_backend


def require_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_user_id: Optional[str] = Header(None),
    sessions: SessionStore = Depends(get_session_store),
    validate: SessionValidator = Depends(get_session_validator),
) -> Session:
    if credentials is None or not (credentials.credentials or "").strip():
        logger.warning("Token de autenticação não fornecido")
        raise SessionExpiredError("Token de autenticação não fornecido", redirect_to=settings.LOGIN_ROUTE)

    token = credentials.credentials.strip()
    if token.startswith("Bearer "):
        token = token[7:].strip()
    return sessions.resolve(token, x_user_id, validate)


def get_gateway(
    session: Session = Depends(require_session),
    sessions: SessionStore = Depends(get_session_store),
    registry: StoreRegistry = Depends(get_registry),
) -> RemoteGateway:
    def teardown(user_id):
        sessions.clear(user_id)
        registry.invalidate_all(user_id)

    return RemoteGateway(session, on_session_expired=teardown)


@dataclass
class DashboardContext:
    """Tudo que uma requisição autenticada precisa: sessão, gateway e stores do usuário."""
    session: Session
    gateway: RemoteGateway
    registry: StoreRegistry
    sessions: SessionStore

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id

    def datasets(self) -> DatasetsStore:
        return self.registry.datasets(self.gateway)

    def ad_spends(self) -> AdSpendsStore:
        return self.registry.ad_spends(self.gateway)

    def clicks(self) -> ClicksStore:
        return self.registry.clicks(self.gateway)

    def teardown(self) -> None:
        self.sessions.clear(self.user_id)
        self.registry.invalidate_all(self.user_id)


def get_context(
    session: Session = Depends(require_session),
    gateway: RemoteGateway = Depends(get_gateway),
    registry: StoreRegistry = Depends(get_registry),
    sessions: SessionStore = Depends(get_session_store),
) -> DashboardContext:
    return DashboardContext(session=session, gateway=gateway, registry=registry, sessions=sessions)


def get_dashboard_service(ctx: DashboardContext = Depends(get_context)) -> DashboardService:
    return DashboardService(ctx.datasets(), ctx.ad_spends())


def get_report_service(dashboard: DashboardService = Depends(get_dashboard_service)) -> ReportService:
    return ReportService(dashboard)


def get_ad_spend_service(ctx: DashboardContext = Depends(get_context)) -> AdSpendService:
    return AdSpendService(ctx.ad_spends())


def get_import_service(ctx: DashboardContext = Depends(get_context)) -> AdSpendImportService:
    return AdSpendImportService(ctx.ad_spends())
