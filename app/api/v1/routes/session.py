import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.v1.dependencies import DashboardContext, get_context, get_session_store, get_session_validator
from app.core.config import settings
from app.core.session import Session, SessionStore, SessionValidator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])


class SessionCreate(BaseModel):
    token: str = Field(..., min_length=1)
    user: Dict[str, Any] = Field(default_factory=dict)
    token_created_at: Optional[float] = Field(None, description="Epoch (s) em que o token foi emitido")


class SessionResponse(BaseModel):
    user_id: Optional[str] = None
    user: Dict[str, Any] = {}
    created_at: float
    in_grace_period: bool = False


def _to_response(session: Session) -> SessionResponse:
    return SessionResponse(
        user_id=session.user_id,
        user=session.user,
        created_at=session.created_at,
        in_grace_period=session.is_fresh(settings.SESSION_GRACE_SECONDS),
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreate,
    sessions: SessionStore = Depends(get_session_store),
    validate: SessionValidator = Depends(get_session_validator),
):
    """Registra o token obtido no login; o momento do login define a carência para 401."""
    user_id = payload.user.get("id")
    session = Session(
        token=payload.token,
        user_id=str(user_id) if user_id is not None else None,
        user=payload.user,
        created_at=payload.token_created_at or time.time(),
    )
    sessions.register(session, validate)
    return _to_response(session)


@router.get("", response_model=SessionResponse)
def get_session(ctx: DashboardContext = Depends(get_context)):
    return _to_response(ctx.session)


@router.delete("", status_code=status.HTTP_200_OK)
def logout(ctx: DashboardContext = Depends(get_context)):
    """Logout: remove token e dados do usuário e descarta os caches."""
    ctx.teardown()
    return {"message": "Sessão encerrada", "redirect_to": settings.LOGIN_ROUTE}


@router.get("/subscription")
def subscription_status(ctx: DashboardContext = Depends(get_context)):
    return ctx.gateway.subscription_status()
