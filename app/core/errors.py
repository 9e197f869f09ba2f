import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base dos erros do dashboard."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class GatewayError(DashboardError):
    """Falha de rede ou HTTP ao falar com o backend. Nunca é reenviada automaticamente."""

    def __init__(self, message: str = "Falha ao comunicar com o servidor", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SessionExpiredError(GatewayError):
    """401 do backend: a sessão local foi encerrada e o usuário deve voltar ao login."""

    def __init__(self, message: str = "Sessão expirada", redirect_to: str = "/login"):
        super().__init__(message, status_code=401)
        self.redirect_to = redirect_to


class SubscriptionRequiredError(GatewayError):
    """403 por assinatura inativa: o front deve seguir para o checkout."""

    def __init__(self, message: str = "Assinatura não está ativa", checkout_url: str = ""):
        super().__init__(message, status_code=403)
        self.checkout_url = checkout_url


class ValidationError(DashboardError):
    """Dado de formulário inválido; detectado antes de qualquer chamada de rede."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ImportValidationError(ValidationError):
    """Planilha de investimentos ilegível ou sem linhas válidas."""


def _error_body(detail: str, **extra: Any) -> dict:
    body = {"detail": detail}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(SessionExpiredError)
    async def session_expired_handler(request: Request, exc: SessionExpiredError):
        return JSONResponse(
            status_code=401,
            content=_error_body(exc.message, redirect_to=exc.redirect_to),
        )

    @app.exception_handler(SubscriptionRequiredError)
    async def subscription_required_handler(request: Request, exc: SubscriptionRequiredError):
        return JSONResponse(
            status_code=403,
            content=_error_body(exc.message, checkout_url=exc.checkout_url),
        )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        logger.warning(f"Falha no backend remoto em {request.url}: {exc.message} (status={exc.status_code})")
        return JSONResponse(
            status_code=502,
            content={"detail": "Não foi possível carregar os dados. Tente novamente."},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content=_error_body(exc.message, field=exc.field),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Erro não tratado na rota {request.url}: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Erro interno do servidor"},
        )
