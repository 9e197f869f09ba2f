"""
Cliente HTTP do backend MarketDash.

Toda requisição leva o token (Authorization: Bearer), o id do usuário
(X-User-Id) e o mesmo id na query (user_id). Não há retentativa automática.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from app.core.config import settings
from app.core.errors import GatewayError, SessionExpiredError, SubscriptionRequiredError
from app.core.session import Session, user_key
from app.gateway import endpoints

logger = logging.getLogger(__name__)

SUBSCRIPTION_MARKERS = ("subscription", "assinatura")


def resolve_base_url(env_url: Optional[str], hostname: Optional[str] = None) -> str:
    """
    Sem URL configurada usa localhost:8000. Em homologação o certificado da API
    não é confiável, então https://api.hml... vira http://api.hml...
    """
    if not env_url:
        return endpoints.DEFAULT_API_URL
    url = env_url.strip().rstrip("/")
    if url.startswith("https://") and hostname and endpoints.HML_HOSTNAME in hostname:
        return url.replace(endpoints.HML_API_HTTPS, endpoints.HML_API_HTTP)
    return url


def _extract_list(payload: Any, *keys: str) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("message") or data.get("error")
        if detail:
            return str(detail)
    return str(data)


class RemoteGateway:
    """
    Acesso às coleções do usuário no backend.

    on_session_expired é chamado (com o id do usuário) quando um 401 encerra a
    sessão; quem cria o gateway decide o que limpar (token, caches).
    """

    def __init__(
        self,
        session: Session,
        on_session_expired: Optional[Callable[[Optional[str]], None]] = None,
        base_url: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
    ):
        self.session = session
        self.on_session_expired = on_session_expired
        self.base_url = base_url or resolve_base_url(settings.API_URL, settings.APP_HOSTNAME)
        self.http = http or requests.Session()
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id

    @property
    def token_hash(self) -> str:
        return self.session.token_hash

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        if self.user_id:
            headers["X-User-Id"] = str(self.user_id)
        return headers

    def _params(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        merged = {k: v for k, v in (params or {}).items() if v is not None}
        if self.user_id:
            merged["user_id"] = str(self.user_id)
        return merged

    def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(
                method,
                url,
                headers=self._headers(),
                params=self._params(params),
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Erro de conexão em {method} {path}: {e}")
            raise GatewayError(f"Falha de conexão com o servidor: {e}")

        if resp.status_code >= 400:
            self._raise_for_status(resp, method, path)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            raise GatewayError(f"Resposta inválida do servidor em {path}", status_code=resp.status_code)

    def _raise_for_status(self, resp: requests.Response, method: str, path: str):
        message = _error_message(resp)

        if resp.status_code == 401:
            if self.session.is_fresh(settings.SESSION_GRACE_SECONDS):
                # Token recém-criado: não derruba a sessão por um 401 logo após o login
                logger.warning(f"401 em {method} {path} durante a carência do login de {user_key(self.user_id)}")
                raise GatewayError(message, status_code=401)
            logger.info(f"Sessão expirada para {user_key(self.user_id)} ({method} {path})")
            if self.on_session_expired:
                self.on_session_expired(self.user_id)
            raise SessionExpiredError(message, redirect_to=settings.LOGIN_ROUTE)

        if resp.status_code == 403 and any(marker in message.lower() for marker in SUBSCRIPTION_MARKERS):
            logger.info(f"Assinatura inativa para {user_key(self.user_id)}")
            raise SubscriptionRequiredError(message, checkout_url=settings.SUBSCRIBE_URL)

        logger.warning(f"{method} {path} retornou {resp.status_code}: {message}")
        raise GatewayError(message, status_code=resp.status_code)

    # Datasets
    def fetch_dataset_rows(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        include_raw_data: bool = True,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        payload = self.request(
            "GET",
            endpoints.DATASET_ROWS,
            params={
                "start_date": start_date,
                "end_date": end_date,
                "include_raw_data": str(include_raw_data).lower(),
                "limit": limit,
                "offset": offset,
            },
        )
        return _extract_list(payload, "rows")

    def delete_all_datasets(self) -> None:
        self.request("DELETE", endpoints.DATASETS_ALL)

    # Ad spends
    def list_ad_spends(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Dict[str, Any]]:
        payload = self.request("GET", endpoints.AD_SPENDS, params={"start_date": start_date, "end_date": end_date})
        return _extract_list(payload, "items", "rows")

    def create_ad_spend(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", endpoints.AD_SPENDS, json=data) or {}

    def update_ad_spend(self, ad_spend_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PATCH", endpoints.AD_SPEND_ITEM.format(ad_spend_id=ad_spend_id), json=data) or {}

    def delete_ad_spend(self, ad_spend_id: int) -> None:
        self.request("DELETE", endpoints.AD_SPEND_ITEM.format(ad_spend_id=ad_spend_id))

    def bulk_create_ad_spends(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        payload = self.request("POST", endpoints.AD_SPENDS_BULK, json={"items": items})
        return _extract_list(payload, "items")

    def delete_all_ad_spends(self) -> None:
        self.request("DELETE", endpoints.AD_SPENDS_ALL)

    # Cliques
    def fetch_click_rows(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> List[Dict[str, Any]]:
        payload = self.request("GET", endpoints.CLICK_ROWS, params={"start_date": start_date, "end_date": end_date})
        return _extract_list(payload, "rows")

    def delete_all_clicks(self) -> None:
        self.request("DELETE", endpoints.CLICKS_ALL)

    def subscription_status(self) -> Dict[str, Any]:
        return self.request("GET", endpoints.SUBSCRIPTION_STATUS) or {}
