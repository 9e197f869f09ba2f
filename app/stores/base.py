"""
Caches por usuário das coleções remotas (linhas de venda, investimentos, cliques).

Cada store guarda {<payload_key>: [...], "lastUpdated": <ms>, "owner": <hash do token>}
no storage e serve da memória enquanto houver itens. Cache gravado por outro
token não é reaproveitado. Buscas idênticas simultâneas são
coalescidas: a segunda chamada aguarda o resultado da primeira.
"""
import logging
import threading
import time
from concurrent.futures import Future, wait
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from app.core.errors import GatewayError, SessionExpiredError, SubscriptionRequiredError
from app.core.session import user_key
from app.core.storage import KeyValueStorage

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class PendingRequests:
    """Mapa cache_key -> Future da busca em andamento."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: Dict[str, Future] = {}

    def is_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending

    def wait(self, key: str) -> None:
        """Aguarda a busca em andamento para key terminar (com sucesso ou erro)."""
        with self._lock:
            future = self._pending.get(key)
        if future is not None:
            wait([future])

    def run(self, key: str, fn: Callable[[], Any]) -> Any:
        with self._lock:
            future = self._pending.get(key)
            owner = future is None or future.done()
            if owner:
                future = Future()
                self._pending[key] = future

        if not owner:
            logger.debug(f"Reaproveitando busca em andamento para {key}")
            return future.result()

        try:
            result = fn()
        except Exception as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                if self._pending.get(key) is future:
                    del self._pending[key]


class EntityStore:
    cache_prefix: str = ""
    payload_key: str = ""
    model: Type[BaseModel] = BaseModel

    def __init__(self, storage: KeyValueStorage, gateway, pending: Optional[PendingRequests] = None):
        self.storage = storage
        self.gateway = gateway
        self.pending = pending or PendingRequests()
        self.user_id = gateway.user_id
        self.owner = gateway.token_hash
        self.items: List[Any] = []
        self.hydrated = False
        self.last_updated: Optional[int] = None
        self.error: Optional[str] = None

    @property
    def cache_key(self) -> str:
        return f"{self.cache_prefix}:{user_key(self.user_id)}"

    @property
    def loading(self) -> bool:
        return self.pending.is_pending(self.cache_key)

    def load_remote(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def parse_remote(self, data: List[Dict[str, Any]]) -> List[Any]:
        return [self.model.model_validate(item) for item in data if isinstance(item, dict)]

    def parse_cached(self, data: List[Dict[str, Any]]) -> List[Any]:
        return [self.model.model_validate(item) for item in data if isinstance(item, dict)]

    def hydrate(self) -> None:
        """Carrega o cache persistido na primeira leitura do usuário."""
        if self.hydrated:
            return
        self.hydrated = True
        data = self.storage.get(self.cache_key)
        if not isinstance(data, dict) or not isinstance(data.get(self.payload_key), list):
            return
        if data.get("owner") != self.owner:
            logger.info(f"Cache {self.cache_key} pertence a outro token, ignorando")
            return
        try:
            self.items = self.parse_cached(data[self.payload_key])
        except ValueError as e:
            logger.warning(f"Cache {self.cache_key} ilegível, descartando: {e}")
            self.items = []
            return
        self.last_updated = data.get("lastUpdated")

    def fetch(self, force: bool = False) -> List[Any]:
        self.hydrate()
        if self.items and not force:
            return self.items
        if force:
            # Uma busca já em andamento pode ter começado antes da mutação
            self.pending.wait(self.cache_key)
        return self.pending.run(self.cache_key, self._fetch_remote)

    def _fetch_remote(self) -> List[Any]:
        try:
            data = self.load_remote()
        except (SessionExpiredError, SubscriptionRequiredError):
            raise
        except GatewayError as e:
            logger.warning(f"Falha ao atualizar {self.cache_key}, mantendo {len(self.items)} itens em cache: {e.message}")
            self.error = e.message
            return self.items

        items = self.parse_remote(data)
        self.persist(items)
        self.error = None
        logger.info(f"{self.cache_key} atualizado com {len(items)} itens")
        return items

    def persist(self, items: List[Any]) -> None:
        self.items = list(items)
        self.last_updated = now_ms()
        self.hydrated = True
        self.storage.set(
            self.cache_key,
            {
                self.payload_key: [item.model_dump() for item in self.items],
                "lastUpdated": self.last_updated,
                "owner": self.owner,
            },
        )

    def invalidate(self) -> None:
        self.items = []
        self.hydrated = False
        self.last_updated = None
        self.error = None
        self.storage.remove(self.cache_key)
