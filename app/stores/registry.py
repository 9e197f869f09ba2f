import logging
import threading
from typing import Dict, Tuple, Type

from app.core.session import user_key
from app.core.storage import KeyValueStorage
from app.stores.ad_spends import AdSpendsStore
from app.stores.base import EntityStore, PendingRequests
from app.stores.clicks import ClicksStore
from app.stores.datasets import DatasetsStore

logger = logging.getLogger(__name__)

STORE_CLASSES = (DatasetsStore, AdSpendsStore, ClicksStore)


class StoreRegistry:
    """
    Um store de cada entidade por usuário, compartilhado entre requisições.
    O gateway do store é trocado a cada requisição; um token diferente do que
    preencheu o store recebe um store novo.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.pending = PendingRequests()
        self._stores: Dict[Tuple[str, str], EntityStore] = {}
        self._lock = threading.Lock()

    def _get(self, store_cls: Type[EntityStore], gateway) -> EntityStore:
        key = (store_cls.cache_prefix, user_key(gateway.user_id))
        with self._lock:
            store = self._stores.get(key)
            if store is None or store.owner != gateway.token_hash:
                # Token diferente do que preencheu o store: começa do zero
                store = store_cls(self.storage, gateway, self.pending)
                self._stores[key] = store
            else:
                store.gateway = gateway
        return store

    def datasets(self, gateway) -> DatasetsStore:
        return self._get(DatasetsStore, gateway)

    def ad_spends(self, gateway) -> AdSpendsStore:
        return self._get(AdSpendsStore, gateway)

    def clicks(self, gateway) -> ClicksStore:
        return self._get(ClicksStore, gateway)

    def invalidate_all(self, user_id) -> None:
        """Logout, sessão expirada ou "atualizar dados": descarta memória e storage do usuário."""
        suffix = user_key(user_id)
        with self._lock:
            stores = [self._stores.pop((cls.cache_prefix, suffix), None) for cls in STORE_CLASSES]
        for store in stores:
            if store is not None:
                store.invalidate()
        for cls in STORE_CLASSES:
            self.storage.remove(f"{cls.cache_prefix}:{suffix}")
        logger.info(f"Caches de {suffix} invalidados")
