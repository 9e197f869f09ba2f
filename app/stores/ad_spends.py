import logging
from typing import Any, Dict, List

from app.schemas.ad_spend import AdSpend
from app.stores.base import EntityStore

logger = logging.getLogger(__name__)


class AdSpendsStore(EntityStore):
    """Toda mutação vai ao backend e depois força nova busca da lista."""
    cache_prefix = "adspends-cache"
    payload_key = "adSpends"
    model = AdSpend

    def load_remote(self) -> List[Dict[str, Any]]:
        return self.gateway.list_ad_spends()

    def create(self, data: Dict[str, Any]) -> AdSpend:
        created = self.gateway.create_ad_spend(data)
        self.fetch(force=True)
        return AdSpend.model_validate(created or data)

    def update(self, ad_spend_id: int, data: Dict[str, Any]) -> AdSpend:
        updated = self.gateway.update_ad_spend(ad_spend_id, data)
        self.fetch(force=True)
        return AdSpend.model_validate(updated or {"id": ad_spend_id, **data})

    def remove(self, ad_spend_id: int) -> None:
        self.gateway.delete_ad_spend(ad_spend_id)
        self.fetch(force=True)

    def bulk_create(self, items: List[Dict[str, Any]]) -> List[AdSpend]:
        created = self.gateway.bulk_create_ad_spends(items)
        self.fetch(force=True)
        return [AdSpend.model_validate(item) for item in created if isinstance(item, dict)]

    def delete_all(self) -> None:
        self.gateway.delete_all_ad_spends()
        logger.info(f"Investimentos removidos em {self.cache_key}")
        self.invalidate()
