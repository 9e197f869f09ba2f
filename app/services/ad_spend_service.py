import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from app.core.errors import ValidationError
from app.schemas.ad_spend import AdSpend, AdSpendPayload, AdSpendUpdate
from app.stores.ad_spends import AdSpendsStore
from app.utils.dates import DateRange, filter_spends_by_range

logger = logging.getLogger(__name__)


class AdSpendService:
    def __init__(self, store: AdSpendsStore):
        self.store = store

    @staticmethod
    def _to_remote(payload: AdSpendPayload) -> Dict[str, Any]:
        return {
            "date": payload.date,
            "amount": payload.amount,
            "sub_id": payload.sub_id or None,
            "clicks": payload.clicks or 0,
        }

    def list(self, start_date: Optional[str] = None, end_date: Optional[str] = None, force: bool = False) -> List[AdSpend]:
        items = self.store.fetch(force=force)
        return filter_spends_by_range(items, DateRange(start_date, end_date))

    @staticmethod
    def _find(items: List[AdSpend], ad_spend_id: int) -> Optional[AdSpend]:
        return next((item for item in items if item.id == ad_spend_id), None)

    def _get_or_404(self, ad_spend_id: int) -> AdSpend:
        item = self._find(self.store.fetch(), ad_spend_id)
        if item is None:
            # Pode ter sido criado em outra sessão depois do último cache
            item = self._find(self.store.fetch(force=True), ad_spend_id)
        if item is not None:
            return item
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registro não encontrado")

    def create(self, payload: AdSpendPayload) -> AdSpend:
        created = self.store.create(self._to_remote(payload))
        logger.info(f"Investimento criado para {self.store.cache_key}: {payload.date} R$ {payload.amount:.2f}")
        return created

    def bulk_create(self, items: List[AdSpendPayload]) -> List[AdSpend]:
        if not items:
            return []
        return self.store.bulk_create([self._to_remote(item) for item in items])

    def update(self, ad_spend_id: int, payload: AdSpendUpdate) -> AdSpend:
        self._get_or_404(ad_spend_id)
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("Nenhuma alteração informada")
        if "sub_id" in changes:
            changes["sub_id"] = changes["sub_id"] or None
        return self.store.update(ad_spend_id, changes)

    def delete(self, ad_spend_id: int) -> None:
        self._get_or_404(ad_spend_id)
        self.store.remove(ad_spend_id)

    def delete_all(self) -> dict:
        self.store.delete_all()
        return {"message": "Todos os investimentos foram removidos"}
