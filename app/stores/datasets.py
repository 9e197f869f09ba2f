from typing import Any, Dict, List

from app.schemas.dataset import SalesRow
from app.services.dataset_service import parse_dataset_rows
from app.stores.base import EntityStore


class DatasetsStore(EntityStore):
    cache_prefix = "dataset-cache"
    payload_key = "rows"
    model = SalesRow

    def load_remote(self) -> List[Dict[str, Any]]:
        return self.gateway.fetch_dataset_rows(include_raw_data=True)

    def parse_remote(self, data: List[Dict[str, Any]]) -> List[SalesRow]:
        return parse_dataset_rows(data)

    def delete_all(self) -> None:
        self.gateway.delete_all_datasets()
        self.invalidate()
