from typing import Any, Dict, List

from app.schemas.click import ClickRow
from app.stores.base import EntityStore


class ClicksStore(EntityStore):
    cache_prefix = "clicks-cache"
    payload_key = "clicks"
    model = ClickRow

    def load_remote(self) -> List[Dict[str, Any]]:
        return self.gateway.fetch_click_rows()

    def delete_all(self) -> None:
        self.gateway.delete_all_clicks()
        self.invalidate()
