from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.dates import to_date_key
from app.utils.serialization import parse_number


class ClickRow(BaseModel):
    id: Optional[int] = None
    dataset_id: Optional[int] = None
    user_id: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None  # HH:MM:SS quando disponível
    channel: Optional[str] = None
    sub_id: Optional[str] = None
    clicks: int = 0

    @field_validator("date", mode="before")
    @classmethod
    def date_as_key(cls, v):
        if v is None:
            return None
        return to_date_key(v) or str(v)

    @field_validator("clicks", mode="before")
    @classmethod
    def clicks_as_int(cls, v):
        num = parse_number(v)
        return int(num) if num is not None else 0


class ClickShare(BaseModel):
    name: str
    count: int
    percentage: float


class DailyClicks(BaseModel):
    day: str
    count: int


class ClickComparison(BaseModel):
    """Cliques do CSV vs cliques informados nos investimentos, por Sub ID."""
    sub_id: str
    csv_clicks: int
    ads_clicks: int
    diff: int
    diff_percent: float


class ClickSummary(BaseModel):
    total_clicks: int = Field(..., description="Soma de todos os cliques no período")
    by_channel: List[ClickShare] = []
    by_sub_id: List[ClickShare] = []
    daily: List[DailyClicks] = []
    comparison: List[ClickComparison] = []
