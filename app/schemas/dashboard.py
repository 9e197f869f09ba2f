from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ChannelMetrics(BaseModel):
    name: str
    commission: float = 0
    revenue: float = Field(0, description="Receita = comissão")
    direct_spend: float = Field(0, description="Gasto com Sub ID do canal")
    allocated_general_spend: float = Field(0, description="Rateio do gasto geral")
    spend: float = Field(0, description="Gasto direto + rateio")
    share: float = 0
    orders: int = 0
    profit: float = 0
    roas: float = 0
    roas_infinite: bool = False
    roi: float = 0
    cpa: float = 0


class DailyMetrics(BaseModel):
    day: str
    commission: float = 0
    spend: float = 0
    orders: int = 0
    profit: float = 0
    roas: float = 0
    roas_infinite: bool = False


class MonthlyMetrics(BaseModel):
    month_key: str
    month: str = ""
    revenue: float = 0
    commission: float = 0
    spend: float = 0
    profit: float = 0


class Totals(BaseModel):
    faturamento: float = 0
    comissao: float = 0
    gasto_anuncios: float = 0
    lucro: float = 0
    roas: float = 0


class ChannelHighlights(BaseModel):
    roas_champion: Optional[ChannelMetrics] = None
    alert: Optional[ChannelMetrics] = None
    top_volume: Optional[ChannelMetrics] = None


class Page(BaseModel, Generic[T]):
    items: List[T] = []
    page: int = 0
    page_size: int = 5
    total_pages: int = 1
    total_items: int = 0


class DashboardFilters(BaseModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    sub_id: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None


class DashboardResponse(BaseModel):
    filters: DashboardFilters
    totals: Totals
    channels: Page[ChannelMetrics]
    daily: Page[DailyMetrics]
    highlights: ChannelHighlights
    last_updated: Optional[int] = None


class MonthlyReportResponse(BaseModel):
    totals: Totals
    months: List[MonthlyMetrics]
