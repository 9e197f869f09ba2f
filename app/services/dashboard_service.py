import logging
from typing import Dict, List, Optional, Tuple

from app.core.config import settings
from app.schemas.ad_spend import AdSpend
from app.schemas.dashboard import (
    ChannelMetrics,
    DailyMetrics,
    DashboardFilters,
    DashboardResponse,
    Page,
    Totals,
)
from app.schemas.dataset import SalesRow
from app.services import kpi
from app.services.dataset_service import distinct_options, filter_rows
from app.stores.ad_spends import AdSpendsStore
from app.stores.datasets import DatasetsStore
from app.utils.dates import DateRange, filter_rows_by_range, filter_spends_by_range
from app.utils.tables import SORT_ASC, normalize_page_size, paginate, sort_items

logger = logging.getLogger(__name__)


class DashboardService:
    """Composição da página principal: cards de KPI, tabela por canal, tabela diária e destaques."""

    def __init__(self, datasets: DatasetsStore, ad_spends: AdSpendsStore):
        self.datasets = datasets
        self.ad_spends = ad_spends

    @staticmethod
    def date_range(filters: DashboardFilters) -> DateRange:
        return DateRange(filters.start_date, filters.end_date)

    def load(self, filters: DashboardFilters, refresh: bool = False) -> Tuple[List[SalesRow], List[AdSpend], List[AdSpend]]:
        """Linhas filtradas, investimentos do período e todos os investimentos."""
        rows = self.datasets.fetch(force=refresh)
        all_spends = self.ad_spends.fetch(force=refresh)

        period = self.date_range(filters)
        rows = filter_rows_by_range(rows, period)
        rows = filter_rows(rows, status=filters.status, category=filters.category, sub_id=filters.sub_id)
        spends = filter_spends_by_range(all_spends, period)
        return rows, spends, all_spends

    def totals(self, filters: DashboardFilters, refresh: bool = False) -> Totals:
        rows, _, all_spends = self.load(filters, refresh)
        return kpi.calc_totals(rows, all_spends, self.date_range(filters), filters.sub_id)

    @staticmethod
    def channel_page(
        metrics: List[ChannelMetrics],
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> Page[ChannelMetrics]:
        # metrics já vem por receita decrescente; o corte mantém os maiores canais
        capped = metrics[: settings.MAX_CHANNEL_ROWS]
        if sort_by:
            capped = sort_items(capped, sort_by, sort_dir or "desc")
        size = normalize_page_size(page_size, settings.DEFAULT_PAGE_SIZE)
        return Page[ChannelMetrics](**paginate(capped, page, size))

    @staticmethod
    def daily_page(
        metrics: List[DailyMetrics],
        sort_dir: Optional[str] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> Page[DailyMetrics]:
        ordered = sort_items(metrics, "day", sort_dir or SORT_ASC)
        size = normalize_page_size(page_size, settings.DEFAULT_PAGE_SIZE)
        return Page[DailyMetrics](**paginate(ordered, page, size))

    def channels(self, filters: DashboardFilters, **table) -> Page[ChannelMetrics]:
        rows, spends, _ = self.load(filters)
        metrics = kpi.calc_channel_metrics(rows, spends, filters.sub_id)
        return self.channel_page(metrics, **table)

    def daily(self, filters: DashboardFilters, **table) -> Page[DailyMetrics]:
        rows, spends, _ = self.load(filters)
        return self.daily_page(kpi.calc_daily_metrics(rows, spends), **table)

    def get_dashboard(
        self,
        filters: DashboardFilters,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
        page: int = 0,
        page_size: Optional[int] = None,
        day_sort_dir: Optional[str] = None,
        day_page: int = 0,
        day_page_size: Optional[int] = None,
        refresh: bool = False,
    ) -> DashboardResponse:
        rows, spends, all_spends = self.load(filters, refresh)
        channel_metrics = kpi.calc_channel_metrics(rows, spends, filters.sub_id)
        daily_metrics = kpi.calc_daily_metrics(rows, spends)
        logger.debug(
            f"Dashboard {self.datasets.cache_key}: {len(rows)} linhas, {len(spends)} investimentos, "
            f"{len(channel_metrics)} canais"
        )

        return DashboardResponse(
            filters=filters,
            totals=kpi.calc_totals(rows, all_spends, self.date_range(filters), filters.sub_id),
            channels=self.channel_page(channel_metrics, sort_by, sort_dir, page, page_size),
            daily=self.daily_page(daily_metrics, day_sort_dir, day_page, day_page_size),
            highlights=kpi.channel_highlights(channel_metrics),
            last_updated=self.datasets.last_updated,
        )

    def filter_options(self) -> Dict[str, List[str]]:
        """Valores disponíveis para os seletores de status, categoria e Sub ID."""
        rows = self.datasets.fetch()
        return {
            "status": distinct_options(rows, "status"),
            "category": distinct_options(rows, "category"),
            "sub_id": distinct_options(rows, "sub_id1"),
        }

    def refresh(self) -> Dict[str, int]:
        rows = self.datasets.fetch(force=True)
        spends = self.ad_spends.fetch(force=True)
        logger.info(f"Dados atualizados para {self.datasets.cache_key}: {len(rows)} linhas, {len(spends)} investimentos")
        return {"rows": len(rows), "ad_spends": len(spends)}
