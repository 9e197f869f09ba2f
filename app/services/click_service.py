import logging
from typing import Any, Dict, Iterable, List

from app.schemas.click import ClickComparison, ClickShare, ClickSummary, DailyClicks
from app.utils.serialization import clean_number
from app.utils.tables import SORT_ASC, SORT_DESC
from app.utils.text import normalize_sub_id

logger = logging.getLogger(__name__)

DEFAULT_CLICK_CHANNEL = "Others"
GENERAL_ADS_SUB_ID = "Geral"
NO_DATE_LABEL = "Sem data"


def _get(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _item_clicks(item: Any) -> int:
    return int(clean_number(_get(item, "clicks")))


def _shares(stats: Dict[str, int], total: int) -> List[ClickShare]:
    shares = [
        ClickShare(name=name, count=count, percentage=(count / total) * 100 if total > 0 else 0.0)
        for name, count in stats.items()
    ]
    return sorted(shares, key=lambda s: s.count, reverse=True)


class ClickService:
    """Análise dos cliques importados: canais, Sub IDs, dias e conferência com os investimentos."""

    @staticmethod
    def total_clicks(clicks: Iterable[Any]) -> int:
        return sum(_item_clicks(item) for item in clicks)

    @staticmethod
    def by_channel(clicks: List[Any], total: int) -> List[ClickShare]:
        stats: Dict[str, int] = {}
        for item in clicks:
            channel = (_get(item, "channel") or DEFAULT_CLICK_CHANNEL).strip() or DEFAULT_CLICK_CHANNEL
            stats[channel] = stats.get(channel, 0) + _item_clicks(item)
        return _shares(stats, total)

    @staticmethod
    def by_sub_id(clicks: List[Any], total: int) -> List[ClickShare]:
        stats: Dict[str, int] = {}
        for item in clicks:
            sub_id = normalize_sub_id(_get(item, "sub_id"))
            stats[sub_id] = stats.get(sub_id, 0) + _item_clicks(item)
        return _shares(stats, total)

    @staticmethod
    def daily(clicks: List[Any], direction: str = SORT_DESC) -> List[DailyClicks]:
        stats: Dict[str, int] = {}
        for item in clicks:
            day = _get(item, "date") or NO_DATE_LABEL
            stats[day] = stats.get(day, 0) + _item_clicks(item)
        days = [DailyClicks(day=day, count=count) for day, count in stats.items()]
        return sorted(days, key=lambda d: d.day, reverse=direction != SORT_ASC)

    @staticmethod
    def comparison(clicks: List[Any], ad_spends: List[Any]) -> List[ClickComparison]:
        """Cliques do CSV vs cliques informados nos investimentos (gasto sem Sub ID conta como "Geral")."""
        csv_stats: Dict[str, int] = {}
        for item in clicks:
            sub_id = normalize_sub_id(_get(item, "sub_id"))
            csv_stats[sub_id] = csv_stats.get(sub_id, 0) + _item_clicks(item)

        ads_stats: Dict[str, int] = {}
        for spend in ad_spends:
            sub_id = normalize_sub_id(_get(spend, "sub_id") or GENERAL_ADS_SUB_ID)
            ads_stats[sub_id] = ads_stats.get(sub_id, 0) + _item_clicks(spend)

        result = []
        for sub_id in dict.fromkeys([*csv_stats, *ads_stats]):
            csv_clicks = csv_stats.get(sub_id, 0)
            ads_clicks = ads_stats.get(sub_id, 0)
            diff = ads_clicks - csv_clicks
            result.append(
                ClickComparison(
                    sub_id=sub_id,
                    csv_clicks=csv_clicks,
                    ads_clicks=ads_clicks,
                    diff=diff,
                    diff_percent=(diff / csv_clicks) * 100 if csv_clicks > 0 else 0.0,
                )
            )
        return sorted(result, key=lambda c: c.csv_clicks + c.ads_clicks, reverse=True)

    @staticmethod
    def summarize(clicks: Iterable[Any], ad_spends: Iterable[Any] = (), day_direction: str = SORT_DESC) -> ClickSummary:
        clicks = list(clicks)
        total = ClickService.total_clicks(clicks)
        logger.debug(f"Resumo de cliques: {len(clicks)} linhas, {total} cliques")
        return ClickSummary(
            total_clicks=total,
            by_channel=ClickService.by_channel(clicks, total),
            by_sub_id=ClickService.by_sub_id(clicks, total),
            daily=ClickService.daily(clicks, day_direction),
            comparison=ClickService.comparison(clicks, list(ad_spends)),
        )
