"""
Motor de KPIs: cruza linhas de venda com investimentos em anúncios.

Tudo aqui é puro e não levanta exceção: campos ausentes valem vazio/zero e
valores monetários ilegíveis valem 0. As coleções já chegam filtradas pelo
período ativo.
"""
from typing import Any, Dict, Iterable, List, Optional

from app.schemas.dashboard import ChannelHighlights, ChannelMetrics, DailyMetrics, MonthlyMetrics, Totals
from app.utils.dates import DateRange, month_label, parse_date_only, to_date_key
from app.utils.serialization import clean_number
from app.utils.text import normalize_name, normalize_sub_id

ORGANIC_CHANNEL = "Orgânico/Outros"
GENERAL_SPEND_LABEL = "Geral/Institucional"
NO_DATE_LABEL = "Sem data"

# Comissão positiva sem gasto: retorno "infinito". Sempre acompanhado de roas_infinite=True.
ROAS_INFINITE = 999.0

REVENUE_KEYS = ("Valor de Compra(R$)", "Preço(R$)")
AFFILIATE_COMMISSION_KEYS = (
    "Comissão líquida do afiliado(R$)",
    "Comissão do Item da Shopee(R$)",
)


def _get(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _raw(row: Any) -> Dict[str, Any]:
    raw = _get(row, "raw_data")
    return raw if isinstance(raw, dict) else {}


def _amount(value: Any) -> float:
    return max(clean_number(value), 0.0)


def _tag(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def get_faturamento(row: Any) -> float:
    raw = _raw(row)
    for key in REVENUE_KEYS:
        if key in raw:
            return _amount(raw[key])
    return _amount(_get(row, "revenue"))


def get_affiliate_commission(row: Any) -> float:
    """
    Comissão do afiliado: colunas conhecidas em ordem de prioridade; sem nenhuma delas,
    a primeira coluna (ordem alfabética) cujo nome contém "comiss"; por fim o campo commission.
    """
    raw = _raw(row)
    known = [key for key in AFFILIATE_COMMISSION_KEYS if key in raw]
    for key in known:
        value = _amount(raw[key])
        if value:
            return value
    if known:
        return 0.0

    for key in sorted(raw, key=str):
        if "comiss" in normalize_name(key):
            return _amount(raw[key])

    return _amount(_get(row, "commission"))


def calc_roas(commission: float, spend: float) -> tuple:
    """Retorna (roas, infinito). Gasto zero com comissão positiva vira o sentinela."""
    if spend > 0:
        return commission / spend, False
    if commission > 0:
        return ROAS_INFINITE, True
    return 0.0, False


def _matches_channel(tag: str, channel_filter: Optional[str]) -> bool:
    if not channel_filter:
        return True
    return tag.lower() == channel_filter.strip().lower()


def calc_channel_metrics(
    rows: Iterable[Any],
    ad_spends: Iterable[Any],
    channel_filter: Optional[str] = None,
) -> List[ChannelMetrics]:
    """
    Performance por Sub ID com rateio do gasto geral.

    Gasto sem Sub ID (ou "Geral/Institucional") é dividido entre os canais na
    proporção da comissão de cada um; canal sem comissão não recebe rateio.
    """
    channels: Dict[str, Dict[str, float]] = {}

    for row in rows:
        channel = _tag(_get(row, "sub_id1")) or ORGANIC_CHANNEL
        if not _matches_channel(channel, channel_filter):
            continue
        current = channels.setdefault(channel, {"commission": 0.0, "spend": 0.0, "orders": 0})
        current["commission"] += get_affiliate_commission(row)
        current["orders"] += 1

    total_general_spend = 0.0
    for spend in ad_spends:
        tag = _tag(_get(spend, "sub_id"))
        amount = clean_number(_get(spend, "amount"))
        if not tag or tag == GENERAL_SPEND_LABEL:
            total_general_spend += amount
            continue
        if not _matches_channel(tag, channel_filter):
            continue
        current = channels.setdefault(tag, {"commission": 0.0, "spend": 0.0, "orders": 0})
        current["spend"] += amount

    total_commission = sum(vals["commission"] for vals in channels.values())

    metrics = []
    for name, vals in channels.items():
        share = vals["commission"] / total_commission if total_commission > 0 else 0.0
        allocated = total_general_spend * share
        total_spend = vals["spend"] + allocated
        profit = vals["commission"] - total_spend
        roas, infinite = calc_roas(vals["commission"], total_spend)
        metrics.append(
            ChannelMetrics(
                name=name,
                commission=vals["commission"],
                revenue=vals["commission"],
                direct_spend=vals["spend"],
                allocated_general_spend=allocated,
                spend=total_spend,
                share=share,
                orders=int(vals["orders"]),
                profit=profit,
                roas=roas,
                roas_infinite=infinite,
                roi=(profit / total_spend) * 100 if total_spend > 0 else 0.0,
                cpa=total_spend / vals["orders"] if vals["orders"] > 0 else 0.0,
            )
        )

    return sorted(metrics, key=lambda m: m.revenue, reverse=True)


def calc_daily_metrics(rows: Iterable[Any], ad_spends: Iterable[Any]) -> List[DailyMetrics]:
    """Performance por dia: gasto somado no dia, sem rateio."""
    days: Dict[str, Dict[str, float]] = {}

    for row in rows:
        day = to_date_key(_get(row, "date")) or NO_DATE_LABEL
        current = days.setdefault(day, {"commission": 0.0, "spend": 0.0, "orders": 0})
        current["commission"] += get_affiliate_commission(row)
        current["orders"] += 1

    for spend in ad_spends:
        day = to_date_key(_get(spend, "date")) or NO_DATE_LABEL
        current = days.setdefault(day, {"commission": 0.0, "spend": 0.0, "orders": 0})
        current["spend"] += clean_number(_get(spend, "amount"))

    result = []
    for day in sorted(days):
        vals = days[day]
        roas, infinite = calc_roas(vals["commission"], vals["spend"])
        result.append(
            DailyMetrics(
                day=day,
                commission=vals["commission"],
                spend=vals["spend"],
                orders=int(vals["orders"]),
                profit=vals["commission"] - vals["spend"],
                roas=roas,
                roas_infinite=infinite,
            )
        )
    return result


def calc_monthly_metrics(rows: Iterable[Any], ad_spends: Iterable[Any]) -> List[MonthlyMetrics]:
    """Relatório mensal: meses com vendas, gasto do mesmo mês e lucro = comissão - gasto."""
    spend_by_month: Dict[str, float] = {}
    for spend in ad_spends:
        key = to_date_key(_get(spend, "date"))
        if not key:
            continue
        spend_by_month[key[:7]] = spend_by_month.get(key[:7], 0.0) + clean_number(_get(spend, "amount"))

    months: Dict[str, Dict[str, float]] = {}
    for row in rows:
        d = parse_date_only(_get(row, "date"))
        if d is None:
            continue
        key = f"{d.year:04d}-{d.month:02d}"
        current = months.setdefault(key, {"revenue": 0.0, "commission": 0.0})
        current["revenue"] += get_faturamento(row)
        current["commission"] += get_affiliate_commission(row)

    result = []
    for key in sorted(months):
        spend = spend_by_month.get(key, 0.0)
        result.append(
            MonthlyMetrics(
                month_key=key,
                month=month_label(key),
                revenue=months[key]["revenue"],
                commission=months[key]["commission"],
                spend=spend,
                profit=months[key]["commission"] - spend,
            )
        )
    return result


def calc_totals(
    rows: Iterable[Any],
    ad_spends: Iterable[Any],
    date_range: Optional[DateRange] = None,
    channel_filter: Optional[str] = None,
) -> Totals:
    """
    Cards de KPI. Não aplica rateio: com filtro de canal só entra o gasto com aquele
    Sub ID, e o gasto geral fica de fora (diferente da tabela por canal).
    """
    rows = list(rows)
    faturamento = sum(get_faturamento(row) for row in rows)
    comissao = sum(get_affiliate_commission(row) for row in rows)

    start_key = date_range.start_key() if date_range else ""
    end_key = date_range.end_key() if date_range else ""
    gasto = 0.0
    for spend in ad_spends:
        if channel_filter and normalize_sub_id(_get(spend, "sub_id")).lower() != channel_filter.strip().lower():
            continue
        spend_key = to_date_key(_get(spend, "date"))
        if start_key and spend_key < start_key:
            continue
        if end_key and spend_key > end_key:
            continue
        gasto += clean_number(_get(spend, "amount"))

    lucro = comissao - gasto
    return Totals(
        faturamento=faturamento,
        comissao=comissao,
        gasto_anuncios=gasto,
        lucro=lucro,
        roas=comissao / gasto if gasto > 0 else 0.0,
    )


def channel_highlights(metrics: List[ChannelMetrics]) -> ChannelHighlights:
    """Campeão de ROAS (com gasto), primeiro canal no prejuízo e maior volume."""
    if not metrics:
        return ChannelHighlights()

    champion = metrics[0]
    for current in metrics[1:]:
        if current.roas > champion.roas and current.spend > 0:
            champion = current

    alert = next((m for m in metrics if m.profit < 0 and m.spend > 0), None)

    top_volume = metrics[0]
    for current in metrics[1:]:
        if current.revenue > top_volume.revenue:
            top_volume = current

    return ChannelHighlights(roas_champion=champion, alert=alert, top_volume=top_volume)
