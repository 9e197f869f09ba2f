import logging
from typing import Any, Dict, Iterable, List, Optional

from app.schemas.dataset import SalesRow
from app.utils.dates import to_date_key
from app.utils.serialization import normalize_raw_data, parse_number

logger = logging.getLogger(__name__)

# Colunas do relatório da Shopee, em ordem de prioridade
REVENUE_COLUMNS = ("Preço(R$)", "Valor de Compra(R$)")
COMMISSION_COLUMNS = (
    "Comissão do Item da Shopee(R$)",
    "Comissão Shopee(R$)",
    "Comissão total do pedido(R$)",
    "Comissão total do item(R$)",
    "Comissão líquida do afiliado(R$)",
)
ORDER_TIME_COLUMNS = ("Horário do pedido", "Horario do pedido")


def _first_number(*values: Any) -> Optional[float]:
    for value in values:
        num = parse_number(value)
        if num is not None:
            return num
    return None


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def parse_dataset_row(data: Dict[str, Any]) -> SalesRow:
    """
    Normaliza uma linha de /datasets/all/rows.
    O horário do pedido (raw_data) prevalece sobre date/time da API quando presente.
    """
    raw = normalize_raw_data(data.get("raw_data") or {})

    date_value = data.get("date")
    time_value = data.get("time")
    mes_ano = data.get("mes_ano")
    order_time = _first_present(*(raw.get(col) for col in ORDER_TIME_COLUMNS))
    if isinstance(order_time, str) and order_time.strip():
        parts = order_time.strip().split(" ")
        date_value = parts[0]
        if len(parts) > 1 and parts[1]:
            time_value = parts[1]

    date_key = to_date_key(date_value) or None
    if date_key:
        mes_ano = date_key[:7]

    revenue = _first_number(*(raw.get(col) for col in REVENUE_COLUMNS), data.get("revenue")) or 0.0
    commission = _first_number(*(raw.get(col) for col in COMMISSION_COLUMNS), data.get("commission")) or 0.0
    revenue = max(revenue, 0.0)
    commission = max(commission, 0.0)

    return SalesRow(
        id=data.get("id"),
        date=date_key,
        time=time_value,
        mes_ano=mes_ano,
        product=_first_present(data.get("product"), data.get("product_name"), raw.get("Nome do Item")) or "Produto",
        product_name=_first_present(data.get("product_name"), raw.get("Nome do Item")),
        platform=_first_present(data.get("platform"), raw.get("Canal")),
        status=_first_present(data.get("status"), raw.get("Status do Pedido")),
        category=_first_present(data.get("category"), raw.get("Categoria Global L1")),
        sub_id1=_first_present(data.get("sub_id1"), raw.get("Sub_id1"), raw.get("sub_id1")),
        revenue=revenue,
        commission=commission,
        cost=0,
        profit=revenue - commission,
        gross_value=parse_number(raw.get("gross_value")),
        quantity=_first_number(data.get("quantity"), raw.get("Qtd")),
        raw_data=raw or None,
    )


def parse_dataset_rows(payload: Any) -> List[SalesRow]:
    """Aceita a lista pura ou o envelope {"rows": [...]}; itens inválidos são descartados."""
    items = payload.get("rows") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        return []
    rows = []
    for item in items:
        if not isinstance(item, dict):
            continue
        rows.append(parse_dataset_row(item))
    return rows


def _matches(value: Optional[str], expected: Optional[str]) -> bool:
    if not expected:
        return True
    return (value or "").lower() == expected.lower()


def filter_rows(
    rows: Iterable[SalesRow],
    status: Optional[str] = None,
    category: Optional[str] = None,
    sub_id: Optional[str] = None,
) -> List[SalesRow]:
    """Filtros do dashboard: comparação exata e sem diferenciar maiúsculas."""
    return [
        row for row in rows
        if _matches(row.status, status) and _matches(row.category, category) and _matches(row.sub_id1, sub_id)
    ]


def distinct_options(rows: Iterable[SalesRow], field: str) -> List[str]:
    """Valores distintos e não vazios de um campo, ordenados (opções dos filtros)."""
    return sorted({str(getattr(row, field)) for row in rows if getattr(row, field, None)})
