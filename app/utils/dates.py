"""
Datas como chave de dia (yyyy-mm-dd).

Comparações de período são feitas pela chave textual do dia, nunca por instante,
para que "2024-03-15" continue sendo 15/03 independente de fuso horário.
"""
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional

import pandas as pd

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
ISO_DATETIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[T ]")
BR_DATE_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
BR_SHORT_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})$")

# Excel conta dias a partir de 1899-12-30 (herda o bug do ano bissexto de 1900)
EXCEL_EPOCH = date(1899, 12, 30)


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_free_form(text: str, dayfirst: bool = False) -> Optional[date]:
    try:
        parsed = pd.to_datetime(text, errors="coerce", dayfirst=dayfirst)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def parse_date_only(value: Any) -> Optional[date]:
    """
    Converte para date sem passar por fuso horário.
    Aceita date/datetime, "yyyy-mm-dd", "yyyy-mm-ddTHH:MM..." (usa o dia escrito),
    "dd/mm/yyyy" ou "dd-mm-yyyy" (formato da API) e, por último, texto livre.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    match = ISO_DATE_RE.match(trimmed) or ISO_DATETIME_RE.match(trimmed)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = BR_DATE_RE.match(trimmed)
    if match:
        return _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))

    return _parse_free_form(trimmed)


def to_date_key(value: Any) -> str:
    d = parse_date_only(value)
    if d is None:
        return ""
    return d.isoformat()


def is_before_date_key(a: Any, b: Any) -> bool:
    ak = to_date_key(a)
    bk = to_date_key(b)
    if not ak or not bk:
        return False
    return ak < bk


def is_after_date_key(a: Any, b: Any) -> bool:
    ak = to_date_key(a)
    bk = to_date_key(b)
    if not ak or not bk:
        return False
    return ak > bk


@dataclass
class DateRange:
    from_: Any = None
    to: Any = None

    @property
    def is_empty(self) -> bool:
        return not self.from_ and not self.to

    def start_key(self) -> str:
        return to_date_key(self.from_) if self.from_ else ""

    def end_key(self) -> str:
        return to_date_key(self.to) if self.to else ""


def in_range(value: Any, date_range: Optional[DateRange]) -> bool:
    """Dia dentro de [from, to] (limites opcionais e inclusivos)."""
    if date_range is None:
        return True
    if date_range.from_ and is_before_date_key(value, date_range.from_):
        return False
    if date_range.to and is_after_date_key(value, date_range.to):
        return False
    return True


def _get_date(item: Any) -> Any:
    if isinstance(item, dict):
        return item.get("date")
    return getattr(item, "date", None)


def filter_by_range(items: Iterable[Any], date_range: Optional[DateRange]) -> List[Any]:
    """Filtra linhas de venda, investimentos ou cliques pelo campo date."""
    if date_range is None or date_range.is_empty:
        return list(items)
    return [item for item in items if in_range(_get_date(item), date_range)]


def filter_rows_by_range(rows: Iterable[Any], date_range: Optional[DateRange]) -> List[Any]:
    return filter_by_range(rows, date_range)


def filter_spends_by_range(ad_spends: Iterable[Any], date_range: Optional[DateRange]) -> List[Any]:
    return filter_by_range(ad_spends, date_range)


def normalize_date(value: Any) -> Optional[str]:
    """
    Normaliza a data de uma planilha de investimentos para yyyy-mm-dd.
    Aceita date/datetime, serial do Excel, "yyyy-mm-dd", "dd/mm/yyyy", "dd/mm/yy" e texto livre.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return (EXCEL_EPOCH + timedelta(days=float(value))).isoformat()
        except OverflowError:
            return None

    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    if ISO_DATE_RE.match(trimmed):
        return trimmed if parse_date_only(trimmed) else None

    match = BR_SHORT_DATE_RE.match(trimmed)
    if match:
        d_raw, m_raw, y_raw = match.groups()
        day, month = int(d_raw), int(m_raw)
        year = int(f"20{y_raw}") if len(y_raw) == 2 else int(y_raw)
        if day < 1 or day > 31 or month < 1 or month > 12 or year < 1900 or year > 2100:
            return None
        parsed = _safe_date(year, month, day)
        return parsed.isoformat() if parsed else None

    parsed = parse_date_only(trimmed)
    return parsed.isoformat() if parsed else None


MONTH_NAMES_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def month_label(month_key: str) -> str:
    """Rótulo do mês em português, ex.: 2025-01 -> janeiro de 2025."""
    try:
        year, month = month_key.split("-")[:2]
        return f"{MONTH_NAMES_PT[int(month) - 1]} de {int(year)}"
    except (ValueError, IndexError, AttributeError):
        return str(month_key)
