import datetime
import math
import re
from decimal import Decimal
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

_CURRENCY_RE = re.compile(r"R\$", re.IGNORECASE)
_SPACES_RE = re.compile(r"\s+")


def serialize_value(value: Any):
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, (datetime.date, datetime.datetime, datetime.time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, np.generic):
        return value.item()
    return value


def parse_number(value: Any) -> Optional[float]:
    """
    Converte número ou texto monetário em float.
    "R$ 1.234,56" -> 1234.56; "1234.56" -> 1234.56; inválido/não finito -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        num = float(value)
        return num if math.isfinite(num) else None
    if isinstance(value, str):
        cleaned = _SPACES_RE.sub("", _CURRENCY_RE.sub("", value))
        has_comma = "," in cleaned
        has_dot = "." in cleaned
        if has_comma and has_dot:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        elif has_comma:
            cleaned = cleaned.replace(",", ".")
        if not cleaned:
            return None
        try:
            num = float(cleaned)
        except ValueError:
            return None
        return num if math.isfinite(num) else None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def clean_number(value: Any) -> float:
    """Mesma regra de parse_number, mas valores inválidos viram 0."""
    num = parse_number(value)
    return num if num is not None else 0.0


def normalize_raw_data(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Colunas monetárias (Valor*/Comiss*) viram float quando parseáveis; o resto é serializado."""
    if not isinstance(raw, dict):
        return {}
    normalized = {}
    for k, v in raw.items():
        key_lower = str(k).lower()
        if key_lower.startswith("valor") or key_lower.startswith("comiss"):
            parsed = parse_number(v)
            normalized[k] = parsed if parsed is not None else serialize_value(v)
        else:
            normalized[k] = serialize_value(v)
    return normalized
