from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.dates import normalize_date, to_date_key
from app.utils.serialization import parse_number

# Valor do seletor "todos os canais" no formulário
ALL_CHANNELS_OPTION = "__all__"


def normalize_form_sub_id(value: Optional[str]) -> str:
    if value is None:
        return ""
    value = str(value).strip()
    if value == ALL_CHANNELS_OPTION:
        return ""
    return value


def _validate_amount(value: Any) -> float:
    amount = parse_number(value)
    if amount is None or amount <= 0:
        raise ValueError("Informe um valor maior que zero.")
    return amount


def _validate_date(value: Any) -> str:
    parsed = normalize_date(value) if isinstance(value, str) else to_date_key(value) or None
    if not parsed:
        raise ValueError("Data inválida. Use yyyy-mm-dd ou dd/mm/yyyy.")
    return parsed


class AdSpend(BaseModel):
    """Investimento em anúncios como devolvido pelo backend."""
    id: Optional[int] = None
    date: Optional[str] = None
    amount: float = 0
    sub_id: Optional[str] = None
    clicks: Optional[int] = 0

    @field_validator("date", mode="before")
    @classmethod
    def date_as_key(cls, v):
        if v is None:
            return None
        return to_date_key(v) or str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_float(cls, v):
        return parse_number(v) or 0.0

    @field_validator("clicks", mode="before")
    @classmethod
    def clicks_as_int(cls, v):
        num = parse_number(v)
        return int(num) if num is not None else 0


class AdSpendPayload(BaseModel):
    """Corpo de criação (formulário ou importação)."""
    date: str
    amount: float
    sub_id: Optional[str] = ""
    clicks: Optional[int] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, v):
        return _validate_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, v):
        return _validate_date(v)

    @field_validator("sub_id", mode="before")
    @classmethod
    def check_sub_id(cls, v):
        return normalize_form_sub_id(v)


class AdSpendUpdate(BaseModel):
    date: Optional[str] = None
    amount: Optional[float] = None
    sub_id: Optional[str] = None
    clicks: Optional[int] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, v):
        return None if v is None else _validate_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, v):
        return None if v is None else _validate_date(v)

    @field_validator("sub_id", mode="before")
    @classmethod
    def check_sub_id(cls, v):
        return None if v is None else normalize_form_sub_id(v)


class BulkAdSpendPayload(BaseModel):
    items: List[AdSpendPayload]


class ImportResult(BaseModel):
    read_rows: int = Field(0, description="Linhas lidas da planilha")
    valid_rows: int = Field(0, description="Linhas com data e valor válidos")
    invalid_rows: int = Field(0, description="Linhas descartadas")
    inserted: int = Field(0, description="Investimentos efetivamente criados")
