from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SalesRow(BaseModel):
    """Linha de venda importada do CSV da plataforma de afiliados (somente leitura no dashboard)."""
    id: Optional[int] = None
    date: Optional[str] = Field(None, description="Dia do pedido (yyyy-mm-dd)")
    time: Optional[str] = Field(None, description="Hora do pedido (HH:MM:SS)")
    mes_ano: Optional[str] = None
    product: str = "Produto"
    product_name: Optional[str] = None
    platform: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    sub_id1: Optional[str] = Field(None, description="Sub ID (canal de atribuição)")
    revenue: float = 0
    commission: float = 0
    cost: float = 0
    profit: float = 0
    gross_value: Optional[float] = None
    quantity: Optional[float] = None
    raw_data: Optional[Dict[str, Any]] = None
