"""
Unit tests for sales row normalization and dashboard filters.
Run: pytest tests/unit/test_dataset_service.py -v
"""
import datetime

import numpy as np
import pytest

from app.services.dataset_service import distinct_options, filter_rows, parse_dataset_row, parse_dataset_rows
from app.utils.serialization import normalize_raw_data, parse_number


@pytest.mark.parametrize(
    "value,expected",
    [
        ("R$ 1.234,56", 1234.56),
        ("1234.56", 1234.56),
        ("10,5", 10.5),
        (7, 7.0),
        ("", None),
        ("abc", None),
        (float("inf"), None),
        (None, None),
    ],
)
def test_parse_number(value, expected):
    assert parse_number(value) == expected


def test_order_time_overrides_api_date():
    row = parse_dataset_row(
        {
            "id": 1,
            "date": "2024-01-01",
            "time": "00:00:00",
            "raw_data": {
                "Horário do pedido": "2024-01-15 10:30:00",
                "Preço(R$)": "R$ 89,90",
                "Comissão líquida do afiliado(R$)": "9,50",
                "Sub_id1": "insta",
            },
        }
    )
    assert row.date == "2024-01-15"
    assert row.time == "10:30:00"
    assert row.mes_ano == "2024-01"
    assert row.revenue == pytest.approx(89.9)
    assert row.sub_id1 == "insta"
    assert row.raw_data["Comissão líquida do afiliado(R$)"] == pytest.approx(9.5)


def test_api_date_in_br_format_becomes_day_key():
    row = parse_dataset_row({"date": "15-01-2024", "revenue": "-3", "commission": 2})
    assert row.date == "2024-01-15"
    assert row.revenue == 0
    assert row.commission == 2
    assert row.product == "Produto"


def test_parse_rows_accepts_envelope_and_skips_garbage():
    rows = parse_dataset_rows({"rows": [{"id": 1}, "lixo", {"id": 2}]})
    assert [r.id for r in rows] == [1, 2]
    assert parse_dataset_rows(None) == []


def test_filters_and_options():
    rows = parse_dataset_rows(
        [
            {"status": "Concluído", "category": "Casa", "sub_id1": "A"},
            {"status": "Pendente", "category": "Casa", "sub_id1": "B"},
            {"status": "concluído", "category": None, "sub_id1": None},
        ]
    )
    assert len(filter_rows(rows, status="CONCLUÍDO")) == 2
    assert len(filter_rows(rows, category="casa", sub_id="b")) == 1
    assert distinct_options(rows, "category") == ["Casa"]
    assert distinct_options(rows, "sub_id1") == ["A", "B"]


def test_raw_data_values_are_json_friendly():
    raw = normalize_raw_data(
        {"Qtd": np.int64(2), "Valor de Compra(R$)": "R$ 10,00", "Data": datetime.date(2024, 1, 2), "Obs": float("nan")}
    )
    assert raw == {"Qtd": 2, "Valor de Compra(R$)": 10.0, "Data": "2024-01-02", "Obs": None}
    assert type(raw["Qtd"]) is int
