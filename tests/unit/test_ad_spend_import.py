"""
Unit tests for the ad-spend spreadsheet import.
Run: pytest tests/unit/test_ad_spend_import.py -v
"""
from datetime import date, datetime
from unittest.mock import Mock

import pytest

from app.core.errors import GatewayError, ImportValidationError, SessionExpiredError
from app.services.ad_spend_import import (
    AdSpendImportService,
    build_template,
    normalize_amount,
    parse_sheet_rows,
    read_sheet,
)

CSV_CONTENT = (
    "Data,SubId,ValorGasto,Cliques\n"
    "2024-01-15,A,120.50,30\n"
    ",B,10,1\n"
    "16/01/2024,,abc,0\n"
    "17/01/2024,,80,\n"
).encode("utf-8")


@pytest.mark.parametrize(
    "value,expected",
    [
        (120, 120.0),
        ("R$ 1.234,56", 1234.56),
        ("120,50", 120.5),
        ("1900-04-29", 120.0),
        (datetime(1900, 4, 29), 120.0),
        ("abc", None),
        (None, None),
        (float("nan"), None),
    ],
)
def test_normalize_amount(value, expected):
    assert normalize_amount(value) == expected


def test_parse_sheet_rows_detects_aliases_and_counts_invalid():
    rows = [
        {"valor gasto": "50", "DATA": "01/02/2024", "Canal": " Insta ", "clicks": "12"},
        {"valor gasto": "0", "DATA": "01/02/2024", "Canal": "", "clicks": ""},
        {"valor gasto": "10", "DATA": "sem data", "Canal": "", "clicks": ""},
    ]
    payloads, invalid = parse_sheet_rows(rows)
    assert payloads == [{"date": "2024-02-01", "amount": 50.0, "sub_id": "Insta", "clicks": 12}]
    assert invalid == 2


def test_read_csv_and_parse():
    rows = read_sheet(CSV_CONTENT, "investimentos.csv")
    payloads, invalid = parse_sheet_rows(rows)
    assert len(rows) == 4
    assert invalid == 2
    assert [p["date"] for p in payloads] == ["2024-01-15", "2024-01-17"]
    assert payloads[0]["sub_id"] == "A"
    assert payloads[1]["clicks"] == 0


def test_read_csv_latin1():
    content = "Data,Canal,Valor\n2024-01-15,Promoção,10\n".encode("latin-1")
    rows = read_sheet(content, "latin.csv")
    payloads, _ = parse_sheet_rows(rows)
    assert payloads[0]["sub_id"] == "Promoção"


def test_template_round_trips_through_reader():
    rows = read_sheet(build_template(), "modelo.xlsx")
    payloads, invalid = parse_sheet_rows(rows)
    assert invalid == 0
    assert [p["amount"] for p in payloads] == [120.5, 300.0]
    assert payloads[0]["sub_id"] == "ASPRADOR02"
    assert payloads[0]["clicks"] == 100
    assert payloads[1]["sub_id"] == ""
    assert payloads[0]["date"] == date.today().isoformat()


def test_rejects_unsupported_and_empty_files():
    with pytest.raises(ImportValidationError):
        read_sheet(b"qualquer", "planilha.pdf")
    with pytest.raises(ImportValidationError, match="Formato não suportado"):
        read_sheet(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 504, "gastos.xls")
    with pytest.raises(ImportValidationError):
        read_sheet(b"", "planilha.csv")


@pytest.fixture
def store():
    s = Mock()
    s.bulk_create.return_value = [{"id": 1}, {"id": 2}]
    return s


def test_import_uses_bulk_create(store):
    result = AdSpendImportService(store).import_file(CSV_CONTENT, "investimentos.csv")

    assert result.read_rows == 4
    assert result.valid_rows == 2
    assert result.invalid_rows == 2
    assert result.inserted == 2
    sent = store.bulk_create.call_args.args[0]
    assert sent[1]["sub_id"] is None


def test_import_falls_back_to_single_creates(store):
    store.bulk_create.side_effect = GatewayError("bulk indisponível", status_code=500)
    store.gateway.create_ad_spend.side_effect = [{"id": 1}, GatewayError("falhou")]

    result = AdSpendImportService(store).import_file(CSV_CONTENT, "investimentos.csv")

    assert result.inserted == 1
    assert store.gateway.create_ad_spend.call_count == 2
    store.fetch.assert_called_once_with(force=True)


def test_import_propagates_expired_session(store):
    store.bulk_create.side_effect = SessionExpiredError()
    with pytest.raises(SessionExpiredError):
        AdSpendImportService(store).import_file(CSV_CONTENT, "investimentos.csv")


def test_import_without_valid_rows_fails(store):
    content = "Data,Valor\n,10\n".encode("utf-8")
    with pytest.raises(ImportValidationError):
        AdSpendImportService(store).import_file(content, "vazio.csv")
    store.bulk_create.assert_not_called()
