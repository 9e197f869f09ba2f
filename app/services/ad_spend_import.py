"""
Importação de investimentos em anúncios a partir de planilha (.csv ou .xlsx).

Colunas são detectadas por apelidos, sem diferenciar maiúsculas/acentos.
Linhas sem data ou valor válido são descartadas e contadas.
"""
import io
import logging
import math
import numbers
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl import Workbook

from app.core.errors import GatewayError, ImportValidationError, SessionExpiredError, SubscriptionRequiredError
from app.schemas.ad_spend import ImportResult
from app.stores.ad_spends import AdSpendsStore
from app.utils.dates import ISO_DATE_RE, normalize_date, parse_date_only
from app.utils.serialization import parse_number
from app.utils.text import find_key

logger = logging.getLogger(__name__)

AMOUNT_ALIASES = ("valorgasto", "valor gasto", "valor", "amount", "valor_gasto", "valor_gasto_anuncios")
DATE_ALIASES = ("data", "date")
SUB_ID_ALIASES = ("subid", "sub_id", "sub id", "canal", "channel")
CLICKS_ALIASES = ("cliques", "clicks")

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xlsx",)
CSV_ENCODINGS = ("utf-8", "latin-1")

EXCEL_EPOCH_DT = datetime(1899, 12, 30)
TEMPLATE_FILENAME = "modelo-investimentos.xlsx"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _excel_serial(value: datetime) -> float:
    return (value - EXCEL_EPOCH_DT).total_seconds() / 86400


def normalize_amount(value: Any) -> Optional[float]:
    """
    Valor gasto de uma célula. Quando o Excel formata o valor como data
    (ex.: 120 vira 1900-04-29), volta para o número serial original.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _excel_serial(value)
    if isinstance(value, numbers.Real):
        num = float(value)
        return num if math.isfinite(num) else None
    if isinstance(value, str):
        cleaned = value.replace("R$", "").replace("r$", "").strip()
        if ISO_DATE_RE.match(cleaned):
            d = parse_date_only(cleaned)
            if d is not None:
                return _excel_serial(datetime(d.year, d.month, d.day))
        return parse_number(cleaned)
    return parse_number(value)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and not math.isfinite(value):
        return ""
    return str(value).strip()


def read_sheet(content: bytes, filename: str) -> List[Dict[str, Any]]:
    """Lê a planilha como lista de dicionários (uma entrada por linha)."""
    name = (filename or "").lower()
    if not content:
        raise ImportValidationError("Planilha vazia ou inválida", field="file")

    if name.endswith(EXCEL_EXTENSIONS):
        try:
            df = pd.read_excel(io.BytesIO(content), engine="openpyxl")
        except Exception as e:
            logger.error(f"Erro ao ler planilha {filename}: {str(e)}")
            raise ImportValidationError(f"Erro ao ler planilha: {str(e)}", field="file")
    elif name.endswith(CSV_EXTENSIONS):
        df = None
        for encoding in CSV_ENCODINGS:
            try:
                df = pd.read_csv(
                    io.BytesIO(content),
                    encoding=encoding,
                    dtype=str,
                    keep_default_na=False,
                    sep=None,
                    engine="python",
                )
                break
            except UnicodeDecodeError:
                continue
            except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
                raise ImportValidationError(f"Erro ao ler CSV: {str(e)}", field="file")
        if df is None:
            raise ImportValidationError("Não foi possível decodificar o arquivo CSV. Verifique a codificação.", field="file")
    else:
        raise ImportValidationError("Formato não suportado. Envie um arquivo .csv ou .xlsx", field="file")

    if df.empty:
        raise ImportValidationError("Planilha vazia ou inválida", field="file")
    df.columns = [str(col) for col in df.columns]
    # Células vazias do Excel chegam como NaN/NaT
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict("records")


def parse_sheet_rows(rows: List[Dict[str, Any]]) -> tuple:
    """Converte as linhas lidas em payloads de investimento. Retorna (payloads, inválidas)."""
    if not rows:
        return [], 0

    keys = list(rows[0].keys())
    amount_col = find_key(keys, AMOUNT_ALIASES)
    date_col = find_key(keys, DATE_ALIASES)
    sub_id_col = find_key(keys, SUB_ID_ALIASES)
    clicks_col = find_key(keys, CLICKS_ALIASES)
    logger.info(f"Colunas detectadas: valor={amount_col}, data={date_col}, sub_id={sub_id_col}, cliques={clicks_col}")

    payloads = []
    invalid = 0
    for idx, row in enumerate(rows):
        amount = normalize_amount(row.get(amount_col)) if amount_col else None
        day = normalize_date(row.get(date_col)) if date_col else None
        if not amount or amount <= 0 or not day:
            invalid += 1
            if invalid <= 5:
                logger.warning(f"Linha {idx + 1} inválida - valor: {amount}, data: {day}")
            continue
        clicks = parse_number(row.get(clicks_col)) if clicks_col else None
        payloads.append(
            {
                "date": day,
                "amount": amount,
                "sub_id": _cell_text(row.get(sub_id_col)) if sub_id_col else "",
                "clicks": int(clicks) if clicks is not None and clicks > 0 else 0,
            }
        )
    return payloads, invalid


class AdSpendImportService:
    def __init__(self, store: AdSpendsStore):
        self.store = store

    def import_file(self, content: bytes, filename: str) -> ImportResult:
        rows = read_sheet(content, filename)
        payloads, invalid = parse_sheet_rows(rows)
        logger.info(f"Importação {filename}: {len(rows)} linhas lidas, {len(payloads)} válidas, {invalid} inválidas")
        if not payloads:
            raise ImportValidationError("Planilha vazia ou inválida", field="file")

        remote_items = [{**p, "sub_id": p["sub_id"] or None} for p in payloads]
        try:
            created = self.store.bulk_create(remote_items)
            inserted = len(created) or len(payloads)
        except (SessionExpiredError, SubscriptionRequiredError):
            raise
        except GatewayError as e:
            logger.warning(f"Falha no envio em lote ({e.message}); enviando item a item")
            inserted = self._create_one_by_one(remote_items)

        return ImportResult(
            read_rows=len(rows),
            valid_rows=len(payloads),
            invalid_rows=invalid,
            inserted=inserted,
        )

    def _create_one_by_one(self, items: List[Dict[str, Any]]) -> int:
        success = 0
        try:
            for item in items:
                try:
                    self.store.gateway.create_ad_spend(item)
                    success += 1
                except (SessionExpiredError, SubscriptionRequiredError):
                    raise
                except GatewayError as e:
                    logger.error(f"Erro ao criar item individual {item}: {e.message}")
        finally:
            self.store.fetch(force=True)
        return success


def build_template() -> bytes:
    """Modelo .xlsx para importação: colunas Data, SubId, ValorGasto e Cliques."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Modelo"

    ws.append(["Data", "SubId", "ValorGasto", "Cliques"])

    today = datetime.now().strftime("%Y-%m-%d")
    ws.append([today, "ASPRADOR02", "120,50", "100"])
    ws.append([today, "", "300,00", "0"])

    ws.column_dimensions['A'].width = 12
    ws.column_dimensions['B'].width = 15
    ws.column_dimensions['C'].width = 12
    ws.column_dimensions['D'].width = 10

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
