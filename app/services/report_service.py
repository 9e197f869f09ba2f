import io
import logging
from datetime import datetime

from openpyxl import Workbook

from app.schemas.dashboard import DashboardFilters, MonthlyReportResponse
from app.services import kpi
from app.services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Mês", "Faturamento", "Comissão", "Gasto Anúncios", "Lucro", "ROAS"]


class ReportService:
    """Relatório mensal (faturamento, comissão, gasto e lucro por mês) e sua exportação."""

    def __init__(self, dashboard: DashboardService):
        self.dashboard = dashboard

    def monthly(self, filters: DashboardFilters) -> MonthlyReportResponse:
        rows, spends, all_spends = self.dashboard.load(filters)
        return MonthlyReportResponse(
            totals=kpi.calc_totals(rows, all_spends, self.dashboard.date_range(filters), filters.sub_id),
            months=kpi.calc_monthly_metrics(rows, spends),
        )

    def export_xlsx(self, filters: DashboardFilters) -> bytes:
        report = self.monthly(filters)

        wb = Workbook()
        ws = wb.active
        ws.title = "Relatório Mensal"
        ws.append(EXPORT_HEADERS)
        for row in report.months:
            roas = f"{row.revenue / row.spend:.2f}x" if row.spend > 0 else "0.00x"
            ws.append([row.month or row.month_key, row.revenue, row.commission, row.spend, row.profit, roas])

        ws.column_dimensions['A'].width = 20
        for col in ("B", "C", "D", "E"):
            ws.column_dimensions[col].width = 15

        buffer = io.BytesIO()
        wb.save(buffer)
        logger.info(f"Relatório mensal exportado com {len(report.months)} meses")
        return buffer.getvalue()

    @staticmethod
    def export_filename() -> str:
        return f"relatorio_mensal_{datetime.now().strftime('%Y-%m-%d')}.xlsx"
