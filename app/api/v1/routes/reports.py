from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api.v1.dependencies import get_report_service
from app.api.v1.routes.dashboard import get_filters
from app.schemas.dashboard import DashboardFilters, MonthlyReportResponse
from app.services.ad_spend_import import XLSX_MEDIA_TYPE
from app.services.report_service import ReportService

router = APIRouter(tags=["reports"])


@router.get("/monthly", response_model=MonthlyReportResponse)
def monthly_report(
    filters: DashboardFilters = Depends(get_filters),
    service: ReportService = Depends(get_report_service),
):
    return service.monthly(filters)


@router.get("/export")
def export_monthly_report(
    filters: DashboardFilters = Depends(get_filters),
    service: ReportService = Depends(get_report_service),
):
    """Relatório mensal em .xlsx (Mês, Faturamento, Comissão, Gasto Anúncios, Lucro, ROAS)."""
    filename = service.export_filename()
    return Response(
        content=service.export_xlsx(filters),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"; filename*=UTF-8\'\'{filename}',
            "Access-Control-Expose-Headers": "Content-Disposition, Content-Type",
        },
    )
