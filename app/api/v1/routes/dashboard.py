from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies import get_dashboard_service
from app.schemas.ad_spend import normalize_form_sub_id
from app.schemas.dashboard import ChannelMetrics, DailyMetrics, DashboardFilters, DashboardResponse, Page, Totals
from app.services.dashboard_service import DashboardService

router = APIRouter(tags=["dashboard"])


def get_filters(
    start_date: Optional[str] = Query(None, description="Data inicial (YYYY-MM-DD ou DD/MM/YYYY)"),
    end_date: Optional[str] = Query(None, description="Data final (YYYY-MM-DD ou DD/MM/YYYY)"),
    sub_id: Optional[str] = Query(None, description="Filtrar por Sub ID (canal)"),
    status: Optional[str] = Query(None, description="Status do pedido"),
    category: Optional[str] = Query(None, description="Categoria"),
) -> DashboardFilters:
    return DashboardFilters(
        start_date=start_date or None,
        end_date=end_date or None,
        sub_id=normalize_form_sub_id(sub_id) or None,
        status=status or None,
        category=category or None,
    )


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    filters: DashboardFilters = Depends(get_filters),
    sort_by: Optional[str] = Query(None, description="Coluna de ordenação da tabela de canais"),
    sort_dir: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    page: int = Query(0, ge=0),
    page_size: Optional[int] = Query(None),
    day_sort_dir: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    day_page: int = Query(0, ge=0),
    day_page_size: Optional[int] = Query(None),
    refresh: bool = Query(False, description="Ignora o cache e busca tudo de novo"),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_dashboard(
        filters,
        sort_by=sort_by,
        sort_dir=sort_dir,
        page=page,
        page_size=page_size,
        day_sort_dir=day_sort_dir,
        day_page=day_page,
        day_page_size=day_page_size,
        refresh=refresh,
    )


@router.get("/totals", response_model=Totals)
def get_totals(
    filters: DashboardFilters = Depends(get_filters),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.totals(filters)


@router.get("/channels", response_model=Page[ChannelMetrics])
def get_channels(
    filters: DashboardFilters = Depends(get_filters),
    sort_by: Optional[str] = Query(None),
    sort_dir: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    page: int = Query(0, ge=0),
    page_size: Optional[int] = Query(None),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.channels(filters, sort_by=sort_by, sort_dir=sort_dir, page=page, page_size=page_size)


@router.get("/daily", response_model=Page[DailyMetrics])
def get_daily(
    filters: DashboardFilters = Depends(get_filters),
    sort_dir: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    page: int = Query(0, ge=0),
    page_size: Optional[int] = Query(None),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.daily(filters, sort_dir=sort_dir, page=page, page_size=page_size)


@router.get("/options")
def get_filter_options(service: DashboardService = Depends(get_dashboard_service)):
    """Opções dos seletores de filtro (status, categoria, Sub ID)."""
    return service.filter_options()


@router.post("/refresh")
def refresh_dashboard(service: DashboardService = Depends(get_dashboard_service)):
    """Botão "atualizar": busca de novo linhas e investimentos, ignorando o cache."""
    return service.refresh()
