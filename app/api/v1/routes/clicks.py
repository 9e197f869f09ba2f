from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.v1.dependencies import DashboardContext, get_context
from app.schemas.click import ClickRow, ClickSummary
from app.services.click_service import ClickService
from app.utils.dates import DateRange, filter_by_range, filter_spends_by_range
from app.utils.tables import SORT_DESC

router = APIRouter(tags=["clicks"])


@router.get("/rows", response_model=List[ClickRow])
def list_click_rows(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    ctx: DashboardContext = Depends(get_context),
):
    return filter_by_range(ctx.clicks().fetch(), DateRange(start_date, end_date))


@router.get("/summary", response_model=ClickSummary)
def click_summary(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    day_sort_dir: str = Query(SORT_DESC, pattern="^(asc|desc)$"),
    ctx: DashboardContext = Depends(get_context),
):
    """Cliques por canal, por Sub ID, por dia e comparação com os cliques informados nos investimentos."""
    period = DateRange(start_date, end_date)
    clicks = filter_by_range(ctx.clicks().fetch(), period)
    ad_spends = filter_spends_by_range(ctx.ad_spends().fetch(), period)
    return ClickService.summarize(clicks, ad_spends, day_sort_dir)


@router.delete("/all", status_code=status.HTTP_200_OK)
def delete_all_clicks(ctx: DashboardContext = Depends(get_context)):
    ctx.clicks().delete_all()
    return {"message": "Todos os dados de cliques foram removidos"}
