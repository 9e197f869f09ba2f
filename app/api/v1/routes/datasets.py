from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.v1.dependencies import DashboardContext, get_context
from app.schemas.dataset import SalesRow
from app.services.dataset_service import filter_rows
from app.utils.dates import DateRange, filter_rows_by_range

router = APIRouter(tags=["datasets"])


@router.get("/rows", response_model=List[SalesRow])
def list_rows(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    sub_id: Optional[str] = Query(None),
    refresh: bool = Query(False),
    ctx: DashboardContext = Depends(get_context),
):
    rows = filter_rows_by_range(ctx.datasets().fetch(force=refresh), DateRange(start_date, end_date))
    return filter_rows(rows, status=status_filter, category=category, sub_id=sub_id)


@router.delete("/all", status_code=status.HTTP_200_OK)
def delete_all_datasets(ctx: DashboardContext = Depends(get_context)):
    """Remove todas as linhas de venda do usuário e descarta os caches."""
    ctx.datasets().delete_all()
    ctx.registry.invalidate_all(ctx.user_id)
    return {"message": "Todos os dados foram removidos"}
