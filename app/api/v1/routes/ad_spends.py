from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response

from app.api.v1.dependencies import get_ad_spend_service, get_import_service
from app.schemas.ad_spend import AdSpend, AdSpendPayload, AdSpendUpdate, BulkAdSpendPayload, ImportResult
from app.services.ad_spend_import import TEMPLATE_FILENAME, XLSX_MEDIA_TYPE, AdSpendImportService, build_template
from app.services.ad_spend_service import AdSpendService

router = APIRouter(tags=["ad_spends"])


@router.get("", response_model=List[AdSpend])
def list_ad_spends(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    refresh: bool = Query(False),
    service: AdSpendService = Depends(get_ad_spend_service),
):
    return service.list(start_date, end_date, force=refresh)


@router.post("", response_model=AdSpend, status_code=status.HTTP_201_CREATED)
def create_ad_spend(
    payload: AdSpendPayload,
    service: AdSpendService = Depends(get_ad_spend_service),
):
    return service.create(payload)


@router.post("/bulk", response_model=List[AdSpend], status_code=status.HTTP_201_CREATED)
def bulk_create_ad_spend(
    payload: BulkAdSpendPayload,
    service: AdSpendService = Depends(get_ad_spend_service),
):
    return service.bulk_create(payload.items)


@router.post("/import", response_model=ImportResult)
async def import_ad_spends(
    file: UploadFile = File(...),
    service: AdSpendImportService = Depends(get_import_service),
):
    """Importa investimentos de planilha .csv/.xlsx (colunas Data, SubId, ValorGasto e Cliques)."""
    content = await file.read()
    return service.import_file(content, file.filename or "")


@router.get("/template")
def download_template():
    """Download do modelo Excel para importação de investimentos em ads."""
    return Response(
        content=build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"; filename*=UTF-8\'\'{TEMPLATE_FILENAME}',
            "Access-Control-Expose-Headers": "Content-Disposition, Content-Type",
        },
    )


@router.delete("/all", status_code=status.HTTP_200_OK)
def delete_all_ad_spends(service: AdSpendService = Depends(get_ad_spend_service)):
    """Remove todos os investimentos do usuário."""
    return service.delete_all()


@router.patch("/{ad_spend_id}", response_model=AdSpend)
def update_ad_spend(
    ad_spend_id: int,
    payload: AdSpendUpdate,
    service: AdSpendService = Depends(get_ad_spend_service),
):
    return service.update(ad_spend_id, payload)


@router.delete("/{ad_spend_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ad_spend(
    ad_spend_id: int,
    service: AdSpendService = Depends(get_ad_spend_service),
):
    service.delete(ad_spend_id)
    return None
