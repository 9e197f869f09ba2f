from fastapi import APIRouter

from app.api.v1.routes import ad_spends, clicks, dashboard, datasets, reports, session

router = APIRouter()
router.include_router(session.router, prefix="/session")
router.include_router(dashboard.router, prefix="/dashboard")
router.include_router(reports.router, prefix="/reports")
router.include_router(ad_spends.router, prefix="/ad_spends")
router.include_router(clicks.router, prefix="/clicks")
router.include_router(datasets.router, prefix="/datasets")
