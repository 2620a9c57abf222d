from fastapi import APIRouter

from .settings import router as settings_router
from .statistics import router as statistics_router
from .activity import router as activity_router

router = APIRouter()

router.include_router(settings_router)
router.include_router(statistics_router)
router.include_router(activity_router)
