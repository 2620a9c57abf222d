from fastapi import APIRouter

from .spare_parts import router as spare_parts_router
from .alerts import router as alerts_router

router = APIRouter(prefix="/inventory")

router.include_router(spare_parts_router)
router.include_router(alerts_router)
