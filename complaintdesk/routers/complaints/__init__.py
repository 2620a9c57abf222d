from fastapi import APIRouter

from .complaints import router as complaints_router
from .complaint_types import router as complaint_types_router
from .customers import router as customers_router
from .products import router as products_router
from .engineers import router as engineers_router

router = APIRouter()

router.include_router(complaints_router)
router.include_router(complaint_types_router)
router.include_router(customers_router)
router.include_router(products_router)
router.include_router(engineers_router)
