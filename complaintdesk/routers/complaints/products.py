from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.schemas.product_schemas import ProductCreate, ProductListResponse, ProductResponse
from complaintdesk.services.complaint_services import product_service
from complaintdesk.utils.get_actor import get_actor

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product_route(
    data: ProductCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await product_service.create_product(db, data, actor)


@router.get("", response_model=ProductListResponse)
async def list_products_route(db: AsyncSession = Depends(get_db)):
    return await product_service.get_all_products(db)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product_route(product_id: int, db: AsyncSession = Depends(get_db)):
    return await product_service.get_product(db, product_id)
