from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.schemas.inventory_schemas import (
    QuantityAdjustment,
    SparePartCreate,
    SparePartListResponse,
    SparePartResponse,
    SparePartUpdate,
    SparePartUsageListResponse,
)
from complaintdesk.schemas.response_schemas import MessageResponse
from complaintdesk.services.inventory_services import spare_part_service
from complaintdesk.utils.get_actor import get_actor

router = APIRouter(prefix="/spare-parts", tags=["Spare Parts"])


@router.post("", response_model=SparePartResponse, status_code=201)
async def create_spare_part_route(
    data: SparePartCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await spare_part_service.create_spare_part(db, data, actor)


@router.get("", response_model=SparePartListResponse)
async def list_spare_parts_route(
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = Query(None, description="Search by name or code"),
    warehouse: Optional[str] = Query(None, description="Filter by warehouse"),
):
    return await spare_part_service.get_all_spare_parts(db, search, warehouse)


@router.get("/{spare_part_id}", response_model=SparePartResponse)
async def get_spare_part_route(spare_part_id: int, db: AsyncSession = Depends(get_db)):
    return await spare_part_service.get_spare_part(db, spare_part_id)


@router.get("/{spare_part_id}/usage", response_model=SparePartUsageListResponse)
async def get_spare_part_usage_route(spare_part_id: int, db: AsyncSession = Depends(get_db)):
    return await spare_part_service.get_spare_part_usage(db, spare_part_id)


@router.put("/{spare_part_id}", response_model=SparePartResponse)
async def update_spare_part_route(
    spare_part_id: int,
    data: SparePartUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await spare_part_service.update_spare_part(db, spare_part_id, data, actor)


@router.post("/{spare_part_id}/adjust", response_model=SparePartResponse)
async def adjust_spare_part_route(
    spare_part_id: int,
    data: QuantityAdjustment,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await spare_part_service.adjust_quantity(db, spare_part_id, data.delta, data.reason, actor)


@router.delete("/{spare_part_id}", response_model=MessageResponse)
async def delete_spare_part_route(
    spare_part_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await spare_part_service.delete_spare_part(db, spare_part_id, actor)
