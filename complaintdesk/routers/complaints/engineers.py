from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.schemas.engineer_schemas import (
    EngineerCreate,
    EngineerDeleteResponse,
    EngineerListResponse,
    EngineerResponse,
    EngineerUpdate,
)
from complaintdesk.services.complaint_services import engineer_service
from complaintdesk.utils.get_actor import get_actor

router = APIRouter(prefix="/engineers", tags=["Engineers"])


@router.post("", response_model=EngineerResponse, status_code=201)
async def create_engineer_route(
    data: EngineerCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await engineer_service.create_engineer(db, data, actor)


@router.get("", response_model=EngineerListResponse)
async def list_engineers_route(db: AsyncSession = Depends(get_db)):
    return await engineer_service.get_all_engineers(db)


@router.get("/{engineer_id}", response_model=EngineerResponse)
async def get_engineer_route(engineer_id: int, db: AsyncSession = Depends(get_db)):
    return await engineer_service.get_engineer(db, engineer_id)


@router.put("/{engineer_id}", response_model=EngineerResponse)
async def update_engineer_route(
    engineer_id: int,
    data: EngineerUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await engineer_service.update_engineer(db, engineer_id, data, actor)


@router.delete("/{engineer_id}", response_model=EngineerDeleteResponse)
async def delete_engineer_route(
    engineer_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await engineer_service.delete_engineer(db, engineer_id, actor)
