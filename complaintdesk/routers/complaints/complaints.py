from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.models.complaint_models import ComplaintStatus, ComplaintType
from complaintdesk.schemas.complaint_schemas import (
    ComplaintCreate,
    ComplaintListResponse,
    ComplaintResponse,
    EngineerAssignment,
    RepairDetailsIn,
)
from complaintdesk.schemas.response_schemas import MessageResponse
from complaintdesk.services.complaint_services import complaint_service, repair_service
from complaintdesk.utils.get_actor import get_actor

router = APIRouter(prefix="/complaints", tags=["Complaints"])


# 🧾 File Complaint
@router.post("", response_model=ComplaintResponse, status_code=201)
async def create_complaint_route(
    payload: ComplaintCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await complaint_service.create_complaint(db, payload, actor)


# 📋 Get All Complaints (with filters & pagination)
@router.get("", response_model=ComplaintListResponse)
async def list_complaints_route(
    db: AsyncSession = Depends(get_db),
    status: Optional[ComplaintStatus] = Query(None, description="Filter by status"),
    type: Optional[ComplaintType] = Query(None, description="Filter by complaint type"),
    engineer_id: Optional[int] = Query(None, description="Filter by assigned engineer"),
    search: Optional[str] = Query(None, description="Search description, customer name/phone, product serial"),
    limit: int = Query(25, ge=1, le=100, description="Results per page"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
):
    return await complaint_service.get_all_complaints(
        db,
        status=status,
        complaint_type=type,
        engineer_id=engineer_id,
        search=search,
        limit=limit,
        offset=offset,
    )


# 🔍 Get Complaint by ID
@router.get("/{complaint_id}", response_model=ComplaintResponse)
async def get_complaint_route(complaint_id: int, db: AsyncSession = Depends(get_db)):
    return await complaint_service.get_complaint(db, complaint_id)


# 🔎 OPEN -> UNDER_INVESTIGATION
@router.post("/{complaint_id}/investigate", response_model=ComplaintResponse)
async def begin_investigation_route(
    complaint_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await repair_service.begin_investigation(db, complaint_id, actor)


# 🔧 UNDER_INVESTIGATION -> CLOSED
@router.post("/{complaint_id}/repair", response_model=ComplaintResponse)
async def complete_repair_route(
    complaint_id: int,
    payload: RepairDetailsIn,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await repair_service.complete_repair(db, complaint_id, payload, actor)


# 👷 Assign / unassign engineer
@router.put("/{complaint_id}/engineer", response_model=ComplaintResponse)
async def assign_engineer_route(
    complaint_id: int,
    payload: EngineerAssignment,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await complaint_service.assign_engineer(db, complaint_id, payload.engineer_id, actor)


# 🗑️ Delete Complaint
@router.delete("/{complaint_id}", response_model=MessageResponse)
async def delete_complaint_route(
    complaint_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await complaint_service.delete_complaint(db, complaint_id, actor)
