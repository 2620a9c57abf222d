# complaintdesk/routers/admin/activity.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.schemas.activity_schemas import ActivityListResponse, ActivityOut
from complaintdesk.services.admin_services.activity_service import get_activities

router = APIRouter(prefix="/activity", tags=["Activity Log"])


@router.get("", response_model=ActivityListResponse)
async def list_activities(
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Query(None, description="Filter by actor (partial match)"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at", description="id, actor or created_at"),
    order: str = Query("desc", description="asc or desc"),
):
    """
    Fetch activity log entries with optional actor filter, pagination and sorting.
    Unknown sort fields fall back to created_at.
    """
    total, activities = await get_activities(db, actor, page, page_size, sort_by, order)
    return ActivityListResponse(
        total=total,
        page=page,
        page_size=page_size,
        data=[ActivityOut.model_validate(a) for a in activities],
    )
