from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from complaintdesk.core.db import get_db
from complaintdesk.schemas.statistics_schemas import StatisticsResponse
from complaintdesk.services.admin_services.statistics_service import get_summary

router = APIRouter(prefix="/statistics", tags=["Statistics"])


@router.get("/summary", response_model=StatisticsResponse)
async def statistics_summary(db: AsyncSession = Depends(get_db)):
    return await get_summary(db)
