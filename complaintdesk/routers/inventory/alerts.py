from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from complaintdesk.core.db import get_db
from complaintdesk.services.inventory_services.alerts_service import get_stock_alerts
from complaintdesk.schemas.inventory_schemas import StockAlert

router = APIRouter(prefix="/alerts", tags=["Inventory Stock Alerts"])


@router.get("", response_model=List[StockAlert])
async def stock_alerts(db: AsyncSession = Depends(get_db)):
    return await get_stock_alerts(db)
