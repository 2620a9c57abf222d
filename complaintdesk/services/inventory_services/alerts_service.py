import math
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from complaintdesk.core.config import LOW_STOCK_THRESHOLD
from complaintdesk.models.inventory_models import SparePart
from complaintdesk.schemas.inventory_schemas import StockAlert
from complaintdesk.services.admin_services.settings_service import get_setting_value


def is_low_stock(quantity: int, threshold: int) -> bool:
    return quantity < threshold


async def get_low_stock_threshold(db: AsyncSession) -> int:
    """
    The low_stock_threshold setting, falling back to the configured default.
    Rounded up: for whole quantities, q < 2.5 and q < 3 flag the same parts.
    """
    value = await get_setting_value(db, "low_stock_threshold", LOW_STOCK_THRESHOLD)
    return math.ceil(value)


async def get_stock_alerts(db: AsyncSession) -> List[StockAlert]:
    """
    Spare parts whose quantity is below the low-stock threshold, emptiest first.
    Reporting only; nothing blocks consumption of a low part.
    """
    threshold = await get_low_stock_threshold(db)
    result = await db.execute(select(SparePart).order_by(SparePart.quantity.asc(), SparePart.name.asc()))
    parts = result.scalars().all()

    alerts = []
    for p in parts:
        if not is_low_stock(p.quantity, threshold):
            break
        alerts.append(
            StockAlert(
                spare_part_id=p.id,
                name=p.name,
                code=p.code,
                warehouse=p.warehouse,
                quantity=p.quantity,
                threshold=threshold,
                out_of_stock=p.quantity == 0,
            )
        )
    return alerts
