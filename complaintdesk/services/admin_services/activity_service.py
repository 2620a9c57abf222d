# complaintdesk/services/admin_services/activity_service.py
from sqlalchemy import select, desc, asc, func
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional, Tuple
from complaintdesk.models.activity_models import ActivityLog

ALLOWED_SORT_FIELDS = {"id", "actor", "created_at"}


async def get_activities(
    db: AsyncSession,
    actor: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    order: str = "desc"
) -> Tuple[int, List[ActivityLog]]:
    # Validate sort field
    if sort_by not in ALLOWED_SORT_FIELDS:
        sort_by = "created_at"

    sort_column = getattr(ActivityLog, sort_by)
    sort_order = desc(sort_column) if order.lower() == "desc" else asc(sort_column)

    filters = []
    if actor:
        filters.append(ActivityLog.actor.ilike(f"%{actor}%"))

    stmt = select(ActivityLog)
    count_stmt = select(func.count(ActivityLog.id))
    if filters:
        stmt = stmt.where(*filters)
        count_stmt = count_stmt.where(*filters)

    total_result = await db.execute(count_stmt)
    total = total_result.scalar() or 0

    # id as tiebreaker, created_at has second resolution on SQLite
    stmt = stmt.order_by(sort_order, sort_order_for_id(order)).offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(stmt)
    activities = result.scalars().all()

    return total, activities


def sort_order_for_id(order: str):
    return desc(ActivityLog.id) if order.lower() == "desc" else asc(ActivityLog.id)
