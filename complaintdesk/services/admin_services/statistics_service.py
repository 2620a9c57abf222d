# complaintdesk/services/admin_services/statistics_service.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from complaintdesk.models.complaint_models import Complaint, ComplaintStatus, ComplaintType
from complaintdesk.models.customer_models import Customer
from complaintdesk.models.inventory_models import SparePart
from complaintdesk.schemas.statistics_schemas import StatisticsSummary
from complaintdesk.services.inventory_services.alerts_service import get_low_stock_threshold


# ---------------------------------------------------
# Derived values
# ---------------------------------------------------
def monthly_growth(current_count: int, last_count: int) -> float:
    """Percent change month over month; 0 when there is nothing to compare with."""
    if last_count <= 0:
        return 0.0
    return round((current_count - last_count) / last_count * 100, 2)


def completion_rate(closed_count: int, total_count: int) -> float:
    if total_count <= 0:
        return 0.0
    return float(round(closed_count / total_count * 100))


def customer_satisfaction(rate: float) -> float:
    """1-5 score derived from the completion rate."""
    return round(min(5.0, max(1.0, rate / 100 * 5)), 1)


def month_bounds(now: datetime):
    """Start of the current month and of the previous one."""
    current_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if current_start.month == 1:
        last_start = current_start.replace(year=current_start.year - 1, month=12)
    else:
        last_start = current_start.replace(month=current_start.month - 1)
    return current_start, last_start


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def _count(db: AsyncSession, *filters) -> int:
    result = await db.execute(select(func.count(Complaint.id)).where(*filters))
    return result.scalar() or 0


# ---------------------------------------------------
# Summary
# ---------------------------------------------------
async def get_summary(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    if db.get_bind().dialect.name == "sqlite":
        # SQLite stores timestamps naive (UTC)
        now = now.replace(tzinfo=None)
    current_start, last_start = month_bounds(now)

    status_rows = await db.execute(select(Complaint.status, func.count(Complaint.id)).group_by(Complaint.status))
    by_status = {s.value: 0 for s in ComplaintStatus}
    for status, count in status_rows.all():
        by_status[ComplaintStatus(status).value] = count

    type_rows = await db.execute(select(Complaint.type, func.count(Complaint.id)).group_by(Complaint.type))
    by_type = {t.value: 0 for t in ComplaintType}
    for complaint_type, count in type_rows.all():
        by_type[ComplaintType(complaint_type).value] = count

    branch_rows = await db.execute(
        select(Customer.branch, func.count(Complaint.id))
        .join(Complaint, Complaint.customer_id == Customer.id)
        .group_by(Customer.branch)
    )
    by_branch = {branch: count for branch, count in branch_rows.all()}

    total = sum(by_status.values())
    current_count = await _count(db, Complaint.created_at >= current_start)
    last_count = await _count(db, Complaint.created_at >= last_start, Complaint.created_at < current_start)

    closed_rows = await db.execute(
        select(Complaint.created_at, Complaint.closed_at).where(
            Complaint.status == ComplaintStatus.CLOSED,
            Complaint.closed_at.isnot(None),
        )
    )
    durations = [
        (_as_utc(closed_at) - _as_utc(created_at)).total_seconds() / 86400
        for created_at, closed_at in closed_rows.all()
        if created_at is not None
    ]
    avg_resolution_days = round(sum(durations) / len(durations), 1) if durations else 0.0

    customers = await db.execute(select(func.count(Customer.id)))
    units = await db.execute(select(func.coalesce(func.sum(SparePart.quantity), 0)))
    threshold = await get_low_stock_threshold(db)
    low = await db.execute(select(func.count(SparePart.id)).where(SparePart.quantity < threshold))

    rate = completion_rate(by_status[ComplaintStatus.CLOSED.value], total)
    summary = StatisticsSummary(
        total_complaints=total,
        by_status=by_status,
        by_type=by_type,
        by_branch=by_branch,
        total_customers=customers.scalar() or 0,
        total_spare_part_units=units.scalar() or 0,
        low_stock_parts=low.scalar() or 0,
        low_stock_threshold=threshold,
        monthly_growth=monthly_growth(current_count, last_count),
        avg_resolution_days=avg_resolution_days,
        completion_rate=rate,
        customer_satisfaction=customer_satisfaction(rate),
    )
    return {"message": "Statistics calculated successfully", "data": summary}
