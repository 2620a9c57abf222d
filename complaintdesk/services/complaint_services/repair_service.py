# complaintdesk/services/complaint_services/repair_service.py
"""
Complaint lifecycle: OPEN -> UNDER_INVESTIGATION -> CLOSED.

Closing a complaint records the repair and, for repairs with spare parts, takes
the parts out of stock. Status change, repair record, stock decrements and
consumption rows are committed together or not at all.
"""
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from complaintdesk.core.exceptions import (
    ComplaintDeskError,
    InvalidStateTransition,
    ValidationError,
    translate_db_error,
)
from complaintdesk.models.complaint_models import ALLOWED_TRANSITIONS, ComplaintStatus, RepairType
from complaintdesk.schemas.complaint_schemas import RepairDetailsIn, RepairSparePartLine
from complaintdesk.services.complaint_services.complaint_service import load_complaint, serialize_complaint
from complaintdesk.services.inventory_services.spare_part_service import consume_spare_parts
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)


def can_transition(current: ComplaintStatus, target: ComplaintStatus) -> bool:
    return ComplaintStatus(target) in ALLOWED_TRANSITIONS.get(ComplaintStatus(current), set())


def ensure_transition(complaint_id: int, current: ComplaintStatus, target: ComplaintStatus):
    if not can_transition(current, target):
        raise InvalidStateTransition(
            f"Complaint {complaint_id} cannot move from '{ComplaintStatus(current).value}' "
            f"to '{ComplaintStatus(target).value}'"
        )


def merge_spare_part_lines(lines: Optional[List[RepairSparePartLine]]) -> Dict[int, int]:
    """{spare_part_id: total quantity_used}; a part listed twice is consumed once with the summed quantity."""
    merged: Dict[int, int] = OrderedDict()
    for line in lines or []:
        merged[line.spare_part_id] = merged.get(line.spare_part_id, 0) + line.quantity_used
    return merged


def validate_repair_details(details: RepairDetailsIn) -> Dict[int, int]:
    lines = merge_spare_part_lines(details.spare_parts)
    if details.repair_type == RepairType.WITH_SPARE_PARTS and not lines:
        raise ValidationError("A repair with spare parts must list at least one spare part")
    if details.repair_type == RepairType.WITHOUT_SPARE_PARTS and lines:
        raise ValidationError("A repair without spare parts cannot list spare parts")
    return lines


# ---------------------------------------------------
# OPEN -> UNDER_INVESTIGATION
# ---------------------------------------------------
async def begin_investigation(db: AsyncSession, complaint_id: int, actor: str = None) -> dict:
    try:
        complaint = await load_complaint(db, complaint_id, for_update=True)
        ensure_transition(complaint_id, complaint.status, ComplaintStatus.UNDER_INVESTIGATION)

        complaint.status = ComplaintStatus.UNDER_INVESTIGATION
        complaint.updated_at = datetime.now(timezone.utc)

        await log_activity(db, actor=actor, message=f"Started investigation of complaint #{complaint_id}")
        await db.commit()
        logger.info("Complaint %s under investigation", complaint_id)

        complaint = await load_complaint(db, complaint_id)
        return {"message": "Complaint is under investigation", "data": serialize_complaint(complaint)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Investigation refused for complaint %s: %s", complaint_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while starting investigation of complaint %s", complaint_id)
        raise translate_db_error(e, "starting investigation") from e


# ---------------------------------------------------
# UNDER_INVESTIGATION -> CLOSED
# ---------------------------------------------------
async def complete_repair(db: AsyncSession, complaint_id: int, details: RepairDetailsIn, actor: str = None) -> dict:
    try:
        complaint = await load_complaint(db, complaint_id, for_update=True)
        ensure_transition(complaint_id, complaint.status, ComplaintStatus.CLOSED)
        lines = validate_repair_details(details)

        if lines:
            await consume_spare_parts(db, complaint_id, lines)

        now = datetime.now(timezone.utc)
        complaint.status = ComplaintStatus.CLOSED
        complaint.repair_type = details.repair_type
        complaint.repair_notes = details.notes
        complaint.closed_at = now
        complaint.updated_at = now

        used = ", ".join(f"part {pid} x{qty}" for pid, qty in lines.items()) or "no spare parts"
        await log_activity(
            db,
            actor=actor,
            message=f"Closed complaint #{complaint_id} after {details.repair_type.value} repair ({used})",
        )
        await db.commit()
        logger.info("Complaint %s closed, %s", complaint_id, used)

        complaint = await load_complaint(db, complaint_id)
        return {"message": "Repair completed successfully", "data": serialize_complaint(complaint)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Repair refused for complaint %s: %s", complaint_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while completing repair of complaint %s", complaint_id)
        raise translate_db_error(e, "completing repair") from e
