# complaintdesk/services/inventory_services/spare_part_service.py
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.attributes import set_committed_value

from complaintdesk.core.exceptions import (
    ComplaintDeskError,
    InsufficientStock,
    NotFound,
    ValidationError,
    translate_db_error,
)
from complaintdesk.models.complaint_models import ComplaintSparePart
from complaintdesk.models.inventory_models import SparePart
from complaintdesk.schemas.inventory_schemas import (
    SparePartCreate,
    SparePartOut,
    SparePartUpdate,
    SparePartUsageOut,
)
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)


async def _get_part(db: AsyncSession, spare_part_id: int) -> SparePart:
    part = await db.get(SparePart, spare_part_id)
    if not part:
        raise NotFound(f"Spare part {spare_part_id} not found")
    return part


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: Optional[int] = None):
    stmt = select(SparePart.id).where(SparePart.code == code)
    if exclude_id is not None:
        stmt = stmt.where(SparePart.id != exclude_id)
    existing = await db.execute(stmt)
    if existing.scalars().first():
        raise ValidationError(f"Spare part code '{code}' already exists")


# ---------------------------------------------------
# STOCK MOVEMENTS
# ---------------------------------------------------
async def _guarded_decrement(db: AsyncSession, part: SparePart, quantity: int, now: datetime):
    """
    Decrement stock only if it stays non-negative. A concurrent consumer that got
    there first leaves zero matched rows, which surfaces as InsufficientStock.
    """
    result = await db.execute(
        update(SparePart)
        .where(SparePart.id == part.id, SparePart.quantity >= quantity)
        .values(quantity=SparePart.quantity - quantity, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStock(
            f"Insufficient stock for spare part '{part.code}': requested {quantity}",
            spare_part_id=part.id,
            requested=quantity,
            available=part.quantity,
        )
    set_committed_value(part, "quantity", part.quantity - quantity)
    set_committed_value(part, "updated_at", now)


async def consume_spare_parts(
    db: AsyncSession,
    complaint_id: int,
    lines: Dict[int, int],
) -> List[ComplaintSparePart]:
    """
    Take `lines` ({spare_part_id: quantity_used}) out of stock for a repair and
    stage one consumption row per part. Does not commit: the caller owns the
    transaction and rolls everything back if any part fails.
    """
    if not lines:
        raise ValidationError("At least one spare part is required")

    part_ids = sorted(lines)
    # Lock in id order so concurrent repairs can't deadlock each other
    result = await db.execute(
        select(SparePart)
        .where(SparePart.id.in_(part_ids))
        .order_by(SparePart.id)
        .with_for_update()
    )
    parts = {part.id: part for part in result.scalars().all()}

    missing = [pid for pid in part_ids if pid not in parts]
    if missing:
        raise ValidationError(f"Unknown spare part id(s): {', '.join(str(pid) for pid in missing)}")

    now = datetime.now(timezone.utc)
    usages = []
    for pid in part_ids:
        part = parts[pid]
        quantity = lines[pid]
        if quantity > part.quantity:
            raise InsufficientStock(
                f"Insufficient stock for spare part '{part.code}': "
                f"requested {quantity}, available {part.quantity}",
                spare_part_id=part.id,
                requested=quantity,
                available=part.quantity,
            )
        await _guarded_decrement(db, part, quantity, now)

        usage = ComplaintSparePart(complaint_id=complaint_id, spare_part_id=pid, quantity_used=quantity)
        db.add(usage)
        usages.append(usage)

    return usages


async def adjust_quantity(db: AsyncSession, spare_part_id: int, delta: int, reason: Optional[str] = None, actor: str = None):
    """
    Manual stock correction. Same contract as repair consumption: the quantity never
    goes below zero and the change plus its activity row commit together.
    """
    try:
        if delta == 0:
            raise ValidationError("Adjustment must be non-zero")

        part = await _get_part(db, spare_part_id)
        before = part.quantity
        if before + delta < 0:
            raise InsufficientStock(
                f"Insufficient stock for spare part '{part.code}': "
                f"cannot remove {-delta}, available {before}",
                spare_part_id=part.id,
                requested=-delta,
                available=before,
            )

        now = datetime.now(timezone.utc)
        if delta < 0:
            await _guarded_decrement(db, part, -delta, now)
        else:
            await db.execute(
                update(SparePart)
                .where(SparePart.id == part.id)
                .values(quantity=SparePart.quantity + delta, updated_at=now)
                .execution_options(synchronize_session=False)
            )

        message = f"Adjusted stock of spare part '{part.code}' (ID: {part.id}) by {delta:+d}"
        if reason:
            message += f" ({reason})"
        await log_activity(db, actor=actor, message=message)

        await db.commit()
        await db.refresh(part)
        logger.info("Spare part %s adjusted %+d: %d -> %d", part.id, delta, before, part.quantity)
        return {"message": "Spare part quantity adjusted successfully", "data": SparePartOut.model_validate(part)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Stock adjustment refused for spare part %s: %s", spare_part_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while adjusting spare part %s", spare_part_id)
        raise translate_db_error(e, "adjusting spare part quantity") from e


# ---------------------------------------------------
# CREATE SPARE PART
# ---------------------------------------------------
async def create_spare_part(db: AsyncSession, data: SparePartCreate, actor: str = None):
    try:
        await _ensure_code_free(db, data.code)

        part = SparePart(**data.model_dump())
        db.add(part)
        await db.flush()

        await log_activity(
            db,
            actor=actor,
            message=f"Created spare part '{part.name}' ({part.code}, ID: {part.id}) with quantity {part.quantity}",
        )
        await db.commit()
        await db.refresh(part)
        logger.info("Spare part %s created", part.id)
        return {"message": "Spare part created successfully", "data": SparePartOut.model_validate(part)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Spare part creation refused: %s", e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while creating spare part")
        raise translate_db_error(e, "creating spare part") from e


# ---------------------------------------------------
# GET ALL / GET ONE
# ---------------------------------------------------
async def get_all_spare_parts(db: AsyncSession, search: str = None, warehouse: str = None) -> dict:
    stmt = select(SparePart)
    if search:
        like = f"%{search.lower()}%"
        stmt = stmt.where(or_(func.lower(SparePart.name).like(like), func.lower(SparePart.code).like(like)))
    if warehouse:
        stmt = stmt.where(SparePart.warehouse == warehouse)
    result = await db.execute(stmt.order_by(SparePart.created_at.desc(), SparePart.id.desc()))
    parts = result.scalars().all()
    return {"message": "Spare parts fetched successfully", "data": [SparePartOut.model_validate(p) for p in parts]}


async def get_spare_part(db: AsyncSession, spare_part_id: int) -> dict:
    part = await _get_part(db, spare_part_id)
    return {"message": "Spare part fetched successfully", "data": SparePartOut.model_validate(part)}


async def get_spare_part_usage(db: AsyncSession, spare_part_id: int) -> dict:
    await _get_part(db, spare_part_id)
    result = await db.execute(
        select(ComplaintSparePart)
        .where(ComplaintSparePart.spare_part_id == spare_part_id)
        .order_by(ComplaintSparePart.id.desc())
    )
    usages = result.scalars().all()
    return {
        "message": "Spare part usage fetched successfully",
        "data": [SparePartUsageOut.model_validate(u) for u in usages],
    }


# ---------------------------------------------------
# UPDATE SPARE PART
# ---------------------------------------------------
async def update_spare_part(db: AsyncSession, spare_part_id: int, data: SparePartUpdate, actor: str = None):
    try:
        part = await _get_part(db, spare_part_id)

        changes = []
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "code" in updates and updates["code"] != part.code:
            await _ensure_code_free(db, updates["code"], exclude_id=part.id)

        for key, value in updates.items():
            old_val = getattr(part, key)
            if old_val != value:
                changes.append(f"{key}: {old_val} → {value}")
                setattr(part, key, value)

        if changes:
            await log_activity(
                db,
                actor=actor,
                message=f"Updated spare part ID {part.id} — {', '.join(changes)}",
            )
        await db.commit()
        logger.info("Spare part %s updated", spare_part_id)
        await db.refresh(part)
        return {"message": "Spare part updated successfully", "data": SparePartOut.model_validate(part)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Spare part update refused for %s: %s", spare_part_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while updating spare part %s", spare_part_id)
        raise translate_db_error(e, "updating spare part") from e


# ---------------------------------------------------
# DELETE SPARE PART
# ---------------------------------------------------
async def delete_spare_part(db: AsyncSession, spare_part_id: int, actor: str = None):
    try:
        part = await _get_part(db, spare_part_id)

        used = await db.execute(
            select(func.count(ComplaintSparePart.id)).where(ComplaintSparePart.spare_part_id == spare_part_id)
        )
        if used.scalar():
            raise ValidationError(f"Spare part '{part.code}' was used in repairs and cannot be deleted")

        name, code = part.name, part.code
        await db.delete(part)
        await log_activity(db, actor=actor, message=f"Deleted spare part '{name}' ({code}, ID: {spare_part_id})")
        await db.commit()
        logger.info("Spare part %s deleted", spare_part_id)
        return {"message": "Spare part deleted successfully"}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Spare part delete refused for %s: %s", spare_part_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while deleting spare part %s", spare_part_id)
        raise translate_db_error(e, "deleting spare part") from e
