# complaintdesk/services/complaint_services/engineer_service.py
import logging

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from complaintdesk.core.exceptions import ComplaintDeskError, NotFound, translate_db_error
from complaintdesk.models.complaint_models import Complaint
from complaintdesk.models.engineer_models import Engineer
from complaintdesk.schemas.engineer_schemas import EngineerCreate, EngineerOut, EngineerUpdate
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)


async def get_engineer_or_none(db: AsyncSession, engineer_id: int):
    return await db.get(Engineer, engineer_id)


async def _get_engineer(db: AsyncSession, engineer_id: int) -> Engineer:
    engineer = await db.get(Engineer, engineer_id)
    if not engineer:
        raise NotFound(f"Engineer {engineer_id} not found")
    return engineer


# ---------------------------
# CREATE ENGINEER
# ---------------------------
async def create_engineer(db: AsyncSession, data: EngineerCreate, actor: str = None):
    try:
        engineer = Engineer(**data.model_dump())
        db.add(engineer)
        await db.flush()

        await log_activity(
            db,
            actor=actor,
            message=f"Added engineer '{engineer.name}' ({engineer.specialization}, ID: {engineer.id})",
        )
        await db.commit()
        logger.info("Engineer %s created", engineer.id)
        await db.refresh(engineer)
        return {"message": "Engineer created successfully", "data": EngineerOut.model_validate(engineer)}

    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while creating engineer")
        raise translate_db_error(e, "creating engineer") from e


# ---------------------------
# LIST / GET
# ---------------------------
async def get_all_engineers(db: AsyncSession) -> dict:
    result = await db.execute(select(Engineer).order_by(Engineer.created_at.desc(), Engineer.id.desc()))
    engineers = result.scalars().all()
    return {"message": "Engineers fetched successfully", "data": [EngineerOut.model_validate(e) for e in engineers]}


async def get_engineer(db: AsyncSession, engineer_id: int) -> dict:
    engineer = await _get_engineer(db, engineer_id)
    return {"message": "Engineer fetched successfully", "data": EngineerOut.model_validate(engineer)}


# ---------------------------
# UPDATE ENGINEER
# ---------------------------
async def update_engineer(db: AsyncSession, engineer_id: int, data: EngineerUpdate, actor: str = None):
    try:
        engineer = await _get_engineer(db, engineer_id)

        changes = []
        for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            old_val = getattr(engineer, key)
            if old_val != value:
                changes.append(f"{key}: {old_val} → {value}")
                setattr(engineer, key, value)

        if changes:
            await log_activity(
                db,
                actor=actor,
                message=f"Updated engineer ID {engineer.id} — {', '.join(changes)}",
            )
        await db.commit()
        logger.info("Engineer %s updated", engineer_id)
        await db.refresh(engineer)
        return {"message": "Engineer updated successfully", "data": EngineerOut.model_validate(engineer)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Engineer update refused for %s: %s", engineer_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while updating engineer %s", engineer_id)
        raise translate_db_error(e, "updating engineer") from e


# ---------------------------
# DELETE ENGINEER
# ---------------------------
async def delete_engineer(db: AsyncSession, engineer_id: int, actor: str = None) -> dict:
    """
    Unassign the engineer from every complaint, then delete the engineer.
    Both statements commit together, so no complaint can point at a missing engineer.
    """
    try:
        engineer = await _get_engineer(db, engineer_id)
        name = engineer.name

        result = await db.execute(
            update(Complaint)
            .where(Complaint.engineer_id == engineer_id)
            .values(engineer_id=None)
            .execution_options(synchronize_session="fetch")
        )
        unassigned = result.rowcount or 0

        await db.execute(
            delete(Engineer)
            .where(Engineer.id == engineer_id)
            .execution_options(synchronize_session="fetch")
        )

        await log_activity(
            db,
            actor=actor,
            message=f"Deleted engineer '{name}' (ID: {engineer_id}), unassigned from {unassigned} complaint(s)",
        )
        await db.commit()
        logger.info("Engineer %s deleted, %d complaint(s) unassigned", engineer_id, unassigned)
        return {"message": "Engineer deleted successfully", "unassigned_complaints": unassigned}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Engineer delete refused for %s: %s", engineer_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while deleting engineer %s", engineer_id)
        raise translate_db_error(e, "deleting engineer") from e
