# complaintdesk/services/complaint_services/complaint_service.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from complaintdesk.core.exceptions import (
    ComplaintDeskError,
    InvalidStateTransition,
    NotFound,
    ValidationError,
    translate_db_error,
)
from complaintdesk.models.complaint_models import (
    Complaint,
    ComplaintSparePart,
    ComplaintStatus,
    ComplaintType,
)
from complaintdesk.models.customer_models import Customer
from complaintdesk.models.product_models import Product
from complaintdesk.schemas.complaint_schemas import (
    ComplaintCreate,
    ComplaintOut,
    ComplaintTypeOut,
    RepairDetailsOut,
    RepairPartOut,
)
from complaintdesk.schemas.customer_schemas import CustomerOut
from complaintdesk.schemas.engineer_schemas import EngineerOut
from complaintdesk.schemas.product_schemas import ProductOut
from complaintdesk.services.complaint_services.customer_service import find_or_create_customer
from complaintdesk.services.complaint_services.engineer_service import get_engineer_or_none
from complaintdesk.services.complaint_services.product_service import find_or_create_product
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)

COMPLAINT_TYPE_LABELS = {
    ComplaintType.WARRANTY: "Warranty",
    ComplaintType.COMPREHENSIVE_CONTRACT: "Comprehensive contract",
    ComplaintType.NON_COMPREHENSIVE_CONTRACT: "Non-comprehensive contract",
    ComplaintType.OUT_OF_WARRANTY: "Out of warranty",
}


# ---------------------------------------------------
# LOADING / SERIALIZING
# ---------------------------------------------------
def _complaint_query():
    return select(Complaint).options(
        selectinload(Complaint.customer),
        selectinload(Complaint.product),
        selectinload(Complaint.engineer),
        selectinload(Complaint.spare_parts_used).joinedload(ComplaintSparePart.spare_part),
    )


async def load_complaint(db: AsyncSession, complaint_id: int, for_update: bool = False) -> Complaint:
    """Fetch a complaint with everything its view needs. Raises NotFound."""
    stmt = _complaint_query().where(Complaint.id == complaint_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update(of=Complaint)
    result = await db.execute(stmt)
    complaint = result.unique().scalar_one_or_none()
    if not complaint:
        raise NotFound(f"Complaint {complaint_id} not found")
    return complaint


def serialize_complaint(complaint: Complaint) -> ComplaintOut:
    repair_details = None
    if complaint.repair_type is not None:
        repair_details = RepairDetailsOut(
            repair_type=complaint.repair_type,
            notes=complaint.repair_notes or "",
            spare_parts=[
                RepairPartOut(
                    spare_part_id=usage.spare_part_id,
                    name=usage.spare_part.name if usage.spare_part else None,
                    code=usage.spare_part.code if usage.spare_part else None,
                    quantity_used=usage.quantity_used,
                )
                for usage in sorted(complaint.spare_parts_used, key=lambda u: u.spare_part_id)
            ],
        )

    return ComplaintOut(
        id=complaint.id,
        customer=CustomerOut.model_validate(complaint.customer),
        product=ProductOut.model_validate(complaint.product),
        engineer=EngineerOut.model_validate(complaint.engineer) if complaint.engineer else None,
        description=complaint.description,
        type=complaint.type,
        status=complaint.status,
        created_at=complaint.created_at,
        updated_at=complaint.updated_at,
        closed_at=complaint.closed_at,
        repair_details=repair_details,
    )


def get_complaint_types():
    return [ComplaintTypeOut(key=key, label=label) for key, label in COMPLAINT_TYPE_LABELS.items()]


# ---------------------------------------------------
# CREATE COMPLAINT
# ---------------------------------------------------
async def create_complaint(db: AsyncSession, data: ComplaintCreate, actor: str = None) -> dict:
    """
    File a complaint. The customer (by phone) and product (by serial) are looked up
    or created in the same transaction. New complaints always start OPEN.
    """
    try:
        if data.engineer_id is not None and not await get_engineer_or_none(db, data.engineer_id):
            raise ValidationError(f"Engineer {data.engineer_id} does not exist")

        customer = await find_or_create_customer(db, data.customer)
        product = await find_or_create_product(db, data.product)

        complaint = Complaint(
            customer_id=customer.id,
            product_id=product.id,
            engineer_id=data.engineer_id,
            description=data.description,
            type=data.type,
            status=ComplaintStatus.OPEN,
        )
        db.add(complaint)
        await db.flush()
        complaint_id = complaint.id

        await log_activity(
            db,
            actor=actor,
            message=(
                f"Filed {data.type.value} complaint #{complaint_id} for customer '{customer.name}' "
                f"on product serial {product.serial}"
            ),
        )
        await db.commit()
        logger.info("Complaint %s created", complaint_id)

        complaint = await load_complaint(db, complaint_id)
        return {"message": "Complaint created successfully", "data": serialize_complaint(complaint)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Complaint intake refused: %s", e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while creating complaint")
        raise translate_db_error(e, "creating complaint") from e


# ---------------------------------------------------
# GET ALL / GET ONE
# ---------------------------------------------------
async def get_all_complaints(
    db: AsyncSession,
    status: Optional[ComplaintStatus] = None,
    complaint_type: Optional[ComplaintType] = None,
    engineer_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: int = 25,
    offset: int = 0,
) -> dict:
    filters = []
    if status:
        filters.append(Complaint.status == status)
    if complaint_type:
        filters.append(Complaint.type == complaint_type)
    if engineer_id:
        filters.append(Complaint.engineer_id == engineer_id)
    if search:
        like = f"%{search.lower()}%"
        filters.append(
            or_(
                func.lower(Complaint.description).like(like),
                func.lower(Customer.name).like(like),
                Customer.phone.like(f"%{search}%"),
                func.lower(Product.serial).like(like),
            )
        )

    base = (
        select(Complaint.id)
        .join(Customer, Complaint.customer_id == Customer.id)
        .join(Product, Complaint.product_id == Product.id)
        .where(*filters)
    )
    total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0

    stmt = (
        _complaint_query()
        .where(Complaint.id.in_(base))
        .order_by(Complaint.created_at.desc(), Complaint.id.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(stmt)
    complaints = result.unique().scalars().all()
    return {
        "message": "Complaints fetched successfully",
        "total": total,
        "data": [serialize_complaint(c) for c in complaints],
    }


async def get_complaint(db: AsyncSession, complaint_id: int) -> dict:
    complaint = await load_complaint(db, complaint_id)
    return {"message": "Complaint fetched successfully", "data": serialize_complaint(complaint)}


# ---------------------------------------------------
# ASSIGN ENGINEER
# ---------------------------------------------------
async def assign_engineer(db: AsyncSession, complaint_id: int, engineer_id: Optional[int], actor: str = None) -> dict:
    try:
        complaint = await load_complaint(db, complaint_id, for_update=True)
        if complaint.status == ComplaintStatus.CLOSED:
            raise InvalidStateTransition(f"Complaint {complaint_id} is closed; its engineer cannot change")

        if engineer_id is not None and not await get_engineer_or_none(db, engineer_id):
            raise ValidationError(f"Engineer {engineer_id} does not exist")

        complaint.engineer_id = engineer_id
        complaint.updated_at = datetime.now(timezone.utc)

        who = f"engineer ID {engineer_id}" if engineer_id is not None else "no engineer"
        await log_activity(db, actor=actor, message=f"Assigned {who} to complaint #{complaint_id}")
        await db.commit()

        complaint = await load_complaint(db, complaint_id)
        return {"message": "Engineer assignment updated successfully", "data": serialize_complaint(complaint)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Engineer assignment refused for complaint %s: %s", complaint_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while assigning engineer to complaint %s", complaint_id)
        raise translate_db_error(e, "assigning engineer") from e


# ---------------------------------------------------
# DELETE COMPLAINT (hard delete)
# ---------------------------------------------------
async def delete_complaint(db: AsyncSession, complaint_id: int, actor: str = None) -> dict:
    """
    Remove the consumption rows of a complaint, then the complaint, in one
    transaction. Stock is not given back: the parts were physically used.
    """
    try:
        exists = await db.execute(select(Complaint.id).where(Complaint.id == complaint_id))
        if exists.scalar() is None:
            raise NotFound(f"Complaint {complaint_id} not found")

        await db.execute(
            delete(ComplaintSparePart)
            .where(ComplaintSparePart.complaint_id == complaint_id)
            .execution_options(synchronize_session="fetch")
        )
        await db.execute(
            delete(Complaint)
            .where(Complaint.id == complaint_id)
            .execution_options(synchronize_session="fetch")
        )

        await log_activity(db, actor=actor, message=f"Deleted complaint #{complaint_id}")
        await db.commit()
        logger.info("Complaint %s deleted", complaint_id)
        return {"message": "Complaint deleted successfully"}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Complaint delete refused for %s: %s", complaint_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while deleting complaint %s", complaint_id)
        raise translate_db_error(e, "deleting complaint") from e
