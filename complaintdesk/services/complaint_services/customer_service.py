import logging
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from complaintdesk.core.exceptions import ComplaintDeskError, NotFound, ValidationError, translate_db_error
from complaintdesk.models.complaint_models import Complaint
from complaintdesk.models.customer_models import Customer
from complaintdesk.schemas.customer_schemas import (
    CustomerCreate,
    CustomerListResponse,
    CustomerOut,
    CustomerResponse,
    CustomerUpdate,
)
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)


async def _get_customer(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise NotFound(f"Customer {customer_id} not found")
    return customer


async def find_or_create_customer(db: AsyncSession, data: CustomerCreate) -> Customer:
    """
    Look a customer up by phone, creating it when unknown. Flushes but does not
    commit; used by complaint intake inside its own transaction.
    """
    result = await db.execute(select(Customer).where(Customer.phone == data.phone).order_by(Customer.id))
    customer = result.scalars().first()
    if customer:
        return customer

    customer = Customer(**data.model_dump())
    db.add(customer)
    await db.flush()
    return customer


# CREATE
async def create_customer(db: AsyncSession, data: CustomerCreate, actor: str = None) -> CustomerResponse:
    try:
        customer = Customer(**data.model_dump())
        db.add(customer)
        await db.flush()
        await log_activity(db, actor=actor, message=f"Created customer '{customer.name}' (ID: {customer.id})")
        await db.commit()
        logger.info("Customer %s created", customer.id)
        await db.refresh(customer)
        return CustomerResponse(message="Customer created successfully", data=CustomerOut.model_validate(customer))

    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while creating customer")
        raise translate_db_error(e, "creating customer") from e


# GET SINGLE CUSTOMER
async def get_customer(db: AsyncSession, customer_id: int) -> CustomerResponse:
    customer = await _get_customer(db, customer_id)
    return CustomerResponse(message="Customer retrieved successfully", data=CustomerOut.model_validate(customer))


# GET ALL WITH SEARCH AND PAGINATION
async def get_all_customers(
    db: AsyncSession,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> CustomerListResponse:
    filters = []
    if search:
        like = f"%{search.lower()}%"
        filters.append(
            or_(
                func.lower(Customer.name).like(like),
                func.lower(Customer.branch).like(like),
                Customer.phone.like(f"%{search}%"),
            )
        )

    total = (await db.execute(select(func.count(Customer.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Customer)
        .where(*filters)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .limit(limit)
        .offset(offset)
    )
    customers = result.scalars().all()
    return CustomerListResponse(
        message="Customers fetched successfully",
        total=total,
        data=[CustomerOut.model_validate(c) for c in customers],
    )


# UPDATE
async def update_customer(db: AsyncSession, customer_id: int, data: CustomerUpdate, actor: str = None) -> CustomerResponse:
    try:
        customer = await _get_customer(db, customer_id)

        changes = []
        for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            value = value.strip()
            if not value:
                raise ValidationError(f"{key} must not be blank")
            old_val = getattr(customer, key)
            if old_val != value:
                changes.append(f"{key}: {old_val} → {value}")
                setattr(customer, key, value)

        if changes:
            await log_activity(
                db,
                actor=actor,
                message=f"Updated customer ID {customer.id} — {', '.join(changes)}",
            )
        await db.commit()
        logger.info("Customer %s updated", customer_id)
        await db.refresh(customer)
        return CustomerResponse(message="Customer updated successfully", data=CustomerOut.model_validate(customer))

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Customer update refused for %s: %s", customer_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while updating customer %s", customer_id)
        raise translate_db_error(e, "updating customer") from e


# DELETE
async def delete_customer(db: AsyncSession, customer_id: int, actor: str = None) -> CustomerResponse:
    try:
        customer = await _get_customer(db, customer_id)

        open_refs = await db.execute(select(func.count(Complaint.id)).where(Complaint.customer_id == customer_id))
        if open_refs.scalar():
            raise ValidationError("Customer has complaints and cannot be deleted")

        out = CustomerOut.model_validate(customer)
        await db.delete(customer)
        await log_activity(db, actor=actor, message=f"Deleted customer '{out.name}' (ID: {customer_id})")
        await db.commit()
        logger.info("Customer %s deleted", customer_id)
        return CustomerResponse(message="Customer deleted successfully", data=out)

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Customer delete refused for %s: %s", customer_id, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while deleting customer %s", customer_id)
        raise translate_db_error(e, "deleting customer") from e
