from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.schemas.customer_schemas import (
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdate,
)
from complaintdesk.services.complaint_services import customer_service
from complaintdesk.utils.get_actor import get_actor

router = APIRouter(prefix="/customers", tags=["Customers"])


# CREATE
@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer_route(
    customer: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await customer_service.create_customer(db, customer, actor)


# GET SINGLE
@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer_route(customer_id: int, db: AsyncSession = Depends(get_db)):
    return await customer_service.get_customer(db, customer_id)


# GET ALL WITH SEARCH, PAGINATION
@router.get("", response_model=CustomerListResponse)
async def list_customers_route(
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = Query(None, description="Search name, branch or phone"),
    limit: int = Query(50, ge=1, le=100, description="Limit number of results"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
):
    return await customer_service.get_all_customers(db, search, limit, offset)


# UPDATE
@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer_route(
    customer_id: int,
    customer: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await customer_service.update_customer(db, customer_id, customer, actor)


# DELETE
@router.delete("/{customer_id}", response_model=CustomerResponse)
async def delete_customer_route(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await customer_service.delete_customer(db, customer_id, actor)
