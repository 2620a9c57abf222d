import pytest
from sqlalchemy import func, select

from complaintdesk.core.exceptions import InvalidStateTransition, NotFound, ValidationError
from complaintdesk.models.activity_models import ActivityLog
from complaintdesk.models.complaint_models import ComplaintStatus, ComplaintType, RepairType
from complaintdesk.models.customer_models import Customer
from complaintdesk.models.product_models import Product
from complaintdesk.schemas.complaint_schemas import RepairDetailsIn
from complaintdesk.schemas.customer_schemas import CustomerUpdate
from complaintdesk.schemas.engineer_schemas import EngineerCreate
from complaintdesk.schemas.product_schemas import ProductCreate
from complaintdesk.services.complaint_services import (
    complaint_service,
    customer_service,
    engineer_service,
    product_service,
    repair_service,
)

pytestmark = pytest.mark.anyio


async def _count(db, column):
    return (await db.execute(select(func.count(column)))).scalar()


async def test_intake_reuses_customer_by_phone_and_product_by_serial(db, complaint_in):
    first = (await complaint_service.create_complaint(db, complaint_in()))["data"]
    second = (await complaint_service.create_complaint(db, complaint_in(description="Noisy spin cycle")))["data"]
    third = (await complaint_service.create_complaint(db, complaint_in(serial="SN-2002")))["data"]

    assert first.customer.id == second.customer.id == third.customer.id
    assert first.product.id == second.product.id
    assert third.product.id != first.product.id
    assert await _count(db, Customer.id) == 1
    assert await _count(db, Product.id) == 2


async def test_intake_with_unknown_engineer_persists_nothing(db, complaint_in):
    with pytest.raises(ValidationError):
        await complaint_service.create_complaint(db, complaint_in(engineer_id=77))

    assert await _count(db, Customer.id) == 0
    assert await _count(db, Product.id) == 0


async def test_intake_records_activity_for_actor(db, complaint_in):
    created = (await complaint_service.create_complaint(db, complaint_in(), actor="front-desk"))["data"]

    rows = await db.execute(select(ActivityLog.actor, ActivityLog.message))
    entries = rows.all()
    assert len(entries) == 1
    assert entries[0][0] == "front-desk"
    assert f"#{created.id}" in entries[0][1]


async def test_assign_and_unassign_engineer(db, complaint_in):
    engineer = (await engineer_service.create_engineer(db, EngineerCreate(name="Ravi", specialization="AC")))["data"]
    created = (await complaint_service.create_complaint(db, complaint_in()))["data"]

    assigned = await complaint_service.assign_engineer(db, created.id, engineer.id)
    assert assigned["data"].engineer.id == engineer.id

    unassigned = await complaint_service.assign_engineer(db, created.id, None)
    assert unassigned["data"].engineer is None


async def test_assign_unknown_engineer_rejected(db, complaint_in):
    created = (await complaint_service.create_complaint(db, complaint_in()))["data"]
    with pytest.raises(ValidationError):
        await complaint_service.assign_engineer(db, created.id, 55)


async def test_closed_complaint_keeps_its_engineer(db, complaint_in):
    engineer = (await engineer_service.create_engineer(db, EngineerCreate(name="Ravi", specialization="AC")))["data"]
    created = (await complaint_service.create_complaint(db, complaint_in()))["data"]
    await repair_service.begin_investigation(db, created.id)
    await repair_service.complete_repair(db, created.id, RepairDetailsIn(repair_type=RepairType.WITHOUT_SPARE_PARTS))

    with pytest.raises(InvalidStateTransition):
        await complaint_service.assign_engineer(db, created.id, engineer.id)

    assert (await complaint_service.get_complaint(db, created.id))["data"].engineer is None


async def test_list_complaints_filters(db, complaint_in):
    first = (await complaint_service.create_complaint(db, complaint_in()))["data"]
    await complaint_service.create_complaint(
        db,
        complaint_in(
            phone="9800000002",
            name="Binu Joseph",
            serial="SN-9",
            complaint_type=ComplaintType.OUT_OF_WARRANTY,
            description="Fridge not cooling",
        ),
    )
    await repair_service.begin_investigation(db, first.id)

    everything = await complaint_service.get_all_complaints(db)
    assert everything["total"] == 2

    investigating = await complaint_service.get_all_complaints(db, status=ComplaintStatus.UNDER_INVESTIGATION)
    assert [c.id for c in investigating["data"]] == [first.id]

    by_type = await complaint_service.get_all_complaints(db, complaint_type=ComplaintType.OUT_OF_WARRANTY)
    assert by_type["total"] == 1
    assert by_type["data"][0].description == "Fridge not cooling"

    by_name = await complaint_service.get_all_complaints(db, search="binu")
    assert by_name["total"] == 1
    by_serial = await complaint_service.get_all_complaints(db, search="sn-1001")
    assert [c.id for c in by_serial["data"]] == [first.id]

    page = await complaint_service.get_all_complaints(db, limit=1)
    assert page["total"] == 2
    assert len(page["data"]) == 1


async def test_complaint_types_have_labels():
    types = complaint_service.get_complaint_types()
    assert [t.key for t in types] == list(ComplaintType)
    assert all(t.label for t in types)


async def test_customer_update_rejects_blank_values(db, complaint_in):
    created = (await complaint_service.create_complaint(db, complaint_in()))["data"]

    with pytest.raises(ValidationError):
        await customer_service.update_customer(db, created.customer.id, CustomerUpdate(name="   "))

    updated = await customer_service.update_customer(db, created.customer.id, CustomerUpdate(branch="Thrissur"))
    assert updated.data.branch == "Thrissur"
    assert updated.data.name == "Asha Rao"


async def test_customer_search(db, complaint_in):
    await complaint_service.create_complaint(db, complaint_in())
    await complaint_service.create_complaint(db, complaint_in(phone="9811111111", name="Binu", branch="Kannur", serial="X"))

    result = await customer_service.get_all_customers(db, search="kannur")
    assert result.total == 1
    assert result.data[0].name == "Binu"


async def test_duplicate_product_serial_rejected(db):
    data = ProductCreate(brand="LG", type="Fridge", model="GL-1", serial="LG-1")
    await product_service.create_product(db, data)
    with pytest.raises(ValidationError):
        await product_service.create_product(db, data)


async def test_unknown_records(db):
    with pytest.raises(NotFound):
        await complaint_service.get_complaint(db, 1)
    with pytest.raises(NotFound):
        await customer_service.get_customer(db, 1)
    with pytest.raises(NotFound):
        await product_service.get_product(db, 1)
