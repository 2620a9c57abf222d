import pytest
from sqlalchemy import func, select

from complaintdesk.core.exceptions import InsufficientStock, InvalidStateTransition, NotFound, ValidationError
from complaintdesk.models.complaint_models import ComplaintSparePart, ComplaintStatus, RepairType
from complaintdesk.models.inventory_models import SparePart
from complaintdesk.schemas.complaint_schemas import RepairDetailsIn, RepairSparePartLine
from complaintdesk.schemas.inventory_schemas import SparePartCreate
from complaintdesk.services.complaint_services import complaint_service, repair_service
from complaintdesk.services.complaint_services.repair_service import can_transition, merge_spare_part_lines
from complaintdesk.services.inventory_services.spare_part_service import create_spare_part

pytestmark = pytest.mark.anyio


async def _part(db, code, quantity):
    result = await create_spare_part(db, SparePartCreate(name=f"Part {code}", code=code, warehouse="Main", quantity=quantity))
    return result["data"].id


async def _stock(db, part_id):
    return (await db.execute(select(SparePart.quantity).where(SparePart.id == part_id))).scalar_one()


async def _usage_count(db, complaint_id):
    result = await db.execute(
        select(func.count(ComplaintSparePart.id)).where(ComplaintSparePart.complaint_id == complaint_id)
    )
    return result.scalar()


async def _status(db, complaint_id):
    return (await complaint_service.load_complaint(db, complaint_id)).status


async def _investigated_complaint(db, complaint_in, **kwargs):
    created = await complaint_service.create_complaint(db, complaint_in(**kwargs))
    complaint_id = created["data"].id
    await repair_service.begin_investigation(db, complaint_id)
    return complaint_id


def _with_parts(*lines):
    return RepairDetailsIn(
        repair_type=RepairType.WITH_SPARE_PARTS,
        spare_parts=[RepairSparePartLine(**line) for line in lines],
        notes="Replaced",
    )


# ---------------------------------------------------
# Transition table
# ---------------------------------------------------
@pytest.mark.parametrize(
    "current, target, allowed",
    [
        (ComplaintStatus.OPEN, ComplaintStatus.UNDER_INVESTIGATION, True),
        (ComplaintStatus.UNDER_INVESTIGATION, ComplaintStatus.CLOSED, True),
        (ComplaintStatus.OPEN, ComplaintStatus.CLOSED, False),
        (ComplaintStatus.UNDER_INVESTIGATION, ComplaintStatus.OPEN, False),
        (ComplaintStatus.CLOSED, ComplaintStatus.OPEN, False),
        (ComplaintStatus.CLOSED, ComplaintStatus.UNDER_INVESTIGATION, False),
        (ComplaintStatus.OPEN, ComplaintStatus.OPEN, False),
    ],
)
async def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


async def test_merge_spare_part_lines_sums_duplicates():
    lines = [
        RepairSparePartLine(spare_part_id=3),
        RepairSparePartLine(spare_part_id=1, quantity_used=2),
        RepairSparePartLine(spare_part_id=3, quantity_used=4),
    ]
    assert merge_spare_part_lines(lines) == {3: 5, 1: 2}
    assert merge_spare_part_lines(None) == {}


async def test_repair_line_ignores_echoed_stock_quantity():
    details = RepairDetailsIn.model_validate(
        {
            "repairType": "with_spare_parts",
            "spareParts": [{"id": 7, "name": "Drain pump", "quantity": 5}],
        }
    )
    assert details.spare_parts[0].spare_part_id == 7
    assert details.spare_parts[0].quantity_used == 1


# ---------------------------------------------------
# Lifecycle
# ---------------------------------------------------
async def test_new_complaint_starts_open(db, complaint_in):
    created = await complaint_service.create_complaint(db, complaint_in())
    assert created["data"].status == ComplaintStatus.OPEN
    assert created["data"].repair_details is None


async def test_full_lifecycle_consumes_one_unit(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    complaint_id = await _investigated_complaint(db, complaint_in)
    assert await _status(db, complaint_id) == ComplaintStatus.UNDER_INVESTIGATION

    result = await repair_service.complete_repair(db, complaint_id, _with_parts({"spare_part_id": part_id}))

    complaint = result["data"]
    assert complaint.status == ComplaintStatus.CLOSED
    assert complaint.closed_at is not None
    assert complaint.repair_details.repair_type == RepairType.WITH_SPARE_PARTS
    assert complaint.repair_details.notes == "Replaced"
    assert [(p.spare_part_id, p.code, p.quantity_used) for p in complaint.repair_details.spare_parts] == [
        (part_id, "P1", 1)
    ]
    assert await _stock(db, part_id) == 4
    assert await _usage_count(db, complaint_id) == 1


async def test_repair_requires_investigation_first(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    created = await complaint_service.create_complaint(db, complaint_in())
    complaint_id = created["data"].id

    with pytest.raises(InvalidStateTransition):
        await repair_service.complete_repair(db, complaint_id, _with_parts({"spare_part_id": part_id}))

    assert await _status(db, complaint_id) == ComplaintStatus.OPEN
    assert await _stock(db, part_id) == 5
    assert await _usage_count(db, complaint_id) == 0


async def test_investigation_cannot_start_twice(db, complaint_in):
    complaint_id = await _investigated_complaint(db, complaint_in)

    with pytest.raises(InvalidStateTransition):
        await repair_service.begin_investigation(db, complaint_id)

    assert await _status(db, complaint_id) == ComplaintStatus.UNDER_INVESTIGATION


async def test_closed_complaint_is_terminal(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    complaint_id = await _investigated_complaint(db, complaint_in)
    await repair_service.complete_repair(db, complaint_id, _with_parts({"spare_part_id": part_id}))

    with pytest.raises(InvalidStateTransition):
        await repair_service.begin_investigation(db, complaint_id)
    with pytest.raises(InvalidStateTransition):
        await repair_service.complete_repair(db, complaint_id, _with_parts({"spare_part_id": part_id}))

    assert await _status(db, complaint_id) == ComplaintStatus.CLOSED
    assert await _stock(db, part_id) == 4
    assert await _usage_count(db, complaint_id) == 1


async def test_unknown_complaint(db):
    with pytest.raises(NotFound):
        await repair_service.begin_investigation(db, 999)
    with pytest.raises(NotFound):
        await repair_service.complete_repair(
            db, 999, RepairDetailsIn(repair_type=RepairType.WITHOUT_SPARE_PARTS)
        )


# ---------------------------------------------------
# Repair details
# ---------------------------------------------------
async def test_repair_without_spare_parts_leaves_stock(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    complaint_id = await _investigated_complaint(db, complaint_in)

    result = await repair_service.complete_repair(
        db, complaint_id, RepairDetailsIn(repair_type=RepairType.WITHOUT_SPARE_PARTS, notes="Reset board")
    )

    assert result["data"].status == ComplaintStatus.CLOSED
    assert result["data"].repair_details.spare_parts == []
    assert await _stock(db, part_id) == 5
    assert await _usage_count(db, complaint_id) == 0


async def test_repair_without_spare_parts_rejects_lines(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    complaint_id = await _investigated_complaint(db, complaint_in)
    details = RepairDetailsIn(
        repair_type=RepairType.WITHOUT_SPARE_PARTS,
        spare_parts=[RepairSparePartLine(spare_part_id=part_id)],
    )

    with pytest.raises(ValidationError):
        await repair_service.complete_repair(db, complaint_id, details)

    assert await _status(db, complaint_id) == ComplaintStatus.UNDER_INVESTIGATION
    assert await _stock(db, part_id) == 5


@pytest.mark.parametrize("spare_parts", [None, []])
async def test_repair_with_spare_parts_requires_lines(db, complaint_in, spare_parts):
    complaint_id = await _investigated_complaint(db, complaint_in)
    details = RepairDetailsIn(repair_type=RepairType.WITH_SPARE_PARTS, spare_parts=spare_parts)

    with pytest.raises(ValidationError):
        await repair_service.complete_repair(db, complaint_id, details)

    assert await _status(db, complaint_id) == ComplaintStatus.UNDER_INVESTIGATION


async def test_unknown_spare_part_aborts_repair(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    complaint_id = await _investigated_complaint(db, complaint_in)

    with pytest.raises(ValidationError):
        await repair_service.complete_repair(
            db, complaint_id, _with_parts({"spare_part_id": part_id}, {"spare_part_id": 424242})
        )

    assert await _status(db, complaint_id) == ComplaintStatus.UNDER_INVESTIGATION
    assert await _stock(db, part_id) == 5
    assert await _usage_count(db, complaint_id) == 0


async def test_insufficient_stock_rolls_back_every_part(db, complaint_in):
    plenty = await _part(db, "P1", 5)
    empty = await _part(db, "P2", 0)
    complaint_id = await _investigated_complaint(db, complaint_in)

    with pytest.raises(InsufficientStock) as exc_info:
        await repair_service.complete_repair(
            db, complaint_id, _with_parts({"spare_part_id": plenty}, {"spare_part_id": empty})
        )

    assert exc_info.value.spare_part_id == empty
    assert exc_info.value.requested == 1
    assert exc_info.value.available == 0
    assert await _stock(db, plenty) == 5
    assert await _stock(db, empty) == 0
    assert await _status(db, complaint_id) == ComplaintStatus.UNDER_INVESTIGATION
    assert await _usage_count(db, complaint_id) == 0


async def test_duplicate_lines_are_merged(db, complaint_in):
    part_id = await _part(db, "P1", 5)
    complaint_id = await _investigated_complaint(db, complaint_in)

    result = await repair_service.complete_repair(
        db,
        complaint_id,
        _with_parts({"spare_part_id": part_id, "quantity_used": 2}, {"spare_part_id": part_id}),
    )

    assert [(p.spare_part_id, p.quantity_used) for p in result["data"].repair_details.spare_parts] == [(part_id, 3)]
    assert await _stock(db, part_id) == 2
    assert await _usage_count(db, complaint_id) == 1


async def test_last_unit_goes_to_one_repair_only(db, complaint_in):
    part_id = await _part(db, "P1", 1)
    first = await _investigated_complaint(db, complaint_in, serial="SN-1")
    second = await _investigated_complaint(db, complaint_in, serial="SN-2")

    await repair_service.complete_repair(db, first, _with_parts({"spare_part_id": part_id}))
    with pytest.raises(InsufficientStock):
        await repair_service.complete_repair(db, second, _with_parts({"spare_part_id": part_id}))

    assert await _stock(db, part_id) == 0
    assert await _status(db, first) == ComplaintStatus.CLOSED
    assert await _status(db, second) == ComplaintStatus.UNDER_INVESTIGATION
