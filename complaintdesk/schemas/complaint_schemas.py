# complaintdesk/schemas/complaint_schemas.py
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from complaintdesk.core.config import DEFAULT_UNITS_PER_REPAIR_LINE
from complaintdesk.models.complaint_models import ComplaintStatus, ComplaintType, RepairType
from complaintdesk.schemas.customer_schemas import CustomerCreate, CustomerOut
from complaintdesk.schemas.product_schemas import ProductCreate, ProductOut
from complaintdesk.schemas.engineer_schemas import EngineerOut


# --------------------------
# Intake
# --------------------------
class ComplaintCreate(BaseModel):
    customer: CustomerCreate
    product: ProductCreate
    description: str
    type: ComplaintType
    engineer_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("engineer_id", "engineerId"))

    @field_validator("description")
    def description_not_blank(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Description must not be blank")
        return value


class EngineerAssignment(BaseModel):
    engineer_id: Optional[int] = None


# --------------------------
# Repair
# --------------------------
class RepairSparePartLine(BaseModel):
    """
    One consumed spare part. `id` is accepted for `spare_part_id`; any other
    field a client echoes back (e.g. the part's stock `quantity`) is ignored.
    """
    spare_part_id: int = Field(validation_alias=AliasChoices("spare_part_id", "id"))
    quantity_used: int = Field(
        default=DEFAULT_UNITS_PER_REPAIR_LINE,
        ge=1,
        validation_alias=AliasChoices("quantity_used", "quantityUsed"),
    )


class RepairDetailsIn(BaseModel):
    repair_type: RepairType = Field(validation_alias=AliasChoices("repair_type", "repairType"))
    spare_parts: Optional[List[RepairSparePartLine]] = Field(
        default=None, validation_alias=AliasChoices("spare_parts", "spareParts")
    )
    notes: str = ""


class RepairPartOut(BaseModel):
    spare_part_id: int
    name: Optional[str] = None
    code: Optional[str] = None
    quantity_used: int


class RepairDetailsOut(BaseModel):
    repair_type: RepairType
    notes: str = ""
    spare_parts: List[RepairPartOut] = []


# --------------------------
# Views
# --------------------------
class ComplaintOut(BaseModel):
    id: int
    customer: CustomerOut
    product: ProductOut
    engineer: Optional[EngineerOut] = None
    description: str
    type: ComplaintType
    status: ComplaintStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    repair_details: Optional[RepairDetailsOut] = None


class ComplaintResponse(BaseModel):
    message: str
    data: Optional[ComplaintOut] = None


class ComplaintListResponse(BaseModel):
    message: str
    total: int
    data: List[ComplaintOut]


class ComplaintTypeOut(BaseModel):
    key: ComplaintType
    label: str
