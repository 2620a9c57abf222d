from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


# --------------------------
# Spare Part Schemas
# --------------------------
class SparePartCreate(BaseModel):
    name: str
    code: str
    warehouse: str
    quantity: int = 0

    @field_validator("quantity")
    def non_negative_quantity(cls, value):
        if value < 0:
            raise ValueError("Must be non-negative")
        return value


class SparePartUpdate(BaseModel):
    """Quantity is changed only through adjustments and repairs."""
    name: Optional[str] = None
    code: Optional[str] = None
    warehouse: Optional[str] = None


class SparePartOut(BaseModel):
    id: int
    name: str
    code: str
    warehouse: str
    quantity: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SparePartResponse(BaseModel):
    message: str
    data: Optional[SparePartOut] = None


class SparePartListResponse(BaseModel):
    message: str
    data: List[SparePartOut]


class QuantityAdjustment(BaseModel):
    delta: int
    reason: Optional[str] = Field(default=None, max_length=500)


# --------------------------
# Usage history
# --------------------------
class SparePartUsageOut(BaseModel):
    complaint_id: int
    spare_part_id: int
    quantity_used: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SparePartUsageListResponse(BaseModel):
    message: str
    data: List[SparePartUsageOut]


# --------------------------
# Stock Alert Schema
# --------------------------
class StockAlert(BaseModel):
    spare_part_id: int
    name: str
    code: str
    warehouse: str
    quantity: int
    threshold: int
    out_of_stock: bool
