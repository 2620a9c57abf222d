from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime


class CustomerBase(BaseModel):
    name: str
    branch: str
    phone: str

    @field_validator("name", "branch", "phone")
    def not_blank(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Must not be blank")
        return value


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    branch: Optional[str] = None
    phone: Optional[str] = None


class CustomerOut(CustomerBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CustomerResponse(BaseModel):
    message: str
    data: Optional[CustomerOut] = None


class CustomerListResponse(BaseModel):
    message: str
    total: int
    data: List[CustomerOut]
