from pydantic import BaseModel, field_validator
from typing import List, Optional


class ProductBase(BaseModel):
    brand: str
    type: str
    model: str
    serial: str

    @field_validator("serial")
    def serial_not_blank(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Serial must not be blank")
        return value


class ProductCreate(ProductBase):
    pass


class ProductOut(ProductBase):
    id: int

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    message: str
    data: Optional[ProductOut] = None


class ProductListResponse(BaseModel):
    message: str
    data: List[ProductOut]
