from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class EngineerBase(BaseModel):
    name: str
    specialization: str


class EngineerCreate(EngineerBase):
    pass


class EngineerUpdate(BaseModel):
    name: Optional[str] = None
    specialization: Optional[str] = None


class EngineerOut(EngineerBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EngineerResponse(BaseModel):
    message: str
    data: Optional[EngineerOut] = None


class EngineerListResponse(BaseModel):
    message: str
    data: List[EngineerOut]


class EngineerDeleteResponse(BaseModel):
    message: str
    unassigned_complaints: int
