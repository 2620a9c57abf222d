from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class ActivityOut(BaseModel):
    id: int
    actor: str
    message: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityListResponse(BaseModel):
    total: int
    page: int
    page_size: int
    data: List[ActivityOut]
