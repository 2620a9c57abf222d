from fastapi import APIRouter
from typing import List

from complaintdesk.schemas.complaint_schemas import ComplaintTypeOut
from complaintdesk.services.complaint_services.complaint_service import get_complaint_types

router = APIRouter(prefix="/complaint-types", tags=["Complaints"])


@router.get("", response_model=List[ComplaintTypeOut])
async def list_complaint_types():
    return get_complaint_types()
