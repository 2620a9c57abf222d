# complaintdesk/utils/activity_helpers.py
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from complaintdesk.models.activity_models import ActivityLog

DEFAULT_ACTOR = "system"


async def log_activity(db: AsyncSession, actor: Optional[str] = None, message: str = ""):
    """
    Stage an activity row. Never commits: the row lands in the caller's
    transaction together with the change it describes.
    """
    db.add(ActivityLog(actor=actor or DEFAULT_ACTOR, message=message))
