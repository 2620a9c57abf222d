# complaintdesk/utils/get_actor.py
from typing import Optional
from fastapi import Header


async def get_actor(x_actor: Optional[str] = Header(default=None, alias="X-Actor")) -> Optional[str]:
    """Free-text name of whoever performs the request, used for the activity log only."""
    if x_actor is None:
        return None
    x_actor = x_actor.strip()
    return x_actor[:100] or None
