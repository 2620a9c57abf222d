from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from complaintdesk.core.db import get_db
from complaintdesk.schemas.settings_schemas import SettingResponse, SettingsMapResponse, SettingUpdate
from complaintdesk.services.admin_services import settings_service
from complaintdesk.utils.get_actor import get_actor

router = APIRouter(prefix="/settings", tags=["System Settings"])


@router.get("", response_model=SettingsMapResponse)
async def list_settings(db: AsyncSession = Depends(get_db)):
    return await settings_service.get_all_settings(db)


@router.get("/{key}", response_model=SettingResponse)
async def get_setting_route(key: str, db: AsyncSession = Depends(get_db)):
    return await settings_service.get_setting(db, key)


@router.put("/{key}", response_model=SettingResponse)
async def update_setting_route(
    key: str,
    data: SettingUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await settings_service.update_setting(db, key, data.value, actor)
