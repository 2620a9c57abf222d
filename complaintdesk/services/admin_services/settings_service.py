# complaintdesk/services/admin_services/settings_service.py
import logging
import math
from typing import Any, Dict, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from complaintdesk.core.exceptions import ComplaintDeskError, NotFound, ValidationError, translate_db_error
from complaintdesk.models.settings_models import SettingType, SystemSetting
from complaintdesk.schemas.settings_schemas import SettingOut
from complaintdesk.utils.activity_helpers import log_activity

logger = logging.getLogger(__name__)

SettingValue = Union[bool, int, float, str]

# key -> (type, default, description)
DEFAULT_SETTINGS = {
    "low_stock_threshold": (SettingType.NUMBER, 10, "Spare parts below this quantity are flagged as low stock"),
    "auto_assign_engineers": (SettingType.BOOLEAN, True, "Assign engineers to new complaints automatically"),
    "require_approval": (SettingType.BOOLEAN, False, "Require approval before closing complaints"),
    "enable_backup": (SettingType.BOOLEAN, True, "Enable scheduled backups"),
    "maintenance_mode": (SettingType.BOOLEAN, False, "Put the system in maintenance mode"),
    "session_timeout": (SettingType.NUMBER, 30, "Session timeout in minutes"),
    "max_file_size": (SettingType.NUMBER, 10, "Maximum attachment size in MB"),
}

# Numeric settings held to non-negative whole numbers
WHOLE_NUMBER_SETTINGS = {"low_stock_threshold", "session_timeout", "max_file_size"}


# ---------------------------------------------------
# PARSE / SERIALIZE (store boundary)
# ---------------------------------------------------
def parse_setting_value(raw: str, setting_type: SettingType) -> SettingValue:
    """Turn the stored text into a typed value."""
    setting_type = SettingType(setting_type)
    if setting_type == SettingType.BOOLEAN:
        return raw.strip().lower() == "true"
    if setting_type == SettingType.NUMBER:
        try:
            number = float(raw)
        except ValueError:
            raise ValidationError(f"Stored value '{raw}' is not a number")
        if not math.isfinite(number):
            raise ValidationError(f"Stored value '{raw}' is not a finite number")
        return int(number) if number.is_integer() else number
    return raw


def serialize_setting_value(value: Any, setting_type: SettingType) -> str:
    """Turn a typed value into stored text, refusing values that don't match the tag."""
    setting_type = SettingType(setting_type)
    if setting_type == SettingType.BOOLEAN:
        if not isinstance(value, bool):
            raise ValidationError("Value must be a boolean")
        return "true" if value else "false"
    if setting_type == SettingType.NUMBER:
        # bool is an int subclass, keep it out of numeric settings
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("Value must be a number")
        if not math.isfinite(value):
            raise ValidationError("Value must be a finite number")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)
    if not isinstance(value, str):
        raise ValidationError("Value must be a string")
    return value


def _to_out(setting: SystemSetting) -> SettingOut:
    return SettingOut(
        key=setting.setting_key,
        value=parse_setting_value(setting.setting_value, setting.setting_type),
        type=setting.setting_type,
        description=setting.description,
    )


async def _get_row(db: AsyncSession, key: str) -> SystemSetting:
    result = await db.execute(select(SystemSetting).where(SystemSetting.setting_key == key))
    setting = result.scalars().first()
    if not setting:
        raise NotFound(f"Setting '{key}' not found")
    return setting


# ---------------------------------------------------
# READ
# ---------------------------------------------------
async def get_all_settings(db: AsyncSession) -> dict:
    result = await db.execute(select(SystemSetting).order_by(SystemSetting.setting_key))
    settings: Dict[str, SettingValue] = {}
    for row in result.scalars().all():
        settings[row.setting_key] = parse_setting_value(row.setting_value, row.setting_type)
    return {"message": "Settings fetched successfully", "data": settings}


async def get_setting(db: AsyncSession, key: str) -> dict:
    setting = await _get_row(db, key)
    return {"message": "Setting fetched successfully", "data": _to_out(setting)}


async def get_setting_value(db: AsyncSession, key: str, default: SettingValue = None) -> SettingValue:
    """Typed value of a setting, or `default` when the key is absent."""
    result = await db.execute(select(SystemSetting).where(SystemSetting.setting_key == key))
    setting = result.scalars().first()
    if not setting:
        return default
    return parse_setting_value(setting.setting_value, setting.setting_type)


# ---------------------------------------------------
# UPDATE
# ---------------------------------------------------
async def update_setting(db: AsyncSession, key: str, value: SettingValue, actor: str = None) -> dict:
    try:
        setting = await _get_row(db, key)
        old_value = setting.setting_value
        stored = serialize_setting_value(value, setting.setting_type)
        if key in WHOLE_NUMBER_SETTINGS:
            number = parse_setting_value(stored, setting.setting_type)
            if not isinstance(number, int) or number < 0:
                raise ValidationError(f"Setting '{key}' must be a whole number of at least 0")
        setting.setting_value = stored

        await log_activity(
            db,
            actor=actor,
            message=f"Updated setting '{key}': {old_value} → {setting.setting_value}",
        )
        await db.commit()
        await db.refresh(setting)
        logger.info("Setting %s updated", key)
        return {"message": "Setting updated successfully", "data": _to_out(setting)}

    except ComplaintDeskError as e:
        await db.rollback()
        logger.warning("Setting update refused for %s: %s", key, e)
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Store error while updating setting %s", key)
        raise translate_db_error(e, "updating setting") from e


# ---------------------------------------------------
# SEED
# ---------------------------------------------------
async def seed_default_settings(db: AsyncSession) -> int:
    """Insert the default settings that are missing. Returns how many were added."""
    result = await db.execute(select(SystemSetting.setting_key))
    existing = set(result.scalars().all())

    added = 0
    for key, (setting_type, default, description) in DEFAULT_SETTINGS.items():
        if key in existing:
            continue
        db.add(
            SystemSetting(
                setting_key=key,
                setting_value=serialize_setting_value(default, setting_type),
                setting_type=setting_type,
                description=description,
            )
        )
        added += 1

    if added:
        await db.commit()
        logger.info("Seeded %d default settings", added)
    return added
