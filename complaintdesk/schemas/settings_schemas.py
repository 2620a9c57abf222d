from pydantic import BaseModel
from typing import Dict, Optional, Union

from complaintdesk.models.settings_models import SettingType

# bool first so "true" JSON booleans are not coerced to numbers
SettingValue = Union[bool, int, float, str]


class SettingOut(BaseModel):
    key: str
    value: SettingValue
    type: SettingType
    description: Optional[str] = None


class SettingUpdate(BaseModel):
    value: SettingValue


class SettingResponse(BaseModel):
    message: str
    data: Optional[SettingOut] = None


class SettingsMapResponse(BaseModel):
    message: str
    data: Dict[str, SettingValue]
