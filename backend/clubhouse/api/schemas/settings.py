"""Club settings request models."""

from typing import List

from pydantic import BaseModel, Field


class SettingItem(BaseModel):
    key: str
    value: str


class SettingsUpdateRequest(BaseModel):
    settings: List[SettingItem] = Field(..., description="Settings to overwrite, by key")
