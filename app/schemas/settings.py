from pydantic import BaseModel, Field
from typing import Optional


class PlatformSettingsUpdate(BaseModel):
    platformName: Optional[str] = Field(None, min_length=1, max_length=100)
    logoUrl: Optional[str] = None


class PlatformSettingsResponse(BaseModel):
    key: str
    platformName: str
    logoUrl: Optional[str] = ""
