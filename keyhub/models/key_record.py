from typing import Optional

from pydantic import Field

from .base import Record, UTCDateTime


class KeyRecord(Record):
    id: str
    code: str
    software_id: str = Field(..., alias="softwareId")
    used: bool = False
    created_at: UTCDateTime = Field(..., alias="createdAt")
    valid_until: Optional[UTCDateTime] = Field(None, alias="validUntil")
