from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.key_record import KeyRecord
from ..models.software import Software


class KeyCreateRequest(BaseModel):
    software_id: str = Field(..., alias="softwareId", min_length=1)
    count: int
    validity_days: Optional[int] = Field(None, alias="validityDays", ge=0, le=36500)

    class Config:
        populate_by_name = True


class KeyWithSoftware(KeyRecord):
    software: Optional[Software] = None


class KeyBatchResponse(BaseModel):
    keys: List[KeyRecord]


class KeyVerifyRequest(BaseModel):
    code: str


class KeyVerifyResponse(BaseModel):
    valid: bool
    message: str
    used: bool = False
    expired: bool = False
    software: Optional[Software] = None
    valid_until: Optional[datetime] = Field(None, alias="validUntil")

    class Config:
        populate_by_name = True
