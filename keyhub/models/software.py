from typing import List, Optional

from pydantic import Field

from .base import Record, UTCDateTime


class Software(Record):
    id: str
    name: str
    file_type: str = Field(..., alias="fileType")
    download_urls: List[str] = Field(..., alias="downloadUrls")
    created_at: UTCDateTime = Field(..., alias="createdAt")
    updated_at: Optional[UTCDateTime] = Field(None, alias="updatedAt")
