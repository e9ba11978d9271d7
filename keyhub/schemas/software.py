from typing import List

from pydantic import BaseModel, Field


class SoftwareRequest(BaseModel):
    """Body for both create and update."""
    name: str = Field(..., min_length=1)
    file_type: str = Field(..., alias="fileType", min_length=1)
    download_urls: List[str] = Field(..., alias="downloadUrls", min_length=1)

    class Config:
        populate_by_name = True


class SoftwareDeleteResponse(BaseModel):
    message: str
    deleted_keys: int = Field(..., alias="deletedKeys")

    class Config:
        populate_by_name = True
