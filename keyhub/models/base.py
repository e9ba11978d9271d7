from datetime import datetime
from typing import Annotated
import uuid

from pydantic import AfterValidator, BaseModel

from ..core.time_utils import as_utc

UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


def new_id() -> str:
    return uuid.uuid4().hex


class Record(BaseModel):
    """A stored JSON record; camelCase on disk and on the wire."""

    class Config:
        populate_by_name = True

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
