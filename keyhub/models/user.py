from pydantic import AliasChoices, Field

from .base import Record, UTCDateTime


class User(Record):
    username: str
    # Older documents store the hash under "password"
    password_hash: str = Field(
        ...,
        serialization_alias="passwordHash",
        validation_alias=AliasChoices("passwordHash", "password", "password_hash"),
    )
    updated_at: UTCDateTime = Field(..., alias="updatedAt")
