from datetime import datetime, timezone
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def timestamp_field():
    return Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

class ContactBase(SQLModel):
    name: str = Field(min_length=1)
    email: str | None = Field(default=None)
    phone: str | None = Field(default=None)
    address: str | None = Field(default=None)
    city: str | None = Field(default=None)
    state: str | None = Field(default=None)
    postal_code: str | None = Field(default=None)
    country: str | None = Field(default=None)
