import uuid
from datetime import datetime
from sqlmodel import Field

from invoicer.models.contact import ContactBase, timestamp_field

class CompanyProfileBase(ContactBase):
    # Base64 data URL of the uploaded image.
    logo: str | None = Field(default=None)
    is_default: bool = Field(default=False)

class CompanyProfile(CompanyProfileBase, table=True):
    __tablename__ = "company_profiles"
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
