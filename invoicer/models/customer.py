import uuid
from datetime import datetime
from sqlmodel import Field

from invoicer.models.contact import ContactBase, timestamp_field

class CustomerBase(ContactBase):
    pass

class Customer(CustomerBase, table=True):
    __tablename__ = "customers"
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
