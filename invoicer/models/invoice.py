import uuid
from datetime import datetime
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

from invoicer.models.contact import timestamp_field

class Invoice(SQLModel, table=True):
    __tablename__ = "invoices"
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    invoice_number: str = Field(index=True)
    status: str = Field(default="draft")
    issue_date: str
    due_date: str | None = Field(default=None)
    subtotal: float = Field(default=0)
    surcharge: float = Field(default=0)
    convenience_fee: float = Field(default=0)
    tax: float = Field(default=0)
    total: float = Field(default=0)
    currency: str = Field(default="USD")
    # Parties are embedded copies taken at save time, not references to profiles.
    customer: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    company: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    line_items: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    fees: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    notes: str | None = Field(default=None)
    invoice_title: str = Field(default="Invoice")
    footer_message: str | None = Field(default=None)
    template: str = Field(default="default")
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
