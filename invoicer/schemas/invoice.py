from datetime import date
from enum import Enum
from pydantic import BaseModel, Field

from invoicer.schemas.fees import FeeConfiguration
from invoicer.schemas.line_item import LineItem, LedgerOperation
from invoicer.schemas.party import CustomerSnapshot, CompanySnapshot

class InvoiceStatus(str, Enum):
    # Any status may be set from any other; there is no transition graph.
    DRAFT = "draft"
    OPEN = "open"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELED = "canceled"

class InvoiceDraft(BaseModel):
    invoice_number: str | None = None
    use_custom_number: bool = False
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: date | None = None
    due_date: date | None = None
    currency: str | None = None
    customer: CustomerSnapshot
    company: CompanySnapshot
    line_items: list[LineItem] = Field(default_factory=list)
    fees: FeeConfiguration | None = None
    notes: str | None = None
    invoice_title: str | None = None
    footer_message: str | None = None
    template: str = "default"
    save_customer: bool = True
    save_company: bool = True

class StatusChange(BaseModel):
    status: InvoiceStatus

class TotalsRequest(BaseModel):
    line_items: list[LineItem] = Field(default_factory=list)
    fees: FeeConfiguration = Field(default_factory=FeeConfiguration)

class LedgerRequest(TotalsRequest):
    operations: list[LedgerOperation] = Field(default_factory=list)
