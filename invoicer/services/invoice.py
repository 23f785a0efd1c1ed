import logging
import uuid
from datetime import date
from typing import Iterable

from invoicer.agents.database import DatabaseAgent
from invoicer.billing.ledger import Ledger
from invoicer.billing.numbering import FALLBACK_NUMBER, next_invoice_number
from invoicer.billing.totals import compute_totals
from invoicer.config import settings
from invoicer.errors import InvoiceValidationError, RecordNotFoundError
from invoicer.models.invoice import Invoice
from invoicer.schemas.fees import FeeConfiguration, Totals
from invoicer.schemas.invoice import InvoiceDraft, InvoiceStatus
from invoicer.schemas.line_item import LineItem, LedgerOperation
from invoicer.services.party import upsert_company, upsert_customer

logger = logging.getLogger(__name__)

COPY_SUFFIX = "-COPY"


def default_fees() -> FeeConfiguration:
    return FeeConfiguration(
        is_tax_free=settings.DEFAULT_IS_TAX_FREE,
        tax_rate=settings.DEFAULT_TAX_RATE,
        has_convenience_fee=settings.DEFAULT_CONVENIENCE_FEE > 0,
        convenience_fee=settings.DEFAULT_CONVENIENCE_FEE,
        has_surcharge=settings.DEFAULT_SURCHARGE_PERCENT > 0,
        surcharge_percent=settings.DEFAULT_SURCHARGE_PERCENT,
    )


def validate_draft(draft: InvoiceDraft):
    if not draft.customer.name.strip():
        raise InvoiceValidationError("Customer name is required")
    if not draft.company.name.strip():
        raise InvoiceValidationError("Company name is required")
    if draft.use_custom_number and not (draft.invoice_number or "").strip():
        raise InvoiceValidationError("Invoice number is required when using a custom number")


def apply_operations(items: Iterable[LineItem], operations: Iterable[LedgerOperation]) -> Ledger:
    ledger = Ledger(items)
    for operation in operations:
        ledger.apply(operation)
    return ledger


def preview(items: Iterable[LineItem], fees: FeeConfiguration, operations: Iterable[LedgerOperation] = ()) -> tuple[list[LineItem], Totals]:
    ledger = apply_operations(items, operations)
    return ledger.items, compute_totals(ledger.items, fees)


async def generate_invoice_number(agent: DatabaseAgent) -> str:
    try:
        existing = await agent.list_invoice_numbers()
    except Exception as e:
        logger.warning(f"Could not read existing invoice numbers, using {FALLBACK_NUMBER}: {e}")
        return FALLBACK_NUMBER
    return next_invoice_number(existing)


async def resolve_invoice_number(agent: DatabaseAgent, draft: InvoiceDraft, current: Invoice | None = None) -> str:
    number = (draft.invoice_number or "").strip()
    if number:
        return number
    if current is not None:
        return current.invoice_number
    return await generate_invoice_number(agent)


async def save_parties(agent: DatabaseAgent, draft: InvoiceDraft):
    # Profile upserts never block the invoice itself.
    if draft.save_customer:
        try:
            await upsert_customer(agent, draft.customer)
        except Exception as e:
            logger.warning(f"Saving customer profile '{draft.customer.name}' failed: {e}")
    if draft.save_company:
        try:
            await upsert_company(agent, draft.company)
        except Exception as e:
            logger.warning(f"Saving company profile '{draft.company.name}' failed: {e}")


def record_values(draft: InvoiceDraft, invoice_number: str) -> dict:
    fees = draft.fees or default_fees()
    ledger = Ledger(draft.line_items)
    totals = compute_totals(ledger.items, fees)
    issue_date = draft.issue_date or date.today()
    return {
        "invoice_number": invoice_number,
        "status": draft.status.value,
        "issue_date": issue_date.isoformat(),
        "due_date": draft.due_date.isoformat() if draft.due_date else None,
        "subtotal": totals.subtotal,
        "surcharge": totals.surcharge,
        "convenience_fee": totals.convenience_fee,
        "tax": totals.tax,
        "total": totals.total,
        "currency": draft.currency or settings.DEFAULT_CURRENCY,
        "customer": draft.customer.model_dump(),
        "company": draft.company.model_dump(),
        "line_items": [item.model_dump() for item in ledger.items],
        "fees": fees.model_dump(),
        "notes": draft.notes,
        "invoice_title": draft.invoice_title or settings.DEFAULT_INVOICE_TITLE,
        "footer_message": draft.footer_message if draft.footer_message is not None else settings.DEFAULT_FOOTER_MESSAGE,
        "template": draft.template,
    }


async def save_invoice(agent: DatabaseAgent, draft: InvoiceDraft, invoice_id: uuid.UUID | None = None) -> Invoice:
    validate_draft(draft)

    current = None
    if invoice_id is not None:
        current = await agent.get_invoice(invoice_id)
        if current is None:
            raise RecordNotFoundError("Invoice", invoice_id)

    invoice_number = await resolve_invoice_number(agent, draft, current)
    await save_parties(agent, draft)
    values = record_values(draft, invoice_number)

    if current is None:
        invoice = await agent.insert_invoice(Invoice(**values))
        logger.info(f"Created invoice {invoice.invoice_number} ({invoice.id})")
        return invoice

    invoice = await agent.update_invoice(invoice_id, values)
    if invoice is None:
        raise RecordNotFoundError("Invoice", invoice_id)
    logger.info(f"Updated invoice {invoice.invoice_number} ({invoice.id})")
    return invoice


async def duplicate_invoice(agent: DatabaseAgent, invoice_id: uuid.UUID) -> Invoice:
    original = await agent.get_invoice(invoice_id)
    if original is None:
        raise RecordNotFoundError("Invoice", invoice_id)

    values = original.model_dump(exclude={"id", "created_at", "updated_at"})
    values.update(
        invoice_number=f"{original.invoice_number}{COPY_SUFFIX}",
        status=InvoiceStatus.DRAFT.value,
        issue_date=date.today().isoformat(),
        due_date=None,
    )
    copy = await agent.insert_invoice(Invoice(**values))
    logger.info(f"Duplicated invoice {original.invoice_number} as {copy.invoice_number}")
    return copy


async def change_status(agent: DatabaseAgent, invoice_id: uuid.UUID, status: InvoiceStatus) -> Invoice:
    invoice = await agent.update_invoice(invoice_id, {"status": status.value})
    if invoice is None:
        raise RecordNotFoundError("Invoice", invoice_id)
    return invoice


async def delete_invoice(agent: DatabaseAgent, invoice_id: uuid.UUID):
    if not await agent.delete_invoice(invoice_id):
        raise RecordNotFoundError("Invoice", invoice_id)
    logger.info(f"Deleted invoice {invoice_id}")


def status_summary(invoices: Iterable[Invoice]) -> dict[str, dict]:
    summary = {status.value: {"count": 0, "total": 0.0} for status in InvoiceStatus}
    for invoice in invoices:
        bucket = summary.setdefault(invoice.status, {"count": 0, "total": 0.0})
        bucket["count"] += 1
        bucket["total"] += invoice.total or 0.0
    return summary


