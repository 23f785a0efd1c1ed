"""
Tests for invoice save/duplicate/status workflows against a real SQLite database.
"""
import uuid
from datetime import date, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel.ext.asyncio.session import AsyncSession

from invoicer.errors import InvoiceValidationError, PersistenceError, RecordNotFoundError
from invoicer.models.company_profile import CompanyProfile
from invoicer.models.customer import Customer, CustomerBase
from invoicer.models.invoice import Invoice
from invoicer.schemas.invoice import InvoiceStatus
from invoicer.schemas.line_item import LedgerOperation, LineItem
from invoicer.services import invoice as invoice_service


class TestSaveInvoice:
    def test_assigns_sequential_numbers(self, with_agent, make_draft):
        async def scenario(agent):
            first = await invoice_service.save_invoice(agent, make_draft())
            second = await invoice_service.save_invoice(agent, make_draft())
            return first.invoice_number, second.invoice_number

        assert with_agent(scenario) == ("INV-0001", "INV-0002")

    def test_custom_numbers_do_not_block_the_sequence(self, with_agent, make_draft):
        async def scenario(agent):
            await invoice_service.save_invoice(agent, make_draft(invoice_number="PROJECT-77", use_custom_number=True))
            await invoice_service.save_invoice(agent, make_draft(invoice_number="INV-9999", use_custom_number=True))
            return await invoice_service.save_invoice(agent, make_draft())

        assert with_agent(scenario).invoice_number == "INV-A001"

    def test_stores_computed_totals(self, with_agent, make_draft):
        async def scenario(agent):
            return await invoice_service.save_invoice(agent, make_draft())

        invoice = with_agent(scenario)
        assert invoice.subtotal == 100
        assert invoice.surcharge == pytest.approx(10)
        assert invoice.convenience_fee == 5
        assert invoice.tax == pytest.approx(11.5)
        assert invoice.total == pytest.approx(126.5)
        assert invoice.total == invoice.subtotal + invoice.surcharge + invoice.convenience_fee + invoice.tax

    def test_recomputes_submitted_amounts(self, with_agent, make_draft):
        draft = make_draft(line_items=[
            {"id": "b", "description": "Second", "quantity": 2, "rate": 3, "amount": 1000},
            {"id": "a", "description": "First", "quantity": 4, "rate": 0.5, "amount": 0},
        ], fees={})

        async def scenario(agent):
            return await invoice_service.save_invoice(agent, draft)

        invoice = with_agent(scenario)
        assert [item["id"] for item in invoice.line_items] == ["b", "a"]
        assert [item["amount"] for item in invoice.line_items] == [6, 2]
        assert invoice.total == 8

    def test_applies_defaults(self, with_agent, make_draft):
        async def scenario(agent):
            return await invoice_service.save_invoice(agent, make_draft())

        invoice = with_agent(scenario)
        assert invoice.status == "draft"
        assert invoice.issue_date == date.today().isoformat()
        assert invoice.due_date is None
        assert invoice.invoice_title == "Invoice"
        assert invoice.footer_message == "Thank you for your business!"
        assert invoice.currency == "USD"

    def test_dates_are_stored_literally(self, with_agent, make_draft):
        async def scenario(agent):
            return await invoice_service.save_invoice(agent, make_draft(issue_date="2025-01-31", due_date="2025-03-01"))

        invoice = with_agent(scenario)
        assert (invoice.issue_date, invoice.due_date) == ("2025-01-31", "2025-03-01")

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"customer": {"name": "  "}}, "Customer name"),
            ({"company": {"name": ""}}, "Company name"),
            ({"use_custom_number": True, "invoice_number": ""}, "Invoice number"),
        ],
    )
    def test_rejects_invalid_drafts(self, with_agent, make_draft, overrides, message):
        async def scenario(agent):
            with pytest.raises(InvoiceValidationError, match=message):
                await invoice_service.save_invoice(agent, make_draft(**overrides))
            return await agent.list_invoices()

        assert with_agent(scenario) == []

    def test_number_generation_falls_back_when_listing_fails(self, with_agent, make_draft):
        async def scenario(agent):
            await invoice_service.save_invoice(agent, make_draft())
            with patch.object(agent, "list_invoice_numbers", side_effect=OperationalError("SELECT", {}, Exception("locked"))):
                return await invoice_service.save_invoice(agent, make_draft())

        assert with_agent(scenario).invoice_number == "INV-0001"

    def test_profile_failures_do_not_block_the_invoice(self, with_agent, make_draft):
        async def scenario(agent):
            with patch("invoicer.services.invoice.upsert_customer", side_effect=RuntimeError("boom")), \
                    patch("invoicer.services.invoice.upsert_company", side_effect=RuntimeError("boom")):
                invoice = await invoice_service.save_invoice(agent, make_draft())
            return invoice, await agent.list_customers()

        invoice, customers = with_agent(scenario)
        assert invoice.invoice_number == "INV-0001"
        assert customers == []

    def test_failed_write_leaves_nothing_behind(self, with_agent, make_draft):
        draft = make_draft(save_customer=False, save_company=False)

        async def scenario(agent):
            with patch.object(AsyncSession, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
                with pytest.raises(PersistenceError):
                    await invoice_service.save_invoice(agent, draft)
            return await agent.list_invoices()

        assert with_agent(scenario) == []

    def test_saves_party_profiles(self, with_agent, make_draft):
        async def scenario(agent):
            await invoice_service.save_invoice(agent, make_draft())
            await invoice_service.save_invoice(agent, make_draft(customer={"name": "GLOBEX CORPORATION", "email": "ap@globex.test"}))
            return await agent.list_customers(), await agent.list_company_profiles()

        customers, companies = with_agent(scenario)
        assert [(c.name, c.email) for c in customers] == [("GLOBEX CORPORATION", "ap@globex.test")]
        assert [c.name for c in companies] == ["Acme Studio"]


class TestEditInvoice:
    def test_keeps_number_and_replaces_content(self, with_agent, make_draft):
        async def scenario(agent):
            created = await invoice_service.save_invoice(agent, make_draft())
            edited = make_draft(status="open", line_items=[{"id": "x", "quantity": 1, "rate": 50}], fees={})
            return created, await invoice_service.save_invoice(agent, edited, created.id)

        created, updated = with_agent(scenario)
        assert updated.id == created.id
        assert updated.invoice_number == created.invoice_number
        assert updated.status == "open"
        assert updated.total == 50
        assert updated.updated_at >= created.updated_at

    def test_unknown_invoice(self, with_agent, make_draft):
        async def scenario(agent):
            with pytest.raises(RecordNotFoundError):
                await invoice_service.save_invoice(agent, make_draft(), uuid.uuid4())

        with_agent(scenario)

    def test_snapshots_survive_profile_edits(self, with_agent, make_draft):
        async def scenario(agent):
            invoice = await invoice_service.save_invoice(agent, make_draft())
            customer = (await agent.list_customers())[0]
            await agent.update_customer(customer.id, CustomerBase(name=customer.name, email="changed@globex.test"))
            return await agent.get_invoice(invoice.id)

        assert with_agent(scenario).customer["email"] == "billing@globex.test"


class TestDuplicateAndStatus:
    def test_duplicate(self, with_agent, make_draft):
        async def scenario(agent):
            original = await invoice_service.save_invoice(
                agent, make_draft(status="paid", issue_date="2024-02-01", due_date="2024-03-01")
            )
            return original, await invoice_service.duplicate_invoice(agent, original.id)

        original, copy = with_agent(scenario)
        assert copy.id != original.id
        assert copy.invoice_number == "INV-0001-COPY"
        assert copy.status == "draft"
        assert copy.issue_date == date.today().isoformat()
        assert copy.due_date is None
        assert copy.line_items == original.line_items
        assert copy.total == original.total

    @pytest.mark.parametrize("start,target", [("paid", "draft"), ("canceled", "open"), ("draft", "overdue"), ("overdue", "paid")])
    def test_any_status_change_is_allowed(self, with_agent, make_draft, start, target):
        async def scenario(agent):
            invoice = await invoice_service.save_invoice(agent, make_draft(status=start))
            return await invoice_service.change_status(agent, invoice.id, InvoiceStatus(target))

        changed = with_agent(scenario)
        assert changed.status == target
        assert changed.total == pytest.approx(126.5)

    def test_delete(self, with_agent, make_draft):
        async def scenario(agent):
            invoice = await invoice_service.save_invoice(agent, make_draft())
            await invoice_service.delete_invoice(agent, invoice.id)
            with pytest.raises(RecordNotFoundError):
                await invoice_service.delete_invoice(agent, invoice.id)
            return await agent.list_invoices()

        assert with_agent(scenario) == []


class TestHelpers:
    def test_status_summary_uses_stored_totals(self, with_agent, make_draft):
        async def scenario(agent):
            await invoice_service.save_invoice(agent, make_draft(status="open"))
            await invoice_service.save_invoice(agent, make_draft(status="open", fees={}))
            await invoice_service.save_invoice(agent, make_draft(status="paid", fees={}))
            return invoice_service.status_summary(await agent.list_invoices())

        summary = with_agent(scenario)
        assert summary["open"]["count"] == 2
        assert summary["open"]["total"] == pytest.approx(226.5)
        assert summary["paid"] == {"count": 1, "total": 100}
        assert summary["canceled"] == {"count": 0, "total": 0.0}

    def test_preview_applies_operations(self):
        items, totals = invoice_service.preview(
            [LineItem(id="a", quantity=1, rate=10)],
            invoice_service.default_fees(),
            [LedgerOperation(op="update", id="a", field="quantity", value=3)],
        )
        assert items[0].amount == 30
        assert totals.total == 30


class TestTimestamps:
    def test_new_records_carry_utc_timestamps(self):
        for record in (Customer(name="Globex"), CompanyProfile(name="Acme"), Invoice(invoice_number="INV-0001", issue_date="2024-03-05")):
            assert record.created_at.tzinfo is timezone.utc
            assert record.updated_at.tzinfo is timezone.utc

    def test_updates_are_written(self, with_agent):
        async def scenario(agent):
            customer = await agent.insert_customer(CustomerBase(name="Globex"))
            return customer, await agent.update_customer(customer.id, CustomerBase(name="Globex", phone="555-0100"))

        created, updated = with_agent(scenario)
        assert updated.phone == "555-0100"
        assert updated.updated_at >= created.created_at
