import logging
import uuid
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from invoicer.agents.database import DatabaseAgent
from invoicer.billing.formatting import format_money
from invoicer.config import settings
from invoicer.errors import InvoiceValidationError, PersistenceError, RecordNotFoundError
from invoicer.models.company_profile import CompanyProfileBase
from invoicer.models.customer import CustomerBase
from invoicer.schemas.autosave import FieldEdit
from invoicer.schemas.invoice import InvoiceDraft, InvoiceStatus, LedgerRequest, StatusChange, TotalsRequest
from invoicer.schemas.party import CompanySnapshot, CustomerSnapshot
from invoicer.services import invoice as invoice_service
from invoicer.services.autosave import AutosaveRegistry, PartyAutosave
from invoicer.services.party import upsert_company, upsert_customer
from invoicer.services.presentation import build_print_context
from invoicer.services.reference import Regions, load_regions

logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
)
logger = logging.getLogger(__name__)

def build_autosave_registry(agent: DatabaseAgent) -> AutosaveRegistry:
    async def save_customer(snapshot, known_id):
        return await upsert_customer(agent, CustomerSnapshot(**snapshot.model_dump(exclude={"logo"})), known_id)

    async def save_company(snapshot, known_id):
        return await upsert_company(agent, CompanySnapshot(**snapshot.model_dump()), known_id)

    return AutosaveRegistry({
        "customer": lambda: PartyAutosave(save_customer),
        "company": lambda: PartyAutosave(save_company),
    })

@asynccontextmanager
async def lifespan(app: FastAPI):
    agent = DatabaseAgent()
    await agent.create_tables()
    app.state.agent = agent
    app.state.autosave = build_autosave_registry(agent)
    logger.info("Invoice service started")
    yield
    app.state.autosave.cancel_all()
    await agent.dispose()

app = FastAPI(title="Invoicer", lifespan=lifespan)

def get_agent(request: Request) -> DatabaseAgent:
    return request.app.state.agent

def get_autosave(request: Request) -> AutosaveRegistry:
    return request.app.state.autosave

def get_regions() -> Regions:
    return load_regions()

@app.exception_handler(InvoiceValidationError)
async def invoice_validation_error(request: Request, exc: InvoiceValidationError):
    return JSONResponse(status_code=422, content={"error": str(exc)})

@app.exception_handler(RecordNotFoundError)
async def record_not_found(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})

@app.exception_handler(PersistenceError)
async def persistence_error(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content={"error": str(exc)})

# Calculator

@app.post("/totals")
async def totals(body: TotalsRequest):
    _, result = invoice_service.preview(body.line_items, body.fees)
    return result

@app.post("/ledger")
async def ledger(body: LedgerRequest):
    items, result = invoice_service.preview(body.line_items, body.fees, body.operations)
    return {"line_items": items, "totals": result}

# Invoices

@app.get("/invoices")
async def list_invoices(status: InvoiceStatus | None = None, agent: DatabaseAgent = Depends(get_agent)):
    return await agent.list_invoices(status.value if status else None)

@app.get("/invoices/next-number")
async def next_invoice_number(agent: DatabaseAgent = Depends(get_agent)):
    return {"invoice_number": await invoice_service.generate_invoice_number(agent)}

@app.get("/invoices/summary")
async def invoice_summary(agent: DatabaseAgent = Depends(get_agent)):
    summary = invoice_service.status_summary(await agent.list_invoices())
    for bucket in summary.values():
        bucket["formatted_total"] = format_money(bucket["total"])
    return summary

@app.post("/invoices")
async def create_invoice(draft: InvoiceDraft, agent: DatabaseAgent = Depends(get_agent)):
    return await invoice_service.save_invoice(agent, draft)

@app.get("/invoices/{invoice_id}")
async def get_invoice(invoice_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    invoice = await agent.get_invoice(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice

@app.put("/invoices/{invoice_id}")
async def update_invoice(invoice_id: uuid.UUID, draft: InvoiceDraft, agent: DatabaseAgent = Depends(get_agent)):
    return await invoice_service.save_invoice(agent, draft, invoice_id)

@app.delete("/invoices/{invoice_id}")
async def delete_invoice(invoice_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    await invoice_service.delete_invoice(agent, invoice_id)
    return {"message": "Invoice deleted"}

@app.post("/invoices/{invoice_id}/duplicate")
async def duplicate_invoice(invoice_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    return await invoice_service.duplicate_invoice(agent, invoice_id)

@app.put("/invoices/{invoice_id}/status")
async def change_invoice_status(invoice_id: uuid.UUID, body: StatusChange, agent: DatabaseAgent = Depends(get_agent)):
    return await invoice_service.change_status(agent, invoice_id, body.status)

@app.get("/invoices/{invoice_id}/print")
async def print_invoice(invoice_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    invoice = await agent.get_invoice(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return build_print_context(invoice)

# Customers

@app.get("/customers")
async def list_customers(agent: DatabaseAgent = Depends(get_agent)):
    return await agent.list_customers()

@app.post("/customers")
async def create_customer(customer: CustomerBase, agent: DatabaseAgent = Depends(get_agent)):
    return await agent.insert_customer(customer)

@app.post("/customers/upsert")
async def save_customer(snapshot: CustomerSnapshot, agent: DatabaseAgent = Depends(get_agent)):
    if not snapshot.name:
        raise InvoiceValidationError("Customer name is required")
    return await upsert_customer(agent, snapshot)

@app.get("/customers/{customer_id}")
async def get_customer(customer_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    customer = await agent.get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@app.put("/customers/{customer_id}")
async def update_customer(customer_id: uuid.UUID, customer: CustomerBase, agent: DatabaseAgent = Depends(get_agent)):
    result = await agent.update_customer(customer_id, customer)
    if result is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return result

@app.delete("/customers/{customer_id}")
async def delete_customer(customer_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    if not await agent.delete_customer(customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")
    return {"message": "Customer deleted"}

# Company profiles

@app.get("/company-profiles")
async def list_company_profiles(agent: DatabaseAgent = Depends(get_agent)):
    return await agent.list_company_profiles()

@app.post("/company-profiles")
async def create_company_profile(profile: CompanyProfileBase, agent: DatabaseAgent = Depends(get_agent)):
    return await agent.insert_company_profile(profile)

@app.post("/company-profiles/upsert")
async def save_company_profile(snapshot: CompanySnapshot, agent: DatabaseAgent = Depends(get_agent)):
    if not snapshot.name:
        raise InvoiceValidationError("Company name is required")
    return await upsert_company(agent, snapshot)

@app.get("/company-profiles/{profile_id}")
async def get_company_profile(profile_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    profile = await agent.get_company_profile(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Company profile not found")
    return profile

@app.put("/company-profiles/{profile_id}")
async def update_company_profile(profile_id: uuid.UUID, profile: CompanyProfileBase, agent: DatabaseAgent = Depends(get_agent)):
    result = await agent.update_company_profile(profile_id, profile)
    if result is None:
        raise HTTPException(status_code=404, detail="Company profile not found")
    return result

@app.delete("/company-profiles/{profile_id}")
async def delete_company_profile(profile_id: uuid.UUID, agent: DatabaseAgent = Depends(get_agent)):
    if not await agent.delete_company_profile(profile_id):
        raise HTTPException(status_code=404, detail="Company profile not found")
    return {"message": "Company profile deleted"}

# Autosave while a form is open

@app.put("/autosave/{session_id}/{kind}")
async def autosave_field(session_id: str, kind: str, edit: FieldEdit, registry: AutosaveRegistry = Depends(get_autosave)):
    try:
        autosave = registry.get(session_id, kind)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown party kind '{kind}'")
    autosave.field_changed(edit.field, edit.snapshot)
    return {"pending": autosave.pending, "status": autosave.status, "profile_id": autosave.profile_id}

@app.get("/autosave/{session_id}/{kind}")
async def autosave_status(session_id: str, kind: str, registry: AutosaveRegistry = Depends(get_autosave)):
    autosave = registry.find(session_id, kind)
    if autosave is None:
        return {"pending": [], "status": {}, "profile_id": None}
    return {"pending": autosave.pending, "status": autosave.status, "profile_id": autosave.profile_id}

@app.delete("/autosave/{session_id}")
async def abandon_form(session_id: str, registry: AutosaveRegistry = Depends(get_autosave)):
    return {"discarded": registry.discard(session_id)}

# Reference data

@app.get("/reference/regions")
async def regions(data: Regions = Depends(get_regions)):
    return data

@app.get("/reference/fees")
async def fee_defaults():
    return invoice_service.default_fees()
