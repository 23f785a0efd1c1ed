"""
Shared fixtures: a throwaway SQLite database per test, a helper that runs an
async scenario against a fresh DatabaseAgent, and a TestClient bound to it.
"""
import asyncio

import pytest
from fastapi.testclient import TestClient

from invoicer.agents.database import DatabaseAgent
from invoicer.config import settings
from invoicer.schemas.invoice import InvoiceDraft


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'invoices.db'}"


@pytest.fixture
def with_agent(database_url):
    """Run ``scenario(agent)`` inside a single event loop and return its result."""
    def run(scenario):
        async def main():
            agent = DatabaseAgent(database_url)
            await agent.create_tables()
            try:
                return await scenario(agent)
            finally:
                await agent.dispose()
        return asyncio.run(main())
    return run


@pytest.fixture
def client(database_url, monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", database_url)
    monkeypatch.setattr(settings, "AUTOSAVE_DELAY_SECONDS", 0.05)
    monkeypatch.setattr(settings, "AUTOSAVE_SAVED_CLEAR_SECONDS", 0.5)
    from invoicer.main import app
    with TestClient(app) as test_client:
        yield test_client


def build_draft(**overrides) -> InvoiceDraft:
    data = {
        "customer": {"name": "Globex Corporation", "email": "billing@globex.test", "city": "Springfield"},
        "company": {"name": "Acme Studio", "email": "hello@acme.test", "country": "United States of America"},
        "line_items": [
            {"id": "item-1", "description": "Design work", "quantity": 10, "rate": 8},
            {"id": "item-2", "description": "Hosting", "quantity": 1, "rate": 20},
        ],
        "fees": {
            "tax_rate": 10,
            "has_surcharge": True,
            "surcharge_percent": 10,
            "has_convenience_fee": True,
            "convenience_fee": 5,
        },
    }
    data.update(overrides)
    return InvoiceDraft(**data)


@pytest.fixture
def make_draft():
    return build_draft
