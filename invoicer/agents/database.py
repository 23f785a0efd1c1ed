import logging
import uuid
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from invoicer.config import settings
from invoicer.errors import PersistenceError
from invoicer.models.company_profile import CompanyProfile, CompanyProfileBase
from invoicer.models.contact import utc_now
from invoicer.models.customer import Customer, CustomerBase
from invoicer.models.invoice import Invoice

logger = logging.getLogger(__name__)

class DatabaseAgent:
    def __init__(self, database_url: str | None = None):
        self.engine = create_async_engine(database_url or settings.DATABASE_URL)

    @asynccontextmanager
    async def get_session(self):
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            yield session

    async def create_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()

    async def _commit(self, db: AsyncSession, record, action: str):
        # One commit per record; on failure the whole write is rolled back.
        try:
            await db.commit()
            await db.refresh(record)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception(f"Failed to {action} {record.__tablename__} {record.id}")
            raise PersistenceError(f"Failed to {action} {record.__tablename__}") from e
        return record

    async def _get(self, model, record_id: uuid.UUID):
        async with self.get_session() as db:
            return await db.get(model, record_id)

    async def _insert(self, record):
        async with self.get_session() as db:
            db.add(record)
            return await self._commit(db, record, "insert")

    async def _update(self, model, record_id: uuid.UUID, values: dict):
        async with self.get_session() as db:
            record = await db.get(model, record_id)
            if record is None:
                return None
            for key, value in values.items():
                setattr(record, key, value)
            record.updated_at = utc_now()
            db.add(record)
            return await self._commit(db, record, "update")

    async def _delete(self, model, record_id: uuid.UUID) -> bool:
        async with self.get_session() as db:
            record = await db.get(model, record_id)
            if record is None:
                return False
            try:
                await db.delete(record)
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.exception(f"Failed to delete {model.__tablename__} {record_id}")
                raise PersistenceError(f"Failed to delete {model.__tablename__}") from e
            return True

    # Invoices

    async def list_invoices(self, status: str | None = None) -> list[Invoice]:
        async with self.get_session() as db:
            statement = select(Invoice)
            if status:
                statement = statement.where(Invoice.status == status)
            statement = statement.order_by(Invoice.created_at.desc())
            return list((await db.exec(statement)).all())

    async def list_invoice_numbers(self) -> list[str]:
        async with self.get_session() as db:
            statement = select(Invoice.invoice_number)
            return list((await db.exec(statement)).all())

    async def get_invoice(self, invoice_id: uuid.UUID) -> Invoice | None:
        return await self._get(Invoice, invoice_id)

    async def insert_invoice(self, invoice: Invoice) -> Invoice:
        return await self._insert(invoice)

    async def update_invoice(self, invoice_id: uuid.UUID, values: dict) -> Invoice | None:
        return await self._update(Invoice, invoice_id, values)

    async def delete_invoice(self, invoice_id: uuid.UUID) -> bool:
        return await self._delete(Invoice, invoice_id)

    # Customers

    async def list_customers(self) -> list[Customer]:
        async with self.get_session() as db:
            statement = select(Customer).order_by(Customer.name)
            return list((await db.exec(statement)).all())

    async def get_customer(self, customer_id: uuid.UUID) -> Customer | None:
        return await self._get(Customer, customer_id)

    async def insert_customer(self, customer: CustomerBase) -> Customer:
        return await self._insert(Customer(**customer.model_dump()))

    async def update_customer(self, customer_id: uuid.UUID, customer: CustomerBase) -> Customer | None:
        return await self._update(Customer, customer_id, customer.model_dump())

    async def delete_customer(self, customer_id: uuid.UUID) -> bool:
        return await self._delete(Customer, customer_id)

    # Company profiles

    async def list_company_profiles(self) -> list[CompanyProfile]:
        async with self.get_session() as db:
            statement = select(CompanyProfile).order_by(CompanyProfile.name)
            return list((await db.exec(statement)).all())

    async def get_company_profile(self, profile_id: uuid.UUID) -> CompanyProfile | None:
        return await self._get(CompanyProfile, profile_id)

    async def _clear_other_defaults(self, db: AsyncSession, profile_id: uuid.UUID):
        statement = select(CompanyProfile).where(
            CompanyProfile.is_default == True,  # noqa: E712
            CompanyProfile.id != profile_id,
        )
        for other in (await db.exec(statement)).all():
            other.is_default = False
            db.add(other)

    async def insert_company_profile(self, profile: CompanyProfileBase) -> CompanyProfile:
        async with self.get_session() as db:
            record = CompanyProfile(**profile.model_dump())
            if record.is_default:
                await self._clear_other_defaults(db, record.id)
            db.add(record)
            return await self._commit(db, record, "insert")

    async def update_company_profile(self, profile_id: uuid.UUID, profile: CompanyProfileBase) -> CompanyProfile | None:
        async with self.get_session() as db:
            record = await db.get(CompanyProfile, profile_id)
            if record is None:
                return None
            for key, value in profile.model_dump().items():
                setattr(record, key, value)
            record.updated_at = utc_now()
            if record.is_default:
                await self._clear_other_defaults(db, record.id)
            db.add(record)
            return await self._commit(db, record, "update")

    async def delete_company_profile(self, profile_id: uuid.UUID) -> bool:
        return await self._delete(CompanyProfile, profile_id)
