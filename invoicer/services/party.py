import logging
import uuid

from invoicer.agents.database import DatabaseAgent
from invoicer.models.company_profile import CompanyProfile, CompanyProfileBase
from invoicer.models.customer import Customer, CustomerBase
from invoicer.schemas.party import CompanySnapshot, CustomerSnapshot

logger = logging.getLogger(__name__)


def find_by_name(profiles, name: str):
    wanted = name.lower()
    for profile in profiles:
        if profile.name.lower() == wanted:
            return profile
    return None


def customer_fields(snapshot: CustomerSnapshot) -> CustomerBase:
    return CustomerBase(**snapshot.model_dump(include=set(CustomerBase.model_fields)))


def company_fields(snapshot: CompanySnapshot, is_default: bool = False) -> CompanyProfileBase:
    values = snapshot.model_dump(include=set(CompanyProfileBase.model_fields))
    values["is_default"] = is_default
    return CompanyProfileBase(**values)


async def upsert_customer(agent: DatabaseAgent, snapshot: CustomerSnapshot, known_id: uuid.UUID | None = None) -> Customer:
    fields = customer_fields(snapshot)

    if known_id is not None:
        updated = await agent.update_customer(known_id, fields)
        if updated is not None:
            return updated

    existing = find_by_name(await agent.list_customers(), snapshot.name)
    if existing is not None:
        logger.debug(f"Updating customer {existing.id} from snapshot '{snapshot.name}'")
        return await agent.update_customer(existing.id, fields)

    logger.info(f"Creating customer profile '{snapshot.name}'")
    return await agent.insert_customer(fields)


async def upsert_company(agent: DatabaseAgent, snapshot: CompanySnapshot, known_id: uuid.UUID | None = None) -> CompanyProfile:
    profile = None
    if known_id is not None:
        profile = await agent.get_company_profile(known_id)
    if profile is None:
        profile = find_by_name(await agent.list_company_profiles(), snapshot.name)

    if profile is not None:
        # The default flag belongs to the profile, not to the invoice snapshot.
        logger.debug(f"Updating company profile {profile.id} from snapshot '{snapshot.name}'")
        return await agent.update_company_profile(profile.id, company_fields(snapshot, profile.is_default))

    logger.info(f"Creating company profile '{snapshot.name}'")
    return await agent.insert_company_profile(company_fields(snapshot))
