from pydantic import BaseModel

from invoicer.schemas.party import CompanySnapshot

class FieldEdit(BaseModel):
    field: str
    # Company snapshot is a superset of the customer one; ``logo`` is dropped for customers.
    snapshot: CompanySnapshot
