from pydantic import BaseModel

class PartySnapshot(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""

class CustomerSnapshot(PartySnapshot):
    pass

class CompanySnapshot(PartySnapshot):
    logo: str | None = None
