from pydantic import BaseModel, Field

class FeeConfiguration(BaseModel):
    is_tax_free: bool = False
    tax_rate: float = Field(default=0, ge=0, allow_inf_nan=False)
    has_convenience_fee: bool = False
    convenience_fee: float = Field(default=0, ge=0, allow_inf_nan=False)
    has_surcharge: bool = False
    surcharge_percent: float = Field(default=0, ge=0, allow_inf_nan=False)

class Totals(BaseModel):
    subtotal: float
    surcharge: float
    convenience_fee: float
    tax: float
    total: float
