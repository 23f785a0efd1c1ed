from pydantic import BaseModel, Field

class LineItem(BaseModel):
    id: str
    description: str = ""
    quantity: float = Field(default=1, ge=0, allow_inf_nan=False)
    rate: float = Field(default=0, ge=0, allow_inf_nan=False)
    amount: float = 0

class LedgerOperation(BaseModel):
    op: str
    id: str | None = None
    field: str | None = None
    value: str | float | None = None
    index: int | None = None
