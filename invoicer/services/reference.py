import json
from functools import lru_cache

from pydantic import BaseModel

from invoicer.config import settings

class Regions(BaseModel):
    countries: list[str]
    states: list[str]

@lru_cache
def load_regions(path: str | None = None) -> Regions:
    with open(path or settings.REGIONS_FILE, "r") as f:
        return Regions(**json.load(f))
