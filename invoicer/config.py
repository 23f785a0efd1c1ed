import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

DEFAULT_REGIONS_FILE = str(Path(__file__).parent / "data" / "regions.json")

class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./invoices.db")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD")
    DEFAULT_INVOICE_TITLE: str = os.getenv("DEFAULT_INVOICE_TITLE", "Invoice")
    DEFAULT_FOOTER_MESSAGE: str = os.getenv("DEFAULT_FOOTER_MESSAGE", "Thank you for your business!")
    DEFAULT_IS_TAX_FREE: bool = False
    DEFAULT_TAX_RATE: float = 0.0
    DEFAULT_CONVENIENCE_FEE: float = 0.0
    DEFAULT_SURCHARGE_PERCENT: float = 0.0
    AUTOSAVE_DELAY_SECONDS: float = 1.0
    AUTOSAVE_MIN_NAME_LENGTH: int = 2
    AUTOSAVE_SAVED_CLEAR_SECONDS: float = 2.0
    AUTOSAVE_ERROR_CLEAR_SECONDS: float = 3.0
    AUTOSAVE_SESSION_TTL_SECONDS: float = 900.0
    REGIONS_FILE: str = os.getenv("REGIONS_FILE", DEFAULT_REGIONS_FILE)

    class Config:
        env_file = ".env"

settings = Settings()
