# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    FRONTEND_URL: str = "http://localhost:5173"

    # Store details printed on documents
    STORE_NAME: str = "ATAYATOKO"

    # Warehouse used when a request does not name one
    DEFAULT_WAREHOUSE_CODE: str = "gudang-utama"

    # Flat fee charged for the store's own courier
    STORE_COURIER_FEE: int = 15000

    # Optional endpoint receiving low-stock alerts
    STOCK_WEBHOOK_URL: Optional[str] = None
    STOCK_WEBHOOK_TIMEOUT: float = 5.0

    # Where generated goods-received notes are stored
    DOCUMENTS_DIR: str = "storage/grn"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
