# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Literal
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_aromanotes.db"

    FRONTEND_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Blob storage (product images, bank slips)
    UPLOAD_DIR: str = "static/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    # Store defaults used until the settings document exists
    DEFAULT_DELIVERY_FEE: float = 350
    ORDER_NUMBER_PREFIX: str = "AN"

    # Public catalog source: local product documents or the headless content API
    CATALOG_SOURCE: Literal["database", "content"] = "database"
    CONTENT_PROJECT_ID: str = "ief0s3av"
    CONTENT_DATASET: str = "production"
    CONTENT_API_VERSION: str = "v2023-10-01"
    CONTENT_API_URL: str = ""

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
