# book_inventory/settings.py
"""
Book Inventory settings.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # File Storage (logs)
    # =========================================================================
    INVENTORY_DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "inventory-data"),
        validation_alias=AliasChoices("INVENTORY_DATA_ROOT", "bi_data_root"),
    )

    # =========================================================================
    # Database
    # =========================================================================
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="book_inventory", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Full URL wins over the DB_* parts (e.g. sqlite+aiosqlite:// for local runs)
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "bi_database_url"),
    )

    # Connection pool settings
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")
    DB_CREATE_ALL: bool = Field(
        default=False,
        validation_alias="DB_CREATE_ALL",
        description="Create missing tables on startup",
    )

    # =========================================================================
    # Identity (passed in by the session layer in front of this service)
    # =========================================================================
    TENANT_HEADER: str = Field(default="X-Tenant-Id", validation_alias="TENANT_HEADER")
    USER_HEADER: str = Field(default="X-User-Id", validation_alias="USER_HEADER")

    # =========================================================================
    # Import limits
    # =========================================================================
    IMPORT_MAX_ROWS: int = Field(default=5000, validation_alias="IMPORT_MAX_ROWS")
    IMPORT_MAX_BYTES: int = Field(default=10 * 1024 * 1024, validation_alias="IMPORT_MAX_BYTES")

    # =========================================================================
    # HTTP / logging
    # =========================================================================
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        validation_alias="CORS_ORIGINS",
    )
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=True, validation_alias="LOG_TO_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    def database_url(self) -> str:
        """Async database URL; DATABASE_URL or postgresql+asyncpg built from DB_* parts."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://"
            f"{self.DB_USER}:{self.DB_PASSWORD}@"
            f"{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


settings = Settings()
