"""
Core Config - Application settings read from STOCKLEDGER_* environment variables.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the reporting service."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./data/stockledger.db", description="SQLAlchemy database URL")
    reconciliation_tolerance: Decimal = Field(
        default=Decimal("0.01"), ge=0, description="Max |assets - (liabilities + equity)| for a reconciled sheet"
    )
    capital: Decimal = Field(default=Decimal("0"), description="Owner capital reported on the balance sheet")
    fiscal_year_start_month: int = Field(default=1, ge=1, le=12, description="First month of the fiscal year")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(default="console", description="Log output format")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
