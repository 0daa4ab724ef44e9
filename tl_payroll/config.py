"""
TL Payroll Core - Configuration Settings

Application configuration using Pydantic Settings. Environment variables
use the TL_PAYROLL_ prefix and may also be loaded from a .env file.

Only the HTTP layer reads settings; the payroll core takes everything it
needs as explicit arguments.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TL_PAYROLL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "TL Payroll Core"
    app_env: str = "development"
    debug: bool = False
    api_version: str = "v1"
    log_level: str = "INFO"

    # ===========================================
    # PAYROLL DEFAULTS
    # ===========================================
    currency: str = "USD"

    # Used in bank file headers when a request does not name an originator
    default_originator_name: str = ""
    default_debit_account: str = ""

    # ===========================================
    # CORS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def api_prefix(self) -> str:
        return f"/api/{self.api_version}"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
