"""
PayGate Configuration Module

Loads environment variables for backend configuration.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field can be overridden with a PAYGATE_-prefixed variable,
    e.g. PAYGATE_DATABASE_PATH=/var/lib/paygate/paygate.db.
    """

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Credentials
    bcrypt_rounds: int = 12  # 2^12 = 4096 rounds
    api_key_prefix: str = "sk_live_"

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Database
    database_path: str = "./paygate.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Adds the exception class name to 500 responses; keep off in production
    expose_error_types: bool = False

    model_config = SettingsConfigDict(
        env_prefix="PAYGATE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
