"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode connection strings in code.
"""

import logging.config
import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Budget Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./budget_ledger.db"
    )
    AUTO_CREATE_SCHEMA: bool = (
        os.getenv("AUTO_CREATE_SCHEMA", "true").lower() == "true"
    )

    # Retry discipline for storage access
    DB_MAX_RETRIES: int = int(os.getenv("DB_MAX_RETRIES", "5"))
    DB_RETRY_WAIT_MAX: float = float(os.getenv("DB_RETRY_WAIT_MAX", "2.0"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused for all
    subsequent calls.
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Send all module loggers to the console at the configured level."""
    settings = settings or get_settings()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] {levelname} {name}: {message}",
                "style": "{",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "verbose",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": settings.LOG_LEVEL,
        },
        "loggers": {
            "sqlalchemy.engine": {
                "level": "WARNING",
            },
        },
    })
