"""
Configuration management for the shift payroll engine.
Centralizes all configuration settings and environment variables.
"""
from __future__ import annotations

import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Central configuration class for the application."""

    # Application version
    VERSION: str = "1.0.0"

    # Database configuration (only needed by the data providers)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
    DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

    # Application configuration
    DEBUG: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")

    # Logging configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: str = os.getenv("LOG_FILE", "")

    # Work rules row loaded by the work-rules provider
    WORK_RULES_ID: int = int(os.getenv("WORK_RULES_ID", "1"))

    # Shift classification happens in local wall-clock time
    LOCAL_TZ = ZoneInfo(os.getenv("LOCAL_TZ", "Asia/Jerusalem"))

    @classmethod
    def from_env(cls) -> Config:
        """Create Config instance from environment variables."""
        return cls()

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.DEBUG


# Global config instance
config = Config.from_env()
