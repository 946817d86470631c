"""
Configuration management for the payroll engine.
Centralizes environment settings used by the persistence adapters and scripts.

Business rules (work rules, rates, holidays, bonuses, time zone) are never
read from here by the calculation functions; they are passed in explicitly.
"""
from __future__ import annotations

import os
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Central configuration class for the payroll engine."""

    # Database configuration (only needed by payroll.database / data_access)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
    DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    # Time zone
    DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "Asia/Jerusalem")
    LOCAL_TZ = ZoneInfo(DEFAULT_TIMEZONE)
    TIMEZONE_CACHE_TTL: int = int(os.getenv("TIMEZONE_CACHE_TTL", "60"))  # seconds

    # Monetary input bounds (in shekels)
    MAX_MONETARY_AMOUNT: float = float(os.getenv("MAX_MONETARY_AMOUNT", "100000"))
    MIN_MONETARY_AMOUNT: float = float(os.getenv("MIN_MONETARY_AMOUNT", "0"))

    # Longest plausible single shift (in minutes)
    MAX_SHIFT_MINUTES: int = int(os.getenv("MAX_SHIFT_MINUTES", str(16 * 60)))

    def has_database(self) -> bool:
        """Check if a database URL was configured."""
        return bool(self.DATABASE_URL)

    @classmethod
    def from_env(cls) -> Config:
        """Create Config instance from environment variables."""
        return cls()


# Global config instance
config = Config.from_env()
