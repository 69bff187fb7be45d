"""Configuration management using Pydantic Settings"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    # Monobank
    mono_token: str = ""
    mono_api_base: str = "https://api.monobank.ua"

    # Account pairs: "monoId1:ledgerId1,monoId2:ledgerId2"
    account_ids: str = ""

    # ISO 8601 duration, e.g. P6M or P30D
    lookback_period: timedelta = timedelta(days=180)

    # Ledger database
    database_url: str = "sqlite:///./ledger.db"

    # Service
    service_name: str = "monosync"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0
    rate_limit_backoff_seconds: float = 60.0
    max_rate_limit_retries: int | None = None  # None retries until the provider clears the limit

    def account_pairs(self) -> Dict[str, str]:
        """Parse ``account_ids`` into a Monobank account id -> ledger account id map"""
        pairs: Dict[str, str] = {}
        for entry in self.account_ids.split(","):
            entry = entry.strip()
            if not entry:
                continue
            mono_id, sep, ledger_id = entry.partition(":")
            if not sep or not mono_id.strip() or not ledger_id.strip():
                logging.warning("Ignoring malformed account mapping", extra={"entry": entry})
                continue
            pairs[mono_id.strip()] = ledger_id.strip()
        return pairs


@dataclass(frozen=True)
class ImportConfig:
    """Immutable per-run settings for the statement importer"""

    lookback: timedelta = timedelta(days=180)
    namespace: str = "mono"
    max_window_days: int = 31
    rate_limit_backoff_seconds: float = 60.0
    max_rate_limit_retries: int | None = None
    starting_balance_payee: str = "Starting Balance"
    starting_balance_category_name: str = "Starting Balances"
    default_starting_balance_category_id: str = "506e8d9d-7ed0-4397-84e4-07a9185dc6b2"

    @classmethod
    def from_settings(cls, settings: Settings, lookback: timedelta | None = None) -> "ImportConfig":
        return cls(
            lookback=lookback or settings.lookback_period,
            rate_limit_backoff_seconds=settings.rate_limit_backoff_seconds,
            max_rate_limit_retries=settings.max_rate_limit_retries,
        )

    @property
    def imported_id_prefix(self) -> str:
        return f"{self.namespace}|"


@lru_cache
def get_settings() -> Settings:
    """Settings are read from the environment once per process"""
    return Settings()
