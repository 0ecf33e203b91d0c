"""Application configuration using environment variables."""
from __future__ import annotations

import json
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PRICEBOOK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_path: str = Field("/api")

    # Documents are displayed and persisted in this currency
    base_currency: str = Field("GHS", min_length=3, max_length=3)
    default_product_currency: str = Field("USD", min_length=3, max_length=3)

    # Remote conversion service
    currency_service_url: str = Field("http://localhost:3000/api")
    currency_timeout_seconds: float = Field(10.0, gt=0)
    currency_retry_attempts: int = Field(3, ge=1)
    currency_retry_backoff_seconds: float = Field(0.5, ge=0)

    # Rates served by the reference /currency/convert endpoint
    exchange_rates: Dict[str, Dict[str, Decimal]] = Field(default_factory=dict)

    log_level: str = Field("INFO")

    @field_validator("base_currency", "default_product_currency", mode="before")
    @classmethod
    def normalize_currency(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("exchange_rates", mode="before")
    @classmethod
    def parse_exchange_rates(cls, value: Any) -> Dict[str, Dict[str, Any]]:
        if value in (None, ""):
            return {}
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("PRICEBOOK_EXCHANGE_RATES must be valid JSON") from exc
        if not isinstance(value, dict):
            raise ValueError("PRICEBOOK_EXCHANGE_RATES must decode to a mapping")
        normalized: Dict[str, Dict[str, Any]] = {}
        for source, targets in value.items():
            if not isinstance(targets, dict):
                raise ValueError("PRICEBOOK_EXCHANGE_RATES values must be mappings")
            normalized[str(source).upper()] = {str(target).upper(): rate for target, rate in targets.items()}
        return normalized

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if not value:
            return "INFO"
        return str(value).strip().upper()


@lru_cache()
def get_settings() -> Settings:
    return Settings()
