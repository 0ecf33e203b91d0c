"""Shared fixtures: settings isolated from the environment and a stub rate service."""
from __future__ import annotations

import json
from decimal import Decimal
from typing import Callable, Dict, List, Tuple

import httpx
import pytest

from pricebook.config import Settings

RATE_SERVICE_URL = "http://rates.test/api"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        base_currency="GHS",
        default_product_currency="USD",
        currency_service_url=RATE_SERVICE_URL,
        currency_timeout_seconds=2,
        currency_retry_attempts=3,
        currency_retry_backoff_seconds=0,
    )


class RateService:
    """Stub for ``POST /currency/convert`` recording every request body."""

    def __init__(self, rates: Dict[Tuple[str, str], str]) -> None:
        self.rates = rates
        self.calls: List[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.calls.append({"path": request.url.path, **payload})
        rate = Decimal(self.rates[(payload["fromCurrency"], payload["toCurrency"])])
        return httpx.Response(200, json={"convertedAmount": str(rate * Decimal(str(payload["amount"])))})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture()
def rate_service() -> Callable[[Dict[Tuple[str, str], str]], RateService]:
    return RateService
