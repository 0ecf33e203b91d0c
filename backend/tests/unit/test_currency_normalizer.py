from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

import httpx
import pytest

from pricebook.services.currency import AsyncCurrencyNormalizer, CurrencyNormalizer


def failing_transport(status_code: int, **response_kwargs: object) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **response_kwargs)

    return httpx.MockTransport(handler)


def test_same_currency_returns_amount_without_request(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    with CurrencyNormalizer(settings, transport=httpx.MockTransport(handler)) as normalizer:
        assert normalizer.convert(Decimal("123.45"), "GHS", "GHS") == Decimal("123.45")
        assert normalizer.convert(Decimal("123.45"), "ghs", "GHS") == Decimal("123.45")


def test_convert_requests_unit_rate_and_multiplies(settings, rate_service) -> None:
    service = rate_service({("USD", "GHS"): "15.5"})
    with CurrencyNormalizer(settings, transport=service.transport()) as normalizer:
        assert normalizer.convert(10, "USD", "GHS") == Decimal("155.0")

    assert service.calls == [
        {"path": "/api/currency/convert", "fromCurrency": "USD", "toCurrency": "GHS", "amount": 1}
    ]


def test_http_500_falls_back_to_original_amount_and_logs(settings, caplog) -> None:
    transport = failing_transport(500, json={"error": "boom"})
    caplog.set_level(logging.WARNING, logger="pricebook.services.currency")

    with CurrencyNormalizer(settings, transport=transport) as normalizer:
        assert normalizer.convert(Decimal("42.10"), "USD", "GHS") == Decimal("42.10")

    assert len(normalizer.failures) == 1
    assert normalizer.failures[0].status_code == 500
    assert any("HTTP 500" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    "body",
    [
        {"text": "not json"},
        {"json": {"rate": 15}},
        {"json": {"convertedAmount": "abc"}},
        {"json": {"convertedAmount": 0}},
        {"json": [1, 2, 3]},
    ],
)
def test_malformed_bodies_fall_back(settings, body: dict) -> None:
    with CurrencyNormalizer(settings, transport=failing_transport(200, **body)) as normalizer:
        assert normalizer.convert(7, "EUR", "GHS") == Decimal("7")
        assert normalizer.rate("EUR", "GHS") == Decimal("1")
    assert len(normalizer.failures) == 2


def test_transport_errors_are_retried_then_fall_back(settings) -> None:
    attempts: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with CurrencyNormalizer(settings, transport=httpx.MockTransport(handler)) as normalizer:
        assert normalizer.convert(5, "USD", "GHS") == Decimal("5")

    assert len(attempts) == settings.currency_retry_attempts
    assert "ConnectError" in normalizer.failures[0].reason


def test_transient_transport_error_recovers(settings) -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"convertedAmount": 16})

    with CurrencyNormalizer(settings, transport=httpx.MockTransport(handler)) as normalizer:
        assert normalizer.convert(2, "EUR", "GHS") == Decimal("32")
    assert normalizer.failures == []


def test_convert_many_fetches_one_rate_per_currency(settings, rate_service) -> None:
    service = rate_service({("USD", "GHS"): "15", ("EUR", "GHS"): "16"})
    items = [(10, "USD"), (1, "EUR"), (2, "USD"), (3, "GHS"), (4, "eur")]

    with CurrencyNormalizer(settings, transport=service.transport()) as normalizer:
        converted = normalizer.convert_many(items, "GHS")

    assert converted == [Decimal("150"), Decimal("16"), Decimal("30"), Decimal("3"), Decimal("64")]
    assert sorted(call["fromCurrency"] for call in service.calls) == ["EUR", "USD"]


def test_async_normalizer_matches_sync_contract(settings, rate_service) -> None:
    service = rate_service({("GBP", "GHS"): "18"})
    normalizer = AsyncCurrencyNormalizer(settings, transport=service.transport())

    async def scenario() -> tuple[Decimal, Decimal]:
        converted = await normalizer.convert(Decimal("2.5"), "GBP", "GHS")
        same = await normalizer.convert(Decimal("2.5"), "GHS", "GHS")
        return converted, same

    converted, same = asyncio.run(scenario())
    assert converted == Decimal("45.0")
    assert same == Decimal("2.5")
    assert len(service.calls) == 1


def test_async_normalizer_falls_back_on_server_error(settings) -> None:
    normalizer = AsyncCurrencyNormalizer(settings, transport=failing_transport(503))
    assert asyncio.run(normalizer.convert(9, "USD", "GHS")) == Decimal("9")
    assert normalizer.failures[0].status_code == 503


def test_exchange_rate_field_wins_over_rounded_converted_amount(settings) -> None:
    transport = failing_transport(200, json={"convertedAmount": "0.10", "exchangeRate": "0.1034"})
    with CurrencyNormalizer(settings, transport=transport) as normalizer:
        assert normalizer.convert(10000, "JPY", "GHS") == Decimal("1034.0000")
    assert normalizer.failures == []


def test_async_convert_many_fetches_one_rate_per_currency(settings, rate_service) -> None:
    service = rate_service({("USD", "GHS"): "15", ("EUR", "GHS"): "16"})
    normalizer = AsyncCurrencyNormalizer(settings, transport=service.transport())
    items = [(10, "USD"), (1, "EUR"), (2, "usd"), (3, "GHS")]

    converted = asyncio.run(normalizer.convert_many(items, "GHS"))

    assert converted == [Decimal("150"), Decimal("16"), Decimal("30"), Decimal("3")]
    assert sorted(call["fromCurrency"] for call in service.calls) == ["EUR", "USD"]
