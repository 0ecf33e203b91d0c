"""HTTP client normalizing product prices into the document currency."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import httpx
from tenacity import AsyncRetrying, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from pricebook.config import Settings
from pricebook.core.money import NumberLike, normalize_currency, to_decimal
from pricebook.errors import ConversionFailure, ValidationError

logger = logging.getLogger(__name__)

CONVERT_PATH = "/currency/convert"
IDENTITY_RATE = Decimal("1")


class _NormalizerBase:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport | httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport
        self.failures: List[ConversionFailure] = []

    def _retry_kwargs(self) -> dict:
        return {
            "stop": stop_after_attempt(self.settings.currency_retry_attempts),
            "wait": wait_exponential(multiplier=self.settings.currency_retry_backoff_seconds, max=5),
            "retry": retry_if_exception_type(httpx.TransportError),
            "reraise": True,
        }

    @staticmethod
    def _payload(source: str, target: str) -> Dict[str, object]:
        # Ask for the rate of one unit so the result can be reused for every amount.
        return {"fromCurrency": source, "toCurrency": target, "amount": 1}

    def _parse_rate(self, response: httpx.Response, source: str, target: str) -> Decimal:
        if not response.is_success:
            return self._fallback(source, target, f"HTTP {response.status_code}", response.status_code)
        try:
            data = response.json()
        except ValueError:
            return self._fallback(source, target, "response body is not JSON", response.status_code)
        if not isinstance(data, dict):
            return self._fallback(source, target, "response body is not an object", response.status_code)
        # convertedAmount for one unit may be rounded to cents; exchangeRate is not.
        field = "exchangeRate" if data.get("exchangeRate") is not None else "convertedAmount"
        if data.get(field) is None:
            return self._fallback(source, target, "convertedAmount missing", response.status_code)
        try:
            rate = to_decimal(data[field])
        except ValidationError:
            return self._fallback(source, target, f"{field} is not numeric", response.status_code)
        if rate <= 0:
            return self._fallback(source, target, f"non-positive rate {rate}", response.status_code)
        return rate

    def _fallback(self, source: str, target: str, reason: str, status_code: Optional[int] = None) -> Decimal:
        failure = ConversionFailure(
            from_currency=source,
            to_currency=target,
            reason=reason,
            status_code=status_code,
        )
        self.failures.append(failure)
        logger.warning(
            "Currency conversion %s->%s failed (%s); using amount unconverted",
            source,
            target,
            reason,
            extra={"conversion_failure": failure.to_dict()},
        )
        return IDENTITY_RATE

    @staticmethod
    def _entries(items: Iterable[Tuple[NumberLike, str]]) -> List[Tuple[Decimal, str]]:
        return [(to_decimal(amount), normalize_currency(currency)) for amount, currency in items]

    @staticmethod
    def _pair(from_currency: str, to_currency: str) -> Tuple[str, str]:
        return normalize_currency(from_currency), normalize_currency(to_currency)


class CurrencyNormalizer(_NormalizerBase):
    """Converts amounts through ``POST /currency/convert``.

    Failures never raise: the amount comes back unconverted (rate 1) and the
    failure is logged and appended to :attr:`failures`.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        super().__init__(settings, transport)
        self._client = httpx.Client(
            base_url=settings.currency_service_url,
            timeout=settings.currency_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CurrencyNormalizer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def rate(self, from_currency: str, to_currency: str) -> Decimal:
        source, target = self._pair(from_currency, to_currency)
        if source == target:
            return IDENTITY_RATE
        try:
            response = Retrying(**self._retry_kwargs())(
                self._client.post, CONVERT_PATH, json=self._payload(source, target)
            )
        except httpx.HTTPError as exc:
            return self._fallback(source, target, f"{type(exc).__name__}: {exc}")
        return self._parse_rate(response, source, target)

    def convert(self, amount: NumberLike, from_currency: str, to_currency: str) -> Decimal:
        value = to_decimal(amount)
        source, target = self._pair(from_currency, to_currency)
        if source == target:
            return value
        return value * self.rate(source, target)

    def convert_many(self, items: Iterable[Tuple[NumberLike, str]], to_currency: str) -> List[Decimal]:
        """Convert ``(amount, currency)`` pairs, fetching one rate per distinct currency."""
        entries = self._entries(items)
        target = normalize_currency(to_currency)
        rates: Dict[str, Decimal] = {}
        for _, currency in entries:
            if currency not in rates:
                rates[currency] = self.rate(currency, target)
        return [amount if currency == target else amount * rates[currency] for amount, currency in entries]


class AsyncCurrencyNormalizer(_NormalizerBase):
    """Async twin of :class:`CurrencyNormalizer` used by editing sessions."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        super().__init__(settings, transport)

    async def rate(self, from_currency: str, to_currency: str) -> Decimal:
        source, target = self._pair(from_currency, to_currency)
        if source == target:
            return IDENTITY_RATE
        try:
            async with httpx.AsyncClient(
                base_url=self.settings.currency_service_url,
                timeout=self.settings.currency_timeout_seconds,
                transport=self._transport,
            ) as client:
                async for attempt in AsyncRetrying(**self._retry_kwargs()):
                    with attempt:
                        response = await client.post(CONVERT_PATH, json=self._payload(source, target))
        except httpx.HTTPError as exc:
            return self._fallback(source, target, f"{type(exc).__name__}: {exc}")
        return self._parse_rate(response, source, target)

    async def convert(self, amount: NumberLike, from_currency: str, to_currency: str) -> Decimal:
        value = to_decimal(amount)
        source, target = self._pair(from_currency, to_currency)
        if source == target:
            return value
        return value * await self.rate(source, target)

    async def convert_many(self, items: Iterable[Tuple[NumberLike, str]], to_currency: str) -> List[Decimal]:
        """Async :meth:`CurrencyNormalizer.convert_many`; distinct rates are fetched concurrently."""
        entries = self._entries(items)
        target = normalize_currency(to_currency)
        currencies = list(dict.fromkeys(currency for _, currency in entries))
        fetched = await asyncio.gather(*(self.rate(currency, target) for currency in currencies))
        rates = dict(zip(currencies, fetched))
        return [amount if currency == target else amount * rates[currency] for amount, currency in entries]
