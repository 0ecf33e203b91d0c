"""In-process exchange-rate table backing the reference conversion endpoint."""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping, Optional, Tuple

from pricebook.core.money import NumberLike, normalize_currency, round_money, to_decimal
from pricebook.errors import ValidationError
from pricebook.schemas import ConversionResult

logger = logging.getLogger(__name__)

RATE_PLACES = Decimal("0.0001")

STATIC_FALLBACK_RATES: Dict[str, Dict[str, Decimal]] = {
    "USD": {"GHS": Decimal("15")},
    "EUR": {"GHS": Decimal("16")},
    "GBP": {"GHS": Decimal("18")},
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "GHS": "GH₵",
    "EUR": "€",
    "GBP": "£",
    "NGN": "₦",
    "KES": "KSh",
    "ZAR": "R",
    "EGP": "E£",
    "MAD": "MAD",
    "TND": "DT",
}


class ExchangeRateTable:
    """Direct rates, falling back to inverted reverse rates, then static defaults."""

    def __init__(
        self,
        rates: Optional[Mapping[str, Mapping[str, NumberLike]]] = None,
        *,
        static_fallback: Optional[Mapping[str, Mapping[str, Decimal]]] = None,
    ) -> None:
        self._rates: Dict[Tuple[str, str], Decimal] = {}
        self._static = static_fallback if static_fallback is not None else STATIC_FALLBACK_RATES
        for source, targets in (rates or {}).items():
            for target, rate in targets.items():
                self.set_rate(source, target, rate)

    def set_rate(self, from_currency: str, to_currency: str, rate: NumberLike) -> None:
        value = to_decimal(rate)
        if value <= 0:
            raise ValidationError(f"Exchange rate must be > 0 (got {value})")
        key = (normalize_currency(from_currency), normalize_currency(to_currency))
        self._rates[key] = value

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if source == target:
            return Decimal("1")

        direct = self._rates.get((source, target))
        if direct is not None:
            return direct

        reverse = self._rates.get((target, source))
        if reverse:
            return (Decimal("1") / reverse).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
        return None

    def convert(self, from_currency: str, to_currency: str, amount: NumberLike) -> ConversionResult:
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        value = to_decimal(amount)

        if source == target:
            return self._result(source, target, value, value, Decimal("1"), "same_currency")

        rate = self.get_rate(source, target)
        if rate is not None:
            return self._result(source, target, value, round_money(value * rate), rate, "table")

        fallback = self._static.get(source, {}).get(target)
        if fallback is not None:
            logger.warning(
                "No exchange rate for %s->%s; using static fallback %s", source, target, fallback
            )
            return self._result(source, target, value, round_money(value * fallback), fallback, "static_fallback")

        logger.warning("No exchange rate for %s->%s; returning amount as-is", source, target)
        return self._result(source, target, value, value, Decimal("1"), "fallback")

    @staticmethod
    def _result(
        source: str,
        target: str,
        amount: Decimal,
        converted: Decimal,
        rate: Decimal,
        origin: str,
    ) -> ConversionResult:
        return ConversionResult(
            from_currency=source,
            to_currency=target,
            amount=amount,
            converted_amount=converted,
            exchange_rate=rate,
            source=origin,
        )


def currency_symbol(currency_code: str) -> str:
    return CURRENCY_SYMBOLS.get((currency_code or "").upper(), currency_code)


def format_currency(amount: NumberLike, currency_code: str, symbol: Optional[str] = None) -> str:
    """Format ``amount`` with two decimals and thousands separators, e.g. ``GH₵1,234.50``."""
    return f"{symbol or currency_symbol(currency_code)}{round_money(amount):,.2f}"
