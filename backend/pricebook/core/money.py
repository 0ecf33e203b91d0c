from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from pricebook.errors import ValidationError

NumberLike = Union[str, int, float, Decimal, None]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def to_decimal(value: NumberLike) -> Decimal:
    """Convert native or textual numbers ("1,234.50") to Decimal; blanks become 0."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValidationError("Boolean is not a monetary amount")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1
        return Decimal(str(value))

    text = str(value).strip().replace(",", "")
    if not text:
        return ZERO
    try:
        result = Decimal(text)
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"Invalid numeric value: {value!r}")
    return result


def round_money(value: NumberLike) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_currency(code: str) -> str:
    normalized = (code or "").strip().upper()
    if not _CURRENCY_RE.match(normalized):
        raise ValidationError(f"Invalid currency code: {code!r}")
    return normalized
