"""Pure pricing helpers: money, tax sets, line items and document totals."""

from .line_items import compute_line, recompute_line, recompute_lines
from .money import normalize_currency, round_money, to_decimal
from .tax_set import DEFAULT_TAXES, TaxSet
from .totals import aggregate

__all__ = [
    "compute_line",
    "recompute_line",
    "recompute_lines",
    "normalize_currency",
    "round_money",
    "to_decimal",
    "DEFAULT_TAXES",
    "TaxSet",
    "aggregate",
]
