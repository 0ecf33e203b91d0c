from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable

from pricebook.core.line_items import line_base
from pricebook.core.money import ZERO, round_money
from pricebook.schemas import DocumentTotals, LineItem

logger = logging.getLogger(__name__)


def aggregate(lines: Iterable[LineItem], tax_inclusive: bool) -> DocumentTotals:
    """Sum per-line bases, discounts and per-tax amounts into document totals.

    ``total`` follows the display mode (sum of line totals); ``grand_total``
    is the payable amount and does not depend on the mode.
    """
    subtotal = ZERO
    total_discount = ZERO
    taxes_by_type: Dict[str, Decimal] = {}
    count = 0

    for line in lines:
        count += 1
        after_discount, discount_amount = line_base(line.quantity, line.unit_price, line.discount)
        # Same cent rounding as the displayed line figures.
        subtotal += round_money(after_discount)
        total_discount += round_money(discount_amount)
        for tax in line.taxes:
            taxes_by_type[tax.tax_id] = taxes_by_type.get(tax.tax_id, ZERO) + tax.amount

    total_tax = sum(taxes_by_type.values(), ZERO)
    grand_total = subtotal + total_tax
    total = grand_total if tax_inclusive else subtotal
    logger.debug("Aggregated %d lines (tax_inclusive=%s)", count, tax_inclusive)

    return DocumentTotals(
        subtotal=round_money(subtotal),
        total_discount=round_money(total_discount),
        taxes_by_type={tax_id: round_money(amount) for tax_id, amount in taxes_by_type.items()},
        total_tax=round_money(total_tax),
        total=round_money(total),
        grand_total=round_money(grand_total),
        tax_inclusive=tax_inclusive,
        show_tax_breakdown=not tax_inclusive,
    )
