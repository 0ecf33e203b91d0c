from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Union

from pricebook.core.money import HUNDRED, ZERO, NumberLike, round_money, to_decimal
from pricebook.core.tax_set import TaxSet
from pricebook.errors import ValidationError
from pricebook.schemas import LineItem, LineTax, TaxRate

TaxesLike = Union[TaxSet, Iterable[TaxRate]]


def line_base(quantity: Decimal, unit_price: Decimal, discount: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(after_discount, discount_amount)`` for a line, unrounded."""
    subtotal = quantity * unit_price
    discount_amount = subtotal * (discount / HUNDRED)
    return subtotal - discount_amount, discount_amount


def compute_line(
    quantity: NumberLike,
    unit_price: NumberLike,
    discount: NumberLike,
    taxes: TaxesLike,
    tax_inclusive: bool,
    **line_fields: Any,
) -> LineItem:
    """Price one line: discount first, then every tax on the discounted base.

    ``discount`` is a percentage in [0, 100]; callers clamp user input.
    Extra keyword arguments (``id``, ``product_id``, ``product_name``, ``sku``)
    are carried onto the resulting :class:`LineItem`.
    """
    qty = to_decimal(quantity)
    price = to_decimal(unit_price)
    pct = to_decimal(discount)
    if qty < 0:
        raise ValidationError(f"Quantity must be >= 0 (got {qty})")
    if price < 0:
        raise ValidationError(f"Unit price must be >= 0 (got {price})")
    if not ZERO <= pct <= HUNDRED:
        raise ValidationError(f"Discount must be between 0 and 100 (got {pct})")

    after_discount, _ = line_base(qty, price, pct)
    base = round_money(after_discount)

    line_taxes: List[LineTax] = []
    total_tax = ZERO
    for tax in taxes:
        amount = round_money(after_discount * (tax.rate / HUNDRED))
        total_tax += amount
        line_taxes.append(LineTax(tax_id=tax.id, name=tax.name, rate=tax.rate, amount=amount))

    # Displayed figures are built from rounded parts so base + tax always adds up.
    line_total = base + total_tax if tax_inclusive else base

    return LineItem(
        quantity=qty,
        unit_price=price,
        discount=pct,
        taxes=line_taxes,
        line_total=line_total,
        **line_fields,
    )


def recompute_line(line: LineItem, taxes: TaxesLike, tax_inclusive: bool) -> LineItem:
    """Return a fresh copy of ``line`` priced against the current taxes."""
    return compute_line(
        line.quantity,
        line.unit_price,
        line.discount,
        taxes,
        tax_inclusive,
        id=line.id,
        product_id=line.product_id,
        product_name=line.product_name,
        sku=line.sku,
    )


def recompute_lines(lines: Iterable[LineItem], taxes: TaxesLike, tax_inclusive: bool) -> List[LineItem]:
    tax_list = list(taxes)
    return [recompute_line(line, tax_list, tax_inclusive) for line in lines]
