from __future__ import annotations

from decimal import Decimal

import pytest

from pricebook.core.line_items import compute_line, recompute_line
from pricebook.core.tax_set import TaxSet
from pricebook.errors import ValidationError
from pricebook.schemas import TaxRate


def vat(rate: str = "15") -> TaxSet:
    return TaxSet([TaxRate(id="vat", name="VAT", rate=rate)])


def test_tax_exclusive_line_keeps_tax_out_of_total() -> None:
    line = compute_line(2, 100, 10, vat(), tax_inclusive=False)
    assert line.taxes[0].amount == Decimal("27.00")
    assert line.total_tax == Decimal("27.00")
    assert line.line_total == Decimal("180.00")


def test_tax_inclusive_line_adds_tax_to_total() -> None:
    line = compute_line(2, 100, 10, vat(), tax_inclusive=True)
    assert line.taxes[0].amount == Decimal("27.00")
    assert line.line_total == Decimal("207.00")


def test_after_discount_plus_tax_is_equal_in_both_modes() -> None:
    exclusive = compute_line("3", "19.99", "5", TaxSet.default(), tax_inclusive=False)
    inclusive = compute_line("3", "19.99", "5", TaxSet.default(), tax_inclusive=True)
    assert exclusive.line_total + exclusive.total_tax == inclusive.line_total
    assert [tax.amount for tax in exclusive.taxes] == [tax.amount for tax in inclusive.taxes]


def test_every_tax_applies_to_the_discounted_base() -> None:
    line = compute_line(1, 200, 50, TaxSet.default(), tax_inclusive=False)
    amounts = {tax.tax_id: tax.amount for tax in line.taxes}
    assert amounts == {
        "vat": Decimal("15.00"),
        "nhil": Decimal("2.50"),
        "getfund": Decimal("2.50"),
        "covid": Decimal("1.00"),
    }
    assert line.line_total == Decimal("100.00")


@pytest.mark.parametrize("quantity, unit_price", [(0, 100), (5, 0), (0, 0)])
def test_zero_quantity_or_price_yields_zero_amounts(quantity: int, unit_price: int) -> None:
    line = compute_line(quantity, unit_price, 25, TaxSet.default(), tax_inclusive=True)
    assert line.line_total == Decimal("0")
    assert all(tax.amount == Decimal("0") for tax in line.taxes)


def test_full_discount_yields_zero_total() -> None:
    line = compute_line(4, "12.5", 100, vat(), tax_inclusive=True)
    assert line.line_total == Decimal("0")


def test_amounts_are_rounded_half_up_to_cents() -> None:
    line = compute_line(1, "0.10", 0, vat("25"), tax_inclusive=True)
    # 0.10 * 25% = 0.025 -> 0.03
    assert line.taxes[0].amount == Decimal("0.03")
    assert line.line_total == Decimal("0.13")


def test_compute_line_is_idempotent() -> None:
    taxes = TaxSet.default()
    first = compute_line(7, "13.37", "12.5", taxes, tax_inclusive=True, id="line-1")
    second = compute_line(7, "13.37", "12.5", taxes, tax_inclusive=True, id="line-1")
    assert first == second


@pytest.mark.parametrize("quantity, unit_price", [(-1, 10), (1, -10)])
def test_negative_inputs_are_rejected(quantity: int, unit_price: int) -> None:
    with pytest.raises(ValidationError):
        compute_line(quantity, unit_price, 0, vat(), tax_inclusive=False)


def test_line_total_is_never_negative_for_valid_inputs() -> None:
    taxes = TaxSet.default()
    for quantity in (0, 1, 3):
        for price in ("0", "0.01", "99.99"):
            for discount in (0, 33, 100):
                line = compute_line(quantity, price, discount, taxes, tax_inclusive=bool(discount % 2))
                assert line.line_total >= 0


def test_recompute_line_keeps_identity_and_uses_new_rates() -> None:
    line = compute_line(2, 100, 10, vat(), tax_inclusive=True, id="abc", product_id="p-1", sku="SKU-1")
    updated = recompute_line(line, vat("20"), tax_inclusive=True)
    assert (updated.id, updated.product_id, updated.sku) == ("abc", "p-1", "SKU-1")
    assert updated.taxes[0].amount == Decimal("36.00")
    assert updated.line_total == Decimal("216.00")


@pytest.mark.parametrize("discount", [-1, "100.01", 150])
def test_out_of_range_discount_is_rejected(discount) -> None:
    with pytest.raises(ValidationError):
        compute_line(1, 10, discount, vat(), tax_inclusive=False)
