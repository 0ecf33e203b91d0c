"""Editing session for one invoice or quotation."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Set, Tuple

from pricebook.config import Settings
from pricebook.core.line_items import compute_line, recompute_line, recompute_lines
from pricebook.core.money import HUNDRED, ZERO, NumberLike, normalize_currency, round_money, to_decimal
from pricebook.core.tax_set import TaxSet
from pricebook.core.totals import aggregate
from pricebook.errors import ValidationError
from pricebook.schemas import Document, DocumentKind, DocumentTotals, LineItem, ProductPricing, TaxRate
from pricebook.services.currency import AsyncCurrencyNormalizer, CurrencyNormalizer
from pricebook.services.sequencing import RequestSequencer

logger = logging.getLogger(__name__)


def clamp_discount(value: NumberLike) -> Decimal:
    return min(max(to_decimal(value), ZERO), HUNDRED)


class DocumentEditor:
    """Owns the lines and the tax set of a document being edited.

    Lines are recomputed whenever their inputs change, and all of them are
    recomputed when the tax set or the tax mode changes. Prices are normalized
    into ``settings.base_currency`` when products are added.
    """

    def __init__(
        self,
        kind: DocumentKind = "invoice",
        *,
        settings: Settings,
        normalizer: Optional[CurrencyNormalizer] = None,
        async_normalizer: Optional[AsyncCurrencyNormalizer] = None,
        tax_set: Optional[TaxSet] = None,
        tax_inclusive: bool = False,
    ) -> None:
        self.kind = kind
        self.settings = settings
        self.currency = normalize_currency(settings.base_currency)
        self.normalizer = normalizer
        self.async_normalizer = async_normalizer
        self.tax_set = tax_set if tax_set is not None else TaxSet.default()
        self.tax_set.subscribe(self._on_taxes_changed)
        self._tax_inclusive = tax_inclusive
        self._lines: List[LineItem] = []
        self._pending: Set[str] = set()
        self._sequencer = RequestSequencer()

    # Queries -------------------------------------------------------------
    @property
    def lines(self) -> List[LineItem]:
        return list(self._lines)

    @property
    def tax_inclusive(self) -> bool:
        return self._tax_inclusive

    def get_line(self, line_id: str) -> LineItem:
        for line in self._lines:
            if line.id == line_id:
                return line
        raise ValidationError(f"Unknown line: {line_id}")

    def is_pending(self, line_id: str) -> bool:
        """True while a price conversion for the line is in flight."""
        return line_id in self._pending

    def totals(self) -> DocumentTotals:
        return aggregate(self._lines, self._tax_inclusive)

    def to_document(self, number: Optional[str] = None) -> Document:
        return Document(
            number=number,
            kind=self.kind,
            currency=self.currency,
            tax_inclusive=self._tax_inclusive,
            taxes=self.tax_set.as_list(),
            lines=self.lines,
            totals=self.totals(),
        )

    def validate_for_save(self) -> None:
        if not self._lines:
            raise ValidationError("Add at least one product")
        if self._pending:
            raise ValidationError("Prices are still being converted")

    # Prices --------------------------------------------------------------
    def source_price(self, product: ProductPricing) -> Tuple[Decimal, str]:
        """Amount and currency a product is priced in; ``original_price`` wins."""
        base_currency = product.base_currency or self.settings.default_product_currency
        if product.original_price is not None:
            currency = product.original_price_currency or base_currency
            return product.original_price, normalize_currency(currency)
        return to_decimal(product.price), normalize_currency(base_currency)

    def resolve_unit_price(self, product: ProductPricing) -> Decimal:
        amount, currency = self.source_price(product)
        if currency == self.currency or amount == ZERO:
            return amount
        if self.normalizer is None:
            raise ValidationError("No currency normalizer configured for foreign-currency products")
        return round_money(self.normalizer.convert(amount, currency, self.currency))

    async def resolve_unit_price_async(self, product: ProductPricing) -> Decimal:
        amount, currency = self.source_price(product)
        if currency == self.currency or amount == ZERO:
            return amount
        if self.async_normalizer is None:
            raise ValidationError("No async currency normalizer configured for foreign-currency products")
        return round_money(await self.async_normalizer.convert(amount, currency, self.currency))

    # Lines ---------------------------------------------------------------
    def add_product(self, product: ProductPricing, quantity: NumberLike = 1) -> LineItem:
        line = self._price_new_line(product, quantity, self.resolve_unit_price(product))
        self._lines.append(line)
        logger.info(
            "Line added",
            extra={"line_id": line.id, "product_id": product.id, "unit_price": str(line.unit_price)},
        )
        return line

    async def add_product_async(self, product: ProductPricing, quantity: NumberLike = 1) -> LineItem:
        placeholder = self._price_new_line(product, quantity, ZERO)
        self._lines.append(placeholder)
        await self.reprice_line_async(placeholder.id, product)
        return self.get_line(placeholder.id)

    async def reprice_line_async(self, line_id: str, product: ProductPricing) -> Optional[LineItem]:
        """Re-resolve a line's price from ``product``; stale results are dropped.

        Returns the updated line, or ``None`` when a newer request for the same
        line was issued meanwhile (or the line was removed).
        """
        self.get_line(line_id)
        token = self._sequencer.issue(line_id)
        self._pending.add(line_id)
        try:
            unit_price = await self.resolve_unit_price_async(product)
        except ValidationError:
            if self._sequencer.is_current(line_id, token):
                self._pending.discard(line_id)
            raise
        return self._sequencer.apply(line_id, token, lambda: self._finish_reprice(line_id, product, unit_price))

    def update_line(
        self,
        line_id: str,
        *,
        quantity: NumberLike = None,
        unit_price: NumberLike = None,
        discount: NumberLike = None,
    ) -> LineItem:
        line = self.get_line(line_id)
        new_quantity = line.quantity if quantity is None else to_decimal(quantity)
        new_price = line.unit_price if unit_price is None else to_decimal(unit_price)
        new_discount = line.discount if discount is None else clamp_discount(discount)
        updated = compute_line(
            new_quantity,
            new_price,
            new_discount,
            self.tax_set,
            self._tax_inclusive,
            id=line.id,
            product_id=line.product_id,
            product_name=line.product_name,
            sku=line.sku,
        )
        self._replace_line(updated)
        return updated

    def remove_line(self, line_id: str) -> LineItem:
        line = self.get_line(line_id)
        self._lines = [entry for entry in self._lines if entry.id != line_id]
        self._pending.discard(line_id)
        self._sequencer.forget(line_id)
        logger.info("Line removed", extra={"line_id": line_id})
        return line

    # Taxes ---------------------------------------------------------------
    def add_tax(self, tax: Optional[TaxRate] = None) -> TaxRate:
        return self.tax_set.add(tax)

    def remove_tax(self, tax_id: str) -> TaxRate:
        return self.tax_set.remove(tax_id)

    def update_tax_rate(self, tax_id: str, rate: NumberLike) -> TaxRate:
        return self.tax_set.update_rate(tax_id, rate)

    def rename_tax(self, tax_id: str, name: str) -> TaxRate:
        return self.tax_set.rename(tax_id, name)

    def set_tax_inclusive(self, tax_inclusive: bool) -> None:
        if tax_inclusive == self._tax_inclusive:
            return
        self._tax_inclusive = tax_inclusive
        self._lines = recompute_lines(self._lines, self.tax_set, tax_inclusive)

    # Internals -----------------------------------------------------------
    def _price_new_line(self, product: ProductPricing, quantity: NumberLike, unit_price: Decimal) -> LineItem:
        return compute_line(
            quantity,
            unit_price,
            ZERO,
            self.tax_set,
            self._tax_inclusive,
            product_id=product.id,
            product_name=product.name,
            sku=product.sku,
        )

    def _finish_reprice(self, line_id: str, product: ProductPricing, unit_price: Decimal) -> Optional[LineItem]:
        self._pending.discard(line_id)
        try:
            line = self.get_line(line_id)
        except ValidationError:
            return None
        repriced = line.model_copy(
            update={
                "unit_price": unit_price,
                "product_id": product.id,
                "product_name": product.name,
                "sku": product.sku,
            }
        )
        updated = recompute_line(repriced, self.tax_set, self._tax_inclusive)
        self._replace_line(updated)
        return updated

    def _replace_line(self, updated: LineItem) -> None:
        self._lines = [updated if entry.id == updated.id else entry for entry in self._lines]

    def _on_taxes_changed(self, tax_set: TaxSet) -> None:
        self._lines = recompute_lines(self._lines, tax_set, self._tax_inclusive)
        logger.debug("Recomputed %d lines after tax change", len(self._lines))
