"""Shared Pydantic models."""
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DocumentKind = Literal["invoice", "quotation"]


def _line_id() -> str:
    return uuid.uuid4().hex[:9]


class Money(BaseModel):
    amount: Decimal = Field(..., description="Monetary amount")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO-like currency code")


class TaxRate(BaseModel):
    id: str = Field(..., min_length=1, description="Stable identifier of the tax")
    name: str = Field(..., description="Display name, e.g. VAT")
    rate: Decimal = Field(..., ge=0, description="Percentage rate")


class LineTax(BaseModel):
    tax_id: str
    name: str
    rate: Decimal = Field(..., ge=0)
    amount: Decimal = Field(default=Decimal("0"), ge=0)


class LineItem(BaseModel):
    id: str = Field(default_factory=_line_id)
    product_id: Optional[str] = Field(None, description="Product the line was created from")
    product_name: str = Field(default="")
    sku: str = Field(default="")
    quantity: Decimal = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0, description="Unit price in the document currency")
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Discount percentage")
    taxes: List[LineTax] = Field(default_factory=list)
    line_total: Decimal = Field(default=Decimal("0"))

    @property
    def total_tax(self) -> Decimal:
        return sum((tax.amount for tax in self.taxes), Decimal("0"))


class DocumentTotals(BaseModel):
    subtotal: Decimal = Field(..., description="Post-discount, pre-tax base")
    total_discount: Decimal
    taxes_by_type: Dict[str, Decimal] = Field(default_factory=dict)
    total_tax: Decimal
    total: Decimal = Field(..., description="Displayed total for the document's tax mode")
    grand_total: Decimal = Field(..., description="Amount payable: subtotal plus tax")
    tax_inclusive: bool = False
    show_tax_breakdown: bool = True


class Document(BaseModel):
    number: Optional[str] = None
    kind: DocumentKind = "invoice"
    currency: str = Field("GHS", min_length=3, max_length=3)
    tax_inclusive: bool = False
    taxes: List[TaxRate] = Field(default_factory=list)
    lines: List[LineItem] = Field(default_factory=list)
    totals: Optional[DocumentTotals] = None


class ProductPricing(BaseModel):
    """Pricing fields of a catalog product, as sent by the product API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    sku: str = ""
    price: Optional[Decimal] = Field(None, ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0, alias="originalPrice")
    original_price_currency: Optional[str] = Field(None, alias="originalPriceCurrency")
    base_currency: Optional[str] = Field(None, alias="baseCurrency")


class ConversionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="fromCurrency", min_length=3, max_length=3)
    to_currency: str = Field(..., alias="toCurrency", min_length=3, max_length=3)
    amount: Decimal = Field(..., ge=0)


class ConversionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="fromCurrency")
    to_currency: str = Field(..., alias="toCurrency")
    amount: Decimal
    converted_amount: Decimal = Field(..., alias="convertedAmount")
    exchange_rate: Decimal = Field(..., alias="exchangeRate")
    source: str


__all__ = [
    "DocumentKind",
    "Money",
    "TaxRate",
    "LineTax",
    "LineItem",
    "DocumentTotals",
    "Document",
    "ProductPricing",
    "ConversionRequest",
    "ConversionResult",
]
