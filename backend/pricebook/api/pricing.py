"""Line, totals and document pricing endpoints."""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pricebook.config import Settings
from pricebook.core.line_items import compute_line
from pricebook.core.tax_set import TaxSet
from pricebook.core.totals import aggregate
from pricebook.errors import ValidationError
from pricebook.schemas import Document, DocumentKind, DocumentTotals, LineItem, TaxRate
from pricebook.services.editor import clamp_discount
from pricebook.services.numbering import DocumentNumberSequence

from .deps import get_app_settings, get_number_sequence

router = APIRouter(prefix="/pricing", tags=["pricing"])


class LinePricingRequest(BaseModel):
    quantity: Decimal = Field(..., description="Units sold")
    unit_price: Decimal = Field(..., description="Unit price in the document currency")
    discount: Decimal = Field(default=Decimal("0"), description="Discount percentage, clamped to [0, 100]")
    taxes: List[TaxRate] = Field(..., min_length=1)
    tax_inclusive: bool = False


class TotalsRequest(BaseModel):
    lines: List[LineItem] = Field(default_factory=list)
    tax_inclusive: bool = False


class DocumentLineInput(BaseModel):
    product_id: Optional[str] = None
    product_name: str = ""
    sku: str = ""
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal = Decimal("0")


class DocumentPricingRequest(BaseModel):
    kind: DocumentKind = "invoice"
    tax_inclusive: bool = False
    taxes: Optional[List[TaxRate]] = Field(
        default=None, description="Tax configuration; defaults to the standard tax set"
    )
    lines: List[DocumentLineInput] = Field(default_factory=list)


@router.post("/lines", response_model=LineItem)
async def price_line(payload: LinePricingRequest) -> LineItem:
    tax_set = TaxSet(payload.taxes)
    return compute_line(
        payload.quantity,
        payload.unit_price,
        clamp_discount(payload.discount),
        tax_set,
        payload.tax_inclusive,
    )


@router.post("/totals", response_model=DocumentTotals)
async def price_totals(payload: TotalsRequest) -> DocumentTotals:
    return aggregate(payload.lines, payload.tax_inclusive)


@router.post("/documents", response_model=Document)
async def price_document(
    payload: DocumentPricingRequest,
    settings: Annotated[Settings, Depends(get_app_settings)],
    numbers: Annotated[DocumentNumberSequence, Depends(get_number_sequence)],
) -> Document:
    if not payload.lines:
        raise ValidationError("Add at least one product")
    tax_set = TaxSet(payload.taxes) if payload.taxes else TaxSet.default()
    lines = [
        compute_line(
            line.quantity,
            line.unit_price,
            clamp_discount(line.discount),
            tax_set,
            payload.tax_inclusive,
            product_id=line.product_id,
            product_name=line.product_name,
            sku=line.sku,
        )
        for line in payload.lines
    ]
    return Document(
        number=numbers.next(payload.kind),
        kind=payload.kind,
        currency=settings.base_currency,
        tax_inclusive=payload.tax_inclusive,
        taxes=tax_set.as_list(),
        lines=lines,
        totals=aggregate(lines, payload.tax_inclusive),
    )
