"""Reference currency conversion endpoint."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from pricebook.schemas import ConversionRequest, ConversionResult
from pricebook.services.exchange_rates import ExchangeRateTable

from .deps import get_rate_table

router = APIRouter(prefix="/currency", tags=["currency"])


@router.post("/convert", response_model=ConversionResult)
async def convert_currency(
    payload: ConversionRequest,
    rates: Annotated[ExchangeRateTable, Depends(get_rate_table)],
) -> ConversionResult:
    return rates.convert(payload.from_currency, payload.to_currency, payload.amount)
