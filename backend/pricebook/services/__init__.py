"""Service layer: currency normalization, editing sessions and numbering."""

from .currency import AsyncCurrencyNormalizer, CurrencyNormalizer
from .editor import DocumentEditor, clamp_discount
from .exchange_rates import ExchangeRateTable, currency_symbol, format_currency
from .numbering import DocumentNumberSequence, next_document_number
from .sequencing import RequestSequencer

__all__ = [
    "AsyncCurrencyNormalizer",
    "CurrencyNormalizer",
    "DocumentEditor",
    "clamp_discount",
    "ExchangeRateTable",
    "currency_symbol",
    "format_currency",
    "DocumentNumberSequence",
    "next_document_number",
    "RequestSequencer",
]
