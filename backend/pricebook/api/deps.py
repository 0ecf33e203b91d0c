from __future__ import annotations

from fastapi import Request

from pricebook.config import Settings
from pricebook.services.exchange_rates import ExchangeRateTable
from pricebook.services.numbering import DocumentNumberSequence


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_table(request: Request) -> ExchangeRateTable:
    return request.app.state.rate_table


def get_number_sequence(request: Request) -> DocumentNumberSequence:
    return request.app.state.numbers
