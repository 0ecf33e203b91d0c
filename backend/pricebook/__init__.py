"""Pricebook: line-item pricing and tax engine for invoices and quotations."""
from __future__ import annotations

__version__ = "0.1.0"
