from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Dict, Optional

from pricebook.errors import ValidationError
from pricebook.schemas import DocumentKind

logger = logging.getLogger(__name__)

PREFIXES: Dict[str, str] = {"invoice": "INV", "quotation": "QT"}
MAX_NUMBER_ATTEMPTS = 10


def _prefix(kind: DocumentKind) -> str:
    prefix = PREFIXES.get(kind)
    if prefix is None:
        raise ValidationError(f"Unknown document kind: {kind}")
    return prefix


def next_document_number(kind: DocumentKind, existing_count: int) -> str:
    """Number following ``existing_count`` documents of ``kind``, e.g. ``INV-000042``."""
    prefix = _prefix(kind)
    if existing_count < 0:
        raise ValidationError("existing_count must be >= 0")
    return f"{prefix}-{existing_count + 1:06d}"


def allocate_document_number(
    kind: DocumentKind,
    existing_count: int,
    is_taken: Callable[[str], bool],
    *,
    max_attempts: int = MAX_NUMBER_ATTEMPTS,
) -> str:
    """First free number after ``existing_count``, skipping ones ``is_taken`` reports.

    After ``max_attempts`` collisions the number is derived from the clock.
    """
    for attempt in range(max_attempts):
        number = next_document_number(kind, existing_count + attempt)
        if not is_taken(number):
            return number
    fallback = f"{_prefix(kind)}-{str(int(time.time() * 1000))[-6:]}"
    logger.warning(
        "No free %s number after %d attempts; using %s", kind, max_attempts, fallback
    )
    return fallback


class DocumentNumberSequence:
    """Process-local counters per document kind."""

    def __init__(self, counts: Dict[str, int] | None = None) -> None:
        self._counts: Dict[str, int] = dict(counts or {})
        self._lock = Lock()

    def next(self, kind: DocumentKind, is_taken: Optional[Callable[[str], bool]] = None) -> str:
        with self._lock:
            current = self._counts.get(kind, 0)
            if is_taken is None:
                number = next_document_number(kind, current)
            else:
                number = allocate_document_number(kind, current, is_taken)
            self._counts[kind] = current + 1
            return number
