"""Logging bootstrap shared by the API and scripts."""
from __future__ import annotations

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None, *, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Install a single stream handler on the ``pricebook`` logger."""

    root = logging.getLogger("pricebook")
    root.setLevel((level or "INFO").upper())
    if not any(getattr(handler, "_pricebook", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        handler._pricebook = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
