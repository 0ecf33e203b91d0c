"""Error types raised or recorded by the pricing engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ValidationError(ValueError):
    """Raised when an operation would violate a pricing invariant."""


@dataclass
class ConversionFailure:
    """Soft failure of a currency conversion; logged, never raised."""

    from_currency: str
    to_currency: str
    reason: str
    status_code: Optional[int] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "reason": self.reason,
            "status_code": self.status_code,
            "occurred_at": self.occurred_at.isoformat(),
        }
