from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable, Iterator, List, Optional

from pricebook.core.money import NumberLike, to_decimal
from pricebook.errors import ValidationError
from pricebook.schemas import TaxRate

logger = logging.getLogger(__name__)

TaxSetListener = Callable[["TaxSet"], None]

DEFAULT_TAXES: tuple[tuple[str, str, str], ...] = (
    ("vat", "VAT", "15"),
    ("nhil", "NHIL", "2.5"),
    ("getfund", "GETFund", "2.5"),
    ("covid", "COVID-19", "1"),
)


class TaxSet:
    """Ordered collection of percentage taxes shared by every line of a document.

    The set is never empty once built. Every mutation notifies the subscribed
    listeners so the owning document can recompute its lines.
    """

    def __init__(self, taxes: Iterable[TaxRate]) -> None:
        self._taxes: List[TaxRate] = []
        self._listeners: List[TaxSetListener] = []
        for tax in taxes:
            self._append(tax)
        if not self._taxes:
            raise ValidationError("At least one tax is required")

    @classmethod
    def default(cls) -> "TaxSet":
        return cls(TaxRate(id=tax_id, name=name, rate=rate) for tax_id, name, rate in DEFAULT_TAXES)

    # Queries -------------------------------------------------------------
    def __iter__(self) -> Iterator[TaxRate]:
        return iter(list(self._taxes))

    def __len__(self) -> int:
        return len(self._taxes)

    def __contains__(self, tax_id: object) -> bool:
        return any(tax.id == tax_id for tax in self._taxes)

    def get(self, tax_id: str) -> TaxRate:
        for tax in self._taxes:
            if tax.id == tax_id:
                return tax
        raise ValidationError(f"Unknown tax: {tax_id}")

    def as_list(self) -> List[TaxRate]:
        return [tax.model_copy() for tax in self._taxes]

    # Mutations -----------------------------------------------------------
    def subscribe(self, listener: TaxSetListener) -> None:
        self._listeners.append(listener)

    def add(self, tax: Optional[TaxRate] = None) -> TaxRate:
        if tax is None:
            tax = TaxRate(id=uuid.uuid4().hex[:9], name="New Tax", rate=0)
        self._append(tax)
        self._notify("add", tax.id)
        return tax

    def remove(self, tax_id: str) -> TaxRate:
        tax = self.get(tax_id)
        if len(self._taxes) <= 1:
            raise ValidationError("At least one tax is required")
        self._taxes = [entry for entry in self._taxes if entry.id != tax_id]
        self._notify("remove", tax_id)
        return tax

    def update_rate(self, tax_id: str, rate: NumberLike) -> TaxRate:
        new_rate = to_decimal(rate)
        if new_rate < 0:
            raise ValidationError(f"Tax rate must be >= 0 (got {new_rate})")
        updated = self._replace(tax_id, rate=new_rate)
        self._notify("update_rate", tax_id)
        return updated

    def rename(self, tax_id: str, name: str) -> TaxRate:
        updated = self._replace(tax_id, name=name)
        self._notify("rename", tax_id)
        return updated

    # Internals -----------------------------------------------------------
    def _append(self, tax: TaxRate) -> None:
        if tax.rate < 0:
            raise ValidationError(f"Tax rate must be >= 0 (got {tax.rate})")
        if tax.id in self:
            raise ValidationError(f"Duplicate tax id: {tax.id}")
        self._taxes.append(tax)

    def _replace(self, tax_id: str, **changes: object) -> TaxRate:
        current = self.get(tax_id)
        updated = current.model_copy(update=changes)
        self._taxes = [updated if entry.id == tax_id else entry for entry in self._taxes]
        return updated

    def _notify(self, action: str, tax_id: str) -> None:
        logger.debug("Tax set changed", extra={"action": action, "tax_id": tax_id})
        for listener in list(self._listeners):
            listener(self)
