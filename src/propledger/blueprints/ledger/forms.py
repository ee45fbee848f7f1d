"""Ledger form validation helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar, Optional

from ...models.ledger import KINDS
from ..forms import BaseForm


@dataclass(slots=True)
class LedgerEntryForm(BaseForm):
    """Represents ledger entry input prior to validation.

    Manual entries may carry either sign; imported rows are normalized elsewhere.
    """

    FIELDS: ClassVar[tuple[str, ...]] = (
        "date",
        "kind",
        "type",
        "category",
        "amount",
        "vendor",
        "description",
        "receipt_link",
        "property_id",
        "is_rehab",
        "rehab_project_id",
        "cost_tag",
    )

    occurred_on: Optional[date] = None
    kind: str = "expense"
    category: str = ""
    amount: Optional[float] = None
    vendor: Optional[str] = None
    description: Optional[str] = None
    receipt_link: Optional[str] = None
    property_id: Optional[int] = None
    is_rehab: bool = False
    rehab_project_id: Optional[int] = None
    cost_tag: Optional[str] = None

    def validate(self) -> bool:
        """Validate the bound data and populate typed attributes."""

        self.errors.clear()

        self.occurred_on = self._date("date", required=True, label="Date")

        kind = (self.raw_data.get("kind") or self.raw_data.get("type") or "expense").lower()
        if kind not in KINDS:
            self._add_error("kind", "Type must be income or expense.")
        else:
            self.kind = kind

        self.category = self._text("category", required=True, label="Category") or ""
        self.amount = self._number("amount", required=True, label="Amount")
        self.vendor = self._text("vendor", label="Vendor")
        self.description = self._text("description", label="Description", max_length=2000)
        self.receipt_link = self._text("receipt_link", label="Receipt link", max_length=1024)
        self.property_id = self._integer("property_id", label="Property")

        self.is_rehab = self._flag("is_rehab")
        project_id = self._integer("rehab_project_id", label="Rehab project")
        self.rehab_project_id = project_id if self.is_rehab else None

        tag = self._text("cost_tag", label="Cost tag", max_length=32)
        self.cost_tag = tag.lower() if tag else None

        return not self.errors

    def to_fields(self) -> dict[str, Any]:
        return {
            "occurred_on": self.occurred_on,
            "kind": self.kind,
            "category": self.category,
            "amount": self.amount,
            "vendor": self.vendor,
            "description": self.description,
            "receipt_link": self.receipt_link,
            "property_id": self.property_id,
            "is_rehab": self.is_rehab,
            "rehab_project_id": self.rehab_project_id,
            "cost_tag": self.cost_tag,
        }
