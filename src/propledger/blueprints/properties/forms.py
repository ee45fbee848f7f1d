"""Property and underwriting form validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

from ...models.property import PROPERTY_STATUSES
from ..forms import BaseForm

UNDERWRITING_FIELDS: tuple[str, ...] = (
    "list_price",
    "market_price_per_sf",
    "upgrade_premium",
    "adjustment_factor",
    "purchase_price_actual",
    "rehab_cost_est",
    "heloc_balance_est",
    "rent_est",
    "utilities_est",
    "admin_monthly_est",
    "vacancy_pct",
    "reserves_pct",
    "maintenance_pct",
    "closing_costs_pct",
    "down_payment_pct",
    "piti_factor",
    "heloc_interest_pct",
    "heloc_fee_pct",
    "refi_ltv",
    "refi_cost_pct",
)

# Inputs that may legitimately be negative.
_SIGNED_FIELDS = frozenset({"adjustment_factor", "upgrade_premium"})


@dataclass(slots=True)
class PropertyForm(BaseForm):
    """Property fields; with ``partial`` only submitted keys are validated."""

    FIELDS: ClassVar[tuple[str, ...]] = (
        "address",
        "status",
        "square_footage",
        "purchase_price_actual",
    )

    partial: bool = False
    address: Optional[str] = None
    status: str = "Lead"
    square_footage: Optional[float] = None
    purchase_price_actual: Optional[float] = None

    def validate(self) -> bool:
        self.errors.clear()

        if not self.partial or "address" in self.present:
            self.address = self._text("address", required=True, label="Address")

        status = self.raw_data.get("status", "")
        if status:
            if status not in PROPERTY_STATUSES:
                choices = ", ".join(PROPERTY_STATUSES)
                self._add_error("status", f"Status must be one of: {choices}.")
            else:
                self.status = status

        self.square_footage = self._number("square_footage", label="Square footage", minimum=0)
        self.purchase_price_actual = self._number(
            "purchase_price_actual", label="Purchase price", minimum=0
        )
        return not self.errors

    def changes(self) -> dict[str, Any]:
        """Validated values for the keys that were submitted."""

        values = {
            "address": self.address,
            "status": self.status,
            "square_footage": self.square_footage,
            "purchase_price_actual": self.purchase_price_actual,
        }
        if not self.partial:
            return values
        return {key: value for key, value in values.items() if key in self.present}


@dataclass(slots=True)
class UnderwritingForm(BaseForm):
    """Optional numeric underwriting inputs; blanks clear a value."""

    FIELDS: ClassVar[tuple[str, ...]] = UNDERWRITING_FIELDS

    values: dict[str, Optional[float]] = field(default_factory=dict)

    def validate(self) -> bool:
        self.errors.clear()
        self.values = {}
        for name in UNDERWRITING_FIELDS:
            if name not in self.present:
                continue
            label = name.replace("_", " ").capitalize()
            minimum = None if name in _SIGNED_FIELDS else 0
            self.values[name] = self._number(name, label=label, minimum=minimum)
        return not self.errors
