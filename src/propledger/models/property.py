"""SQLModel definitions for properties and their underwriting inputs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

PROPERTY_STATUSES: tuple[str, ...] = (
    "Owned",
    "Under Contract",
    "Closing",
    "Rented",
    "Rehab",
    "Lead",
    "Analyzing",
    "Offer Pending",
    "Dead",
)

# Statuses counted as part of the held portfolio.
PORTFOLIO_STATUSES = frozenset({"Owned", "Under Contract", "Closing", "Rented", "Rehab"})


class Property(SQLModel, table=True):
    """A tracked property, from lead through ownership."""

    __tablename__: ClassVar[str] = "property"

    id: Optional[int] = Field(default=None, primary_key=True)
    address: str = Field(nullable=False, index=True, max_length=255)
    status: str = Field(default="Lead", nullable=False, max_length=32, index=True)
    square_footage: Optional[float] = Field(default=None)
    purchase_price_actual: Optional[float] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class Underwriting(SQLModel, table=True):
    """Underwriting inputs for one property.

    Percent fields are stored as fractions (``0.25`` for 25%).
    """

    __tablename__: ClassVar[str] = "property_underwriting"

    id: Optional[int] = Field(default=None, primary_key=True)
    property_id: int = Field(foreign_key="property.id", unique=True, index=True, nullable=False)

    list_price: Optional[float] = None
    market_price_per_sf: Optional[float] = None
    upgrade_premium: Optional[float] = None
    adjustment_factor: Optional[float] = None

    purchase_price_actual: Optional[float] = None
    rehab_cost_est: Optional[float] = None
    heloc_balance_est: Optional[float] = None
    rent_est: Optional[float] = None
    utilities_est: Optional[float] = None
    admin_monthly_est: Optional[float] = None

    vacancy_pct: Optional[float] = 0.10
    reserves_pct: Optional[float] = 0.05
    maintenance_pct: Optional[float] = 0.05
    closing_costs_pct: Optional[float] = 0.1135
    down_payment_pct: Optional[float] = 0.25
    piti_factor: Optional[float] = 0.0099
    heloc_interest_pct: Optional[float] = 0.08
    heloc_fee_pct: Optional[float] = 0.02
    refi_ltv: Optional[float] = 0.65
    refi_cost_pct: Optional[float] = 0.03
