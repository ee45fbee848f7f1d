"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

KINDS: tuple[str, ...] = ("income", "expense")


class LedgerEntry(SQLModel, table=True):
    """A single income or expense row, hand-entered or imported."""

    __tablename__: ClassVar[str] = "ledger_entry"

    id: Optional[int] = Field(default=None, primary_key=True)
    occurred_on: date = Field(nullable=False, index=True)
    kind: str = Field(nullable=False, max_length=16, description="income | expense")
    category: str = Field(default="Other", nullable=False, max_length=255)
    amount: float = Field(nullable=False, description="Positive for income, negative for expense")
    vendor: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)
    receipt_link: Optional[str] = Field(default=None, max_length=1024)
    property_id: Optional[int] = Field(default=None, foreign_key="property.id", index=True)

    is_rehab: bool = Field(default=False, nullable=False)
    rehab_project_id: Optional[int] = Field(
        default=None, foreign_key="rehab_project.id", index=True
    )
    cost_tag: Optional[str] = Field(default=None, max_length=32, index=True)

    # Natural key for imported rows; manual entries leave it empty.
    fingerprint: Optional[str] = Field(default=None, unique=True, index=True, max_length=128)
    source: Optional[str] = Field(default=None, max_length=64)
    created_by: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
