"""Ledger repository protocols."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from ...models.ledger import LedgerEntry


@dataclass(slots=True, frozen=True)
class PropertyRef:
    """Minimal property view used for matching imported rows."""

    id: int
    address: str


class LedgerStore(Protocol):
    """Write side used by the CSV importer."""

    def upsert(
        self,
        rows: Sequence[dict[str, Any]],
        *,
        conflict_key: str,
        ignore_duplicates: bool,
    ) -> list[dict[str, Any]]:
        """Insert rows keyed by ``conflict_key`` and return the rows actually written."""
        ...

    def list_property_directory(self) -> list[PropertyRef]:
        """Return id/address pairs for every known property."""
        ...


class LedgerRepository(Protocol):
    """Repository for managing ledger entries."""

    def get_by_id(self, entry_id: int) -> Optional[LedgerEntry]:
        """Retrieve an entry by ID."""
        ...

    def search(
        self,
        *,
        kind: Optional[str] = None,
        text: Optional[str] = None,
        limit: int = 1000,
    ) -> list[tuple[LedgerEntry, Optional[str]]]:
        """Latest entries (with property address) filtered by kind and free text."""
        ...

    def create(self, entry: LedgerEntry) -> LedgerEntry:
        """Create a new entry."""
        ...

    def update(self, entry: LedgerEntry) -> LedgerEntry:
        """Update an existing entry."""
        ...

    def delete(self, entry_id: int) -> None:
        """Delete an entry by ID."""
        ...

    def set_receipt_link(self, entry_id: int, link: str) -> Optional[LedgerEntry]:
        """Attach a receipt pointer to an entry."""
        ...

    def list_closing_costs(self) -> list[LedgerEntry]:
        """Entries tagged as closing costs."""
        ...

    def list_rehab_entries(self) -> list[LedgerEntry]:
        """Entries flagged as rehab spending."""
        ...
