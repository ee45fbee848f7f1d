"""Service module exports."""

from . import (
    auth,
    csv_table,
    importers,
    ledger_service,
    normalize,
    reconcile,
    rehab,
    storage,
    underwriting,
)

__all__ = [
    "auth",
    "csv_table",
    "importers",
    "ledger_service",
    "normalize",
    "reconcile",
    "rehab",
    "storage",
    "underwriting",
]
