"""Concrete repository implementations using SQLModel."""

from .ledger import SQLModelLedgerRepository, SQLModelLedgerStore
from .property import SQLModelPropertyRepository
from .rehab import SQLModelRehabRepository

__all__ = [
    "SQLModelLedgerRepository",
    "SQLModelLedgerStore",
    "SQLModelPropertyRepository",
    "SQLModelRehabRepository",
]
