"""Repository protocol definitions for domain layer."""

from .ledger import LedgerRepository, LedgerStore, PropertyRef
from .property import PropertyRepository
from .rehab import RehabRepository

__all__ = [
    "LedgerRepository",
    "LedgerStore",
    "PropertyRef",
    "PropertyRepository",
    "RehabRepository",
]
