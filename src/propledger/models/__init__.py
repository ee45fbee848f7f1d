"""Database models for PropLedger."""

from .ledger import LedgerEntry
from .property import Property, Underwriting
from .rehab import RehabMember, RehabNote, RehabPhoto, RehabProject, RehabTask

__all__ = [
    "LedgerEntry",
    "Property",
    "RehabMember",
    "RehabNote",
    "RehabPhoto",
    "RehabProject",
    "RehabTask",
    "Underwriting",
]
