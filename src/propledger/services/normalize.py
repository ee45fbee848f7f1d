"""Field normalization for imported ledger rows."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

import pandas as pd

from .csv_table import RawRecord

INVALID_DATE = "invalid_date"
INVALID_AMOUNT = "invalid_amount"

_CURRENCY_NOISE = re.compile(r"[\s$£€¥,]")
_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

_INCOME_WORDS = ("income", "credit", "deposit")
_EXPENSE_WORDS = ("expense", "debit", "withdraw")

CENT = Decimal("0.01")
# Magnitudes at or above 10**15 are rejected; cents must fit the decimal context.
MAX_AMOUNT_DIGITS = 15

# Words the generic parser resolves against the clock.
_RELATIVE_DATE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})


def parse_amount(text: str | None) -> Optional[Decimal]:
    """Parse a money cell like ``$1,234.50`` or ``(45.00)``; ``None`` if not numeric."""

    if text is None:
        return None
    cleaned = _CURRENCY_NOISE.sub("", str(text))
    negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        negative = True
        cleaned = cleaned[1:-1]
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    if value and value.adjusted() >= MAX_AMOUNT_DIGITS:
        return None
    return -value if negative else value


def parse_date(text: str | None) -> Optional[date]:
    """Parse a date cell, trying ISO, then ``M/D/YYYY``, then a generic parser."""

    if text is None:
        return None
    value = str(text).strip()
    if not value:
        return None

    iso = _ISO_DATE.match(value)
    if iso:
        try:
            return date.fromisoformat(iso.group(1))
        except ValueError:
            return None

    us = _US_DATE.match(value)
    if us:
        month, day, year = (int(part) for part in us.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    if value.lower() in _RELATIVE_DATE_WORDS:
        return None

    try:
        parsed = pd.to_datetime(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def classify_kind(raw_type: str | None, amount: Decimal) -> str:
    """Return ``income`` or ``expense`` from the type cell, falling back to sign."""

    lowered = (raw_type or "").lower()
    if any(word in lowered for word in _INCOME_WORDS):
        return "income"
    if any(word in lowered for word in _EXPENSE_WORDS):
        return "expense"
    return "income" if amount >= 0 else "expense"


def enforce_sign(kind: str, amount: Decimal) -> Decimal:
    """Income is stored positive and expenses negative, rounded to cents."""

    magnitude = abs(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    if kind == "expense" and magnitude:
        return -magnitude
    return magnitude


@dataclass(slots=True, frozen=True)
class NormalizedFields:
    """Typed values pulled out of a ``RawRecord``."""

    occurred_on: date
    kind: str
    amount: Decimal
    raw: RawRecord


@dataclass(slots=True, frozen=True)
class NormalizeOutcome:
    fields: Optional[NormalizedFields] = None
    skip_reason: Optional[str] = None


def normalize_record(raw: RawRecord) -> NormalizeOutcome:
    """Normalize one record; never raises, reports a skip reason instead."""

    occurred_on = parse_date(raw.date)
    if occurred_on is None:
        return NormalizeOutcome(skip_reason=INVALID_DATE)

    amount = parse_amount(raw.amount)
    if amount is None:
        return NormalizeOutcome(skip_reason=INVALID_AMOUNT)

    kind = classify_kind(raw.type, amount)
    return NormalizeOutcome(
        fields=NormalizedFields(
            occurred_on=occurred_on,
            kind=kind,
            amount=enforce_sign(kind, amount),
            raw=raw,
        )
    )
