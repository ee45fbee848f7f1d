"""Turn normalized import fields into canonical ledger rows with a dedup fingerprint."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from ..domain.repositories.ledger import PropertyRef
from .normalize import NormalizedFields

CATEGORY_SEPARATOR = " • "
MEMO_SEPARATOR = " — "
FINGERPRINT_SEPARATOR = "|"


def merge_category(category: str | None, subcategory: str | None) -> str:
    """Combine primary and sub-category into ``"Cat • Sub"``.

    >>> merge_category("Repairs", "Plumbing")
    'Repairs • Plumbing'
    >>> merge_category("", "")
    'Other'
    """

    cat = (category or "").strip()
    sub = (subcategory or "").strip()
    if sub:
        return f"{cat}{CATEGORY_SEPARATOR}{sub}" if cat else sub
    return cat or "Other"


def merge_memo(
    description: str | None,
    notes: str | None,
    account: str | None = None,
    property_text: str | None = None,
    unit: str | None = None,
) -> Optional[str]:
    base = MEMO_SEPARATOR.join(
        part.strip() for part in (description, notes) if part and part.strip()
    )
    tags = [
        f"[{label}: {value.strip()}]"
        for label, value in (("Account", account), ("Property", property_text), ("Unit", unit))
        if value and value.strip()
    ]
    tag_text = " ".join(tags)
    if base and tag_text:
        return f"{base} | {tag_text}"
    return base or tag_text or None


def best_match_property_id(
    text: str | None, directory: Sequence[PropertyRef] | None
) -> Optional[int]:
    """Return the first property whose address contains, or is contained in, ``text``."""

    needle = (text or "").strip().lower()
    if not needle or not directory:
        return None
    for ref in directory:
        address = (ref.address or "").strip().lower()
        if not address:
            continue
        if needle in address or address in needle:
            return ref.id
    return None


def rolling_hash(text: str) -> str:
    """32-bit djb2-xor over UTF-16 code units, as 8 lowercase hex digits."""

    h = 5381
    encoded = text.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        h = ((h * 33) ^ unit) & 0xFFFFFFFF
    return f"{h:08x}"


def compute_fingerprint(
    *,
    source: str,
    occurred_on: date,
    category: str,
    amount: Decimal,
    vendor: str,
    description: str,
    notes: str,
    account: str,
    property_text: str,
    unit: str,
    raw_type: str,
) -> str:
    parts = (
        source,
        occurred_on.isoformat(),
        category,
        f"{amount:.2f}",
        vendor,
        description,
        notes,
        account,
        property_text,
        unit,
        raw_type,
    )
    return f"{source}:{rolling_hash(FINGERPRINT_SEPARATOR.join(parts))}"


@dataclass(slots=True, frozen=True)
class NormalizedTransaction:
    """A ledger row ready for the store."""

    occurred_on: date
    kind: str
    amount: Decimal
    category: str
    vendor: Optional[str]
    memo: Optional[str]
    matched_property_id: Optional[int]
    fingerprint: str
    source: str

    def to_row(self, *, created_by: str | None = None) -> dict[str, Any]:
        return {
            "occurred_on": self.occurred_on,
            "kind": self.kind,
            "amount": float(self.amount),
            "category": self.category,
            "vendor": self.vendor,
            "description": self.memo,
            "property_id": self.matched_property_id,
            "fingerprint": self.fingerprint,
            "source": self.source,
            "created_by": created_by,
            "is_rehab": False,
        }


def reconcile(
    fields: NormalizedFields,
    directory: Sequence[PropertyRef] | None,
    source: str,
) -> NormalizedTransaction:
    raw = fields.raw
    category = merge_category(raw.category, raw.subcategory)
    fingerprint = compute_fingerprint(
        source=source,
        occurred_on=fields.occurred_on,
        category=category,
        amount=fields.amount,
        vendor=raw.vendor,
        description=raw.description,
        notes=raw.notes,
        account=raw.account,
        property_text=raw.property,
        unit=raw.unit,
        raw_type=raw.type,
    )
    return NormalizedTransaction(
        occurred_on=fields.occurred_on,
        kind=fields.kind,
        amount=fields.amount,
        category=category,
        vendor=raw.vendor or None,
        memo=merge_memo(raw.description, raw.notes, raw.account, raw.property, raw.unit),
        matched_property_id=best_match_property_id(raw.property, directory),
        fingerprint=fingerprint,
        source=source,
    )
