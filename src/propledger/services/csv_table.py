"""CSV text parsing and header resolution for ledger imports."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, fields
from typing import Iterable, Mapping

BOM = "\ufeff"

# Canonical field -> accepted (normalized) header spellings. The first header in
# the file matching any alias wins.
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "transaction date", "posted date", "posting date"),
    "amount": ("amount", "value", "total"),
    "type": ("type", "transaction type"),
    "category": ("category",),
    "subcategory": ("sub-category", "sub category", "subcategory", "sub_category"),
    "vendor": ("merchant", "vendor", "payee"),
    "description": ("description", "memo"),
    "notes": ("notes", "note"),
    "account": ("account", "account name"),
    "property": ("property", "property address"),
    "unit": ("unit",),
}


def normalize_header(header: str) -> str:
    """Trim, collapse inner whitespace and lower-case a header cell."""

    return " ".join(header.replace(BOM, "").split()).lower()


def parse_csv_text(text: str) -> list[dict[str, str]]:
    """Parse CSV text into row mappings keyed by normalized header.

    Quoted fields may contain commas, doubled quotes and line breaks; ``\\r\\n``,
    ``\\n`` and ``\\r`` endings are all accepted. Rows whose every cell is blank
    are dropped, short rows are padded with empty strings, and file order is
    kept. An unterminated quote swallows the remainder of the input into the
    open field instead of raising.
    """

    if text.startswith(BOM):
        text = text[len(BOM):]

    # A single field may span the whole input (long notes, an unterminated quote).
    if len(text) >= csv.field_size_limit():
        csv.field_size_limit(len(text) + 1)
    reader = csv.reader(io.StringIO(text, newline=""))
    header_row = next(reader, None)
    if header_row is None:
        return []
    headers = [normalize_header(cell) for cell in header_row]

    rows: list[dict[str, str]] = []
    for cells in reader:
        if not any(cell.strip() for cell in cells):
            continue
        row: dict[str, str] = {}
        for index, header in enumerate(headers):
            if not header or header in row:
                continue
            row[header] = cells[index] if index < len(cells) else ""
        rows.append(row)
    return rows


@dataclass(slots=True, frozen=True)
class ColumnMapping:
    """Maps canonical import fields to the header that supplies them."""

    date: str | None = None
    amount: str | None = None
    type: str | None = None
    category: str | None = None
    subcategory: str | None = None
    vendor: str | None = None
    description: str | None = None
    notes: str | None = None
    account: str | None = None
    property: str | None = None
    unit: str | None = None


def resolve_columns(headers: Iterable[str]) -> ColumnMapping:
    """Resolve header spellings once per file into a ``ColumnMapping``."""

    normalized = [normalize_header(h) for h in headers]
    resolved: dict[str, str | None] = {}
    for canonical, aliases in HEADER_ALIASES.items():
        resolved[canonical] = next((col for col in normalized if col in aliases), None)
    return ColumnMapping(**resolved)


@dataclass(slots=True, frozen=True)
class RawRecord:
    """One CSV row keyed by canonical field; absent fields read as ``""``."""

    date: str = ""
    amount: str = ""
    type: str = ""
    category: str = ""
    subcategory: str = ""
    vendor: str = ""
    description: str = ""
    notes: str = ""
    account: str = ""
    property: str = ""
    unit: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, str], mapping: ColumnMapping) -> RawRecord:
        values: dict[str, str] = {}
        for item in fields(cls):
            column = getattr(mapping, item.name)
            raw = row.get(column, "") if column else ""
            values[item.name] = (raw or "").strip()
        return cls(**values)


def read_records(text: str) -> list[RawRecord]:
    """Parse ``text`` and project every row onto the canonical fields."""

    rows = parse_csv_text(text)
    if not rows:
        return []
    mapping = resolve_columns(rows[0].keys())
    return [RawRecord.from_row(row, mapping) for row in rows]
