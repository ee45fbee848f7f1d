from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Sequence

import pytest
from sqlmodel import select

from propledger.domain.repositories.ledger import PropertyRef
from propledger.models import LedgerEntry, Property
from propledger.services.importers import (
    CancellationToken,
    EmptyImportError,
    ImportReport,
    begin_import,
    finish_import,
    import_all,
    import_ledger_csv,
)
from propledger.services.reconcile import NormalizedTransaction
from propledger.services.underwriting import default_underwriting

SAMPLE_CSV = "\n".join(
    [
        "Date,Merchant,Description,Amount,Type,Category,Property",
        "2024-01-03,City Water,Water bill,-82.15,Debit,Utilities,12 Oak St",
        "not-a-date,Tenant,Rent,1500,Credit,Rent,12 Oak St",
        "01/05/2024,Tenant,Rent,1500.00,Credit,Rent,12 Oak St",
    ]
)


class RecordingStore:
    """In-memory store that keeps fingerprints and can fail chosen batches."""

    def __init__(self, fail_batches: Sequence[int] = (), directory=None):
        self.fail_batches = set(fail_batches)
        self.directory = list(directory or [])
        self.seen: set[str] = set()
        self.calls: list[list[dict[str, Any]]] = []

    def upsert(self, rows, *, conflict_key="fingerprint", ignore_duplicates=True):
        index = len(self.calls)
        self.calls.append(list(rows))
        if index in self.fail_batches:
            raise RuntimeError(f"batch {index} rejected")
        written = []
        for row in rows:
            if row[conflict_key] in self.seen:
                continue
            self.seen.add(row[conflict_key])
            written.append({"id": len(self.seen), conflict_key: row[conflict_key]})
        return written

    def list_property_directory(self):
        return self.directory


def _csv(rows: int) -> str:
    lines = ["date,amount,vendor"]
    lines.extend(f"2024-02-{day:02d},-{day}.00,Vendor {day}" for day in range(1, rows + 1))
    return "\n".join(lines)


def test_import_then_reimport_is_idempotent(ledger_store, property_repo, session_factory, owner):
    prop = property_repo.create(Property(address="12 Oak St"), default_underwriting())

    first = import_ledger_csv(SAMPLE_CSV, store=ledger_store, session=owner)
    second = import_ledger_csv(SAMPLE_CSV, store=ledger_store, session=owner)

    assert (first.parsed, first.inserted_count, first.duplicate_count) == (3, 2, 0)
    assert first.invalid_date_count == 1
    assert first.invalid_amount_count == 0
    assert not first.has_error
    assert (second.inserted_count, second.duplicate_count) == (0, 2)

    with session_factory() as session:
        rows = session.exec(select(LedgerEntry).order_by(LedgerEntry.occurred_on)).all()
        assert [(row.kind, row.amount) for row in rows] == [("expense", -82.15), ("income", 1500.0)]
        assert all(row.property_id == prop.id for row in rows)
        assert all(row.created_by == "user-1" for row in rows)
        assert all(row.source == "csv" for row in rows)
        assert rows[0].category == "Utilities"
        assert rows[0].vendor == "City Water"


def test_empty_import_raises_before_touching_store(owner):
    store = RecordingStore()

    with pytest.raises(EmptyImportError) as excinfo:
        import_ledger_csv("date,amount\nnope,1\n2024-01-01,abc\n", store=store, session=owner)

    assert str(excinfo.value) == "No rows found to import."
    assert excinfo.value.report.invalid_date_count == 1
    assert excinfo.value.report.invalid_amount_count == 1
    assert store.calls == []


def test_header_only_file_is_empty_import(owner):
    with pytest.raises(EmptyImportError):
        import_ledger_csv("date,amount\n", store=RecordingStore(), session=owner)


def test_failed_batch_is_counted_and_run_continues(owner):
    store = RecordingStore(fail_batches=[1])

    report = import_ledger_csv(_csv(5), store=store, session=owner, batch_size=2)

    assert len(store.calls) == 3
    assert report.inserted_count == 3
    assert report.batch_error_count == 2
    assert report.first_error_message == "batch 1 rejected"
    assert report.has_error
    assert "First error: batch 1 rejected" in report.summary()


def test_cancelled_token_stops_before_first_batch(owner):
    token = CancellationToken()
    token.cancel()
    store = RecordingStore()

    report = import_ledger_csv(_csv(3), store=store, session=owner, cancel_token=token)

    assert report.cancelled
    assert store.calls == []
    assert report.inserted_count == 0


def test_new_import_cancels_previous_run_for_same_user():
    first = begin_import("user-1")
    other_user = begin_import("user-9")
    second = begin_import("user-1")

    assert first.cancelled
    assert not other_user.cancelled
    assert not second.cancelled

    finish_import("user-1", second)
    finish_import("user-9", other_user)


def test_property_matching_uses_directory(owner):
    store = RecordingStore(directory=[PropertyRef(id=7, address="12 Oak St")])

    import_ledger_csv(SAMPLE_CSV, store=store, session=owner)

    assert {row["property_id"] for row in store.calls[0]} == {7}


def test_import_all_rejects_bad_batch_size():
    with pytest.raises(ValueError):
        import_all([], RecordingStore(), batch_size=0)


def test_import_all_with_no_transactions_is_empty():
    with pytest.raises(EmptyImportError):
        import_all([], RecordingStore())


def test_import_all_counts_duplicates_within_file():
    tx = NormalizedTransaction(
        occurred_on=date(2024, 1, 1),
        kind="expense",
        amount=Decimal("-1.00"),
        category="Other",
        vendor=None,
        memo=None,
        matched_property_id=None,
        fingerprint="csv:deadbeef",
        source="csv",
    )

    report = import_all([tx, tx], RecordingStore())

    assert (report.inserted_count, report.duplicate_count) == (1, 1)


def test_report_summary_lines():
    report = ImportReport(parsed=4, inserted_count=2, duplicate_count=1, invalid_date_count=1)

    assert report.summary().splitlines() == [
        "Rows detected: 4",
        "Imported: 2 • Skipped duplicates: 1 • Errors: 0",
        "Skipped (invalid date): 1 • Skipped (invalid amount): 0",
    ]
    assert report.to_dict()["has_error"] is False
