"""CSV ledger import: parse, normalize, reconcile and write in fingerprint-keyed batches."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from threading import Event, Lock
from typing import Any, Optional, Sequence

from ..domain.repositories.ledger import LedgerStore
from .auth import AuthSession
from .csv_table import RawRecord, read_records
from .normalize import INVALID_AMOUNT, INVALID_DATE, NormalizedFields, normalize_record
from .reconcile import NormalizedTransaction, reconcile

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 200
DEFAULT_SOURCE = "csv"


class EmptyImportError(ValueError):
    """Raised when a file yields no importable rows; nothing is written."""

    def __init__(
        self, message: str = "No rows found to import.", *, report: ImportReport | None = None
    ):
        super().__init__(message)
        self.report = report


class CancellationToken:
    """Cooperative cancellation flag checked between batches."""

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class ImportReport:
    """Outcome of one import run."""

    parsed: int = 0
    inserted_count: int = 0
    duplicate_count: int = 0
    invalid_date_count: int = 0
    invalid_amount_count: int = 0
    batch_error_count: int = 0
    first_error_message: Optional[str] = None
    cancelled: bool = False

    @property
    def has_error(self) -> bool:
        return bool(self.first_error_message)

    def summary(self) -> str:
        lines = [
            f"Rows detected: {self.parsed}",
            f"Imported: {self.inserted_count} • Skipped duplicates: {self.duplicate_count}"
            f" • Errors: {self.batch_error_count}",
            f"Skipped (invalid date): {self.invalid_date_count}"
            f" • Skipped (invalid amount): {self.invalid_amount_count}",
        ]
        if self.cancelled:
            lines.append("Import cancelled before all batches were written.")
        if self.first_error_message:
            lines.append(f"First error: {self.first_error_message}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["has_error"] = self.has_error
        payload["summary"] = self.summary()
        return payload


@dataclass
class _ImportTally:
    """Mutable counters for a run in progress; frozen into an ``ImportReport`` at the end."""

    parsed: int = 0
    inserted_count: int = 0
    duplicate_count: int = 0
    invalid_date_count: int = 0
    invalid_amount_count: int = 0
    batch_error_count: int = 0
    first_error_message: Optional[str] = None
    cancelled: bool = False

    def record_error(self, batch_len: int, message: str) -> None:
        self.batch_error_count += batch_len
        if self.first_error_message is None:
            self.first_error_message = message

    def freeze(self) -> ImportReport:
        return ImportReport(**asdict(self))


def _batches(rows: Sequence[dict[str, Any]], size: int):
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def import_all(
    transactions: Sequence[NormalizedTransaction],
    store: LedgerStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel_token: CancellationToken | None = None,
    created_by: str | None = None,
    tally: _ImportTally | None = None,
) -> ImportReport:
    """Write ``transactions`` to ``store`` in sequential batches.

    Each batch is one insert-or-skip call keyed on the fingerprint; rows the
    store does not return are counted as duplicates. A failing batch is
    counted as errored in full and the run moves on to the next batch.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if tally is None:
        tally = _ImportTally(parsed=len(transactions))
    if not transactions:
        raise EmptyImportError(report=tally.freeze())

    rows = [tx.to_row(created_by=created_by) for tx in transactions]
    for index, batch in enumerate(_batches(rows, batch_size)):
        if cancel_token is not None and cancel_token.cancelled:
            tally.cancelled = True
            logger.info("Import cancelled", extra={"batch_index": index})
            break
        try:
            inserted = store.upsert(batch, conflict_key="fingerprint", ignore_duplicates=True)
        except Exception as exc:
            tally.record_error(len(batch), str(exc) or exc.__class__.__name__)
            logger.warning(
                "Import batch failed",
                extra={"batch_index": index, "batch_size": len(batch), "error": str(exc)},
            )
            continue
        inserted_count = min(len(inserted), len(batch))
        tally.inserted_count += inserted_count
        tally.duplicate_count += len(batch) - inserted_count

    report = tally.freeze()
    logger.info(
        "Import finished",
        extra={
            "parsed": report.parsed,
            "inserted": report.inserted_count,
            "duplicates": report.duplicate_count,
            "batch_errors": report.batch_error_count,
            "cancelled": report.cancelled,
        },
    )
    return report


def normalize_all(records: Sequence[RawRecord], tally: _ImportTally) -> list[NormalizedFields]:
    normalized: list[NormalizedFields] = []
    for record in records:
        outcome = normalize_record(record)
        if outcome.skip_reason == INVALID_DATE:
            tally.invalid_date_count += 1
        elif outcome.skip_reason == INVALID_AMOUNT:
            tally.invalid_amount_count += 1
        elif outcome.fields is not None:
            normalized.append(outcome.fields)
    return normalized


# One active run per user; a new run cancels the previous one.
_ACTIVE_IMPORTS: dict[str, CancellationToken] = {}
_LOCK = Lock()


def begin_import(user_id: str) -> CancellationToken:
    token = CancellationToken()
    with _LOCK:
        previous = _ACTIVE_IMPORTS.get(user_id)
        _ACTIVE_IMPORTS[user_id] = token
    if previous is not None:
        previous.cancel()
        logger.info("Cancelled previous import", extra={"user_id": user_id})
    return token


def finish_import(user_id: str, token: CancellationToken) -> None:
    with _LOCK:
        if _ACTIVE_IMPORTS.get(user_id) is token:
            del _ACTIVE_IMPORTS[user_id]


def clear_active_imports() -> None:
    """Forget all in-flight runs (useful for tests)."""

    with _LOCK:
        _ACTIVE_IMPORTS.clear()


def import_ledger_csv(
    text: str,
    *,
    store: LedgerStore,
    session: AuthSession,
    source: str = DEFAULT_SOURCE,
    batch_size: int = DEFAULT_BATCH_SIZE,
    cancel_token: CancellationToken | None = None,
) -> ImportReport:
    """Run the full pipeline over CSV ``text`` on behalf of ``session.user_id``.

    Raises:
        EmptyImportError: when no row has a usable date and amount.
    """

    records = read_records(text)
    tally = _ImportTally(parsed=len(records))
    logger.info(
        "Import started",
        extra={"user_id": session.user_id, "source": source, "rows": len(records)},
    )

    normalized = normalize_all(records, tally)
    if not normalized:
        raise EmptyImportError(report=tally.freeze())

    directory = store.list_property_directory()
    transactions = [reconcile(fields, directory, source) for fields in normalized]

    token = cancel_token or begin_import(session.user_id)
    try:
        return import_all(
            transactions,
            store,
            batch_size=batch_size,
            cancel_token=token,
            created_by=session.user_id,
            tally=tally,
        )
    finally:
        if cancel_token is None:
            finish_import(session.user_id, token)
