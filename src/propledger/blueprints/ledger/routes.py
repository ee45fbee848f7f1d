"""Ledger routes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from flask import current_app, jsonify, request

from ...extensions import (
    get_config,
    get_object_store,
    ledger_repository,
    ledger_store,
    rehab_repository,
)
from ...models.ledger import LedgerEntry
from ...services.csv_table import parse_csv_text, resolve_columns
from ...services.importers import EmptyImportError, import_ledger_csv
from ...services.ledger_service import (
    LEDGER_LIMIT,
    LedgerFilters,
    budget_totals,
    entry_to_dict,
    rehab_budgets,
    summarize_closing_costs,
)
from ...services.storage import ObjectExistsError, make_pointer, receipt_object_path
from .. import current_session, error_response, request_data, require_auth
from . import bp
from .forms import LedgerEntryForm


def _serialize(entry: LedgerEntry, address: str | None = None) -> dict[str, Any]:
    return entry_to_dict(
        entry,
        address=address,
        store=get_object_store(),
        expires_in=get_config().SIGNED_URL_TTL,
    )


def _form_data(entry: LedgerEntry) -> dict[str, Any]:
    """Current values of ``entry`` in the shape the form binds."""

    return {
        "date": entry.occurred_on.isoformat() if entry.occurred_on else "",
        "kind": entry.kind,
        "category": entry.category,
        "amount": entry.amount,
        "vendor": entry.vendor,
        "description": entry.description,
        "receipt_link": entry.receipt_link,
        "property_id": entry.property_id,
        "is_rehab": entry.is_rehab,
        "rehab_project_id": entry.rehab_project_id,
        "cost_tag": entry.cost_tag,
    }


@bp.get("/")
@require_auth
def list_transactions():
    """Latest ledger rows, filtered by ``kind`` and free-text ``q``."""

    filters = LedgerFilters.from_args(request.args)
    rows = ledger_repository().search(kind=filters.kind, text=filters.text, limit=LEDGER_LIMIT)
    return jsonify(
        {
            "entries": [_serialize(entry, address) for entry, address in rows],
            "count": len(rows),
            "filters": {"kind": filters.kind, "q": filters.text},
        }
    )


@bp.post("/")
@require_auth
def create_transaction():
    """Persist a new transaction from submitted data."""

    form = LedgerEntryForm.from_mapping(request_data())
    if not form.validate():
        return error_response(
            "invalid_form", "Please correct the highlighted fields.", 400, fields=form.errors
        )

    entry = LedgerEntry(**form.to_fields(), created_by=current_session().user_id)
    entry = ledger_repository().create(entry)
    current_app.logger.info("Ledger entry created", extra={"entry_id": entry.id})
    return jsonify({"entry": _serialize(entry)}), 201


@bp.get("/<int:entry_id>")
@require_auth
def get_transaction(entry_id: int):
    entry = ledger_repository().get_by_id(entry_id)
    if entry is None:
        return error_response("not_found", f"Transaction {entry_id} was not found.", 404)
    return jsonify({"entry": _serialize(entry)})


@bp.route("/<int:entry_id>", methods=["PUT", "PATCH"])
@require_auth
def update_transaction(entry_id: int):
    """Apply submitted fields over the stored row and re-validate the whole entry."""

    repo = ledger_repository()
    entry = repo.get_by_id(entry_id)
    if entry is None:
        return error_response("not_found", f"Transaction {entry_id} was not found.", 404)

    merged = _form_data(entry)
    merged.update(request_data().items())
    form = LedgerEntryForm.from_mapping(merged)
    if not form.validate():
        return error_response(
            "invalid_form", "Please correct the highlighted fields.", 400, fields=form.errors
        )

    for key, value in form.to_fields().items():
        setattr(entry, key, value)
    entry = repo.update(entry)
    current_app.logger.info("Ledger entry updated", extra={"entry_id": entry_id})
    return jsonify({"entry": _serialize(entry)})


@bp.delete("/<int:entry_id>")
@require_auth
def delete_transaction(entry_id: int):
    repo = ledger_repository()
    if repo.get_by_id(entry_id) is None:
        return error_response("not_found", f"Transaction {entry_id} was not found.", 404)
    repo.delete(entry_id)
    current_app.logger.info("Ledger entry deleted", extra={"entry_id": entry_id})
    return jsonify({"ok": True})


@bp.post("/<int:entry_id>/receipt")
@require_auth
def upload_receipt(entry_id: int):
    """Store an uploaded receipt and point the transaction at it."""

    repo = ledger_repository()
    if repo.get_by_id(entry_id) is None:
        return error_response("not_found", f"Transaction {entry_id} was not found.", 404)

    file_storage = request.files.get("file")
    if file_storage is None or not file_storage.filename:
        return error_response("missing_file", "Please choose a receipt file to upload.", 400)

    config = get_config()
    path = receipt_object_path(entry_id, file_storage.filename)
    try:
        get_object_store().upload(
            config.RECEIPTS_BUCKET,
            path,
            file_storage.read(),
            content_type=file_storage.mimetype,
        )
    except ObjectExistsError as exc:
        return error_response("conflict", str(exc), 409)
    entry = repo.set_receipt_link(entry_id, make_pointer(config.RECEIPTS_BUCKET, path))
    return jsonify({"entry": _serialize(entry)}), 201


@bp.get("/closing-costs")
@require_auth
def closing_costs():
    summary = summarize_closing_costs(ledger_repository().list_closing_costs())
    return jsonify(
        {
            "total": summary.total,
            "count": summary.count,
            "average": summary.average,
            "entries": [_serialize(entry) for entry in summary.entries],
        }
    )


@bp.get("/rehab-budgets")
@require_auth
def list_rehab_budgets():
    """Budget target, spend and remaining per rehab project."""

    budgets = rehab_budgets(
        rehab_repository().list_projects(), ledger_repository().list_rehab_entries()
    )
    return jsonify(
        {
            "budgets": [budget.to_dict() for budget in budgets],
            "totals": budget_totals(budgets),
        }
    )


def _upload_text() -> str | None:
    if request.mimetype == "text/csv":
        return request.get_data(as_text=True)
    file_storage = request.files.get("file")
    if file_storage is not None and file_storage.filename:
        return file_storage.read().decode("utf-8-sig", errors="replace")
    return None


@bp.post("/import")
@require_auth
def import_transactions():
    """Import a ledger CSV; ``preview=1`` returns the resolved columns and sample rows instead."""

    text = _upload_text()
    if not text:
        return error_response("missing_file", "Please choose a CSV file to import.", 400)

    if request.values.get("preview") in {"1", "true", "yes"}:
        rows = parse_csv_text(text)
        mapping = resolve_columns(rows[0].keys()) if rows else resolve_columns([])
        return jsonify(
            {
                "message": "Preview generated.",
                "mapping": asdict(mapping),
                "samples": rows[:5],
                "total_rows": len(rows),
            }
        )

    config = get_config()
    try:
        report = import_ledger_csv(
            text,
            store=ledger_store(),
            session=current_session(),
            source=request.values.get("source") or config.IMPORT_SOURCE_TAG,
            batch_size=config.IMPORT_BATCH_SIZE,
        )
    except EmptyImportError as exc:
        extra = {"report": exc.report.to_dict()} if exc.report else {}
        return error_response("empty_import", str(exc), 400, **extra)

    return jsonify({"report": report.to_dict(), "message": report.summary()})
