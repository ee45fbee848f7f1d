"""Property and underwriting routes."""

from __future__ import annotations

from typing import Any, Optional

from flask import current_app, jsonify, request

from ...extensions import property_repository
from ...models.property import Property, Underwriting
from ...services.underwriting import (
    UnderwritingMetrics,
    apply_inputs,
    compute_underwriting,
    default_underwriting,
    is_portfolio,
    portfolio_totals,
)
from .. import error_response, request_data, require_auth
from . import bp
from .forms import UNDERWRITING_FIELDS, PropertyForm, UnderwritingForm


def _metrics(prop: Property, underwriting: Optional[Underwriting]) -> UnderwritingMetrics:
    inputs = underwriting or default_underwriting(prop.id)
    if inputs.purchase_price_actual is None and prop.purchase_price_actual is not None:
        # Detached copy so the fallback price never reaches the stored row.
        inputs = Underwriting(**{name: getattr(inputs, name) for name in UNDERWRITING_FIELDS})
        inputs.purchase_price_actual = prop.purchase_price_actual
    return compute_underwriting(inputs, prop.square_footage)


def _property_payload(prop: Property, underwriting: Optional[Underwriting]) -> dict[str, Any]:
    return {
        "id": prop.id,
        "address": prop.address,
        "status": prop.status,
        "square_footage": prop.square_footage,
        "purchase_price_actual": prop.purchase_price_actual,
        "is_portfolio": is_portfolio(prop),
        "underwriting": (
            {name: getattr(underwriting, name) for name in UNDERWRITING_FIELDS}
            if underwriting
            else None
        ),
        "metrics": _metrics(prop, underwriting).to_dict(),
    }


def _parse_ids(raw: str | None) -> Optional[list[int]]:
    if not raw:
        return None
    ids: list[int] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if chunk.isdigit():
            ids.append(int(chunk))
    return ids


@bp.get("/")
@require_auth
def list_properties():
    """All properties with computed metrics and portfolio totals for ``?ids=``."""

    repo = property_repository()
    rows = [(prop, repo.get_underwriting(prop.id)) for prop in repo.list_all()]
    selected = _parse_ids(request.args.get("ids"))
    totals = portfolio_totals(
        ((prop, _metrics(prop, underwriting)) for prop, underwriting in rows), selected
    )
    return jsonify(
        {
            "properties": [_property_payload(prop, uw) for prop, uw in rows],
            "totals": totals.to_dict(),
        }
    )


@bp.post("/")
@require_auth
def create_property():
    """Create a property seeded with default underwriting assumptions."""

    data = request_data()
    form = PropertyForm.from_mapping(data)
    uw_form = UnderwritingForm.from_mapping(data)
    valid = form.validate()
    valid = uw_form.validate() and valid
    if not valid:
        return error_response(
            "invalid_form",
            "Please correct the highlighted fields.",
            400,
            fields={**form.errors, **uw_form.errors},
        )

    underwriting = apply_inputs(default_underwriting(), uw_form.values)
    if underwriting.purchase_price_actual is None:
        underwriting.purchase_price_actual = form.purchase_price_actual
    prop = property_repository().create(Property(**form.changes()), underwriting)
    current_app.logger.info("Property created", extra={"property_id": prop.id})
    return jsonify({"property": _property_payload(prop, underwriting)}), 201


@bp.get("/<int:property_id>")
@require_auth
def get_property(property_id: int):
    repo = property_repository()
    prop = repo.get_by_id(property_id)
    if prop is None:
        return error_response("not_found", f"Property {property_id} was not found.", 404)
    return jsonify({"property": _property_payload(prop, repo.get_underwriting(property_id))})


@bp.route("/<int:property_id>", methods=["PUT", "PATCH"])
@require_auth
def update_property(property_id: int):
    """Partially update property fields and underwriting inputs."""

    repo = property_repository()
    prop = repo.get_by_id(property_id)
    if prop is None:
        return error_response("not_found", f"Property {property_id} was not found.", 404)

    data = request_data()
    form = PropertyForm.from_mapping(data)
    form.partial = True
    uw_form = UnderwritingForm.from_mapping(data)
    valid = form.validate()
    valid = uw_form.validate() and valid
    if not valid:
        return error_response(
            "invalid_form",
            "Please correct the highlighted fields.",
            400,
            fields={**form.errors, **uw_form.errors},
        )

    changes = form.changes()
    if changes:
        for key, value in changes.items():
            setattr(prop, key, value)
        prop = repo.update(prop)

    underwriting = repo.get_underwriting(property_id)
    if uw_form.values:
        underwriting = underwriting or default_underwriting(property_id)
        underwriting = repo.save_underwriting(apply_inputs(underwriting, uw_form.values))

    if not changes and not uw_form.values:
        return error_response("no_changes", "No fields to update.", 400)
    return jsonify({"property": _property_payload(prop, underwriting)})


@bp.delete("/<int:property_id>")
@require_auth
def delete_property(property_id: int):
    """Delete a property with its underwriting, ledger rows and rehab projects."""

    if not property_repository().delete(property_id):
        return error_response("not_found", f"Property {property_id} was not found.", 404)
    current_app.logger.info("Property deleted", extra={"property_id": property_id})
    return jsonify({"ok": True})
