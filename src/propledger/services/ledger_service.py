"""Ledger rollups: closing costs, rehab budgets, and entry serialization."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..models.ledger import LedgerEntry
from ..models.rehab import RehabProject
from .storage import ObjectStore, resolve_link

LEDGER_LIMIT = 1000


@dataclass
class LedgerFilters:
    """Filters applied to ledger listings."""

    kind: Optional[str] = None  # income | expense | None for all
    text: Optional[str] = None

    @classmethod
    def from_args(cls, args) -> LedgerFilters:
        kind = (args.get("kind") or args.get("type") or "").strip().lower()
        text = (args.get("q") or args.get("search") or "").strip()
        return cls(kind=kind if kind in {"income", "expense"} else None, text=text or None)


@dataclass(frozen=True)
class ClosingCostSummary:
    total: float
    count: int
    average: float
    entries: list[LedgerEntry] = field(default_factory=list)


def is_closing_cost(entry: LedgerEntry) -> bool:
    """Tagged ``closing``; untagged rows fall back to the category name."""

    if entry.cost_tag:
        return entry.cost_tag.strip().lower() == "closing"
    return "closing" in (entry.category or "").lower()


def summarize_closing_costs(entries: Iterable[LedgerEntry]) -> ClosingCostSummary:
    rows = [entry for entry in entries if is_closing_cost(entry)]
    total = sum(abs(entry.amount or 0.0) for entry in rows)
    count = len(rows)
    return ClosingCostSummary(
        total=round(total, 2),
        count=count,
        average=round(total / count, 2) if count else 0.0,
        entries=rows,
    )


@dataclass(frozen=True)
class RehabBudget:
    project_id: int
    property_id: int
    title: str
    status: str
    budget_target: float
    spent: float
    remaining: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "property_id": self.property_id,
            "title": self.title,
            "status": self.status,
            "budget_target": round(self.budget_target, 2),
            "spent": round(self.spent, 2),
            "remaining": round(self.remaining, 2),
        }


def rehab_budgets(
    projects: Iterable[RehabProject], rehab_entries: Iterable[LedgerEntry]
) -> list[RehabBudget]:
    """Budget target vs spend per project; spend is the sum of |amount| of its rehab expenses."""

    spent: dict[int, float] = defaultdict(float)
    for entry in rehab_entries:
        if not entry.is_rehab or entry.rehab_project_id is None or entry.kind != "expense":
            continue
        spent[entry.rehab_project_id] += abs(entry.amount or 0.0)

    budgets: list[RehabBudget] = []
    for project in projects:
        if project.id is None:
            continue
        target = float(project.budget_target or 0.0)
        project_spent = spent.get(project.id, 0.0)
        budgets.append(
            RehabBudget(
                project_id=project.id,
                property_id=project.property_id,
                title=project.title,
                status=project.status,
                budget_target=target,
                spent=project_spent,
                remaining=target - project_spent,
            )
        )
    return budgets


def budget_totals(budgets: Iterable[RehabBudget]) -> dict[str, float]:
    totals = {"count": 0, "budget_target": 0.0, "spent": 0.0, "remaining": 0.0}
    for budget in budgets:
        totals["count"] += 1
        totals["budget_target"] += budget.budget_target
        totals["spent"] += budget.spent
        totals["remaining"] += budget.remaining
    return {key: round(value, 2) for key, value in totals.items()}


def entry_to_dict(
    entry: LedgerEntry,
    *,
    address: str | None = None,
    store: ObjectStore | None = None,
    expires_in: int = 60,
) -> dict[str, Any]:
    """JSON shape of a ledger row; receipt pointers become signed URLs when a store is given."""

    receipt_url = resolve_link(entry.receipt_link, store, expires_in=expires_in) if store else None
    return {
        "id": entry.id,
        "date": entry.occurred_on.isoformat() if entry.occurred_on else None,
        "kind": entry.kind,
        "category": entry.category,
        "amount": round(entry.amount, 2) if entry.amount is not None else None,
        "vendor": entry.vendor,
        "description": entry.description,
        "receipt_link": entry.receipt_link,
        "receipt_url": receipt_url,
        "property_id": entry.property_id,
        "property_address": address,
        "is_rehab": entry.is_rehab,
        "rehab_project_id": entry.rehab_project_id,
        "cost_tag": entry.cost_tag,
        "fingerprint": entry.fingerprint,
        "source": entry.source,
        "created_by": entry.created_by,
    }
