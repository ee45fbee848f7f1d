"""Rehab project and task forms."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar, Optional

from ...models.rehab import COMPLETED_STATUSES, PROJECT_STATUSES, TASK_STATUSES
from ..forms import BaseForm


@dataclass(slots=True)
class ProjectForm(BaseForm):
    """Project fields; with ``partial`` only the submitted keys are returned."""

    FIELDS: ClassVar[tuple[str, ...]] = (
        "property_id",
        "title",
        "status",
        "budget_target",
        "start_date",
        "target_end_date",
    )

    partial: bool = False
    property_id: Optional[int] = None
    title: Optional[str] = None
    status: str = "Active"
    budget_target: Optional[float] = None
    start_date: Optional[date] = None
    target_end_date: Optional[date] = None

    def validate(self) -> bool:
        self.errors.clear()

        if not self.partial:
            self.property_id = self._integer("property_id", required=True, label="Property")
        if not self.partial or "title" in self.present:
            self.title = self._text("title", required=True, label="Title")
        status = self.raw_data.get("status") or "Active"
        if status not in PROJECT_STATUSES and status not in COMPLETED_STATUSES:
            self._add_error("status", f"Unknown project status: {status}")
        else:
            self.status = status
        self.budget_target = self._number("budget_target", label="Budget target", minimum=0)
        self.start_date = self._date("start_date", label="Start date")
        self.target_end_date = self._date("target_end_date", label="Target end date")

        if self.start_date and self.target_end_date and self.target_end_date < self.start_date:
            self._add_error("target_end_date", "Target end date must be after the start date.")
        return not self.errors

    def changes(self) -> dict[str, Any]:
        """Submitted project fields, ready for a partial update."""

        values = {
            "title": self.title,
            "status": self.status,
            "budget_target": self.budget_target,
            "start_date": self.start_date,
            "target_end_date": self.target_end_date,
        }
        return {key: value for key, value in values.items() if key in self.present}


@dataclass(slots=True)
class TaskForm(BaseForm):
    FIELDS: ClassVar[tuple[str, ...]] = ("title", "status", "due_date", "cost_est")

    title: str = ""
    status: str = "Todo"
    due_date: Optional[date] = None
    cost_est: Optional[float] = None

    def validate(self) -> bool:
        self.errors.clear()
        self.title = self._text("title", required=True, label="Title") or ""
        status = self.raw_data.get("status") or "Todo"
        if status not in TASK_STATUSES:
            self._add_error("status", f"Status must be one of: {', '.join(TASK_STATUSES)}.")
        else:
            self.status = status
        self.due_date = self._date("due_date", label="Due date")
        self.cost_est = self._number("cost_est", label="Estimated cost", minimum=0)
        return not self.errors
