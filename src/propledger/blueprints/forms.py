"""Shared form binding and field parsing helpers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, ClassVar, Optional


@dataclass(slots=True)
class BaseForm:
    """Binds raw request values as strings and collects per-field errors."""

    FIELDS: ClassVar[tuple[str, ...]] = ()

    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    raw_data: dict[str, str] = field(default_factory=dict, init=False)
    present: set[str] = field(default_factory=set, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]):
        """Create a form populated from request data."""

        form = cls()
        form.load(data)
        return form

    def load(self, data: Mapping[str, Any]) -> None:
        """Bind incoming mapping data to the form state."""

        self.raw_data = {}
        self.present = set()
        for key in self.FIELDS:
            if key in data:
                self.present.add(key)
            value = data.get(key)
            if value is None:
                value_str = ""
            elif isinstance(value, bool):
                value_str = "true" if value else ""
            elif isinstance(value, str):
                value_str = value
            else:
                value_str = str(value)
            self.raw_data[key] = value_str.strip()

    def _add_error(self, field: str, message: str) -> None:
        """Accumulate validation errors for a specific field."""

        self.errors.setdefault(field, []).append(message)

    def _text(
        self, key: str, *, required: bool = False, label: str = "", max_length: int = 255
    ) -> Optional[str]:
        name = label or key.capitalize()
        value = self.raw_data.get(key, "")
        if not value:
            if required:
                self._add_error(key, f"{name} is required.")
            return None
        if len(value) > max_length:
            self._add_error(key, f"{name} must be {max_length} characters or fewer.")
            return None
        return value

    def _number(
        self, key: str, *, required: bool = False, label: str = "", minimum: float | None = None
    ) -> Optional[float]:
        name = label or key.capitalize()
        raw = self.raw_data.get(key, "").replace(",", "").replace("$", "")
        if not raw:
            if required:
                self._add_error(key, f"{name} is required.")
            return None
        try:
            value = float(raw)
        except ValueError:
            self._add_error(key, f"{name} must be a number.")
            return None
        if value != value or value in (float("inf"), float("-inf")):
            self._add_error(key, f"{name} must be a number.")
            return None
        if minimum is not None and value < minimum:
            self._add_error(key, f"{name} must be at least {minimum:g}.")
            return None
        return value

    def _integer(self, key: str, *, required: bool = False, label: str = "") -> Optional[int]:
        name = label or key.capitalize()
        raw = self.raw_data.get(key, "")
        if not raw:
            if required:
                self._add_error(key, f"{name} is required.")
            return None
        try:
            value = int(raw)
        except ValueError:
            self._add_error(key, f"{name} must be a whole number.")
            return None
        if value <= 0:
            self._add_error(key, f"{name} must be greater than zero.")
            return None
        return value

    def _date(self, key: str, *, required: bool = False, label: str = "") -> Optional[date]:
        name = label or key.capitalize()
        raw = self.raw_data.get(key, "")
        if not raw:
            if required:
                self._add_error(key, f"{name} is required.")
            return None
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            self._add_error(key, "Enter a valid date (YYYY-MM-DD).")
            return None

    def _flag(self, key: str) -> bool:
        return self.raw_data.get(key, "").lower() in {"1", "true", "yes", "on"}
