"""Rehab projects blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("rehab", __name__, url_prefix="/rehab")

from . import routes  # noqa: E402,F401 - ensure routes get registered

__all__ = ["bp"]
