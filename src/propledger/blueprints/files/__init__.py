"""Signed file downloads for objects in the local object store."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("files", __name__, url_prefix="/files")

from . import routes  # noqa: E402,F401 - ensure routes get registered

__all__ = ["bp"]
