"""Blueprint package and the JSON/auth helpers shared by every API surface."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Mapping, TypeVar, cast

from flask import g, jsonify, request

from ..extensions import get_identity_provider
from ..services.auth import AuthSession, authenticate

F = TypeVar("F", bound=Callable[..., Any])


def error_response(code: str, message: str, status: int, **extra: Any):
    """Uniform ``{"error", "message"}`` payload."""

    payload: dict[str, Any] = {"error": code, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def require_auth(view: F) -> F:
    """Reject requests without a valid bearer token; stash the session on ``g``."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        session = authenticate(get_identity_provider(), request.headers.get("Authorization"))
        if session is None:
            return error_response("unauthorized", "Missing or invalid authorization token.", 401)
        g.auth_session = session
        return view(*args, **kwargs)

    return cast(F, wrapper)


def current_session() -> AuthSession:
    return g.auth_session


def request_data() -> Mapping[str, Any]:
    """JSON body when present, otherwise form fields."""

    if request.is_json:
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else {}
    return request.form


__all__ = ["current_session", "error_response", "request_data", "require_auth"]
