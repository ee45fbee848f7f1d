"""Identity capability consumed by the API.

Accounts, passwords and token issuance belong to an external identity
provider; this module only verifies bearer tokens and resolves users.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol


@dataclass(slots=True, frozen=True)
class AuthSession:
    """The authenticated caller, passed explicitly to services that need it."""

    user_id: str
    token: str


class IdentityProvider(Protocol):
    def verify_token(self, token: str) -> Optional[str]:
        """Return the user id owning ``token``, or ``None`` when it is invalid."""
        ...

    def find_user_id(self, email: str) -> Optional[str]:
        ...

    def email_for(self, user_id: str) -> Optional[str]:
        ...


class StaticIdentityProvider:
    """Identity provider backed by a fixed ``token -> {user_id, email}`` map.

    Used in development and tests, configured through ``PROPLEDGER_AUTH_TOKENS``.
    """

    def __init__(self, tokens: Mapping[str, Mapping[str, str]]):
        self._tokens = {token: dict(entry) for token, entry in tokens.items()}

    def verify_token(self, token: str) -> Optional[str]:
        entry = self._tokens.get(token)
        return entry["user_id"] if entry else None

    def find_user_id(self, email: str) -> Optional[str]:
        wanted = email.strip().lower()
        for entry in self._tokens.values():
            if entry.get("email", "").lower() == wanted:
                return entry["user_id"]
        return None

    def email_for(self, user_id: str) -> Optional[str]:
        for entry in self._tokens.values():
            if entry["user_id"] == user_id:
                return entry.get("email")
        return None


def parse_bearer(header: str | None) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""

    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def authenticate(provider: IdentityProvider, header: str | None) -> Optional[AuthSession]:
    token = parse_bearer(header)
    if token is None:
        return None
    user_id = provider.verify_token(token)
    if not user_id:
        return None
    return AuthSession(user_id=user_id, token=token)
