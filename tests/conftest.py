"""Pytest configuration and shared fixtures for PropLedger tests.

Provides an isolated SQLite database per test, repositories bound to it, and a
Flask app/client pair wired with a static bearer-token identity provider.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from propledger import create_app
from propledger.config import BaseConfig
from propledger.infra.database import create_db_engine, create_session_factory, init_database
from propledger.infra.repositories import (
    SQLModelLedgerRepository,
    SQLModelLedgerStore,
    SQLModelPropertyRepository,
    SQLModelRehabRepository,
)
from propledger.models import Property
from propledger.services.auth import AuthSession
from propledger.services.importers import clear_active_imports
from propledger.services.underwriting import default_underwriting

AUTH_TOKENS = "owner-token:user-1:owner@example.com,crew-token:user-2:crew@example.com"


@pytest.fixture(autouse=True)
def _env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point every config read at a throwaway data directory."""

    monkeypatch.setenv("PROPLEDGER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PROPLEDGER_DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("PROPLEDGER_AUTH_TOKENS", AUTH_TOKENS)
    monkeypatch.setenv("PROPLEDGER_DEV_MODE", "true")
    yield
    clear_active_imports()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture()
def session_factory():
    """Transactional session factory over a freshly created schema."""

    engine = create_db_engine(BaseConfig())
    init_database(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def ledger_store(session_factory) -> SQLModelLedgerStore:
    return SQLModelLedgerStore(session_factory)


@pytest.fixture()
def ledger_repo(session_factory) -> SQLModelLedgerRepository:
    return SQLModelLedgerRepository(session_factory)


@pytest.fixture()
def property_repo(session_factory) -> SQLModelPropertyRepository:
    return SQLModelPropertyRepository(session_factory)


@pytest.fixture()
def rehab_repo(session_factory) -> SQLModelRehabRepository:
    return SQLModelRehabRepository(session_factory)


@pytest.fixture()
def property_factory(property_repo):
    """Factory persisting a property with default underwriting."""

    def _create(address: str = "100 Test Ave", **fields) -> Property:
        return property_repo.create(Property(address=address, **fields), default_underwriting())

    return _create


@pytest.fixture()
def owner() -> AuthSession:
    return AuthSession(user_id="user-1", token="owner-token")


@pytest.fixture()
def crew() -> AuthSession:
    return AuthSession(user_id="user-2", token="crew-token")


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture()
def app():
    return create_app("testing")


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer owner-token"}


@pytest.fixture()
def crew_headers() -> dict[str, str]:
    return {"Authorization": "Bearer crew-token"}
