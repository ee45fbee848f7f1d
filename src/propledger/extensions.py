"""Database and capability wiring for the Flask app."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from flask import Flask, current_app
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import (
    SessionFactory,
    create_db_engine,
    create_session_factory,
    init_database,
)
from .infra.repositories import (
    SQLModelLedgerRepository,
    SQLModelLedgerStore,
    SQLModelPropertyRepository,
    SQLModelRehabRepository,
)
from .services.auth import IdentityProvider, StaticIdentityProvider
from .services.storage import LocalObjectStore, ObjectStore

EXTENSION_KEY = "propledger"


def init_db(app: Flask) -> None:
    """Create the engine, schema and session factory for ``app``."""

    config: BaseConfig = app.config["PROPLEDGER_CONFIG"]
    engine = create_db_engine(config)
    init_database(engine)
    state = app.extensions.setdefault(EXTENSION_KEY, {})
    state["engine"] = engine
    state["session_factory"] = create_session_factory(engine)


def init_services(app: Flask) -> None:
    """Attach the identity provider and object store; tests may replace either."""

    config: BaseConfig = app.config["PROPLEDGER_CONFIG"]
    state = app.extensions.setdefault(EXTENSION_KEY, {})
    state.setdefault("identity", StaticIdentityProvider(config.AUTH_TOKENS))
    state.setdefault("object_store", LocalObjectStore(config.STORAGE_DIR, config.SECRET_KEY))


def _state() -> dict[str, Any]:
    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError:  # pragma: no cover - exercised only when wiring is skipped
        raise RuntimeError("Database engine not initialized") from None


def get_session_factory() -> SessionFactory:
    return _state()["session_factory"]


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope around operations."""

    with get_session_factory()() as session:
        yield session


def get_identity_provider() -> IdentityProvider:
    return _state()["identity"]


def get_object_store() -> ObjectStore:
    return _state()["object_store"]


def get_config() -> BaseConfig:
    return current_app.config["PROPLEDGER_CONFIG"]


def ledger_store() -> SQLModelLedgerStore:
    return SQLModelLedgerStore(get_session_factory())


def ledger_repository() -> SQLModelLedgerRepository:
    return SQLModelLedgerRepository(get_session_factory())


def property_repository() -> SQLModelPropertyRepository:
    return SQLModelPropertyRepository(get_session_factory())


def rehab_repository() -> SQLModelRehabRepository:
    return SQLModelRehabRepository(get_session_factory())
