from __future__ import annotations

import pytest

from propledger import create_app
from propledger import config as app_config
from propledger.config import BaseConfig, _parse_token_map
from propledger.extensions import EXTENSION_KEY


def test_defaults_follow_environment(tmp_path):
    config = BaseConfig()

    assert config.DATA_DIR == tmp_path.resolve()
    assert config.IMPORT_BATCH_SIZE == 200
    assert config.IMPORT_SOURCE_TAG == "csv"
    assert config.STORAGE_DIR == tmp_path.resolve() / "storage"
    assert config.AUTH_TOKENS["owner-token"] == {"user_id": "user-1", "email": "owner@example.com"}
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_sqlite_url_built_from_data_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("PROPLEDGER_DATABASE_URL")

    config = BaseConfig()

    assert config.DATABASE_URL == f"sqlite:///{tmp_path.resolve() / 'propledger.db'}"


def test_batch_size_must_be_positive(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PROPLEDGER_IMPORT_BATCH_SIZE", "0")
    with pytest.raises(ValueError, match="at least 1"):
        BaseConfig()

    monkeypatch.setenv("PROPLEDGER_IMPORT_BATCH_SIZE", "many")
    with pytest.raises(ValueError, match="whole number"):
        BaseConfig()


def test_secret_required_outside_dev_mode(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PROPLEDGER_DEV_MODE", "false")
    monkeypatch.delenv("PROPLEDGER_SECRET_KEY", raising=False)
    with pytest.raises(ValueError, match="SECRET_KEY"):
        BaseConfig()

    monkeypatch.setenv("PROPLEDGER_SECRET_KEY", "s3cret")
    assert BaseConfig().SECRET_KEY == "s3cret"


def test_parse_token_map_skips_malformed_pairs():
    tokens = _parse_token_map("a:u1:A@X.com, b:u2 ,broken,:u3,c:")

    assert tokens == {"a": {"user_id": "u1", "email": "a@x.com"}, "b": {"user_id": "u2"}}
    assert _parse_token_map(None) == {}


def test_create_app_wires_services():
    app = create_app("testing")

    assert app.config["TESTING"] is True
    assert isinstance(app.config["PROPLEDGER_CONFIG"], app_config.TestConfig)
    state = app.extensions[EXTENSION_KEY]
    assert {"engine", "session_factory", "identity", "object_store"} <= set(state)
    assert {"ledger", "properties", "rehab", "files"} <= set(app.blueprints)


def test_unknown_config_name_falls_back_to_base():
    app = create_app("staging")

    assert type(app.config["PROPLEDGER_CONFIG"]) is BaseConfig
    assert isinstance(create_app("development").config["PROPLEDGER_CONFIG"], app_config.DevConfig)
