"""PropLedger application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .logging_config import setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths."""

    yield "propledger.blueprints.ledger"
    yield "propledger.blueprints.properties"
    yield "propledger.blueprints.rehab"
    yield "propledger.blueprints.files"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_cls = _resolve_config(config_name or app.config.get("ENV"))
    config_obj = config_cls()
    app.config.from_object(config_obj)
    app.config["PROPLEDGER_CONFIG"] = config_obj

    setup_logging(config_obj)
    _register_blueprints(app)

    from .extensions import init_db, init_services

    init_db(app)
    init_services(app)
    _cli.init_app(app)

    app.logger.info("PropLedger app created", extra={"config": config_cls.__name__})
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
