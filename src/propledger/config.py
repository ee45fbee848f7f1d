"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be a whole number, got {value!r}") from None


def _parse_token_map(raw: str | None) -> dict[str, dict[str, str]]:
    """Parse ``token:user_id[:email]`` pairs separated by commas."""

    tokens: dict[str, dict[str, str]] = {}
    if not raw:
        return tokens
    for chunk in raw.split(","):
        parts = [part.strip() for part in chunk.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        entry = {"user_id": parts[1]}
        if len(parts) > 2 and parts[2]:
            entry["email"] = parts[2].lower()
        tokens[parts[0]] = entry
    return tokens


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "PropLedger"
    DB_FILENAME = "propledger.db"
    RECEIPTS_BUCKET = "receipts"
    PHOTOS_BUCKET = "rehab-photos"

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("PROPLEDGER_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("PROPLEDGER_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("PROPLEDGER_DATABASE_URL", self._build_sqlite_url())
        self.IMPORT_BATCH_SIZE = _env_int("PROPLEDGER_IMPORT_BATCH_SIZE", 200)
        self.IMPORT_SOURCE_TAG = os.getenv("PROPLEDGER_IMPORT_SOURCE_TAG", "csv").strip() or "csv"
        self.AUTH_TOKENS = _parse_token_map(os.getenv("PROPLEDGER_AUTH_TOKENS"))
        self.STORAGE_DIR = Path(
            os.getenv("PROPLEDGER_STORAGE_DIR", str(self.DATA_DIR / "storage"))
        ).expanduser()
        self.SIGNED_URL_TTL = _env_int("PROPLEDGER_SIGNED_URL_TTL", 60)
        if self.IMPORT_BATCH_SIZE < 1:
            raise ValueError("PROPLEDGER_IMPORT_BATCH_SIZE must be at least 1.")
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("PROPLEDGER_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file, logs and uploads live."""

        data_root = os.getenv("PROPLEDGER_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration used by the test-suite."""

    DEBUG = False
    TESTING = True
