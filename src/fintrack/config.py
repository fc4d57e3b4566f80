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


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "FinTrack"
    DB_FILENAME = "fintrack.db"
    SQLITE_PRAGMAS = {"foreign_keys": "on"}
    RECENT_TRANSACTIONS_LIMIT = 5
    CATEGORY_SPENDING_LIMIT = 5
    MONTHLY_SUMMARY_LIMIT = 6
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("FINTRACK_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("FINTRACK_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("FINTRACK_DATABASE_URL", self._build_sqlite_url())
        self.OWNER_USERNAME = os.getenv("FINTRACK_OWNER", "local").strip() or "local"
        self.SEED_DEFAULTS = _env_bool("FINTRACK_SEED_DEFAULTS", default=True)
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("FINTRACK_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("FINTRACK_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.is_sqlite:
            engine_options["connect_args"] = {"check_same_thread": False}
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; seeding is left to fixtures."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.SEED_DEFAULTS = _env_bool("FINTRACK_SEED_DEFAULTS", default=False)
