"""Database and extension wiring for FinTrack."""

from __future__ import annotations

from flask import Flask, current_app

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database

_EXTENSION_KEY = "fintrack"


def init_db(app: Flask) -> None:
    """Create the engine, schema and session factory for ``app``."""

    config: BaseConfig = app.config["FINTRACK_CONFIG"]
    _engine, factory = bootstrap_database(config)
    app.extensions[_EXTENSION_KEY] = {"session_factory": factory}


def get_session_factory(app: Flask | None = None) -> SessionFactory:
    """Return the session factory bound to the app's engine."""

    target = app or current_app
    state = target.extensions.get(_EXTENSION_KEY)
    if state is None:  # pragma: no cover - exercised only on misconfiguration
        raise RuntimeError("Database engine not initialized")
    return state["session_factory"]
