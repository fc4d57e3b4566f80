"""FinTrack application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig

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
    """Yield blueprint import paths registered on the app."""

    yield "fintrack.blueprints.api"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_cls = _resolve_config(config_name)
    config_obj = config_cls()
    app.config.from_object(config_obj)
    app.config["FINTRACK_CONFIG"] = config_obj

    # Imported lazily so importing the package does not configure mappers
    from .extensions import get_session_factory, init_db
    from .logging_config import setup_logging
    from .services.accounts import seed_defaults
    from .services.auth import ensure_local_user

    logger = setup_logging(config_obj)
    _register_blueprints(app)
    init_db(app)

    session_factory = get_session_factory(app)
    owner = ensure_local_user(config_obj.OWNER_USERNAME, session_factory)
    app.config["FINTRACK_OWNER_ID"] = owner.id
    if config_obj.SEED_DEFAULTS:
        seed_defaults(user_id=owner.id, session_factory=session_factory)

    _cli.init_app(app)
    logger.info(
        "Application created",
        extra={"config": config_cls.__name__, "owner_id": owner.id},
    )
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["create_app", "BaseConfig", "DevConfig", "TestConfig"]
