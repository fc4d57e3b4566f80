"""User management for the owner profile that scopes ledger data."""

from __future__ import annotations

import secrets
from typing import Optional

from argon2 import PasswordHasher
from sqlmodel import select

from ..errors import ValidationError
from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models.user import User

logger = get_logger("auth")

_hasher = PasswordHasher()


def get_user_by_username(username: str, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by username."""
    username = username.strip()
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
        return user


def create_user(*, username: str, password: str, session_factory: SessionFactory) -> User:
    """Create a new user with an argon2 password hash."""

    username = username.strip()
    if not username:
        raise ValidationError("Username is required")
    if not password:
        raise ValidationError("Password cannot be empty")
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            raise ValidationError("Username already exists")
        user = User(username=username, password_hash=password_hash)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    logger.info("Created user", extra={"user_id": user.id, "username": username})
    return user


def ensure_local_user(username: str, session_factory: SessionFactory) -> User:
    """Create or return the passwordless profile the HTTP API acts on behalf of."""

    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
            return user
        # Random secret nobody knows; the profile is only reached through FINTRACK_OWNER
        user = User(username=username, password_hash=_hasher.hash(secrets.token_urlsafe(32)))
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    logger.info("Created local profile", extra={"user_id": user.id, "username": username})
    return user
