from __future__ import annotations

import pytest
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from fintrack.errors import ValidationError
from fintrack.services.auth import create_user, ensure_local_user, get_user_by_username


def test_create_user_hashes_password(session_factory):
    user = create_user(username=" alex ", password="correct horse", session_factory=session_factory)

    assert user.username == "alex"
    assert PasswordHasher().verify(user.password_hash, "correct horse")
    assert get_user_by_username("alex", session_factory).id == user.id


@pytest.mark.parametrize(("username", "password"), [("", "pw"), ("alex", "")])
def test_create_user_requires_credentials(session_factory, username, password):
    with pytest.raises(ValidationError):
        create_user(username=username, password=password, session_factory=session_factory)


def test_duplicate_username_rejected(session_factory):
    create_user(username="alex", password="pw", session_factory=session_factory)

    with pytest.raises(ValidationError):
        create_user(username="alex", password="other", session_factory=session_factory)


def test_ensure_local_user_is_idempotent(session_factory):
    first = ensure_local_user("local", session_factory)
    second = ensure_local_user("local", session_factory)

    assert first.id == second.id
    assert get_user_by_username("missing", session_factory) is None


def test_local_user_password_is_not_its_username(session_factory):
    user = ensure_local_user("local", session_factory)

    with pytest.raises(VerifyMismatchError):
        PasswordHasher().verify(user.password_hash, "local")
