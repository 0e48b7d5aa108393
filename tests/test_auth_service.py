from datetime import datetime, timedelta, timezone

import pytest

from kids_checkin.core.enums import Role
from kids_checkin.core.exceptions import AuthError, AuthorizationError, ValidationError
from kids_checkin.users.service import AuthService, StaffService
from kids_checkin.users.tokens import TokenService


@pytest.fixture
def tokens():
    return TokenService("jwt-secret", ttl_hours=1)


@pytest.fixture
def auth(staff_repo, tokens):
    return AuthService(staff_repo, tokens)


def test_login_returns_token_that_resolves(auth):
    result = auth.authenticate(" SAM@example.org ", "staff123")

    assert auth.resolve(result.token).staff_id == "s-1"
    assert result.to_dict()["user"]["role"] == "staff"
    assert "passwordHash" not in result.to_dict()["user"]


@pytest.mark.parametrize("email,password", [("sam@example.org", "wrong"), ("who@example.org", "staff123"), ("", "")])
def test_bad_credentials(auth, email, password):
    with pytest.raises(AuthError):
        auth.authenticate(email, password)


def test_expired_token(auth, tokens):
    token = tokens.issue(staff_id="s-1", role=Role.STAFF, now=datetime.now(timezone.utc) - timedelta(hours=2))

    with pytest.raises(AuthError):
        auth.resolve(token)


def test_token_from_another_secret(auth):
    token = TokenService("other").issue(staff_id="s-1", role=Role.STAFF)

    with pytest.raises(AuthError):
        auth.resolve(token)


def test_token_for_removed_staff(auth, tokens, staff_repo):
    token = tokens.issue(staff_id="s-1", role=Role.STAFF)
    del staff_repo.by_id["s-1"]

    with pytest.raises(AuthError):
        auth.resolve(token)


def test_only_admin_creates_staff(staff_repo):
    svc = StaffService(staff_repo)
    data = {"firstName": "Nia", "lastName": "New", "email": "nia@example.org", "password": "secret1"}

    with pytest.raises(AuthorizationError):
        svc.create_account(current_role=Role.STAFF, data=data)

    created = svc.create_account(current_role=Role.ADMIN, data=data)
    assert created.role == Role.STAFF

    with pytest.raises(ValidationError):
        svc.create_account(current_role=Role.ADMIN, data=data)


def test_short_password(staff_repo):
    with pytest.raises(ValidationError):
        StaffService(staff_repo).create_account(
            current_role=Role.ADMIN,
            data={"firstName": "A", "lastName": "B", "email": "a@example.org", "password": "123"},
        )
