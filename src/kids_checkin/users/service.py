from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthError, AuthorizationError, NotFoundError, ValidationError
from .model import Staff
from .repository import StaffRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """What the login endpoint hands back to a staff device."""

    token: str
    staff: Staff

    def to_dict(self) -> dict:
        return {"token": self.token, "user": self.staff.to_public_dict()}


class AuthService:
    """Use case: authenticate staff (login) and resolve bearer tokens."""

    def __init__(self, staff: StaffRepository, tokens: TokenService):
        self._staff = staff
        self._tokens = tokens

    def authenticate(self, email: str, password: str) -> LoginResult:
        email = (email or "").strip().lower()
        staff = self._staff.get_by_email(email) if email else None
        if not staff or not staff.is_active:
            raise AuthError("Wrong email or password")

        try:
            ok = check_password_hash(staff.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("failed login for %s", email)
            raise AuthError("Wrong email or password")

        return LoginResult(token=self._tokens.issue(staff_id=staff.staff_id, role=staff.role), staff=staff)

    def resolve(self, token: str) -> Staff:
        claims = self._tokens.verify(token)
        staff = self._staff.get_by_id(claims.staff_id)
        if not staff or not staff.is_active:
            raise AuthError("Account is no longer active")
        return staff


class StaffService:
    """Use case: manage staff accounts (admin)."""

    def __init__(self, staff: StaffRepository):
        self._staff = staff

    def create_account(self, *, current_role: Role, data: Mapping[str, Any]) -> Staff:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can add staff")

        first_name = require_non_empty(data.get("firstName"), "First name")
        last_name = require_non_empty(data.get("lastName"), "Last name")
        email = require_non_empty(data.get("email"), "Email").lower()
        password = require_min_length(data.get("password"), "Password", 6)

        try:
            role = Role(data.get("role") or Role.STAFF.value)
        except ValueError:
            raise ValidationError("Unknown role")

        if self._staff.get_by_email(email):
            raise ValidationError("Email is already registered")

        staff_id = self._staff.create_staff(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
        )
        staff = self._staff.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff account not found")
        return staff

    def list_staff(self):
        return self._staff.list_all()
