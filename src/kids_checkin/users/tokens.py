from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from ..core.enums import Role
from ..core.exceptions import AuthError

_ISSUER = "kids-checkin"


@dataclass(frozen=True)
class TokenClaims:
    staff_id: str
    role: Role


class TokenService:
    """Issues and verifies the bearer credential handed out at login (HS256 JWT)."""

    def __init__(self, secret: str, *, ttl_hours: int = 12):
        if not secret:
            raise ValueError("JWT secret is not configured")
        self._secret = secret
        self._ttl = timedelta(hours=int(ttl_hours))

    def issue(self, *, staff_id: str, role: Role, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "iss": _ISSUER,
            "sub": staff_id,
            "role": role.value,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm="HS256")

    def verify(self, token: str) -> TokenClaims:
        if not token:
            raise AuthError("Missing credential")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=["HS256"],
                issuer=_ISSUER,
                options={"require": ["exp", "iss", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Session expired, please sign in again")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid credential")

        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise AuthError("Invalid credential")
        return TokenClaims(staff_id=str(payload["sub"]), role=role)
