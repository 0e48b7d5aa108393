from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Staff:
    """Domain entity: a staff account.

    Note: plain data object (no DB access code).
    """

    staff_id: str
    first_name: str
    last_name: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True

    def to_public_dict(self) -> dict:
        return {
            "id": self.staff_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role.value,
            "isActive": self.is_active,
        }
