from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Staff


class StaffRepository(Protocol):
    def get_by_id(self, staff_id: str) -> Optional[Staff]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Staff]:
        raise NotImplementedError

    def create_staff(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password_hash: str,
        role: Role,
    ) -> str:
        raise NotImplementedError

    def list_all(self) -> Sequence[Staff]:
        raise NotImplementedError
