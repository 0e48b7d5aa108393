from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Child, Parent


class FamilyRepository(Protocol):
    """Repository interface for parents, children and their links.

    Services depend on this interface, not on a concrete database.
    """

    def get_parent(self, parent_id: str) -> Optional[Parent]:
        raise NotImplementedError

    def get_child(self, child_id: str) -> Optional[Child]:
        raise NotImplementedError

    def get_children(self, child_ids: Sequence[str]) -> Sequence[Child]:
        raise NotImplementedError

    def list_parents(self) -> Sequence[Parent]:
        raise NotImplementedError

    def list_children(self) -> Sequence[Child]:
        raise NotImplementedError

    def create_parent(
        self,
        *,
        first_name: str,
        last_name: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> str:
        raise NotImplementedError

    def create_child(
        self,
        *,
        parent_id: str,
        first_name: str,
        last_name: str,
        date_of_birth: Optional[date],
        allergies: Optional[str],
        emergency_contact: Optional[str],
        medical_notes: Optional[str],
        photo_url: str,
    ) -> str:
        raise NotImplementedError

    def link_child(self, *, parent_id: str, child_id: str) -> bool:
        raise NotImplementedError

    def delete_parent(self, parent_id: str) -> bool:
        """Delete the parent and every child left without a parent."""

        raise NotImplementedError
