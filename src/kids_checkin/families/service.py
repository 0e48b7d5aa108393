from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from .model import Child, FamilyView, Parent
from .repository import FamilyRepository

logger = logging.getLogger(__name__)


class FamilyService:
    """Use cases: register parents/children and look families up."""

    def __init__(self, families: FamilyRepository):
        self._families = families

    def create_parent(self, data: Mapping[str, Any]) -> Parent:
        first_name = require_non_empty(data.get("firstName"), "First name")
        last_name = require_non_empty(data.get("lastName"), "Last name")
        email = optional_text(data.get("email"))
        if email and "@" not in email:
            raise ValidationError("Email is not valid")

        parent_id = self._families.create_parent(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=optional_text(data.get("phone")),
        )
        logger.info("parent %s created", parent_id)
        return self.get_parent(parent_id)

    def create_child(self, parent_id: Optional[str], data: Mapping[str, Any]) -> Child:
        # A child always starts attached to a parent.
        parent_id = require_non_empty(parent_id, "Parent")
        if not self._families.get_parent(parent_id):
            raise NotFoundError("Parent not found")

        first_name = require_non_empty(data.get("firstName"), "First name")
        last_name = require_non_empty(data.get("lastName"), "Last name")
        dob_raw = optional_text(data.get("dateOfBirth"))
        try:
            date_of_birth = parse_iso_date(dob_raw) if dob_raw else None
        except ValueError:
            raise ValidationError("Date of birth must be YYYY-MM-DD")

        child_id = self._families.create_child(
            parent_id=parent_id,
            first_name=first_name,
            last_name=last_name,
            date_of_birth=date_of_birth,
            allergies=optional_text(data.get("allergies")),
            emergency_contact=optional_text(data.get("emergencyContact")),
            medical_notes=optional_text(data.get("medicalNotes")),
            photo_url=optional_text(data.get("photoUrl")) or "",
        )
        logger.info("child %s created for parent %s", child_id, parent_id)
        return self.get_child(child_id)

    def link_child(self, *, parent_id: str, child_id: str) -> Parent:
        self.get_parent(parent_id)
        self.get_child(child_id)
        self._families.link_child(parent_id=parent_id, child_id=child_id)
        return self.get_parent(parent_id)

    def get_parent(self, parent_id: str) -> Parent:
        parent = self._families.get_parent(parent_id)
        if not parent:
            raise NotFoundError("Parent not found")
        return parent

    def get_child(self, child_id: str) -> Child:
        child = self._families.get_child(child_id)
        if not child:
            raise NotFoundError("Child not found")
        return child

    def get_family(self, parent_id: str) -> FamilyView:
        parent = self.get_parent(parent_id)
        return FamilyView(parent=parent, children=tuple(self._families.get_children(parent.child_ids)))

    def list_parents(self):
        return self._families.list_parents()

    def list_children(self):
        return self._families.list_children()

    def delete_parent(self, parent_id: str) -> None:
        if not self._families.delete_parent(parent_id):
            raise NotFoundError("Parent not found")
        logger.info("parent %s deleted", parent_id)
