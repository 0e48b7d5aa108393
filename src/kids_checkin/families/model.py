from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Parent:
    """Domain entity: a parent/guardian. ``child_ids`` keeps link order."""

    parent_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    child_ids: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.parent_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "childIds": list(self.child_ids),
        }


@dataclass(frozen=True)
class Child:
    """Domain entity: a child. Medical fields are free text, never parsed."""

    child_id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    allergies: Optional[str] = None
    emergency_contact: Optional[str] = None
    medical_notes: Optional[str] = None
    photo_url: str = ""
    parent_ids: tuple[str, ...] = field(default=())

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.child_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "allergies": self.allergies,
            "emergencyContact": self.emergency_contact,
            "medicalNotes": self.medical_notes,
            "photoUrl": self.photo_url,
            "parentIds": list(self.parent_ids),
        }


@dataclass(frozen=True)
class FamilyView:
    """Read-model returned by QR resolution: one parent plus linked children."""

    parent: Parent
    children: tuple[Child, ...]

    def to_dict(self) -> dict:
        data = self.parent.to_dict()
        data["children"] = [c.to_dict() for c in self.children]
        return data


def parent_from_dict(data: dict) -> Parent:
    return Parent(
        parent_id=data["id"],
        first_name=data.get("firstName") or "",
        last_name=data.get("lastName") or "",
        email=data.get("email"),
        phone=data.get("phone"),
        child_ids=tuple(data.get("childIds") or ()),
    )


def child_from_dict(data: dict) -> Child:
    dob = data.get("dateOfBirth")
    return Child(
        child_id=data["id"],
        first_name=data.get("firstName") or "",
        last_name=data.get("lastName") or "",
        date_of_birth=date.fromisoformat(dob) if dob else None,
        allergies=data.get("allergies"),
        emergency_contact=data.get("emergencyContact"),
        medical_notes=data.get("medicalNotes"),
        photo_url=data.get("photoUrl") or "",
        parent_ids=tuple(data.get("parentIds") or ()),
    )


def family_from_dict(data: dict) -> FamilyView:
    return FamilyView(
        parent=parent_from_dict(data),
        children=tuple(child_from_dict(c) for c in data.get("children") or ()),
    )
