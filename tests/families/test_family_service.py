import pytest

from kids_checkin.core.exceptions import NotFoundError, ValidationError
from kids_checkin.families.service import FamilyService


@pytest.fixture
def svc(families):
    return FamilyService(families)


def test_create_parent_then_child(svc):
    parent = svc.create_parent({"firstName": " Mia ", "lastName": "Ng", "email": "mia@example.org"})
    child = svc.create_child(parent.parent_id, {"firstName": "Oli", "lastName": "Ng", "dateOfBirth": "2021-05-04"})

    assert parent.first_name == "Mia"
    assert child.parent_ids == (parent.parent_id,)
    assert svc.get_parent(parent.parent_id).child_ids == (child.child_id,)
    assert child.date_of_birth.isoformat() == "2021-05-04"


def test_child_needs_an_existing_parent(svc):
    with pytest.raises(NotFoundError):
        svc.create_child("nobody", {"firstName": "A", "lastName": "B"})
    with pytest.raises(ValidationError):
        svc.create_child("", {"firstName": "A", "lastName": "B"})


@pytest.mark.parametrize(
    "data",
    [
        {"firstName": "", "lastName": "Ng"},
        {"firstName": "Mia"},
        {"firstName": "Mia", "lastName": "Ng", "email": "not-an-email"},
    ],
)
def test_create_parent_validation(svc, data):
    with pytest.raises(ValidationError):
        svc.create_parent(data)


def test_bad_birth_date(svc):
    with pytest.raises(ValidationError):
        svc.create_child("P1", {"firstName": "A", "lastName": "B", "dateOfBirth": "04/05/2021"})


def test_get_family_keeps_link_order(svc):
    family = svc.get_family("P1")

    assert [c.first_name for c in family.children] == ["Emma", "Leo"]
    assert family.to_dict()["children"][0]["id"] == "c1"


def test_child_shared_by_two_parents(svc, families):
    svc.link_child(parent_id="P2", child_id="c1")

    assert set(svc.get_child("c1").parent_ids) == {"P1", "P2"}

    svc.delete_parent("P1")

    assert svc.get_child("c1").parent_ids == ("P2",)
    with pytest.raises(NotFoundError):
        svc.get_child("c2")


def test_delete_unknown_parent(svc):
    with pytest.raises(NotFoundError):
        svc.delete_parent("nobody")
