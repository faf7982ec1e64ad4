import re

from student_registry.utils.ids import generate_unique_id
from student_registry.validation import (
    format_name,
    format_phone,
    normalize_student,
    validate_email,
    validate_phone,
    validate_roll_no,
    validate_student_form,
)

VALID = {
    "name": "asha rao",
    "fatherName": "Ravi Rao",
    "email": "Asha@Example.com",
    "phone": "(555) 123-4567",
    "course": "B.Tech",
    "semester": "3",
    "rollNo": "cs-101",
}


def test_valid_form_has_no_errors():
    assert validate_student_form(VALID) == {}


def test_every_invalid_field_is_reported():
    errors = validate_student_form({"name": "Al", "email": "x@y", "phone": "123", "rollNo": "CS 101"})
    assert set(errors) == {"name", "fatherName", "email", "phone", "course", "semester", "rollNo"}
    assert errors["name"] == "Name must be between 3 and 50 characters"


def test_field_rules():
    assert validate_email("a@b.co")
    assert not validate_email("a b@c.com")
    assert validate_phone("555.123.4567")
    assert not validate_phone("12345678901")
    assert validate_roll_no("CS-2024-01")
    assert not validate_roll_no("CS_01")


def test_formatting():
    assert format_name("  aSHA   rao ") == "Asha   Rao"
    assert format_phone("5551234567") == "555-123-4567"
    assert format_phone("12345") == "12345"

    out = normalize_student(VALID)
    assert out["name"] == "Asha Rao"
    assert out["email"] == "asha@example.com"
    assert out["phone"] == "555-123-4567"
    assert out["rollNo"] == "CS-101"
    assert out["course"] == "B.Tech"


def test_normalize_only_touches_present_fields():
    assert normalize_student({"semester": "4"}) == {"semester": "4"}


def test_generated_ids_are_prefixed_base36():
    sid = generate_unique_id(now_ms=36 ** 3)
    assert sid.startswith("STU1000")
    assert len(sid) == len("STU1000") + 5
    assert re.fullmatch(r"STU[0-9A-Z]+", sid)
    assert generate_unique_id("ADM").startswith("ADM")
    assert len({generate_unique_id() for _ in range(50)}) == 50
