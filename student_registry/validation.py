"""Field rules and formatting shared by the client forms and the RPC handlers."""

import re
from typing import Dict, Mapping

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[0-9]{10}$")
_ROLL_NO_RE = re.compile(r"^[A-Z0-9-]+$", re.IGNORECASE)
_NON_DIGIT = re.compile(r"\D")


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def validate_phone(phone: str) -> bool:
    return bool(_PHONE_RE.match(_NON_DIGIT.sub("", phone or "")))


def validate_name(name: str) -> bool:
    trimmed = (name or "").strip()
    return NAME_MIN_LENGTH <= len(trimmed) <= NAME_MAX_LENGTH


def validate_roll_no(roll_no: str) -> bool:
    return bool(_ROLL_NO_RE.match((roll_no or "").strip()))


def validate_student_form(data: Mapping[str, str]) -> Dict[str, str]:
    """Return field -> message for every invalid field; empty dict means valid."""
    errors: Dict[str, str] = {}
    if not validate_name(data.get("name", "")):
        errors["name"] = f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
    if not validate_name(data.get("fatherName", "")):
        errors["fatherName"] = "Invalid father name"
    if not validate_email(data.get("email", "")):
        errors["email"] = "Invalid email address"
    if not validate_phone(data.get("phone", "")):
        errors["phone"] = "Phone number must be 10 digits"
    if not (data.get("course") or "").strip():
        errors["course"] = "Please select a course"
    if not (data.get("semester") or "").strip():
        errors["semester"] = "Please select a semester"
    if not validate_roll_no(data.get("rollNo", "")):
        errors["rollNo"] = "Invalid roll number format"
    return errors


def format_name(name: str) -> str:
    # split(" ") keeps runs of spaces as-is
    return " ".join(w[:1].upper() + w[1:] for w in (name or "").strip().lower().split(" "))


def format_phone(phone: str) -> str:
    cleaned = _NON_DIGIT.sub("", phone or "")
    if len(cleaned) != 10:
        return phone
    return f"{cleaned[:3]}-{cleaned[3:6]}-{cleaned[6:]}"


def normalize_student(data: Mapping[str, str]) -> Dict[str, str]:
    """Apply display formatting to the fields present in `data`."""
    out = dict(data)
    for field in ("name", "fatherName"):
        if out.get(field):
            out[field] = format_name(out[field])
    if out.get("email"):
        out["email"] = out["email"].strip().lower()
    if out.get("phone"):
        out["phone"] = format_phone(out["phone"].strip())
    if out.get("rollNo"):
        out["rollNo"] = out["rollNo"].strip().upper()
    return out
