"""Identity card rendering for the admin preview and the public lookup page."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

CARD_FIELDS = (
    ("Name", "name"),
    ("Roll No", "rollNo"),
    ("Father's Name", "fatherName"),
    ("Course", "course"),
    ("Semester", "semester"),
    ("Email", "email"),
)

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def card_branding() -> Dict[str, str]:
    return {
        "org_name": os.getenv("CARD_ORG_NAME", "Student Registry"),
        "logo_url": os.getenv("CARD_LOGO_URL", ""),
    }


def card_context(student: Dict[str, Any]) -> Dict[str, Any]:
    fields = [(label, student.get(key) or "N/A") for label, key in CARD_FIELDS]
    return {"fields": fields, "student_id": student.get("id") or "N/A", **card_branding()}


def render_card(student: Dict[str, Any]) -> str:
    """Card fragment only; embed it in a page or print it as-is."""
    return _env.get_template("id_card.html").render(**card_context(student))


def render_lookup_page(student: Optional[Dict[str, Any]] = None, query: str = "",
                       error: Optional[str] = None) -> str:
    card_html = render_card(student) if student else None
    return _env.get_template("lookup.html").render(
        card_html=card_html, query=query, error=error, **card_branding()
    )


def render_cards(students: List[Dict[str, Any]], missing: Sequence[str] = ()) -> str:
    """One printable page with a card per student, each on its own sheet."""
    return _env.get_template("batch.html").render(
        cards=[render_card(s) for s in students], missing=list(missing), **card_branding()
    )


def share_text(student: Dict[str, Any]) -> str:
    return f"Student ID: {student.get('id', '')}\nName: {student.get('name', '')}\nRoll Number: {student.get('rollNo', '')}"
