import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from student_registry.client.api import RegistryAPI
from student_registry.errors import NotFound, ValidationError
from student_registry.utils.ids import generate_unique_id
from student_registry.validation import normalize_student, validate_student_form

logger = logging.getLogger("registry.students")

FORM_FIELDS = ("name", "fatherName", "email", "phone", "course", "semester", "rollNo")
SEARCH_FIELDS = ("name", "rollNo", "email", "id")


class StudentManager:
    """Record operations for the admin UI: validation, formatting, search, sort."""

    def __init__(self, api: RegistryAPI):
        self.api = api

    def add_student(self, data: Dict[str, Any]) -> Dict[str, Any]:
        form = {f: str(data.get(f) or "").strip() for f in FORM_FIELDS}
        errors = validate_student_form(form)
        if errors:
            raise ValidationError(errors)

        student = normalize_student(form)
        student["id"] = generate_unique_id("STU")
        student["createdAt"] = datetime.now(timezone.utc).isoformat()
        try:
            return self.api.add_student(student)
        except Exception as e:
            logger.error("Error adding student: %s", e)
            raise

    def load_students(self) -> List[Dict[str, Any]]:
        response = self.api.get_students()
        return list(response.get("students") or [])

    def get_student(self, student_id: str) -> Dict[str, Any]:
        response = self.api.get_student(student_id)
        student = response.get("student")
        if not student:
            raise NotFound()
        return student

    def update_student(self, student_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        # only fields the caller actually filled in are sent
        provided = {f: str(updates[f]).strip() for f in FORM_FIELDS if updates.get(f)}
        formatted = normalize_student(provided)
        try:
            return self.api.update_student(student_id, formatted)
        except Exception as e:
            logger.error("Error updating student %s: %s", student_id, e)
            raise

    def delete_student(self, student_id: str) -> bool:
        self.api.delete_student(student_id)
        return True

    @staticmethod
    def search_students(query: str, students: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        q = (query or "").lower()
        return [
            s for s in students
            if any(q in str(s.get(f) or "").lower() for f in SEARCH_FIELDS)
        ]

    @staticmethod
    def sort_students(students: List[Dict[str, Any]], field: str = "createdAt",
                      order: str = "desc") -> List[Dict[str, Any]]:
        def key(s: Dict[str, Any]):
            v: Optional[Any] = s.get(field)
            if v is None:
                return (0, "")
            if isinstance(v, (int, float)):
                return (1, v)
            return (0, str(v).lower())

        return sorted(students, key=key, reverse=(order == "desc"))
