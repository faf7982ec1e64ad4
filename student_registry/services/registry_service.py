import logging
from typing import Any, Callable, Dict, Optional

from student_registry.errors import (
    DUPLICATE_ID,
    DUPLICATE_ROLL_NO,
    DuplicateKey,
    NotAuthorized,
    NotFound,
    RegistryError,
    ValidationError,
)
from student_registry.models import now_iso
from student_registry.services.actions import (
    PUBLIC_ACTIONS,
    AddStudent,
    DeleteStudent,
    GenerateStudentId,
    GetStudent,
    GetStudents,
    InvalidAction,
    UpdateStudent,
    parse_request,
)
from student_registry.services.sheet import COLUMN_MAP, StudentSheet
from student_registry.utils.ids import generate_unique_id
from student_registry.validation import normalize_student, validate_student_form

logger = logging.getLogger("registry.service")


def failure(err: RegistryError) -> Dict[str, Any]:
    out: Dict[str, Any] = {"success": False, "message": err.message}
    if err.code:
        out["code"] = err.code
    if isinstance(err, ValidationError):
        out["errors"] = err.errors
    return out


class RegistryService:
    def __init__(self, sheet: Optional[StudentSheet] = None,
                 id_factory: Callable[[], str] = generate_unique_id):
        self.sheet = sheet or StudentSheet()
        self._new_id = id_factory

    def execute(self, body: Any, is_admin: bool) -> Dict[str, Any]:
        """Parse, authorize and run one request; every outcome becomes a response dict."""
        try:
            req = parse_request(body)
            if req.action not in PUBLIC_ACTIONS and not is_admin:
                raise NotAuthorized()
            return self.dispatch(req)
        except RegistryError as e:
            logger.info("Action failed (%s): %s", type(e).__name__, e.message)
            return failure(e)

    def dispatch(self, req) -> Dict[str, Any]:
        match req:
            case AddStudent(student=payload):
                return self.add_student(payload.to_record())
            case GetStudents():
                return {"success": True, "students": self.sheet.all()}
            case GetStudent(student_id=student_id):
                return {"success": True, "student": self.get_student(student_id)}
            case UpdateStudent(student_id=student_id, updates=updates):
                return self.update_student(student_id, updates)
            case DeleteStudent(student_id=student_id):
                return self.delete_student(student_id)
            case GenerateStudentId():
                return {"success": True, "studentId": self.generate_student_id()}
        raise InvalidAction()

    def add_student(self, record: Dict[str, Any]) -> Dict[str, Any]:
        errors = validate_student_form(record)
        if errors:
            raise ValidationError(errors)
        record = normalize_student(record)

        if self.sheet.find_by_roll(record["rollNo"]):
            raise DuplicateKey(DUPLICATE_ROLL_NO)
        if record.get("id"):
            if self.sheet.find(record["id"]):
                raise DuplicateKey(DUPLICATE_ID)
        else:
            record["id"] = self.generate_student_id()

        stamp = now_iso()
        record.setdefault("createdAt", stamp)
        record["updatedAt"] = stamp
        stored = self.sheet.append(record)
        logger.info("Student added: %s (%s)", stored["id"], stored["rollNo"])
        return {"success": True, "message": "Student added successfully", "student": stored}

    def get_student(self, student_id: str) -> Dict[str, str]:
        student = self.sheet.find(student_id)
        if not student:
            raise NotFound()
        return student

    def update_student(self, student_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        existing = self.get_student(student_id)
        changes = COLUMN_MAP.normalize_updates(updates)
        if not changes:
            raise ValidationError({"updates": "No fields to update"})

        errors = validate_student_form({**existing, **changes})
        errors = {k: v for k, v in errors.items() if k in changes}
        if errors:
            raise ValidationError(errors)
        changes = normalize_student(changes)

        if "rollNo" in changes:
            holder = self.sheet.find_by_roll(changes["rollNo"])
            if holder and holder["id"] != student_id:
                raise DuplicateKey(DUPLICATE_ROLL_NO)

        stored = self.sheet.update(student_id, changes)
        logger.info("Student updated: %s fields=%s", student_id, sorted(changes))
        return {"success": True, "message": "Student updated successfully", "student": stored}

    def delete_student(self, student_id: str) -> Dict[str, Any]:
        if not self.sheet.delete(student_id):
            raise NotFound()
        logger.info("Student deleted: %s", student_id)
        return {"success": True, "message": "Student deleted successfully"}

    def generate_student_id(self) -> str:
        # collisions need the same millisecond and 5 random chars; retry anyway
        for _ in range(5):
            candidate = self._new_id()
            if not self.sheet.find(candidate):
                return candidate
        raise RegistryError("Could not generate a unique student ID")
