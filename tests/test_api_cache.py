import pytest

from student_registry.client.api import STUDENTS_LIST_KEY, RegistryAPI, student_key
from student_registry.client.cache import LocalCache
from student_registry.client.storage import MemoryStorage
from student_registry.errors import (
    DUPLICATE_ROLL_NO,
    DuplicateKey,
    NetworkError,
    NotAuthorized,
    NotFound,
    RegistryError,
    ValidationError,
)

STUDENT = {"id": "STU1", "name": "Asha Rao", "rollNo": "CS-101"}


class FakeHttp:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, payload, retries=3):
        self.calls.append(payload)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def is_configured(self, url=None):
        return True


def _api(http, clock, ttl=300):
    cache = LocalCache(MemoryStorage(), default_ttl=ttl, clock=clock)
    return RegistryAPI(http, cache), cache


def test_second_list_read_is_served_from_cache(clock):
    http = FakeHttp({"success": True, "students": [STUDENT]})
    api, _ = _api(http, clock)

    first = api.get_students()
    second = api.get_students()
    assert first == second == {"success": True, "students": [STUDENT]}
    assert [c["action"] for c in http.calls] == ["getStudents"]


def test_list_is_refetched_after_ttl(clock):
    http = FakeHttp({"success": True, "students": []}, {"success": True, "students": [STUDENT]})
    api, _ = _api(http, clock, ttl=60)

    api.get_students()
    clock.advance(60)
    assert api.get_students()["students"] == [STUDENT]
    assert len(http.calls) == 2


def test_get_student_reads_through_its_own_key(clock):
    http = FakeHttp({"success": True, "student": STUDENT})
    api, cache = _api(http, clock)

    assert api.get_student("STU1")["student"] == STUDENT
    assert cache.get(student_key("STU1")) == STUDENT
    assert api.get_student("STU1") == {"success": True, "student": STUDENT}
    assert http.calls == [{"action": "getStudent", "studentId": "STU1"}]


def test_missing_student_raises_not_found(clock):
    http = FakeHttp(
        {"success": False, "message": "Student not found", "code": "NOT_FOUND"},
        {"success": True, "student": None},
    )
    api, cache = _api(http, clock)

    with pytest.raises(NotFound, match="Student not found"):
        api.get_student("NOPE")
    with pytest.raises(NotFound):
        api.get_student("NOPE")
    assert cache.keys() == []


def test_writes_invalidate_before_the_request_even_when_it_fails(clock):
    http = FakeHttp(NetworkError("down"), NetworkError("down"), NetworkError("down"))
    api, cache = _api(http, clock)

    cache.set(STUDENTS_LIST_KEY, [STUDENT])
    cache.set(student_key("STU1"), STUDENT)
    cache.set(student_key("STU2"), {"id": "STU2"})

    with pytest.raises(NetworkError):
        api.add_student({"name": "New"})
    assert cache.get(STUDENTS_LIST_KEY) is None
    assert cache.get(student_key("STU1")) == STUDENT

    cache.set(STUDENTS_LIST_KEY, [STUDENT])
    with pytest.raises(NetworkError):
        api.update_student("STU1", {"name": "Changed"})
    assert cache.get(STUDENTS_LIST_KEY) is None
    assert cache.get(student_key("STU1")) is None

    cache.set(STUDENTS_LIST_KEY, [STUDENT])
    with pytest.raises(NetworkError):
        api.delete_student("STU2")
    assert cache.keys() == []


def test_server_failures_map_to_typed_errors(clock):
    http = FakeHttp(
        {"success": False, "message": DUPLICATE_ROLL_NO, "code": "DUPLICATE_KEY"},
        {"success": False, "message": "email: Invalid email address", "code": "VALIDATION_ERROR",
         "errors": {"email": "Invalid email address"}},
        {"success": False, "message": "Your session has expired. Please login again.", "code": "UNAUTHORIZED"},
        {"success": False, "message": "Invalid action"},
    )
    api, _ = _api(http, clock)

    with pytest.raises(DuplicateKey) as dup:
        api.add_student(STUDENT)
    assert dup.value.message == DUPLICATE_ROLL_NO

    with pytest.raises(ValidationError) as bad:
        api.update_student("STU1", {"email": "nope"})
    assert bad.value.errors == {"email": "Invalid email address"}

    with pytest.raises(NotAuthorized):
        api.get_students()

    with pytest.raises(RegistryError, match="Invalid action"):
        api.delete_student("STU1")


def test_failed_list_read_is_not_cached(clock):
    http = FakeHttp({"success": False, "message": "boom"}, {"success": True, "students": []})
    api, cache = _api(http, clock)

    with pytest.raises(RegistryError):
        api.get_students()
    assert cache.get(STUDENTS_LIST_KEY) is None
    assert api.get_students() == {"success": True, "students": []}


def test_generate_student_id(clock):
    http = FakeHttp({"success": True, "studentId": "STUABC12345"}, {"success": False})
    api, _ = _api(http, clock)

    assert api.generate_student_id() == "STUABC12345"
    with pytest.raises(RegistryError):
        api.generate_student_id()
