import logging
from typing import Any, Dict, Optional

from student_registry.client.cache import LocalCache
from student_registry.client.request_client import RequestClient
from student_registry.errors import GENERAL_ERROR, STUDENT_NOT_FOUND, NotFound, error_from_response

logger = logging.getLogger("registry.api")

STUDENTS_LIST_KEY = "students_list"


def student_key(student_id: str) -> str:
    return f"student_{student_id}"


class RegistryAPI:
    """
    Record actions against the registry endpoint.

    Reads go through the cache; a hit is returned in the same response shape
    as the network path and is not revalidated. Writes drop the affected
    cache keys before the request is sent.
    """

    def __init__(self, http: RequestClient, cache: LocalCache, list_ttl: Optional[float] = None):
        self.http = http
        self.cache = cache
        self.list_ttl = list_ttl if list_ttl is not None else cache.default_ttl

    def add_student(self, student: Dict[str, Any]) -> Dict[str, Any]:
        self.cache.remove(STUDENTS_LIST_KEY)
        response = self.http.request({"action": "addStudent", "student": student})
        if not response.get("success"):
            raise error_from_response(response)
        logger.info("Student added: %s", (response.get("student") or student).get("id"))
        return response

    def get_students(self) -> Dict[str, Any]:
        cached = self.cache.get(STUDENTS_LIST_KEY)
        if cached is not None:
            logger.debug("Returning cached students")
            return {"success": True, "students": cached}

        response = self.http.request({"action": "getStudents"})
        if not response.get("success") or response.get("students") is None:
            raise error_from_response(response)
        self.cache.set(STUDENTS_LIST_KEY, response["students"], self.list_ttl)
        logger.info("Fetched and cached %d students", len(response["students"]))
        return response

    def get_student(self, student_id: str) -> Dict[str, Any]:
        key = student_key(student_id)
        cached = self.cache.get(key)
        if cached is not None:
            return {"success": True, "student": cached}

        response = self.http.request({"action": "getStudent", "studentId": student_id})
        if not response.get("success") or not response.get("student"):
            if response.get("success") or not response.get("code"):
                raise NotFound(response.get("message") or STUDENT_NOT_FOUND)
            raise error_from_response(response, STUDENT_NOT_FOUND)
        self.cache.set(key, response["student"], self.list_ttl)
        return response

    def update_student(self, student_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        self.cache.remove(student_key(student_id))
        self.cache.remove(STUDENTS_LIST_KEY)
        response = self.http.request({"action": "updateStudent", "studentId": student_id, "updates": updates})
        if not response.get("success"):
            raise error_from_response(response)
        logger.info("Student updated: %s", student_id)
        return response

    def delete_student(self, student_id: str) -> Dict[str, Any]:
        self.cache.remove(student_key(student_id))
        self.cache.remove(STUDENTS_LIST_KEY)
        response = self.http.request({"action": "deleteStudent", "studentId": student_id})
        if not response.get("success"):
            raise error_from_response(response)
        logger.info("Student deleted: %s", student_id)
        return response

    def generate_student_id(self) -> str:
        response = self.http.request({"action": "generateStudentId"})
        if not response.get("success") or not response.get("studentId"):
            raise error_from_response(response, GENERAL_ERROR)
        return response["studentId"]

    def is_configured(self) -> bool:
        return self.http.is_configured()
