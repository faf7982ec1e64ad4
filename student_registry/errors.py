from typing import Dict, Optional

GENERAL_ERROR = "An error occurred. Please try again."
NETWORK_ERROR = "Network error. Please check your connection."
STUDENT_NOT_FOUND = "Student not found"
DUPLICATE_ROLL_NO = "Student with this roll number already exists"
DUPLICATE_ID = "Student with this ID already exists"
SESSION_EXPIRED = "Your session has expired. Please login again."
INVALID_ACTION = "Invalid action"
INVALID_REQUEST = "Invalid request"


class RegistryError(Exception):
    """Base error; `message` is safe to show to the user as-is."""

    code: Optional[str] = None

    def __init__(self, message: str = GENERAL_ERROR):
        super().__init__(message)
        self.message = message


class NotConfigured(RegistryError):
    code = "NOT_CONFIGURED"

    def __init__(self, message: str = "API not configured"):
        super().__init__(message)


class NetworkError(RegistryError):
    code = "NETWORK_ERROR"

    def __init__(self, message: str = NETWORK_ERROR, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NetworkTimeout(NetworkError):
    code = "NETWORK_TIMEOUT"


class NotFound(RegistryError):
    code = "NOT_FOUND"

    def __init__(self, message: str = STUDENT_NOT_FOUND):
        super().__init__(message)


class DuplicateKey(RegistryError):
    code = "DUPLICATE_KEY"

    def __init__(self, message: str = DUPLICATE_ROLL_NO):
        super().__init__(message)


class NotAuthorized(RegistryError):
    code = "UNAUTHORIZED"

    def __init__(self, message: str = SESSION_EXPIRED):
        super().__init__(message)


class ValidationError(RegistryError):
    code = "VALIDATION_ERROR"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{k}: {v}" for k, v in self.errors.items()) or "Invalid input"
        super().__init__(message)


_BY_CODE = {
    NotFound.code: NotFound,
    DuplicateKey.code: DuplicateKey,
    NotAuthorized.code: NotAuthorized,
}


def error_from_response(response: dict, fallback: str = GENERAL_ERROR) -> RegistryError:
    """Build the matching exception for a `{success: false, ...}` response."""
    message = response.get("message") or fallback
    code = response.get("code")
    if code == ValidationError.code:
        return ValidationError(response.get("errors") or {}, message=message)
    cls = _BY_CODE.get(code)
    if cls is not None:
        return cls(message)
    return RegistryError(message)
