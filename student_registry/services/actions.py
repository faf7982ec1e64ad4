"""Request variants accepted by the RPC endpoint, discriminated on `action`."""

from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from student_registry.errors import INVALID_ACTION, INVALID_REQUEST, RegistryError, ValidationError


class StudentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: str = ""
    father_name: str = Field("", alias="fatherName")
    email: str = ""
    phone: str = ""
    course: str = ""
    semester: str = ""
    roll_no: str = Field("", alias="rollNo")
    created_at: Optional[str] = Field(None, alias="createdAt")

    def to_record(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AddStudent(BaseModel):
    action: Literal["addStudent"]
    student: StudentPayload


class GetStudents(BaseModel):
    action: Literal["getStudents"]


class GetStudent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["getStudent"]
    student_id: str = Field(alias="studentId", min_length=1)


class UpdateStudent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["updateStudent"]
    student_id: str = Field(alias="studentId", min_length=1)
    updates: Dict[str, Optional[str]]


class DeleteStudent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: Literal["deleteStudent"]
    student_id: str = Field(alias="studentId", min_length=1)


class GenerateStudentId(BaseModel):
    action: Literal["generateStudentId"]


RegistryRequest = Annotated[
    Union[AddStudent, GetStudents, GetStudent, UpdateStudent, DeleteStudent, GenerateStudentId],
    Field(discriminator="action"),
]

PUBLIC_ACTIONS = frozenset({"getStudent"})

_adapter = TypeAdapter(RegistryRequest)


class InvalidAction(RegistryError):
    code = "INVALID_ACTION"

    def __init__(self, message: str = INVALID_ACTION):
        super().__init__(message)


def parse_request(body: object):
    """Validate a decoded JSON body into one of the request variants."""
    try:
        return _adapter.validate_python(body)
    except PydanticValidationError as e:
        errs = e.errors()
        # errors without a location come from the tag itself
        if any(not err["loc"] or err["type"].startswith("union_tag") for err in errs):
            raise InvalidAction()
        fields = {".".join(str(p) for p in err["loc"][1:]) or "body": err["msg"] for err in errs}
        raise ValidationError(fields, message=INVALID_REQUEST)
