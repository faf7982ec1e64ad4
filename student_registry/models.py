from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import datetime, timezone


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StudentRow(SQLModel, table=True):
    """One sheet row. `row_id` keeps insertion order, like row numbers in a spreadsheet."""
    __tablename__ = "students"
    __table_args__ = (UniqueConstraint("student_id"), UniqueConstraint("roll_no"))
    row_id: Optional[int] = Field(default=None, primary_key=True)
    student_id: str = Field(index=True)
    name: str
    father_name: str
    email: str
    phone: str
    course: str
    semester: str
    roll_no: str = Field(index=True)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
