"""
The student sheet: a table of rows addressed by wire keys or sheet headers.

`COLUMN_MAP` is built once at import. It resolves any of
  wire key   "rollNo"
  header     "Roll No"
  attribute  "roll_no"
to the same column, so updates never scan the header row.
"""

import csv
import io
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select, func

from student_registry.db import get_session
from student_registry.errors import DUPLICATE_ROLL_NO, DuplicateKey, NotFound, ValidationError
from student_registry.models import StudentRow, now_iso


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    attr: str
    writable: bool = True


COLUMNS = (
    Column("id", "Student ID", "student_id", writable=False),
    Column("name", "Name", "name"),
    Column("fatherName", "Father Name", "father_name"),
    Column("email", "Email", "email"),
    Column("phone", "Phone", "phone"),
    Column("course", "Course", "course"),
    Column("semester", "Semester", "semester"),
    Column("rollNo", "Roll No", "roll_no"),
    Column("createdAt", "Created At", "created_at", writable=False),
    Column("updatedAt", "Updated At", "updated_at", writable=False),
)


class ColumnMap:
    def __init__(self, columns):
        self.columns = tuple(columns)
        self.by_key = {c.key: c for c in self.columns}
        self.by_header = {c.header.lower(): c for c in self.columns}
        self.by_attr = {c.attr: c for c in self.columns}

    @property
    def headers(self) -> List[str]:
        return [c.header for c in self.columns]

    def resolve(self, name: str) -> Optional[Column]:
        return self.by_key.get(name) or self.by_header.get(name.strip().lower()) or self.by_attr.get(name)

    def normalize_updates(self, updates: Dict[str, Any]) -> Dict[str, str]:
        """Map update names to wire keys; unknown or read-only names are field errors."""
        out: Dict[str, str] = {}
        errors: Dict[str, str] = {}
        for name, value in updates.items():
            col = self.resolve(name)
            if col is None:
                errors[name] = "Unknown field"
            elif not col.writable:
                errors[name] = "Field cannot be updated"
            else:
                out[col.key] = "" if value is None else str(value)
        if errors:
            raise ValidationError(errors)
        return out

    def to_record(self, row: StudentRow) -> Dict[str, str]:
        return {c.key: getattr(row, c.attr) or "" for c in self.columns}

    def to_row(self, record: Dict[str, Any]) -> StudentRow:
        values = {c.attr: str(record[c.key]) for c in self.columns if record.get(c.key)}
        return StudentRow(**values)


COLUMN_MAP = ColumnMap(COLUMNS)


class StudentSheet:
    def __init__(self, session_factory: Callable = get_session, columns: ColumnMap = COLUMN_MAP):
        self._session = session_factory
        self.columns = columns

    def all(self) -> List[Dict[str, str]]:
        with self._session() as db:
            rows = db.exec(select(StudentRow).order_by(StudentRow.row_id)).all()
            return [self.columns.to_record(r) for r in rows]

    def count(self) -> int:
        with self._session() as db:
            return db.exec(select(func.count()).select_from(StudentRow)).one()

    def find(self, student_id: str) -> Optional[Dict[str, str]]:
        with self._session() as db:
            row = self._get_row(db, student_id)
            return self.columns.to_record(row) if row else None

    def find_by_roll(self, roll_no: str) -> Optional[Dict[str, str]]:
        with self._session() as db:
            row = db.exec(select(StudentRow).where(StudentRow.roll_no == roll_no.strip().upper())).first()
            return self.columns.to_record(row) if row else None

    def append(self, record: Dict[str, Any]) -> Dict[str, str]:
        row = self.columns.to_row(record)
        with self._session() as db:
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicateKey(DUPLICATE_ROLL_NO)
            db.refresh(row)
            return self.columns.to_record(row)

    def update(self, student_id: str, updates: Dict[str, str]) -> Dict[str, str]:
        """Apply updates keyed by wire key or sheet header and stamp `updatedAt`."""
        changes = self.columns.normalize_updates(updates)
        with self._session() as db:
            row = self._get_row(db, student_id)
            if row is None:
                raise NotFound()
            for key, value in changes.items():
                setattr(row, self.columns.by_key[key].attr, value)
            row.updated_at = now_iso()
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicateKey(DUPLICATE_ROLL_NO)
            db.refresh(row)
            return self.columns.to_record(row)

    def delete(self, student_id: str) -> bool:
        with self._session() as db:
            row = self._get_row(db, student_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    def export_csv(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(self.columns.headers)
        for record in self.all():
            writer.writerow([record[c.key] for c in self.columns.columns])
        return buf.getvalue()

    @staticmethod
    def _get_row(db, student_id: str) -> Optional[StudentRow]:
        return db.exec(select(StudentRow).where(StudentRow.student_id == student_id)).first()
