import os
import tempfile

import pytest

# must run before student_registry.db is imported: the engine binds DATABASE_URL at import
_tmp_dir = tempfile.mkdtemp(prefix="registry-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'registry.db')}"
os.environ["TESTING"] = "1"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "Passw0rd!"
os.environ["REQUIRE_ADMIN_TOKEN"] = "true"
os.environ.pop("ADMIN_PASSWORD_HASH", None)
os.environ.pop("LOG_FILE", None)


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def clean_sheet():
    from sqlmodel import delete
    from student_registry.db import create_db_and_tables, get_session
    from student_registry.models import StudentRow

    create_db_and_tables()
    with get_session() as db:
        db.exec(delete(StudentRow))
        db.commit()
    yield
