from contextlib import contextmanager
from typing import Generator
import os

from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine, Session

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./student_registry.db")


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # the sheet is touched from FastAPI's threadpool
        return create_engine(url, echo=False, connect_args={"check_same_thread": False}, poolclass=NullPool)
    return create_engine(url, echo=False, pool_size=5, max_overflow=10, pool_recycle=3600, pool_timeout=30)


engine = make_engine(DATABASE_URL)


def create_db_and_tables():
    import student_registry.models  # noqa: F401 registers the students table
    SQLModel.metadata.create_all(engine)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Yield a DB session that is always properly closed."""
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()
