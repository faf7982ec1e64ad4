from logging.config import fileConfig
import os
import sys

from alembic import context

# ensure repo root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from student_registry.db import DATABASE_URL, make_engine  # noqa: E402
import student_registry.models  # noqa: E402,F401 registers the students table
from sqlmodel import SQLModel  # noqa: E402

config = context.config

if config.config_file_name:
    fileConfig(config.config_file_name)

# DATABASE_URL wins over whatever alembic.ini says
config.set_main_option('sqlalchemy.url', DATABASE_URL)

target_metadata = SQLModel.metadata


def run_migrations_offline():
    context.configure(url=DATABASE_URL, target_metadata=target_metadata, literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = make_engine(DATABASE_URL)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata,
                          render_as_batch=DATABASE_URL.startswith("sqlite"))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
