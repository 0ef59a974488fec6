from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import event, make_url
from sqlmodel import Session, SQLModel, create_engine

from mediadash.config import settings

DATABASE_URL = str(settings.database_url)
url = make_url(DATABASE_URL)
is_sqlite = url.drivername.startswith("sqlite")

connect_args = {}
if is_sqlite:
    database_path = Path(url.database or "")
    if not database_path.is_absolute():
        database_path = (Path.cwd() / database_path).resolve()
    database_path.parent.mkdir(parents=True, exist_ok=True)
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)

if is_sqlite:

    @event.listens_for(engine, "connect")
    def enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
        """SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db() -> None:
    """Create the dashboard tables if they do not exist."""
    import mediadash.models.entities  # noqa: F401  (ensure models are registered)

    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Yield a session; repositories commit their own writes."""
    with Session(engine) as session:
        yield session
