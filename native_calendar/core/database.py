"""Database configuration and session management for the local calendar store.

The local backend keeps calendars, events, reminders and permission
grants in SQLite. Two connection pragmas matter here:

    - **WAL (Write-Ahead Logging)**: readers (marker searches) are not
      blocked while an event and its reminders are being written.

    - **Foreign Keys**: disabled by default in SQLite. Enabled so a
      reminder can never point at an event row that does not exist.

``check_same_thread=False`` is required because FastAPI may run the
synchronous calendar calls on a worker thread.
"""

from sqlalchemy import event as sa_event
from sqlmodel import SQLModel, create_engine

from native_calendar.core.config import settings

connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_and_tables(bind=None):
    """Create all database tables."""
    # Table models must be imported before create_all sees them
    import native_calendar.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
