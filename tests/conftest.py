"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

import native_calendar.models  # noqa: F401
from native_calendar.backends.base import ComposeRequest
from native_calendar.backends.local import LocalCalendarBackend
from native_calendar.calendar.dispatch import CalendarDispatcher
from native_calendar.core.errors import ComposerUnavailable
from native_calendar.main import app
from native_calendar.routes.calendar import get_dispatcher

# Fixed instants used across tests (2024-03-15 10:00 UTC)
START_MS = 1710496800000
HOUR_MS = 60 * 60 * 1000


class FakeComposerHost:
    """Composer host that records what it was asked to present."""

    def __init__(self, available: bool = True, fail_addresses: tuple[str, ...] = ()):
        self.available = available
        self.fail_addresses = set(fail_addresses)
        self.attempts: list[ComposeRequest] = []
        self.presented: list[ComposeRequest] = []

    def is_available(self) -> bool:
        return self.available

    def present(self, request: ComposeRequest) -> None:
        self.attempts.append(request)
        if request.address in self.fail_addresses:
            raise ComposerUnavailable(f"No activity handles {request.address}")
        self.presented.append(request)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="composer")
def composer_fixture() -> FakeComposerHost:
    return FakeComposerHost()


@pytest.fixture(name="backend")
def backend_fixture(engine, composer: FakeComposerHost) -> LocalCalendarBackend:
    """A local backend with a writable primary calendar and no grants yet."""
    backend = LocalCalendarBackend(engine=engine, composer=composer)
    backend.add_calendar("1", "Personal", is_primary=True)
    return backend


@pytest.fixture(name="granted_backend")
def granted_backend_fixture(backend: LocalCalendarBackend) -> LocalCalendarBackend:
    """The local backend with read and write already granted."""
    backend.grant("read", "write")
    return backend


@pytest.fixture(name="dispatcher")
def dispatcher_fixture(backend: LocalCalendarBackend) -> CalendarDispatcher:
    return CalendarDispatcher(backend, family="provider", fallback_to_compose=False)


@pytest.fixture(name="client")
def client_fixture(dispatcher: CalendarDispatcher):
    """Create a test client wired to the test dispatcher."""
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="event_args")
def event_args_fixture() -> dict:
    """Call arguments for a one-hour meeting."""
    return {
        "title": "Team Sync",
        "startDate": START_MS,
        "endDate": START_MS + HOUR_MS,
        "description": "Weekly planning",
        "location": "Room 4",
        "timeZone": "Europe/London",
    }
