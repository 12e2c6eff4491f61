"""Tests for API routes."""

import asyncio
import threading
import webbrowser

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from native_calendar.backends import local
from native_calendar.calendar.mappers.eventstore import EventStoreMapper
from native_calendar.calendar.search import marker_line
from native_calendar.core import database
from native_calendar.core.config import settings
from native_calendar.main import app
from native_calendar.models import CalendarEvent, EventModel
from native_calendar.routes import calendar as routes_calendar

from conftest import FakeComposerHost


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient):
        """Test the health endpoint returns OK."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestPermissionRoutes:
    """Tests for permission routes."""

    def test_check_then_request(self, client: TestClient):
        """Requesting grants permissions that the check then reports."""
        assert client.get("/calendar/permissions").json() == {"granted": False}

        response = client.post("/calendar/permissions")
        assert response.status_code == 200
        assert response.json() == {"granted": True}

        assert client.get("/calendar/permissions").json() == {"granted": True}

    def test_platform_version(self, client: TestClient):
        """The platform version is reported as a string."""
        response = client.get("/calendar/platform-version")
        assert response.status_code == 200
        assert isinstance(response.json()["version"], str)


class TestEventRoutes:
    """Tests for event routes."""

    def test_add_event_denied(self, client: TestClient, session: Session, event_args: dict):
        """Adding an event without permission reports not created."""
        response = client.post("/calendar/events", json=event_args)

        assert response.status_code == 200
        assert response.json() == {"created": False}
        assert session.exec(select(CalendarEvent)).all() == []

    def test_add_event(self, client: TestClient, session: Session, event_args: dict):
        """Adding an event after granting permission stores it."""
        client.post("/calendar/permissions")
        response = client.post("/calendar/events", json=event_args)

        assert response.json() == {"created": True}
        assert session.exec(select(CalendarEvent)).one().title == "Team Sync"

    def test_add_invalid_event(self, client: TestClient):
        """An event without a title is not created."""
        client.post("/calendar/permissions")
        response = client.post("/calendar/events", json={"startDate": 1})
        assert response.json() == {"created": False}

    def test_open_event(self, client: TestClient, composer: FakeComposerHost, event_args: dict):
        """Opening an event presents the composer."""
        response = client.post("/calendar/open", json=event_args)

        assert response.json() == {"presented": True}
        assert composer.presented[0].event.title == "Team Sync"

    def test_find_by_marker(self, client: TestClient, event_args: dict):
        """Marked events are found inside the requested window."""
        client.post("/calendar/permissions")
        client.post(
            "/calendar/events",
            json=dict(event_args, startDate=5000, endDate=6000, description=marker_line("daily-report")),
        )

        response = client.get("/calendar/events/marker/daily-report", params={"startDate": 0, "endDate": 10000})

        assert response.status_code == 200
        assert len(response.json()["eventIds"]) == 1


class TestCallRoute:
    """Tests for method-name dispatch over HTTP."""

    def test_call_known_method(self, client: TestClient):
        """Known methods return their result."""
        response = client.post("/calendar/call/hasCalendarPermissions")
        assert response.status_code == 200
        assert response.json() == {"result": False}

    def test_call_with_arguments(self, client: TestClient, event_args: dict):
        """Arguments are passed through to the method."""
        response = client.post("/calendar/call/openCalendarWithEvent", json=event_args)
        assert response.json() == {"result": True}

    def test_call_unknown_method(self, client: TestClient):
        """Unknown methods are 404."""
        response = client.post("/calendar/call/deleteEvent", json={})
        assert response.status_code == 404


@pytest.fixture(name="default_wiring")
def default_wiring_fixture(engine, monkeypatch):
    """The real get_dispatcher wiring on a headless host, backed by the test engine."""
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(routes_calendar, "_dispatcher", None)
    monkeypatch.setattr(settings, "backend", "local")
    monkeypatch.setattr(settings, "platform_family", "provider")

    def no_browser(*args, **kwargs):
        raise webbrowser.Error("could not locate runnable browser")

    monkeypatch.setattr(webbrowser, "get", no_browser)


class TestDefaultWiring:
    """Tests that go through the real dispatcher dependency."""

    def test_headless_request_is_granted(self, default_wiring):
        """The auto-grant prompt works without a browser."""
        client = TestClient(app)

        response = client.post("/calendar/permissions")

        assert response.status_code == 200
        assert response.json() == {"granted": True}
        assert client.get("/calendar/permissions").json() == {"granted": True}

    def test_headless_compose_is_refused(self, default_wiring, event_args: dict):
        """Without a browser the event-store editor is not presented."""
        dispatcher = routes_calendar.get_dispatcher()
        mapper = EventStoreMapper(dispatcher.backend)

        assert mapper.compose(EventModel.from_mapping(event_args)) is False

    def test_concurrent_requests_prompt_once(self, default_wiring, monkeypatch):
        """A second request while the prompt is open resolves False; the first still gets its answer."""
        release = threading.Event()
        prompts = []

        def blocking_prompt(names):
            prompts.append(names)
            release.wait(timeout=10)
            return {name: True for name in names}

        monkeypatch.setattr(local, "auto_grant_prompt", blocking_prompt)

        async def scenario():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
                first = asyncio.create_task(http.post("/calendar/permissions"))
                try:
                    for _ in range(500):
                        dispatcher = routes_calendar._dispatcher
                        if dispatcher is not None and dispatcher.gate.is_requesting:
                            break
                        await asyncio.sleep(0.01)
                    else:
                        raise AssertionError("first permission request never became pending")

                    second = await http.post("/calendar/permissions")
                finally:
                    release.set()
                return (await first).json(), second.json()

        first, second = asyncio.run(scenario())

        assert second == {"granted": False}
        assert first == {"granted": True}
        assert len(prompts) == 1
