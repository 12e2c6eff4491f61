"""Tests for the Google Calendar backend's event translation and queries."""

from native_calendar.backends import google
from native_calendar.backends.base import ACCESS_CONTRIBUTOR, NativeEvent
from native_calendar.backends.google import GoogleCalendarBackend, event_body
from native_calendar.calendar.recurrence import build_recurrence

START_MS = 1710496800000  # 2024-03-15 10:00 UTC


class FakeRequest:
    def __init__(self, result):
        self.result = result

    def execute(self):
        return self.result


class FakeCollection:
    """Stands in for a Calendar API collection, serving canned pages."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def list(self, **kwargs):
        self.calls.append(kwargs)
        return FakeRequest(self.pages[len(self.calls) - 1])


class FakeService:
    def __init__(self, calendar_pages=None, event_pages=None):
        self.calendar_list = FakeCollection(calendar_pages or [{}])
        self.event_list = FakeCollection(event_pages or [{}])

    def calendarList(self):  # noqa: N802
        return self.calendar_list

    def events(self):
        return self.event_list


class TestEventBody:
    """Tests for event_body."""

    def test_timed_event(self):
        """Timed events carry dateTime and the event timezone."""
        body = event_body(
            NativeEvent(
                title="Team Sync",
                start_ms=START_MS,
                end_ms=START_MS + 3600000,
                time_zone="Europe/London",
                description="Agenda",
            )
        )
        assert body["summary"] == "Team Sync"
        assert body["start"] == {"dateTime": "2024-03-15T10:00:00+00:00", "timeZone": "Europe/London"}
        assert body["end"]["dateTime"] == "2024-03-15T11:00:00+00:00"
        assert body["description"] == "Agenda"
        assert body["reminders"] == {"useDefault": False, "overrides": []}

    def test_all_day_event(self):
        """All-day events use dates with an exclusive end."""
        body = event_body(NativeEvent(title="Holiday", start_ms=START_MS, end_ms=START_MS, all_day=True))
        assert body["start"] == {"date": "2024-03-15"}
        assert body["end"] == {"date": "2024-03-16"}

    def test_provider_columns(self):
        """Status, visibility, color and guest flags map onto event fields."""
        body = event_body(
            NativeEvent(
                title="Review",
                start_ms=START_MS,
                end_ms=None,
                status=0,
                access_level=2,
                color=0xFF0000FF,
                guests_can_modify=True,
                availability="free",
                recurrence=build_recurrence("daily", 3),
            )
        )
        assert body["status"] == "tentative"
        assert body["visibility"] == "private"
        assert "colorId" not in body
        assert body["guestsCanModify"] is True
        assert body["transparency"] == "transparent"
        assert body["recurrence"] == ["RRULE:FREQ=DAILY;INTERVAL=3"]


class TestGoogleQueries:
    """Tests for calendar and event queries against a fake service."""

    def test_query_calendars_filters_and_orders(self, monkeypatch):
        """Calendars below the access level are dropped; primary comes first."""
        service = FakeService(
            calendar_pages=[
                {
                    "items": [
                        {"id": "holidays", "summary": "Holidays", "accessRole": "reader"},
                        {"id": "team", "summary": "Team", "accessRole": "writer"},
                    ],
                    "nextPageToken": "p2",
                },
                {"items": [{"id": "me@example.com", "accessRole": "owner", "primary": True}]},
            ]
        )
        monkeypatch.setattr(google, "get_calendar_service", lambda: service)

        calendars = GoogleCalendarBackend().query_calendars(ACCESS_CONTRIBUTOR)

        assert [c.id for c in calendars] == ["me@example.com", "team"]
        assert service.calendar_list.calls[1]["pageToken"] == "p2"

    def test_query_events_checks_description(self, monkeypatch):
        """Free-text hits without the text in the description are dropped."""
        service = FakeService(
            event_pages=[
                {
                    "items": [
                        {
                            "id": "a",
                            "description": "[MARKER:x] System Generated Event",
                            "start": {"dateTime": "1970-01-01T01:00:00Z"},
                        },
                        {
                            "id": "b",
                            "summary": "[MARKER:x] in title",
                            "start": {"dateTime": "1970-01-01T01:00:00Z"},
                        },
                    ]
                }
            ]
        )
        monkeypatch.setattr(google, "get_calendar_service", lambda: service)

        records = GoogleCalendarBackend().query_events(0, START_MS, "[MARKER:x]")

        assert [r.event_id for r in records] == ["a"]
        call = service.event_list.calls[0]
        assert call["q"] == "[MARKER:x]"
        assert call["singleEvents"] is True
        assert call["timeMin"] == "1970-01-01T00:00:00Z"

    def test_query_events_keeps_only_events_starting_in_window(self, monkeypatch):
        """Events that merely overlap the window start are dropped."""
        marker = "[MARKER:x] System Generated Event"
        service = FakeService(
            event_pages=[
                {
                    "items": [
                        {
                            "id": "overlapping",
                            "description": marker,
                            "start": {"dateTime": "2024-03-15T09:00:00Z"},
                            "end": {"dateTime": "2024-03-15T11:00:00Z"},
                        },
                        {
                            "id": "inside",
                            "description": marker,
                            "start": {"dateTime": "2024-03-15T11:00:00+01:00"},
                        },
                        {"id": "all-day", "description": marker, "start": {"date": "2024-03-16"}},
                        {"id": "no-start", "description": marker},
                    ]
                }
            ]
        )
        monkeypatch.setattr(google, "get_calendar_service", lambda: service)

        window_end = START_MS + 2 * 24 * 60 * 60 * 1000
        records = GoogleCalendarBackend().query_events(START_MS, window_end, "[MARKER:x]")

        assert [r.event_id for r in records] == ["inside", "all-day"]


class FakeEventWrites:
    """Stands in for the service and its events collection on the write path."""

    def __init__(self):
        self.calls = []

    def events(self):
        return self

    def get(self, **kwargs):
        self.calls.append(("get", kwargs))
        return FakeRequest({"reminders": {"overrides": [{"method": "popup", "minutes": 10}]}})

    def patch(self, **kwargs):
        self.calls.append(("patch", kwargs))
        return FakeRequest({})


class TestGoogleWrites:
    """Tests for attaching reminders through the Calendar API."""

    def test_reminder_targets_given_calendar(self, monkeypatch):
        """The reminder is appended on the event's own calendar."""
        events = FakeEventWrites()
        monkeypatch.setattr(google, "get_calendar_service", lambda: events)

        GoogleCalendarBackend().write_reminder("evt1", 30, "team@example.com")

        assert [kwargs["calendarId"] for _, kwargs in events.calls] == ["team@example.com"] * 2
        patch = events.calls[1][1]
        assert patch["body"]["reminders"]["overrides"] == [
            {"method": "popup", "minutes": 10},
            {"method": "popup", "minutes": 30},
        ]

    def test_reminder_defaults_to_primary(self, monkeypatch):
        """Without a calendar id the primary calendar is used."""
        events = FakeEventWrites()
        monkeypatch.setattr(google, "get_calendar_service", lambda: events)

        GoogleCalendarBackend().write_reminder("evt1", 30)

        assert events.calls[0][1]["calendarId"] == "primary"
