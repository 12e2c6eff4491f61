"""Capability interface shared by all calendar backends.

Capability mappers and the dispatcher depend only on ``CalendarBackend``.
A backend bundles the three native collaborators the core needs: a
calendar read/write store, a permission check/request facility, and a
UI host that can present a pre-filled event composer.
"""
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from native_calendar.calendar.recurrence import RecurrenceRule

READ = "read"
WRITE = "write"
REQUIRED_PERMISSIONS = (READ, WRITE)

# Calendar access levels, lowest to highest
ACCESS_NONE = 0
ACCESS_FREEBUSY = 100
ACCESS_READ = 200
ACCESS_RESPOND = 300
ACCESS_OVERRIDE = 400
ACCESS_CONTRIBUTOR = 500
ACCESS_EDITOR = 600
ACCESS_OWNER = 700
ACCESS_ROOT = 800

# Composer addressing schemes
EVENTS_MIME_TYPE = "vnd.android.cursor.dir/event"
EVENTS_CONTENT_URI = "content://com.android.calendar/events"
EVENT_EDITOR = "event-editor"

PermissionCallback = Callable[[Mapping[str, bool]], None]


@dataclass
class NativeEvent:
    """The backend-facing field set produced by a capability mapper.

    Fields a backend family cannot express are left as None.
    """

    title: str
    start_ms: int
    end_ms: int | None
    calendar_id: str | None = None
    description: str | None = None
    location: str | None = None
    all_day: bool = False
    time_zone: str | None = None
    status: int | None = None
    access_level: int | None = None
    color: int | None = None
    guests_can_modify: bool | None = None
    guests_can_invite_others: bool | None = None
    guests_can_see_guests: bool | None = None
    availability: str | None = None
    recurrence: RecurrenceRule | None = None
    url: str | None = None
    has_alarm: bool = False


@dataclass
class ComposeRequest:
    """A pre-filled composer to present to the user.

    Attributes:
        action: "insert" for a new event.
        address: How the composer is addressed (MIME type, content URI
            or the event editor).
        event: Pre-filled event fields.
        reminders: Reminder offsets to suggest. Hosts may ignore them.
        extras: Additional advisory values, keyed by native extra name.
    """

    action: str
    address: str
    event: NativeEvent
    reminders: list[int] = field(default_factory=list)
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CalendarInfo:
    id: str
    display_name: str
    access_level: int
    is_primary: bool = False


@dataclass(frozen=True)
class MarkerRecord:
    event_id: str
    description: str | None


class CalendarBackend(ABC):
    """Native calendar capabilities used by the core."""

    name: str = "backend"

    @abstractmethod
    def platform_version(self) -> str:
        """Human-readable platform name and version."""

    @abstractmethod
    def has_ui_context(self) -> bool:
        """Whether a permission prompt can be shown right now."""

    def composer_available(self) -> bool:
        """Whether an interactive composer can be presented right now."""
        return self.has_ui_context()

    @abstractmethod
    def check_permissions(self) -> dict[str, bool]:
        """Current grant state for each of ``REQUIRED_PERMISSIONS``. Must not prompt."""

    @abstractmethod
    def request_permissions(self, callback: PermissionCallback) -> None:
        """
        Prompt for ``REQUIRED_PERMISSIONS``.

        ``callback`` is called exactly once with the grant decision per
        permission, possibly later and from another thread.
        """

    @abstractmethod
    def write_event(self, event: NativeEvent) -> str:
        """
        Persist an event and return its id.

        Raises:
            NativeWriteFault: if the store rejects the event.
        """

    @abstractmethod
    def write_reminder(
        self, event_id: str, minutes: int, calendar_id: str | None = None
    ) -> None:
        """Attach one reminder to a persisted event in ``calendar_id``."""

    @abstractmethod
    def query_calendars(self, min_access_level: int) -> list[CalendarInfo]:
        """Calendars at or above ``min_access_level``, primary calendars first."""

    @abstractmethod
    def query_events(
        self, start_ms: int, end_ms: int, description_contains: str
    ) -> list[MarkerRecord]:
        """Events starting inside the window whose description contains the text."""

    @abstractmethod
    def present_composer(self, request: ComposeRequest) -> None:
        """
        Present a pre-filled composer and return once it is shown.

        Raises:
            ComposerUnavailable: if the composer could not be shown.
        """
