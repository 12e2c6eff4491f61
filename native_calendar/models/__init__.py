from native_calendar.models.calendar import Calendar
from native_calendar.models.calendar_event import CalendarEvent
from native_calendar.models.event import EventModel, Location
from native_calendar.models.permission import PermissionGrant
from native_calendar.models.reminder import Reminder
from native_calendar.models.settings import (
    Availability,
    EventStoreSettings,
    ProviderSettings,
    RecurrenceSpec,
)

__all__ = [
    "Availability",
    "Calendar",
    "CalendarEvent",
    "EventModel",
    "EventStoreSettings",
    "Location",
    "PermissionGrant",
    "ProviderSettings",
    "RecurrenceSpec",
    "Reminder",
]
