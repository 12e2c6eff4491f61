"""Capability mapper for the event-store / object family.

Events are objects saved into a calendar. Alarms and recurrence rules
hang off the event itself, a url is supported, but there is no status,
visibility, color, guest or priority field. Priority is therefore
appended to the notes as text; the others are reported as unsupported
when a caller sends them anyway.

The interactive path presents an event editor over the current UI. The
editor keeps at most a couple of alarms, and presenting needs a UI
context, so it fails fast without one.
"""
import logging
from typing import Any

from native_calendar.backends.base import (
    ACCESS_NONE,
    EVENT_EDITOR,
    CalendarBackend,
    ComposeRequest,
    NativeEvent,
)
from native_calendar.calendar.calendars import resolve_primary_calendar
from native_calendar.calendar.location import format_location
from native_calendar.calendar.mappers.base import (
    CapabilityMapper,
    DirectWrite,
    MappingReport,
    system_timezone,
)
from native_calendar.calendar.recurrence import build_recurrence
from native_calendar.calendar.reminders import resolve_reminders
from native_calendar.core.config import settings
from native_calendar.core.errors import CapabilityUnsupported
from native_calendar.models.event import EventModel
from native_calendar.models.settings import NORMAL_PRIORITY, EventStoreSettings

logger = logging.getLogger(__name__)

HIGH_PRIORITY_TEXT = "[High Priority]"
LOW_PRIORITY_TEXT = "[Low Priority]"


def priority_text(priority: int | None) -> str:
    """Notes text standing in for a priority: 1-4 high, 6-9 low, else nothing."""
    if priority is None or priority == NORMAL_PRIORITY:
        return ""
    if 1 <= priority <= 4:
        return HIGH_PRIORITY_TEXT
    if 6 <= priority <= 9:
        return LOW_PRIORITY_TEXT
    return ""


class EventStoreMapper(CapabilityMapper):
    family = "eventstore"
    settings_key = "iosSettings"

    def __init__(
        self,
        backend: CalendarBackend,
        default_calendar_identifier: str | None = None,
        default_reminder_minutes: int | None = None,
        compose_alarm_limit: int | None = None,
    ):
        super().__init__(backend, default_reminder_minutes)
        self.default_calendar_identifier = (
            default_calendar_identifier or settings.default_calendar_identifier
        )
        self.compose_alarm_limit = (
            compose_alarm_limit
            if compose_alarm_limit is not None
            else settings.compose_alarm_limit
        )

    def parse_settings(self, data: Any) -> EventStoreSettings:
        return EventStoreSettings.from_mapping(data)

    def can_compose(self) -> bool:
        return self.backend.composer_available()

    def map_direct(self, event: EventModel, platform_settings: EventStoreSettings) -> DirectWrite:
        native, alarms, report = self._map(event, platform_settings, max_alarms=None)
        return DirectWrite(event=native, reminders=alarms, report=report)

    def map_compose(
        self, event: EventModel, platform_settings: EventStoreSettings
    ) -> tuple[list[ComposeRequest], MappingReport]:
        native, alarms, report = self._map(
            event, platform_settings, max_alarms=self.compose_alarm_limit
        )
        request = ComposeRequest(
            action="insert",
            address=EVENT_EDITOR,
            event=native,
            reminders=alarms,
        )
        return [request], report

    def _map(
        self,
        event: EventModel,
        platform_settings: EventStoreSettings,
        max_alarms: int | None,
    ) -> tuple[NativeEvent, list[int], MappingReport]:
        report = MappingReport()
        native = NativeEvent(
            title=event.title,
            start_ms=event.start_ms,
            end_ms=event.end_ms,
            all_day=event.is_all_day,
            time_zone=event.time_zone or system_timezone(),
        )
        for name in ("title", "start", "end", "all_day", "time_zone"):
            report.apply(name)

        notes = event.description or ""
        text = priority_text(platform_settings.priority)
        if text:
            notes = f"{notes}\n{text}" if notes else text
            report.apply("priority", "appended to notes")
        elif platform_settings.priority is not None:
            report.skip("priority", "normal priority")
        native.description = notes or None

        if event.location is not None:
            location = format_location(event.location)
            native.location = location or None
            report.apply("location")

        if event.url is not None:
            native.url = event.url
            report.apply("url")

        if platform_settings.availability is not None:
            native.availability = platform_settings.availability.value
            report.apply("availability")

        for name in platform_settings.unsupported:
            report.unsupported(CapabilityUnsupported(name, "no event-store field"))

        native.calendar_id = self._resolve_calendar(platform_settings.calendar_identifier, report)

        spec = platform_settings.recurrence
        if spec is not None:
            rule = build_recurrence(spec.frequency, spec.interval, spec.end_ms)
            if rule is None:
                report.skip("recurrence", f"invalid frequency {spec.frequency!r}")
            else:
                native.recurrence = rule
                report.apply("recurrence", rule.to_rrule())

        alarms = resolve_reminders(
            platform_settings.alarm_minutes,
            max_count=max_alarms,
            default_minutes=self.default_reminder_minutes,
            has_alarm=platform_settings.has_alarm,
        )
        native.has_alarm = bool(alarms)
        report.apply("alarms", f"{len(alarms)} alarm(s)")

        return native, alarms, report

    def _resolve_calendar(self, identifier: str | None, report: MappingReport) -> str:
        if identifier:
            try:
                known = {c.id for c in self.backend.query_calendars(ACCESS_NONE)}
            except Exception as e:
                logger.warning(f"Calendar lookup failed for {identifier}: {e}")
                known = set()
            if identifier in known:
                report.apply("calendar")
                return identifier
            report.skip("calendar", f"unknown calendar {identifier}, using default")

        calendar_id = resolve_primary_calendar(self.backend, self.default_calendar_identifier)
        if not identifier:
            report.apply("calendar", "default calendar")
        return calendar_id
