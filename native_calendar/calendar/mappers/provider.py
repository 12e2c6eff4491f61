"""Capability mapper for the content-provider / intent family.

Direct writes become an event row with one column per field, followed by
one reminder row per offset. The interactive path becomes an "insert"
intent carrying standard extras; calendar apps are free to ignore the
non-standard ones (calendar, status, visibility, guest flags, custom
reminders), so those are sent as advisory extras only.

Presentation is attempted twice: first addressed by the events MIME
type, then by the events content URI.
"""
import logging
from typing import Any

from native_calendar.backends.base import (
    EVENTS_CONTENT_URI,
    EVENTS_MIME_TYPE,
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
from native_calendar.models.settings import Availability, ProviderSettings

logger = logging.getLogger(__name__)

# Availability column values
AVAILABILITY_VALUES = {
    Availability.BUSY: 0,
    Availability.FREE: 1,
    Availability.TENTATIVE: 2,
}


class ProviderMapper(CapabilityMapper):
    family = "provider"
    settings_key = "androidSettings"

    def __init__(
        self,
        backend: CalendarBackend,
        default_calendar_id: str | None = None,
        default_reminder_minutes: int | None = None,
    ):
        super().__init__(backend, default_reminder_minutes)
        self.default_calendar_id = default_calendar_id or settings.default_calendar_id

    def parse_settings(self, data: Any) -> ProviderSettings:
        return ProviderSettings.from_mapping(data)

    def map_direct(self, event: EventModel, platform_settings: ProviderSettings) -> DirectWrite:
        report = MappingReport()
        native = self._base_event(event, report)

        native.time_zone = event.time_zone or system_timezone()
        report.apply("time_zone", None if event.time_zone else "system default")

        if platform_settings.calendar_id:
            native.calendar_id = platform_settings.calendar_id
            report.apply("calendar_id")
        else:
            native.calendar_id = resolve_primary_calendar(self.backend, self.default_calendar_id)
            report.apply("calendar_id", "primary calendar")

        native.status = platform_settings.event_status
        native.access_level = platform_settings.visibility
        native.guests_can_modify = platform_settings.guests_can_modify
        native.guests_can_invite_others = platform_settings.guests_can_invite_others
        native.guests_can_see_guests = platform_settings.guests_can_see_guests
        for name in ("status", "access_level", "guests_can_modify",
                     "guests_can_invite_others", "guests_can_see_guests"):
            report.apply(name)

        if platform_settings.event_color is not None:
            native.color = platform_settings.event_color
            report.apply("color")

        self._map_availability(native, platform_settings, report)
        self._map_unsupported(event, platform_settings, report)
        self._map_recurrence(native, platform_settings, report)

        reminders = resolve_reminders(
            platform_settings.reminder_minutes,
            max_count=None,
            default_minutes=self.default_reminder_minutes,
            has_alarm=platform_settings.has_alarm,
        )
        native.has_alarm = bool(reminders)
        report.apply("reminders", f"{len(reminders)} reminder(s)")

        return DirectWrite(event=native, reminders=reminders, report=report)

    def map_compose(
        self, event: EventModel, platform_settings: ProviderSettings
    ) -> tuple[list[ComposeRequest], MappingReport]:
        report = MappingReport()
        native = self._base_event(event, report)
        if event.time_zone:
            native.time_zone = event.time_zone
            report.apply("time_zone")

        extras: dict[str, Any] = {
            "title": native.title,
            "beginTime": native.start_ms,
            "endTime": native.end_ms,
            "allDay": native.all_day,
        }
        if native.description is not None:
            extras["description"] = native.description
        if native.location is not None:
            extras["eventLocation"] = native.location
        if native.time_zone:
            extras["eventTimezone"] = native.time_zone

        # Most calendar apps apply their own reminder defaults to inserted
        # events; only the first offset is offered.
        reminders = resolve_reminders(
            platform_settings.reminder_minutes,
            max_count=1,
            default_minutes=self.default_reminder_minutes,
            has_alarm=platform_settings.has_alarm,
        )
        extras["hasAlarm"] = bool(reminders)
        if reminders:
            extras["reminderMinutes"] = reminders[0]
        native.has_alarm = bool(reminders)
        report.apply("reminders", "advisory")

        if platform_settings.calendar_id:
            extras["calendar_id"] = platform_settings.calendar_id
            native.calendar_id = platform_settings.calendar_id
            report.apply("calendar_id", "advisory")
        extras["eventStatus"] = platform_settings.event_status
        extras["accessLevel"] = platform_settings.visibility
        extras["guestsCanModify"] = platform_settings.guests_can_modify
        extras["guestsCanInviteOthers"] = platform_settings.guests_can_invite_others
        extras["guestsCanSeeGuests"] = platform_settings.guests_can_see_guests
        for name in ("status", "access_level", "guest_flags"):
            report.apply(name, "advisory")

        self._map_availability(native, platform_settings, report)
        if native.availability is not None:
            extras["availability"] = AVAILABILITY_VALUES[Availability(native.availability)]
        self._map_unsupported(event, platform_settings, report)
        self._map_recurrence(native, platform_settings, report)
        if native.recurrence is not None:
            extras["rrule"] = native.recurrence.to_rrule()

        requests = [
            ComposeRequest(
                action="insert",
                address=address,
                event=native,
                reminders=reminders,
                extras=dict(extras),
            )
            for address in (EVENTS_MIME_TYPE, EVENTS_CONTENT_URI)
        ]
        return requests, report

    def _base_event(self, event: EventModel, report: MappingReport) -> NativeEvent:
        native = NativeEvent(
            title=event.title,
            start_ms=event.start_ms,
            end_ms=event.end_ms,
            description=event.description,
            all_day=event.is_all_day,
        )
        for name in ("title", "start", "end", "all_day"):
            report.apply(name)
        if event.description is not None:
            report.apply("description")
        if event.location is not None:
            native.location = format_location(event.location)
            report.apply("location")
        return native

    def _map_availability(
        self, native: NativeEvent, platform_settings: ProviderSettings, report: MappingReport
    ) -> None:
        availability = platform_settings.availability
        if availability is None:
            return
        if availability not in AVAILABILITY_VALUES:
            native.availability = Availability.BUSY.value
            report.skip("availability", f"{availability.value} not supported, using busy")
            return
        native.availability = availability.value
        report.apply("availability")

    def _map_unsupported(
        self, event: EventModel, platform_settings: ProviderSettings, report: MappingReport
    ) -> None:
        if platform_settings.priority is not None:
            report.unsupported(CapabilityUnsupported("priority", "no priority column"))
        if event.url is not None:
            report.unsupported(CapabilityUnsupported("url", "no url column"))

    def _map_recurrence(
        self, native: NativeEvent, platform_settings: ProviderSettings, report: MappingReport
    ) -> None:
        spec = platform_settings.recurrence
        if spec is None:
            return
        rule = build_recurrence(spec.frequency, spec.interval, spec.end_ms)
        if rule is None:
            report.skip("recurrence", f"invalid frequency {spec.frequency!r}")
            return
        native.recurrence = rule
        report.apply("recurrence", rule.to_rrule())
