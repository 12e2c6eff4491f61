"""Shared capability-mapper machinery.

A capability mapper projects an EventModel plus a family's settings bag
onto a backend's native fields. Subclasses decide the projection; this
module runs the two paths around it:

- direct write: persist the event, then attach each reminder separately.
  Reminder failures are logged and swallowed; the event stays.
- interactive compose: present one or more composer attempts in order
  and succeed on the first that is shown.

Every mapping records what was applied and what was skipped in a
MappingReport, which is logged instead of raised.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import tzlocal

from native_calendar.backends.base import CalendarBackend, ComposeRequest, NativeEvent
from native_calendar.core.config import settings
from native_calendar.core.errors import CapabilityUnsupported, PartialReminderFault
from native_calendar.models.event import EventModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldOutcome:
    field: str
    applied: bool
    reason: str | None = None


@dataclass
class MappingReport:
    """Per-field outcome of one mapping."""

    outcomes: list[FieldOutcome] = field(default_factory=list)

    def apply(self, name: str, note: str | None = None) -> None:
        self.outcomes.append(FieldOutcome(name, True, note))

    def skip(self, name: str, reason: str) -> None:
        self.outcomes.append(FieldOutcome(name, False, reason))

    def unsupported(self, error: CapabilityUnsupported) -> None:
        self.skip(error.field, error.reason)

    @property
    def applied(self) -> list[str]:
        return [o.field for o in self.outcomes if o.applied]

    @property
    def skipped(self) -> dict[str, str]:
        return {o.field: o.reason for o in self.outcomes if not o.applied}

    def log(self, context: str) -> None:
        logger.debug(f"{context}: applied={self.applied} skipped={self.skipped}")


@dataclass
class DirectWrite:
    """A mapped event ready to persist, with its reminder offsets."""

    event: NativeEvent
    reminders: list[int]
    report: MappingReport


def system_timezone() -> str:
    """Configured default timezone, else the host's IANA zone id, else UTC."""
    if settings.default_timezone:
        return settings.default_timezone
    try:
        name = tzlocal.get_localzone_name()
    except Exception as e:
        logger.warning(f"Could not determine local timezone, using UTC: {e}")
        return "UTC"
    return name or "UTC"


class CapabilityMapper(ABC):
    """Maps events onto one backend family and runs both write paths."""

    family: str = "base"
    settings_key: str = ""

    def __init__(
        self,
        backend: CalendarBackend,
        default_reminder_minutes: int | None = None,
    ):
        self.backend = backend
        self.default_reminder_minutes = (
            default_reminder_minutes
            if default_reminder_minutes is not None
            else settings.default_reminder_minutes
        )

    @abstractmethod
    def parse_settings(self, data: Any) -> Any:
        """Decode this family's settings bag from the call arguments."""

    @abstractmethod
    def map_direct(self, event: EventModel, platform_settings: Any) -> DirectWrite:
        """Project an event onto native fields for a silent write."""

    @abstractmethod
    def map_compose(
        self, event: EventModel, platform_settings: Any
    ) -> tuple[list[ComposeRequest], MappingReport]:
        """Project an event onto composer attempts, in the order to try them."""

    def can_compose(self) -> bool:
        """Whether a composer can be presented right now."""
        return True

    def write(self, event: EventModel, raw_settings: Any = None) -> bool:
        """
        Persist an event directly and attach its reminders.

        Returns True once the event is persisted, even if some reminders
        could not be attached. Permission must be checked by the caller.
        """
        platform_settings = self.parse_settings(raw_settings)
        try:
            mapped = self.map_direct(event, platform_settings)
        except Exception as e:
            logger.error(f"Failed to map event '{event.title}': {e}")
            return False
        mapped.report.log(f"{self.family} direct write '{event.title}'")

        try:
            event_id = self.backend.write_event(mapped.event)
        except Exception as e:
            logger.error(f"Failed to write event '{event.title}': {e}")
            return False

        if not event_id:
            logger.error(f"Backend returned no id for event '{event.title}'")
            return False

        failed = []
        for minutes in mapped.reminders:
            try:
                self.backend.write_reminder(event_id, minutes, mapped.event.calendar_id)
            except Exception as e:
                logger.debug(f"Reminder {minutes}m on event {event_id} failed: {e}")
                failed.append(minutes)
        if failed:
            logger.warning(str(PartialReminderFault(event_id, failed)))

        logger.info(f"Created event {event_id} '{event.title}' with {len(mapped.reminders) - len(failed)} reminder(s)")
        return True

    def compose(self, event: EventModel, raw_settings: Any = None) -> bool:
        """
        Present a pre-filled composer.

        Returns True as soon as a composer is shown; the user may still
        discard it. Attempts are tried in order until one is shown.
        """
        if not self.can_compose():
            logger.warning(f"No UI context to present composer for '{event.title}'")
            return False

        platform_settings = self.parse_settings(raw_settings)
        try:
            requests, report = self.map_compose(event, platform_settings)
        except Exception as e:
            logger.error(f"Failed to map composer for '{event.title}': {e}")
            return False
        report.log(f"{self.family} compose '{event.title}'")

        for attempt, request in enumerate(requests, start=1):
            try:
                self.backend.present_composer(request)
            except Exception as e:
                logger.warning(
                    f"Composer attempt {attempt} via {request.address} failed: {e}"
                )
                continue
            logger.info(f"Presented composer for '{event.title}' via {request.address}")
            return True

        logger.error(f"Could not present composer for '{event.title}'")
        return False
