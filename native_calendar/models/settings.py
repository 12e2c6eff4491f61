"""Per-family platform settings.

Each backend family reads its own settings bag from the call arguments
(``androidSettings`` for the provider family, ``iosSettings`` for the
event-store family). Both are decoded field by field with the same
coerce-or-default policy as the event model, so a malformed setting is
dropped instead of failing the call.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from native_calendar.calendar.coerce import as_bool, as_int, as_list, as_mapping, as_str

NORMAL_PRIORITY = 5

# Provider columns with no event-store equivalent, wire key to field name
PROVIDER_ONLY_SETTINGS = {
    "eventStatus": "status",
    "visibility": "access_level",
    "eventColor": "color",
    "guestsCanModify": "guests_can_modify",
    "guestsCanInviteOthers": "guests_can_invite_others",
    "guestsCanSeeGuests": "guests_can_see_guests",
}


class Availability(str, Enum):
    """How the event shows on a free/busy view."""
    BUSY = "busy"
    FREE = "free"
    TENTATIVE = "tentative"
    UNAVAILABLE = "unavailable"

    @classmethod
    def decode(cls, value: Any) -> "Availability | None":
        """
        Decode wire codes 1..4 or enum names.

        Unknown integers fall back to busy; anything else is absent.
        """
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        code = as_int(value)
        if code is None:
            return None
        return _AVAILABILITY_CODES.get(code, cls.BUSY)


_AVAILABILITY_CODES = {
    1: Availability.BUSY,
    2: Availability.FREE,
    3: Availability.TENTATIVE,
    4: Availability.UNAVAILABLE,
}


class RecurrenceSpec(BaseModel):
    """Requested recurrence, before validation against known frequencies."""
    model_config = ConfigDict(frozen=True)

    frequency: str
    interval: int | None = None
    end_ms: int | None = None


def _decode_recurrence(data: Mapping, require_flag: bool) -> RecurrenceSpec | None:
    if require_flag and not as_bool(data.get("hasRecurrenceRules"), False):
        return None
    frequency = as_str(data.get("recurrenceFrequency"))
    if not frequency:
        return None
    return RecurrenceSpec(
        frequency=frequency,
        interval=as_int(data.get("recurrenceInterval")),
        end_ms=as_int(data.get("recurrenceEndDate")),
    )


def _decode_priority(value: Any) -> int | None:
    priority = as_int(value)
    if priority is None or not 1 <= priority <= 9:
        return None
    return priority


class ProviderSettings(BaseModel):
    """Settings for the content-provider / intent family.

    Attributes:
        calendar_id: Target calendar row id. None resolves the primary
            calendar at write time.
        event_status: Status column value (0 tentative, 1 confirmed,
            2 cancelled).
        visibility: Access level column value (0 default, 1 confidential,
            2 private, 3 public).
        event_color: ARGB color integer.
        guests_can_modify: Guests may edit the event.
        guests_can_invite_others: Guests may invite others.
        guests_can_see_guests: Guests may see the guest list.
        availability: Free/busy status.
        priority: 1 (highest) to 9 (lowest). No column exists for it.
        has_alarm: None when unset; False disables reminders entirely.
        reminder_minutes: Raw reminder offsets, resolved at mapping time.
        recurrence: Requested recurrence.
    """
    model_config = ConfigDict(frozen=True)

    calendar_id: str | None = None
    event_status: int = 1
    visibility: int = 0
    event_color: int | None = None
    guests_can_modify: bool = False
    guests_can_invite_others: bool = False
    guests_can_see_guests: bool = True
    availability: Availability | None = None
    priority: int | None = None
    has_alarm: bool | None = None
    reminder_minutes: list | None = None
    recurrence: RecurrenceSpec | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> "ProviderSettings":
        data = as_mapping(data)
        if data is None:
            return cls()

        calendar_id = data.get("calendarId")
        if isinstance(calendar_id, bool):
            calendar_id = None
        elif isinstance(calendar_id, int):
            calendar_id = str(calendar_id)
        else:
            calendar_id = as_str(calendar_id) or None

        return cls(
            calendar_id=calendar_id,
            event_status=as_int(data.get("eventStatus"), 1),
            visibility=as_int(data.get("visibility"), 0),
            event_color=as_int(data.get("eventColor")),
            guests_can_modify=as_bool(data.get("guestsCanModify"), False),
            guests_can_invite_others=as_bool(data.get("guestsCanInviteOthers"), False),
            guests_can_see_guests=as_bool(data.get("guestsCanSeeGuests"), True),
            availability=Availability.decode(data.get("availability")),
            priority=_decode_priority(data.get("priority")),
            has_alarm=as_bool(data.get("hasAlarm")),
            reminder_minutes=as_list(data.get("reminderMinutes")),
            recurrence=_decode_recurrence(data, require_flag=False),
        )


class EventStoreSettings(BaseModel):
    """Settings for the event-store / object family.

    Attributes:
        calendar_identifier: Target calendar identifier. None, or an
            identifier the store does not know, uses the default calendar.
        availability: Free/busy status.
        priority: 1 (highest) to 9 (lowest), appended to the notes as text.
        has_alarm: None when unset; False disables alarms entirely.
        alarm_minutes: Raw alarm offsets, resolved at mapping time.
        recurrence: Requested recurrence, only read when
            ``hasRecurrenceRules`` is true.
        unsupported: Provider-only settings that were requested anyway
            (status, visibility, color, guest flags), by field name.
    """
    model_config = ConfigDict(frozen=True)

    calendar_identifier: str | None = None
    availability: Availability | None = None
    priority: int | None = None
    has_alarm: bool | None = None
    alarm_minutes: list | None = None
    recurrence: RecurrenceSpec | None = None
    unsupported: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Any) -> "EventStoreSettings":
        data = as_mapping(data)
        if data is None:
            return cls()
        return cls(
            calendar_identifier=as_str(data.get("calendarIdentifier")) or None,
            availability=Availability.decode(data.get("availability")),
            priority=_decode_priority(data.get("priority")),
            has_alarm=as_bool(data.get("hasAlarm")),
            alarm_minutes=as_list(data.get("alarmMinutes")),
            recurrence=_decode_recurrence(data, require_flag=True),
            unsupported=tuple(
                name for key, name in PROVIDER_ONLY_SETTINGS.items() if data.get(key) is not None
            ),
        )
