"""Event row model for the local calendar store.

This module defines the CalendarEvent model, the persisted form of a
NativeEvent written by the local backend. Columns mirror the native
field set produced by the capability mappers; fields a family does not
support are left NULL.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from native_calendar.models.reminder import Reminder


class CalendarEvent(SQLModel, table=True):
    """An event persisted in the local store.

    Attributes:
        id: Auto-incremented row id, exposed to callers as a string.
        calendar_id: Calendar the event belongs to.
        title: Event title.
        description: Event description; may carry a marker line.
        location: Display string for the location.
        dtstart: Start instant in epoch milliseconds.
        dtend: End instant in epoch milliseconds.
        all_day: Whether the event spans whole days.
        time_zone: IANA timezone id the event was written in.
        status: Provider status value, if the family supports it.
        access_level: Provider visibility value, if supported.
        color: ARGB color, if supported.
        guests_can_modify: Guest flag, if supported.
        guests_can_invite_others: Guest flag, if supported.
        guests_can_see_guests: Guest flag, if supported.
        availability: Free/busy status name.
        rrule: RFC 5545 recurrence rule body, if recurring.
        url: Link attached to the event, if supported.
        has_alarm: Whether reminders were requested.
        created_at: When the row was written.
        reminders: Reminders attached to this event.
    """
    id: int | None = Field(default=None, primary_key=True)
    calendar_id: str = Field(index=True)
    title: str
    description: str | None = None
    location: str | None = None
    dtstart: int = Field(index=True)
    dtend: int | None = None
    all_day: bool = Field(default=False)
    time_zone: str | None = None
    status: int | None = None
    access_level: int | None = None
    color: int | None = None
    guests_can_modify: bool | None = None
    guests_can_invite_others: bool | None = None
    guests_can_see_guests: bool | None = None
    availability: str | None = None
    rrule: str | None = None
    url: str | None = None
    has_alarm: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    reminders: list["Reminder"] = Relationship(back_populates="event")
