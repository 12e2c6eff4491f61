"""Reminder model for the local calendar store.

Reminders are stored as separate rows and inserted only after the event
row exists, so a failed reminder never takes the event down with it.
"""

from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from native_calendar.models.calendar_event import CalendarEvent


class Reminder(SQLModel, table=True):
    """A reminder attached to an event.

    Attributes:
        id: Auto-incremented row id.
        event_id: Foreign key to the parent CalendarEvent.
        minutes: Minutes before the event start to fire.
        method: Delivery method; only "alert" is written.
        event: Reference to the parent CalendarEvent.
    """
    id: int | None = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="calendarevent.id")
    minutes: int
    method: str = Field(default="alert")

    # Relationship
    event: Optional["CalendarEvent"] = Relationship(back_populates="reminders")
