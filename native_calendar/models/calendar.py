"""Calendar model for the local calendar store.

This module defines the Calendar model which represents a calendar that
events can be written into. Calendars carry an access level so that the
primary-calendar lookup can skip read-only calendars.
"""

from sqlmodel import Field, SQLModel


class Calendar(SQLModel, table=True):
    """A calendar in the local store.

    Attributes:
        id: Calendar identifier, used as the event's calendar target.
        display_name: Human-readable calendar name.
        account_name: Account that owns the calendar.
        access_level: Numeric access level (see
            ``native_calendar.backends.base.ACCESS_*``).
        is_primary: Whether this is the account's primary calendar.
    """
    id: str = Field(primary_key=True)
    display_name: str
    account_name: str = Field(default="local")
    access_level: int = Field(default=700)
    is_primary: bool = Field(default=False)
