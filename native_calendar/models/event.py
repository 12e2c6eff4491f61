"""Canonical event model built from loosely-typed call arguments.

This module defines the EventModel which describes what to schedule,
independent of the backend that will store or present it. Models are
built per call from the incoming argument mapping, consumed by exactly
one capability mapper and then discarded.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from native_calendar.calendar.coerce import as_bool, as_float, as_int, as_mapping, as_str
from native_calendar.core.errors import ValidationError

ONE_HOUR_MS = 60 * 60 * 1000


class Location(BaseModel):
    """A structured event location.

    Attributes:
        title: Display name of the place.
        address: Street address, if known.
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        notes: Free-form directions or remarks.
    """
    model_config = ConfigDict(frozen=True)

    title: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    notes: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping) -> "Location":
        return cls(
            title=as_str(data.get("title")),
            address=as_str(data.get("address")),
            latitude=as_float(data.get("latitude")),
            longitude=as_float(data.get("longitude")),
            notes=as_str(data.get("notes")),
        )


class EventModel(BaseModel):
    """A validated description of an event to schedule.

    Only ``title`` and ``start_ms`` are required. Every other field is
    decoded with a coerce-or-default policy: a value of the wrong shape
    is treated as absent rather than rejected.

    Attributes:
        title: Event title, never empty.
        start_ms: Start instant in epoch milliseconds.
        end_ms: End instant in epoch milliseconds. Defaults to one hour
            after the start.
        description: Event description / notes.
        location: Either a plain string or a structured Location.
        is_all_day: Whether the event spans whole days.
        time_zone: IANA timezone id. None means the system default.
        url: Link attached to the event where the backend supports it.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    start_ms: int
    end_ms: int
    description: str | None = None
    location: str | Location | None = None
    is_all_day: bool = False
    time_zone: str | None = None
    url: str | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> "EventModel":
        """
        Build an EventModel from call arguments.

        Raises:
            ValidationError: if ``title`` or ``startDate`` is missing or
                malformed, or if ``data`` is not a mapping at all.
        """
        data = as_mapping(data)
        if data is None:
            raise ValidationError("arguments", "Event arguments must be a mapping")

        title = as_str(data.get("title"))
        if not title or not title.strip():
            raise ValidationError("title")

        start_ms = as_int(data.get("startDate"))
        if start_ms is None:
            raise ValidationError("startDate")

        end_ms = as_int(data.get("endDate"))
        if end_ms is None:
            end_ms = start_ms + ONE_HOUR_MS

        return cls(
            title=title,
            start_ms=start_ms,
            end_ms=end_ms,
            description=as_str(data.get("description")),
            location=_decode_location(data.get("location")),
            is_all_day=as_bool(data.get("isAllDay"), False),
            time_zone=as_str(data.get("timeZone")) or None,
            url=as_str(data.get("url")) or None,
        )


def _decode_location(value: Any) -> str | Location | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    mapping = as_mapping(value)
    if mapping is not None:
        return Location.from_mapping(mapping)
    # Anything else is displayed as-is
    return str(value)
