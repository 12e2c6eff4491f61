"""Render event locations into a single display string."""
from collections.abc import Mapping
from typing import Any

from native_calendar.models.event import Location


def format_location(location: Any) -> str:
    """
    Format a plain or structured location for a backend's location field.

    Plain strings are returned verbatim. Structured locations (a Location
    or a mapping with the same keys) become newline-joined parts in this
    order, skipping missing parts:

        title
        address                      (only if non-empty)
        Coordinates: lat, lon        (only if both are present, 6 decimals)
        notes                        (only if non-empty)

    Anything else is stringified.
    """
    if isinstance(location, str):
        return location
    if isinstance(location, Mapping):
        location = Location.from_mapping(location)
    if not isinstance(location, Location):
        return str(location)

    parts = []
    if location.title is not None:
        parts.append(location.title)
    if location.address:
        parts.append(location.address)
    if location.latitude is not None and location.longitude is not None:
        parts.append(f"Coordinates: {location.latitude:.6f}, {location.longitude:.6f}")
    if location.notes:
        parts.append(location.notes)

    return "\n".join(parts)
