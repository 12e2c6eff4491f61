"""Normalize reminder inputs into a list of minute offsets."""
import logging
from typing import Any

from native_calendar.calendar.coerce import as_int, as_list

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_MINUTES = 15


def resolve_reminders(
    raw: Any,
    max_count: int | None = None,
    default_minutes: int = DEFAULT_REMINDER_MINUTES,
    has_alarm: bool | None = None,
) -> list[int]:
    """
    Resolve raw reminder input into minute offsets before the event start.

    Args:
        raw: A single value or a list. Elements may be ints, floats,
            decimals or numeric strings; floats are truncated.
        max_count: Keep at most this many offsets, in original order.
            None means uncapped.
        default_minutes: Used for an empty/absent input and in place of
            any element that cannot be coerced or is negative.
        has_alarm: False disables reminders and returns an empty list.

    Returns:
        The resolved offsets. Never contains negative values.
    """
    if has_alarm is False:
        return []

    values = as_list(raw)
    if not values:
        resolved = [default_minutes]
    else:
        resolved = []
        for value in values:
            minutes = as_int(value)
            if minutes is None or minutes < 0:
                logger.debug(f"Unusable reminder value {value!r}, using {default_minutes}")
                minutes = default_minutes
            resolved.append(minutes)

    if max_count is not None:
        resolved = resolved[: max(max_count, 0)]
    return resolved
