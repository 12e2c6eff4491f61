"""Resolve the calendar to write into when none is requested."""
import logging

from native_calendar.backends.base import ACCESS_CONTRIBUTOR, CalendarBackend

logger = logging.getLogger(__name__)


def resolve_primary_calendar(backend: CalendarBackend, default: str) -> str:
    """
    Return the first writable calendar, primary calendars first.

    Only calendars with at least contributor access are considered. Any
    failure or an empty result falls back to ``default``; this never raises.
    """
    try:
        calendars = backend.query_calendars(ACCESS_CONTRIBUTOR)
    except Exception as e:
        logger.warning(f"Calendar lookup failed, using default calendar {default}: {e}")
        return default

    # Backends are asked to sort primaries first; keep that order stable
    # but do not rely on it.
    calendars = sorted(calendars, key=lambda c: not c.is_primary)
    for calendar in calendars:
        if calendar.access_level >= ACCESS_CONTRIBUTOR:
            return calendar.id

    logger.info(f"No writable calendar found, using default calendar {default}")
    return default
