"""Find system-generated events by the marker line in their description."""
import logging
import time

from native_calendar.backends.base import CalendarBackend
from native_calendar.calendar.permissions import PermissionGate
from native_calendar.core.config import settings

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
MARKER_SUFFIX = " System Generated Event - Do not modify this line"


def marker_tag(marker: str) -> str:
    """The short tag used as a coarse description filter."""
    return f"[MARKER:{marker}]"


def marker_line(marker: str) -> str:
    """The full sentinel line to embed in a system-generated event's description."""
    return f"{marker_tag(marker)}{MARKER_SUFFIX}"


class MarkerSearch:
    """Looks up event ids by marker inside a start-time window."""

    def __init__(
        self,
        backend: CalendarBackend,
        gate: PermissionGate,
        window_days: int | None = None,
    ):
        self.backend = backend
        self.gate = gate
        self.window_days = window_days if window_days is not None else settings.marker_window_days

    def find(
        self,
        marker: str,
        start_ms: int | None = None,
        end_ms: int | None = None,
    ) -> list[str]:
        """
        Return ids of events carrying the full marker line.

        The window defaults to ``window_days`` either side of now. The
        backend filters on the short tag; each candidate is then checked
        for the complete sentinel line. Missing permissions or a failed
        query yield an empty list.
        """
        if not self.gate.check_granted():
            logger.info("Calendar permissions missing, marker search skipped")
            return []

        now_ms = int(time.time() * 1000)
        window_ms = self.window_days * DAY_MS
        if start_ms is None:
            start_ms = now_ms - window_ms
        if end_ms is None:
            end_ms = now_ms + window_ms

        try:
            candidates = self.backend.query_events(start_ms, end_ms, marker_tag(marker))
        except Exception as e:
            logger.error(f"Marker search for {marker!r} failed: {e}")
            return []

        sentinel = marker_line(marker)
        event_ids = [
            record.event_id
            for record in candidates
            if record.description is not None and sentinel in record.description
        ]
        logger.debug(
            f"Marker {marker!r}: {len(candidates)} candidate(s), {len(event_ids)} match(es)"
        )
        return event_ids
