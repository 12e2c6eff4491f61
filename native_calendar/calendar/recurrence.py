"""Build recurrence rules from a frequency / interval / end triple."""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from native_calendar.calendar.coerce import as_int

logger = logging.getLogger(__name__)


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class RecurrenceRule:
    """A recurrence rule, bounded when ``end_ms`` is set."""

    frequency: Frequency
    interval: int = 1
    end_ms: int | None = None

    @property
    def is_bounded(self) -> bool:
        return self.end_ms is not None

    def to_rrule(self) -> str:
        """Render the RFC 5545 rule body, e.g. ``FREQ=WEEKLY;INTERVAL=2``."""
        parts = [f"FREQ={self.frequency.name}", f"INTERVAL={self.interval}"]
        if self.end_ms is not None:
            until = datetime.fromtimestamp(self.end_ms / 1000, tz=UTC)
            parts.append(f"UNTIL={until.strftime('%Y%m%dT%H%M%SZ')}")
        return ";".join(parts)


def build_recurrence(
    frequency: str | None,
    interval: int | None = None,
    end_ms: int | None = None,
) -> RecurrenceRule | None:
    """
    Build a recurrence rule, or None when the frequency is not recognised.

    Frequency is matched case-insensitively against daily, weekly,
    monthly and yearly. An unknown frequency drops the recurrence with a
    warning rather than failing the event. ``interval`` defaults to 1
    and is clamped to at least 1.
    """
    try:
        freq = Frequency(str(frequency or "").strip().lower())
    except ValueError:
        logger.warning(
            f"Invalid recurrence frequency: {frequency!r}. "
            "Must be daily, weekly, monthly, or yearly."
        )
        return None

    return RecurrenceRule(
        frequency=freq,
        interval=max(as_int(interval, 1), 1),
        end_ms=as_int(end_ms),
    )
