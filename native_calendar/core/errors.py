"""Error taxonomy for calendar operations.

None of these cross the dispatcher boundary. Each is raised at the
narrowest point that can detect it and converted to a boolean, an empty
list or a skipped field by the code that catches it.
"""


class CalendarError(Exception):
    """Base class for all calendar errors."""


class ValidationError(CalendarError):
    """A required event field is missing or malformed."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Missing or invalid required field: {field}")


class PermissionDenied(CalendarError):
    """Calendar read/write permission is not held."""


class CapabilityUnsupported(CalendarError):
    """A requested setting has no equivalent on the target backend."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class NativeWriteFault(CalendarError):
    """The backend failed to persist an event."""


class PartialReminderFault(CalendarError):
    """One or more reminders failed to attach after the event was saved."""

    def __init__(self, event_id: str, failed: list[int]):
        self.event_id = event_id
        self.failed = failed
        super().__init__(f"{len(failed)} reminder(s) not attached to event {event_id}: {failed}")


class ComposerUnavailable(CalendarError):
    """The interactive composer could not be presented."""


class MethodNotImplemented(CalendarError):
    """The routing layer asked for a method the dispatcher does not know."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Method not implemented: {method}")
