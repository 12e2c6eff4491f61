"""Browser-based event composer.

Presents a ComposeRequest as a pre-filled Google Calendar event page in
the user's browser. The user finishes (or discards) the event there;
presenting is all this host does.

Two addresses are understood, mirroring the two ways an insert intent
can be addressed:

    - the events MIME type and the event editor open the event template
      (``render?action=TEMPLATE``)
    - the events content URI opens the event edit page (``r/eventedit``)
"""
import logging
import webbrowser
from datetime import UTC, datetime, timedelta
from typing import Protocol
from urllib.parse import urlencode

from native_calendar.backends.base import (
    EVENT_EDITOR,
    EVENTS_CONTENT_URI,
    EVENTS_MIME_TYPE,
    ComposeRequest,
)
from native_calendar.core.errors import ComposerUnavailable

logger = logging.getLogger(__name__)

TEMPLATE_URL = "https://calendar.google.com/calendar/render"
EVENTEDIT_URL = "https://calendar.google.com/calendar/r/eventedit"

BASE_URLS = {
    EVENTS_MIME_TYPE: TEMPLATE_URL,
    EVENT_EDITOR: TEMPLATE_URL,
    EVENTS_CONTENT_URI: EVENTEDIT_URL,
}

# Free/busy values understood by the template page
AVAILABILITY_PARAMS = {
    "busy": "BUSY",
    "free": "AVAILABLE",
    "unavailable": "BLOCKING",
}


class ComposerHost(Protocol):
    def is_available(self) -> bool: ...

    def present(self, request: ComposeRequest) -> None: ...


def _format_dates(start_ms: int, end_ms: int | None, all_day: bool) -> str:
    start = datetime.fromtimestamp(start_ms / 1000, tz=UTC)
    end = (
        datetime.fromtimestamp(end_ms / 1000, tz=UTC)
        if end_ms is not None
        else start + timedelta(hours=1)
    )
    if all_day:
        # End date is exclusive for all-day events
        end_date = max(end.date(), start.date() + timedelta(days=1))
        return f"{start.strftime('%Y%m%d')}/{end_date.strftime('%Y%m%d')}"
    return f"{start.strftime('%Y%m%dT%H%M%SZ')}/{end.strftime('%Y%m%dT%H%M%SZ')}"


def build_compose_url(request: ComposeRequest) -> str:
    """
    Render a compose request as a pre-filled event page URL.

    Raises:
        ComposerUnavailable: if the request's address is not understood.
    """
    base = BASE_URLS.get(request.address)
    if base is None:
        raise ComposerUnavailable(f"Unsupported composer address: {request.address}")

    event = request.event
    params = {}
    if base == TEMPLATE_URL:
        params["action"] = "TEMPLATE"
    params["text"] = event.title
    params["dates"] = _format_dates(event.start_ms, event.end_ms, event.all_day)

    details = event.description or ""
    if event.url:
        details = f"{details}\n{event.url}" if details else event.url
    if details:
        params["details"] = details
    if event.location:
        params["location"] = event.location
    if event.time_zone:
        params["ctz"] = event.time_zone
    if event.recurrence is not None:
        params["recur"] = f"RRULE:{event.recurrence.to_rrule()}"
    if event.calendar_id:
        params["src"] = event.calendar_id
    if event.availability in AVAILABILITY_PARAMS:
        params["crm"] = AVAILABILITY_PARAMS[event.availability]

    return f"{base}?{urlencode(params)}"


class BrowserComposerHost:
    """Opens compose requests in the default web browser."""

    def is_available(self) -> bool:
        try:
            webbrowser.get()
        except webbrowser.Error:
            return False
        return True

    def present(self, request: ComposeRequest) -> None:
        url = build_compose_url(request)
        if request.reminders:
            # The event page has no reminder parameter
            logger.debug(f"Reminders {request.reminders} not expressible on {request.address}")
        if not webbrowser.open(url, new=2):
            raise ComposerUnavailable(f"Browser refused to open {request.address}")
        logger.info(f"Opened composer page for '{request.event.title}'")
