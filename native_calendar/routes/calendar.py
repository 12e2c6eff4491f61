"""Calendar routes: the HTTP call surface over the dispatcher."""
import logging
import threading
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from native_calendar.backends.base import CalendarBackend
from native_calendar.backends.composer import BrowserComposerHost
from native_calendar.calendar.dispatch import CalendarDispatcher
from native_calendar.core.config import settings
from native_calendar.core.errors import MethodNotImplemented

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])

_dispatcher: CalendarDispatcher | None = None
_dispatcher_lock = threading.Lock()


def build_backend() -> CalendarBackend:
    """Create the backend named by ``settings.backend``."""
    composer = BrowserComposerHost()
    if settings.backend == "google":
        from native_calendar.backends.google import GoogleCalendarBackend

        return GoogleCalendarBackend(composer=composer)
    if settings.backend == "local":
        from native_calendar.backends.local import LocalCalendarBackend

        return LocalCalendarBackend(composer=composer)
    raise ValueError(f"Unknown calendar backend {settings.backend!r}; expected 'local' or 'google'")


def get_dispatcher() -> CalendarDispatcher:
    """
    Return the process-wide dispatcher.

    One instance is shared so the permission gate sees every pending
    request.
    """
    global _dispatcher
    if _dispatcher is None:
        # Sync dependencies run on the threadpool
        with _dispatcher_lock:
            if _dispatcher is None:
                _dispatcher = CalendarDispatcher(build_backend())
                logger.info(
                    f"Calendar dispatcher ready: backend={settings.backend}, "
                    f"family={settings.platform_family}"
                )
    return _dispatcher


@router.get("/platform-version")
async def platform_version(dispatcher: CalendarDispatcher = Depends(get_dispatcher)):
    """Report the platform the backend runs on."""
    return {"version": dispatcher.get_platform_version()}


@router.get("/permissions")
async def check_permissions(dispatcher: CalendarDispatcher = Depends(get_dispatcher)):
    return {"granted": dispatcher.has_calendar_permissions()}


@router.post("/permissions")
async def request_permissions(dispatcher: CalendarDispatcher = Depends(get_dispatcher)):
    """
    Prompt for calendar read and write permission.

    Resolves once the user has answered. A request made while another
    is still pending resolves to false without prompting again.
    """
    return {"granted": await dispatcher.request_calendar_permissions()}


@router.post("/open")
async def open_with_event(
    event: Any = Body(default=None),
    dispatcher: CalendarDispatcher = Depends(get_dispatcher),
):
    """Open the interactive composer pre-filled with the event."""
    return {"presented": dispatcher.open_calendar_with_event(event)}


@router.post("/events")
async def add_event(
    event: Any = Body(default=None),
    dispatcher: CalendarDispatcher = Depends(get_dispatcher),
):
    """Write the event directly. Requires calendar permissions."""
    return {"created": dispatcher.add_event_to_calendar(event)}


@router.get("/events/marker/{marker}")
async def find_by_marker(
    marker: str,
    startDate: int | None = None,  # noqa: N803
    endDate: int | None = None,  # noqa: N803
    dispatcher: CalendarDispatcher = Depends(get_dispatcher),
):
    """Find ids of events whose description carries the marker sentinel line."""
    return {"eventIds": dispatcher.find_events_with_marker(marker, startDate, endDate)}


@router.post("/call/{method}")
async def call_method(
    method: str,
    arguments: Any = Body(default=None),
    dispatcher: CalendarDispatcher = Depends(get_dispatcher),
):
    """Dispatch a call by method name, as a plugin channel would."""
    try:
        result = await dispatcher.handle(method, arguments)
    except MethodNotImplemented as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"result": result}
