"""Google Calendar backend using pre-authorized or freshly granted credentials.

Calendar permissions map onto OAuth scopes: ``calendar.readonly`` is the
read permission and ``calendar.events`` the write permission. Requesting
permissions runs the installed-app consent flow in the browser on a
worker thread and reports the scopes the user actually granted.
"""
import logging
import threading
from datetime import UTC, date, datetime, time, timedelta

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from native_calendar.backends.base import (
    ACCESS_CONTRIBUTOR,
    ACCESS_FREEBUSY,
    ACCESS_OWNER,
    ACCESS_READ,
    READ,
    WRITE,
    CalendarBackend,
    CalendarInfo,
    ComposeRequest,
    MarkerRecord,
    NativeEvent,
    PermissionCallback,
)
from native_calendar.backends.composer import ComposerHost
from native_calendar.core.config import settings
from native_calendar.core.errors import ComposerUnavailable, NativeWriteFault

logger = logging.getLogger(__name__)

READ_SCOPE = "https://www.googleapis.com/auth/calendar.readonly"
WRITE_SCOPE = "https://www.googleapis.com/auth/calendar.events"
SCOPES = [READ_SCOPE, WRITE_SCOPE]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Google access roles and the calendar access level each grants
ROLE_LEVELS = {
    "freeBusyReader": ACCESS_FREEBUSY,
    "reader": ACCESS_READ,
    "writer": ACCESS_CONTRIBUTOR,
    "owner": ACCESS_OWNER,
}

STATUS_VALUES = {0: "tentative", 1: "confirmed", 2: "cancelled"}
VISIBILITY_VALUES = {0: "default", 1: "confidential", 2: "private", 3: "public"}

# Cached credentials and service
_credentials: Credentials | None = None
_service = None


def get_credentials() -> Credentials | None:
    """Get credentials from a granted flow or the configured refresh token."""
    global _credentials

    if _credentials and _credentials.valid:
        return _credentials

    if _credentials is None:
        if not settings.google_refresh_token:
            logger.warning("No GOOGLE_REFRESH_TOKEN configured")
            return None
        _credentials = Credentials(
            token=None,
            refresh_token=settings.google_refresh_token,
            token_uri=TOKEN_URI,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            scopes=SCOPES,
        )

    if _credentials.expired or not _credentials.token:
        try:
            _credentials.refresh(Request())
            logger.info("Refreshed Google API credentials")
        except Exception as e:
            logger.error(f"Failed to refresh credentials: {e}")
            _credentials = None
            return None

    return _credentials


def get_calendar_service():
    """Build authenticated Calendar API service."""
    global _service

    creds = get_credentials()
    if not creds:
        raise NativeWriteFault("No valid Google credentials. Request calendar permissions first.")

    if _service is None:
        _service = build("calendar", "v3", credentials=creds)
    return _service


def _store_credentials(creds: Credentials) -> None:
    global _credentials, _service
    _credentials = creds
    _service = None


def _rfc3339(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=UTC).isoformat().replace("+00:00", "Z")


def _item_start_ms(item: dict) -> int | None:
    """Start of an API event resource in epoch millis. All-day dates start at UTC midnight."""
    start = item.get("start") or {}
    try:
        if "dateTime" in start:
            moment = datetime.fromisoformat(start["dateTime"])
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=UTC)
        elif "date" in start:
            moment = datetime.combine(date.fromisoformat(start["date"]), time.min, tzinfo=UTC)
        else:
            return None
    except (TypeError, ValueError):
        return None
    return int(moment.timestamp() * 1000)


def _event_times(event: NativeEvent) -> tuple[dict, dict]:
    start = datetime.fromtimestamp(event.start_ms / 1000, tz=UTC)
    end = (
        datetime.fromtimestamp(event.end_ms / 1000, tz=UTC)
        if event.end_ms is not None
        else start + timedelta(hours=1)
    )
    if event.all_day:
        # All-day end dates are exclusive
        end_date = max(end.date(), start.date() + timedelta(days=1))
        return {"date": start.date().isoformat()}, {"date": end_date.isoformat()}
    start_body = {"dateTime": start.isoformat()}
    end_body = {"dateTime": end.isoformat()}
    if event.time_zone:
        start_body["timeZone"] = event.time_zone
        end_body["timeZone"] = event.time_zone
    return start_body, end_body


def event_body(event: NativeEvent) -> dict:
    """Translate native fields into a Calendar API event resource."""
    start, end = _event_times(event)
    body = {
        "summary": event.title,
        "start": start,
        "end": end,
        # Reminders are attached one by one after the insert
        "reminders": {"useDefault": False, "overrides": []},
    }
    if event.description is not None:
        body["description"] = event.description
    if event.location:
        body["location"] = event.location
    if event.status in STATUS_VALUES:
        body["status"] = STATUS_VALUES[event.status]
    if event.access_level in VISIBILITY_VALUES:
        body["visibility"] = VISIBILITY_VALUES[event.access_level]
    if event.color is not None and 1 <= event.color <= 11:
        body["colorId"] = str(event.color)
    if event.guests_can_modify is not None:
        body["guestsCanModify"] = event.guests_can_modify
    if event.guests_can_invite_others is not None:
        body["guestsCanInviteOthers"] = event.guests_can_invite_others
    if event.guests_can_see_guests is not None:
        body["guestsCanSeeOtherGuests"] = event.guests_can_see_guests
    if event.availability is not None:
        body["transparency"] = "transparent" if event.availability == "free" else "opaque"
    if event.recurrence is not None:
        body["recurrence"] = [f"RRULE:{event.recurrence.to_rrule()}"]
    if event.url:
        body["source"] = {"title": event.title, "url": event.url}
    return body


class GoogleCalendarBackend(CalendarBackend):
    name = "google"

    def __init__(self, composer: ComposerHost | None = None):
        self.composer = composer

    def platform_version(self) -> str:
        return "Google Calendar API v3"

    def has_ui_context(self) -> bool:
        return self.composer is not None and self.composer.is_available()

    def check_permissions(self) -> dict[str, bool]:
        if not settings.google_refresh_token and _credentials is None:
            return {READ: False, WRITE: False}
        scopes = set((_credentials.scopes if _credentials else None) or SCOPES)
        return {READ: READ_SCOPE in scopes, WRITE: WRITE_SCOPE in scopes}

    def request_permissions(self, callback: PermissionCallback) -> None:
        client_config = {
            "installed": {
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": TOKEN_URI,
                "redirect_uris": ["http://localhost"],
            }
        }

        def run_flow():
            try:
                flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
                creds = flow.run_local_server(port=0, prompt="consent", access_type="offline")
            except Exception as e:
                logger.error(f"OAuth consent flow failed: {e}")
                callback({READ: False, WRITE: False})
                return
            granted = set(creds.scopes or [])
            _store_credentials(creds)
            callback({READ: READ_SCOPE in granted, WRITE: WRITE_SCOPE in granted})

        threading.Thread(target=run_flow, name="google-oauth-consent", daemon=True).start()

    def write_event(self, event: NativeEvent) -> str:
        calendar_id = event.calendar_id or "primary"
        try:
            created = (
                get_calendar_service()
                .events()
                .insert(calendarId=calendar_id, body=event_body(event))
                .execute()
            )
        except HttpError as e:
            raise NativeWriteFault(f"Calendar API rejected event '{event.title}': {e}") from e
        return created["id"]

    def write_reminder(
        self, event_id: str, minutes: int, calendar_id: str | None = None
    ) -> None:
        calendar_id = calendar_id or "primary"
        service = get_calendar_service()
        try:
            current = service.events().get(calendarId=calendar_id, eventId=event_id).execute()
            overrides = list(current.get("reminders", {}).get("overrides", []))
            overrides.append({"method": "popup", "minutes": minutes})
            service.events().patch(
                calendarId=calendar_id,
                eventId=event_id,
                body={"reminders": {"useDefault": False, "overrides": overrides}},
            ).execute()
        except HttpError as e:
            raise NativeWriteFault(f"Could not add reminder to event {event_id}: {e}") from e

    def query_calendars(self, min_access_level: int) -> list[CalendarInfo]:
        service = get_calendar_service()
        calendars = []
        page_token = None
        while True:
            result = service.calendarList().list(pageToken=page_token).execute()
            for entry in result.get("items", []):
                level = ROLE_LEVELS.get(entry.get("accessRole"), 0)
                if level < min_access_level:
                    continue
                calendars.append(
                    CalendarInfo(
                        id=entry["id"],
                        display_name=entry.get("summary", entry["id"]),
                        access_level=level,
                        is_primary=bool(entry.get("primary")),
                    )
                )
            page_token = result.get("nextPageToken")
            if not page_token:
                break
        return sorted(calendars, key=lambda c: not c.is_primary)

    def query_events(
        self, start_ms: int, end_ms: int, description_contains: str
    ) -> list[MarkerRecord]:
        service = get_calendar_service()
        records = []
        page_token = None
        while True:
            result = (
                service.events()
                .list(
                    calendarId=settings.google_calendar_id,
                    timeMin=_rfc3339(start_ms),
                    timeMax=_rfc3339(end_ms),
                    q=description_contains,
                    singleEvents=True,
                    pageToken=page_token,
                )
                .execute()
            )
            for item in result.get("items", []):
                # timeMin matches on overlap; keep only events starting in the window
                started = _item_start_ms(item)
                if started is None or started < start_ms:
                    continue
                description = item.get("description")
                # Free-text search also matches titles and locations
                if description and description_contains in description:
                    records.append(MarkerRecord(event_id=item["id"], description=description))
            page_token = result.get("nextPageToken")
            if not page_token:
                break
        return records

    def present_composer(self, request: ComposeRequest) -> None:
        if self.composer is None:
            raise ComposerUnavailable("No composer host configured")
        self.composer.present(request)
