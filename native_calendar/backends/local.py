"""Local calendar backend backed by SQLite.

Events, reminders, calendars and permission grants live in the tables
defined under ``native_calendar.models``. There is no operating system
to prompt for permissions, so a prompt callable decides which grants to
hand out; by default it grants what ``settings.auto_grant`` lists. The
prompt runs on a worker thread, like an OS dialog would.
"""
import logging
import platform
import threading
from collections.abc import Callable, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from native_calendar.backends.base import (
    REQUIRED_PERMISSIONS,
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
from native_calendar.models import Calendar, CalendarEvent, PermissionGrant, Reminder

logger = logging.getLogger(__name__)

PermissionPrompt = Callable[[tuple[str, ...]], Mapping[str, bool]]


def auto_grant_prompt(permissions: tuple[str, ...]) -> dict[str, bool]:
    """Grant the permissions listed in ``settings.auto_grant``."""
    allowed = {p.strip() for p in settings.auto_grant.split(",") if p.strip()}
    return {name: name in allowed for name in permissions}


class LocalCalendarBackend(CalendarBackend):
    name = "local"

    def __init__(
        self,
        engine=None,
        composer: ComposerHost | None = None,
        prompt: PermissionPrompt | None = None,
        ui_context: bool | None = None,
    ):
        if engine is None:
            from native_calendar.core.database import engine as default_engine

            engine = default_engine
        self.engine = engine
        self.composer = composer
        self.prompt = prompt or auto_grant_prompt
        self._ui_context = ui_context

    def platform_version(self) -> str:
        return f"{platform.system()} {platform.release()}"

    def has_ui_context(self) -> bool:
        if self._ui_context is not None:
            return self._ui_context
        # Auto-granting needs no window to anchor the prompt
        if self.prompt is auto_grant_prompt:
            return True
        return self.composer_available()

    def composer_available(self) -> bool:
        return self.composer is not None and self.composer.is_available()

    def check_permissions(self) -> dict[str, bool]:
        with Session(self.engine) as session:
            granted = set(session.exec(select(PermissionGrant.name)).all())
        return {name: name in granted for name in REQUIRED_PERMISSIONS}

    def request_permissions(self, callback: PermissionCallback) -> None:
        """Run the prompt on a worker thread and report its decision."""

        def run_prompt():
            try:
                decision = dict(self.prompt(REQUIRED_PERMISSIONS))
                self._store_decision(decision)
            except Exception as e:
                logger.error(f"Permission prompt failed: {e}")
                decision = {name: False for name in REQUIRED_PERMISSIONS}
            callback(decision)

        threading.Thread(target=run_prompt, name="local-permission-prompt", daemon=True).start()

    def _store_decision(self, decision: Mapping[str, bool]) -> None:
        with Session(self.engine) as session:
            for name in REQUIRED_PERMISSIONS:
                existing = session.get(PermissionGrant, name)
                if decision.get(name) and existing is None:
                    session.add(PermissionGrant(name=name))
                elif not decision.get(name) and existing is not None:
                    session.delete(existing)
            session.commit()

    def grant(self, *names: str) -> None:
        """Record grants directly, as if the user had accepted a prompt."""
        with Session(self.engine) as session:
            for name in names:
                if session.get(PermissionGrant, name) is None:
                    session.add(PermissionGrant(name=name))
            session.commit()

    def add_calendar(
        self,
        calendar_id: str,
        display_name: str,
        access_level: int = 700,
        is_primary: bool = False,
    ) -> None:
        """Create a calendar unless one with this id already exists."""
        with Session(self.engine) as session:
            if session.get(Calendar, calendar_id) is None:
                session.add(
                    Calendar(
                        id=calendar_id,
                        display_name=display_name,
                        access_level=access_level,
                        is_primary=is_primary,
                    )
                )
                session.commit()

    def write_event(self, event: NativeEvent) -> str:
        row = CalendarEvent(
            calendar_id=event.calendar_id or settings.default_calendar_id,
            title=event.title,
            description=event.description,
            location=event.location,
            dtstart=event.start_ms,
            dtend=event.end_ms,
            all_day=event.all_day,
            time_zone=event.time_zone,
            status=event.status,
            access_level=event.access_level,
            color=event.color,
            guests_can_modify=event.guests_can_modify,
            guests_can_invite_others=event.guests_can_invite_others,
            guests_can_see_guests=event.guests_can_see_guests,
            availability=event.availability,
            rrule=event.recurrence.to_rrule() if event.recurrence else None,
            url=event.url,
            has_alarm=event.has_alarm,
        )
        try:
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return str(row.id)
        except SQLAlchemyError as e:
            raise NativeWriteFault(f"Could not insert event '{event.title}': {e}") from e

    def write_reminder(
        self, event_id: str, minutes: int, calendar_id: str | None = None
    ) -> None:
        try:
            with Session(self.engine) as session:
                if session.get(CalendarEvent, int(event_id)) is None:
                    raise NativeWriteFault(f"No event {event_id} to attach a reminder to")
                session.add(Reminder(event_id=int(event_id), minutes=minutes, method="alert"))
                session.commit()
        except SQLAlchemyError as e:
            raise NativeWriteFault(f"Could not insert reminder for event {event_id}: {e}") from e

    def query_calendars(self, min_access_level: int) -> list[CalendarInfo]:
        statement = (
            select(Calendar)
            .where(Calendar.access_level >= min_access_level)
            .order_by(col(Calendar.is_primary).desc(), Calendar.id)
        )
        with Session(self.engine) as session:
            calendars = session.exec(statement).all()
            return [
                CalendarInfo(
                    id=c.id,
                    display_name=c.display_name,
                    access_level=c.access_level,
                    is_primary=c.is_primary,
                )
                for c in calendars
            ]

    def query_events(
        self, start_ms: int, end_ms: int, description_contains: str
    ) -> list[MarkerRecord]:
        statement = (
            select(CalendarEvent)
            .where(CalendarEvent.dtstart >= start_ms)
            .where(CalendarEvent.dtstart <= end_ms)
            .where(col(CalendarEvent.description).contains(description_contains, autoescape=True))
        )
        with Session(self.engine) as session:
            rows = session.exec(statement).all()
            return [MarkerRecord(event_id=str(row.id), description=row.description) for row in rows]

    def present_composer(self, request: ComposeRequest) -> None:
        if self.composer is None:
            raise ComposerUnavailable("No composer host configured")
        self.composer.present(request)
