"""Top-level calendar operations.

The dispatcher is the only entry point the routing layer talks to. Every
operation resolves to a boolean, a string or a list of ids; no calendar
error escapes. Permission is always checked before any write.
"""
import logging
from collections.abc import Mapping
from typing import Any

from native_calendar.backends.base import CalendarBackend
from native_calendar.calendar.coerce import as_int, as_mapping, as_str
from native_calendar.calendar.mappers.base import CapabilityMapper
from native_calendar.calendar.mappers.eventstore import EventStoreMapper
from native_calendar.calendar.mappers.provider import ProviderMapper
from native_calendar.calendar.permissions import PermissionGate
from native_calendar.calendar.search import MarkerSearch
from native_calendar.core.config import settings
from native_calendar.core.errors import MethodNotImplemented, PermissionDenied, ValidationError
from native_calendar.models.event import EventModel

logger = logging.getLogger(__name__)

MAPPERS: dict[str, type[CapabilityMapper]] = {
    ProviderMapper.family: ProviderMapper,
    EventStoreMapper.family: EventStoreMapper,
}


def build_mapper(family: str, backend: CalendarBackend) -> CapabilityMapper:
    """Create the capability mapper for a backend family."""
    try:
        mapper_cls = MAPPERS[family]
    except KeyError:
        raise ValueError(
            f"Unknown platform family {family!r}; expected one of {sorted(MAPPERS)}"
        ) from None
    return mapper_cls(backend)


class CalendarDispatcher:
    """Routes calendar calls to the permission gate, mapper and marker search."""

    def __init__(
        self,
        backend: CalendarBackend,
        family: str | None = None,
        mapper: CapabilityMapper | None = None,
        gate: PermissionGate | None = None,
        search: MarkerSearch | None = None,
        fallback_to_compose: bool | None = None,
    ):
        self.backend = backend
        self.mapper = mapper or build_mapper(family or settings.platform_family, backend)
        self.gate = gate or PermissionGate(backend)
        self.search = search or MarkerSearch(backend, self.gate)
        self.fallback_to_compose = (
            fallback_to_compose
            if fallback_to_compose is not None
            else settings.fallback_to_compose
        )

    def get_platform_version(self) -> str:
        try:
            return self.backend.platform_version()
        except Exception as e:
            logger.error(f"Could not read platform version: {e}")
            return "Unknown"

    def has_calendar_permissions(self) -> bool:
        return self.gate.check_granted()

    async def request_calendar_permissions(self) -> bool:
        return await self.gate.request_permissions()

    def open_calendar_with_event(self, arguments: Any) -> bool:
        """Present the composer pre-filled with the event. True means shown, not saved."""
        event = self._parse_event(arguments)
        if event is None:
            return False
        return self.mapper.compose(event, self._settings_bag(arguments))

    def add_event_to_calendar(self, arguments: Any) -> bool:
        """Write the event without UI. True means persisted."""
        try:
            self._require_permissions()
        except PermissionDenied as e:
            logger.warning(f"Event not added: {e}")
            return False

        event = self._parse_event(arguments)
        if event is None:
            return False
        return self.mapper.write(event, self._settings_bag(arguments))

    def find_events_with_marker(
        self,
        marker: str,
        start_ms: int | None = None,
        end_ms: int | None = None,
    ) -> list[str]:
        if not marker:
            return []
        return self.search.find(marker, start_ms, end_ms)

    def schedule_event(self, arguments: Any, interactive: bool = False) -> bool:
        """
        Schedule an event on whichever path fits.

        Interactive requests go straight to the composer. Direct writes
        fall back to the composer when they fail and
        ``fallback_to_compose`` is enabled.
        """
        if interactive:
            return self.open_calendar_with_event(arguments)

        if self.add_event_to_calendar(arguments):
            return True

        if self.fallback_to_compose:
            logger.info("Direct write failed, falling back to composer")
            return self.open_calendar_with_event(arguments)
        return False

    async def handle(self, method: str, arguments: Any = None) -> Any:
        """
        Dispatch a call by method name.

        Raises:
            MethodNotImplemented: for unknown methods.
        """
        if method == "getPlatformVersion":
            return self.get_platform_version()
        if method == "hasCalendarPermissions":
            return self.has_calendar_permissions()
        if method == "requestCalendarPermissions":
            return await self.request_calendar_permissions()
        if method == "openCalendarWithEvent":
            return self.open_calendar_with_event(arguments)
        if method == "addEventToCalendar":
            return self.add_event_to_calendar(arguments)
        if method == "findEventsWithMarker":
            args = as_mapping(arguments) or {}
            return self.find_events_with_marker(
                as_str(args.get("marker"), ""),
                as_int(args.get("startDate")),
                as_int(args.get("endDate")),
            )
        raise MethodNotImplemented(method)

    def _require_permissions(self) -> None:
        if not self.gate.check_granted():
            raise PermissionDenied("Calendar read/write permission not granted")

    def _parse_event(self, arguments: Any) -> EventModel | None:
        try:
            return EventModel.from_mapping(arguments)
        except ValidationError as e:
            logger.warning(f"Rejected event: {e}")
            return None

    def _settings_bag(self, arguments: Any) -> Mapping | None:
        args = as_mapping(arguments)
        if args is None:
            return None
        return as_mapping(args.get(self.mapper.settings_key))
