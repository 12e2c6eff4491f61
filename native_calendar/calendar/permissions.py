"""Calendar permission gate.

Tracks the read and write grants and serializes permission prompts:
at most one request is outstanding at a time. A request made while
another is pending is rejected (resolves to False) without prompting
again, so two OS prompts never race.

State machine::

    unknown --request--> requesting --callback--> granted | denied

Both read and write must be granted; a partial grant counts as denied.
"""
import asyncio
import logging
from collections.abc import Mapping
from enum import Enum

from native_calendar.backends.base import REQUIRED_PERMISSIONS, CalendarBackend

logger = logging.getLogger(__name__)


class PermissionState(str, Enum):
    UNKNOWN = "unknown"
    REQUESTING = "requesting"
    GRANTED = "granted"
    DENIED = "denied"


def all_granted(grants: Mapping[str, bool] | None) -> bool:
    """True only if every required permission is granted."""
    if not grants:
        return False
    return all(grants.get(name) is True for name in REQUIRED_PERMISSIONS)


class PermissionGate:
    """Checks and requests calendar permissions for one backend."""

    def __init__(self, backend: CalendarBackend):
        self.backend = backend
        self._decision = PermissionState.UNKNOWN
        self._pending: asyncio.Future | None = None

    @property
    def state(self) -> PermissionState:
        if self._pending is not None:
            return PermissionState.REQUESTING
        return self._decision

    @property
    def is_requesting(self) -> bool:
        return self._pending is not None

    def check_granted(self) -> bool:
        """Whether read and write are currently granted. Never prompts."""
        try:
            return all_granted(self.backend.check_permissions())
        except Exception as e:
            logger.error(f"Permission check failed: {e}")
            return False

    async def request_permissions(self) -> bool:
        """
        Prompt for read and write permission and wait for the decision.

        Returns False immediately when there is no UI context to anchor
        the prompt, or when another request is still pending.
        """
        if self._pending is not None:
            logger.warning("Permission request already pending, rejecting concurrent request")
            return False

        if not self.backend.has_ui_context():
            logger.warning("No UI context available for permission prompt")
            return False

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending = future

        def on_result(grants: Mapping[str, bool]) -> None:
            try:
                loop.call_soon_threadsafe(self._resolve, future, grants)
            except RuntimeError:
                logger.warning("Permission result arrived after the event loop closed")

        try:
            self.backend.request_permissions(on_result)
        except Exception as e:
            logger.error(f"Permission request failed: {e}")
            self._pending = None
            self._decision = PermissionState.DENIED
            return False

        try:
            return await future
        finally:
            if self._pending is future:
                self._pending = None

    def _resolve(self, future: asyncio.Future, grants: Mapping[str, bool]) -> None:
        if future.done():
            logger.debug("Ignoring duplicate permission result")
            return
        granted = all_granted(grants)
        self._decision = PermissionState.GRANTED if granted else PermissionState.DENIED
        logger.info(f"Calendar permissions {self._decision.value}: {dict(grants or {})}")
        future.set_result(granted)
