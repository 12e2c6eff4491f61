"""Tests for marker-based event lookup."""

import time

from native_calendar.backends.base import NativeEvent
from native_calendar.backends.local import LocalCalendarBackend
from native_calendar.calendar.permissions import PermissionGate
from native_calendar.calendar.search import DAY_MS, MarkerSearch, marker_line, marker_tag


def add_event(backend: LocalCalendarBackend, description: str, start_ms: int | None = None) -> str:
    if start_ms is None:
        start_ms = int(time.time() * 1000)
    return backend.write_event(
        NativeEvent(title="Generated", start_ms=start_ms, end_ms=start_ms + 60000, description=description)
    )


class TestMarkerStrings:
    """Tests for the marker text helpers."""

    def test_marker_line(self):
        """The sentinel line is the tag followed by the fixed suffix."""
        assert marker_tag("abc") == "[MARKER:abc]"
        assert marker_line("abc") == "[MARKER:abc] System Generated Event - Do not modify this line"


class TestMarkerSearch:
    """Tests for MarkerSearch."""

    def test_requires_permissions(self, backend: LocalCalendarBackend):
        """Without permissions the search returns nothing."""
        add_event(backend, marker_line("m1"))
        search = MarkerSearch(backend, PermissionGate(backend))

        assert search.find("m1") == []

    def test_full_sentinel_required(self, granted_backend: LocalCalendarBackend):
        """Only descriptions carrying the complete sentinel line match."""
        full = add_event(granted_backend, f"Notes\n{marker_line('m1')}")
        add_event(granted_backend, "[MARKER:m1] edited by hand")
        add_event(granted_backend, marker_line("m2"))
        search = MarkerSearch(granted_backend, PermissionGate(granted_backend))

        assert search.find("m1") == [full]

    def test_default_window(self, granted_backend: LocalCalendarBackend):
        """Events outside the default window are not returned."""
        now_ms = int(time.time() * 1000)
        inside = add_event(granted_backend, marker_line("w"), now_ms + 29 * DAY_MS)
        add_event(granted_backend, marker_line("w"), now_ms + 31 * DAY_MS)
        add_event(granted_backend, marker_line("w"), now_ms - 31 * DAY_MS)
        search = MarkerSearch(granted_backend, PermissionGate(granted_backend), window_days=30)

        assert search.find("w") == [inside]

    def test_explicit_window(self, granted_backend: LocalCalendarBackend):
        """An explicit window replaces the default one."""
        far = add_event(granted_backend, marker_line("x"), 1000)
        search = MarkerSearch(granted_backend, PermissionGate(granted_backend))

        assert search.find("x", start_ms=0, end_ms=2000) == [far]

    def test_like_wildcards_are_literal(self, granted_backend: LocalCalendarBackend):
        """Markers containing LIKE wildcards match literally."""
        add_event(granted_backend, marker_line("a_c"))
        add_event(granted_backend, marker_line("abc"))
        search = MarkerSearch(granted_backend, PermissionGate(granted_backend))

        assert len(search.find("a_c")) == 1

    def test_query_failure(self, granted_backend: LocalCalendarBackend, monkeypatch):
        """A failed query yields an empty list."""

        def broken_query(start_ms, end_ms, description_contains):
            raise RuntimeError("cursor closed")

        monkeypatch.setattr(granted_backend, "query_events", broken_query)
        search = MarkerSearch(granted_backend, PermissionGate(granted_backend))

        assert search.find("m1") == []
