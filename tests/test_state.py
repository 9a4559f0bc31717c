"""Tests for ghosttype.state.SessionStore."""

from __future__ import annotations

import threading

from ghosttype.layout import TerminalGeometry
from ghosttype.state import SessionStore


class TestInitialState:
    def test_fresh_session(self) -> None:
        store = SessionStore("abc")
        snap = store.snapshot()
        assert snap.typed == 0
        assert snap.ghost == 0
        assert snap.typos == frozenset()
        assert snap.timings == (0, 0, 0)
        assert snap.length == 3
        assert not snap.complete

    def test_recorded_timings_are_immutable_copy(self) -> None:
        timings = [1, 2, 3]
        store = SessionStore("abc", timings)
        timings.append(4)
        assert store.recorded == (1, 2, 3)


class TestTypedCursor:
    def test_match_records_when_clean(self) -> None:
        store = SessionStore("ab")
        result = store.match(lambda: 42)
        assert result is not None
        event, recorded = result
        assert recorded is True
        assert event.kind == "advance"
        assert event.index == 1
        assert event.char == "a"
        assert event.typo is False
        assert store.snapshot().timings == (42, 0)

    def test_match_skips_timing_while_typos_outstanding(self) -> None:
        store = SessionStore("abc")
        store.mistype()
        calls: list[int] = []

        def elapsed() -> int:
            calls.append(1)
            return 7

        result = store.match(elapsed)
        assert result is not None
        assert result[1] is False
        assert calls == []
        assert store.snapshot().timings == (0, 0, 0)

    def test_mistype_advances_and_marks(self) -> None:
        store = SessionStore("ab")
        event = store.mistype()
        assert event is not None
        assert event.typo is True
        assert event.char == "a"
        snap = store.snapshot()
        assert snap.typed == 1
        assert snap.typos == {0}

    def test_no_progress_past_end(self) -> None:
        store = SessionStore("a")
        store.mistype()
        assert store.mistype() is None
        assert store.match(lambda: 0) is None
        assert store.typed == 1

    def test_retreat_drops_typos_at_or_beyond_cursor(self) -> None:
        store = SessionStore("abcd")
        store.mistype()
        store.match(lambda: 0)
        store.mistype()
        events = store.retreat_to(lambda sample, typed: 2)
        assert [e.index for e in events] == [2]
        assert [e.char for e in events] == ["c"]
        snap = store.snapshot()
        assert snap.typed == 2
        assert snap.typos == {0}

    def test_retreat_target_is_clamped(self) -> None:
        store = SessionStore("ab")
        store.match(lambda: 0)
        assert len(store.retreat_to(lambda sample, typed: -5)) == 1
        assert store.typed == 0
        assert store.retreat_to(lambda sample, typed: typed - 1) == []
        assert store.typed == 0


class TestGhostCursor:
    def test_advance_until_end(self) -> None:
        store = SessionStore("ab")
        first = store.advance_ghost()
        second = store.advance_ghost()
        assert first is not None and first.index == 1 and first.char == "a"
        assert second is not None and second.index == 2 and second.char == "b"
        assert store.advance_ghost() is None
        assert store.ghost == 2

    def test_ghost_is_independent_of_typed(self) -> None:
        store = SessionStore("abc")
        store.advance_ghost()
        assert store.typed == 0
        assert store.ghost == 1


class TestGeometry:
    def test_swap_reports_old_and_new(self) -> None:
        store = SessionStore("abc", geometry=TerminalGeometry(80, 24))
        store.match(lambda: 0)
        change = store.swap_geometry(lambda previous: TerminalGeometry(40, 24))
        assert change.old.width == 80
        assert change.new.width == 40
        assert change.typed == 1
        assert change.ghost == 0
        assert store.geometry == TerminalGeometry(40, 24)

    def test_query_receives_previous_geometry(self) -> None:
        store = SessionStore("abc", geometry=TerminalGeometry(100, 30))
        change = store.swap_geometry(lambda previous: previous)
        assert change.new == TerminalGeometry(100, 30)


class TestConcurrentAccess:
    def test_parallel_writers_keep_invariants(self) -> None:
        sample = "x" * 2000
        store = SessionStore(sample)

        def type_all() -> None:
            for _ in range(len(sample)):
                store.mistype()

        def ghost_all() -> None:
            for _ in range(len(sample)):
                store.advance_ghost()

        threads = [threading.Thread(target=type_all), threading.Thread(target=ghost_all)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snap = store.snapshot()
        assert snap.typed == len(sample)
        assert snap.ghost == len(sample)
        assert all(p < snap.typed for p in snap.typos)
        assert len(snap.typos) == len(sample)
