"""End-to-end tests for ghosttype.session.TypingSession on a VirtualTerminal."""

from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from ghosttype.errors import InputError, SampleError
from ghosttype.layout import ScreenCoordinate, TerminalGeometry
from ghosttype.results import SessionResult
from ghosttype.session import TypingSession

from .clock import FakeClock
from .virtual_terminal import VirtualTerminal


async def drive(
    session: TypingSession,
    term: VirtualTerminal,
    keys: Sequence[str],
    clock: FakeClock | None = None,
    step_ms: float = 0,
) -> SessionResult:
    """Run *session*, type *keys* one by one, and return the result."""
    task = asyncio.ensure_future(session.run())
    await asyncio.sleep(0)
    for key in keys:
        if clock is not None and step_ms:
            clock.advance(step_ms)
        term.simulate_input(key)
        await asyncio.sleep(0)
    return await asyncio.wait_for(task, timeout=2)


class TestCompletion:
    @pytest.mark.asyncio
    async def test_first_clean_run_is_personal_best(self) -> None:
        clock = FakeClock()
        term = VirtualTerminal()
        session = TypingSession(term, "hi", clock=clock)

        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)
        term.simulate_input("h")
        clock.advance(120)
        term.simulate_input("i")
        result = await asyncio.wait_for(task, timeout=2)

        assert result.personal_best
        assert not result.interrupted
        assert result.word_count == 1
        assert result.typos == frozenset()
        assert result.timings == (0, 120)
        assert result.elapsed_ns == 120_000_000
        assert result.record == ((0, 120), 120_000_000)

    @pytest.mark.asyncio
    async def test_run_with_typo_is_not_personal_best(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hi", clock=FakeClock())
        result = await drive(session, term, ["x", "i"])

        assert not result.personal_best
        assert result.typos == frozenset({0})
        assert result.record is None
        assert "\x1b[91mh\x1b[0m" in term.output

    @pytest.mark.asyncio
    async def test_corrected_typo_run_completes(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hi", clock=FakeClock())
        result = await drive(session, term, ["x", "\x7f", "h", "i"])

        assert result.typos == frozenset()
        assert result.personal_best
        assert session.renderer.typed_coordinate == ScreenCoordinate(0, 2)

    @pytest.mark.asyncio
    async def test_slower_than_prior_best(self) -> None:
        clock = FakeClock()
        term = VirtualTerminal()
        session = TypingSession(term, "ab", prior_best_ns=100_000_000, clock=clock)
        result = await drive(session, term, ["a", "b"], clock=clock, step_ms=100)

        assert result.elapsed_ns == 100_000_000
        assert not result.personal_best

    @pytest.mark.asyncio
    async def test_faster_than_prior_best(self) -> None:
        clock = FakeClock()
        term = VirtualTerminal()
        session = TypingSession(term, "ab", prior_best_ns=100_000_000, clock=clock)
        result = await drive(session, term, ["a", "b"], clock=clock, step_ms=30)

        assert result.elapsed_ns == 30_000_000
        assert result.personal_best

    @pytest.mark.asyncio
    async def test_terminal_stopped_after_completion(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "a", clock=FakeClock())
        await drive(session, term, ["a"])
        assert term.stop_count == 1
        assert not term.started

    @pytest.mark.asyncio
    async def test_input_after_completion_is_ignored(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "a", clock=FakeClock())
        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)
        term.simulate_input("a")
        term.simulate_input("\x7f")
        await task
        assert session.store.typed == 1


class TestInterrupt:
    @pytest.mark.asyncio
    async def test_ctrl_c_ends_session(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hello", clock=FakeClock())
        result = await drive(session, term, ["h", "e", "\x03"])

        assert result.interrupted
        assert not result.personal_best
        assert session.store.typed == 2
        assert term.output.endswith("\x1b[0m\x1b[2J\x1b[H")
        assert term.stop_count == 1

    @pytest.mark.asyncio
    async def test_ctrl_c_before_typing_never_starts_replay(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hello", recorded=[10] * 5, clock=FakeClock())
        result = await drive(session, term, ["\x03"])

        assert result.interrupted
        assert result.elapsed_ns == 0
        assert not session.replay.started

    @pytest.mark.asyncio
    async def test_ctrl_c_cancels_replay(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hello", recorded=[10_000] * 5, clock=FakeClock())
        result = await drive(session, term, ["h", "\x03"])

        assert result.interrupted
        assert session.replay.started
        assert not session.replay.running
        assert session.store.ghost == 0


class TestErrors:
    def test_empty_sample(self) -> None:
        with pytest.raises(SampleError):
            TypingSession(VirtualTerminal(), "")

    @pytest.mark.asyncio
    async def test_input_error_propagates_and_restores_terminal(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hello", clock=FakeClock())
        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)
        term.simulate_input("h")
        term.simulate_error(InputError("input stream closed"))

        with pytest.raises(InputError):
            await asyncio.wait_for(task, timeout=2)
        assert term.stop_count == 1


class TestGhost:
    @pytest.mark.asyncio
    async def test_replay_starts_on_first_keystroke(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "abc", recorded=[1, 1, 1], clock=FakeClock())
        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)
        assert not session.replay.started

        term.simulate_input("a")
        assert session.replay.started
        await asyncio.wait_for(session.replay.wait(), timeout=2)
        assert session.store.ghost == 3

        term.simulate_input("b")
        term.simulate_input("c")
        result = await asyncio.wait_for(task, timeout=2)

        assert "\x1b7\x1b[1;1H\x1b[95ma\x1b[0m\x1b8" in term.output
        assert session.renderer.ghost_coordinate == ScreenCoordinate(0, 3)
        assert result.typos == frozenset()

    @pytest.mark.asyncio
    async def test_completion_cancels_replay(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "ab", recorded=[10_000, 10_000], clock=FakeClock())
        await drive(session, term, ["a", "b"])

        assert session.replay.started
        assert not session.replay.running
        assert session.store.ghost == 0

    @pytest.mark.asyncio
    async def test_ghost_disabled(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(
            term, "ab", recorded=[1, 1], ghost=False, clock=FakeClock()
        )
        await drive(session, term, ["a", "b"])
        assert not session.replay.started
        assert "\x1b7" not in term.output


class TestResize:
    @pytest.mark.asyncio
    async def test_sigwinch_reflows_cursor(self) -> None:
        term = VirtualTerminal(columns=80)
        session = TypingSession(
            term, "x" * 100, geometry=TerminalGeometry(80, 24), clock=FakeClock()
        )
        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)
        for _ in range(75):
            term.simulate_input("x")
        term.simulate_resize(columns=40)
        await asyncio.sleep(0)

        assert session.store.geometry.width == 40
        assert session.renderer.width == 40
        assert session.renderer.typed_coordinate == ScreenCoordinate(1, 35)

        term.simulate_input("\x03")
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_late_size_report_is_a_resize(self) -> None:
        term = VirtualTerminal(columns=80)
        session = TypingSession(term, "abc", clock=FakeClock())
        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)

        term.simulate_input("\x1b[8;30;100t")
        await asyncio.sleep(0)

        assert session.store.geometry == TerminalGeometry(100, 30)
        assert session.store.typed == 0
        assert session.interpreter.started_at is None

        term.simulate_input("\x03")
        await asyncio.wait_for(task, timeout=2)


class TestRawInput:
    @pytest.mark.asyncio
    async def test_escape_and_key_in_one_read(self) -> None:
        term = VirtualTerminal()
        session = TypingSession(term, "hi", clock=FakeClock())
        task = asyncio.ensure_future(session.run())
        await asyncio.sleep(0)

        term.simulate_bytes(b"\x1bh")
        assert session.store.typed == 1
        term.simulate_bytes(b"i")
        result = await asyncio.wait_for(task, timeout=2)

        assert result.typos == frozenset()
        assert result.personal_best
