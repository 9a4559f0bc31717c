"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, the text-area size query, SIGWINCH
resize notification, cursor shape and positioning via ANSI escape
sequences.
"""

from __future__ import annotations

import asyncio
import logging
import os
import select
import signal
import sys
import termios
import time
import tty
from typing import Callable, Protocol

from ghosttype.errors import InputError
from ghosttype.keys import SIZE_REPORT_RE
from ghosttype.layout import DEFAULT_GEOMETRY, TerminalGeometry
from ghosttype.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

CLEAR_SCREEN = "\x1b[2J\x1b[H"
CURSOR_HOME = "\x1b[H"
SAVE_CURSOR = "\x1b7"
RESTORE_CURSOR = "\x1b8"
RESET_STYLE = "\x1b[0m"
MOVE_TO_FMT = "\x1b[{};{}H"
CURSOR_SHAPE_FMT = "\x1b[{} q"

CURSOR_BLINKING_BAR = 5
CURSOR_DEFAULT = 0

_QUERY_TEXT_AREA_SIZE = "\x1b[18t"

# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    def size(self, fallback: TerminalGeometry = DEFAULT_GEOMETRY) -> TerminalGeometry: ...

    def query_size(self, timeout: float = 0.5) -> TerminalGeometry | None: ...

    def move_to(self, row: int, col: int) -> None: ...

    def clear_screen(self) -> None: ...

    def set_cursor_shape(self, shape: int) -> None: ...


def parse_size_report(data: str) -> TerminalGeometry | None:
    """Parse an ``ESC[8;<rows>;<cols>t`` reply, or return ``None``."""
    match = SIZE_REPORT_RE.search(data)
    if match is None:
        return None
    rows, cols = int(match.group(1)), int(match.group(2))
    if rows <= 0 or cols <= 0:
        return None
    return TerminalGeometry(width=cols, height=rows)


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal implementation backed by ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios`, reads stdin through
    the running event loop and reports SIGWINCH-based resizes.  ``stop``
    restores the original terminal mode and is safe to call more than once.
    """

    def __init__(self) -> None:
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._error_handler: Callable[[Exception], None] | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._pending_input: bytes = b""
        self._write_log_path: str = os.environ.get("GHOSTTYPE_WRITE_LOG", "")

    # -- geometry -----------------------------------------------------------

    def size(self, fallback: TerminalGeometry = DEFAULT_GEOMETRY) -> TerminalGeometry:
        """Current size from the tty driver, or *fallback* if unavailable."""
        try:
            size = os.get_terminal_size(sys.stdout.fileno())
        except (ValueError, OSError):
            return fallback
        if size.columns <= 0 or size.lines <= 0:
            return fallback
        return TerminalGeometry(width=size.columns, height=size.lines)

    def query_size(self, timeout: float = 0.5) -> TerminalGeometry | None:
        """Ask the terminal for its text-area size with ``CSI 18 t``.

        Must run in raw mode before stdin is handed to the event loop.
        Returns ``None`` if no well-formed reply arrives within *timeout*
        seconds.  Bytes that arrive alongside the reply are kept and fed
        to the input handler once reading starts.
        """
        fd = sys.stdin.fileno()
        self._raw_write(_QUERY_TEXT_AREA_SIZE)
        deadline = time.monotonic() + timeout
        reply = b""
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                ready, _, _ = select.select([fd], [], [], remaining)
                if not ready:
                    break
                chunk = os.read(fd, 64)
            except OSError:
                logger.debug("size query read failed", exc_info=True)
                break
            if not chunk:
                break
            reply += chunk
            text = reply.decode("utf-8", errors="replace")
            match = SIZE_REPORT_RE.search(text)
            if match is not None:
                leftover = text[: match.start()] + text[match.end() :]
                self._pending_input += leftover.encode("utf-8")
                return parse_size_report(match.group(0))

        self._pending_input += reply
        logger.info("terminal did not answer the size query")
        return None

    # -- start / stop -------------------------------------------------------

    def enter_raw_mode(self) -> None:
        """Save the current terminal attributes and switch to raw mode."""
        if self._original_termios is not None:
            return
        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        """Enable raw mode and begin reading stdin on the running loop."""
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._error_handler = on_error

        self.enter_raw_mode()

        self._stdin_buffer = StdinBuffer(timeout=0.01)
        self._stdin_buffer.on_data(self._on_buffer_data)

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        try:
            self._loop.add_signal_handler(signal.SIGWINCH, self._on_sigwinch)
        except (NotImplementedError, RuntimeError):
            self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
            signal.signal(signal.SIGWINCH, lambda signum, frame: self._on_sigwinch())

        if self._pending_input:
            pending, self._pending_input = self._pending_input, b""
            self._stdin_buffer.process(pending)

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        if self._loop is not None:
            try:
                self._loop.remove_reader(sys.stdin.fileno())
                self._loop.remove_signal_handler(signal.SIGWINCH)
            except (RuntimeError, ValueError):
                pass
            self._loop = None

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        if self._stdin_buffer is not None:
            self._stdin_buffer.destroy()
            self._stdin_buffer = None

        if self._original_termios is not None:
            self._raw_write(RESET_STYLE + CURSOR_SHAPE_FMT.format(CURSOR_DEFAULT))
            termios.tcsetattr(
                sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios
            )
            self._original_termios = None
            logger.debug("terminal mode restored")

        self._input_handler = None
        self._resize_handler = None
        self._error_handler = None

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                pass

    # -- cursor / screen manipulation --------------------------------------

    def move_to(self, row: int, col: int) -> None:
        """Position the cursor at zero-based *row*, *col*."""
        self.write(MOVE_TO_FMT.format(row + 1, col + 1))

    def clear_screen(self) -> None:
        self.write(CLEAR_SCREEN)

    def set_cursor_shape(self, shape: int) -> None:
        self.write(CURSOR_SHAPE_FMT.format(shape))

    # -- private: stdin reading --------------------------------------------

    def _on_buffer_data(self, data: str) -> None:
        if self._input_handler is not None:
            self._input_handler(data)

    def _on_stdin_readable(self) -> None:
        """Callback invoked by the event loop when stdin has data."""
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError as exc:
            self._fail(InputError(f"error reading input: {exc}"))
            return

        if not raw:
            self._fail(InputError("input stream closed"))
            return

        if self._stdin_buffer is not None:
            self._stdin_buffer.process(raw)

    def _fail(self, error: InputError) -> None:
        if self._loop is not None:
            self._loop.remove_reader(sys.stdin.fileno())
        if self._error_handler is not None:
            self._error_handler(error)
        else:
            raise error

    # -- private: SIGWINCH -------------------------------------------------

    def _on_sigwinch(self) -> None:
        """Handle terminal resize signals."""
        if self._resize_handler is not None:
            self._resize_handler()

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass
