"""StdinBuffer turns raw keyboard bytes into complete input units.

Reads can split a multi-byte UTF-8 character or an escape sequence across
chunks.  Bytes are decoded incrementally, so a partial character simply
waits for the rest of its bytes, and escape sequences are held back until
they are complete.  A lone ESC (the escape key itself) is released after a
short timeout.
"""

from __future__ import annotations

import asyncio
import codecs
from typing import Callable

ESC = "\x1b"

# Characters that open a multi-character sequence after ESC: CSI, OSC, SS3
_SEQUENCE_INTRODUCERS = "[]O"


def _is_complete_sequence(data: str) -> str:
    """Check if a string is a complete escape sequence or needs more data.

    Returns 'complete', 'incomplete', or 'not-escape'.
    """
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        return _is_complete_csi_sequence(data)

    # OSC sequences: ESC ]
    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # SS3 sequences: ESC O
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # ESC followed by any other character: nothing continues past it
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if len(data) < 3:
        return "incomplete"
    last_char_code = ord(data[-1])
    if 0x40 <= last_char_code <= 0x7E:
        return "complete"
    return "incomplete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated buffer into complete units.

    Returns (sequences, remainder).
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        if len(remaining) > 1 and remaining[1] not in _SEQUENCE_INTRODUCERS:
            # The escape key pressed just before another key
            sequences.append(ESC)
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            status = _is_complete_sequence(remaining[:seq_end])
            if status == "incomplete":
                seq_end += 1
                continue
            sequences.append(remaining[:seq_end])
            pos += seq_end
            break
        else:
            return sequences, remaining

    return sequences, ""


class StdinBuffer:
    """Buffers stdin bytes and emits complete characters and sequences."""

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._timeout: float = timeout
        self._on_data: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete input units."""
        self._on_data = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def process(self, raw: bytes) -> None:
        """Feed raw bytes into the buffer."""
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

        self._buffer += self._decoder.decode(raw)

        sequences, remainder = _extract_complete_sequences(self._buffer)
        self._buffer = remainder

        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
                self._timeout_handle = loop.call_later(
                    self._timeout, self._flush_timeout
                )
            except RuntimeError:
                # No event loop - flush immediately
                for sequence in self.flush():
                    self._emit_data(sequence)

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def flush(self) -> list[str]:
        """Release a held-back partial escape sequence as-is."""
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

        if not self._buffer:
            return []

        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def pending_bytes(self) -> bool:
        """Whether a partial multi-byte character is still being assembled."""
        buffered, _ = self._decoder.getstate()
        return bool(buffered)

    def get_buffer(self) -> str:
        return self._buffer

    def clear(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        self._buffer = ""
        self._decoder.reset()

    def destroy(self) -> None:
        self.clear()
