"""Keyboard input classification for the typing session.

Input arrives from :class:`~ghosttype.stdin_buffer.StdinBuffer` as complete
units: a single decoded character, or a whole escape sequence.  ``classify``
maps each unit to one of a small set of key kinds the interpreter acts on.
"""

from __future__ import annotations

import re
from typing import Literal

KeyKind = Literal[
    "char",
    "backspace",
    "word-erase",
    "full-erase",
    "interrupt",
    "line-terminator",
    "escape",
    "ignored",
]

# ---------------------------------------------------------------------------
# Raw control characters
# ---------------------------------------------------------------------------


def raw_ctrl_char(key: str) -> str | None:
    """Return the control character for a key, or ``None`` if not applicable.

    For example, ``raw_ctrl_char("c")`` returns ``"\\x03"``.
    """
    if len(key) != 1:
        return None
    code = ord(key.lower())
    if ord("a") <= code <= ord("z"):
        return chr(code & 0x1F)
    ctrl_map: dict[str, str] = {
        "[": chr(27),   # ESC
        "?": chr(127),  # DEL
    }
    return ctrl_map.get(key)


ESC = "\x1b"
BACKSPACE = "\x7f"
CTRL_C = raw_ctrl_char("c")
# Ctrl+Backspace in most terminals, and readline's unix-word-rubout
CTRL_W = raw_ctrl_char("w")
# Ctrl+Shift+Backspace in most terminals
CTRL_H = raw_ctrl_char("h")
CARRIAGE_RETURN = "\r"
LINE_FEED = "\n"

_CONTROL_KINDS: dict[str, KeyKind] = {
    BACKSPACE: "backspace",
    CTRL_W: "word-erase",
    CTRL_H: "full-erase",
    CTRL_C: "interrupt",
    CARRIAGE_RETURN: "line-terminator",
    LINE_FEED: "line-terminator",
    ESC: "escape",
}

# Reply to the ``CSI 18 t`` text-area size query: ESC[8;<rows>;<cols>t
SIZE_REPORT_RE = re.compile(r"\x1b\[8;(\d+);(\d+)t")


def is_size_report(data: str) -> bool:
    return SIZE_REPORT_RE.fullmatch(data) is not None


def classify(data: str) -> KeyKind:
    """Return the key kind for one complete input unit.

    Multi-character escape sequences (arrow keys, function keys, terminal
    replies) carry no typing meaning and are ``"ignored"``.  Everything else,
    unbound control characters included, is a typed ``"char"``.
    """
    if not data:
        return "ignored"
    kind = _CONTROL_KINDS.get(data)
    if kind is not None:
        return kind
    if data.startswith(ESC) or len(data) != 1:
        return "ignored"
    return "char"
