"""ghosttype: terminal typing practice against a replay of your best run."""

# Errors
from ghosttype.errors import GhosttypeError, InputError, SampleError, SettingsError

# Render-delta events
from ghosttype.events import EventKind, RenderEvent

# Input interpretation
from ghosttype.interpreter import InputInterpreter, word_start
from ghosttype.keys import KeyKind, classify

# Screen layout
from ghosttype.layout import (
    DEFAULT_GEOMETRY,
    ScreenCoordinate,
    TerminalGeometry,
    cell_offset,
    from_cell_offset,
    locate,
    reflow,
)

# Rendering
from ghosttype.renderer import Renderer, Styles

# Replay and resize actors
from ghosttype.replay import ReplayScheduler
from ghosttype.resize import ResizeCoordinator

# Results and samples
from ghosttype.results import SessionResult, count_words, format_summary
from ghosttype.samples import SavedSample, load_samples, normalize_sample, save_samples

# Session
from ghosttype.session import TypingSession
from ghosttype.state import SessionSnapshot, SessionStore

# Terminal
from ghosttype.stdin_buffer import StdinBuffer
from ghosttype.terminal import ProcessTerminal, Terminal

__all__ = [
    # Errors
    "GhosttypeError",
    "InputError",
    "SampleError",
    "SettingsError",
    # Events
    "EventKind",
    "RenderEvent",
    # Input
    "InputInterpreter",
    "KeyKind",
    "classify",
    "word_start",
    # Layout
    "DEFAULT_GEOMETRY",
    "ScreenCoordinate",
    "TerminalGeometry",
    "cell_offset",
    "from_cell_offset",
    "locate",
    "reflow",
    # Rendering
    "Renderer",
    "Styles",
    # Actors
    "ReplayScheduler",
    "ResizeCoordinator",
    # Results and samples
    "SavedSample",
    "SessionResult",
    "count_words",
    "format_summary",
    "load_samples",
    "normalize_sample",
    "save_samples",
    # Session
    "SessionSnapshot",
    "SessionStore",
    "TypingSession",
    # Terminal
    "ProcessTerminal",
    "StdinBuffer",
    "Terminal",
]
