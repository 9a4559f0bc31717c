"""Session results: personal-best decision, word count and the score line."""

from __future__ import annotations

from dataclasses import dataclass

_WORD_SEPARATORS = frozenset(" \n\t")

_HIGHLIGHT_PERSONAL_BEST = 45
_HIGHLIGHT_TYPOS = 41
_HIGHLIGHT_CLEAN = 42


def count_words(text: str) -> int:
    """Count runs of non-separator characters."""
    count = 0
    in_word = False
    for char in text:
        if char in _WORD_SEPARATORS:
            in_word = False
        elif not in_word:
            in_word = True
            count += 1
    return count


def words_per_minute(word_count: int, elapsed_ns: int) -> float:
    if elapsed_ns <= 0:
        return 0.0
    return word_count / (elapsed_ns / 60e9)


def is_personal_best(
    elapsed_ns: int, typo_count: int, prior_best_ns: int | None
) -> bool:
    """A run is a new best only if it is clean and strictly faster."""
    if typo_count:
        return False
    return prior_best_ns is None or elapsed_ns < prior_best_ns


@dataclass(frozen=True)
class SessionResult:
    """Outcome of one typing session.

    ``record`` holds the per-character timings to persist, and is only set
    when the run is a new personal best.
    """

    elapsed_ns: int
    word_count: int
    typos: frozenset[int]
    timings: tuple[int, ...]
    personal_best: bool
    interrupted: bool = False

    @property
    def wpm(self) -> float:
        return words_per_minute(self.word_count, self.elapsed_ns)

    @property
    def record(self) -> tuple[tuple[int, ...], int] | None:
        """``(timings, elapsed_ns)`` for the saved sample, or ``None``."""
        if not self.personal_best:
            return None
        return self.timings, self.elapsed_ns


def format_duration(elapsed_ns: int) -> str:
    return f"{elapsed_ns / 1e9:.3f}s"


def format_summary(result: SessionResult) -> str:
    """One-line score, highlighted by outcome."""
    if result.personal_best:
        highlight = _HIGHLIGHT_PERSONAL_BEST
    elif result.typos:
        highlight = _HIGHLIGHT_TYPOS
    else:
        highlight = _HIGHLIGHT_CLEAN
    return (
        f"\x1b[{highlight}m wpm: {result.wpm:.2f}\x1b[0m\t"
        f"\x1b[{highlight}m Time: {format_duration(result.elapsed_ns)}\x1b[0m\r\n"
    )
