"""Saved samples: the JSON file of texts and their personal bests.

The file is a JSON array of objects::

    [{"text": "...", "char_times": [120, 95, ...], "personal_best": 12345678900}]

``char_times`` holds one duration in milliseconds per character of the
previous best run and ``personal_best`` its total duration in nanoseconds.
Both are omitted until a clean run has been recorded.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import wcwidth as _wcwidth

from ghosttype.errors import SampleError
from ghosttype.results import SessionResult

logger = logging.getLogger(__name__)

DEFAULT_SAMPLES_FILE = "savedSamples.json"


@dataclass
class SavedSample:
    text: str
    char_times: list[int] = field(default_factory=list)
    personal_best: int = 0

    @property
    def has_personal_best(self) -> bool:
        return len(self.char_times) != 0

    @property
    def prior_best_ns(self) -> int | None:
        return self.personal_best if self.has_personal_best else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text}
        if self.char_times:
            data["char_times"] = list(self.char_times)
        if self.personal_best:
            data["personal_best"] = self.personal_best
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedSample:
        text = data.get("text")
        if not isinstance(text, str):
            raise SampleError("saved sample has no text")
        char_times = [int(t) for t in data.get("char_times") or []]
        return cls(
            text=text,
            char_times=char_times,
            personal_best=int(data.get("personal_best") or 0),
        )

    def apply(self, result: SessionResult) -> bool:
        """Store *result* if it is a new personal best.  Returns whether it was."""
        record = result.record
        if record is None:
            return False
        timings, elapsed_ns = record
        self.char_times = list(timings)
        self.personal_best = elapsed_ns
        return True


# ---------------------------------------------------------------------------
# Sample text
# ---------------------------------------------------------------------------


def normalize_sample(text: str) -> str:
    """Prepare *text* for a session.

    Line endings become ``\\n`` and tabs a single space.  Every other
    character must occupy exactly one terminal cell.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", " ")
    for pos, char in enumerate(text):
        if char == "\n":
            continue
        if _wcwidth.wcwidth(char) != 1:
            raise SampleError(
                f"character {char!r} at position {pos} is not one cell wide"
            )
    if not text:
        raise SampleError("sample text is empty")
    return text


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def load_samples(path: str | Path) -> list[SavedSample]:
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SampleError(f"opening saved samples file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SampleError(f"parsing saved samples file {path}: {exc}") from exc

    if not isinstance(raw, list):
        raise SampleError(f"saved samples file {path} is not a JSON array")
    samples = [SavedSample.from_dict(item) for item in raw if isinstance(item, dict)]
    if not samples:
        raise SampleError(f"saved samples file {path} has no samples")
    logger.debug("loaded %d samples from %s", len(samples), path)
    return samples


def save_samples(path: str | Path, samples: list[SavedSample]) -> None:
    path = Path(path)
    payload = json.dumps([s.to_dict() for s in samples], ensure_ascii=False)
    path.write_text(payload + "\n", encoding="utf-8")
    logger.debug("saved %d samples to %s", len(samples), path)
