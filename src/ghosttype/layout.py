"""Screen layout: mapping sample positions to terminal cells.

Every sample character occupies exactly one cell.  A row wraps once the
column reaches ``width - 1``; a line break ends the row early.  A
coordinate is therefore fully determined by ``(index, width, sample)`` and
can always be recomputed with :func:`locate`.

Resizes are handled with the cell-offset transform: a ``(row, col)`` pair
is flattened to ``row * old_width + col`` and re-split under the new width.
For samples without line breaks this agrees with :func:`locate`.
"""

from __future__ import annotations

from dataclasses import dataclass

LINE_BREAK = "\n"


@dataclass(frozen=True)
class ScreenCoordinate:
    """Zero-based terminal cell position."""

    row: int = 0
    col: int = 0


@dataclass(frozen=True)
class TerminalGeometry:
    """Terminal size in character cells."""

    width: int
    height: int


DEFAULT_GEOMETRY = TerminalGeometry(width=80, height=24)


# ---------------------------------------------------------------------------
# Cell offsets
# ---------------------------------------------------------------------------


def cell_offset(coord: ScreenCoordinate, width: int) -> int:
    """Flatten *coord* into a linear cell offset under *width*."""
    return coord.row * width + coord.col


def from_cell_offset(offset: int, width: int) -> ScreenCoordinate:
    """Split a linear cell offset into a coordinate under *width*."""
    row, col = divmod(offset, max(1, width))
    return ScreenCoordinate(row, col)


def reflow(coord: ScreenCoordinate, old_width: int, new_width: int) -> ScreenCoordinate:
    """Move *coord* from a terminal *old_width* wide to one *new_width* wide.

    >>> reflow(ScreenCoordinate(0, 75), 80, 40)
    ScreenCoordinate(row=1, col=35)
    """
    return from_cell_offset(cell_offset(coord, old_width), new_width)


# ---------------------------------------------------------------------------
# Incremental stepping
# ---------------------------------------------------------------------------


def step_forward(coord: ScreenCoordinate, width: int, char: str) -> ScreenCoordinate:
    """Return the cell after *coord* once *char* has been painted there."""
    if char == LINE_BREAK or coord.col >= width - 1:
        return ScreenCoordinate(coord.row + 1, 0)
    return ScreenCoordinate(coord.row, coord.col + 1)


def step_back(coord: ScreenCoordinate, width: int) -> ScreenCoordinate:
    """Return the cell before *coord*, unwrapping to the previous row's end."""
    if coord.col > 0:
        return ScreenCoordinate(coord.row, coord.col - 1)
    if coord.row > 0:
        return ScreenCoordinate(coord.row - 1, width - 1)
    return coord


def locate(sample: str, index: int, width: int) -> ScreenCoordinate:
    """Compute the coordinate of sample position *index* from scratch."""
    coord = ScreenCoordinate()
    for char in sample[:index]:
        coord = step_forward(coord, width, char)
    return coord


def has_line_breaks(sample: str) -> bool:
    return LINE_BREAK in sample
