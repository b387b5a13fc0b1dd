"""
A toroidal Game of Life universe.

The grid wraps in both directions, so there are no edge cells: the
neighbours of (0, 0) include (height - 1, width - 1). Cells are kept in a
dense row-major buffer, one byte per cell, and exposed read-only for
renderers that want to paint without calling back per cell.
"""

from __future__ import annotations

import random as _random
from contextlib import nullcontext
from typing import Callable, ContextManager, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

# ── Defaults ────────────────────────────────────────────────────────────
DEFAULT_WIDTH: int = 64
DEFAULT_HEIGHT: int = 64
SEED_DENSITY: float = 0.2
MAX_DIMENSION: int = 2**32 - 1

DEAD_CELL: bool = False
ALIVE_CELL: bool = True

# ── Glyphs for the text view ────────────────────────────────────────────
DEAD_GLYPH = "◻"
ALIVE_GLYPH = "◼"

TICK_LABEL = "Universe::tick"

EntropySource = Callable[[], float]
Timer = Callable[[str], ContextManager[object]]


class InvalidCoordinateError(ValueError):
    """Raised when a (row, col) pair is malformed or outside the grid."""


def toggle(cell: bool) -> bool:
    """Flip a single cell value."""
    return DEAD_CELL if cell else ALIVE_CELL


def _check_dimension(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    value = int(value)
    if not 0 <= value <= MAX_DIMENSION:
        raise ValueError(f"{name} must be in [0, {MAX_DIMENSION}], got {value}")
    return value


def _no_timer(label: str) -> ContextManager[object]:
    return nullcontext()


class Universe:
    """
    Owns the grid dimensions and cell state.

    `random` is the entropy source used for seeding: a callable returning a
    uniform float in [0, 1), called once per cell in row-major order.
    `timer`, if given, is called with a label and must return a context
    manager; it wraps every `tick()`.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        random: EntropySource | None = None,
        timer: Timer | None = None,
    ) -> None:
        self._width: int = _check_dimension("width", width)
        self._height: int = _check_dimension("height", height)
        self._random: EntropySource = random if random is not None else _random.random
        self._timer: Timer = timer if timer is not None else _no_timer
        self._cells: NDArray[np.bool_] = self._seed(self.size)

    # ── Seeding ─────────────────────────────────────────────────────

    def _seed(self, size: int) -> NDArray[np.bool_]:
        draws = np.fromiter(
            (self._random() for _ in range(size)), dtype=np.float64, count=size
        )
        return draws < SEED_DENSITY

    @staticmethod
    def _blank(size: int) -> NDArray[np.bool_]:
        return np.zeros(size, dtype=np.bool_)

    # ── Accessors ───────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> int:
        return self._width * self._height

    def cells(self) -> NDArray[np.bool_]:
        """Read-only view of the cell buffer, valid until the next mutation."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def cells_packed(self) -> NDArray[np.uint8]:
        """Bit-packed export: bit i of the stream is cell i (LSB first)."""
        return np.packbits(self._cells, bitorder="little")

    def get_cells(self) -> NDArray[np.bool_]:
        return self._cells.copy()

    def population(self) -> int:
        return int(np.count_nonzero(self._cells))

    def get_index(self, row: int, col: int) -> int:
        return row * self._width + col

    # ── Dimensions ──────────────────────────────────────────────────

    def set_width(self, width: int) -> None:
        """Change the width. The pattern is discarded: every cell ends up dead."""
        self._width = _check_dimension("width", width)
        self._cells = self._blank(self.size)

    def set_height(self, height: int) -> None:
        """Change the height. The pattern is discarded: every cell ends up dead."""
        self._height = _check_dimension("height", height)
        self._cells = self._blank(self.size)

    # ── Simulation ──────────────────────────────────────────────────

    def live_neighbour_count(self, row: int, col: int) -> int:
        """Count live cells among the 8 toroidal neighbours of (row, col)."""
        h, w = self._height, self._width
        if h == 0 or w == 0:
            return 0
        count = 0
        for dr in (h - 1, 0, 1):
            for dc in (w - 1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                idx = self.get_index((row + dr) % h, (col + dc) % w)
                count += int(self._cells[idx])
        return count

    def _neighbour_counts(self, grid: NDArray[np.bool_]) -> NDArray[np.int8]:
        # Same offsets as live_neighbour_count. Only the literal (0, 0) pair is
        # skipped, so on a 1-high or 1-wide grid a cell sees itself once.
        h, w = grid.shape
        g = grid.astype(np.int8)
        n = np.zeros_like(g)
        for dr in (h - 1, 0, 1):
            for dc in (w - 1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                n += np.roll(np.roll(g, -dr, axis=0), -dc, axis=1)
        return n

    def tick(self) -> None:
        """Advance one generation."""
        with self._timer(TICK_LABEL):
            if self.size == 0:
                return
            grid = self._cells.reshape(self._height, self._width)
            n = self._neighbour_counts(grid)
            n_is_3 = n == 3
            birth = ~grid & n_is_3
            survive = grid & (n_is_3 | (n == 2))
            # Fresh buffer, swapped in whole
            self._cells = (birth | survive).ravel()

    # ── Editing ─────────────────────────────────────────────────────

    def _validate(self, positions: Iterable[Sequence[int]]) -> list[int]:
        indices: list[int] = []
        for pos in positions:
            try:
                n = len(pos)
            except TypeError:
                raise InvalidCoordinateError(
                    f"invalid coordinate {pos!r}: expected a (row, col) pair"
                ) from None
            if n != 2:
                raise InvalidCoordinateError(
                    f"invalid coordinate {tuple(pos)!r}: expected a (row, col) pair, "
                    f"got {n} values"
                )
            row, col = pos
            for v in (row, col):
                if isinstance(v, bool) or not isinstance(v, (int, np.integer)):
                    raise InvalidCoordinateError(
                        f"invalid coordinate {tuple(pos)!r}: row and col must be integers"
                    )
            if not (0 <= row < self._height and 0 <= col < self._width):
                raise InvalidCoordinateError(
                    f"invalid coordinate ({row}, {col}): outside "
                    f"{self._height}x{self._width} grid"
                )
            indices.append(self.get_index(int(row), int(col)))
        return indices

    def draw(self, positions: Iterable[Sequence[int]]) -> None:
        """
        Toggle each (row, col) in order. A coordinate named twice ends up
        where it started. The batch is checked in full before any cell
        changes, so a rejected batch leaves the grid untouched.
        """
        for idx in self._validate(positions):
            self._cells[idx] = toggle(bool(self._cells[idx]))

    def set_cells(self, positions: Iterable[Sequence[int]]) -> None:
        """Mark each (row, col) alive. Other cells are left as they are."""
        indices = self._validate(positions)
        if indices:
            self._cells[indices] = ALIVE_CELL

    def clear(self) -> None:
        self._cells = self._blank(self.size)

    def reset(self) -> None:
        """Re-seed every cell with the construction density."""
        self._cells = self._seed(self.size)

    # ── Text view ───────────────────────────────────────────────────

    def render(self) -> str:
        if self.size == 0:
            return ""
        glyphs = np.where(self._cells, ALIVE_GLYPH, DEAD_GLYPH)
        rows = glyphs.reshape(self._height, self._width)
        return "".join("".join(row) + "\n" for row in rows.tolist())

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"Universe(width={self._width}, height={self._height}, "
            f"population={self.population()})"
        )
