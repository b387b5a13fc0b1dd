#!/usr/bin/env python3
"""
  ∞  L I F E  ∞
  Conway's Game of Life on a torus, in your terminal.

  The grid wraps at every edge: gliders that leave on the right come back
  on the left. Two grid rows share one terminal row via half-block glyphs.

  Controls:
    q         quit               SPACE     pause / resume
    r         reseed the cosmos  c         clear
    +/-       speed              n         single step (while paused)
    s         toggle stats overlay
    mouse     toggle cells (even grid rows only: a click hits the top
              half of its half-block)

  Headless:
    python3 life.py --text 10 --width 8 --height 8 --pattern glider

  Stats are logged to life_stats.csv beside this script unless --stats-log
  says otherwise.
"""

from __future__ import annotations

import argparse
import curses
import random
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, ClassVar

import numpy as np
from numpy.typing import NDArray

from universe import DEFAULT_HEIGHT, DEFAULT_WIDTH, Universe

# ── Half-block characters ───────────────────────────────────────────────
UPPER_HALF = "\u2580"  # ▀  top pixel alive
LOWER_HALF = "\u2584"  # ▄  bottom pixel alive
FULL_BLOCK = "\u2588"  # █  both alive

# ── Sparkline characters ────────────────────────────────────────────────
SPARKS = "▁▂▃▄▅▆▇█"

# ── Pattern library ─────────────────────────────────────────────────────
PATTERNS: dict[str, list[tuple[int, int]]] = {
    "glider": [(0, 1), (1, 2), (2, 0), (2, 1), (2, 2)],
    "lwss": [
        (0, 1), (0, 4), (1, 0), (2, 0), (2, 4),
        (3, 0), (3, 1), (3, 2), (3, 3),
    ],
    "block": [(0, 0), (0, 1), (1, 0), (1, 1)],
    "blinker": [(0, 0), (0, 1), (0, 2)],
    "toad": [(0, 1), (0, 2), (0, 3), (1, 0), (1, 1), (1, 2)],
    "beacon": [(0, 0), (0, 1), (1, 0), (2, 3), (3, 2), (3, 3)],
    "r_pentomino": [(0, 1), (0, 2), (1, 0), (1, 1), (2, 1)],
    "acorn": [(0, 1), (1, 3), (2, 0), (2, 1), (2, 4), (2, 5), (2, 6)],
    "diehard": [(0, 6), (1, 0), (1, 1), (2, 1), (2, 5), (2, 6), (2, 7)],
    "gosper_gun": [
        (0, 24),
        (1, 22), (1, 24),
        (2, 12), (2, 13), (2, 20), (2, 21), (2, 34), (2, 35),
        (3, 11), (3, 15), (3, 20), (3, 21), (3, 34), (3, 35),
        (4, 0), (4, 1), (4, 10), (4, 16), (4, 20), (4, 21),
        (5, 0), (5, 1), (5, 10), (5, 14), (5, 16), (5, 17), (5, 22), (5, 24),
        (6, 10), (6, 16), (6, 24),
        (7, 11), (7, 15),
        (8, 12), (8, 13),
    ],
    "pulsar": [
        (0, 2), (0, 3), (0, 4), (0, 8), (0, 9), (0, 10),
        (2, 0), (2, 5), (2, 7), (2, 12),
        (3, 0), (3, 5), (3, 7), (3, 12),
        (4, 0), (4, 5), (4, 7), (4, 12),
        (5, 2), (5, 3), (5, 4), (5, 8), (5, 9), (5, 10),
        (7, 2), (7, 3), (7, 4), (7, 8), (7, 9), (7, 10),
        (8, 0), (8, 5), (8, 7), (8, 12),
        (9, 0), (9, 5), (9, 7), (9, 12),
        (10, 0), (10, 5), (10, 7), (10, 12),
        (12, 2), (12, 3), (12, 4), (12, 8), (12, 9), (12, 10),
    ],
    "pentadecathlon": [
        (0, 1), (1, 1), (2, 0), (2, 2), (3, 1), (4, 1),
        (5, 1), (6, 1), (7, 0), (7, 2), (8, 1), (9, 1),
    ],
}

LOG_PATH = Path(__file__).resolve().parent / "life_stats.csv"


def place(universe: Universe, name: str, row: int, col: int) -> None:
    """Stamp a named pattern with its top-left corner at (row, col), wrapping."""
    cells = PATTERNS.get(name)
    if cells is None:
        raise KeyError(f"Pattern '{name}' not found. Available patterns: {sorted(PATTERNS)}")
    h, w = universe.height, universe.width
    if h == 0 or w == 0:
        return
    universe.set_cells([((row + dy) % h, (col + dx) % w) for dy, dx in cells])


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes simulation telemetry to CSV for post-hoc inspection."""

    HEADER: ClassVar[str] = "gen,time_s,population,width,height,event\n"

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    @property
    def active(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        try:
            self._fh = open(self._path, "w", encoding="utf-8")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(self, gen: int, pop: int, width: int, height: int, event: str = "") -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        try:
            self._fh.write(f"{gen},{t:.1f},{pop},{width},{height},{event}\n")
            # Flush on events or periodically
            if event or gen % 50 == 0:
                self._fh.flush()
        except OSError:
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Session state
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class LifeSession:
    """A universe plus the bits of run state the front-end needs."""

    universe: Universe
    generation: int = 0
    paused: bool = False
    delay: float = 50.0
    pop_history: deque[int] = field(default_factory=lambda: deque(maxlen=500))

    def step(self, force: bool = False) -> bool:
        """Advance one generation unless paused. Returns True if it ticked."""
        if self.paused and not force:
            return False
        self.universe.tick()
        self.generation += 1
        self.pop_history.append(self.universe.population())
        return True

    def clear(self) -> None:
        self.universe.clear()
        self.generation = 0
        self.pop_history.clear()

    def reset(self) -> None:
        self.universe.reset()
        self.generation = 0
        self.pop_history.clear()

    def resize(self, height: int, width: int) -> None:
        """Match the grid to a new screen size. The old pattern is dropped."""
        self.universe.set_height(height)
        self.universe.set_width(width)
        self.generation = 0
        self.pop_history.clear()

    def toggle(self, term_y: int, term_x: int) -> bool:
        """Toggle the cell under a terminal position. False if off-grid."""
        row, col = screen_to_cell(term_y, term_x)
        if 0 <= row < self.universe.height and 0 <= col < self.universe.width:
            self.universe.draw([(row, col)])
            return True
        return False

    def sparkline(self, width: int = 24) -> str:
        history = list(self.pop_history)[-width:]
        if len(history) < 2:
            return ""
        lo, hi = min(history), max(history)
        n_sparks = len(SPARKS) - 1
        if hi == lo:
            return SPARKS[len(SPARKS) // 2] * len(history)
        return "".join(SPARKS[int((v - lo) / (hi - lo) * n_sparks)] for v in history)


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

def screen_to_cell(term_y: int, term_x: int) -> tuple[int, int]:
    """Map a terminal position to the grid cell drawn in its top half."""
    return term_y * 2, term_x


def half_block_rows(cells: NDArray[np.bool_], width: int, height: int) -> list[str]:
    """
    Fold the raw row-major buffer into text rows, two grid rows per line.

    An odd final grid row is paired with an all-dead row.
    """
    if width == 0 or height == 0:
        return []
    grid = np.asarray(cells, dtype=np.bool_).reshape(height, width)
    if height % 2:
        grid = np.vstack([grid, np.zeros((1, width), dtype=np.bool_)])
    top = grid[0::2]
    bot = grid[1::2]
    glyphs = np.full(top.shape, " ", dtype="<U1")
    glyphs[top & ~bot] = UPPER_HALF
    glyphs[~top & bot] = LOWER_HALF
    glyphs[top & bot] = FULL_BLOCK
    return ["".join(row) for row in glyphs.tolist()]


def render(stdscr: curses.window, session: LifeSession, show_stats: bool = False) -> None:
    """Half-block rendering of the whole universe plus a status bar."""
    max_y, max_x = stdscr.getmaxyx()
    u = session.universe
    rows = half_block_rows(u.cells(), u.width, u.height)

    for y, line in enumerate(rows[: max_y - 1]):
        try:
            stdscr.addstr(y, 0, line[:max_x], curses.A_BOLD)
        except curses.error:
            pass

    if show_stats:
        _draw_stats_overlay(stdscr, session, max_y, max_x)

    pop = u.population()
    spark = session.sparkline()
    state = "paused" if session.paused else f"{session.delay:.0f}ms"
    left = f"  gen {session.generation:,}  pop {pop:,}  {spark}"
    right = f"{state}  q r c spc n +/- s  "
    pad = max(1, max_x - len(left) - len(right) - 1)
    status = (left + " " * pad + right)[: max_x - 1]
    try:
        stdscr.addstr(max_y - 1, 0, status, curses.A_DIM)
    except curses.error:
        pass


def _draw_stats_overlay(
    stdscr: curses.window, session: LifeSession, max_y: int, max_x: int
) -> None:
    """Draw the grid telemetry panel in the bottom-right."""
    u = session.universe
    panel_w = 32
    lines = [
        f"{'':─<{panel_w - 2}}",
        " universe",
        f" grid        : {u.height}x{u.width}",
        f" cells       : {u.size:,}",
        f" population  : {u.population():,}",
        f" density     : {u.population() / max(1, u.size):.3f}",
        f" generation  : {session.generation:,}",
    ]
    x0 = max_x - panel_w - 2
    y0 = max_y - len(lines) - 2
    if x0 < 0 or y0 < 0:
        return

    for i, line in enumerate(lines):
        padded = f" {line:<{panel_w - 1}}"[:panel_w]
        try:
            stdscr.addstr(y0 + i, x0, padded, curses.A_DIM)
        except curses.error:
            pass


def run_text(session: LifeSession, generations: int) -> str:
    """Advance `generations` steps headlessly and return the text view."""
    for _ in range(generations):
        session.step(force=True)
    return session.universe.render()


# ═══════════════════════════════════════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════════════════════════════════════

def build_session(args: argparse.Namespace, height: int, width: int) -> LifeSession:
    rng = random.Random(args.seed) if args.seed is not None else random.Random()
    universe = Universe(width=width, height=height, random=rng.random)
    if args.pattern:
        universe.clear()
        place(universe, args.pattern, height // 2, width // 2)
    return LifeSession(universe=universe, delay=args.delay)


def main(stdscr: curses.window, args: argparse.Namespace) -> None:
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.timeout(0)
    curses.mousemask(curses.ALL_MOUSE_EVENTS)

    max_y, max_x = stdscr.getmaxyx()
    height = args.height if args.height is not None else (max_y - 1) * 2
    width = args.width if args.width is not None else max_x
    session = build_session(args, height, width)

    logger = StatsLogger(args.stats_log)
    logger.open()

    show_stats = False

    try:
        while True:
            event = ""

            # ── Input ──────────────────────────────────────────────
            try:
                key = stdscr.getch()
            except curses.error:
                key = -1

            if key in (ord("q"), ord("Q")):
                break
            elif key in (ord("r"), ord("R")):
                session.reset()
                event = "reset"
            elif key in (ord("c"), ord("C")):
                session.clear()
                event = "clear"
            elif key == ord(" "):
                session.paused = not session.paused
            elif key in (ord("n"), ord("N")):
                if session.paused:
                    session.step(force=True)
            elif key in (ord("+"), ord("=")):
                session.delay = max(10, session.delay - 10)
            elif key in (ord("-"), ord("_")):
                session.delay = min(500, session.delay + 10)
            elif key in (ord("s"), ord("S")):
                show_stats = not show_stats
            elif key == curses.KEY_MOUSE:
                try:
                    _, mx, my, _, _ = curses.getmouse()
                    if session.toggle(my, mx):
                        event = "draw"
                except curses.error:
                    pass
            elif key == curses.KEY_RESIZE and args.width is None and args.height is None:
                max_y, max_x = stdscr.getmaxyx()
                session.resize((max_y - 1) * 2, max_x)
                event = "resize"

            # ── Simulate ───────────────────────────────────────────
            session.step()

            # ── Log ────────────────────────────────────────────────
            u = session.universe
            if event or session.generation % 10 == 0:
                logger.log(
                    gen=session.generation,
                    pop=u.population(),
                    width=u.width,
                    height=u.height,
                    event=event,
                )

            # ── Render ─────────────────────────────────────────────
            stdscr.erase()
            render(stdscr, session, show_stats=show_stats)
            stdscr.refresh()

            time.sleep(session.delay / 1000.0)

    finally:
        logger.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Conway's Game of Life on a torus")
    parser.add_argument("--width", type=int, default=None,
                        help="Grid width (default: terminal width, "
                             f"or {DEFAULT_WIDTH} with --text)")
    parser.add_argument("--height", type=int, default=None,
                        help="Grid height (default: twice the terminal rows, "
                             f"or {DEFAULT_HEIGHT} with --text)")
    parser.add_argument("--delay", type=float, default=50.0,
                        help="Milliseconds between generations (default: 50)")
    parser.add_argument("--pattern", choices=sorted(PATTERNS), default=None,
                        help="Start from an empty grid with this pattern in the middle")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the random fill")
    parser.add_argument("--text", type=int, default=None, metavar="N",
                        help="Run N generations headlessly and print the grid")
    parser.add_argument("--stats-log", type=Path, default=LOG_PATH,
                        help=f"CSV stats path (default: {LOG_PATH.name} beside this script)")
    return parser.parse_args(argv)


def cli(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if args.text is not None:
        height = args.height if args.height is not None else DEFAULT_HEIGHT
        width = args.width if args.width is not None else DEFAULT_WIDTH
        session = build_session(args, height, width)
        print(run_text(session, args.text), end="")
        return
    try:
        curses.wrapper(main, args)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
