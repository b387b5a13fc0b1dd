#!/usr/bin/env python3
"""
Profiling harness for the toroidal Life universe.

Runs generations headlessly, either under cProfile or with a section
timer injected into the universe, then prints where time is spent.

Usage:
  python3 life_bench.py                  # 500 generations, summary
  python3 life_bench.py -n 1000          # 1000 generations
  python3 life_bench.py --line-timing    # per-generation component timing
  python3 life_bench.py --dump prof.out  # dump cProfile binary for snakeviz etc.
"""

from __future__ import annotations

import argparse
import cProfile
import pstats
import random
import time
from contextlib import contextmanager
from io import StringIO
from typing import Iterator

import numpy as np

from life import half_block_rows
from universe import DEFAULT_HEIGHT, DEFAULT_WIDTH, TICK_LABEL, Universe


class SectionTimer:
    """
    Collects wall-clock durations per label.

    Instances are callable with a label and return a context manager, which
    is the shape `Universe(timer=...)` expects.
    """

    def __init__(self) -> None:
        self.samples: dict[str, list[float]] = {}

    @contextmanager
    def __call__(self, label: str) -> Iterator[None]:
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.samples.setdefault(label, []).append(time.perf_counter() - t0)

    def count(self, label: str) -> int:
        return len(self.samples.get(label, []))

    def total(self, label: str) -> float:
        return sum(self.samples.get(label, []))


def stats_line(name: str, data: list[float]) -> str:
    arr = np.array(data) * 1000  # to ms
    return (f"{name:<25} {arr.mean():8.3f} {np.median(arr):8.3f} "
            f"{np.percentile(arr, 95):8.3f} {np.percentile(arr, 99):8.3f} "
            f"{arr.max():8.3f}")


def simulate_render_work(universe: Universe, timer: SectionTimer) -> None:
    """Time the work a front-end does per frame, without a terminal."""
    with timer("half_block_rows"):
        half_block_rows(universe.cells(), universe.width, universe.height)
    with timer("cells_packed"):
        universe.cells_packed()
    with timer("render"):
        universe.render()


def run_benchmark(
    n_generations: int,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    line_timing: bool = False,
    dump_path: str | None = None,
    seed: int = 0,
) -> None:
    """Run the benchmark for n_generations and report results."""

    timer = SectionTimer()
    rng = random.Random(seed)
    universe = Universe(width=width, height=height, random=rng.random, timer=timer)

    print(f"Grid: {universe.height}x{universe.width}  "
          f"Generations: {n_generations}  "
          f"Initial pop: {universe.population():,}")
    print()

    # ── Per-generation component timing ────────────────────────────
    if line_timing:
        for gen in range(n_generations):
            universe.tick()
            simulate_render_work(universe, timer)

            if (gen + 1) % 100 == 0:
                recent = timer.samples[TICK_LABEL][-100:]
                avg_ms = sum(recent) / len(recent) * 1000
                print(f"  gen {gen + 1}/{n_generations}  "
                      f"avg tick {avg_ms:.3f}ms  "
                      f"pop {universe.population():,}")

        print()
        print("=== Per-Generation Component Breakdown (ms) ===")
        print(f"{'Component':<25} {'Mean':>8} {'P50':>8} {'P95':>8} {'P99':>8} {'Max':>8}")
        print("-" * 73)
        for label in sorted(timer.samples):
            print(stats_line(label, timer.samples[label]))

        cells_per_s = universe.size * n_generations / max(timer.total(TICK_LABEL), 1e-9)
        print(f"\nCell updates/s (tick only): {cells_per_s:,.0f}")
        return

    # ── cProfile run ───────────────────────────────────────────────
    def profiled_run() -> None:
        for _ in range(n_generations):
            universe.tick()

    profiler = cProfile.Profile()
    wall_t0 = time.perf_counter()
    profiler.runctx("profiled_run()", globals(), locals())
    wall_dt = time.perf_counter() - wall_t0

    print(f"Wall time: {wall_dt:.2f}s  ({wall_dt / max(n_generations, 1) * 1000:.3f}ms/gen)")
    print(f"Generations/s: {n_generations / max(wall_dt, 1e-9):.1f}")
    print()

    if dump_path:
        profiler.dump_stats(dump_path)
        print(f"Profile data saved to: {dump_path}")
        print(f"  View with: python3 -m pstats {dump_path}")
        print()

    buf = StringIO()
    ps = pstats.Stats(profiler, stream=buf)
    ps.sort_stats("cumulative")
    ps.print_stats(25)
    print(buf.getvalue())


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Profile the Life universe")
    parser.add_argument("-n", "--generations", type=int, default=500,
                        help="Number of generations to run (default: 500)")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH,
                        help=f"Grid width (default: {DEFAULT_WIDTH})")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT,
                        help=f"Grid height (default: {DEFAULT_HEIGHT})")
    parser.add_argument("--seed", type=int, default=0,
                        help="Seed for the random fill (default: 0)")
    parser.add_argument("--line-timing", action="store_true",
                        help="Per-generation component timing instead of cProfile")
    parser.add_argument("--dump", type=str, default=None,
                        help="Dump cProfile binary to this path")
    args = parser.parse_args(argv)

    run_benchmark(
        n_generations=args.generations,
        width=args.width,
        height=args.height,
        line_timing=args.line_timing,
        dump_path=args.dump,
        seed=args.seed,
    )


if __name__ == "__main__":
    main()
