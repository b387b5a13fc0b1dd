import random

import pytest

from universe import Universe


@pytest.fixture
def entropy():
    """Deterministic entropy source factory."""

    def make(seed=1234):
        return random.Random(seed).random

    return make


@pytest.fixture
def empty_universe(entropy):
    def make(width=8, height=8):
        universe = Universe(width=width, height=height, random=entropy())
        universe.clear()
        return universe

    return make


@pytest.fixture
def live_set():
    """Live cells of a universe as a set of (row, col)."""

    def collect(universe):
        cells = universe.get_cells()
        return {divmod(int(i), universe.width) for i in cells.nonzero()[0]}

    return collect
