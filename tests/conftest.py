"""Shared fixtures for the kernel tests."""

import numpy as np
import pytest

from py_mapgraph.core.city import CityBlueprint, generate_city
from py_mapgraph.core.noise import Heightmap, generate_heightmap


class RecordingProgress:
    """Progress sink that keeps every report."""

    def __init__(self):
        self.reports = []

    def report(self, percent, message):
        self.reports.append((percent, message))


@pytest.fixture
def recording_progress():
    return RecordingProgress()


@pytest.fixture
def make_heightmap():
    """Build a Heightmap from a nested list or array indexed [y][x]."""
    def _make(rows):
        data = np.asarray(rows, dtype=np.float32)
        return Heightmap(width=data.shape[1], height=data.shape[0], data=data)
    return _make


@pytest.fixture
def cone_heightmap(make_heightmap):
    """Single peak in the middle, strictly falling toward every edge."""
    size = 21
    ys, xs = np.mgrid[0:size, 0:size]
    dist = np.sqrt((xs - size // 2) ** 2 + (ys - size // 2) ** 2)
    return make_heightmap(1.0 - dist / dist.max() * 0.9)


@pytest.fixture(scope="session")
def island_heightmap():
    return generate_heightmap(64, 64, seed=1)


@pytest.fixture(scope="session")
def walled_city():
    return generate_city(CityBlueprint(seed=12345, size=25))
