"""End-to-end generation scenarios driven through the node boundary."""

import numpy as np
import pytest

from py_mapgraph.core.city import Ward
from py_mapgraph.core.hydrology import D8_OFFSETS, PIT, flow_target
from py_mapgraph.core.noise import fbm, noise2d
from py_mapgraph.nodes import get_node


def _run_city(seed, size):
    blueprint = get_node("city-blueprint").execute(parameters={"seed": seed, "size": size})
    return get_node("city-generator").execute(blueprint)["city"].value


def _run_terrain(seed, sea_level):
    heightmap = get_node("heightmap-input").execute(
        parameters={"width": 64, "height": 64, "seed": seed})
    directions = get_node("flow-direction").execute(heightmap, {"seaLevel": sea_level})
    accumulated = get_node("flow-accumulation").execute(directions)
    return heightmap["heightmap"].value, accumulated["flowField"].value


class TestWalledCityScenario:
    """Blueprint seed=12345, size=25, all features on."""

    @pytest.fixture(scope="class")
    def layout(self):
        return _run_city(12345, 25)

    def test_special_wards(self, layout):
        wards = [p.ward for p in layout.patches]
        assert wards.count(Ward.CASTLE) == 1
        assert wards.count(Ward.MARKET) == 1
        assert wards.count(Ward.CATHEDRAL) == 1

    def test_gates_and_buildings(self, layout):
        assert 2 <= len(layout.gates) <= 4
        assert len(layout.buildings) > 0

    def test_bit_identical_rerun(self, layout):
        assert _run_city(12345, 25) == layout


class TestIslandHydrologyScenario:
    """Heightmap 64x64, seed=1, sea level 0."""

    @pytest.fixture(scope="class")
    def terrain(self):
        return _run_terrain(1, 0.0)

    def test_zero_elevation_cells_are_pits(self, terrain):
        heightmap, field = terrain
        zero = heightmap.data == 0
        assert zero.any()
        assert np.all(field.directions[zero] == PIT)

    def test_directions_valid(self, terrain):
        _, field = terrain
        assert field.directions.max() <= PIT

    def test_off_grid_flow_terminates(self, terrain):
        """Border cells draining off the map have no downstream cell, like PIT."""
        _, field = terrain
        h, w = field.directions.shape
        border = [(x, 0) for x in range(w)] + [(x, h - 1) for x in range(w)] + \
                 [(0, y) for y in range(h)] + [(w - 1, y) for y in range(h)]
        off_grid = 0
        for x, y in border:
            direction = int(field.directions[y, x])
            if direction == PIT:
                continue
            dx, dy = D8_OFFSETS[direction]
            if not (0 <= x + dx < w and 0 <= y + dy < h):
                off_grid += 1
                assert flow_target(x, y, direction, w, h) is None
        assert off_grid > 0

    def test_accumulation_at_least_one(self, terrain):
        _, field = terrain
        assert field.accumulation.min() >= 1

    def test_bit_identical_rerun(self, terrain):
        heightmap, field = terrain
        heightmap2, field2 = _run_terrain(1, 0.0)
        np.testing.assert_array_equal(heightmap.data, heightmap2.data)
        np.testing.assert_array_equal(field.directions, field2.directions)
        np.testing.assert_array_equal(field.accumulation, field2.accumulation)


class TestSingleOctaveScenario:
    """fbm with one octave is plain noise at the scaled coordinate."""

    @pytest.mark.parametrize("x,y,scale", [(12.0, 34.0, 0.01), (250.0, 3.5, 0.05), (-7.0, 7.0, 0.001)])
    def test_matches_noise2d(self, x, y, scale):
        for persistence, lacunarity in [(0.5, 2.0), (0.9, 3.0)]:
            assert fbm(x, y, 1, persistence, lacunarity, scale) == noise2d(x * scale, y * scale)
