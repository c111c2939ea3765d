"""Tests for gradient noise and heightmap generation."""

import numpy as np
import pytest

from py_mapgraph.core.noise import (
    Heightmap,
    compute_slope,
    compute_slope_map,
    fbm,
    generate_heightmap,
    noise2d,
    noise3d,
    sample_bilinear,
    sample_nearest,
)


class TestNoise:
    """Test Perlin noise."""

    @pytest.mark.parametrize("x,y,expected", [
        (0.5, 0.5, -0.25),
        (1.25, 3.75, -0.20895767211914063),
        (10.3, -2.7, 0.52076856048000031),
        (123.456, 78.9, -0.21301695301070689),
    ])
    def test_reference_values(self, x, y, expected):
        assert noise2d(x, y) == pytest.approx(expected, abs=1e-12)

    def test_reference_value_3d(self):
        assert noise3d(0.3, 0.6, 0.9) == pytest.approx(-0.36831246776033261, abs=1e-12)

    def test_zero_on_lattice(self):
        for x, y in [(0, 0), (3, 7), (-5, 12), (255, 256)]:
            assert noise2d(float(x), float(y)) == 0.0

    def test_scalar_returns_float(self):
        assert isinstance(noise2d(0.3, 0.7), float)

    def test_vectorized_matches_scalar(self):
        xs = np.linspace(-10, 10, 37)
        ys = np.linspace(5, 25, 37)
        grid = noise2d(xs, ys)
        assert grid.shape == (37,)
        for x, y, v in zip(xs, ys, grid):
            assert v == pytest.approx(noise2d(float(x), float(y)), abs=1e-15)

    def test_range(self):
        gx, gy = np.meshgrid(np.linspace(0, 20, 101), np.linspace(0, 20, 101))
        values = noise2d(gx, gy)
        assert values.min() > -1.1
        assert values.max() < 1.1
        assert values.std() > 0.05


class TestFbm:
    """Test fractal Brownian motion."""

    @pytest.mark.parametrize("x,y", [(17.0, 42.0), (123.5, 9.25), (0.0, 500.0)])
    def test_single_octave_equals_scaled_noise(self, x, y):
        assert fbm(x, y, 1, 0.5, 2.0, 0.01) == noise2d(x * 0.01, y * 0.01)

    def test_normalized(self):
        gx, gy = np.meshgrid(np.arange(0, 200, 3.0), np.arange(0, 200, 3.0))
        values = fbm(gx, gy, 6, 0.5, 2.0, 0.05)
        assert np.all(np.abs(values) < 1.1)

    def test_octaves_add_detail(self):
        xs = np.arange(0, 100, dtype=np.float64)
        smooth = fbm(xs, np.zeros_like(xs), 1, 0.5, 2.0, 0.02)
        rough = fbm(xs, np.zeros_like(xs), 6, 0.5, 2.0, 0.02)
        assert not np.allclose(smooth, rough)


class TestHeightmap:
    """Test heightmap generation."""

    def test_shape_and_dtype(self):
        hm = generate_heightmap(80, 48, seed=7)
        assert hm.width == 80
        assert hm.height == 48
        assert hm.data.shape == (48, 80)
        assert hm.data.dtype == np.float32

    def test_range(self, island_heightmap):
        assert island_heightmap.data.min() >= 0.0
        assert island_heightmap.data.max() <= 1.0

    def test_island_falloff(self, island_heightmap):
        """Corners lie beyond the falloff radius; the middle does not."""
        data = island_heightmap.data
        assert data[0, 0] == 0.0
        assert data[-1, -1] == 0.0
        assert data[32, 32] > 0.0

    def test_matches_pointwise_fbm(self):
        hm = generate_heightmap(64, 64, seed=1234, octaves=3)
        x, y = 10, 20
        value = (fbm(x + 234 * 100, y + 1 * 100, 3, 0.5, 2.0, 0.01) + 1) * 0.5
        dx = (x / 64 - 0.5) * 2
        dy = (y / 64 - 0.5) * 2
        falloff = max(0.0, 1 - np.sqrt(dx * dx + dy * dy) * 0.8)
        assert hm.data[y, x] == pytest.approx(np.float32(value * falloff), rel=1e-6)

    def test_deterministic(self):
        a = generate_heightmap(64, 64, seed=99)
        b = generate_heightmap(64, 64, seed=99)
        np.testing.assert_array_equal(a.data, b.data)

    def test_seeds_differ(self):
        a = generate_heightmap(64, 64, seed=1)
        b = generate_heightmap(64, 64, seed=2)
        assert not np.array_equal(a.data, b.data)

    def test_progress(self, recording_progress):
        generate_heightmap(64, 64, seed=1, progress=recording_progress)
        assert recording_progress.reports[0][0] == 0
        assert recording_progress.reports[-1][0] == 100


class TestSampling:
    """Test sampling helpers."""

    @pytest.fixture
    def ramp(self, make_heightmap):
        return make_heightmap([[0, 1, 2], [3, 4, 5], [6, 7, 8]])

    def test_nearest(self, ramp):
        assert sample_nearest(ramp, 1.7, 2.2) == 7.0

    def test_nearest_out_of_bounds(self, ramp):
        assert sample_nearest(ramp, -0.5, 1) == 0.0
        assert sample_nearest(ramp, 3.0, 1) == 0.0

    def test_bilinear(self, ramp):
        assert sample_bilinear(ramp, 0.5, 0.5) == pytest.approx(2.0)
        assert sample_bilinear(ramp, 1.0, 1.0) == pytest.approx(4.0)

    def test_bilinear_clamps_upper_edge(self, ramp):
        assert sample_bilinear(ramp, 2.5, 2.0) == pytest.approx(8.0)

    def test_slope(self, ramp):
        # dx = (5 - 3) / 2, dy = (7 - 1) / 2
        assert compute_slope(ramp, 1, 1) == pytest.approx(np.sqrt(1 + 9))

    def test_slope_map_matches_pointwise(self, island_heightmap):
        slopes = compute_slope_map(island_heightmap)
        assert isinstance(slopes, Heightmap)
        assert slopes.data.shape == island_heightmap.data.shape
        for x, y in [(0, 0), (10, 40), (32, 32), (63, 63), (0, 17)]:
            assert slopes.data[y, x] == pytest.approx(compute_slope(island_heightmap, x, y), abs=1e-6)

    def test_flat_map_has_no_slope_inside(self, make_heightmap):
        slopes = compute_slope_map(make_heightmap(np.full((5, 5), 0.5)))
        assert np.all(slopes.data[1:-1, 1:-1] == 0)
