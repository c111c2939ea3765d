"""
Gradient noise and heightmap generation.

Improved Perlin noise over a fixed permutation table (doubled to 512
entries so lattice lookups never wrap), sampled in 3D with z = 0 for 2D
use. Functions accept scalars or NumPy arrays and are vectorized over
whole grids.
"""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import structlog

from .progress import ProgressSink, ensure_progress

logger = structlog.get_logger()

ArrayLike = Union[float, np.ndarray]

_PERMUTATION = [
    151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225, 140, 36, 103, 30, 69, 142,
    8, 99, 37, 240, 21, 10, 23, 190, 6, 148, 247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203,
    117, 35, 11, 32, 57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175, 74,
    165, 71, 134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122, 60, 211, 133, 230, 220,
    105, 92, 41, 55, 46, 245, 40, 244, 102, 143, 54, 65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132,
    187, 208, 89, 18, 169, 200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3,
    64, 52, 217, 226, 250, 124, 123, 5, 202, 38, 147, 118, 126, 255, 82, 85, 212, 207, 206, 59, 227,
    47, 16, 58, 17, 182, 189, 28, 42, 223, 183, 170, 213, 119, 248, 152, 2, 44, 154, 163, 70, 221,
    153, 101, 155, 167, 43, 172, 9, 129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185,
    112, 104, 218, 246, 97, 228, 251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241, 81, 51,
    145, 235, 249, 14, 239, 107, 49, 192, 214, 31, 181, 199, 106, 157, 184, 84, 204, 176, 115, 121,
    50, 45, 127, 4, 150, 254, 138, 236, 205, 93, 222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78,
    66, 215, 61, 156, 180,
]

P = np.array(_PERMUTATION + _PERMUTATION, dtype=np.int64)

# Island mask: height *= max(0, 1 - FALLOFF_STRENGTH * distance_from_center)
FALLOFF_STRENGTH = 0.8


@dataclass
class Heightmap:
    """Grid of elevations, data[y, x], nominally in [0, 1]."""
    width: int
    height: int
    data: np.ndarray  # float32, shape (height, width)

    def copy(self) -> "Heightmap":
        return Heightmap(self.width, self.height, self.data.copy())


def fade(t: ArrayLike) -> ArrayLike:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(t: ArrayLike, a: ArrayLike, b: ArrayLike) -> ArrayLike:
    return a + t * (b - a)


def grad(hash_value: np.ndarray, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> np.ndarray:
    """Dot product with one of the 12 edge gradients (4 repeated)."""
    h = hash_value & 15
    u = np.where(h < 8, x, y)
    v = np.where(h < 4, y, np.where((h == 12) | (h == 14), x, z))
    return np.where((h & 1) == 0, u, -u) + np.where((h & 2) == 0, v, -v)


def noise3d(x: ArrayLike, y: ArrayLike, z: ArrayLike) -> ArrayLike:
    """
    Improved Perlin noise in 3D.

    Args:
        x, y, z: Coordinates (scalars or broadcastable arrays)

    Returns:
        Noise value(s) in roughly [-1, 1]; a float for scalar input
    """
    scalar = np.isscalar(x) and np.isscalar(y) and np.isscalar(z)
    x, y, z = np.broadcast_arrays(np.asarray(x, dtype=np.float64),
                                  np.asarray(y, dtype=np.float64),
                                  np.asarray(z, dtype=np.float64))

    fx = np.floor(x)
    fy = np.floor(y)
    fz = np.floor(z)
    X = fx.astype(np.int64) & 255
    Y = fy.astype(np.int64) & 255
    Z = fz.astype(np.int64) & 255

    x = x - fx
    y = y - fy
    z = z - fz

    u = fade(x)
    v = fade(y)
    w = fade(z)

    A = P[X] + Y
    AA = P[A] + Z
    AB = P[A + 1] + Z
    B = P[X + 1] + Y
    BA = P[B] + Z
    BB = P[B + 1] + Z

    result = _lerp(
        w,
        _lerp(
            v,
            _lerp(u, grad(P[AA], x, y, z), grad(P[BA], x - 1, y, z)),
            _lerp(u, grad(P[AB], x, y - 1, z), grad(P[BB], x - 1, y - 1, z)),
        ),
        _lerp(
            v,
            _lerp(u, grad(P[AA + 1], x, y, z - 1), grad(P[BA + 1], x - 1, y, z - 1)),
            _lerp(u, grad(P[AB + 1], x, y - 1, z - 1), grad(P[BB + 1], x - 1, y - 1, z - 1)),
        ),
    )
    return float(result) if scalar else result


def noise2d(x: ArrayLike, y: ArrayLike) -> ArrayLike:
    """2D noise: 3D noise on the z = 0 plane."""
    return noise3d(x, y, 0.0)


def fbm(x: ArrayLike, y: ArrayLike, octaves: int, persistence: float,
        lacunarity: float, scale: float) -> ArrayLike:
    """
    Fractal Brownian motion.

    Sums octaves of noise2d, multiplying frequency by lacunarity and
    amplitude by persistence each octave, normalized by the total
    amplitude so the result stays in [-1, 1].

    Args:
        x, y: Sample coordinates
        octaves: Number of layers
        persistence: Amplitude multiplier per octave
        lacunarity: Frequency multiplier per octave
        scale: Base frequency

    Returns:
        Normalized noise value(s)
    """
    value = 0.0
    amplitude = 1.0
    frequency = scale
    max_value = 0.0

    for _ in range(octaves):
        value = value + amplitude * noise2d(np.multiply(x, frequency), np.multiply(y, frequency))
        max_value += amplitude
        amplitude *= persistence
        frequency *= lacunarity

    if max_value == 0:
        return value
    return value / max_value


def generate_heightmap(width: int, height: int, seed: int, octaves: int = 6,
                       persistence: float = 0.5, lacunarity: float = 2.0,
                       scale: float = 0.01,
                       progress: Optional[ProgressSink] = None) -> Heightmap:
    """
    Generate an island-biased heightmap from fractal noise.

    The seed offsets the sampling domain (x by (seed % 1000) * 100, y by
    (seed // 1000) * 100), so different seeds read different noise regions.
    fbm output is remapped to [0, 1] and multiplied by a radial falloff.

    Args:
        width: Grid width in cells
        height: Grid height in cells
        seed: Domain offset seed
        octaves: fbm octaves
        persistence: fbm persistence
        lacunarity: fbm lacunarity
        scale: fbm base frequency
        progress: Optional progress sink

    Returns:
        Heightmap with float32 data shaped (height, width)
    """
    progress = ensure_progress(progress)
    logger.info("Generating heightmap", width=width, height=height, seed=seed,
                octaves=octaves, persistence=persistence, lacunarity=lacunarity, scale=scale)
    progress.report(0, "Generating heightmap")

    offset_x = (seed % 1000) * 100
    offset_y = (seed // 1000) * 100

    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    gx, gy = np.meshgrid(xs, ys)

    values = fbm(gx + offset_x, gy + offset_y, octaves, persistence, lacunarity, scale)
    values = (values + 1) * 0.5
    progress.report(80, "Applying island falloff")

    dx = (gx / width - 0.5) * 2
    dy = (gy / height - 0.5) * 2
    falloff = np.maximum(0.0, 1 - np.sqrt(dx * dx + dy * dy) * FALLOFF_STRENGTH)
    data = (values * falloff).astype(np.float32)

    logger.info("Heightmap generated", min_height=float(data.min()), max_height=float(data.max()))
    progress.report(100, "Done")
    return Heightmap(width, height, data)


def sample_nearest(heightmap: Heightmap, x: float, y: float) -> float:
    """Value of the cell containing (x, y); 0 outside the grid."""
    ix = int(np.floor(x))
    iy = int(np.floor(y))
    if ix < 0 or ix >= heightmap.width or iy < 0 or iy >= heightmap.height:
        return 0.0
    return float(heightmap.data[iy, ix])


def sample_bilinear(heightmap: Heightmap, x: float, y: float) -> float:
    """Bilinear interpolation; upper sample indices clamp to the last row/column."""
    x0 = int(np.floor(x))
    y0 = int(np.floor(y))
    x1 = min(x0 + 1, heightmap.width - 1)
    y1 = min(y0 + 1, heightmap.height - 1)

    fx = x - x0
    fy = y - y0

    v00 = sample_nearest(heightmap, x0, y0)
    v10 = sample_nearest(heightmap, x1, y0)
    v01 = sample_nearest(heightmap, x0, y1)
    v11 = sample_nearest(heightmap, x1, y1)

    v0 = v00 * (1 - fx) + v10 * fx
    v1 = v01 * (1 - fx) + v11 * fx
    return v0 * (1 - fy) + v1 * fy


def compute_slope(heightmap: Heightmap, x: int, y: int) -> float:
    """Central-difference slope magnitude at a cell (off-grid samples read 0)."""
    h_left = sample_nearest(heightmap, x - 1, y)
    h_right = sample_nearest(heightmap, x + 1, y)
    h_up = sample_nearest(heightmap, x, y - 1)
    h_down = sample_nearest(heightmap, x, y + 1)

    dx = (h_right - h_left) / 2
    dy = (h_down - h_up) / 2
    return float(np.sqrt(dx * dx + dy * dy))


def compute_slope_map(heightmap: Heightmap) -> Heightmap:
    """
    Slope magnitude for every cell.

    Same stencil as compute_slope(), vectorized: the grid is zero-padded so
    border cells see 0 beyond the edge.
    """
    padded = np.pad(heightmap.data.astype(np.float64), 1, mode="constant", constant_values=0.0)
    dx = (padded[1:-1, 2:] - padded[1:-1, :-2]) / 2
    dy = (padded[2:, 1:-1] - padded[:-2, 1:-1]) / 2
    slopes = np.sqrt(dx * dx + dy * dy).astype(np.float32)
    return Heightmap(heightmap.width, heightmap.height, slopes)
