"""
Core map generation functionality.
"""

from .mulberry_prng import Random
from .geometry import BoundingBox, Point
from .voronoi_graph import VoronoiDiagram, VoronoiRegion, build_voronoi, delaunay_triangulation
from .city import CityBlueprint, CityGenerator, CityLayout, Ward, generate_city
from .noise import Heightmap, fbm, generate_heightmap, noise2d, noise3d
from .hydrology import FlowField, Hydrology, HydrologyOptions, River, WatershedBasins, PIT
from .progress import LoggingProgress, NullProgress, ProgressSink

__all__ = ['Random', 'BoundingBox', 'Point',
           'VoronoiDiagram', 'VoronoiRegion', 'build_voronoi', 'delaunay_triangulation',
           'CityBlueprint', 'CityGenerator', 'CityLayout', 'Ward', 'generate_city',
           'Heightmap', 'fbm', 'generate_heightmap', 'noise2d', 'noise3d',
           'FlowField', 'Hydrology', 'HydrologyOptions', 'River', 'WatershedBasins', 'PIT',
           'LoggingProgress', 'NullProgress', 'ProgressSink']
