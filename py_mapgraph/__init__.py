"""
py_mapgraph - generation kernel for a node-graph procedural map editor.

Two pipelines share one seeded PRNG and one polygon kernel:
- Voronoi/Delaunay settlement synthesis (walled city layouts)
- Fractal-noise heightmaps and D8 hydrology (flow, rivers, basins)
"""

__version__ = "0.1.0"
