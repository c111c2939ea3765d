"""
Delaunay triangulation and Voronoi partition for settlement synthesis.

Pipeline:
1. generate_spiral_seeds() - golden-angle spiral of jittered sites
2. delaunay_triangulation() - Bowyer-Watson insertion inside a super-triangle
3. build_voronoi() - circumcenter polygons per site, clipped to the bounds
4. relax_seeds() - Lloyd relaxation (sites moved to cell centroids)

Regions are addressed by integer id; adjacency is stored as id lists.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from .geometry import Point, Polygon, polygon_centroid
from .mulberry_prng import Random

logger = structlog.get_logger()

GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))

# Circumcircle determinant below which three sites count as collinear
COLLINEAR_EPSILON = 1e-10


@dataclass(frozen=True)
class Triangle:
    """Delaunay triangle over site indices with its cached circumcircle."""
    a: int
    b: int
    c: int
    circumcenter: Point
    circumradius: float

    @property
    def vertices(self) -> Tuple[int, int, int]:
        return (self.a, self.b, self.c)

    @property
    def edges(self) -> Tuple[Tuple[int, int], ...]:
        return ((self.a, self.b), (self.b, self.c), (self.c, self.a))

    def circumcircle_contains(self, p: Point) -> bool:
        dx = p.x - self.circumcenter.x
        dy = p.y - self.circumcenter.y
        return dx * dx + dy * dy < self.circumradius * self.circumradius


@dataclass
class VoronoiRegion:
    """Voronoi cell of one site."""
    id: int
    site: int  # Index of the seed in the input sequence
    seed: Point
    vertices: Tuple[Point, ...]
    neighbors: List[int] = field(default_factory=list)  # Region ids


@dataclass
class VoronoiDiagram:
    """Planar partition produced by build_voronoi()."""
    width: float
    height: float
    regions: List[VoronoiRegion]
    triangles: List[Triangle]


def generate_spiral_seeds(count: int, center: Point, radius: float, rng: Random) -> List[Point]:
    """
    Sample sites along a golden-angle spiral.

    Radius grows with sqrt(i / count) for even areal coverage; both radius
    and angle get a random jitter.

    Args:
        count: Number of sites
        center: Spiral center
        radius: Nominal outer radius
        rng: Shared random source

    Returns:
        List of site points
    """
    points = []
    for i in range(count):
        t = i / count
        r = radius * math.sqrt(t) * (0.8 + 0.4 * rng.float())
        angle = i * GOLDEN_ANGLE + rng.float() * 0.2
        points.append(Point(center.x + r * math.cos(angle), center.y + r * math.sin(angle)))
    return points


def circumcircle(a: Point, b: Point, c: Point) -> Optional[Tuple[Point, float]]:
    """
    Circumcircle of a triangle.

    Returns:
        (center, radius), or None when the points are (nearly) collinear
    """
    d = 2 * (a.x * (b.y - c.y) + b.x * (c.y - a.y) + c.x * (a.y - b.y))
    if abs(d) < COLLINEAR_EPSILON:
        return None

    a2 = a.x * a.x + a.y * a.y
    b2 = b.x * b.x + b.y * b.y
    c2 = c.x * c.x + c.y * c.y
    ux = (a2 * (b.y - c.y) + b2 * (c.y - a.y) + c2 * (a.y - b.y)) / d
    uy = (a2 * (c.x - b.x) + b2 * (a.x - c.x) + c2 * (b.x - a.x)) / d

    center = Point(ux, uy)
    return center, math.sqrt((a.x - ux) ** 2 + (a.y - uy) ** 2)


def _make_triangle(sites: Sequence[Point], a: int, b: int, c: int) -> Optional[Triangle]:
    circle = circumcircle(sites[a], sites[b], sites[c])
    if circle is None:
        return None
    return Triangle(a, b, c, circle[0], circle[1])


def delaunay_triangulation(points: Sequence[Point], width: float, height: float) -> List[Triangle]:
    """
    Bowyer-Watson incremental Delaunay triangulation.

    Starts from one super-triangle enclosing the bounds, inserts the points
    one at a time (removing every triangle whose circumcircle contains the
    point and fanning the cavity boundary to it) and finally drops all
    triangles touching a super-triangle vertex. Collinear fans are skipped.

    Args:
        points: Sites to triangulate
        width: Width of the generation bounds
        height: Height of the generation bounds

    Returns:
        Triangles whose vertex indices refer to ``points``
    """
    n = len(points)
    margin = max(width, height) * 2
    sites = list(points) + [
        Point(-margin, -margin),
        Point(width + margin, -margin),
        Point(width / 2, height + margin),
    ]

    super_triangle = _make_triangle(sites, n, n + 1, n + 2)
    if super_triangle is None:
        return []
    triangles: List[Triangle] = [super_triangle]
    skipped = 0

    for index in range(n):
        point = sites[index]
        bad = [t for t in triangles if t.circumcircle_contains(point)]
        if not bad:
            continue

        # Cavity boundary: edges owned by exactly one bad triangle
        edge_counts = Counter(tuple(sorted(edge)) for t in bad for edge in t.edges)
        boundary = [
            edge for t in bad for edge in t.edges
            if edge_counts[tuple(sorted(edge))] == 1
        ]

        bad_ids = {id(t) for t in bad}
        triangles = [t for t in triangles if id(t) not in bad_ids]

        for u, v in boundary:
            triangle = _make_triangle(sites, u, v, index)
            if triangle is None:
                skipped += 1
                continue
            triangles.append(triangle)

    result = [t for t in triangles if max(t.vertices) < n]

    logger.debug("Delaunay triangulation complete",
                 sites=n, triangles=len(result), degenerate_skipped=skipped)
    return result


def clip_polygon_to_bounds(polygon: Polygon, width: float, height: float) -> List[Point]:
    """
    Sutherland-Hodgman clip against the rectangle [0, width] x [0, height].

    Four half-plane passes: x >= 0, x <= width, y >= 0, y <= height.
    """
    def x_cut(a: Point, b: Point, x: float) -> Point:
        return Point(x, a.y + (b.y - a.y) * (x - a.x) / (b.x - a.x))

    def y_cut(a: Point, b: Point, y: float) -> Point:
        return Point(a.x + (b.x - a.x) * (y - a.y) / (b.y - a.y), y)

    planes = [
        (lambda p: p.x >= 0, lambda a, b: x_cut(a, b, 0.0)),
        (lambda p: p.x <= width, lambda a, b: x_cut(a, b, width)),
        (lambda p: p.y >= 0, lambda a, b: y_cut(a, b, 0.0)),
        (lambda p: p.y <= height, lambda a, b: y_cut(a, b, height)),
    ]

    result = list(polygon)
    for inside, intersect in planes:
        if not result:
            break
        source = result
        result = []
        for i, current in enumerate(source):
            nxt = source[(i + 1) % len(source)]
            if inside(current):
                result.append(current)
                if not inside(nxt):
                    result.append(intersect(current, nxt))
            elif inside(nxt):
                result.append(intersect(current, nxt))

    return result


def build_voronoi(seeds: Sequence[Point], width: float, height: float) -> VoronoiDiagram:
    """
    Build the clipped Voronoi partition of the seeds.

    Each cell is the polygon through the circumcenters of the site's
    incident triangles, sorted by angle around their mean. Two regions are
    neighbors iff their sites share a surviving Delaunay triangle. Sites
    without any triangle produce no region.

    Args:
        seeds: Site points
        width: Bounds width
        height: Bounds height

    Returns:
        VoronoiDiagram with symmetric, deduplicated adjacency
    """
    triangles = delaunay_triangulation(seeds, width, height)

    site_triangles: List[List[Triangle]] = [[] for _ in seeds]
    for t in triangles:
        for v in t.vertices:
            site_triangles[v].append(t)

    regions: List[VoronoiRegion] = []
    site_to_region: Dict[int, int] = {}

    for site, seed in enumerate(seeds):
        tris = site_triangles[site]
        if not tris:
            continue

        centers = [t.circumcenter for t in tris]
        mx = sum(c.x for c in centers) / len(centers)
        my = sum(c.y for c in centers) / len(centers)
        centers.sort(key=lambda c: math.atan2(c.y - my, c.x - mx))

        clipped = clip_polygon_to_bounds(centers, width, height)
        region = VoronoiRegion(id=len(regions), site=site, seed=seed, vertices=tuple(clipped))
        site_to_region[site] = region.id
        regions.append(region)

    linked = [set() for _ in regions]
    for t in triangles:
        for u, v in t.edges:
            ra = site_to_region.get(u)
            rb = site_to_region.get(v)
            if ra is None or rb is None or ra == rb or rb in linked[ra]:
                continue
            linked[ra].add(rb)
            linked[rb].add(ra)
            regions[ra].neighbors.append(rb)
            regions[rb].neighbors.append(ra)

    return VoronoiDiagram(width=width, height=height, regions=regions, triangles=triangles)


def lloyd_relax(regions: Sequence[VoronoiRegion]) -> List[Point]:
    """Move every site to the centroid of its cell."""
    return [
        polygon_centroid(r.vertices) if r.vertices else r.seed
        for r in regions
    ]


def relax_seeds(seeds: Sequence[Point], width: float, height: float,
                iterations: int = 2) -> List[Point]:
    """
    Apply Lloyd's relaxation to improve site distribution.

    Args:
        seeds: Initial sites
        width: Bounds width
        height: Bounds height
        iterations: Number of relaxation passes

    Returns:
        Relaxed site coordinates
    """
    logger.info("Starting Lloyd's relaxation", iterations=iterations, sites=len(seeds))

    points = list(seeds)
    for iteration in range(iterations):
        diagram = build_voronoi(points, width, height)
        points = lloyd_relax(diagram.regions)
        logger.debug("Relaxation iteration complete", iteration=iteration + 1, sites=len(points))

    return points
