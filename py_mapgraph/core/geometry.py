"""
Stateless 2D vector and polygon math.

Points are immutable ``Point`` named tuples; polygons are sequences of
points closed implicitly (last vertex connects back to the first). Winding
order is never assumed.
"""

import math
from typing import List, NamedTuple, Sequence, Tuple


class Point(NamedTuple):
    """2D coordinate."""
    x: float
    y: float


class BoundingBox(NamedTuple):
    """Axis-aligned bounding box."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float


Polygon = Sequence[Point]

# Below this shoelace magnitude a polygon is treated as having no area
DEGENERATE_AREA = 1e-10


# Point operations

def distance(a: Point, b: Point) -> float:
    dx = b.x - a.x
    dy = b.y - a.y
    return math.sqrt(dx * dx + dy * dy)


def lerp(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


def add(a: Point, b: Point) -> Point:
    return Point(a.x + b.x, a.y + b.y)


def subtract(a: Point, b: Point) -> Point:
    return Point(a.x - b.x, a.y - b.y)


def scale(p: Point, s: float) -> Point:
    return Point(p.x * s, p.y * s)


def normalize(p: Point) -> Point:
    """Unit vector along p; the zero vector maps to itself."""
    length = math.sqrt(p.x * p.x + p.y * p.y)
    if length == 0:
        return Point(0.0, 0.0)
    return Point(p.x / length, p.y / length)


def perpendicular(p: Point) -> Point:
    return Point(-p.y, p.x)


def dot(a: Point, b: Point) -> float:
    return a.x * b.x + a.y * b.y


def cross(a: Point, b: Point) -> float:
    return a.x * b.y - a.y * b.x


# Polygon operations

def signed_area(polygon: Polygon) -> float:
    """Shoelace area, positive for counter-clockwise (y-up) winding."""
    n = len(polygon)
    area = 0.0
    for i in range(n):
        a = polygon[i]
        b = polygon[(i + 1) % n]
        area += a.x * b.y - b.x * a.y
    return area * 0.5


def polygon_centroid(polygon: Polygon) -> Point:
    """
    Area-weighted centroid of a polygon.

    Falls back to the vertex average when the polygon has (almost) no area,
    which avoids dividing by a near-zero shoelace sum.

    Args:
        polygon: Polygon vertices in either winding order

    Returns:
        Centroid point
    """
    n = len(polygon)
    if n == 0:
        return Point(0.0, 0.0)

    cx = 0.0
    cy = 0.0
    area = 0.0
    for i in range(n):
        a = polygon[i]
        b = polygon[(i + 1) % n]
        f = a.x * b.y - b.x * a.y
        cx += (a.x + b.x) * f
        cy += (a.y + b.y) * f
        area += f

    area *= 0.5
    if abs(area) < DEGENERATE_AREA:
        return Point(sum(p.x for p in polygon) / n, sum(p.y for p in polygon) / n)

    factor = 1.0 / (6.0 * area)
    return Point(cx * factor, cy * factor)


def polygon_area(polygon: Polygon) -> float:
    """Unsigned area; independent of winding order."""
    return abs(signed_area(polygon))


def polygon_perimeter(polygon: Polygon) -> float:
    n = len(polygon)
    return sum(distance(polygon[i], polygon[(i + 1) % n]) for i in range(n))


def is_point_in_polygon(point: Point, polygon: Polygon) -> bool:
    """Even-odd ray casting test."""
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > point.y) != (yj > point.y) and point.x < (xj - xi) * (point.y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def shrink_polygon(polygon: Polygon, amount: float) -> List[Point]:
    """Pull every vertex toward the centroid by a fixed distance."""
    centroid = polygon_centroid(polygon)
    result = []
    for p in polygon:
        d = distance(p, centroid)
        result.append(p if d == 0 else lerp(p, centroid, amount / d))
    return result


def expand_polygon(polygon: Polygon, amount: float) -> List[Point]:
    return shrink_polygon(polygon, -amount)


def inset_polygon(polygon: Polygon, inset: float) -> List[Point]:
    """
    Move every vertex inward along the bisector of its adjacent edge normals.

    The per-vertex displacement is capped at three times the inset so very
    sharp corners do not shoot across the polygon. The vertex count is kept;
    self-intersections on acute corners are not repaired.

    Args:
        polygon: Polygon vertices in either winding order
        inset: Distance to move edges inward

    Returns:
        New list of vertices
    """
    n = len(polygon)
    if n < 3:
        return list(polygon)

    # perpendicular() points left of an edge, which is inside for CCW rings
    side = 1.0 if signed_area(polygon) >= 0 else -1.0

    result = []
    for i in range(n):
        prev = polygon[(i - 1) % n]
        curr = polygon[i]
        nxt = polygon[(i + 1) % n]

        normal1 = scale(perpendicular(normalize(subtract(curr, prev))), side)
        normal2 = scale(perpendicular(normalize(subtract(nxt, curr))), side)
        bisector = normalize(add(normal1, normal2))

        factor = inset / max(0.1, abs(dot(bisector, normal1)))
        result.append(add(curr, scale(bisector, min(factor, inset * 3))))

    return result


def polygon_bounds(polygon: Polygon) -> BoundingBox:
    """Bounding box of the vertices; all zeros for an empty polygon."""
    if len(polygon) == 0:
        return BoundingBox(0.0, 0.0, 0.0, 0.0)
    xs = [p.x for p in polygon]
    ys = [p.y for p in polygon]
    return BoundingBox(min(xs), min(ys), max(xs), max(ys))


def point_along_polygon(polygon: Polygon, offset: float) -> Point:
    """
    Walk a closed ring by arc length.

    Args:
        polygon: Closed ring of vertices
        offset: Distance travelled from the first vertex (wraps around)

    Returns:
        Point at that arc length
    """
    n = len(polygon)
    if n == 0:
        return Point(0.0, 0.0)
    perimeter = polygon_perimeter(polygon)
    if perimeter == 0:
        return polygon[0]

    remaining = offset % perimeter
    for i in range(n):
        a = polygon[i]
        b = polygon[(i + 1) % n]
        length = distance(a, b)
        if remaining <= length and length > 0:
            return lerp(a, b, remaining / length)
        remaining -= length
    return polygon[0]


def to_points(coords: Sequence[Tuple[float, float]]) -> Tuple[Point, ...]:
    """Convert (x, y) pairs to an immutable point tuple."""
    return tuple(Point(float(x), float(y)) for x, y in coords)
