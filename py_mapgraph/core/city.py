"""
Walled-city synthesis over a relaxed Voronoi partition.

Process:
1. build_patches() - spiral sites, Lloyd relaxation, final Voronoi cells
2. optimize_junctions() - snap near-duplicate vertices to shared junctions
3. build_walls() - inner cells, wall ring, 2-4 gates (only if requested)
4. assign_wards() - citadel, market, cathedral, then farm/wilderness/alleys
5. build_streets() - gate -> center -> next gate polylines
6. build_buildings() - keeps, churches, farmhouses and subdivided house lots

Degenerate intermediate geometry (fewer than 3 vertices, zero area,
stalled wall chains) is skipped; a best-effort layout is always returned.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from .geometry import (
    BoundingBox,
    Point,
    distance,
    inset_polygon,
    lerp,
    point_along_polygon,
    polygon_area,
    polygon_bounds,
    polygon_centroid,
    polygon_perimeter,
)
from .mulberry_prng import Random
from .progress import ProgressSink, ensure_progress
from .voronoi_graph import build_voronoi, generate_spiral_seeds, relax_seeds

logger = structlog.get_logger()


class Ward(str, Enum):
    """Functional district of a city cell."""
    ALLEYS = "alleys"
    CASTLE = "castle"
    CATHEDRAL = "cathedral"
    MARKET = "market"
    FARM = "farm"
    WILDERNESS = "wilderness"


class BuildingKind(str, Enum):
    HOUSE = "house"
    CHURCH = "church"
    KEEP = "keep"


class CityBlueprint(BaseModel):
    """Inputs of one city generation pass."""

    model_config = ConfigDict(frozen=True)

    seed: int = Field(default=12345, ge=0, description="Random seed for generation")
    size: int = Field(default=20, ge=6, le=60, description="Number of Voronoi patches")
    walls: bool = Field(default=True, description="Generate city walls")
    citadel: bool = Field(default=True, description="Include a castle/citadel")
    plaza: bool = Field(default=True, description="Include a market plaza")
    temple: bool = Field(default=True, description="Include a cathedral/temple")


class CityPatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    shape: Tuple[Point, ...]
    ward: Ward
    within_walls: bool


class WallSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Point
    end: Point
    has_tower: bool = False


class Building(BaseModel):
    model_config = ConfigDict(frozen=True)

    footprint: Tuple[Point, ...]
    ward: Ward
    kind: BuildingKind


class CityLayout(BaseModel):
    """Immutable result of a city generation pass."""

    model_config = ConfigDict(frozen=True)

    patches: Tuple[CityPatch, ...]
    streets: Tuple[Tuple[Point, ...], ...]
    walls: Tuple[WallSegment, ...]
    wall_shape: Tuple[Point, ...] = ()
    buildings: Tuple[Building, ...]
    gates: Tuple[Point, ...]
    bounds: BoundingBox


@dataclass
class Cell:
    """Working state of one Voronoi cell during generation."""
    id: int
    shape: Tuple[Point, ...]
    neighbors: List[int] = field(default_factory=list)  # Cell ids
    ward: Ward = Ward.ALLEYS
    within_walls: bool = False

    @property
    def is_degenerate(self) -> bool:
        return len(self.shape) < 3


class CityGenerator:
    """
    Runs the fixed city pipeline for one blueprint.

    All randomness comes from a single Random seeded with blueprint.seed,
    so a blueprint always yields the same layout.
    """

    JUNCTION_THRESHOLD = 2.0
    EDGE_TOLERANCE = 0.1
    WALL_RADIUS_FRACTION = 0.6
    SEED_RADIUS_FRACTION = 0.9
    RELAX_ITERATIONS = 2
    TOWER_SPACING = 5

    KEEP_INSET = 5.0
    CHURCH_INSET = 4.0
    LOT_INSET = 2.0
    BUILDING_INSET = 0.5
    MIN_ALLEY_AREA = 30.0
    MIN_LOT_AREA = 20.0
    MIN_BUILDING_AREA = 8.0
    FARM_HOUSE_CHANCE = 0.3
    FARM_CHANCE = 0.7
    L_SHAPE_CHANCE = 0.3

    def __init__(self, blueprint: CityBlueprint, max_subdivision_depth: Optional[int] = None):
        """
        Initialize the city generator.

        Args:
            blueprint: City blueprint
            max_subdivision_depth: Recursion limit for lot subdivision
                                   (defaults to settings.max_subdivision_depth)
        """
        self.blueprint = blueprint
        if max_subdivision_depth is None:
            max_subdivision_depth = settings.max_subdivision_depth
        self.max_subdivision_depth = max_subdivision_depth
        self.city_radius = 30 + blueprint.size * 2
        self.center = Point(float(self.city_radius), float(self.city_radius))
        self._reset()

    def _reset(self) -> None:
        self.random = Random(self.blueprint.seed)
        self.cells: List[Cell] = []
        self.inner_ids: List[int] = []
        self.wall_shape: Tuple[Point, ...] = ()
        self.wall_closed = False
        self.gates: List[Point] = []
        self.streets: List[Tuple[Point, ...]] = []
        self.buildings: List[Building] = []

    def build(self, progress: Optional[ProgressSink] = None) -> CityLayout:
        """
        Run every stage and return the layout.

        Args:
            progress: Optional progress sink

        Returns:
            CityLayout
        """
        progress = ensure_progress(progress)
        logger.info("Generating city", seed=self.blueprint.seed, size=self.blueprint.size,
                    walls=self.blueprint.walls)
        self._reset()

        progress.report(0, "Building patches")
        self.build_patches()
        progress.report(30, "Optimizing junctions")
        self.optimize_junctions()
        if self.blueprint.walls:
            progress.report(40, "Building walls")
            self.build_walls()
        progress.report(55, "Assigning wards")
        self.assign_wards()
        progress.report(65, "Laying out streets")
        self.build_streets()
        progress.report(70, "Placing buildings")
        self.build_buildings()
        progress.report(100, "Done")

        layout = self.to_layout()
        logger.info("City generated", patches=len(layout.patches), gates=len(layout.gates),
                    streets=len(layout.streets), buildings=len(layout.buildings))
        return layout

    def build_patches(self) -> None:
        """Create one cell per region of the relaxed Voronoi partition."""
        size = self.blueprint.size
        extent = self.city_radius * 2.0

        seeds = generate_spiral_seeds(size, self.center,
                                      self.city_radius * self.SEED_RADIUS_FRACTION, self.random)
        seeds = relax_seeds(seeds, extent, extent, iterations=self.RELAX_ITERATIONS)
        diagram = build_voronoi(seeds, extent, extent)

        self.cells = [
            Cell(id=region.id, shape=region.vertices, neighbors=list(region.neighbors))
            for region in diagram.regions
        ]
        logger.info("Patches built", cells=len(self.cells))

    def optimize_junctions(self) -> None:
        """
        Collapse vertices closer than JUNCTION_THRESHOLD.

        Every vertex snaps to the first junction seen within the threshold,
        so cells sharing an edge keep identical endpoints. Consecutive
        duplicates are then dropped, including the last/first wrap-around.
        """
        threshold = self.JUNCTION_THRESHOLD
        junctions: List[Point] = []
        buckets: Dict[Tuple[int, int], List[int]] = {}

        def snap(p: Point) -> Point:
            bx = int(p.x // threshold)
            by = int(p.y // threshold)
            best = None
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    for j in buckets.get((bx + dx, by + dy), ()):
                        if distance(junctions[j], p) < threshold and (best is None or j < best):
                            best = j
            if best is not None:
                return junctions[best]
            buckets.setdefault((bx, by), []).append(len(junctions))
            junctions.append(p)
            return p

        collapsed = 0
        for cell in self.cells:
            vertices: List[Point] = []
            for v in cell.shape:
                p = snap(v)
                if vertices and distance(vertices[-1], p) < threshold:
                    continue
                vertices.append(p)

            if len(vertices) > 1 and distance(vertices[0], vertices[-1]) < threshold:
                vertices.pop()

            collapsed += len(cell.shape) - len(vertices)
            cell.shape = tuple(vertices)

        logger.debug("Junctions optimized", junctions=len(junctions), vertices_removed=collapsed)

    def build_walls(self) -> None:
        """Mark inner cells, trace the wall ring and place the gates."""
        inner_radius = self.city_radius * self.WALL_RADIUS_FRACTION

        for cell in self.cells:
            if cell.is_degenerate:
                continue
            if distance(polygon_centroid(cell.shape), self.center) < inner_radius:
                cell.within_walls = True
                self.inner_ids.append(cell.id)

        self.wall_shape = tuple(self.compute_circumference(self.inner_ids))
        self._place_gates()

        logger.info("Walls built", inner_cells=len(self.inner_ids),
                    wall_vertices=len(self.wall_shape), closed=self.wall_closed,
                    gates=len(self.gates))

    def _place_gates(self) -> None:
        if len(self.wall_shape) < 3:
            return

        num_gates = 2 + self.random.int(3)
        interval = polygon_perimeter(self.wall_shape) / num_gates

        for i in range(num_gates):
            offset = i * interval + self.random.float() * interval * 0.5
            self.gates.append(point_along_polygon(self.wall_shape, offset))

    def _shares_edge(self, shape: Sequence[Point], a: Point, b: Point) -> bool:
        tol = self.EDGE_TOLERANCE
        n = len(shape)
        for j in range(n):
            na = shape[j]
            nb = shape[(j + 1) % n]
            if (distance(a, na) < tol and distance(b, nb) < tol) or \
               (distance(a, nb) < tol and distance(b, na) < tol):
                return True
        return False

    def compute_circumference(self, cell_ids: Sequence[int]) -> List[Point]:
        """
        Outer boundary of a set of cells as one ordered ring.

        An edge is on the boundary iff no other cell of the set owns it
        (within EDGE_TOLERANCE). Boundary edges are then chained end to end;
        if the chain cannot be extended before all edges are used, the
        partial chain is returned.

        Args:
            cell_ids: Ids of the cells forming the region

        Returns:
            Ring vertices without a repeated closing point
        """
        members = set(cell_ids)
        edges: List[Tuple[Point, Point]] = []

        for cell_id in cell_ids:
            cell = self.cells[cell_id]
            shape = cell.shape
            n = len(shape)
            for i in range(n):
                a = shape[i]
                b = shape[(i + 1) % n]
                shared = any(
                    self._shares_edge(self.cells[nid].shape, a, b)
                    for nid in cell.neighbors if nid in members
                )
                if not shared:
                    edges.append((a, b))

        self.wall_closed = False
        if not edges:
            return []

        chain = [edges[0][0], edges[0][1]]
        used = {0}
        while len(used) < len(edges):
            if not (self._extend_chain(chain, edges, used, at_tail=True)
                    or self._extend_chain(chain, edges, used, at_tail=False)):
                logger.debug("Wall chain stalled", used=len(used), edges=len(edges))
                break

        if len(chain) > 2 and distance(chain[0], chain[-1]) < self.EDGE_TOLERANCE:
            chain.pop()
            self.wall_closed = True

        return chain

    def _extend_chain(self, chain: List[Point], edges: Sequence[Tuple[Point, Point]],
                      used: set, at_tail: bool) -> bool:
        end = chain[-1] if at_tail else chain[0]
        for i, (a, b) in enumerate(edges):
            if i in used:
                continue
            if distance(end, a) < self.EDGE_TOLERANCE:
                other = b
            elif distance(end, b) < self.EDGE_TOLERANCE:
                other = a
            else:
                continue
            used.add(i)
            if at_tail:
                chain.append(other)
            else:
                chain.insert(0, other)
            return True
        return False

    def _distance_to_center(self, cell: Cell) -> float:
        return distance(polygon_centroid(cell.shape), self.center)

    def assign_wards(self) -> None:
        """
        Assign wards in fixed priority order.

        castle -> inner cell nearest the center
        market -> nearest remaining inner cell
        cathedral -> random unassigned inner cell
        outside the walls -> farm (70%) or wilderness; everything else alleys
        """
        inner = [self.cells[i] for i in self.inner_ids]

        if self.blueprint.citadel and inner:
            min(inner, key=self._distance_to_center).ward = Ward.CASTLE

        if self.blueprint.plaza:
            candidates = [c for c in inner if c.ward != Ward.CASTLE]
            if candidates:
                min(candidates, key=self._distance_to_center).ward = Ward.MARKET

        if self.blueprint.temple:
            candidates = [c for c in inner if c.ward == Ward.ALLEYS]
            if candidates:
                self.random.pick(candidates).ward = Ward.CATHEDRAL

        for cell in self.cells:
            if not cell.within_walls and cell.ward == Ward.ALLEYS:
                cell.ward = Ward.FARM if self.random.bool(self.FARM_CHANCE) else Ward.WILDERNESS

    def build_streets(self) -> None:
        """Connect each gate to the next one through the city center."""
        if len(self.gates) < 2:
            return
        for i, start in enumerate(self.gates):
            end = self.gates[(i + 1) % len(self.gates)]
            self.streets.append((start, self.center, end))

    def build_buildings(self) -> None:
        """Place building footprints per ward."""
        for cell in self.cells:
            if cell.ward in (Ward.WILDERNESS, Ward.MARKET) or cell.is_degenerate:
                continue

            shape = cell.shape
            if cell.ward == Ward.CASTLE:
                self._add_building(inset_polygon(shape, self.KEEP_INSET), cell.ward, BuildingKind.KEEP)
            elif cell.ward == Ward.CATHEDRAL:
                self._add_building(inset_polygon(shape, self.CHURCH_INSET), cell.ward, BuildingKind.CHURCH)
            elif cell.ward == Ward.ALLEYS:
                self._subdivide_cell_into_buildings(cell)
            elif cell.ward == Ward.FARM and self.random.bool(self.FARM_HOUSE_CHANCE):
                c = polygon_centroid(shape)
                size = 3 + self.random.float() * 2
                square = [
                    Point(c.x - size, c.y - size),
                    Point(c.x + size, c.y - size),
                    Point(c.x + size, c.y + size),
                    Point(c.x - size, c.y + size),
                ]
                self._add_building(square, cell.ward, BuildingKind.HOUSE)

        logger.info("Buildings placed", buildings=len(self.buildings))

    def _add_building(self, footprint: Sequence[Point], ward: Ward, kind: BuildingKind) -> None:
        if len(footprint) < 3:
            return
        self.buildings.append(Building(footprint=tuple(footprint), ward=ward, kind=kind))

    def _subdivide_cell_into_buildings(self, cell: Cell) -> None:
        if polygon_area(cell.shape) < self.MIN_ALLEY_AREA:
            return

        lots = self.recursive_subdivide(inset_polygon(cell.shape, self.LOT_INSET), self.MIN_LOT_AREA)
        for lot in lots:
            if polygon_area(lot) < self.MIN_BUILDING_AREA:
                continue
            self._add_building(self.create_building(lot), cell.ward, BuildingKind.HOUSE)

    def recursive_subdivide(self, polygon: Sequence[Point], min_area: float,
                            depth: int = 0) -> List[List[Point]]:
        """
        Split a polygon into lots.

        Stops when the area is below twice min_area. Otherwise cuts the
        longest edge and the edge half way around the ring at 40-60% of
        their length, recursing into both halves. Halves below min_area are
        dropped.

        Args:
            polygon: Polygon to split
            min_area: Minimum lot area
            depth: Current recursion depth

        Returns:
            List of lot polygons
        """
        points = list(polygon)
        n = len(points)
        if n < 3 or polygon_area(points) < min_area * 2 or depth >= self.max_subdivision_depth:
            return [points]

        longest = max(range(n), key=lambda i: distance(points[i], points[(i + 1) % n]))
        ring = points[longest:] + points[:longest]
        opposite = n // 2

        t1 = 0.4 + self.random.float() * 0.2
        t2 = 0.4 + self.random.float() * 0.2
        split_a = lerp(ring[0], ring[1], t1)
        split_b = lerp(ring[opposite], ring[(opposite + 1) % n], t2)

        first = [ring[0], split_a, split_b] + ring[opposite + 1:]
        second = [split_a] + ring[1:opposite + 1] + [split_b]

        result = []
        for half in (first, second):
            if len(half) >= 3 and polygon_area(half) >= min_area:
                result.extend(self.recursive_subdivide(half, min_area, depth + 1))

        return result or [points]

    def create_building(self, lot: Sequence[Point]) -> List[Point]:
        """
        Footprint for a lot: slightly inset, sometimes L-shaped.

        For four-sided lots one corner may be notched: it is replaced by two
        points 40% along its edges and the inward corner between them.
        """
        inset = inset_polygon(lot, self.BUILDING_INSET)
        if len(inset) < 3:
            return list(lot)

        if len(inset) == 4 and self.random.bool(self.L_SHAPE_CHANCE):
            corner_idx = self.random.int(4)
            corner = inset[corner_idx]
            mid_prev = lerp(corner, inset[(corner_idx - 1) % 4], 0.4)
            mid_next = lerp(corner, inset[(corner_idx + 1) % 4], 0.4)
            notch = Point(mid_prev.x + mid_next.x - corner.x, mid_prev.y + mid_next.y - corner.y)

            footprint = []
            for i, p in enumerate(inset):
                if i == corner_idx:
                    footprint.extend((mid_prev, notch, mid_next))
                else:
                    footprint.append(p)
            return footprint

        return inset

    def to_layout(self) -> CityLayout:
        patches = tuple(
            CityPatch(id=c.id, shape=c.shape, ward=c.ward, within_walls=c.within_walls)
            for c in self.cells
        )

        walls = []
        ring = self.wall_shape
        segment_count = len(ring) if self.wall_closed else len(ring) - 1
        for i in range(max(segment_count, 0)):
            walls.append(WallSegment(start=ring[i], end=ring[(i + 1) % len(ring)],
                                     has_tower=i % self.TOWER_SPACING == 0))

        all_vertices = [v for c in self.cells for v in c.shape]

        return CityLayout(
            patches=patches,
            streets=tuple(self.streets),
            walls=tuple(walls),
            wall_shape=ring,
            buildings=tuple(self.buildings),
            gates=tuple(self.gates),
            bounds=polygon_bounds(all_vertices),
        )


def generate_city(blueprint: CityBlueprint, progress: Optional[ProgressSink] = None) -> CityLayout:
    """Generate a city layout for a blueprint."""
    return CityGenerator(blueprint).build(progress)
