"""
D8 hydrology over a heightmap grid.

This module implements:
- Steepest-descent flow directions (8 neighbors, off-grid drainage)
- Pit and flat resolution by breadth-first outlet search
- Topological flow accumulation
- River extraction from accumulation
- Watershed basin labelling

Direction encoding (y grows downward):

    7 0 1
    6 X 2
    5 4 3

and PIT (8) for cells without outflow.
"""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import structlog

from ..config import settings
from .noise import Heightmap
from .progress import ProgressSink, ensure_progress

logger = structlog.get_logger()

PIT = 8

D8_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (0, -1),   # 0: N
    (1, -1),   # 1: NE
    (1, 0),    # 2: E
    (1, 1),    # 3: SE
    (0, 1),    # 4: S
    (-1, 1),   # 5: SW
    (-1, 0),   # 6: W
    (-1, -1),  # 7: NW
)
D8_DISTANCES = tuple(1.0 if d % 2 == 0 else math.sqrt(2) for d in range(8))

# Octant of atan2(dy, dx) (0 = east, counted clockwise on screen) -> D8 code
_OCTANT_TO_D8 = (2, 3, 4, 5, 6, 7, 0, 1)

_OFFSET_TABLE = np.array(D8_OFFSETS + ((0, 0),), dtype=np.int64)


@dataclass
class HydrologyOptions:
    """Hydrology calculation options."""
    sea_level: float = 0.1  # Cells at or below this height are sea (PIT)
    resolve_pits: bool = True  # Route inland pits toward an outlet
    flat_tolerance: float = 0.01  # Height slack when searching across flats
    min_accumulation: float = 100.0  # Minimum accumulation to form a river


@dataclass
class FlowField:
    """Per-cell D8 direction plus upstream cell count."""
    width: int
    height: int
    directions: np.ndarray  # uint8, shape (height, width), 0..7 or PIT
    accumulation: np.ndarray  # float32, shape (height, width)

    def copy(self) -> "FlowField":
        return FlowField(self.width, self.height,
                         self.directions.copy(), self.accumulation.copy())


@dataclass
class River:
    """River traced downstream from its source cell."""
    points: List[Tuple[int, int]] = field(default_factory=list)  # (x, y) grid cells
    order: int = 1  # Stream order; no merging logic, always 1

    @property
    def source(self) -> Tuple[int, int]:
        return self.points[0]

    @property
    def mouth(self) -> Tuple[int, int]:
        return self.points[-1]


@dataclass
class WatershedBasins:
    """Basin label per cell (0 = unlabelled, 1..basin_count)."""
    width: int
    height: int
    labels: np.ndarray  # uint32, shape (height, width)
    basin_count: int


def flow_target(x: int, y: int, direction: int, width: int, height: int) -> Optional[Tuple[int, int]]:
    """
    Downstream cell of (x, y).

    Returns:
        (x, y) of the target, or None for PIT or flow off the grid
    """
    if direction >= PIT:
        return None
    dx, dy = D8_OFFSETS[direction]
    nx = x + dx
    ny = y + dy
    if nx < 0 or nx >= width or ny < 0 or ny >= height:
        return None
    return nx, ny


def downstream_targets(flow_field: FlowField) -> np.ndarray:
    """Flat index of each cell's downstream cell, -1 for PIT or off-grid."""
    width, height = flow_field.width, flow_field.height
    n = width * height
    directions = flow_field.directions.ravel().astype(np.int64)

    index = np.arange(n, dtype=np.int64)
    nx = index % width + _OFFSET_TABLE[directions, 0]
    ny = index // width + _OFFSET_TABLE[directions, 1]

    inside = (directions < PIT) & (nx >= 0) & (nx < width) & (ny >= 0) & (ny < height)
    return np.where(inside, ny * width + nx, -1)


def bearing_to_direction(dx: float, dy: float) -> int:
    """Nearest D8 direction to the bearing (dx, dy)."""
    angle = math.atan2(dy, dx)
    octant = math.floor(angle / (math.pi / 4) + 0.5) % 8
    return _OCTANT_TO_D8[octant]


def compute_flow_directions(heightmap: Heightmap, sea_level: float = 0.0) -> FlowField:
    """
    Steepest-descent D8 direction for every cell.

    Drop to a neighbor is (h - neighbor_h) / distance (1 or sqrt 2). An
    off-grid neighbor counts as a drop of h, modelling drainage off the map
    edge. Cells with no positive drop, and cells at or below sea level, get
    PIT. Ties go to the lowest direction code.

    Args:
        heightmap: Source heightmap
        sea_level: Sea height threshold

    Returns:
        FlowField with zeroed accumulation
    """
    logger.info("Calculating flow directions", width=heightmap.width,
                height=heightmap.height, sea_level=sea_level)

    h = heightmap.data.astype(np.float64)
    rows, cols = h.shape
    padded = np.pad(h, 1, mode="constant", constant_values=np.nan)

    drops = np.empty((8, rows, cols), dtype=np.float64)
    for d, (dx, dy) in enumerate(D8_OFFSETS):
        neighbor = padded[1 + dy:1 + dy + rows, 1 + dx:1 + dx + cols]
        drops[d] = np.where(np.isnan(neighbor), h, (h - neighbor) / D8_DISTANCES[d])

    best = np.argmax(drops, axis=0)
    best_drop = np.take_along_axis(drops, best[np.newaxis], axis=0)[0]

    directions = np.where(best_drop > 0, best, PIT).astype(np.uint8)
    directions[h <= sea_level] = PIT

    logger.info("Flow directions calculated", pits=int(np.sum(directions == PIT)))
    return FlowField(heightmap.width, heightmap.height, directions,
                     np.zeros((rows, cols), dtype=np.float32))


def resolve_pits_and_flats(flow_field: FlowField, heightmap: Heightmap,
                           tolerance: float = 0.01,
                           search_limit: Optional[int] = None) -> FlowField:
    """
    Route inland pits toward the lowest reachable outlet.

    For each PIT cell above zero elevation, a breadth-first search
    spreads through cells no higher than pit + tolerance. Candidate outlets
    are cells touching the map edge, or cells next to a lower neighbor that
    already drains. The pit is pointed at the lowest candidate along the
    nearest D8 bearing. Pits with no outlet stay PIT.
    Sea cells above 0 are routed like any other pit.

    Args:
        flow_field: Flow field from compute_flow_directions()
        heightmap: Heightmap the field was computed from
        tolerance: Height slack for crossing flats
        search_limit: Max cells visited per pit (None or 0 = unlimited;
                      defaults to settings.pit_search_limit)

    Returns:
        New FlowField; the input is not modified
    """
    logger.info("Resolving pits and flats", tolerance=tolerance)

    if search_limit is None:
        search_limit = settings.pit_search_limit

    result = flow_field.copy()
    width, height = result.width, result.height
    directions = result.directions.reshape(-1)
    heights = heightmap.data.ravel().astype(np.float64).tolist()

    pits = np.flatnonzero((directions == PIT) & (heightmap.data.ravel() > 0)).tolist()

    resolved = 0
    for pit in pits:
        pit_height = heights[pit]
        visited = set()
        queue = deque([pit])
        outlet = -1
        outlet_height = math.inf

        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            if search_limit and len(visited) > search_limit:
                break

            x = current % width
            y = current // width
            h = heights[current]

            for dx, dy in D8_OFFSETS:
                nx = x + dx
                ny = y + dy
                if nx < 0 or nx >= width or ny < 0 or ny >= height:
                    if h < outlet_height:
                        outlet_height = h
                        outlet = current
                    continue

                n = ny * width + nx
                nh = heights[n]
                if nh < pit_height and directions[n] != PIT:
                    if h < outlet_height:
                        outlet_height = h
                        outlet = current
                elif nh <= pit_height + tolerance and n not in visited:
                    queue.append(n)

        if outlet >= 0 and outlet != pit:
            directions[pit] = bearing_to_direction(outlet % width - pit % width,
                                                   outlet // width - pit // width)
            resolved += 1

    logger.info("Pits resolved", pits=len(pits), resolved=resolved,
                unresolved=len(pits) - resolved)
    return result


def compute_flow_accumulation(flow_field: FlowField) -> FlowField:
    """
    Count upstream cells (including itself) for every cell.

    Kahn-style propagation: cells with no inflow start the queue; each
    processed cell adds its total to its downstream target and decrements
    the target's pending inflow; a target is queued once that reaches zero.
    A cell's value is therefore final before it is propagated. Cells on a
    drainage cycle never reach zero inflow and keep a partial count.

    Args:
        flow_field: Flow field with finalized directions

    Returns:
        New FlowField carrying the same directions and the accumulation
    """
    logger.info("Calculating flow accumulation")

    n = flow_field.width * flow_field.height
    targets = downstream_targets(flow_field)

    inflow = np.bincount(targets[targets >= 0], minlength=n).tolist()
    targets = targets.tolist()
    accumulation = [1.0] * n

    queue = deque(i for i in range(n) if inflow[i] == 0)
    processed = 0
    while queue:
        current = queue.popleft()
        processed += 1
        target = targets[current]
        if target < 0:
            continue
        accumulation[target] += accumulation[current]
        inflow[target] -= 1
        if inflow[target] == 0:
            queue.append(target)

    if processed < n:
        logger.warning("Cells left on drainage cycles", unresolved=n - processed)

    acc = np.array(accumulation, dtype=np.float32).reshape(flow_field.height, flow_field.width)
    logger.info("Flow accumulation completed", max_accumulation=float(acc.max()) if n else 0.0)
    return FlowField(flow_field.width, flow_field.height, flow_field.directions.copy(), acc)


def extract_rivers(flow_field: FlowField, min_accumulation: float = 100.0) -> List[River]:
    """
    Trace rivers downstream from their sources.

    A source has accumulation >= min_accumulation and no inflowing neighbor
    that also meets the threshold. Each source is followed until a PIT, a
    cell already on a river, or the map edge. Single-cell traces are
    dropped.

    Args:
        flow_field: Flow field with accumulation
        min_accumulation: River threshold

    Returns:
        List of River objects (order 1)
    """
    logger.info("Generating rivers", min_accumulation=min_accumulation)

    width = flow_field.width
    targets = downstream_targets(flow_field)
    is_river = flow_field.accumulation.ravel() >= min_accumulation

    has_upstream_river = np.zeros(targets.shape, dtype=bool)
    feeding = np.flatnonzero(is_river & (targets >= 0))
    has_upstream_river[targets[feeding]] = True

    sources = np.flatnonzero(is_river & ~has_upstream_river).tolist()
    targets = targets.tolist()

    rivers = []
    visited = set()
    for source in sources:
        if source in visited:
            continue
        points = []
        current = source
        while current >= 0 and current not in visited:
            visited.add(current)
            points.append((current % width, current // width))
            current = targets[current]

        if len(points) >= 2:
            rivers.append(River(points=points))

    logger.info("Rivers generated", count=len(rivers))
    return rivers


def delineate_watersheds(flow_field: FlowField) -> WatershedBasins:
    """
    Label every cell with the basin of the outlet it drains to.

    Outlets are PIT cells and cells flowing off the grid; each seeds a new
    label that spreads upstream by reverse breadth-first search.

    Args:
        flow_field: Flow field with finalized directions (not modified)

    Returns:
        WatershedBasins
    """
    logger.info("Delineating watersheds")

    field_copy = flow_field.copy()
    n = field_copy.width * field_copy.height
    targets = downstream_targets(field_copy).tolist()

    upstream: List[List[int]] = [[] for _ in range(n)]
    for cell, target in enumerate(targets):
        if target >= 0:
            upstream[target].append(cell)

    labels = [0] * n
    next_label = 1
    for outlet in range(n):
        if targets[outlet] >= 0 or labels[outlet] != 0:
            continue
        queue = deque([outlet])
        while queue:
            current = queue.popleft()
            if labels[current] != 0:
                continue
            labels[current] = next_label
            queue.extend(c for c in upstream[current] if labels[c] == 0)
        next_label += 1

    basin_count = next_label - 1
    unlabelled = labels.count(0)
    if unlabelled:
        logger.warning("Cells not draining to any outlet", unlabelled=unlabelled)

    logger.info("Watersheds delineated", basins=basin_count)
    return WatershedBasins(
        width=field_copy.width,
        height=field_copy.height,
        labels=np.array(labels, dtype=np.uint32).reshape(field_copy.height, field_copy.width),
        basin_count=basin_count,
    )


class Hydrology:
    """
    Runs the D8 stages in dependency order for one heightmap.

    Each stage computes its prerequisites on first use, so accumulation is
    only ever derived from finalized directions.
    """

    def __init__(self, heightmap: Heightmap, options: Optional[HydrologyOptions] = None,
                 progress: Optional[ProgressSink] = None):
        """
        Initialize hydrology system.

        Args:
            heightmap: Source heightmap (not modified)
            options: Hydrology calculation options
            progress: Optional progress sink
        """
        self.heightmap = heightmap
        self.options = options or HydrologyOptions()
        self.progress = ensure_progress(progress)

        self.flow_field: Optional[FlowField] = None  # Finalized directions
        self.accumulated: Optional[FlowField] = None  # Directions + accumulation
        self.rivers: Optional[List[River]] = None
        self.basins: Optional[WatershedBasins] = None

    def calculate_flow_directions(self) -> FlowField:
        self.progress.report(0, "Computing flow directions")
        field_ = compute_flow_directions(self.heightmap, self.options.sea_level)
        if self.options.resolve_pits:
            self.progress.report(20, "Resolving pits and flats")
            field_ = resolve_pits_and_flats(field_, self.heightmap,
                                            tolerance=self.options.flat_tolerance)
        self.flow_field = field_
        return field_

    def calculate_accumulation(self) -> FlowField:
        if self.flow_field is None:
            self.calculate_flow_directions()
        self.progress.report(40, "Computing flow accumulation")
        self.accumulated = compute_flow_accumulation(self.flow_field)
        return self.accumulated

    def generate_rivers(self) -> List[River]:
        if self.accumulated is None:
            self.calculate_accumulation()
        self.progress.report(60, "Extracting rivers")
        self.rivers = extract_rivers(self.accumulated, self.options.min_accumulation)
        return self.rivers

    def delineate_basins(self) -> WatershedBasins:
        if self.flow_field is None:
            self.calculate_flow_directions()
        self.progress.report(80, "Delineating watersheds")
        self.basins = delineate_watersheds(self.flow_field)
        return self.basins

    def run(self) -> "Hydrology":
        """Run every stage; returns self for chaining."""
        self.calculate_flow_directions()
        self.calculate_accumulation()
        self.generate_rivers()
        self.delineate_basins()
        self.progress.report(100, "Done")
        return self
