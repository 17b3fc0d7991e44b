"""
Boundary edge extraction by unique-edge counting.

Every land cell contributes its polygon edges to a counter keyed by the
rounded, orientation-independent endpoint pair. An edge shared by two land
cells is counted twice; an edge between land and water (or land and the map
rectangle) is counted once. Rounding makes the key robust to the last-bit
differences a mesh builder produces when two cells compute the same vertex.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from .mesh import Cell, Point

logger = structlog.get_logger()

# Decimal places used for vertex identity: coordinates equal after rounding to
# this many places are the same vertex.
VERTEX_PRECISION = 2

# Water-side marker for an edge that lies on the map rectangle
MAP_BORDER = -1

# Distance within which a vertex counts as lying on a map edge
BORDER_TOLERANCE = 1e-6

VertexKey = Tuple[float, float]
EdgeKey = Tuple[VertexKey, VertexKey]


@dataclass
class BoundaryEdge:
    """A land/water or land/map-edge polygon edge."""

    start: Point
    end: Point
    land_cell_id: int
    water_cell_id: Optional[int]  # MAP_BORDER for the map edge, None if unresolved
    feature_id: Optional[int] = None

    @property
    def on_map_border(self) -> bool:
        return self.water_cell_id == MAP_BORDER

    def key(self, precision: int = VERTEX_PRECISION) -> EdgeKey:
        return edge_key(self.start, self.end, precision)


def vertex_key(point: Point, precision: int = VERTEX_PRECISION) -> VertexKey:
    """Rounded vertex identity. ``+ 0.0`` folds -0.0 into 0.0."""
    return (round(point[0], precision) + 0.0, round(point[1], precision) + 0.0)


def edge_key(a: Point, b: Point, precision: int = VERTEX_PRECISION) -> EdgeKey:
    """Orientation-independent edge identity, smaller vertex key first."""
    ka = vertex_key(a, precision)
    kb = vertex_key(b, precision)
    return (ka, kb) if ka <= kb else (kb, ka)


def polygon_edges(polygon: Sequence[Point]):
    """Yield consecutive (a, b) edges of a closed ring."""
    n = len(polygon)
    for i in range(n):
        yield polygon[i], polygon[(i + 1) % n]


def on_map_border(
    point: Point,
    map_width: float,
    map_height: float,
    tolerance: float = BORDER_TOLERANCE,
) -> bool:
    """True when the point lies on the map rectangle."""
    x, y = point
    return (
        abs(x) <= tolerance
        or abs(x - map_width) <= tolerance
        or abs(y) <= tolerance
        or abs(y - map_height) <= tolerance
    )


def _on_same_border_side(
    a: Point, b: Point, map_width: float, map_height: float, tolerance: float
) -> bool:
    for axis, limit in ((0, 0.0), (0, map_width), (1, 0.0), (1, map_height)):
        if abs(a[axis] - limit) <= tolerance and abs(b[axis] - limit) <= tolerance:
            return True
    return False


def extract_boundary_edges(
    cells: Sequence[Cell],
    map_width: float,
    map_height: float,
    precision: int = VERTEX_PRECISION,
    border_tolerance: float = BORDER_TOLERANCE,
) -> List[BoundaryEdge]:
    """
    Find every edge between land and water or land and the map edge.

    Args:
        cells: Cells with ``is_land`` set
        map_width: Map width
        map_height: Map height
        precision: Decimal places for vertex identity
        border_tolerance: Distance within which a vertex is on a map edge

    Returns:
        Boundary edges in a stable order (ascending land cell id, then
        polygon order)
    """
    counts: Dict[EdgeKey, int] = {}
    first: Dict[EdgeKey, Tuple[Point, Point, Cell]] = {}
    water_side: Dict[EdgeKey, int] = {}

    for cell in cells:
        for a, b in polygon_edges(cell.polygon):
            key = edge_key(a, b, precision)
            if key[0] == key[1]:
                continue  # collapses to a point at this precision

            if cell.is_land:
                counts[key] = counts.get(key, 0) + 1
                if key not in first:
                    first[key] = (a, b, cell)
            elif key not in water_side:
                water_side[key] = cell.id

    edges = []
    unresolved = 0
    for key, count in counts.items():
        if count != 1:
            if count > 2:
                logger.debug("Edge shared by more than two land cells", count=count)
            continue

        a, b, land_cell = first[key]
        if _on_same_border_side(a, b, map_width, map_height, border_tolerance):
            water_id = MAP_BORDER
        else:
            water_id = water_side.get(key)
            if water_id is None:
                unresolved += 1

        edges.append(
            BoundaryEdge(
                start=a,
                end=b,
                land_cell_id=land_cell.id,
                water_cell_id=water_id,
                feature_id=land_cell.feature_id,
            )
        )

    border_edges = sum(1 for e in edges if e.on_map_border)
    logger.info(
        "Boundary edges extracted",
        edges=len(edges),
        coastline_edges=len(edges) - border_edges,
        border_edges=border_edges,
        precision=precision,
    )
    if unresolved:
        logger.warning(
            "Boundary edges without a matching water cell",
            unresolved=unresolved,
            precision=precision,
        )
    return edges
