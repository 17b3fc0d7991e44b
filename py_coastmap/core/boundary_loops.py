"""
Coastline assembly.

Turns one feature's unordered boundary edges into a single ordered polyline:
a closed loop for interior features, an open chain for landmasses clipped by
the map rectangle. The walk is deterministic for identical input.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

import structlog
from shapely.geometry import LineString, Polygon

from .boundary_edges import (
    VERTEX_PRECISION,
    BoundaryEdge,
    EdgeKey,
    VertexKey,
    edge_key,
    vertex_key,
)
from .features import Feature, FeatureKind
from .mesh import Point

logger = structlog.get_logger()

CLOSED = "closed"
OPEN = "open"
MALFORMED = "malformed"
EMPTY = "empty"


@dataclass
class BoundaryPath:
    """
    Ordered outline of one feature.

    Closed loops repeat the start point at the end, so ``segment_count``
    equals the number of deduplicated edges for a complete loop.
    """

    points: List[Point]
    closed: bool
    topology: str
    edge_count: int
    complete: bool
    warnings: List[str] = field(default_factory=list)

    @property
    def segment_count(self) -> int:
        return max(0, len(self.points) - 1)


def _lowest(keys) -> VertexKey:
    """Smallest y, then smallest x."""
    return min(keys, key=lambda k: (k[1], k[0]))


def assemble_boundary(
    edges: Sequence[BoundaryEdge], precision: int = VERTEX_PRECISION
) -> BoundaryPath:
    """
    Walk a set of boundary edges into one ordered sequence of points.

    Args:
        edges: Boundary edges of a single feature
        precision: Decimal places for vertex identity

    Returns:
        BoundaryPath; empty when there are no edges
    """
    # 1. Dedupe, sorted so the walk does not depend on input order
    unique: Dict[EdgeKey, BoundaryEdge] = {}
    for edge in edges:
        key = edge.key(precision)
        if key[0] != key[1] and key not in unique:
            unique[key] = edge

    if not unique:
        return BoundaryPath(
            points=[], closed=False, topology=EMPTY, edge_count=0, complete=True
        )

    # 2. Vertex graph
    graph: Dict[VertexKey, List[VertexKey]] = {}
    coords: Dict[VertexKey, Point] = {}
    for key in sorted(unique):
        edge = unique[key]
        for p in (edge.start, edge.end):
            coords.setdefault(vertex_key(p, precision), p)
        a, b = key
        graph.setdefault(a, []).append(b)
        graph.setdefault(b, []).append(a)
    for neighbors in graph.values():
        neighbors.sort(key=lambda k: (k[1], k[0]))

    # 3. Topology
    warnings = []
    endpoints = [k for k, n in graph.items() if len(n) == 1]
    branching = [k for k, n in graph.items() if len(n) > 2]

    if not endpoints and not branching:
        topology = CLOSED
    elif len(endpoints) == 2 and not branching:
        topology = OPEN
    else:
        topology = MALFORMED
        warnings.append(
            f"malformed topology: {len(endpoints)} chain endpoints, "
            f"{len(branching)} branching vertices"
        )

    # 4. Start vertex
    start = _lowest(endpoints) if endpoints else _lowest(graph)
    chain = bool(endpoints)

    # 5. Walk
    path = [start]
    used: Set[EdgeKey] = set()
    visited = {start}
    prev: Optional[VertexKey] = None
    current = start
    closed = False

    # Each step consumes an unused edge, so the walk ends within len(unique) steps
    while True:
        candidates = [
            n
            for n in graph[current]
            if n != prev
            and edge_key(current, n, precision) not in used
            and (not chain or n not in visited)
        ]
        if not chain and start in candidates and len(path) > 2:
            nxt = start
        elif candidates:
            nxt = candidates[0]
        else:
            if not chain:
                warnings.append("walk reached a dead end before closing the loop")
            break

        used.add(edge_key(current, nxt, precision))
        path.append(nxt)
        visited.add(nxt)
        prev, current = current, nxt

        if not chain and current == start:
            closed = True
            break

    complete = len(used) == len(unique)
    if not complete:
        warnings.append(f"{len(unique) - len(used)} of {len(unique)} edges not walked")

    result = BoundaryPath(
        points=[coords[k] for k in path],
        closed=closed,
        topology=topology,
        edge_count=len(unique),
        complete=complete,
        warnings=warnings,
    )
    for message in warnings:
        logger.warning(
            "Boundary assembly problem",
            problem=message,
            topology=topology,
            edges=len(unique),
        )
    return result


def assemble_boundaries(
    boundary_edges: Sequence[BoundaryEdge],
    features: Sequence[Feature],
    precision: int = VERTEX_PRECISION,
    include_map_border: bool = False,
) -> Dict[int, BoundaryPath]:
    """
    Assemble and store the outline of every non-ocean feature.

    An edge whose water cell belongs to a lake outlines that lake; every other
    edge outlines the island of its land cell. Edges lying on the map
    rectangle are left out unless ``include_map_border`` is set, which is what
    makes border-clipped landmasses open chains.

    Args:
        boundary_edges: Output of ``extract_boundary_edges``
        features: Output of ``classify_features``; ``boundary`` and
            ``boundary_closed`` are set on each non-ocean feature
        precision: Decimal places for vertex identity
        include_map_border: Keep edges that lie on the map rectangle

    Returns:
        Mapping of feature id to its BoundaryPath
    """
    feature_of_cell: Dict[int, Feature] = {}
    for feature in features:
        for cell_id in feature.cell_ids:
            feature_of_cell[cell_id] = feature

    groups: Dict[int, List[BoundaryEdge]] = {}
    orphans = 0
    for edge in boundary_edges:
        if edge.on_map_border and not include_map_border:
            continue

        water = feature_of_cell.get(edge.water_cell_id)
        if water is not None and water.kind is FeatureKind.LAKE:
            target = water.id
        else:
            land = feature_of_cell.get(edge.land_cell_id)
            target = land.id if land is not None else edge.feature_id

        if target is None:
            orphans += 1
            continue
        groups.setdefault(target, []).append(edge)

    if orphans:
        logger.warning("Boundary edges without a feature", orphans=orphans)

    paths = {}
    for feature in features:
        if feature.kind is FeatureKind.OCEAN:
            continue

        feature_edges = groups.get(feature.id, [])
        if not feature_edges:
            logger.warning(
                "Feature has no coastline edges",
                feature_id=feature.id,
                kind=feature.kind.value,
            )

        path = assemble_boundary(feature_edges, precision)
        feature.boundary = path.points
        feature.boundary_closed = path.closed
        paths[feature.id] = path

        logger.debug(
            "Boundary assembled",
            feature_id=feature.id,
            topology=path.topology,
            points=len(path.points),
        )

    logger.info("Boundaries assembled", features=len(paths))
    return paths


def boundary_geometry(feature: Feature):
    """
    Shapely geometry for a feature outline.

    Returns:
        Polygon for a closed loop, LineString for an open chain, or None
    """
    points = feature.boundary or []
    if feature.boundary_closed and len(points) >= 4:
        return Polygon(points)
    if len(points) >= 2:
        return LineString(points)
    return None
