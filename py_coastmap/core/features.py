"""
Geographic feature detection.

This module handles:
- Ocean detection (water connected to the map border)
- Lake detection (remaining water components)
- Island/continent detection (land components)
- Removal of tiny islands
"""

import math
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from .land_water import near_border
from .mesh import Cell, Point, build_index

logger = structlog.get_logger()

# Centroid distance from an edge within which a cell counts as a border cell
DEFAULT_BORDER_TOLERANCE = 10.0

# Islands smaller than this fraction of all cells are drowned
DEFAULT_MIN_ISLAND_FRACTION = 0.01


class FeatureKind(str, Enum):
    OCEAN = "ocean"
    LAKE = "lake"
    ISLAND = "island"


@dataclass
class Feature:
    """Represents a geographic feature (ocean, lake, island)."""

    id: int
    kind: FeatureKind
    touches_border: bool  # touches map edge
    cell_ids: List[int]
    name: str = ""
    boundary: Optional[List[Point]] = None  # never set for the ocean
    boundary_closed: Optional[bool] = None

    @property
    def land(self) -> bool:
        return self.kind is FeatureKind.ISLAND

    @property
    def size(self) -> int:
        return len(self.cell_ids)


def _flood_fill(
    cells: Sequence[Cell],
    index: Dict[int, int],
    seeds: Iterable[int],
    land: bool,
    feature_id: int,
) -> List[int]:
    """
    Breadth-first fill from ``seeds`` (positions in ``cells``) across cells of
    the same land/water type that have no feature yet.

    Returns:
        Sorted ids of every cell reached
    """
    queue = deque()
    for i in seeds:
        cell = cells[i]
        if cell.is_land == land and cell.feature_id is None:
            cell.feature_id = feature_id
            queue.append(i)

    reached = []
    while queue:
        cell = cells[queue.popleft()]
        reached.append(cell.id)

        for neighbor_id in cell.neighbor_ids:
            j = index.get(neighbor_id)
            if j is None:
                continue
            neighbor = cells[j]
            if neighbor.is_land == land and neighbor.feature_id is None:
                neighbor.feature_id = feature_id
                queue.append(j)

    return sorted(reached)


def classify_features(
    cells: Sequence[Cell],
    map_width: float,
    map_height: float,
    border_tolerance: float = DEFAULT_BORDER_TOLERANCE,
) -> List[Feature]:
    """
    Partition all cells into one ocean, lakes and islands.

    Three flood fills run in order: the ocean from every water cell near the
    border, then one lake per remaining water component, then one island per
    land component. Cells are visited in ascending id so feature ids are
    reproducible.

    Args:
        cells: Cells with ``is_land`` set, sorted by id
        map_width: Map width
        map_height: Map height
        border_tolerance: Centroid distance from an edge that counts as border

    Returns:
        Features ordered by id; the ocean is always id 0
    """
    index = build_index(cells)
    for cell in cells:
        cell.feature_id = None

    def is_border(cell: Cell) -> bool:
        x, y = cell.centroid
        return near_border(x, y, border_tolerance, map_width, map_height)

    # Ocean
    seeds = [i for i, c in enumerate(cells) if not c.is_land and is_border(c)]
    ocean_cells = _flood_fill(cells, index, seeds, land=False, feature_id=0)
    features = [
        Feature(
            id=0,
            kind=FeatureKind.OCEAN,
            touches_border=True,
            cell_ids=ocean_cells,
            name="Ocean",
        )
    ]
    if not ocean_cells:
        logger.warning("No water cell touches the map border, ocean is empty")

    # Lakes
    lakes = 0
    for i, cell in enumerate(cells):
        if cell.is_land or cell.feature_id is not None:
            continue
        feature_id = len(features)
        lake_cells = _flood_fill(cells, index, [i], land=False, feature_id=feature_id)
        lakes += 1
        features.append(
            Feature(
                id=feature_id,
                kind=FeatureKind.LAKE,
                touches_border=False,
                cell_ids=lake_cells,
                name=f"Lake {lakes}",
            )
        )

    # Islands and continents
    islands = 0
    for i, cell in enumerate(cells):
        if not cell.is_land or cell.feature_id is not None:
            continue
        feature_id = len(features)
        island_cells = _flood_fill(cells, index, [i], land=True, feature_id=feature_id)
        touches_border = any(is_border(cells[index[c]]) for c in island_cells)
        islands += 1
        features.append(
            Feature(
                id=feature_id,
                kind=FeatureKind.ISLAND,
                touches_border=touches_border,
                cell_ids=island_cells,
                name=f"{'Continent' if touches_border else 'Island'} {islands}",
            )
        )

    logger.info(
        "Features labeled",
        ocean_cells=len(ocean_cells),
        lakes=lakes,
        islands=islands,
    )
    return features


def remove_small_islands(
    cells: Sequence[Cell],
    features: Sequence[Feature],
    min_fraction: float = DEFAULT_MIN_ISLAND_FRACTION,
) -> int:
    """
    Drown islands that are too small to keep.

    Islands that do not touch the border and have fewer than
    ``floor(len(cells) * min_fraction)`` cells become water. Features must be
    re-labelled afterwards.

    Returns:
        Number of islands removed
    """
    min_cells = math.floor(len(cells) * min_fraction)
    index = build_index(cells)
    removed = 0

    for feature in features:
        if feature.kind is not FeatureKind.ISLAND or feature.touches_border:
            continue
        if feature.size >= min_cells:
            continue
        for cell_id in feature.cell_ids:
            cell = cells[index[cell_id]]
            cell.is_land = False
            cell.height = 0.0
        removed += 1

    if removed:
        logger.info(
            "Removed tiny islands", removed=removed, min_cells=min_cells
        )
    return removed
