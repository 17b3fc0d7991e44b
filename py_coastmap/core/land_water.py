"""
Land/water classification and border handling.

Classification thresholds heights against a sea level (adaptive in continental
mode). Border carving is a separate step that must run after boundary
extraction so that border-clipped coastlines keep their true shape.
"""

import math
from dataclasses import dataclass
from typing import Dict, Sequence

import structlog

from .mesh import Cell, build_index

logger = structlog.get_logger()

ADAPTIVE_PERCENTILE = 0.25
ADAPTIVE_FACTOR = 0.8


@dataclass
class LandWaterStats:
    """Result of one classification pass."""

    effective_sea_level: float
    target_sea_level: float
    land_cells: int
    water_cells: int
    degenerate: bool = False  # no cell had a positive height

    @property
    def land_fraction(self) -> float:
        total = self.land_cells + self.water_cells
        return self.land_cells / total if total else 0.0


def adaptive_sea_level(cells: Sequence[Cell], target_sea_level: float) -> float:
    """
    Sea level for continental terrain.

    Uses ``min(target, p25 * 0.8)`` where p25 is the 25th percentile of all
    positive heights. Falls back to the target when no height is positive.
    """
    heights = sorted(c.height for c in cells if c.height > 0)
    if not heights:
        return target_sea_level
    percentile = heights[int(math.floor(len(heights) * ADAPTIVE_PERCENTILE))]
    return min(target_sea_level, percentile * ADAPTIVE_FACTOR)


def classify_land_water(
    cells: Sequence[Cell], sea_level: float, continental_mode: bool = False
) -> LandWaterStats:
    """
    Set ``is_land`` on every cell and flatten water to height 0.

    Args:
        cells: Cells with synthesized heights
        sea_level: Target sea level
        continental_mode: Use the adaptive sea level

    Returns:
        LandWaterStats
    """
    degenerate = not any(c.height > 0 for c in cells)
    if degenerate:
        logger.warning(
            "Degenerate terrain: no positive heights", cells=len(cells)
        )

    effective = sea_level
    if continental_mode:
        effective = adaptive_sea_level(cells, sea_level)

    land = 0
    for cell in cells:
        cell.is_land = cell.height > effective
        if cell.is_land:
            land += 1
        else:
            cell.height = 0.0

    stats = LandWaterStats(
        effective_sea_level=effective,
        target_sea_level=sea_level,
        land_cells=land,
        water_cells=len(cells) - land,
        degenerate=degenerate,
    )
    logger.info(
        "Sea level classification",
        land_cells=stats.land_cells,
        water_cells=stats.water_cells,
        effective_sea_level=round(effective, 4),
        target_sea_level=sea_level,
        land_coverage=round(stats.land_fraction * 100, 1),
    )
    return stats


def near_border(
    x: float, y: float, margin: float, map_width: float, map_height: float
) -> bool:
    """True when (x, y) lies within ``margin`` of any map edge."""
    return (
        x <= margin
        or x >= map_width - margin
        or y <= margin
        or y >= map_height - margin
    )


def carve_border_water(
    cells: Sequence[Cell], water_margin: float, map_width: float, map_height: float
) -> int:
    """
    Force every land cell whose centroid is within ``water_margin`` of an
    edge to water. Run after boundary extraction.

    Returns:
        Number of cells carved
    """
    carved = 0
    for cell in cells:
        x, y = cell.centroid
        if cell.is_land and near_border(x, y, water_margin, map_width, map_height):
            cell.is_land = False
            cell.height = 0.0
            carved += 1

    if carved:
        logger.info(
            "Border carving", carved_cells=carved, water_margin=water_margin
        )
    return carved


def mark_coastal_cells(cells: Sequence[Cell]) -> int:
    """
    Mark land cells adjacent to water.

    Sets ``is_coastal`` and ``coastal_neighbors`` (number of water
    neighbors). Water cells are never coastal.

    Returns:
        Number of coastal cells
    """
    index: Dict[int, int] = build_index(cells)
    coastal = 0
    for cell in cells:
        if not cell.is_land:
            cell.is_coastal = False
            cell.coastal_neighbors = 0
            continue

        count = 0
        for neighbor_id in cell.neighbor_ids:
            i = index.get(neighbor_id)
            if i is not None and not cells[i].is_land:
                count += 1

        cell.is_coastal = count > 0
        cell.coastal_neighbors = count
        if cell.is_coastal:
            coastal += 1

    logger.debug("Coastal cells marked", coastal_cells=coastal)
    return coastal
