"""Planar cell mesh and a reference Voronoi mesh provider."""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from scipy.spatial import Voronoi
from shapely.geometry import Polygon, box
from shapely.geometry.polygon import orient

from .alea_prng import AleaPRNG
from ..utils.random import make_prng

logger = structlog.get_logger()

Point = Tuple[float, float]

# Decimals kept when snapping clipped polygon vertices
SNAP_DECIMALS = 6


@dataclass
class Cell:
    """One polygon of the mesh with its elevation and land/water state."""

    id: int
    centroid: Point
    polygon: List[Point]  # ring, last vertex connects to first
    neighbor_ids: List[int]

    # Mutable per-pass state
    height: float = 0.0
    is_land: bool = False
    feature_id: Optional[int] = None
    is_coastal: bool = False
    coastal_neighbors: int = 0

    def reset(self):
        """Clear everything a generation pass writes."""
        self.height = 0.0
        self.is_land = False
        self.feature_id = None
        self.is_coastal = False
        self.coastal_neighbors = 0


@dataclass
class Mesh:
    """
    Cell collection for one map.

    Cells are kept sorted by id so that every stage iterates them in a stable
    order. ``index`` maps a cell id to its position in ``cells``.
    """

    cells: List[Cell]
    width: float
    height: float
    index: Dict[int, int] = field(init=False, repr=False)

    def __post_init__(self):
        self.cells = sorted(self.cells, key=lambda c: c.id)
        self.index = build_index(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def cell(self, cell_id: int) -> Cell:
        return self.cells[self.index[cell_id]]

    def reset(self):
        """Reset mutable fields on every cell before a new pass."""
        for cell in self.cells:
            cell.reset()

    @property
    def centroids(self) -> np.ndarray:
        """(n, 2) array of cell centroids, in cell order."""
        if not self.cells:
            return np.zeros((0, 2))
        return np.array([c.centroid for c in self.cells], dtype=float)


def build_index(cells: Sequence[Cell]) -> Dict[int, int]:
    """Map cell id to position in ``cells``."""
    return {cell.id: i for i, cell in enumerate(cells)}


def get_jittered_points(
    width: float, height: float, n_points: int, prng: AleaPRNG
) -> np.ndarray:
    """
    Generate evenly distributed points using jittered grid sampling.

    Columns and rows follow the map aspect ratio. Each point is offset by up
    to 40% of a grid step in each direction; points that fall outside the map
    are dropped.

    Args:
        width: Map width
        height: Map height
        n_points: Approximate number of points wanted
        prng: Random source

    Returns:
        Array of [x, y] point coordinates
    """
    cols = math.ceil(math.sqrt(n_points * (width / height)))
    rows = math.ceil(n_points / cols)
    step_x = width / cols
    step_y = height / rows

    points = []
    for i in range(rows):
        for j in range(cols):
            x = (j + 0.5) * step_x + (prng.random() - 0.5) * step_x * 0.8
            y = (i + 0.5) * step_y + (prng.random() - 0.5) * step_y * 0.8
            if 0 <= x < width and 0 <= y < height:
                points.append([x, y])

    return np.array(points, dtype=float)


def _mirror_points(points: np.ndarray, width: float, height: float) -> np.ndarray:
    """Reflect sites across the four map edges so every real cell is bounded."""
    x, y = points[:, 0], points[:, 1]
    return np.vstack(
        [
            np.column_stack([-x, y]),
            np.column_stack([2 * width - x, y]),
            np.column_stack([x, -y]),
            np.column_stack([x, 2 * height - y]),
        ]
    )


def _clean_ring(polygon: Polygon) -> List[Point]:
    """Counter-clockwise ring with snapped vertices and no repeats."""
    ring = list(orient(polygon, sign=1.0).exterior.coords)[:-1]
    snapped = []
    for x, y in ring:
        p = (round(x, SNAP_DECIMALS) + 0.0, round(y, SNAP_DECIMALS) + 0.0)
        if not snapped or snapped[-1] != p:
            snapped.append(p)
    if len(snapped) > 1 and snapped[0] == snapped[-1]:
        snapped.pop()
    return snapped


def build_voronoi_mesh(points: np.ndarray, width: float, height: float) -> Mesh:
    """
    Build a mesh of Voronoi cells clipped to the map rectangle.

    Args:
        points: (n, 2) array of sites inside the map
        width: Map width
        height: Map height

    Returns:
        Mesh whose cell ids are the site indices
    """
    points = np.asarray(points, dtype=float)
    if width <= 0 or height <= 0:
        raise ValueError("Map width and height must be positive")
    if len(points) == 0:
        raise ValueError("At least one point is required to build a mesh")
    if (
        np.any(points[:, 0] < 0)
        or np.any(points[:, 0] > width)
        or np.any(points[:, 1] < 0)
        or np.any(points[:, 1] > height)
    ):
        raise ValueError("All points must lie inside the map rectangle")

    n_points = len(points)
    all_points = np.vstack([points, _mirror_points(points, width, height)])
    vor = Voronoi(all_points)

    logger.info(
        "Voronoi diagram calculated",
        sites=n_points,
        vertices=len(vor.vertices),
        ridges=len(vor.ridge_points),
    )

    neighbors = [set() for _ in range(n_points)]
    for p1, p2 in vor.ridge_points:
        if p1 < n_points and p2 < n_points:
            neighbors[p1].add(int(p2))
            neighbors[p2].add(int(p1))

    bounds = box(0, 0, width, height)
    cells = []
    for i in range(n_points):
        region = vor.regions[vor.point_region[i]]
        if not region or -1 in region:
            logger.warning("Unbounded Voronoi region skipped", cell=i)
            continue

        clipped = Polygon(vor.vertices[region]).intersection(bounds)
        if clipped.is_empty or clipped.geom_type != "Polygon":
            logger.warning("Degenerate cell polygon skipped", cell=i)
            continue

        ring = _clean_ring(clipped)
        if len(ring) < 3:
            logger.warning("Degenerate cell polygon skipped", cell=i)
            continue

        cells.append(
            Cell(
                id=i,
                centroid=(float(points[i][0]), float(points[i][1])),
                polygon=ring,
                neighbor_ids=sorted(neighbors[i]),
            )
        )

    # Drop references to cells that were skipped
    kept = {c.id for c in cells}
    for cell in cells:
        cell.neighbor_ids = [n for n in cell.neighbor_ids if n in kept]

    logger.info("Mesh built", cells=len(cells))
    return Mesh(cells=cells, width=width, height=height)


def generate_mesh(
    width: float, height: float, n_points: int, seed: Optional[str] = None
) -> Mesh:
    """
    Generate a jittered-grid Voronoi mesh.

    Args:
        width: Map width
        height: Map height
        n_points: Approximate number of cells
        seed: Random seed for reproducibility

    Returns:
        Mesh
    """
    logger.info(
        "Generating mesh", width=width, height=height, n_points=n_points, seed=seed
    )
    prng = make_prng(seed)
    points = get_jittered_points(width, height, n_points, prng)
    return build_voronoi_mesh(points, width, height)
