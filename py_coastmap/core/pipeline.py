"""
End-to-end generation pass.

Runs the stages in dependency order over one mesh:
synthesis -> land/water -> features -> boundary edges -> loops -> carving.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from .boundary_edges import (
    BORDER_TOLERANCE,
    VERTEX_PRECISION,
    BoundaryEdge,
    extract_boundary_edges,
)
from .boundary_loops import BoundaryPath, assemble_boundaries
from .features import (
    DEFAULT_BORDER_TOLERANCE,
    DEFAULT_MIN_ISLAND_FRACTION,
    Feature,
    FeatureKind,
    classify_features,
    remove_small_islands,
)
from .height_field import HeightFieldParams, HeightFieldStats, synthesize_height_field
from .land_water import (
    LandWaterStats,
    carve_border_water,
    classify_land_water,
    mark_coastal_cells,
)
from .mesh import Mesh, generate_mesh
from ..utils.random import make_prng, new_seed

logger = structlog.get_logger()

DEFAULT_SEA_LEVEL = 0.15


@dataclass
class MapResult:
    """Everything one generation pass produced."""

    mesh: Mesh
    seed: str
    features: List[Feature]
    boundary_edges: List[BoundaryEdge]
    boundaries: Dict[int, BoundaryPath]
    height_stats: HeightFieldStats
    land_water: LandWaterStats
    removed_islands: int = 0
    carved_cells: int = 0
    diagnostics: List[str] = field(default_factory=list)

    def features_of_kind(self, kind: FeatureKind) -> List[Feature]:
        return [f for f in self.features if f.kind is kind]

    @property
    def ocean(self) -> Feature:
        return self.features[0]


def generate_map(
    mesh: Mesh,
    params: Optional[HeightFieldParams] = None,
    *,
    seed: Optional[str] = None,
    sea_level: float = DEFAULT_SEA_LEVEL,
    min_island_fraction: float = DEFAULT_MIN_ISLAND_FRACTION,
    vertex_precision: int = VERTEX_PRECISION,
    border_tolerance: float = DEFAULT_BORDER_TOLERANCE,
    vertex_border_tolerance: float = BORDER_TOLERANCE,
) -> MapResult:
    """
    Run one full generation pass over ``mesh``.

    Args:
        mesh: Mesh to generate on; its cells are reset first
        params: Terrain parameters (defaults sized to the mesh)
        seed: Random seed; a fresh one is drawn when omitted
        sea_level: Target sea level
        min_island_fraction: Islands below this share of cells are drowned
        vertex_precision: Decimal places for vertex identity
        border_tolerance: Centroid distance from an edge that counts as border
        vertex_border_tolerance: Distance within which a vertex is on an edge

    Returns:
        MapResult

    Raises:
        ValueError: If ``params`` is sized for a different map than ``mesh``
    """
    if params is None:
        params = HeightFieldParams(map_width=mesh.width, map_height=mesh.height)
    elif (params.map_width, params.map_height) != (mesh.width, mesh.height):
        raise ValueError(
            f"Terrain parameters are sized {params.map_width}x{params.map_height} "
            f"but the mesh is {mesh.width}x{mesh.height}"
        )
    seed = seed if seed is not None else new_seed()
    width, height = mesh.width, mesh.height
    diagnostics = []

    logger.info("Starting map generation", cells=len(mesh), seed=seed)
    mesh.reset()

    height_stats = synthesize_height_field(mesh, params, make_prng(seed))
    land_water = classify_land_water(
        mesh.cells, sea_level, continental_mode=params.continental_mode
    )
    if land_water.degenerate:
        diagnostics.append("degenerate terrain: no cell had a positive height")
    mark_coastal_cells(mesh.cells)

    features = classify_features(mesh.cells, width, height, border_tolerance)
    removed = remove_small_islands(mesh.cells, features, min_island_fraction)
    if removed:
        mark_coastal_cells(mesh.cells)
        features = classify_features(mesh.cells, width, height, border_tolerance)

    # Edges come from the true geometry, before border carving
    edges = extract_boundary_edges(
        mesh.cells, width, height, vertex_precision, vertex_border_tolerance
    )
    boundaries = assemble_boundaries(edges, features, vertex_precision)
    for feature_id, path in boundaries.items():
        for message in path.warnings:
            diagnostics.append(f"feature {feature_id}: {message}")

    carved = carve_border_water(mesh.cells, params.water_margin, width, height)

    result = MapResult(
        mesh=mesh,
        seed=seed,
        features=features,
        boundary_edges=edges,
        boundaries=boundaries,
        height_stats=height_stats,
        land_water=land_water,
        removed_islands=removed,
        carved_cells=carved,
        diagnostics=diagnostics,
    )
    logger.info(
        "Map generation complete",
        features=len(features),
        lakes=len(result.features_of_kind(FeatureKind.LAKE)),
        islands=len(result.features_of_kind(FeatureKind.ISLAND)),
        diagnostics=len(diagnostics),
    )
    return result


def generate_map_from_settings(settings) -> MapResult:
    """
    Build a mesh and run a pass using a ``Settings`` instance.

    The mesh and the terrain share one seed, so ``MapResult.seed`` reproduces
    the whole map.
    """
    seed = settings.seed if settings.seed is not None else new_seed()
    mesh = generate_mesh(
        settings.map_width, settings.map_height, settings.n_points, seed
    )
    return generate_map(
        mesh,
        settings.height_field_params(),
        seed=seed,
        sea_level=settings.sea_level,
        min_island_fraction=settings.min_island_fraction,
        vertex_precision=settings.vertex_precision,
        border_tolerance=settings.border_tolerance,
    )
