"""
Core map generation functionality.
"""

from .mesh import Cell, Mesh, build_voronoi_mesh, generate_mesh, get_jittered_points
from .height_field import HeightFieldParams, HeightFieldStats, synthesize_height_field
from .land_water import (
    LandWaterStats,
    adaptive_sea_level,
    carve_border_water,
    classify_land_water,
    mark_coastal_cells,
)
from .boundary_edges import (
    MAP_BORDER,
    VERTEX_PRECISION,
    BoundaryEdge,
    edge_key,
    extract_boundary_edges,
    vertex_key,
)
from .features import Feature, FeatureKind, classify_features, remove_small_islands
from .boundary_loops import (
    BoundaryPath,
    assemble_boundaries,
    assemble_boundary,
    boundary_geometry,
)
from .pipeline import MapResult, generate_map, generate_map_from_settings

__all__ = ['Cell', 'Mesh', 'build_voronoi_mesh', 'generate_mesh', 'get_jittered_points',
           'HeightFieldParams', 'HeightFieldStats', 'synthesize_height_field',
           'LandWaterStats', 'adaptive_sea_level', 'carve_border_water',
           'classify_land_water', 'mark_coastal_cells',
           'MAP_BORDER', 'VERTEX_PRECISION', 'BoundaryEdge', 'edge_key',
           'extract_boundary_edges', 'vertex_key',
           'Feature', 'FeatureKind', 'classify_features', 'remove_small_islands',
           'BoundaryPath', 'assemble_boundaries', 'assemble_boundary', 'boundary_geometry',
           'MapResult', 'generate_map', 'generate_map_from_settings']
