"""Tests for the mesh data model and the reference Voronoi provider."""

import numpy as np
import pytest

from py_coastmap.core.mesh import (
    Mesh,
    build_voronoi_mesh,
    generate_mesh,
    get_jittered_points,
)
from py_coastmap.utils.random import make_prng

from conftest import square_grid_mesh


class TestJitteredPoints:
    """Test jittered point sampling."""

    def test_point_bounds(self):
        points = get_jittered_points(200, 100, 300, make_prng("test_seed"))
        assert len(points) > 0
        assert np.all(points[:, 0] >= 0)
        assert np.all(points[:, 0] < 200)
        assert np.all(points[:, 1] >= 0)
        assert np.all(points[:, 1] < 100)

    def test_point_count_near_target(self):
        points = get_jittered_points(200, 200, 400, make_prng("count"))
        # 20 x 20 grid, jitter keeps every point inside
        assert len(points) == 400

    def test_jittering_consistency(self):
        p1 = get_jittered_points(50, 50, 25, make_prng("test_seed"))
        p2 = get_jittered_points(50, 50, 25, make_prng("test_seed"))
        np.testing.assert_array_equal(p1, p2)

    def test_different_seeds(self):
        p1 = get_jittered_points(50, 50, 25, make_prng("seed1"))
        p2 = get_jittered_points(50, 50, 25, make_prng("seed2"))
        assert not np.array_equal(p1, p2)


class TestVoronoiMesh:
    """Test Voronoi mesh construction."""

    @pytest.fixture
    def mesh(self):
        return generate_mesh(200, 150, 300, seed="mesh123")

    def test_cells_cover_points(self, mesh):
        assert len(mesh) > 250
        assert [c.id for c in mesh.cells] == sorted(c.id for c in mesh.cells)

    def test_polygons_inside_map(self, mesh):
        for cell in mesh.cells:
            assert len(cell.polygon) >= 3
            for x, y in cell.polygon:
                assert 0 <= x <= mesh.width
                assert 0 <= y <= mesh.height

    def test_neighbors_symmetric(self, mesh):
        for cell in mesh.cells:
            assert cell.id not in cell.neighbor_ids
            for n in cell.neighbor_ids:
                assert cell.id in mesh.cell(n).neighbor_ids

    def test_polygon_areas_sum_to_map(self, mesh):
        from shapely.geometry import Polygon

        total = sum(Polygon(c.polygon).area for c in mesh.cells)
        assert total == pytest.approx(mesh.width * mesh.height, rel=1e-6)

    def test_border_cells_reach_edges(self, mesh):
        on_left = [
            c for c in mesh.cells if any(abs(x) < 1e-9 for x, _ in c.polygon)
        ]
        assert len(on_left) > 0

    def test_reproducible(self):
        a = generate_mesh(100, 100, 100, seed="same")
        b = generate_mesh(100, 100, 100, seed="same")
        assert [c.polygon for c in a.cells] == [c.polygon for c in b.cells]

    def test_rejects_points_outside(self):
        with pytest.raises(ValueError):
            build_voronoi_mesh(np.array([[10.0, 10.0], [120.0, 5.0]]), 100, 100)

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            build_voronoi_mesh(np.zeros((0, 2)), 100, 100)


class TestMesh:
    """Test the Mesh container."""

    def test_index_and_lookup(self):
        mesh = square_grid_mesh(3, 2)
        assert mesh.index[4] == 4
        assert mesh.cell(4).centroid == (15.0, 15.0)

    def test_cells_sorted_by_id(self):
        cells = list(reversed(square_grid_mesh(2, 2).cells))
        mesh = Mesh(cells=cells, width=20, height=20)
        assert [c.id for c in mesh.cells] == [0, 1, 2, 3]

    def test_reset_clears_mutable_fields(self):
        mesh = square_grid_mesh(2, 2)
        for cell in mesh.cells:
            cell.height = 3.0
            cell.is_land = True
            cell.feature_id = 7
            cell.is_coastal = True
        mesh.reset()
        for cell in mesh.cells:
            assert cell.height == 0.0
            assert cell.is_land is False
            assert cell.feature_id is None
            assert cell.is_coastal is False

    def test_centroids_array(self):
        mesh = square_grid_mesh(2, 1)
        np.testing.assert_array_equal(mesh.centroids, [[5.0, 5.0], [15.0, 5.0]])
