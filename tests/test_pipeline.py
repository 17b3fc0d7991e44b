"""
End-to-end tests for a full generation pass on a generated Voronoi mesh.
"""

import pytest

from py_coastmap.config import Settings
from py_coastmap.core.boundary_edges import on_map_border
from py_coastmap.core.boundary_loops import CLOSED, OPEN
from py_coastmap.core.features import FeatureKind
from py_coastmap.core.height_field import HeightFieldParams
from py_coastmap.core.land_water import near_border
from py_coastmap.core.mesh import generate_mesh
from py_coastmap.core.pipeline import generate_map, generate_map_from_settings

WIDTH, HEIGHT = 400, 300
MARGIN = 30


def make_params(**overrides):
    values = dict(map_width=WIDTH, map_height=HEIGHT, water_margin=MARGIN)
    values.update(overrides)
    return HeightFieldParams(**values)


@pytest.fixture
def result():
    mesh = generate_mesh(WIDTH, HEIGHT, 600, seed="pipeline")
    return generate_map(mesh, make_params(), seed="pipeline")


class TestGenerateMap:
    """Test invariants of a full pass."""

    def test_features_partition_cells(self, result):
        seen = []
        for feature in result.features:
            seen.extend(feature.cell_ids)
        assert sorted(seen) == sorted(c.id for c in result.mesh.cells)
        assert len(seen) == len(set(seen))

    def test_ocean_is_first(self, result):
        assert result.ocean.id == 0
        assert result.ocean.kind is FeatureKind.OCEAN
        assert [f.id for f in result.features] == list(range(len(result.features)))

    def test_land_generated(self, result):
        assert result.land_water.land_cells > 0
        assert result.features_of_kind(FeatureKind.ISLAND)
        assert result.height_stats.max_height > 0

    def test_border_strip_is_water(self, result):
        for cell in result.mesh.cells:
            x, y = cell.centroid
            if near_border(x, y, MARGIN, WIDTH, HEIGHT):
                assert cell.is_land is False
                assert cell.height == 0.0

    def test_every_feature_but_ocean_has_a_path(self, result):
        expected = {f.id for f in result.features if f.kind is not FeatureKind.OCEAN}
        assert set(result.boundaries) == expected

    def test_closed_paths_are_complete_loops(self, result):
        for path in result.boundaries.values():
            if path.topology == CLOSED and path.complete:
                assert path.closed is True
                assert path.points[0] == path.points[-1]
                assert path.segment_count == path.edge_count

    def test_open_chains_end_on_map_border(self, result):
        for path in result.boundaries.values():
            if path.topology == OPEN and path.complete:
                assert on_map_border(path.points[0], WIDTH, HEIGHT)
                assert on_map_border(path.points[-1], WIDTH, HEIGHT)

    def test_edges_carry_land_feature(self, result):
        land_features = {
            f.id for f in result.features_of_kind(FeatureKind.ISLAND)
        }
        for edge in result.boundary_edges:
            assert edge.feature_id in land_features

    def test_small_islands_removed(self, result):
        min_cells = int(len(result.mesh) * 0.01)
        for feature in result.features_of_kind(FeatureKind.ISLAND):
            if not feature.touches_border:
                assert feature.size >= min_cells

    def test_same_seed_same_map(self):
        first = generate_map(
            generate_mesh(WIDTH, HEIGHT, 300, seed="again"), make_params(), seed="x"
        )
        second = generate_map(
            generate_mesh(WIDTH, HEIGHT, 300, seed="again"), make_params(), seed="x"
        )

        assert [c.height for c in first.mesh.cells] == [
            c.height for c in second.mesh.cells
        ]
        assert [f.cell_ids for f in first.features] == [
            f.cell_ids for f in second.features
        ]
        assert {k: p.points for k, p in first.boundaries.items()} == {
            k: p.points for k, p in second.boundaries.items()
        }

    def test_rerun_on_same_mesh(self):
        mesh = generate_mesh(WIDTH, HEIGHT, 300, seed="reuse")
        first = generate_map(mesh, make_params(), seed="y")
        heights = [c.height for c in mesh.cells]
        second = generate_map(mesh, make_params(), seed="y")

        assert [c.height for c in mesh.cells] == heights
        assert len(first.boundary_edges) == len(second.boundary_edges)

    def test_seed_drawn_when_missing(self):
        mesh = generate_mesh(WIDTH, HEIGHT, 200, seed="s")
        result = generate_map(mesh, make_params())
        assert result.seed

    def test_no_blobs_gives_empty_ocean_world(self):
        mesh = generate_mesh(WIDTH, HEIGHT, 300, seed="flat")
        result = generate_map(mesh, make_params(blob_count=0), seed="flat")

        assert result.land_water.degenerate is True
        assert result.land_water.land_cells == 0
        assert len(result.features) == 1
        assert result.ocean.size == len(mesh)
        assert result.boundary_edges == []
        assert result.boundaries == {}
        assert any("degenerate" in d for d in result.diagnostics)

    def test_default_params_sized_to_mesh(self):
        mesh = generate_mesh(WIDTH, HEIGHT, 300, seed="defaults")
        result = generate_map(mesh, seed="defaults")
        assert result.mesh is mesh
        assert result.ocean.kind is FeatureKind.OCEAN

    def test_params_for_another_map_size_rejected(self):
        mesh = generate_mesh(WIDTH, HEIGHT, 200, seed="sizes")
        params = HeightFieldParams(map_width=WIDTH * 2, map_height=HEIGHT)
        with pytest.raises(ValueError):
            generate_map(mesh, params, seed="sizes")


class TestGenerateFromSettings:
    def test_runs_with_settings(self):
        settings = Settings(map_width=300, map_height=200, n_points=300, seed="abc")
        result = generate_map_from_settings(settings)

        assert result.seed == "abc"
        assert result.mesh.width == 300
        assert result.mesh.height == 200
        assert result.ocean.id == 0

    def test_settings_are_reproducible(self):
        settings = Settings(map_width=300, map_height=200, n_points=200, seed="abc")
        first = generate_map_from_settings(settings)
        second = generate_map_from_settings(settings)
        assert [f.cell_ids for f in first.features] == [
            f.cell_ids for f in second.features
        ]

    def test_unseeded_run_reproducible_from_reported_seed(self):
        first = generate_map_from_settings(
            Settings(map_width=300, map_height=200, n_points=200)
        )
        second = generate_map_from_settings(
            Settings(map_width=300, map_height=200, n_points=200, seed=first.seed)
        )

        assert [c.centroid for c in first.mesh.cells] == [
            c.centroid for c in second.mesh.cells
        ]
        assert [c.height for c in first.mesh.cells] == [
            c.height for c in second.mesh.cells
        ]
