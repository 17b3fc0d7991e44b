"""Shared fixtures: small hand-built meshes with known geometry."""

import pytest

from py_coastmap.core.mesh import Cell, Mesh


def square_grid_mesh(cols, rows, size=10.0):
    """
    Mesh of ``cols`` x ``rows`` square cells.

    Cell ids run row by row; cell ``r * cols + c`` spans
    [c*size, (c+1)*size] x [r*size, (r+1)*size].
    """
    cells = []
    for r in range(rows):
        for c in range(cols):
            x0, y0 = c * size, r * size
            x1, y1 = x0 + size, y0 + size
            neighbors = []
            if r > 0:
                neighbors.append((r - 1) * cols + c)
            if c > 0:
                neighbors.append(r * cols + c - 1)
            if c < cols - 1:
                neighbors.append(r * cols + c + 1)
            if r < rows - 1:
                neighbors.append((r + 1) * cols + c)
            cells.append(
                Cell(
                    id=r * cols + c,
                    centroid=(x0 + size / 2, y0 + size / 2),
                    polygon=[(x0, y0), (x1, y0), (x1, y1), (x0, y1)],
                    neighbor_ids=neighbors,
                )
            )
    return Mesh(cells=cells, width=cols * size, height=rows * size)


def set_land(mesh, land_ids, height=1.0):
    """Mark the given cells as land, everything else as water."""
    for cell in mesh.cells:
        cell.is_land = cell.id in land_ids
        cell.height = height if cell.is_land else 0.0


def diamond_mesh():
    """
    30x30 map: an interior diamond (cell 1) surrounded by three border cells.

    Cell 0 covers the top, cells 2 and 3 the bottom-left and bottom-right.
    """
    cells = [
        Cell(
            id=0,
            centroid=(15.0, 4.0),
            polygon=[(0, 0), (30, 0), (30, 15), (25, 15), (15, 5), (5, 15), (0, 15)],
            neighbor_ids=[1, 2, 3],
        ),
        Cell(
            id=1,
            centroid=(15.0, 15.0),
            polygon=[(15, 5), (25, 15), (15, 25), (5, 15)],
            neighbor_ids=[0, 2, 3],
        ),
        Cell(
            id=2,
            centroid=(5.0, 25.0),
            polygon=[(0, 15), (5, 15), (15, 25), (15, 30), (0, 30)],
            neighbor_ids=[0, 1, 3],
        ),
        Cell(
            id=3,
            centroid=(25.0, 25.0),
            polygon=[(15, 25), (25, 15), (30, 15), (30, 30), (15, 30)],
            neighbor_ids=[0, 1, 2],
        ),
    ]
    return Mesh(cells=cells, width=30.0, height=30.0)


@pytest.fixture
def grid3():
    return square_grid_mesh(3, 3)


@pytest.fixture
def grid5():
    return square_grid_mesh(5, 5)


@pytest.fixture
def diamond():
    return diamond_mesh()
