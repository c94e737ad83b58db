import math

import numpy as np
import pytest

from stable_point_eval.bem.core import mesh_size, square_outward_normal
from stable_point_eval.errors import GeometryError
from stable_point_eval.mesh.core import Mesh
from stable_point_eval.mesh.preprocess import build_edges, validate_mesh_arrays
from stable_point_eval.mesh.square import refine_hierarchy, unit_square_mesh


@pytest.mark.parametrize("n", [1, 3, 8])
def test_unit_square_counts(n):
    mesh = unit_square_mesh(n)
    assert mesh.num_vertices == (n + 1) ** 2
    assert mesh.num_cells == 2 * n * n
    assert mesh.num_edges == 3 * n * n + 2 * n
    assert mesh.boundary_edges().size == 4 * n


def test_quad_mesh_counts():
    mesh = unit_square_mesh(4, cell_type="quad")
    assert mesh.num_cells == 16
    assert mesh.num_edges == 2 * 4 * 5
    assert not mesh.is_triangle(0)


def test_cells_tile_the_square(square8):
    areas = [square8.volume(0, c) for c in square8.entities(0)]
    assert sum(areas) == pytest.approx(1.0)
    assert min(areas) == pytest.approx(1.0 / 128)


def test_mesh_size():
    assert mesh_size(unit_square_mesh(4)) == pytest.approx(math.sqrt(2.0) / 4)
    assert mesh_size(unit_square_mesh(4, cell_type="quad")) == pytest.approx(0.25)


def test_refine_hierarchy_halves_mesh_size():
    meshes = refine_hierarchy(2, 3)
    hs = [mesh_size(m) for m in meshes]
    assert [m.num_cells for m in meshes] == [8, 32, 128]
    assert hs[0] / hs[1] == pytest.approx(2.0)
    assert hs[1] / hs[2] == pytest.approx(2.0)


def test_boundary_normals_match_square_rule(square8):
    for e in square8.boundary_edges():
        mid = square8.edge_midpoint(e)
        np.testing.assert_allclose(square8.outward_normal(e), square_outward_normal(mid))


def test_boundary_edges_lie_on_boundary(square8):
    for e in square8.boundary_edges():
        mid = square8.edge_midpoint(e)
        assert min(mid[0], mid[1], 1.0 - mid[0], 1.0 - mid[1]) == pytest.approx(0.0)


def test_outward_normal_interior_edge_raises(square8):
    interior = np.flatnonzero(~square8.boundary_flags)
    with pytest.raises(GeometryError):
        square8.outward_normal(int(interior[0]))


def test_square_outward_normal_sides():
    np.testing.assert_array_equal(square_outward_normal((0.4, 0.0)), [0.0, -1.0])
    np.testing.assert_array_equal(square_outward_normal((1.0, 0.3)), [1.0, 0.0])
    np.testing.assert_array_equal(square_outward_normal((0.6, 1.0)), [0.0, 1.0])
    np.testing.assert_array_equal(square_outward_normal((0.0, 0.7)), [-1.0, 0.0])


def test_global_map_and_integration_element():
    mesh = Mesh([[0.0, 0.0], [2.0, 0.0], [0.0, 1.0]], [[0, 1, 2]])
    np.testing.assert_allclose(mesh.global_map(0, [[1/3, 1/3]]), [[2/3, 1/3]])
    np.testing.assert_allclose(mesh.global_map(0, [[1.0, 0.0], [0.0, 1.0]]), [[2.0, 0.0], [0.0, 1.0]])
    assert mesh.integration_element(0) == pytest.approx(2.0)
    assert mesh.volume(0, 0) == pytest.approx(1.0)


def test_global_map_rejects_quads():
    mesh = unit_square_mesh(2, cell_type="quad")
    with pytest.raises(GeometryError):
        mesh.global_map(0, [[1/3, 1/3]])


def test_entities_and_corners(square8):
    assert len(square8.entities(0)) == square8.num_cells
    assert len(square8.entities(2)) == square8.num_vertices
    assert square8.corners(0, 0).shape == (2, 3)
    assert square8.corners(1, 0).shape == (2, 2)
    with pytest.raises(ValueError):
        square8.entities(3)


def test_mesh_arrays_are_read_only(square8):
    with pytest.raises(ValueError):
        square8.vertices[0, 0] = 5.0


def test_build_edges_shared_edge():
    edges, edge_cells = build_edges([[0, 1, 2], [0, 2, 3]])
    assert edges.shape == (5, 2)
    shared = [i for i, (a, b) in enumerate(edges) if (a, b) == (0, 2)]
    assert len(shared) == 1
    assert sorted(edge_cells[shared[0]].tolist()) == [0, 1]
    assert (edge_cells[:, 1] < 0).sum() == 4


@pytest.mark.parametrize(
    "vertices, cells, fragment",
    [
        ([[0.0, 0.0], [1.0, 0.0]], [[0, 1, 2]], "out of range"),
        ([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]], [[0, 1, 2]], "degenerate"),
        ([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], [[0, 1]], "corners"),
        ([[0.0, 0.0, 0.0]], [[0, 0, 0]], "vertices"),
    ],
)
def test_invalid_meshes_rejected(vertices, cells, fragment):
    ok, issues = validate_mesh_arrays(vertices, cells)
    assert not ok
    assert any(fragment in msg for msg in issues)
    with pytest.raises(GeometryError):
        Mesh(vertices, cells)


def test_unit_square_mesh_bad_arguments():
    with pytest.raises(ValueError):
        unit_square_mesh(0)
    with pytest.raises(ValueError):
        unit_square_mesh(2, cell_type="hex")
