from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from stable_point_eval.errors import GeometryError
from stable_point_eval.mesh.preprocess import (
    build_edges,
    outward_edge_normals,
    validate_mesh_arrays,
)

if TYPE_CHECKING:
    import numpy.typing as npt


class Mesh:
    """
    Planar cell mesh with read-only geometry accessors.

    Entities are addressed by codimension: 0 = cells, 1 = edges, 2 = vertices.
    Cells are triangles (3 corners) or quadrilaterals (4 corners); the
    quadrature routines only accept triangles.
    """

    def __init__(self, vertices, cells) -> None:
        ok, issues = validate_mesh_arrays(vertices, cells)
        if not ok:
            raise GeometryError("Invalid mesh:\n" + "\n".join(issues))

        self.vertices: npt.NDArray[np.float64] = np.array(vertices, dtype=np.float64)
        self.cells: npt.NDArray[np.int64] = np.array(cells, dtype=np.int64)

        self.edges, self.edge_cells = build_edges(self.cells)
        self.boundary_flags: npt.NDArray[np.bool_] = self.edge_cells[:, 1] < 0
        self.edge_normals = outward_edge_normals(
            self.vertices, self.cells, self.edges, self.edge_cells
        )

        for arr in (self.vertices, self.cells, self.edges, self.edge_cells,
                    self.boundary_flags, self.edge_normals):
            arr.setflags(write=False)

    def __repr__(self) -> str:
        return (f"Mesh(vertices={self.num_vertices}, edges={self.num_edges}, "
                f"cells={self.num_cells}, corners_per_cell={self.cells.shape[1]})")

    # ----------------------------- Topology ------------------------------
    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def num_edges(self) -> int:
        return int(self.edges.shape[0])

    @property
    def num_cells(self) -> int:
        return int(self.cells.shape[0])

    def entities(self, codim: int) -> range:
        """Indices of all entities of the given codimension."""
        if codim == 0:
            return range(self.num_cells)
        if codim == 1:
            return range(self.num_edges)
        if codim == 2:
            return range(self.num_vertices)
        raise ValueError(f"Unsupported codimension {codim}; expected 0, 1 or 2.")

    def boundary_edges(self) -> npt.NDArray[np.int64]:
        return np.flatnonzero(self.boundary_flags)

    def is_boundary(self, edge: int) -> bool:
        return bool(self.boundary_flags[edge])

    def is_triangle(self, cell: int) -> bool:
        return self.cells.shape[1] == 3

    # ----------------------------- Geometry ------------------------------
    def corners(self, codim: int, idx: int) -> npt.NDArray[np.float64]:
        """Corner coordinates as columns, shape (2, n_corners)."""
        if codim == 0:
            return self.vertices[self.cells[idx]].T
        if codim == 1:
            return self.vertices[self.edges[idx]].T
        if codim == 2:
            return self.vertices[idx].reshape(2, 1)
        raise ValueError(f"Unsupported codimension {codim}; expected 0, 1 or 2.")

    def volume(self, codim: int, idx: int) -> float:
        """Edge length (codim 1) or cell area (codim 0)."""
        c = self.corners(codim, idx)
        if codim == 1:
            return float(np.linalg.norm(c[:, 1] - c[:, 0]))
        if codim == 0:
            x, y = c[0], c[1]
            return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))
        return 0.0

    def edge_midpoint(self, edge: int) -> npt.NDArray[np.float64]:
        c = self.corners(1, edge)
        return 0.5 * (c[:, 0] + c[:, 1])

    def outward_normal(self, edge: int) -> npt.NDArray[np.float64]:
        if not self.boundary_flags[edge]:
            raise GeometryError(f"edge {edge} is not on the boundary; no outward normal")
        return self.edge_normals[edge]

    def centroids(self) -> npt.NDArray[np.float64]:
        return self.vertices[self.cells].mean(axis=1)

    def _triangle_corners(self, cell: int) -> npt.NDArray[np.float64]:
        if not self.is_triangle(cell):
            raise GeometryError(
                f"cell {cell} has {self.cells.shape[1]} corners; a triangular mesh is required"
            )
        return self.vertices[self.cells[cell]]

    def jacobian(self, cell: int) -> npt.NDArray[np.float64]:
        """Constant Jacobian of the affine map from the reference triangle."""
        v0, v1, v2 = self._triangle_corners(cell)
        return np.column_stack((v1 - v0, v2 - v0))

    def global_map(self, cell: int, ref_points) -> npt.NDArray[np.float64]:
        """
        Map reference-triangle points (P, 2) with vertices (0,0), (1,0), (0,1)
        to physical coordinates (P, 2).
        """
        v0 = self._triangle_corners(cell)[0]
        ref_points = np.atleast_2d(np.asarray(ref_points, dtype=np.float64))
        return v0 + ref_points @ self.jacobian(cell).T

    def integration_element(self, cell: int) -> float:
        """|det J| of the reference-to-physical map (twice the triangle area)."""
        return abs(float(np.linalg.det(self.jacobian(cell))))
