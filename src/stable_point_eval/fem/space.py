from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import numpy as np
from scipy.spatial import KDTree

from stable_point_eval.errors import GeometryError

if TYPE_CHECKING:
    import numpy.typing as npt
    from stable_point_eval.mesh.core import Mesh


class LagrangeP1Space:
    """Continuous piecewise-linear Lagrange space, one dof per mesh vertex."""

    def __init__(self, mesh: Mesh) -> None:
        if mesh.cells.shape[1] != 3:
            raise GeometryError("LagrangeP1Space requires a triangular mesh")
        self._mesh = mesh
        self._tree: KDTree | None = None

    @property
    def mesh(self) -> Mesh:
        return self._mesh

    @property
    def num_dofs(self) -> int:
        return self._mesh.num_vertices

    def interpolate(self, f: Callable[[np.ndarray], float]) -> FeFunction:
        """Nodal interpolant of ``f``."""
        coeffs = np.array([f(p) for p in self._mesh.vertices], dtype=np.float64)
        return FeFunction(self, coeffs)

    # ----------------------------- Point location ------------------------
    def _centroid_tree(self) -> KDTree:
        if self._tree is None:
            self._tree = KDTree(self._mesh.centroids())
        return self._tree

    def barycentric(self, cell: int, p: np.ndarray) -> npt.NDArray[np.float64]:
        v0, v1, v2 = self._mesh.vertices[self._mesh.cells[cell]]
        T = np.column_stack((v1 - v0, v2 - v0))
        l1, l2 = np.linalg.solve(T, p - v0)
        return np.array([1.0 - l1 - l2, l1, l2])

    def locate(self, p, *, k: int = 8, tol: float = 1e-12) -> tuple[int, npt.NDArray[np.float64]]:
        """
        Return (cell index, barycentric coordinates) of a cell containing ``p``.
        Candidates are the ``k`` cells with the nearest centroids; all cells are
        scanned if none of them contains the point.
        """
        p = np.asarray(p, dtype=np.float64)
        k = min(k, self._mesh.num_cells)
        _, near = self._centroid_tree().query(p, k=k)
        candidates = np.atleast_1d(near)

        for cell in candidates:
            lam = self.barycentric(int(cell), p)
            if lam.min() >= -tol:
                return int(cell), lam

        for cell in self._mesh.entities(0):
            lam = self.barycentric(cell, p)
            if lam.min() >= -tol:
                return cell, lam

        raise GeometryError(f"point {p.tolist()} lies outside the mesh")


class FeFunction:
    """Finite-element function in a ``LagrangeP1Space``; callable at a point."""

    def __init__(self, space: LagrangeP1Space, coeffs) -> None:
        coeffs = np.asarray(coeffs, dtype=np.float64)
        if coeffs.shape != (space.num_dofs,):
            raise ValueError(
                f"expected {space.num_dofs} coefficients, got shape {coeffs.shape}"
            )
        self.space = space
        self.coeffs = coeffs

    def __call__(self, p) -> float:
        cell, lam = self.space.locate(p)
        return float(np.dot(lam, self.coeffs[self.space.mesh.cells[cell]]))
