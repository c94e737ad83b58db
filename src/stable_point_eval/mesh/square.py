from __future__ import annotations

from typing import Literal

import numpy as np

from stable_point_eval.mesh.core import Mesh


def unit_square_mesh(n: int, cell_type: Literal["tria", "quad"] = "tria") -> Mesh:
    """
    Structured mesh of [0,1]^2 with n x n squares.

    For ``cell_type="tria"`` every square is split along its (0,0)-(1,1)
    diagonal into two counter-clockwise triangles.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if cell_type not in ("tria", "quad"):
        raise ValueError(f"cell_type must be 'tria' or 'quad', got {cell_type!r}")

    t = np.linspace(0.0, 1.0, n + 1)
    xx, yy = np.meshgrid(t, t, indexing="xy")
    vertices = np.column_stack((xx.ravel(), yy.ravel()))

    def vid(i, j):
        return j * (n + 1) + i

    cells = []
    for j in range(n):
        for i in range(n):
            a, b, c, d = vid(i, j), vid(i + 1, j), vid(i + 1, j + 1), vid(i, j + 1)
            if cell_type == "quad":
                cells.append((a, b, c, d))
            else:
                cells.append((a, b, c))
                cells.append((a, c, d))

    return Mesh(vertices, np.asarray(cells, dtype=np.int64))


def refine_hierarchy(n0: int, levels: int, cell_type: Literal["tria", "quad"] = "tria") -> list[Mesh]:
    """Meshes with n0 * 2**l squares per side for l = 0..levels-1."""
    if levels < 1:
        raise ValueError(f"levels must be >= 1, got {levels}")
    return [unit_square_mesh(n0 * 2**level, cell_type) for level in range(levels)]
