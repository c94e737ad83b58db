from __future__ import annotations

import numpy as np


def validate_mesh_arrays(vertices, cells, *, area_eps=1e-14):
    issues = []

    v = np.asarray(vertices)
    c = np.asarray(cells)

    if v.ndim != 2 or v.shape[1] != 2 or v.shape[0] == 0:
        return False, [f"vertices must be a non-empty (N,2) array, got {v.shape}"]
    if not np.isfinite(v).all():
        issues.append("vertices contain non-finite coordinates")

    if c.ndim != 2 or c.shape[0] == 0:
        return False, issues + [f"cells must be a non-empty (M,k) array, got {c.shape}"]
    if c.shape[1] not in (3, 4):
        issues.append(f"cells must have 3 (triangle) or 4 (quadrilateral) corners, got {c.shape[1]}")
        return False, issues
    if not np.issubdtype(c.dtype, np.integer):
        issues.append(f"cells must hold integer vertex indices, got dtype {c.dtype}")
        return False, issues
    if c.min() < 0 or c.max() >= v.shape[0]:
        issues.append(f"cell vertex index out of range [0, {v.shape[0]})")
        return False, issues

    # ---- geometric checks ----
    for c_idx, cell in enumerate(c):
        if len(set(cell.tolist())) != len(cell):
            issues.append(f"[cell {c_idx}] repeated vertex index {cell.tolist()}")
            continue
        p = v[cell]
        x, y = p[:, 0], p[:, 1]
        # shoelace
        area = 0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
        if not np.isfinite(area) or area <= area_eps:
            issues.append(f"[cell {c_idx}] degenerate area={area:.3e}")

    ok = (len(issues) == 0)
    return ok, issues


def build_edges(cells):
    """
    Unique undirected edges of a cell list.

    Returns
    -------
    edges      : (E, 2) int64 – vertex indices, sorted within each row
    edge_cells : (E, 2) int64 – adjacent cells; second column is -1 on the boundary
    """
    cells = np.asarray(cells, dtype=np.int64)
    k = cells.shape[1]

    lookup: dict[tuple[int, int], int] = {}
    edges: list[tuple[int, int]] = []
    adjacency: list[list[int]] = []

    for c_idx, cell in enumerate(cells):
        for j in range(k):
            a, b = int(cell[j]), int(cell[(j + 1) % k])
            key = (a, b) if a < b else (b, a)
            e_idx = lookup.get(key)
            if e_idx is None:
                lookup[key] = len(edges)
                edges.append(key)
                adjacency.append([c_idx, -1])
            else:
                adjacency[e_idx][1] = c_idx

    return (
        np.asarray(edges, dtype=np.int64).reshape(-1, 2),
        np.asarray(adjacency, dtype=np.int64).reshape(-1, 2),
    )


def outward_edge_normals(vertices, cells, edges, edge_cells):
    """
    Unit normals of the boundary edges, oriented away from the adjacent cell.
    Interior edges get a zero row.
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    normals = np.zeros((edges.shape[0], 2), dtype=np.float64)

    for e_idx, (a, b) in enumerate(edges):
        if edge_cells[e_idx, 1] >= 0:
            continue
        t = vertices[b] - vertices[a]
        n = np.array([t[1], -t[0]]) / np.linalg.norm(t)
        centroid = vertices[cells[edge_cells[e_idx, 0]]].mean(axis=0)
        midpoint = 0.5 * (vertices[a] + vertices[b])
        if np.dot(n, midpoint - centroid) < 0.0:
            n = -n
        normals[e_idx] = n

    return normals
