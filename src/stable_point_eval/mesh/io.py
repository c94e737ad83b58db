from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from stable_point_eval.errors import GeometryError
from stable_point_eval.mesh.core import Mesh

LOG = logging.getLogger(__name__)

# VTK cell type ids
VTK_TRIANGLE = 5
VTK_QUAD = 9


def load_mesh_from_vtk(mesh_path: Path, *, z_tol: float = 1e-12) -> Mesh:
    """
    Load a planar triangle (or quadrilateral) mesh from a legacy .vtk file or
    an XML .vtu / .vtp file.

    Requirements on the VTK file:
      - all points lie in the plane z = 0 (up to ``z_tol``)
      - 2D cells are all triangles or all quadrilaterals; vertex and line
        cells (e.g. exported boundary markers) are ignored
    """
    mesh_path = Path(mesh_path)
    if not mesh_path.exists():
        raise FileNotFoundError(mesh_path)

    from vtkmodules.vtkIOLegacy import vtkDataSetReader
    from vtkmodules.vtkIOXML import vtkXMLPolyDataReader, vtkXMLUnstructuredGridReader

    suffix = mesh_path.suffix.lower()
    if suffix == ".vtk":
        reader = vtkDataSetReader()
    elif suffix == ".vtu":
        reader = vtkXMLUnstructuredGridReader()
    elif suffix == ".vtp":
        reader = vtkXMLPolyDataReader()
    else:
        raise ValueError(
            f"Unsupported mesh extension '{suffix}'. Use .vtk, .vtu or .vtp."
        )

    reader.SetFileName(str(mesh_path))
    reader.Update()
    data = reader.GetOutput()
    if data is None or data.GetNumberOfPoints() == 0:
        raise GeometryError(f"VTK reader produced no points for {mesh_path}")

    n_points = data.GetNumberOfPoints()
    points = np.array([data.GetPoint(i) for i in range(n_points)], dtype=np.float64)
    if np.abs(points[:, 2]).max() > z_tol:
        raise GeometryError(f"{mesh_path} is not planar (non-zero z coordinates)")

    cells: list[list[int]] = []
    skipped = 0
    for cid in range(data.GetNumberOfCells()):
        ctype = data.GetCellType(cid)
        if ctype not in (VTK_TRIANGLE, VTK_QUAD):
            skipped += 1
            continue
        cell = data.GetCell(cid)
        cells.append([cell.GetPointId(k) for k in range(cell.GetNumberOfPoints())])

    if not cells:
        raise GeometryError(f"No triangle or quadrilateral cells in {mesh_path}")
    if len({len(c) for c in cells}) != 1:
        raise GeometryError(f"{mesh_path} mixes triangles and quadrilaterals")
    if skipped:
        LOG.debug("Ignored %d non-2D cells in %s.", skipped, mesh_path)

    # drop points not referenced by any 2D cell
    conn = np.asarray(cells, dtype=np.int64)
    used, inverse = np.unique(conn, return_inverse=True)
    conn = inverse.reshape(conn.shape)

    LOG.info("Loaded %s: %d vertices, %d cells.", mesh_path.name, used.size, conn.shape[0])
    return Mesh(points[used, :2], conn)
