# Boundary potentials of the 2D Laplace fundamental solution
from __future__ import annotations
import logging
import math
from typing import TYPE_CHECKING, Callable
import numpy as np
from numba import njit

from stable_point_eval.config import DEFAULT_SINGULAR_TOL, EvalConfig
from stable_point_eval.errors import SingularEvaluationError
from stable_point_eval.fem.quadrature import make_segment_midpoint_rule

if TYPE_CHECKING:
    import numpy.typing as npt
    from stable_point_eval.mesh.core import Mesh

LOG = logging.getLogger(__name__)

_TWOPI = 2.0 * math.pi

# ----------------------------- Utilities ---------------------------------
def mesh_size(mesh: Mesh) -> float:
    """Largest edge length of the mesh (0.0 if it has no edges)."""
    h = 0.0
    for e in mesh.entities(1):
        c = mesh.corners(1, e)
        h = max(h, float(np.linalg.norm(c[:, 0] - c[:, 1])))
    return h

def square_outward_normal(p) -> npt.NDArray[np.float64]:
    """
    Outward unit normal of [0,1]^2 at a boundary point, decided by which of
    the two diagonals' sides the point lies on. Only valid on the unit square.
    """
    px, py = float(p[0]), float(p[1])
    if px > py and px < 1.0 - py:
        return np.array([0.0, -1.0])
    if px > py and px > 1.0 - py:
        return np.array([1.0, 0.0])
    if px < py and px > 1.0 - py:
        return np.array([0.0, 1.0])
    return np.array([-1.0, 0.0])

def _separation(x, y, tol: float) -> tuple[npt.NDArray[np.float64], float]:
    d = np.asarray(x, dtype=np.float64) - np.asarray(y, dtype=np.float64)
    r = math.hypot(d[0], d[1])
    if not r > tol:
        raise SingularEvaluationError(
            f"fundamental solution undefined for coincident points x={np.asarray(x).tolist()}, "
            f"y={np.asarray(y).tolist()} (|x-y|={r:.3e})"
        )
    return d, r

# ----------------------------- Kernels -----------------------------------
@njit(cache=True, fastmath=True)
def _log_kernel(r):
    return -math.log(r) / _TWOPI

@njit(cache=True, fastmath=True)
def _grad_kernel(dx, dy, r):
    # ∇_x G = -(x - y)/(2π r^2)
    s = -1.0 / (_TWOPI * r * r)
    return s * dx, s * dy

def G(x, y, tol: float = DEFAULT_SINGULAR_TOL) -> float:
    """G(x,y) = -ln|x-y| / (2π)."""
    _, r = _separation(x, y, tol)
    return _log_kernel(r)

def grad_g(x, y, tol: float = DEFAULT_SINGULAR_TOL) -> npt.NDArray[np.float64]:
    """Gradient of G with respect to x: -(x-y)/(2π|x-y|^2)."""
    d, r = _separation(x, y, tol)
    gx, gy = _grad_kernel(d[0], d[1], r)
    return np.array([gx, gy])

def grad_g_source(x, y, tol: float = DEFAULT_SINGULAR_TOL) -> npt.NDArray[np.float64]:
    """Gradient of G with respect to the source point y (= -grad_g)."""
    return -grad_g(x, y, tol)

# ---------------------- Quadrature-based Integrals -----------------------
def _boundary_integral(
    mesh: Mesh,
    integrand: Callable[[np.ndarray, np.ndarray], float],
) -> float:
    """Σ over boundary edges of Σ_q w_q f(y_q, n_e) |e| (reference segment rule)."""
    qr = make_segment_midpoint_rule()
    acc = 0.0
    n_edges = 0
    for e in mesh.boundary_edges():
        c = mesh.corners(1, e)
        length = mesh.volume(1, e)
        n = mesh.outward_normal(e)
        for k in range(qr.num_points):
            t = qr.points[k, 0]
            y = (1.0 - t) * c[:, 0] + t * c[:, 1]
            acc += qr.weights[k] * integrand(y, n) * length
        n_edges += 1
    LOG.debug("Boundary quadrature over %d edges.", n_edges)
    return acc

def psl(
    mesh: Mesh,
    v: Callable[[np.ndarray], float],
    x,
    cfg: EvalConfig | None = None,
) -> float:
    """
    Single-layer potential  P_SL(v)(x) = ∫_∂Ω v(y) G(x,y) dS_y
    with the midpoint rule on each boundary edge.
    """
    if cfg is None:
        cfg = EvalConfig()
    x = np.asarray(x, dtype=np.float64)
    return _boundary_integral(
        mesh, lambda y, n: v(y) * G(x, y, cfg.SINGULAR_TOL)
    )

def pdl(
    mesh: Mesh,
    v: Callable[[np.ndarray], float],
    x,
    cfg: EvalConfig | None = None,
) -> float:
    """
    Double-layer potential  P_DL(v)(x) = ∫_∂Ω v(y) ∂G/∂n_y(x,y) dS_y
    with the midpoint rule on each boundary edge; n is the outward normal
    reported by the mesh.
    """
    if cfg is None:
        cfg = EvalConfig()
    x = np.asarray(x, dtype=np.float64)
    return _boundary_integral(
        mesh, lambda y, n: v(y) * float(np.dot(grad_g_source(x, y, cfg.SINGULAR_TOL), n))
    )

# --------------------------- Analytic test problem ------------------------
def harmonic_u(x) -> float:
    """u(x) = ln|x + (1,0)|, harmonic and smooth on the unit square."""
    return math.log(math.hypot(x[0] + 1.0, x[1]))

def harmonic_grad(x) -> npt.NDArray[np.float64]:
    d = np.array([x[0] + 1.0, x[1]], dtype=np.float64)
    return d / np.dot(d, d)

def point_eval(mesh: Mesh, x=None, cfg: EvalConfig | None = None) -> float:
    """
    |u(x) - (P_SL(∂u/∂n)(x) - P_DL(u)(x))| for the analytic harmonic u.
    The mesh must cover the unit square; x defaults to cfg.TEST_POINT.
    """
    if cfg is None:
        cfg = EvalConfig()
    x = np.asarray(cfg.TEST_POINT if x is None else x, dtype=np.float64)

    def neumann(y):
        return float(np.dot(harmonic_grad(y), square_outward_normal(y)))

    rhs = psl(mesh, neumann, x, cfg) - pdl(mesh, harmonic_u, x, cfg)
    err = abs(harmonic_u(x) - rhs)
    LOG.debug("point_eval at %s: representation=%.12g, error=%.3e", x.tolist(), rhs, err)
    return err
