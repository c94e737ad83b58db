from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable

import numpy as np

from stable_point_eval.bem.core import G, grad_g_source
from stable_point_eval.config import EvalConfig
from stable_point_eval.errors import GeometryError, NotApplicableError
from stable_point_eval.fem.quadrature import make_tria_midpoint_rule
from stable_point_eval.stable.cutoff import psi

if TYPE_CHECKING:
    from stable_point_eval.fem.space import LagrangeP1Space

LOG = logging.getLogger(__name__)


def jstar(
    fe_space: LagrangeP1Space,
    u: Callable[[np.ndarray], float],
    x,
    cfg: EvalConfig | None = None,
) -> float:
    """
    J*(u)(x) = -∫_Ω u(y) (2 ∇_y G(x,y)·∇Psi(y) + G(x,y) ΔPsi(y)) dy

    evaluated with the midpoint rule on every triangle of the space's mesh.
    Equals u(x) for harmonic u as long as Psi vanishes near x. Quadrature
    points where ∇Psi and ΔPsi both vanish contribute nothing and the kernel
    is not evaluated there.
    """
    if cfg is None:
        cfg = EvalConfig()
    x = np.asarray(x, dtype=np.float64)
    mesh = fe_space.mesh

    qr = make_tria_midpoint_rule()
    zeta_ref = qr.points
    w_ref = qr.weights

    val = 0.0
    n_active = 0
    for cell in mesh.entities(0):
        if not mesh.is_triangle(cell):
            raise GeometryError(f"cell {cell} is not a triangle; J* needs a triangular mesh")

        zeta = mesh.global_map(cell, zeta_ref)
        gram_det = mesh.integration_element(cell)

        for l in range(qr.num_points):
            cut = psi(zeta[l], cfg)
            if cut.laplacian == 0.0 and not cut.gradient.any():
                continue
            n_active += 1
            val -= (
                w_ref[l] * u(zeta[l])
                * (2.0 * float(np.dot(grad_g_source(x, zeta[l], cfg.SINGULAR_TOL), cut.gradient))
                   + G(x, zeta[l], cfg.SINGULAR_TOL) * cut.laplacian)
                * gram_det
            )

    LOG.debug("J*: %d of %d quadrature points in the cutoff transition.",
              n_active, mesh.num_cells * qr.num_points)
    return val


def stab_point_eval(
    fe_space: LagrangeP1Space,
    u: Callable[[np.ndarray], float],
    x,
    cfg: EvalConfig | None = None,
) -> float:
    """
    Stable evaluation of u at x via J*. Only valid for points within
    cfg.TRUSTED_RADIUS of cfg.CENTER; other points raise NotApplicableError.
    """
    if cfg is None:
        cfg = EvalConfig()
    x = np.asarray(x, dtype=np.float64)

    dist = math.hypot(x[0] - cfg.CENTER[0], x[1] - cfg.CENTER[1])
    if dist > cfg.TRUSTED_RADIUS:
        raise NotApplicableError(
            f"point {x.tolist()} is {dist:.4f} from the cutoff center {list(cfg.CENTER)}; "
            f"stable evaluation requires a distance <= {cfg.TRUSTED_RADIUS}"
        )
    return jstar(fe_space, u, x, cfg)
