from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from numba import njit

from stable_point_eval.config import EvalConfig

if TYPE_CHECKING:
    import numpy.typing as npt


class CutoffValue(NamedTuple):
    value: float
    gradient: npt.NDArray[np.float64]
    laplacian: float


@njit(cache=True)
def _radial_profile(r, r_inner, r_outer, k):
    """
    Psi(r), Psi'(r), Psi''(r) for the cos^2 blend between r_inner and r_outer.
    """
    if r <= r_inner:
        return 0.0, 0.0, 0.0
    if r >= r_outer:
        return 1.0, 0.0, 0.0
    t = k * (r - r_outer)
    c = math.cos(t)
    s = math.sin(t)
    return c * c, -2.0 * k * c * s, 2.0 * k * k * (s * s - c * c)


def psi(y, cfg: EvalConfig | None = None) -> CutoffValue:
    """
    Radial cutoff around cfg.CENTER: 0 inside R_INNER, 1 outside R_OUTER and
    cos^2(k (r - R_OUTER)) in between. Value and gradient are continuous;
    the Laplacian jumps at both radii.
    """
    if cfg is None:
        cfg = EvalConfig()
    d = np.asarray(y, dtype=np.float64) - np.asarray(cfg.CENTER, dtype=np.float64)
    r = math.hypot(d[0], d[1])

    value, dpsi, d2psi = _radial_profile(r, cfg.R_INNER, cfg.R_OUTER, cfg.cutoff_frequency)
    if dpsi == 0.0 and d2psi == 0.0:
        return CutoffValue(value, np.zeros(2), 0.0)

    # polar form: ∇Psi = Psi' e_r,  ΔPsi = Psi'' + Psi'/r
    return CutoffValue(value, (dpsi / r) * d, d2psi + dpsi / r)
