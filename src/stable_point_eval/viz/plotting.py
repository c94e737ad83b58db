# stable_point_eval/viz/plotting.py
from __future__ import annotations

import numpy as np

from stable_point_eval.config import EvalConfig
from stable_point_eval.stable.cutoff import psi


def plot_convergence(ax, h, errors, label: str, *, ref_slope: float | None = 1.0):
    """
    Log-log error curve against mesh size. If `ref_slope` is given, a dashed
    O(h^ref_slope) guide through the first finite error is added.
    """
    h = np.asarray(h, dtype=float)
    errors = np.asarray(errors, dtype=float)
    finite = np.isfinite(errors) & (errors > 0.0)

    (line,) = ax.loglog(h[finite], errors[finite], marker="o", label=label)

    if ref_slope is not None and finite.any():
        i0 = int(np.flatnonzero(finite)[0])
        guide = errors[i0] * (h / h[i0]) ** ref_slope
        ax.loglog(h, guide, linestyle="--", color=line.get_color(), alpha=0.5,
                  label=f"O(h^{ref_slope:g})")

    ax.set_xlabel("mesh size h")
    ax.set_ylabel("point error")
    ax.grid(True, which="both", alpha=0.3)
    return line


def plot_cutoff(ax, cfg: EvalConfig | None = None, n_samples: int = 400):
    """
    Radial profile of the cutoff: value, radial derivative and Laplacian
    (the Laplacian on a secondary axis).
    """
    if cfg is None:
        cfg = EvalConfig()

    r = np.linspace(0.0, 1.2 * cfg.R_OUTER, n_samples)
    c = np.asarray(cfg.CENTER, dtype=float)
    vals = [psi(c + np.array([ri, 0.0]), cfg) for ri in r]

    ax.plot(r, [v.value for v in vals], label="Psi")
    ax.plot(r, [v.gradient[0] for v in vals], label="dPsi/dr")
    ax2 = ax.twinx()
    ax2.plot(r, [v.laplacian for v in vals], color="k", alpha=0.4, label="Laplacian")

    for radius in (cfg.R_INNER, cfg.R_OUTER):
        ax.axvline(radius, color="grey", linestyle=":")
    ax.set_xlabel("r = |y - c|")
    ax.legend(loc="upper left")
    ax2.legend(loc="upper right")
    return ax2
