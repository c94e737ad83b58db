from __future__ import annotations

import argparse
import logging
import math
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from stable_point_eval.bem.core import harmonic_u, mesh_size, point_eval
from stable_point_eval.config import EvalConfig
from stable_point_eval.errors import PointEvaluationError
from stable_point_eval.fem.space import LagrangeP1Space
from stable_point_eval.mesh.core import Mesh
from stable_point_eval.mesh.square import refine_hierarchy
from stable_point_eval.stable.evaluate import stab_point_eval

LOG = logging.getLogger(__name__)

DEFAULT_LEVELS = 5
DEFAULT_N0 = 4


@dataclass(slots=True)
class ConvergenceRecord:
    level: int
    n_cells: int
    h: float
    bem_error: float
    stab_error: float
    bem_rate: float = float("nan")
    stab_rate: float = float("nan")


def _rate(e_coarse: float, e_fine: float, h_coarse: float, h_fine: float) -> float:
    if e_coarse <= 0.0 or e_fine <= 0.0 or h_coarse == h_fine:
        return float("nan")
    return math.log(e_coarse / e_fine) / math.log(h_coarse / h_fine)


def run_convergence_study(
    meshes: Sequence[Mesh],
    cfg: EvalConfig | None = None,
    *,
    fe_interpolant: bool = True,
) -> list[ConvergenceRecord]:
    """
    Errors of the boundary representation formula and of the stabilized
    evaluation for the analytic harmonic function on each mesh.

    With ``fe_interpolant`` the stabilized formula is fed the P1 nodal
    interpolant instead of the exact function.
    """
    if cfg is None:
        cfg = EvalConfig()

    x_stab = np.asarray(cfg.STAB_TEST_POINT, dtype=np.float64)
    u_exact = harmonic_u(x_stab)

    records: list[ConvergenceRecord] = []
    for level, mesh in enumerate(meshes):
        h = mesh_size(mesh)
        bem_err = point_eval(mesh, cfg=cfg)

        try:
            space = LagrangeP1Space(mesh)
            u_h = space.interpolate(harmonic_u) if fe_interpolant else harmonic_u
            stab_err = abs(stab_point_eval(space, u_h, x_stab, cfg) - u_exact)
        except PointEvaluationError as exc:
            LOG.warning("Level %d: stabilized evaluation skipped (%s).", level, exc)
            stab_err = float("nan")

        rec = ConvergenceRecord(level, mesh.num_cells, h, bem_err, stab_err)
        if records:
            prev = records[-1]
            rec.bem_rate = _rate(prev.bem_error, bem_err, prev.h, h)
            rec.stab_rate = _rate(prev.stab_error, stab_err, prev.h, h)
        records.append(rec)

        LOG.info(
            "Level %d: cells=%d h=%.4e  BEM err=%.3e (rate %.2f)  stable err=%.3e (rate %.2f)",
            level, rec.n_cells, h, bem_err, rec.bem_rate, stab_err, rec.stab_rate,
        )

    return records


def format_table(records: Sequence[ConvergenceRecord]) -> str:
    lines = [
        f"{'level':>5} {'cells':>8} {'h':>11} {'BEM err':>11} {'rate':>6} {'stable err':>11} {'rate':>6}"
    ]
    for r in records:
        lines.append(
            f"{r.level:5d} {r.n_cells:8d} {r.h:11.4e} {r.bem_error:11.4e} {r.bem_rate:6.2f} "
            f"{r.stab_error:11.4e} {r.stab_rate:6.2f}"
        )
    return "\n".join(lines)


def _has_expert_flag(argv: Sequence[str]) -> bool:
    return ("--expert" in argv)


def build_argparser(*, expert: bool) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stable-point-eval",
        description=(
            "Convergence study for point evaluation of a harmonic function on the unit square:\n"
            "boundary representation formula vs. cutoff-stabilized volume formula.\n"
            "Use --expert to reveal advanced tuning options."
        ),
    )

    p.add_argument(
        "--expert",
        action="store_true",
        help="Show/enable expert options in --help.",
    )
    p.add_argument("--mesh", type=Path, default=None,
                   help="Triangle mesh of the unit square (.vtk/.vtu/.vtp); replaces the generated hierarchy.")
    p.add_argument("--levels", type=int, default=DEFAULT_LEVELS, help="Number of refinement levels.")
    p.add_argument("--n0", type=int, default=DEFAULT_N0, help="Squares per side on the coarsest mesh.")
    p.add_argument(
        "--fe-interpolant",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Feed the stabilized formula the P1 interpolant (default) or the exact function.",
    )
    p.add_argument(
        "--plot",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable/disable the convergence plot.",
    )
    p.add_argument("--save-plot", type=Path, default=None, help="Write the convergence plot to this file.")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    if expert:
        g = p.add_argument_group("Expert options")
        g.add_argument("--r-inner", type=float, default=0.25 * math.sqrt(2.0),
                       help="Radius inside which the cutoff vanishes.")
        g.add_argument("--r-outer", type=float, default=0.5,
                       help="Radius outside which the cutoff equals one.")
        g.add_argument("--trusted-radius", type=float, default=0.25,
                       help="Admissible distance of the evaluation point from the center.")
        g.add_argument("--singular-tol", type=float, default=1e-14,
                       help="Distance below which the kernel is treated as singular.")

    return p


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        import sys
        argv = sys.argv[1:]

    expert = _has_expert_flag(argv)
    parser = build_argparser(expert=expert)

    try:
        args = parser.parse_args(argv)
    except SystemExit:
        if not expert:
            expert_only_tokens = {"--r-inner", "--r-outer", "--trusted-radius", "--singular-tol"}
            if any(tok in argv for tok in expert_only_tokens):
                print("\nNote: some advanced options are only available with --expert.")
        raise

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
    )

    cfg_kwargs = {}
    if expert:
        cfg_kwargs = dict(
            R_INNER=float(args.r_inner),
            R_OUTER=float(args.r_outer),
            TRUSTED_RADIUS=float(args.trusted_radius),
            SINGULAR_TOL=float(args.singular_tol),
        )
    cfg = EvalConfig(**cfg_kwargs)

    if args.mesh is not None:
        from stable_point_eval.mesh.io import load_mesh_from_vtk

        LOG.info("Loading mesh from %s.", args.mesh)
        meshes = [load_mesh_from_vtk(args.mesh)]
    else:
        if args.levels > 7:
            warnings.warn(
                f"--levels={args.levels} produces meshes with more than "
                f"{2 * (args.n0 * 2**6)**2} cells; the volume quadrature loops run in Python.",
                RuntimeWarning,
                stacklevel=2,
            )
        meshes = refine_hierarchy(int(args.n0), int(args.levels))

    records = run_convergence_study(meshes, cfg, fe_interpolant=bool(args.fe_interpolant))
    print(format_table(records))

    if (bool(args.plot) or args.save_plot is not None) and len(records) > 1:
        import matplotlib
        if not bool(args.plot):
            matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from stable_point_eval.viz.plotting import plot_convergence

        fig, ax = plt.subplots()
        h = [r.h for r in records]
        plot_convergence(ax, h, [r.bem_error for r in records], label="boundary formula", ref_slope=2.0)
        plot_convergence(ax, h, [r.stab_error for r in records], label="stabilized formula")
        ax.legend()
        if args.save_plot is not None:
            fig.savefig(args.save_plot, dpi=150)
            LOG.info("Saved convergence plot to %s.", args.save_plot)
        if bool(args.plot):
            plt.show()
        plt.close(fig)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
