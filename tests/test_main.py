import math

import numpy as np
import pytest

from stable_point_eval.main.main import format_table, main, run_convergence_study
from stable_point_eval.mesh.square import refine_hierarchy


def test_convergence_study_records():
    records = run_convergence_study(refine_hierarchy(8, 3), fe_interpolant=False)
    assert [r.level for r in records] == [0, 1, 2]
    assert [r.n_cells for r in records] == [128, 512, 2048]
    assert math.isnan(records[0].bem_rate)
    assert records[1].bem_error < records[0].bem_error
    assert records[2].bem_error < records[1].bem_error
    assert records[2].bem_rate > 1.5
    assert all(np.isfinite(r.stab_error) for r in records)


def test_format_table_has_row_per_level():
    records = run_convergence_study(refine_hierarchy(4, 2))
    table = format_table(records)
    assert len(table.splitlines()) == 3
    assert "BEM err" in table.splitlines()[0]


def test_main_prints_table(capsys):
    assert main(["--levels", "2", "--n0", "4", "--log-level", "WARNING"]) == 0
    out = capsys.readouterr().out
    assert len(out.strip().splitlines()) == 3


def test_main_saves_plot(tmp_path):
    pytest.importorskip("matplotlib")
    target = tmp_path / "conv.png"
    assert main(["--levels", "2", "--n0", "4", "--no-plot", "--save-plot", str(target),
                 "--log-level", "WARNING"]) == 0
    assert target.exists()


def test_expert_flags_require_expert(capsys):
    with pytest.raises(SystemExit):
        main(["--r-inner", "0.3"])
    assert "--expert" in capsys.readouterr().out


def test_expert_flags_accepted():
    assert main(["--expert", "--levels", "1", "--n0", "4", "--trusted-radius", "0.2",
                 "--log-level", "ERROR"]) == 0


def test_plot_cutoff_smoke():
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from stable_point_eval.viz.plotting import plot_convergence, plot_cutoff

    fig, ax = plt.subplots()
    plot_cutoff(ax)
    line = plot_convergence(ax, [0.5, 0.25], [1e-2, float("nan")], label="x")
    assert line is not None
    plt.close(fig)
