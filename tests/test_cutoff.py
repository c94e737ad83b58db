import math

import numpy as np
import pytest

from stable_point_eval.config import EvalConfig
from stable_point_eval.stable.cutoff import CutoffValue, psi

CFG = EvalConfig()
C = np.array(CFG.CENTER)
R1 = CFG.R_INNER
R2 = CFG.R_OUTER


def _at(r, angle=0.3):
    return C + r * np.array([math.cos(angle), math.sin(angle)])


def test_returns_structure():
    out = psi(_at(0.4))
    assert isinstance(out, CutoffValue)
    assert out.gradient.shape == (2,)
    value, gradient, laplacian = out
    assert 0.0 < value < 1.0


def test_constant_pieces():
    for y in (C, _at(0.1), _at(R1 - 1e-12)):
        out = psi(y)
        assert out.value == 0.0
        assert not out.gradient.any()
        assert out.laplacian == 0.0
    for y in (_at(R2 + 1e-12), _at(0.6), np.array([0.0, 0.0]), np.array([1.0, 1.0])):
        out = psi(y)
        assert out.value == 1.0
        assert not out.gradient.any()
        assert out.laplacian == 0.0


def test_bounded(rng):
    pts = rng.uniform(-0.2, 1.2, size=(2000, 2))
    vals = np.array([psi(p).value for p in pts])
    assert vals.min() >= 0.0
    assert vals.max() <= 1.0


def test_monotone_in_radius():
    r = np.linspace(0.0, 0.7, 200)
    vals = np.array([psi(_at(ri)).value for ri in r])
    assert np.all(np.diff(vals) >= -1e-15)


@pytest.mark.parametrize("radius", [R1, R2])
def test_continuous_at_transition(radius):
    eps = 1e-7
    inside = psi(_at(radius - eps))
    outside = psi(_at(radius + eps))
    assert inside.value == pytest.approx(outside.value, abs=1e-6)
    np.testing.assert_allclose(inside.gradient, outside.gradient, atol=1e-4)
    np.testing.assert_allclose(psi(_at(radius + eps)).gradient, 0.0, atol=1e-4)
    np.testing.assert_allclose(psi(_at(radius - eps)).gradient, 0.0, atol=1e-4)


@pytest.mark.parametrize("r, angle", [(0.38, 0.0), (0.42, 1.1), (0.47, -2.5)])
def test_gradient_matches_finite_difference(r, angle):
    y = _at(r, angle)
    h = 1e-6
    fd = np.array([
        (psi(y + [h, 0.0]).value - psi(y - [h, 0.0]).value) / (2 * h),
        (psi(y + [0.0, h]).value - psi(y - [0.0, h]).value) / (2 * h),
    ])
    np.testing.assert_allclose(psi(y).gradient, fd, rtol=1e-5, atol=1e-6)


@pytest.mark.parametrize("r, angle", [(0.38, 0.0), (0.42, 1.1), (0.47, -2.5)])
def test_laplacian_matches_finite_difference(r, angle):
    y = _at(r, angle)
    h = 1e-4
    center = psi(y).value
    fd = (
        psi(y + [h, 0.0]).value + psi(y - [h, 0.0]).value
        + psi(y + [0.0, h]).value + psi(y - [0.0, h]).value
        - 4.0 * center
    ) / (h * h)
    assert psi(y).laplacian == pytest.approx(fd, rel=1e-4, abs=1e-2)


def test_custom_radii():
    cfg = EvalConfig(R_INNER=0.3, R_OUTER=0.45, TRUSTED_RADIUS=0.2)
    assert psi(_at(0.3), cfg).value == pytest.approx(0.0, abs=1e-12)
    assert psi(_at(0.45), cfg).value == pytest.approx(1.0, abs=1e-12)
    assert psi(_at(0.375), cfg).value == pytest.approx(0.5)


def test_invalid_radii_rejected():
    with pytest.raises(ValueError):
        EvalConfig(R_INNER=0.6, R_OUTER=0.5)
    with pytest.raises(ValueError):
        EvalConfig(TRUSTED_RADIUS=0.4)


def test_idempotent():
    y = _at(0.41, 0.7)
    a, b = psi(y), psi(y)
    assert a.value == b.value
    assert a.laplacian == b.laplacian
    np.testing.assert_array_equal(a.gradient, b.gradient)
