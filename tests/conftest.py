import numpy as np
import pytest

from stable_point_eval.mesh.square import unit_square_mesh


@pytest.fixture(scope="session")
def square8():
    return unit_square_mesh(8)


@pytest.fixture(scope="session")
def square16():
    return unit_square_mesh(16)


@pytest.fixture(scope="session")
def square32():
    return unit_square_mesh(32)


@pytest.fixture(scope="session")
def rng():
    return np.random.default_rng(1234)
