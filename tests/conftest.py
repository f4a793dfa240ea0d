import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pytest

from flakesim.params import Domain, EnvironmentParams, InitParams


class ScriptedRng:
    """Returns uniform draws from a fixed script, then 0.5 forever."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def _next(self):
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return 0.5

    def random(self, size=None):
        if size is None:
            return self._next()
        return np.array([self._next() for _ in range(size)])


@pytest.fixture
def env():
    return EnvironmentParams()


@pytest.fixture
def still_env():
    """No air, no wind: only gravity acts."""
    return EnvironmentParams(air_pressure=0.0, wind_top=0.0, wind_bottom=0.0)


@pytest.fixture
def init_params():
    return InitParams(num_flakes=10, mass_var=0.05, diameter_var=0.25, theta_var=20.0)


@pytest.fixture
def domain():
    return Domain()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
