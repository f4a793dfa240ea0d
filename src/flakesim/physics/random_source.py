"""
Normally distributed draws from a uniform generator (Box-Muller transform).
"""

import numpy as np

_default_rng = np.random.default_rng()


def _open_uniform(rng, size):
    """Uniform draws in (0, 1): exact zeros are redrawn so log(u) stays finite."""
    u = rng.random(size)
    if size is None:
        while u == 0.0:
            u = rng.random()
        return u

    u = np.asarray(u, dtype=float)
    zeros = u == 0.0
    while np.any(zeros):
        u[zeros] = rng.random(int(np.count_nonzero(zeros)))
        zeros = u == 0.0
    return u


def normal(mean, variance, size=None, rng=None):
    """
    Draw from N(mean, variance) with the Box-Muller transform.

    Each call is independent; no state is kept between calls apart from
    what the underlying uniform generator consumes.

    Args:
        mean (float): Distribution mean
        variance (float): Distribution variance (std = sqrt(variance))
        size (int, optional): Number of draws; None returns a scalar
        rng: Object with a numpy-Generator-like ``random(size)`` method

    Returns:
        float or np.ndarray: The sampled value(s)
    """
    if rng is None:
        rng = _default_rng

    u = _open_uniform(rng, size)
    v = _open_uniform(rng, size)
    std = np.sqrt(variance)
    value = mean + std * np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)
    if size is None:
        return float(value)
    return value
