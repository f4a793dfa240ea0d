"""
Euler integration for FlakeSim.

Advances a flake population by one sub-step, applies the horizontal wrap
topology and flags flakes that fell below the ground for respawn.
"""

from typing import NamedTuple

import numpy as np

from flakesim.params import DEFAULT_DOMAIN
from flakesim.physics.flake_factory import FlakeState, normalize_angle, wrap_periodic
from flakesim.physics.force_model import compute_accelerations


class StepResult(NamedTuple):
    state: FlakeState
    grounded: np.ndarray  # (N,) bool, True where the flake must be respawned


def euler_step(state, dt, env, domain=DEFAULT_DOMAIN):
    """
    Advance every flake by ``dt`` seconds.

    Accelerations are evaluated once at the start of the sub-step. Angular
    velocity is integrated first and the new value drives the orientation;
    likewise the new linear velocity drives the position. The input state is
    left untouched.

    Args:
        state (FlakeState): Current flake population
        dt (float): Sub-step length in seconds
        env (EnvironmentParams): Live environment
        domain (Domain): Simulation geometry

    Returns:
        StepResult: New state and the ground-contact mask
    """
    acc = compute_accelerations(state, env, domain)

    with np.errstate(invalid='ignore', over='ignore'):
        omega = state.omega + acc.alpha * dt
        theta = normalize_angle(state.theta + omega * dt)

        velocity = state.velocity + np.column_stack((acc.ax, acc.ay)) * dt
        position = state.position + velocity * dt
        position[:, 0] = wrap_periodic(position[:, 0], domain.width)

    new_state = FlakeState(
        position=position,
        velocity=velocity,
        theta=theta,
        omega=omega,
        mass=state.mass.copy(),
        diameter=state.diameter.copy(),
    )
    return StepResult(new_state, below_ground(new_state, domain))


def below_ground(state, domain=DEFAULT_DOMAIN):
    """Flakes strictly below the ground level; a flake exactly on it stays."""
    return state.position[:, 1] < domain.ground_level
