"""
Aerodynamic force model for FlakeSim.

Derives drag, lift and torque for every flake from its current state and the
live environment, and turns them into translational and angular
accelerations. Pure functions: nothing here mutates its inputs.
"""

from typing import NamedTuple

import numpy as np

from flakesim import config
from flakesim.params import DEFAULT_DOMAIN


class Accelerations(NamedTuple):
    """Per-flake accelerations, each of shape (N,)."""
    ax: np.ndarray
    ay: np.ndarray
    alpha: np.ndarray


class AeroForces(NamedTuple):
    """Intermediate aerodynamic quantities, each of shape (N,)."""
    angle_of_attack: np.ndarray
    area: np.ndarray
    drag: np.ndarray
    lift: np.ndarray
    flow_x: np.ndarray  # unit relative-flow direction
    flow_y: np.ndarray


def air_density(env):
    return config.AIR_DENSITY_SEA_LEVEL * env.air_pressure


def wind_at_height(y, env, domain=DEFAULT_DOMAIN):
    """
    Horizontal wind speed at altitude ``y``.

    Linear between wind_bottom at y=0 and wind_top at y=H. The height ratio is
    not clamped, so altitudes above H extrapolate.
    """
    height_ratio = np.asarray(y, dtype=float) / domain.height
    return env.wind_bottom + (env.wind_top - env.wind_bottom) * height_ratio


def aerodynamic_forces(state, env, domain=DEFAULT_DOMAIN):
    """
    Compute drag and lift magnitudes for every flake.

    When the speed relative to the air is below VELOCITY_EPSILON the flake is
    treated as falling straight down with an angle of attack equal to its own
    orientation, and both forces are zero.

    Args:
        state (FlakeState): Current flake population
        env (EnvironmentParams): Live environment
        domain (Domain): Simulation geometry

    Returns:
        AeroForces: Angle of attack, projected area, drag, lift and flow direction
    """
    rho = air_density(env)

    rel_x = state.velocity[:, 0] - wind_at_height(state.position[:, 1], env, domain)
    rel_y = state.velocity[:, 1]
    vmag = np.hypot(rel_x, rel_y)

    moving = vmag > config.VELOCITY_EPSILON
    safe_vmag = np.where(moving, vmag, 1.0)
    flow_x = np.where(moving, rel_x / safe_vmag, 0.0)
    flow_y = np.where(moving, rel_y / safe_vmag, -1.0)

    nx = np.cos(state.theta)
    ny = np.sin(state.theta)
    cos_aoa = np.clip(flow_x * nx + flow_y * ny, -1.0, 1.0)
    aoa = np.where(moving, np.arccos(cos_aoa), state.theta)

    # Edge-on minimum to face-on maximum
    d_squared = state.diameter * state.diameter
    sin_aoa = np.abs(np.sin(aoa))
    area = d_squared * (config.EDGE_ON_AREA_RATIO + (1.0 - config.EDGE_ON_AREA_RATIO) * sin_aoa)

    cl = config.LIFT_COEFFICIENT_SCALE * np.sin(2.0 * aoa)
    dynamic = 0.5 * rho * area * vmag * vmag
    drag = np.where(moving, dynamic * config.DRAG_COEFFICIENT, 0.0)
    lift = np.where(moving, dynamic * cl, 0.0)

    return AeroForces(aoa, area, drag, lift, flow_x, flow_y)


def compute_accelerations(state, env, domain=DEFAULT_DOMAIN):
    """
    Translational and angular accelerations for every flake.

    Drag acts against the relative flow, lift along the face normal and
    gravity always pulls down. Torque is proportional to lift and the moment
    of inertia uses a thin-disk approximation. Non-positive mass or diameter
    are not guarded and yield non-finite values.

    Args:
        state (FlakeState): Current flake population
        env (EnvironmentParams): Live environment, read fresh on every call
        domain (Domain): Simulation geometry

    Returns:
        Accelerations: (ax, ay, alpha)
    """
    forces = aerodynamic_forces(state, env, domain)
    nx = np.cos(state.theta)
    ny = np.sin(state.theta)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        ax = (-forces.drag * forces.flow_x + forces.lift * nx) / state.mass
        ay = (-forces.drag * forces.flow_y + forces.lift * ny) / state.mass - env.g

        torque = -config.TORQUE_COEFFICIENT * state.diameter * forces.lift
        inertia = config.INERTIA_FACTOR * state.mass * state.diameter * state.diameter
        alpha = torque / inertia

    return Accelerations(ax, ay, alpha)
