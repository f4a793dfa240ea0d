"""
Flake state and spawning for FlakeSim.

The population is stored as a structure of arrays: row i of every array
belongs to flake i. A single flake is simply a population of one.
"""

import logging
from dataclasses import dataclass

import numpy as np

from flakesim import config
from flakesim.params import DEFAULT_DOMAIN
from flakesim.physics.random_source import normal

logger = logging.getLogger(__name__)


def wrap_periodic(values, period):
    """
    Wrap values into [0, period).

    np.mod can return exactly ``period`` for tiny negative inputs because of
    rounding, so that case is folded back to 0.
    """
    wrapped = np.mod(values, period)
    return np.where(wrapped >= period, 0.0, wrapped)


def normalize_angle(theta):
    """Normalize angles (radians) into [0, 2*pi)."""
    return wrap_periodic(theta, config.TWO_PI)


@dataclass(eq=False)
class FlakeState:
    """
    Kinematic and physical state of a flake population.

    Attributes:
        position (np.ndarray): (N, 2) meters
        velocity (np.ndarray): (N, 2) m/s
        theta (np.ndarray): (N,) orientation in [0, 2*pi)
        omega (np.ndarray): (N,) angular velocity, rad/s
        mass (np.ndarray): (N,) kg, fixed for each flake's lifetime
        diameter (np.ndarray): (N,) meters, fixed for each flake's lifetime
    """
    position: np.ndarray
    velocity: np.ndarray
    theta: np.ndarray
    omega: np.ndarray
    mass: np.ndarray
    diameter: np.ndarray

    def __len__(self):
        return len(self.theta)

    @classmethod
    def empty(cls):
        return cls(
            position=np.zeros((0, 2)),
            velocity=np.zeros((0, 2)),
            theta=np.zeros(0),
            omega=np.zeros(0),
            mass=np.zeros(0),
            diameter=np.zeros(0),
        )

    @classmethod
    def single(cls, position, velocity=(0.0, 0.0), theta=0.0, omega=0.0,
               mass=1e-6, diameter=5e-3):
        """Build a population of one flake from scalar values."""
        return cls(
            position=np.array([position], dtype=float),
            velocity=np.array([velocity], dtype=float),
            theta=np.array([theta], dtype=float),
            omega=np.array([omega], dtype=float),
            mass=np.array([mass], dtype=float),
            diameter=np.array([diameter], dtype=float),
        )

    def copy(self):
        return FlakeState(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            theta=self.theta.copy(),
            omega=self.omega.copy(),
            mass=self.mass.copy(),
            diameter=self.diameter.copy(),
        )

    def replace(self, mask, fresh):
        """
        Replace the flakes selected by ``mask`` in place.

        Args:
            mask (np.ndarray): Boolean array of length N
            fresh (FlakeState): Population with ``mask.sum()`` flakes
        """
        self.position[mask] = fresh.position
        self.velocity[mask] = fresh.velocity
        self.theta[mask] = fresh.theta
        self.omega[mask] = fresh.omega
        self.mass[mask] = fresh.mass
        self.diameter[mask] = fresh.diameter

    def face_normals(self):
        """Unit face normals (cos theta, sin theta), shape (N, 2)."""
        return np.column_stack((np.cos(self.theta), np.sin(self.theta)))

    def render_attributes(self):
        """Position, orientation and diameter consumed by the renderer."""
        return self.position, self.theta, self.diameter


def spawn_flakes(count, init_params, env, domain=DEFAULT_DOMAIN, rng=None):
    """
    Sample ``count`` new flakes from the configured distributions.

    Horizontal position is uniform over [0, W) at the spawn height. Flakes
    start matched to the wind at the top of the domain and without rotation.
    Mass is given in milligrams and diameter in millimeters by the operator;
    angles are given in degrees.

    Args:
        count (int): Number of flakes to create
        init_params (InitParams): Distribution parameters
        env (EnvironmentParams): Live environment (for the starting wind)
        domain (Domain): Simulation geometry
        rng (np.random.Generator, optional): Random generator

    Returns:
        FlakeState: The new flakes
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if rng is None:
        rng = np.random.default_rng()
    if count == 0:
        return FlakeState.empty()

    x = rng.uniform(0.0, domain.width, size=count)
    # uniform() may round up to the upper bound
    x = wrap_periodic(x, domain.width)
    position = np.column_stack((x, np.full(count, domain.spawn_height)))
    velocity = np.column_stack((np.full(count, env.wind_top), np.zeros(count)))

    theta = normal(np.deg2rad(init_params.theta_mean),
                   np.deg2rad(init_params.theta_var), size=count, rng=rng)
    mass = normal(init_params.mass_mean, init_params.mass_var, size=count, rng=rng) / config.MG_PER_KG
    diameter = normal(init_params.diameter_mean, init_params.diameter_var,
                      size=count, rng=rng) / config.MM_PER_M

    if init_params.clamp_draws:
        mass = np.maximum(mass, config.MIN_MASS_KG)
        diameter = np.maximum(diameter, config.MIN_DIAMETER_M)
    elif np.any(mass <= 0) or np.any(diameter <= 0):
        logger.debug("Spawned %d flakes with non-positive mass or diameter",
                     int(np.count_nonzero((mass <= 0) | (diameter <= 0))))

    return FlakeState(
        position=position,
        velocity=velocity,
        theta=normalize_angle(theta),
        omega=np.zeros(count),
        mass=mass,
        diameter=diameter,
    )
