"""
Parameter records for FlakeSim.

Plain data holders shared between the control layer and the physics core.
The control layer owns and mutates EnvironmentParams and InitParams; the core
only reads them, fresh on every force or brightness evaluation. Fields are
independent scalars, so no torn-read protection is needed.
"""
from dataclasses import dataclass

from flakesim import config


@dataclass
class EnvironmentParams:
    """Live environment, mutable by the operator at any time."""
    g: float = 9.81  # m/s^2
    air_pressure: float = 1.0  # relative to sea level
    wind_top: float = 0.5  # m/s at y = H
    wind_bottom: float = 0.0  # m/s at y = 0

    # Lighting coefficients
    ambient: float = 0.15
    diffuse: float = 0.6
    specular: float = 0.4
    specular_exponent: float = 8.0
    beam_angle: float = 30.0  # degrees, half-angle of the cone
    falloff: float = 0.02  # k in 1 / (1 + k * dist^2)
    cone_opacity: float = 0.08  # render-only


@dataclass
class InitParams:
    """Distribution parameters, read only when a flake is spawned."""
    num_flakes: int = config.DEFAULT_NUM_FLAKES
    mass_mean: float = 1.0  # mg
    mass_var: float = 0.0
    diameter_mean: float = 5.0  # mm
    diameter_var: float = 0.0
    theta_mean: float = 45.0  # degrees
    theta_var: float = 0.0
    # Clamp sampled mass/diameter to a small positive minimum
    clamp_draws: bool = True


@dataclass(frozen=True)
class Domain:
    """Fixed simulation geometry in meters."""
    width: float = config.DOMAIN_WIDTH
    height: float = config.DOMAIN_HEIGHT
    spawn_height: float = config.SPAWN_HEIGHT
    ground_level: float = config.GROUND_LEVEL

    @property
    def light_position(self):
        """The cone light hangs at the horizontal center, top of the domain."""
        return (self.width / 2.0, self.height)


DEFAULT_DOMAIN = Domain()
