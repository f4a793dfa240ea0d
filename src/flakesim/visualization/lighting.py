"""
Cone-light shading for FlakeSim.

A single light hangs above the horizontal center of the domain and points
straight down. Flakes inside its cone get diffuse and specular light that
fades toward the cone edge and with distance; everything else sees only the
ambient term.
"""

import numpy as np

from flakesim import config
from flakesim.params import DEFAULT_DOMAIN


def angular_falloff(angle, half_angle):
    """
    Cosine taper from 1 on the beam axis to 0 at the cone edge.

    Args:
        angle (np.ndarray): Angle from straight down, radians
        half_angle (float): Beam half-angle, radians

    Returns:
        np.ndarray: Falloff weight, 0 outside the cone
    """
    angle = np.asarray(angle, dtype=float)
    if half_angle <= 0:
        return np.zeros_like(angle)
    ratio = angle / half_angle
    inside = ratio <= 1.0
    return np.where(inside, np.cos(np.clip(ratio, 0.0, 1.0) * np.pi / 2.0), 0.0)


def distance_falloff(distance, k):
    """Inverse-square style attenuation 1 / (1 + k * d^2)."""
    return 1.0 / (1.0 + k * np.asarray(distance, dtype=float) ** 2)


def brightness(positions, normals, env, domain=DEFAULT_DOMAIN):
    """
    Brightness in [0, 1] for flakes at ``positions`` with face ``normals``.

    brightness = (ambient + diffuse * ang * dist + specular * |l.n|^p * ang)
                 / (ambient + diffuse + specular)

    where ``ang`` is the angular falloff, ``dist`` the distance falloff and
    ``l`` the unit direction from the light to the flake. The coefficient-sum
    normalization keeps the result at or below 1 when every term is maximal.
    Outside the cone, and for a flake sitting on the light itself, only the
    ambient term remains.

    Args:
        positions (np.ndarray): (N, 2) flake positions, meters
        normals (np.ndarray): (N, 2) unit face normals
        env (EnvironmentParams): Live lighting coefficients
        domain (Domain): Simulation geometry (light position)

    Returns:
        np.ndarray: (N,) brightness values
    """
    positions = np.atleast_2d(np.asarray(positions, dtype=float))
    normals = np.atleast_2d(np.asarray(normals, dtype=float))

    ambient = env.ambient
    total = env.ambient + env.diffuse + env.specular
    if total <= 0:
        return np.zeros(len(positions))

    light_x, light_y = domain.light_position
    dx = positions[:, 0] - light_x
    dy = positions[:, 1] - light_y
    dist = np.hypot(dx, dy)

    lit = dist > config.LIGHT_EPSILON
    safe_dist = np.where(lit, dist, 1.0)
    lx = dx / safe_dist
    ly = dy / safe_dist

    # Angle between the light-to-flake direction and straight down (0, -1)
    angle = np.arccos(np.clip(-ly, -1.0, 1.0))
    ang = angular_falloff(angle, np.deg2rad(env.beam_angle))
    ang = np.where(lit, ang, 0.0)
    dist_term = distance_falloff(dist, env.falloff)

    facing = np.abs(lx * normals[:, 0] + ly * normals[:, 1])
    with np.errstate(divide='ignore', over='ignore'):
        specular = env.specular * facing ** env.specular_exponent * ang
    diffuse = env.diffuse * ang * dist_term

    value = (ambient + diffuse + specular) / total
    return np.clip(value, 0.0, 1.0)
