"""
Matplotlib renderer for FlakeSim.

Consumes per-flake render attributes (position, orientation, diameter,
brightness and optional trails) and turns them into artists on a single
axes: ground strip, light cone, flakes and motion trails.
"""

import numpy as np
from matplotlib.collections import LineCollection
from matplotlib.colors import to_rgb
from matplotlib.patches import Polygon, Rectangle

from flakesim import config
from flakesim.params import DEFAULT_DOMAIN


def flake_colors(brightness, base_color=config.FLAKE_COLOR):
    """
    RGBA colors for flakes: base color with alpha from brightness.

    Args:
        brightness (np.ndarray): (N,) values in [0, 1]
        base_color (str): Hex color of a fully lit flake

    Returns:
        np.ndarray: (N, 4) RGBA array
    """
    brightness = np.asarray(brightness, dtype=float)
    rgba = np.zeros((len(brightness), 4))
    rgba[:, :3] = to_rgb(base_color)
    alpha = np.nan_to_num(brightness, nan=0.0)
    rgba[:, 3] = np.clip(alpha, config.MIN_RENDER_BRIGHTNESS, 1.0)
    return rgba


def marker_sizes(diameter):
    """Scatter sizes (points^2) proportional to the flake's face area."""
    reference = 5.0 / config.MM_PER_M  # 5 mm flake -> FLAKE_MARKER_SIZE
    ratio = np.nan_to_num(np.asarray(diameter, dtype=float) / reference, nan=0.0)
    return config.FLAKE_MARKER_SIZE * np.clip(ratio, 0.0, 10.0) ** 2


def cone_vertices(beam_angle, domain=DEFAULT_DOMAIN):
    """Triangle from the light down to the bottom of the domain."""
    light_x, light_y = domain.light_position
    spread = light_y * np.tan(np.deg2rad(np.clip(beam_angle, 0.0, 89.0)))
    return np.array([
        [light_x, light_y],
        [light_x - spread, 0.0],
        [light_x + spread, 0.0],
    ])


def trail_segments(histories, brightness, domain=DEFAULT_DOMAIN):
    """
    Build line segments and RGBA colors for motion trails.

    Older segments fade. Segments that jump across the horizontal wrap are
    dropped so no line crosses the whole domain.

    Args:
        histories (np.ndarray): (N, T+1, 2) past positions, oldest first
        brightness (np.ndarray): (N,) current flake brightness
        domain (Domain): Simulation geometry

    Returns:
        tuple: (segments (M, 2, 2), colors (M, 4))
    """
    n_flakes, n_points, _ = histories.shape
    tail = n_points - 1
    if n_flakes == 0 or tail < 1:
        return np.zeros((0, 2, 2)), np.zeros((0, 4))

    segments = np.stack((histories[:, :-1, :], histories[:, 1:, :]), axis=2)

    t = np.arange(tail)
    age_factor = (config.TRAIL_TAIL_MIN_FACTOR
                  + (1.0 - config.TRAIL_TAIL_MIN_FACTOR) * ((t + 1) / tail) ** config.TRAIL_TAIL_EXP)
    base = flake_colors(brightness)
    colors = np.repeat(base[:, np.newaxis, :], tail, axis=1)
    colors[:, :, 3] = base[:, 3][:, np.newaxis] * age_factor[np.newaxis, :]

    dx = np.abs(segments[:, :, 1, 0] - segments[:, :, 0, 0])
    keep = dx <= domain.width / 2.0

    return segments[keep], colors[keep]


def engineering_segments(position, theta, half_length=config.ENGINEERING_BAR_LENGTH):
    """
    Orientation bars along each flake's face plane plus face-normal tips.

    Returns:
        tuple: (segments (N, 2, 2), normal_tips (N, 2))
    """
    nx = np.cos(theta)
    ny = np.sin(theta)
    # The face plane is perpendicular to the normal
    tangent = np.column_stack((-ny, nx)) * half_length
    segments = np.stack((position - tangent, position + tangent), axis=1)
    tips = position + np.column_stack((nx, ny)) * half_length
    return segments, tips


class FlakeRenderer:
    """Draws the simulation state onto a matplotlib axes."""

    def __init__(self, ax, domain=DEFAULT_DOMAIN, show_engineering=False):
        """
        Initialize renderer artists.

        Args:
            ax: Matplotlib axes object
            domain (Domain): Simulation geometry
            show_engineering (bool): Draw orientation bars instead of dots
        """
        self.ax = ax
        self.domain = domain
        self.show_engineering = show_engineering
        self.prepare_axes()

        self.cone = Polygon(cone_vertices(30.0, domain), closed=True,
                            facecolor=config.LIGHT_CONE_COLOR, edgecolor='none',
                            alpha=0.0, zorder=1)
        ax.add_patch(self.cone)

        self.ground = Rectangle((0.0, 0.0), domain.width, domain.ground_level,
                                facecolor=config.GROUND_COLOR, edgecolor='none', zorder=2)
        ax.add_patch(self.ground)

        self.trails = LineCollection([], linewidths=config.TRAIL_LINE_WIDTH, zorder=3)
        ax.add_collection(self.trails)

        self.dots = ax.scatter([], [], s=config.FLAKE_MARKER_SIZE, c=config.FLAKE_COLOR,
                               edgecolors='none', zorder=4)

        self.bars = LineCollection([], linewidths=config.ENGINEERING_BAR_WIDTH, zorder=4)
        ax.add_collection(self.bars)
        self.normal_tips = ax.scatter([], [], s=9, c=config.NORMAL_MARKER_COLOR,
                                      edgecolors='none', zorder=5)

    def prepare_axes(self):
        ax = self.ax
        ax.set_xlim(0.0, self.domain.width)
        ax.set_ylim(0.0, self.domain.height)
        ax.set_aspect('equal')
        ax.set_facecolor(config.BACKGROUND_COLOR)
        ax.set_xticks([])
        ax.set_yticks([])
        for spine in ax.spines.values():
            spine.set_visible(False)

    def update(self, attrs, env):
        """
        Refresh all artists from render attributes.

        Args:
            attrs (dict): Output of SimulationStepper.render_attributes()
            env (EnvironmentParams): Live environment (cone angle and opacity)

        Returns:
            tuple: Updated artists
        """
        position = attrs['position']
        brightness = attrs['brightness']
        colors = flake_colors(brightness)

        self.cone.set_xy(cone_vertices(env.beam_angle, self.domain))
        self.cone.set_alpha(float(np.clip(env.cone_opacity, 0.0, 1.0)))

        if self.show_engineering:
            segments, tips = engineering_segments(position, attrs['theta'])
            self.bars.set_segments(segments)
            self.bars.set_colors(colors)
            self.normal_tips.set_offsets(tips)
            self.dots.set_offsets(np.zeros((0, 2)))
        else:
            self.dots.set_offsets(position)
            self.dots.set_sizes(marker_sizes(attrs['diameter']))
            self.dots.set_facecolors(colors)
            self.bars.set_segments([])
            self.normal_tips.set_offsets(np.zeros((0, 2)))

        trails = attrs.get('trails')
        if trails is not None:
            segments, trail_colors = trail_segments(trails, brightness, self.domain)
            self.trails.set_segments(segments)
            self.trails.set_colors(trail_colors)
        else:
            self.trails.set_segments([])

        return self.cone, self.trails, self.dots, self.bars, self.normal_tips
