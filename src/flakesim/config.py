"""
Configuration module for FlakeSim.

This module contains global constants, default parameters, and configuration
settings used throughout the simulation, lighting and rendering code.
"""

import numpy as np

# Domain geometry (meters)
DOMAIN_WIDTH = 3.0
DOMAIN_HEIGHT = 10.0
SPAWN_HEIGHT = 9.0
GROUND_LEVEL = 1.0

# Aerodynamics
AIR_DENSITY_SEA_LEVEL = 1.225  # kg/m^3 at relative pressure 1.0
DRAG_COEFFICIENT = 1.28  # flat plate, constant
LIFT_COEFFICIENT_SCALE = 0.5  # Cl = scale * sin(2 * aoa)
EDGE_ON_AREA_RATIO = 0.7  # projected area edge-on, as a fraction of d^2
TORQUE_COEFFICIENT = 0.01  # torque = -k * d * F_lift
INERTIA_FACTOR = 1.0 / 12.0  # I = factor * m * d^2
VELOCITY_EPSILON = 1e-6  # below this the flake is treated as falling straight down

# Unit conversions for operator-facing distribution parameters
MG_PER_KG = 1e6
MM_PER_M = 1000.0
TWO_PI = 2.0 * np.pi

# Lower bounds applied to sampled physical quantities when clamping is enabled
MIN_MASS_KG = 1e-9
MIN_DIAMETER_M = 1e-5

# Integration
FIXED_SUBSTEP_COUNT = 4  # sub-steps per animation frame

# Lighting
LIGHT_EPSILON = 1e-9  # distance below which the light direction is undefined

# Trails
TAIL_LENGTH = 20  # number of position history points
RECORD_TRAILS = False

# Population
DEFAULT_NUM_FLAKES = 1
CLI_DEFAULT_NUM_FLAKES = 20
MAX_NUM_FLAKES = 200

# Animation parameters
ANIMATION_INTERVAL = 16  # milliseconds between frames (~60 FPS)
MAX_FRAME_DT = 0.1  # seconds; longer host stalls are truncated
PIXELS_PER_METER = 200

# Window title
WINDOW_TITLE = "FlakeSim"

# Rendering
BACKGROUND_COLOR = "#000000"
GROUND_COLOR = "#333333"
FLAKE_COLOR = "#FFFFFF"
NORMAL_MARKER_COLOR = "#3355FF"
LIGHT_CONE_COLOR = "#FFF4C2"
FLAKE_MARKER_SIZE = 12  # matplotlib scatter 's' in points^2
ENGINEERING_BAR_LENGTH = 0.05  # half length of orientation bar (meters)
ENGINEERING_BAR_WIDTH = 2.5
MIN_RENDER_BRIGHTNESS = 0.05  # keep flakes faintly visible outside the beam

# Trail opacity fade (older segments more transparent)
# Alpha per segment = brightness * (TRAIL_TAIL_MIN_FACTOR + (1-TRAIL_TAIL_MIN_FACTOR) * ((t+1)/TAIL_LENGTH)**TRAIL_TAIL_EXP)
TRAIL_TAIL_MIN_FACTOR = 0.10
TRAIL_TAIL_EXP = 2.0
TRAIL_LINE_WIDTH = 1.0

# Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'
