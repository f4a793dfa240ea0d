"""
Frame stepper for FlakeSim.

Splits each animation frame into a fixed number of equal sub-steps, runs the
Euler integrator over the whole population for each of them and respawns
flakes that reach the ground. Optionally records bounded position trails.
"""

import logging

import numpy as np

from flakesim import config
from flakesim.params import DEFAULT_DOMAIN
from flakesim.physics.flake_factory import spawn_flakes
from flakesim.physics.integrator import euler_step
from flakesim.visualization.lighting import brightness

logger = logging.getLogger(__name__)


def new_histories(state, trail_length):
    """Trail buffer of shape (N, trail_length + 1, 2) filled with current positions."""
    return np.repeat(state.position[:, np.newaxis, :], trail_length + 1, axis=1)


def append_trail_positions(histories, state, respawned):
    """
    Shift older positions in each trail and append the newest one.

    Trails of respawned flakes are cleared, i.e. reset to the new position.
    """
    histories[:, :-1, :] = histories[:, 1:, :]
    histories[:, -1, :] = state.position
    if np.any(respawned):
        histories[respawned] = state.position[respawned][:, np.newaxis, :]


def advance(state, frame_dt, init_params, env, domain=DEFAULT_DOMAIN,
            substeps=config.FIXED_SUBSTEP_COUNT, rng=None, histories=None):
    """
    Advance a population over one frame.

    Flakes never interact, so each sub-step maps the integrator over the
    population independently. The environment is read fresh on every
    sub-step. Flakes that fall strictly below the ground are replaced with
    freshly spawned ones.

    Args:
        state (FlakeState): Population at the start of the frame
        frame_dt (float): Elapsed frame time in seconds
        init_params (InitParams): Distributions used for respawning
        env (EnvironmentParams): Live environment
        domain (Domain): Simulation geometry
        substeps (int): Number of equal sub-steps per frame
        rng (np.random.Generator, optional): Random generator for respawns
        histories (np.ndarray, optional): Trail buffer, updated in place

    Returns:
        tuple: (new_state, respawned) where respawned is an (N,) bool mask of
        flakes replaced at any sub-step of this frame
    """
    if substeps < 1:
        raise ValueError(f"substeps must be at least 1, got {substeps}")

    respawned = np.zeros(len(state), dtype=bool)
    if not np.isfinite(frame_dt) or frame_dt <= 0:
        logger.debug("Ignoring frame with dt=%s", frame_dt)
        return state, respawned

    sub_dt = frame_dt / substeps
    for _ in range(substeps):
        state, grounded = euler_step(state, sub_dt, env, domain)
        n_grounded = int(np.count_nonzero(grounded))
        if n_grounded:
            state.replace(grounded, spawn_flakes(n_grounded, init_params, env, domain, rng))
            respawned |= grounded
        if histories is not None:
            append_trail_positions(histories, state, grounded)

    return state, respawned


class SimulationStepper:
    """
    Owns the flake population and its trail buffers.

    The environment and init parameter records belong to the control layer;
    the stepper only keeps references and reads their current values.
    """

    def __init__(self, init_params, env, domain=DEFAULT_DOMAIN,
                 substeps=config.FIXED_SUBSTEP_COUNT,
                 record_trails=config.RECORD_TRAILS,
                 trail_length=config.TAIL_LENGTH, rng=None):
        if substeps < 1:
            raise ValueError(f"substeps must be at least 1, got {substeps}")
        if trail_length < 1:
            raise ValueError(f"trail_length must be at least 1, got {trail_length}")

        self.init_params = init_params
        self.env = env
        self.domain = domain
        self.substeps = substeps
        self.trail_length = trail_length
        self.rng = rng if rng is not None else np.random.default_rng()
        self._record_trails = record_trails
        self._warned_non_finite = False

        self.reset()

    @property
    def record_trails(self):
        return self._record_trails

    @record_trails.setter
    def record_trails(self, enabled):
        enabled = bool(enabled)
        if enabled and not self._record_trails:
            # Start fresh trails from the current positions
            self.histories = new_histories(self.flakes, self.trail_length)
        self._record_trails = enabled

    def reset(self, init_params=None):
        """
        Discard the population and trails and spawn ``num_flakes`` new flakes.

        The new state is built completely before it replaces the old one.
        """
        if init_params is not None:
            self.init_params = init_params
        count = int(self.init_params.num_flakes)
        flakes = spawn_flakes(count, self.init_params, self.env, self.domain, self.rng)
        histories = new_histories(flakes, self.trail_length)

        self.flakes, self.histories = flakes, histories
        self._warned_non_finite = False
        logger.info("Reset population to %d flakes", count)

    def advance(self, frame_dt):
        """
        Advance the population over one frame of ``frame_dt`` seconds.

        Returns:
            np.ndarray: (N,) bool mask of flakes respawned during the frame
        """
        histories = self.histories if self._record_trails else None
        self.flakes, respawned = advance(
            self.flakes, frame_dt, self.init_params, self.env, self.domain,
            self.substeps, self.rng, histories,
        )
        n_respawned = int(np.count_nonzero(respawned))
        if n_respawned:
            logger.debug("Respawned %d flakes", n_respawned)
        self._check_finite()
        return respawned

    def brightness(self):
        """Cone-light brightness in [0, 1] for every flake."""
        return brightness(self.flakes.position, self.flakes.face_normals(), self.env, self.domain)

    def render_attributes(self):
        """
        Per-flake attributes consumed by the renderer.

        Returns:
            dict: position, theta, diameter, brightness and (when recording)
            the trail buffer
        """
        position, theta, diameter = self.flakes.render_attributes()
        return {
            'position': position,
            'theta': theta,
            'diameter': diameter,
            'brightness': self.brightness(),
            'trails': self.histories if self._record_trails else None,
        }

    def _check_finite(self):
        if self._warned_non_finite:
            return
        finite = np.isfinite(self.flakes.position).all(axis=1) & np.isfinite(self.flakes.theta)
        if not finite.all():
            logger.warning("%d flakes have non-finite state; check mass and diameter distributions",
                           int(np.count_nonzero(~finite)))
            self._warned_non_finite = True


class FrameClock:
    """
    Turns monotonic host timestamps into frame durations.

    Starting resets the baseline to "now" so the first frame after a pause
    does not see the whole pause as elapsed time.
    """

    def __init__(self):
        self.running = False
        self._last = None

    def start(self, now):
        self._last = now
        self.running = True

    def stop(self):
        self.running = False

    def toggle(self, now):
        if self.running:
            self.stop()
        else:
            self.start(now)
        return self.running

    def tick(self, now):
        """Seconds since the previous tick (or start); 0.0 while stopped."""
        if not self.running:
            return 0.0
        dt = now - self._last
        self._last = now
        return dt
