"""
FlakeSim application.

Wires the physics stepper, the renderer and the control panel together and
drives them from a matplotlib FuncAnimation, which plays the role of the
host's per-refresh callback.

Usage:
    flakesim
    flakesim --flakes 50 --trails
    python -m flakesim --engineering --seed 7 --log-level DEBUG
"""

import argparse
import logging
import time

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation

from flakesim import config
from flakesim.logging_config import setup_logging
from flakesim.params import DEFAULT_DOMAIN, EnvironmentParams, InitParams
from flakesim.physics.simulation import FrameClock, SimulationStepper
from flakesim.ui.ui_controls import UIController
from flakesim.visualization.renderer import FlakeRenderer

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='FlakeSim - falling flakes under a cone light',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  flakesim                          # 20 flakes, start playing
  flakesim --flakes 80 --trails     # more flakes with motion trails
  flakesim --engineering --paused   # orientation view, wait for Play
        """
    )
    parser.add_argument('--flakes', '-n', type=int, default=config.CLI_DEFAULT_NUM_FLAKES,
                        help=f'Number of flakes (default: {config.CLI_DEFAULT_NUM_FLAKES})')
    parser.add_argument('--trails', action='store_true',
                        help='Record and draw motion trails')
    parser.add_argument('--engineering', action='store_true',
                        help='Draw orientation bars and face normals instead of dots')
    parser.add_argument('--paused', action='store_true',
                        help='Start paused; press Play to run')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducible spawning')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    parser.add_argument('--log-file', default=None,
                        help='Also write logs to this file')

    args = parser.parse_args(argv)
    if args.flakes < 1 or args.flakes > config.MAX_NUM_FLAKES:
        parser.error(f'--flakes must be between 1 and {config.MAX_NUM_FLAKES}')
    return args


def setup_figure_layout():
    """
    Create the figure with the control column on the left and the
    simulation view on the right.

    Returns:
        tuple: (fig, ax)
    """
    fig = plt.figure(figsize=(11, 9))
    fig.canvas.manager.set_window_title(config.WINDOW_TITLE)
    ax = fig.add_axes([0.55, 0.03, 0.40, 0.94])
    return fig, ax


class FlakeSimApp:
    """Owns the live parameters, the stepper and the view for one window."""

    def __init__(self, init_params=None, env=None, domain=DEFAULT_DOMAIN,
                 record_trails=False, show_engineering=False, rng=None, clock=time.perf_counter):
        self.env = env if env is not None else EnvironmentParams()
        self.init_params = init_params if init_params is not None else InitParams()
        self.domain = domain
        self.now = clock

        self.stepper = SimulationStepper(self.init_params, self.env, domain,
                                         record_trails=record_trails, rng=rng)
        self.frame_clock = FrameClock()

        self.fig, self.ax = setup_figure_layout()
        self.renderer = FlakeRenderer(self.ax, domain, show_engineering=show_engineering)
        self.controls = UIController(
            self.fig, self.env, self.init_params,
            on_reset=self.reset,
            on_toggle_play=self.toggle_play,
            on_population_change=self.on_population_change,
            on_toggle_trails=self.set_trails,
            on_toggle_engineering=self.set_engineering,
            show_engineering=show_engineering,
            record_trails=record_trails,
        )
        self.anim = None
        self.redraw()

    @property
    def playing(self):
        return self.frame_clock.running

    def update(self, frame):
        """Per-refresh callback: advance physics while playing, then redraw."""
        if self.frame_clock.running:
            dt = min(self.frame_clock.tick(self.now()), config.MAX_FRAME_DT)
            self.stepper.advance(dt)
        return self.renderer.update(self.stepper.render_attributes(), self.env)

    def redraw(self):
        self.renderer.update(self.stepper.render_attributes(), self.env)
        self.fig.canvas.draw_idle()

    def play(self):
        self.frame_clock.start(self.now())
        self.controls.set_playing(True)
        logger.info("Animation started")

    def pause(self):
        self.frame_clock.stop()
        self.controls.set_playing(False)
        logger.info("Animation paused")

    def toggle_play(self):
        if self.frame_clock.running:
            self.pause()
        else:
            self.play()
        return self.frame_clock.running

    def reset(self):
        """Re-spawn the whole population and pause."""
        self.stepper.reset()
        if self.frame_clock.running:
            self.pause()
        self.redraw()

    def on_population_change(self, count):
        self.stepper.reset()
        self.redraw()

    def set_trails(self, enabled):
        self.stepper.record_trails = enabled
        self.redraw()

    def set_engineering(self, enabled):
        self.renderer.show_engineering = bool(enabled)
        self.redraw()

    def run(self, frames=None):
        """Start the animation loop and show the window."""
        self.anim = FuncAnimation(self.fig, self.update, frames=frames,
                                  interval=config.ANIMATION_INTERVAL, blit=False,
                                  cache_frame_data=False)
        plt.show()
        return self.anim


def main(argv=None):
    """Command-line entry point."""
    args = parse_arguments(argv)
    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    rng = np.random.default_rng(args.seed)
    init_params = InitParams(num_flakes=args.flakes)
    app = FlakeSimApp(init_params=init_params, record_trails=args.trails,
                      show_engineering=args.engineering, rng=rng)
    if not args.paused:
        app.play()
    app.run()


if __name__ == "__main__":
    main()
