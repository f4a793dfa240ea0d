"""
UI controls module for FlakeSim.

A column of matplotlib sliders bound to the live parameter records, plus
play/pause and reset buttons and view check boxes. Sliders write straight
into EnvironmentParams / InitParams; the physics core picks the new values up
on its next evaluation.
"""

import logging

from matplotlib.widgets import Button, CheckButtons, Slider

from flakesim import config

logger = logging.getLogger(__name__)

# (label, attribute, min, max) for distribution parameters in operator units.
# The variance slider spans [0, (max - min) / 5].
DISTRIBUTION_SLIDERS = [
    ('Mass (mg)', 'mass', 0.1, 10.0),
    ('Diameter (mm)', 'diameter', 1.0, 10.0),
    ('Initial angle (°)', 'theta', 0.0, 360.0),
]

# (label, attribute, min, max, format) for live environment parameters
ENVIRONMENT_SLIDERS = [
    ('Gravity (m/s²)', 'g', 0.0, 10.0, '%.1f'),
    ('Air pressure (atm)', 'air_pressure', 0.0, 1.0, '%.2f'),
    ('Wind top (m/s)', 'wind_top', -5.0, 5.0, '%.2f'),
    ('Wind bottom (m/s)', 'wind_bottom', -5.0, 5.0, '%.2f'),
    ('Ambient', 'ambient', 0.0, 1.0, '%.2f'),
    ('Diffuse', 'diffuse', 0.0, 1.0, '%.2f'),
    ('Specular', 'specular', 0.0, 1.0, '%.2f'),
    ('Spec. exponent', 'specular_exponent', 1.0, 64.0, '%.0f'),
    ('Beam angle (°)', 'beam_angle', 1.0, 89.0, '%.0f'),
    ('Falloff', 'falloff', 0.0, 0.5, '%.3f'),
    ('Cone opacity', 'cone_opacity', 0.0, 0.5, '%.2f'),
]

SLIDER_LEFT = 0.16
SLIDER_WIDTH = 0.26
SLIDER_HEIGHT = 0.018
SLIDER_SPACING = 0.03
TOP = 0.95


class UIController:
    """Main UI controller for managing interactive controls."""

    def __init__(self, fig, env, init_params, on_reset=None, on_toggle_play=None,
                 on_population_change=None, on_toggle_trails=None,
                 on_toggle_engineering=None, show_engineering=False, record_trails=False):
        """
        Initialize UI controller.

        Args:
            fig: Matplotlib figure
            env (EnvironmentParams): Live environment, mutated by sliders
            init_params (InitParams): Spawn distributions, mutated by sliders
            on_reset: Called with no arguments when Reset is pressed
            on_toggle_play: Called with no arguments; returns True when now playing
            on_population_change: Called with the new flake count
            on_toggle_trails: Called with the new trail state
            on_toggle_engineering: Called with the new engineering view state
            show_engineering (bool): Initial engineering view state
            record_trails (bool): Initial trail state
        """
        self.fig = fig
        self.env = env
        self.init_params = init_params
        self.on_reset = on_reset
        self.on_toggle_play = on_toggle_play
        self.on_population_change = on_population_change
        self.on_toggle_trails = on_toggle_trails
        self.on_toggle_engineering = on_toggle_engineering

        self.sliders = {}
        self._row = 0
        self.setup_ui_controls(show_engineering, record_trails)

    def _next_axes(self):
        bottom = TOP - self._row * SLIDER_SPACING
        self._row += 1
        return self.fig.add_axes([SLIDER_LEFT, bottom, SLIDER_WIDTH, SLIDER_HEIGHT])

    def _bind(self, slider, target, attribute):
        def update(val):
            setattr(target, attribute, float(val))
        slider.on_changed(update)

    def setup_ui_controls(self, show_engineering, record_trails):
        """Create sliders, buttons and check boxes."""
        for label, name, vmin, vmax in DISTRIBUTION_SLIDERS:
            mean_attr, var_attr = f'{name}_mean', f'{name}_var'
            mean = Slider(self._next_axes(), f'{label} mean', vmin, vmax,
                          valinit=getattr(self.init_params, mean_attr), valfmt='%.2f')
            var = Slider(self._next_axes(), f'{label} var', 0.0, (vmax - vmin) / 5.0,
                         valinit=getattr(self.init_params, var_attr), valfmt='%.2f')
            self._bind(mean, self.init_params, mean_attr)
            self._bind(var, self.init_params, var_attr)
            self.sliders[mean_attr] = mean
            self.sliders[var_attr] = var

        for label, name, vmin, vmax, fmt in ENVIRONMENT_SLIDERS:
            slider = Slider(self._next_axes(), label, vmin, vmax,
                            valinit=getattr(self.env, name), valfmt=fmt)
            self._bind(slider, self.env, name)
            self.sliders[name] = slider

        flakes = Slider(self._next_axes(), 'Number of flakes', 1, config.MAX_NUM_FLAKES,
                        valinit=self.init_params.num_flakes, valstep=1, valfmt='%d')
        flakes.on_changed(self._on_population_changed)
        self.sliders['num_flakes'] = flakes

        bottom = TOP - self._row * SLIDER_SPACING - 0.02
        play_ax = self.fig.add_axes([0.04, bottom, 0.12, 0.04])
        reset_ax = self.fig.add_axes([0.18, bottom, 0.12, 0.04])
        self.play_button = Button(play_ax, 'Play')
        self.reset_button = Button(reset_ax, 'Reset')
        self.play_button.on_clicked(self._on_play_clicked)
        self.reset_button.on_clicked(self._on_reset_clicked)

        check_ax = self.fig.add_axes([0.32, bottom - 0.03, 0.14, 0.07])
        check_ax.set_frame_on(False)
        self.view_checks = CheckButtons(check_ax, ['Engineering view', 'Trails'],
                                        [show_engineering, record_trails])
        self.view_checks.on_clicked(self._on_check_clicked)

    def set_playing(self, playing):
        self.play_button.label.set_text('Pause' if playing else 'Play')

    def _on_population_changed(self, val):
        count = int(round(val))
        if count == self.init_params.num_flakes:
            return
        self.init_params.num_flakes = count
        logger.debug("Population slider set to %d", count)
        if self.on_population_change is not None:
            self.on_population_change(count)

    def _on_play_clicked(self, event):
        if self.on_toggle_play is not None:
            self.set_playing(self.on_toggle_play())

    def _on_reset_clicked(self, event):
        if self.on_reset is not None:
            self.on_reset()
        self.set_playing(False)

    def _on_check_clicked(self, label):
        engineering, trails = self.view_checks.get_status()
        if label == 'Engineering view' and self.on_toggle_engineering is not None:
            self.on_toggle_engineering(engineering)
        elif label == 'Trails' and self.on_toggle_trails is not None:
            self.on_toggle_trails(trails)
