import numpy as np
import pytest
from matplotlib.colors import to_rgb

from flakesim import config
from flakesim.app import FlakeSimApp, parse_arguments
from flakesim.params import EnvironmentParams, InitParams
from flakesim.visualization.renderer import (
    cone_vertices,
    engineering_segments,
    flake_colors,
    marker_sizes,
    trail_segments,
)


class FakeClock:
    def __init__(self, times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


@pytest.fixture
def app(rng):
    times = FakeClock([0.0, 0.02, 0.04, 0.06, 0.08, 0.10, 5.0, 5.02])
    return FlakeSimApp(init_params=InitParams(num_flakes=5), rng=rng, clock=times)


def test_flake_colors_use_brightness_as_alpha():
    colors = flake_colors(np.array([0.0, 0.5, 1.0, np.nan]))

    assert colors.shape == (4, 4)
    assert np.allclose(colors[:, :3], to_rgb(config.FLAKE_COLOR))
    assert np.allclose(colors[:, 3], [config.MIN_RENDER_BRIGHTNESS, 0.5, 1.0,
                                      config.MIN_RENDER_BRIGHTNESS])


def test_marker_size_reference():
    assert np.isclose(marker_sizes(np.array([5e-3]))[0], config.FLAKE_MARKER_SIZE)
    assert marker_sizes(np.array([1e-2]))[0] > config.FLAKE_MARKER_SIZE


def test_cone_vertices(domain):
    vertices = cone_vertices(30.0, domain)
    light_x, light_y = domain.light_position

    assert np.allclose(vertices[0], (light_x, light_y))
    assert np.isclose(vertices[2, 0] - light_x, light_y * np.tan(np.deg2rad(30.0)))
    assert np.allclose(vertices[1:, 1], 0.0)


def test_trail_segments_skip_wrap_jumps(domain):
    histories = np.array([[[2.9, 5.0], [0.1, 4.9], [0.2, 4.8]]])
    segments, colors = trail_segments(histories, np.array([1.0]), domain)

    assert segments.shape == (1, 2, 2)
    assert np.allclose(segments[0], [[0.1, 4.9], [0.2, 4.8]])
    assert colors.shape == (1, 4)


def test_trail_segments_fade_with_age(domain):
    histories = np.array([[[1.0, 5.0 - 0.1 * t] for t in range(6)]])
    _segments, colors = trail_segments(histories, np.array([1.0]), domain)

    assert np.all(np.diff(colors[:, 3]) > 0)
    assert np.isclose(colors[-1, 3], 1.0)


def test_engineering_segments_are_perpendicular_to_normal():
    position = np.array([[1.0, 5.0]])
    segments, tips = engineering_segments(position, np.array([0.0]), half_length=0.1)

    assert np.allclose(segments[0], [[1.0, 4.9], [1.0, 5.1]])
    assert np.allclose(tips[0], [1.1, 5.0])


def test_renderer_draws_current_positions(app):
    app.update(0)
    offsets = app.renderer.dots.get_offsets()

    assert np.allclose(offsets, app.stepper.flakes.position)
    assert np.isclose(app.renderer.cone.get_alpha(), app.env.cone_opacity)


def test_engineering_view_toggle(app):
    app.controls.view_checks.set_active(0)

    assert app.renderer.show_engineering
    assert len(app.renderer.bars.get_segments()) == 5
    assert len(app.renderer.dots.get_offsets()) == 0


def test_trails_toggle(app):
    app.controls.view_checks.set_active(1)
    assert app.stepper.record_trails

    app.play()
    app.update(1)
    assert len(app.renderer.trails.get_segments()) > 0


def test_environment_sliders_write_live_params(app):
    app.controls.sliders['g'].set_val(3.0)
    app.controls.sliders['beam_angle'].set_val(45.0)
    app.controls.sliders['mass_mean'].set_val(2.5)

    assert app.env.g == 3.0
    assert app.env.beam_angle == 45.0
    assert app.init_params.mass_mean == 2.5


def test_population_slider_resets(app):
    app.controls.sliders['num_flakes'].set_val(8)

    assert app.init_params.num_flakes == 8
    assert len(app.stepper.flakes) == 8


def test_paused_app_does_not_advance(app):
    before = app.stepper.flakes.position.copy()
    app.update(0)
    assert np.array_equal(app.stepper.flakes.position, before)


def test_play_advances_and_pause_stops(app):
    before = app.stepper.flakes.position.copy()
    assert app.toggle_play() is True
    app.update(0)
    moved = app.stepper.flakes.position.copy()
    assert not np.array_equal(moved, before)
    assert app.controls.play_button.label.get_text() == 'Pause'

    assert app.toggle_play() is False
    app.update(1)
    assert np.array_equal(app.stepper.flakes.position, moved)


def test_long_stall_is_truncated(rng):
    clock = FakeClock([0.0, 30.0])
    env = EnvironmentParams(air_pressure=0.0)
    app = FlakeSimApp(init_params=InitParams(num_flakes=2), env=env, rng=rng, clock=clock)
    app.play()
    app.update(0)

    assert np.allclose(app.stepper.flakes.velocity[:, 1], -env.g * config.MAX_FRAME_DT)


def test_reset_pauses_and_respawns(app):
    app.play()
    app.update(0)
    app.reset()

    assert not app.playing
    assert np.all(app.stepper.flakes.position[:, 1] == app.stepper.domain.spawn_height)
    assert app.controls.play_button.label.get_text() == 'Play'


def test_parse_arguments():
    args = parse_arguments(['--flakes', '7', '--trails', '--seed', '2'])
    assert args.flakes == 7
    assert args.trails
    assert args.seed == 2
    assert not args.engineering

    defaults = parse_arguments([])
    assert defaults.flakes == config.CLI_DEFAULT_NUM_FLAKES
    assert defaults.log_level == 'INFO'

    with pytest.raises(SystemExit):
        parse_arguments(['--flakes', '0'])
