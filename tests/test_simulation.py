import logging

import numpy as np
import pytest

from flakesim.params import EnvironmentParams, InitParams
from flakesim.physics.flake_factory import FlakeState, spawn_flakes
from flakesim.physics.integrator import euler_step
from flakesim.physics.simulation import FrameClock, SimulationStepper, advance, new_histories


def assert_valid_population(flakes, domain):
    assert np.all((flakes.position[:, 0] >= 0.0) & (flakes.position[:, 0] < domain.width))
    assert np.all(flakes.position[:, 1] >= domain.ground_level)
    assert np.all((flakes.theta >= 0.0) & (flakes.theta < 2 * np.pi))
    assert np.all(flakes.mass > 0.0)
    assert np.all(flakes.diameter > 0.0)


def test_advance_matches_fixed_substeps(env, init_params, domain, rng):
    flakes = spawn_flakes(8, init_params, env, domain, rng)
    expected = flakes.copy()
    for _ in range(4):
        expected, _grounded = euler_step(expected, 0.02 / 4, env, domain)

    result, respawned = advance(flakes, 0.02, init_params, env, domain, substeps=4, rng=rng)

    assert not respawned.any()
    assert np.allclose(result.position, expected.position)
    assert np.allclose(result.velocity, expected.velocity)
    assert np.allclose(result.theta, expected.theta)


def test_grounded_flake_is_respawned(still_env, init_params, domain, rng):
    flakes = FlakeState.single((1.0, domain.ground_level + 1e-3), velocity=(0.0, -5.0))
    histories = new_histories(flakes, 5)

    result, respawned = advance(flakes, 0.04, init_params, still_env, domain, rng=rng,
                                histories=histories)

    assert respawned[0]
    # Respawned on the first sub-step, then fell for the remaining three
    assert result.position[0, 1] > domain.spawn_height - 0.01
    # Trail was cleared: no point from before the respawn survives
    assert np.all(histories[0, :, 1] > domain.spawn_height - 0.01)


def test_non_positive_or_nan_dt_is_ignored(env, init_params, domain, rng):
    flakes = spawn_flakes(3, init_params, env, domain, rng)
    for dt in (0.0, -0.1, float('nan')):
        result, respawned = advance(flakes, dt, init_params, env, domain, rng=rng)
        assert result is flakes
        assert not respawned.any()


def test_substeps_must_be_positive(env, init_params, domain, rng):
    flakes = spawn_flakes(1, init_params, env, domain, rng)
    with pytest.raises(ValueError):
        advance(flakes, 0.1, init_params, env, domain, substeps=0, rng=rng)
    with pytest.raises(ValueError):
        SimulationStepper(init_params, env, domain, substeps=0, rng=rng)


def test_reset_twice_gives_independent_valid_populations(env, init_params, domain, rng):
    stepper = SimulationStepper(init_params, env, domain, rng=rng)
    stepper.reset()
    first = stepper.flakes.copy()
    stepper.reset()
    second = stepper.flakes

    assert len(first) == len(second) == init_params.num_flakes
    assert_valid_population(first, domain)
    assert_valid_population(second, domain)
    assert not np.array_equal(first.position, second.position)


def test_reset_follows_population_size(env, domain, rng):
    params = InitParams(num_flakes=3)
    stepper = SimulationStepper(params, env, domain, rng=rng)
    params.num_flakes = 12
    stepper.reset()

    assert len(stepper.flakes) == 12
    assert stepper.histories.shape[0] == 12


def test_long_run_keeps_invariants(env, init_params, domain, rng):
    stepper = SimulationStepper(init_params, env, domain, record_trails=True, rng=rng)
    respawns = 0
    for _ in range(900):
        respawns += int(stepper.advance(1 / 30).sum())
        assert_valid_population(stepper.flakes, domain)

    assert respawns > 0
    assert len(stepper.flakes) == init_params.num_flakes


def test_environment_is_read_fresh(init_params, domain):
    env = EnvironmentParams(air_pressure=0.0)
    stepper = SimulationStepper(init_params, env, domain, rng=np.random.default_rng(0))
    vy_before = stepper.flakes.velocity[:, 1].copy()

    stepper.advance(0.01)
    env.g = 0.0
    vy_mid = stepper.flakes.velocity[:, 1].copy()
    stepper.advance(0.01)

    assert np.allclose(vy_mid, vy_before - 9.81 * 0.01)
    assert np.allclose(stepper.flakes.velocity[:, 1], vy_mid)


def test_trails_record_latest_positions(env, init_params, domain, rng):
    stepper = SimulationStepper(init_params, env, domain, record_trails=True,
                                trail_length=6, rng=rng)
    stepper.advance(1 / 60)

    assert stepper.histories.shape == (init_params.num_flakes, 7, 2)
    assert np.allclose(stepper.histories[:, -1], stepper.flakes.position)


def test_enabling_trails_starts_from_current_positions(env, init_params, domain, rng):
    stepper = SimulationStepper(init_params, env, domain, rng=rng)
    stepper.advance(0.05)
    stepper.record_trails = True

    assert np.allclose(stepper.histories, stepper.flakes.position[:, np.newaxis, :])
    assert stepper.render_attributes()['trails'] is stepper.histories


def test_render_attributes(env, init_params, domain, rng):
    stepper = SimulationStepper(init_params, env, domain, rng=rng)
    attrs = stepper.render_attributes()

    assert set(attrs) == {'position', 'theta', 'diameter', 'brightness', 'trails'}
    assert attrs['trails'] is None
    assert attrs['brightness'].shape == (init_params.num_flakes,)
    assert np.all((attrs['brightness'] >= 0.0) & (attrs['brightness'] <= 1.0))


def test_non_finite_state_is_logged(domain, caplog):
    env = EnvironmentParams(wind_top=0.5, wind_bottom=0.0)
    params = InitParams(num_flakes=2, mass_mean=0.0, clamp_draws=False)
    stepper = SimulationStepper(params, env, domain, rng=np.random.default_rng(3))

    with caplog.at_level(logging.WARNING, logger="flakesim"):
        stepper.advance(1 / 60)

    assert any("non-finite" in record.message for record in caplog.records)


def test_frame_clock_baseline():
    clock = FrameClock()
    assert clock.tick(5.0) == 0.0

    clock.start(10.0)
    assert clock.tick(10.25) == 0.25
    assert clock.tick(10.5) == 0.25

    clock.stop()
    assert clock.tick(100.0) == 0.0

    # Restarting ignores the time spent paused
    assert clock.toggle(200.0) is True
    assert clock.tick(200.1) == pytest.approx(0.1)
    assert clock.toggle(201.0) is False
