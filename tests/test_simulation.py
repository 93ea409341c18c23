import numpy as np
import pytest

from eulerfluid import FluidSimulation, WALL, FLUID, divergence_of
from eulerfluid.simulation import PERF_LOG_LENGTH


def test_construction_randomizes_and_computes_divergence():
    sim = FluidSimulation(6, 5, cell_size=2.0, seed=1)
    g = sim.grid
    assert np.abs(g.u).max() > 0.0
    assert np.all(np.abs(g.u) <= 10.0)
    np.testing.assert_allclose(g.divergence, divergence_of(g.u, g.v))


def test_construction_at_rest():
    sim = FluidSimulation(6, 5, randomize=False)
    assert not sim.grid.u.any()
    assert not sim.grid.v.any()


@pytest.mark.parametrize("kwargs", [
    dict(width=0, height=4),
    dict(width=4, height=-3),
    dict(width=4, height=4, cell_size=0.0),
    dict(width=4, height=4, iterations=-1),
    dict(width=4, height=4, over_relaxation=2.0),
    dict(width=4, height=4, over_relaxation=0.0),
])
def test_invalid_arguments_raise(kwargs):
    with pytest.raises(ValueError):
        FluidSimulation(**kwargs)


def test_reset_with_same_seed_gives_same_field():
    sim = FluidSimulation(8, 6, seed=0)
    sim.reset(seed=42)
    u1, v1 = sim.grid.u.copy(), sim.grid.v.copy()
    sim.step(0.1)
    sim.reset(seed=42)

    np.testing.assert_array_equal(sim.grid.u, u1)
    np.testing.assert_array_equal(sim.grid.v, v1)
    np.testing.assert_allclose(sim.grid.divergence, divergence_of(sim.grid.u, sim.grid.v))
    assert sim.frame == 0


def test_reset_without_seed_continues_the_stream():
    sim = FluidSimulation(8, 6, seed=3)
    first = sim.grid.u.copy()
    sim.reset()
    assert not np.array_equal(sim.grid.u, first)


def test_same_seed_same_trajectory():
    a = FluidSimulation(10, 7, cell_size=4.0, iterations=30, seed=9)
    b = FluidSimulation(10, 7, cell_size=4.0, iterations=30, seed=9)
    for _ in range(5):
        a.step(1 / 60)
        b.step(1 / 60)
    np.testing.assert_array_equal(a.grid.u, b.grid.u)
    np.testing.assert_array_equal(a.grid.v, b.grid.v)


def test_step_returns_metrics_and_logs_them():
    sim = FluidSimulation(10, 8, cell_size=1.0, iterations=40, seed=2)
    metrics = sim.step(0.25)

    assert metrics["frame"] == 1
    assert metrics["divergence_max"] < metrics["divergence_before_max"]
    for key in ["total_ms", "fps", "forces_ms", "divergence_ms", "relax_ms", "advect_ms"]:
        assert metrics[key] >= 0.0
    assert list(sim.perf_log) == [metrics]


def test_step_keeps_walls_fixed():
    sim = FluidSimulation(9, 7, seed=4)
    before = sim.grid.save_state()
    for _ in range(3):
        sim.step(1 / 60)

    # u on the left/right border columns touches a wall on one side only
    np.testing.assert_array_equal(sim.grid.u[0, :], before["velocity_u"][0, :])
    np.testing.assert_array_equal(sim.grid.u[-1, :], before["velocity_u"][-1, :])
    np.testing.assert_array_equal(sim.grid.v[:, 0], before["velocity_v"][:, 0])
    np.testing.assert_array_equal(sim.grid.v[:, -1], before["velocity_v"][:, -1])
    np.testing.assert_array_equal(sim.grid.cell_type, before["cell_type"])


@pytest.mark.parametrize("dt", [0.0, -0.1])
def test_non_positive_dt_is_accepted(dt):
    sim = FluidSimulation(6, 6, seed=5)
    sim.step(dt)
    assert np.all(np.isfinite(sim.grid.u))
    assert np.all(np.isfinite(sim.grid.v))


def test_gravity_accelerates_a_resting_fluid():
    sim = FluidSimulation(6, 6, randomize=False, gravity=(0.0, 9.81), iterations=0)
    sim.step(0.1)
    assert sim.grid.v[2, 2] == pytest.approx(0.981)
    assert sim.grid.v[0, 2] == 0.0


def test_accessors():
    sim = FluidSimulation(5, 4, seed=6)
    assert sim.cell_type_at(0, 0) == WALL
    assert sim.cell_type_at(2, 2) == FLUID
    assert sim.is_fluid(1, 1)
    assert not sim.is_fluid(4, 3)
    assert sim.velocity_u_at(5, 3) == sim.grid.u[5, 3]
    assert sim.velocity_v_at(4, 4) == sim.grid.v[4, 4]
    assert sim.divergence_at(2, 1) == sim.grid.divergence[2, 1]

    u, v = sim.sample_velocity(2.0, 1.5)
    assert u == sim.grid.u[2, 1]
    assert isinstance(v, float)

    for bad in [(5, 0), (0, 4), (-1, 0)]:
        with pytest.raises(IndexError):
            sim.divergence_at(*bad)
    with pytest.raises(IndexError):
        sim.velocity_u_at(6, 0)
    with pytest.raises(IndexError):
        sim.velocity_v_at(0, 5)


def test_clear_and_print_status(capsys):
    sim = FluidSimulation(5, 5, seed=7)
    sim.step(0.1)
    sim.clear()
    sim.print_status()
    out = capsys.readouterr().out
    assert "Velocities cleared" in out
    assert "Frame: 1" in out
    assert not sim.grid.u.any()


def test_perf_log_keeps_only_recent_frames():
    sim = FluidSimulation(6, 5, iterations=1, seed=8)
    for _ in range(PERF_LOG_LENGTH + 25):
        sim.step(1 / 60)

    assert len(sim.perf_log) == PERF_LOG_LENGTH
    assert sim.perf_log[0]["frame"] == 26
    assert sim.perf_log[-1]["frame"] == PERF_LOG_LENGTH + 25
