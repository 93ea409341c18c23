import numpy as np
import pytest

from eulerfluid import FluidGrid, apply_body_forces, apply_impulse, GRAVITY


def test_body_forces_only_touch_fluid_owned_faces():
    grid = FluidGrid(5, 4)
    apply_body_forces(grid, 0.5, forces=[(1.0, 0.0), (0.0, 2.0)])

    fluid = grid.fluid > 0
    np.testing.assert_allclose(grid.u[:-1, :][fluid], 0.5)
    np.testing.assert_allclose(grid.v[:, :-1][fluid], 1.0)
    assert grid.u[:-1, :][~fluid].sum() == 0.0
    assert grid.v[:, :-1][~fluid].sum() == 0.0
    assert not grid.u[-1, :].any()


def test_default_force_is_gravity():
    grid = FluidGrid(4, 4)
    apply_body_forces(grid, 1.0)
    assert grid.v[1, 1] == pytest.approx(GRAVITY[1])
    assert grid.u[1, 1] == 0.0


def test_zero_force_is_a_no_op():
    grid = FluidGrid(4, 4)
    apply_body_forces(grid, 1.0, forces=[(0.0, 0.0)])
    assert not grid.u.any() and not grid.v.any()


def test_impulse_falls_off_with_distance():
    grid = FluidGrid(10, 10)
    apply_impulse(grid, 5.0, 5.5, fx=3.0, fy=0.0, radius=2.0)

    # u[5, 5] sits exactly on the impulse center
    assert grid.u[5, 5] == pytest.approx(3.0)
    assert grid.u[6, 5] == pytest.approx(1.5)
    assert grid.u[8, 5] == 0.0
    assert not grid.v.any()


def test_impulse_with_zero_radius_does_nothing():
    grid = FluidGrid(6, 6)
    apply_impulse(grid, 3.0, 3.0, 1.0, 1.0, radius=0.0)
    assert not grid.u.any() and not grid.v.any()
