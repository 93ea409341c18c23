"""
advect.py — Staggered Sampling + Semi-Lagrangian Advection
===========================================================
This is what makes the velocity field *carry itself along*.

The algorithm (per fluid cell):
  1. Start at the cell center (x + 0.5, y + 0.5).
  2. Trace BACKWARD along the cell's own velocity by one timestep.
     → "Where did the fluid now in this cell come FROM?"
  3. Sample the velocity at that back-traced position using bilinear
     interpolation (it'll land between stored samples).
  4. The sampled value becomes the new velocity for this cell.

Positions are in cell-index units, velocities in length/time, so the
back-trace displacement is velocity * dt / cell_size.

Sampling on a MAC grid:
  u[i, j] is stored at (i, j + 0.5) → shift y by -0.5 before flooring
  v[i, j] is stored at (i + 0.5, j) → shift x by -0.5 before flooring

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np
from .grid import FluidGrid


def _bilinear_interpolate(field: np.ndarray, x, y):
    """
    Bilinear interpolation of a 2D sample array at arbitrary positions.

    `x`, `y` are in the array's own index space (sample [i, j] is at (i, j)).
    Indices are clamped to the array, never extrapolated, so any finite
    position is valid and the result is a convex blend of 4 stored samples.

    Args:
        field : 2D numpy array to sample from
        x, y  : Query positions (scalars or same-shape arrays)

    Returns:
        Interpolated values, same shape as x/y
    """
    Nx, Ny = field.shape

    # Clamp positions first so huge coordinates never overflow the int cast
    x = np.clip(x, -1.0, Nx)
    y = np.clip(y, -1.0, Ny)

    # Lower-left corner, then clamp both corners into the array
    x0 = np.floor(x).astype(np.int64)
    y0 = np.floor(y).astype(np.int64)
    i0 = np.clip(x0,     0, Nx - 1)
    i1 = np.clip(x0 + 1, 0, Nx - 1)
    j0 = np.clip(y0,     0, Ny - 1)
    j1 = np.clip(y0 + 1, 0, Ny - 1)

    # Fractional part. Outside the array i0 == i1 so the weight is moot;
    # clipping keeps the blend convex there too.
    tx = np.clip(x - i0, 0.0, 1.0)
    ty = np.clip(y - j0, 0.0, 1.0)

    c00 = field[i0, j0]
    c10 = field[i1, j0]
    c01 = field[i0, j1]
    c11 = field[i1, j1]

    # Lerp in X, then Y
    c0 = c00 * (1 - tx) + c10 * tx
    c1 = c01 * (1 - tx) + c11 * tx
    return c0 * (1 - ty) + c1 * ty


def sample_u(u: np.ndarray, x, y):
    """Horizontal velocity at (x, y) in cell-index units."""
    return _bilinear_interpolate(u, x, np.asarray(y, dtype=np.float64) - 0.5)


def sample_v(v: np.ndarray, x, y):
    """Vertical velocity at (x, y) in cell-index units."""
    return _bilinear_interpolate(v, np.asarray(x, dtype=np.float64) - 0.5, y)


def sample_velocity(grid: FluidGrid, x, y):
    """
    Evaluate the velocity field at a continuous position.

    Accepts scalars (returns a pair of floats) or same-shape arrays
    (returns a pair of arrays). Positions outside the grid are clamped.
    """
    u = sample_u(grid.u, x, y)
    v = sample_v(grid.v, x, y)
    if np.ndim(u) == 0:
        return float(u), float(v)
    return u, v


def advect_velocity(grid: FluidGrid, dt: float):
    """
    Advect the velocity field through itself (self-advection).

    Only fluid cells are updated; each one rewrites the u and v samples
    on its low-x and low-y faces with the velocity found at the
    back-traced point. All samples are read from a copy of the field taken
    before the pass (u_prev / v_prev), so no cell ever sees a value
    written earlier in the same pass.

    Modifies: grid.u, grid.v (in place, via the u_prev/v_prev buffers)
    """
    np.copyto(grid.u_prev, grid.u)
    np.copyto(grid.v_prev, grid.v)

    xs, ys = np.nonzero(grid.fluid)
    if xs.size == 0:
        return

    # Back-trace from each fluid cell center
    scale = dt / grid.cell_size
    x_back = xs + 0.5 - grid.u_prev[xs, ys] * scale
    y_back = ys + 0.5 - grid.v_prev[xs, ys] * scale

    grid.u[xs, ys] = sample_u(grid.u_prev, x_back, y_back)
    grid.v[xs, ys] = sample_v(grid.v_prev, x_back, y_back)
