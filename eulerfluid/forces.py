"""
forces.py — External Forces (Gravity, User Input)
==================================================
Applies body forces and local impulses to the velocity field.

Neither is part of the default step (gravity is (0, 0) unless asked for);
the viewer uses apply_impulse() for mouse drags.

Forces act on the u/v samples owned by fluid cells, i.e. the low-x face
u[x, y] and the low-y face v[x, y] of every fluid cell.
"""

import numpy as np
from .grid import FluidGrid


# ── Body force parameters ─────────────────────────────────────────────────────
GRAVITY = (0.0, 9.81)    # +y is down on screen


def apply_body_forces(grid: FluidGrid, dt: float, forces=(GRAVITY,)):
    """
    Add a uniform acceleration (sum of `forces`) for one timestep.

    Args:
        grid   : FluidGrid to modify in place
        dt     : Timestep
        forces : Iterable of (fx, fy) accelerations
    """
    fx = sum(f[0] for f in forces)
    fy = sum(f[1] for f in forces)
    if fx == 0.0 and fy == 0.0:
        return

    owned = grid.fluid > 0.0
    grid.u[:-1, :][owned] += fx * dt
    grid.v[:, :-1][owned] += fy * dt


def apply_impulse(grid: FluidGrid, x: float, y: float,
                  fx: float, fy: float, radius: float = 3.0):
    """
    Apply a localized velocity impulse (e.g. a mouse drag).
    Strength falls off linearly with distance from (x, y).

    Args:
        x, y   : Center of the impulse (cell-index units)
        fx, fy : Velocity added at the center
        radius : Influence radius in cells
    """
    if radius <= 0:
        return
    W, H = grid.width, grid.height

    # u samples sit at (i, j + 0.5)
    iu, ju = np.meshgrid(np.arange(W + 1), np.arange(H) + 0.5, indexing='ij')
    dist_u = np.sqrt((iu - x)**2 + (ju - y)**2)
    mask_u = dist_u < radius
    grid.u[mask_u] += fx * (1 - dist_u[mask_u] / radius)

    # v samples sit at (i + 0.5, j)
    iv, jv = np.meshgrid(np.arange(W) + 0.5, np.arange(H + 1), indexing='ij')
    dist_v = np.sqrt((iv - x)**2 + (jv - y)**2)
    mask_v = dist_v < radius
    grid.v[mask_v] += fy * (1 - dist_v[mask_v] / radius)
