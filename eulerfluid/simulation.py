"""
simulation.py — Master Physics Loop
====================================
The complete simulation step that ties everything together.
One call to `step(dt)` advances the fluid by dt seconds.

Physics pipeline per frame:
  1. Apply body forces (only if gravity was configured)
  2. Compute divergence of every cell
  3. Relax divergence (approximate incompressibility)
  4. Advect velocity (self-advection)

The host (viewer / CLI) owns the simulation object, calls step() once per
frame and only reads state between steps.
"""

import time
from collections import deque

import numpy as np
from .grid import FluidGrid, RANDOM_VELOCITY_SCALE
from .advect import advect_velocity, sample_velocity
from .forces import apply_body_forces
from .solver import relax_divergence, DEFAULT_ITERATIONS, OVER_RELAXATION


# Frames of timing data kept in perf_log (10 s at 60 FPS)
PERF_LOG_LENGTH = 600


class FluidSimulation:
    """
    The complete 2D fluid simulation.

    Usage:
        sim = FluidSimulation(15, 8, cell_size=64.0, seed=1)
        for frame in range(100):
            sim.step(1 / 60)
            div = sim.grid.divergence     # Hand to visualizer
    """

    def __init__(self, width: int, height: int, cell_size: float = 1.0,
                 iterations: int = DEFAULT_ITERATIONS,
                 over_relaxation: float = OVER_RELAXATION,
                 random_scale: float = RANDOM_VELOCITY_SCALE,
                 seed: int = None,
                 gravity: tuple = (0.0, 0.0),
                 randomize: bool = True):
        """
        Args:
            width, height   : Grid size in cells
            cell_size       : Cell side length in world units
            iterations      : Relaxation sweeps per step
            over_relaxation : Relaxation multiplier, in (0, 2)
            random_scale    : Half-width of the random initial velocities
            seed            : Seed for the velocity randomizer (None = random)
            gravity         : (gx, gy) body acceleration; (0, 0) disables it
            randomize       : Start from a random field (False = at rest)

        Raises:
            ValueError on non-positive dimensions/cell size, negative
            iterations, or an over-relaxation factor outside (0, 2).
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        if not 0.0 < over_relaxation < 2.0:
            raise ValueError(f"over_relaxation must lie in (0, 2), got {over_relaxation}")

        self.grid = FluidGrid(width, height, cell_size)
        self.iterations = int(iterations)
        self.over_relaxation = float(over_relaxation)
        self.random_scale = float(random_scale)
        self.gravity = (float(gravity[0]), float(gravity[1]))
        self.rng = np.random.default_rng(seed)
        self.frame = 0
        self.perf_log = deque(maxlen=PERF_LOG_LENGTH)   # most recent frames only

        if randomize:
            self.grid.randomize_velocities(self.rng, self.random_scale)

    def reset(self, seed: int = None):
        """
        Re-randomize every velocity sample and recompute divergence.
        Passing a seed restarts the random stream, so equal seeds give
        equal fields.
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.grid.randomize_velocities(self.rng, self.random_scale)
        self.frame = 0
        print(f"[Simulation] Velocities randomized (seed={seed})")

    def clear(self):
        """Bring the fluid to rest."""
        self.grid.zero_velocities()
        print("[Simulation] Velocities cleared")

    def step(self, dt: float) -> dict:
        """
        Advance simulation by one timestep (dt seconds).

        dt <= 0 is accepted; very large dt can destabilize the relaxation.
        Returns performance metrics dict for benchmarking.
        """
        t_total_start = time.perf_counter()
        g = self.grid

        # ── Step 1: Body forces ────────────────────────────────────────────
        t0 = time.perf_counter()
        if self.gravity != (0.0, 0.0):
            apply_body_forces(g, dt, forces=(self.gravity,))
        t_forces = (time.perf_counter() - t0) * 1000

        # ── Step 2: Divergence ─────────────────────────────────────────────
        t0 = time.perf_counter()
        g.compute_divergence()
        t_divergence = (time.perf_counter() - t0) * 1000

        # ── Step 3: Relax divergence ───────────────────────────────────────
        relax_metrics = relax_divergence(g, dt, iterations=self.iterations,
                                         over_relaxation=self.over_relaxation)

        # ── Step 4: Advect velocity ────────────────────────────────────────
        t0 = time.perf_counter()
        advect_velocity(g, dt)
        t_advect = (time.perf_counter() - t0) * 1000

        # ── Frame bookkeeping ──────────────────────────────────────────────
        self.frame += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame"           : self.frame,
            "dt"              : dt,
            "total_ms"        : t_total,
            "fps"             : 1000.0 / t_total if t_total > 0 else 0,
            "forces_ms"       : t_forces,
            "divergence_ms"   : t_divergence,
            "relax_ms"        : relax_metrics["time_ms"],
            "advect_ms"       : t_advect,
            "divergence_before_max": relax_metrics["divergence_before_max"],
            "divergence_max"  : relax_metrics["divergence_after_max"],
            "divergence_mean" : relax_metrics["divergence_after_mean"],
        }
        self.perf_log.append(metrics)
        return metrics

    # ── Read accessors (IndexError on bad indices) ──────────────────────────

    def cell_type_at(self, x: int, y: int) -> int:
        return self.grid.cell_type_at(x, y)

    def is_fluid(self, x: int, y: int) -> bool:
        return self.grid.is_fluid(x, y)

    def divergence_at(self, x: int, y: int) -> float:
        return self.grid.divergence_at(x, y)

    def velocity_u_at(self, i: int, j: int) -> float:
        return self.grid.velocity_u_at(i, j)

    def velocity_v_at(self, i: int, j: int) -> float:
        return self.grid.velocity_v_at(i, j)

    def sample_velocity(self, x: float, y: float) -> tuple:
        """Velocity at a continuous position in cell-index units."""
        return sample_velocity(self.grid, x, y)

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        fluid = g.fluid > 0.0
        div = g.divergence[fluid]
        uc, vc = g.get_velocity_at_center()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Grid: {g.width}x{g.height}  |  Iterations: {self.iterations}")
        print(f"  Velocity  : max_u={np.abs(uc).max():.4f}, max_v={np.abs(vc).max():.4f}")
        if div.size:
            print(f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
