"""
eulerfluid/ — 2D Eulerian Fluid Package
========================================
Exports the interfaces the viewer and the CLI use.

Viewer imports:  FluidSimulation, sample_velocity, apply_impulse
CLI imports:     FluidSimulation
"""

from .grid import FluidGrid, WALL, FLUID, divergence_of
from .advect import sample_velocity, advect_velocity
from .solver import relax_divergence, OVER_RELAXATION, DEFAULT_ITERATIONS
from .forces import apply_body_forces, apply_impulse, GRAVITY
from .simulation import FluidSimulation

__all__ = [
    "FluidGrid", "FluidSimulation", "WALL", "FLUID", "divergence_of",
    "sample_velocity", "advect_velocity", "relax_divergence",
    "apply_body_forces", "apply_impulse",
    "OVER_RELAXATION", "DEFAULT_ITERATIONS", "GRAVITY",
]
