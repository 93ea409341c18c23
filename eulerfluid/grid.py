"""
grid.py — 2D MAC (Marker-and-Cell) Staggered Grid
==================================================
The foundation of the entire simulation.

Layout on a single cell (x, y), in cell-index units:
  - Cell type and divergence live at CELL CENTERS → shape (W, H)
  - Velocity `u` lives on VERTICAL faces          → shape (W+1, H)
      u[i, j] sits at (i, j + 0.5), between cells (i-1, j) and (i, j)
  - Velocity `v` lives on HORIZONTAL faces        → shape (W, H+1)
      v[i, j] sits at (i + 0.5, j), between cells (i, j-1) and (i, j)

Why staggered? Each face velocity is exactly the flux through one cell
face, so divergence only touches the 4 faces of its own cell and the
"checkerboard" pressure null-mode of collocated grids never appears.

Arrays are indexed [x, y] (x = column, y = row).
"""

import numpy as np


# ── Cell classification ──────────────────────────────────────────────────────
WALL  = 0
FLUID = 1

# Half-width of the uniform range used by randomize_velocities()
RANDOM_VELOCITY_SCALE = 10.0


def divergence_of(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Net outflow of every cell for a staggered (u, v) pair.

    div[x, y] = u[x+1, y] - u[x, y] + v[x, y+1] - v[x, y]

    Positive = net source, negative = net sink. Returns a new array.
    """
    return (u[1:, :] - u[:-1, :]) + (v[:, 1:] - v[:, :-1])


class FluidGrid:
    """
    Fixed-size 2D MAC grid holding all solver state.
    This is the single source of truth passed between the physics steps.
    """

    def __init__(self, width: int, height: int, cell_size: float = 1.0):
        """
        Args:
            width, height : Number of cells along x and y (must be > 0)
            cell_size     : Side of a square cell in world length units (> 0)

        Raises:
            ValueError if any dimension or the cell size is not positive.
        """
        if int(width) != width or int(height) != height:
            raise ValueError(f"Grid dimensions must be integers, got {width}x{height}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")

        self.width = int(width)
        self.height = int(height)
        self.cell_size = float(cell_size)
        W, H = self.width, self.height

        # ── Cell classification (never mutated after this) ─────────────────
        # Border = WALL, interior = FLUID
        self.cell_type = np.full((W, H), WALL, dtype=np.int8)
        self.cell_type[1:-1, 1:-1] = FLUID
        self.cell_type.flags.writeable = False

        # 1.0 for fluid, 0.0 for wall: used as the open-face weights
        self.fluid = (self.cell_type == FLUID).astype(np.float64)
        self.fluid.flags.writeable = False

        # ── Velocity fields (face-centered, staggered) ─────────────────────
        self.u = np.zeros((W + 1, H), dtype=np.float64)
        self.v = np.zeros((W, H + 1), dtype=np.float64)

        # Scratch copies read by advection while u/v are being rewritten
        self.u_prev = np.zeros_like(self.u)
        self.v_prev = np.zeros_like(self.v)

        # ── Per-cell divergence (recomputed every step) ────────────────────
        self.divergence = np.zeros((W, H), dtype=np.float64)

    # ── Initialization ───────────────────────────────────────────────────────

    def randomize_velocities(self, rng: np.random.Generator = None,
                             scale: float = RANDOM_VELOCITY_SCALE):
        """
        Fill every u and v sample (wall faces included) with an independent
        uniform value in [-scale, +scale], then recompute divergence so the
        visible state is consistent with the new field.

        Args:
            rng   : numpy Generator; a fresh unseeded one is used if None
            scale : Half-width of the uniform range
        """
        if rng is None:
            rng = np.random.default_rng()
        self.u[:] = rng.uniform(-scale, scale, size=self.u.shape)
        self.v[:] = rng.uniform(-scale, scale, size=self.v.shape)
        self.compute_divergence()

    def zero_velocities(self):
        """Clear the velocity field and divergence."""
        for arr in [self.u, self.v, self.u_prev, self.v_prev, self.divergence]:
            arr[:] = 0.0

    # ── Divergence ───────────────────────────────────────────────────────────

    def compute_divergence(self) -> np.ndarray:
        """
        Overwrite `divergence` with the net outflow of every cell.

        For an incompressible fluid this should be ~0 in every fluid cell.
        Wall cells get a value too (the renderer shows it) but the
        relaxation never acts on it.

        Returns: the (W, H) divergence array (same object, updated in place).
        """
        np.subtract(self.u[1:, :], self.u[:-1, :], out=self.divergence)
        self.divergence += self.v[:, 1:]
        self.divergence -= self.v[:, :-1]
        return self.divergence

    # ── Bounds-checked read accessors ────────────────────────────────────────

    @staticmethod
    def _check_index(i: int, j: int, shape: tuple, what: str):
        ni, nj = shape
        if not (0 <= i < ni and 0 <= j < nj):
            raise IndexError(
                f"{what} index ({i}, {j}) out of range "
                f"[0, {ni - 1}] x [0, {nj - 1}]"
            )

    def cell_type_at(self, x: int, y: int) -> int:
        self._check_index(x, y, self.cell_type.shape, "cell")
        return int(self.cell_type[x, y])

    def is_fluid(self, x: int, y: int) -> bool:
        return self.cell_type_at(x, y) == FLUID

    def divergence_at(self, x: int, y: int) -> float:
        self._check_index(x, y, self.divergence.shape, "cell")
        return float(self.divergence[x, y])

    def velocity_u_at(self, i: int, j: int) -> float:
        """Horizontal velocity on the vertical face at (i, j + 0.5)."""
        self._check_index(i, j, self.u.shape, "u-face")
        return float(self.u[i, j])

    def velocity_v_at(self, i: int, j: int) -> float:
        """Vertical velocity on the horizontal face at (i + 0.5, j)."""
        self._check_index(i, j, self.v.shape, "v-face")
        return float(self.v[i, j])

    # ── Read-only views for the renderer ─────────────────────────────────────

    def save_state(self) -> dict:
        """
        Snapshot current state as numpy arrays (copies, safe to keep).

        Returns a dict with 'velocity_u', 'velocity_v', 'divergence', 'cell_type'.
        """
        return {
            "velocity_u": self.u.copy(),
            "velocity_v": self.v.copy(),
            "divergence": self.divergence.copy(),
            "cell_type":  self.cell_type.copy(),
        }

    def get_velocity_at_center(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Interpolate staggered face velocities to cell centers.
        Used for drawing arrows and for status reports.

        Returns (uc, vc) each of shape (W, H).
        """
        uc = 0.5 * (self.u[:-1, :] + self.u[1:, :])
        vc = 0.5 * (self.v[:, :-1] + self.v[:, 1:])
        return uc, vc

    def __repr__(self):
        fluid_div = self.divergence[self.cell_type == FLUID]
        max_div = np.abs(fluid_div).max() if fluid_div.size else 0.0
        max_vel = max(np.abs(self.u).max(), np.abs(self.v).max())
        return (
            f"FluidGrid({self.width}x{self.height}, cell_size={self.cell_size})\n"
            f"  velocity  : max_component={max_vel:.4f}\n"
            f"  divergence: max={max_div:.6f} (fluid cells, target: ~0)"
        )
