"""
visualizer.py — Divergence + Velocity Viewer
=============================================
Renders the 2D simulation in one matplotlib window:
  - Divergence heat-map of every cell (red = source, blue = sink)
  - Wall cells painted solid gray
  - Cell-center velocity arrows (averaged from the staggered faces)

Controls:
  r      → re-randomize velocities
  c      → clear (fluid at rest)
  space  → single step (while paused)
  p      → pause / continuous run
  drag   → push the fluid with the mouse

Uses matplotlib FuncAnimation for real-time updates. The viewer only
reads simulation state between steps.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import LinearSegmentedColormap, ListedColormap

from eulerfluid import apply_impulse

# Diverging colormap for divergence: blue (sink) → black → red (source)
DIVERGENCE_COLORS = ["#2b6cff", "#0a0a0a", "#ff3b2b"]
divergence_cmap = LinearSegmentedColormap.from_list("divergence", DIVERGENCE_COLORS)

WALL_CMAP = ListedColormap(["#555555"])

# Mouse drag → impulse strength (velocity per cell of drag)
DRAG_STRENGTH = 4.0


class FluidVisualizer:
    """
    Real-time viewer of the fluid simulation.

    Usage (standalone):
        from eulerfluid import FluidSimulation
        from visualizer import FluidVisualizer

        sim = FluidSimulation(15, 8, cell_size=64.0)
        viz = FluidVisualizer(sim, dt=1 / 60)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation, dt: float = 1 / 60, div_range: float = 20.0):
        """
        Args:
            simulation : FluidSimulation instance
            dt         : Timestep handed to every step()
            div_range  : Divergence magnitude mapped to full color
        """
        self.sim = simulation
        self.dt = dt
        self.div_range = div_range
        self.W = simulation.grid.width
        self.H = simulation.grid.height

        self.paused = False
        self.step_once = False
        self._drag_from = None
        self._last_metrics = None

        self._setup_figure()
        self._connect_events()

    def _setup_figure(self):
        """Initialize the matplotlib figure."""
        self.fig, self.ax = plt.subplots(figsize=(10, 10 * self.H / max(self.W, 1) + 0.6))
        self.fig.patch.set_facecolor('#0a0a0a')

        ax = self.ax
        ax.set_facecolor('#0a0a0a')
        ax.set_xticks(np.arange(self.W + 1))
        ax.set_yticks(np.arange(self.H + 1))
        ax.set_xticklabels([])
        ax.set_yticklabels([])
        ax.grid(color='#333333', linewidth=0.5)
        ax.tick_params(length=0)
        for spine in ax.spines.values():
            spine.set_edgecolor('#333333')

        # Cell (x, y) covers [x, x+1] x [y, y+1]; y grows downward on screen
        extent = (0, self.W, self.H, 0)
        self.div_img = ax.imshow(
            self.sim.grid.divergence.T, cmap=divergence_cmap,
            vmin=-self.div_range, vmax=self.div_range,
            interpolation='nearest', origin='upper',
            extent=extent, aspect='equal'
        )
        walls = np.ma.masked_where(self.sim.grid.fluid.T > 0, np.ones((self.H, self.W)))
        ax.imshow(walls, cmap=WALL_CMAP, interpolation='nearest',
                  origin='upper', extent=extent, aspect='equal')

        xc, yc = np.meshgrid(np.arange(self.W) + 0.5, np.arange(self.H) + 0.5, indexing='ij')
        uc, vc = self.sim.grid.get_velocity_at_center()
        self.quiver = ax.quiver(
            xc, yc, uc, vc, color='white',
            angles='xy', scale_units='xy', scale=self._arrow_scale(uc, vc)
        )
        ax.set_xlim(0, self.W)
        ax.set_ylim(self.H, 0)

        self.title_text = ax.set_title(
            "Eulerian Fluid — Frame 0", color='#cccccc',
            fontsize=10, fontfamily='monospace'
        )
        plt.tight_layout()

    @staticmethod
    def _arrow_scale(uc: np.ndarray, vc: np.ndarray) -> float:
        """Arrow scale so the longest arrow spans about one cell."""
        longest = float(np.sqrt(uc**2 + vc**2).max()) if uc.size else 0.0
        return longest if longest > 0 else 1.0

    def _connect_events(self):
        canvas = self.fig.canvas
        canvas.mpl_connect('key_press_event', self.on_key)
        canvas.mpl_connect('button_press_event', self.on_press)
        canvas.mpl_connect('motion_notify_event', self.on_motion)
        canvas.mpl_connect('button_release_event', self.on_release)

    # ── Input ────────────────────────────────────────────────────────────────

    def on_key(self, event):
        if event.key == 'r':
            self.sim.reset()
            self._last_metrics = None
        elif event.key == 'c':
            self.sim.clear()
            self._last_metrics = None
        elif event.key == 'p':
            self.paused = not self.paused
        elif event.key == ' ':
            self.step_once = True

    def on_press(self, event):
        if event.inaxes is self.ax and event.xdata is not None:
            self._drag_from = (event.xdata, event.ydata)

    def on_motion(self, event):
        if self._drag_from is None or event.inaxes is not self.ax or event.xdata is None:
            return
        x0, y0 = self._drag_from
        dx, dy = event.xdata - x0, event.ydata - y0
        apply_impulse(self.sim.grid, event.xdata, event.ydata,
                      DRAG_STRENGTH * dx, DRAG_STRENGTH * dy)
        self._drag_from = (event.xdata, event.ydata)

    def on_release(self, event):
        self._drag_from = None

    # ── Frame ────────────────────────────────────────────────────────────────

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates plots."""
        if not self.paused or self.step_once:
            self._last_metrics = self.sim.step(self.dt)
            self.step_once = False

        # Draw only after the step has completed
        g = self.sim.grid
        self.div_img.set_data(g.divergence.T)
        uc, vc = g.get_velocity_at_center()
        self.quiver.set_UVC(uc, vc)
        self.quiver.scale = self._arrow_scale(uc, vc)

        status = "PAUSED" if self.paused else "RUN"
        if self._last_metrics is not None:
            m = self._last_metrics
            self.title_text.set_text(
                f"Eulerian Fluid — Frame {m['frame']} | {status} | "
                f"{m['fps']:.1f} FPS | div_max={m['divergence_max']:.5f}"
            )
        else:
            self.title_text.set_text(f"Eulerian Fluid — Frame {self.sim.frame} | {status}")

        return [self.div_img, self.quiver, self.title_text]

    def run(self, fps: int = 30, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = infinite)
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False,
        )
        plt.show()

    def save_gif(self, path: str = "fluid_sim.gif", fps: int = 30, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=1000 // fps, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
