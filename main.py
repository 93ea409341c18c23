"""
main.py — Master Entry Point
=============================
Top-level script that runs the 2D fluid demo.

Usage:
    python main.py                    # Live visualization (default)
    python main.py --mode headless    # Run without display (for servers)
    python main.py --mode benchmark   # Per-stage timing breakdown
"""

import argparse
import numpy as np

from eulerfluid import FluidSimulation, DEFAULT_ITERATIONS, GRAVITY

# Same layout as the 960x540 demo window with 64 px cells
DEFAULT_WIDTH     = 15
DEFAULT_HEIGHT    = 8
DEFAULT_CELL_SIZE = 64.0
DEFAULT_DT        = 1 / 60


def make_simulation(args) -> FluidSimulation:
    return FluidSimulation(
        args.width, args.height, cell_size=args.cell_size,
        iterations=args.iterations, seed=args.seed,
        gravity=GRAVITY if args.gravity else (0.0, 0.0),
    )


def run_live(args):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation ({args.width}x{args.height})...")
    print("Keys: r=reset  c=clear  p=pause  space=step. Drag to push. Close the window to exit.\n")

    sim = make_simulation(args)
    viz = FluidVisualizer(sim, dt=args.dt)
    if args.gif:
        viz.save_gif(args.gif, frames=args.frames)
    else:
        viz.run(fps=60)


def run_headless(args) -> list:
    """Run simulation without display — prints stats every 10 frames."""
    print(f"\nHeadless simulation | {args.width}x{args.height} | {args.frames} frames")
    print(f"{'─'*60}")

    sim = make_simulation(args)
    total_times = []

    for f in range(args.frames):
        metrics = sim.step(args.dt)
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Frame {f:03d} | {metrics['total_ms']:6.2f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_before={metrics['divergence_before_max']:.4f} | "
                  f"div_after={metrics['divergence_max']:.5f}")

    if total_times:
        print(f"\n{'─'*60}")
        print(f"  Average: {np.mean(total_times):.2f}ms/frame")
        print(f"  Min:     {np.min(total_times):.2f}ms")
        print(f"  Max:     {np.max(total_times):.2f}ms")
    sim.print_status()
    return list(sim.perf_log)


def run_benchmark(args) -> dict:
    """
    Detailed performance breakdown.
    Shows how long each physics stage takes.
    """
    print(f"\n{'='*60}")
    print(f"  BENCHMARK | {args.width}x{args.height} | {args.frames} frames | "
          f"{args.iterations} iterations")
    print(f"{'='*60}")

    sim = make_simulation(args)

    # Warm up
    for _ in range(5):
        sim.step(args.dt)

    logs = [sim.step(args.dt) for _ in range(args.frames)]

    keys = ["forces_ms", "divergence_ms", "relax_ms", "advect_ms", "total_ms"]
    summary = {}

    print(f"\n{'Step':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        summary[k] = float(np.mean(vals)) if vals else 0.0
        if vals:
            print(f"  {k:<18} {np.mean(vals):>7.2f}ms {np.min(vals):>7.2f}ms {np.max(vals):>7.2f}ms")

    if logs:
        print(f"\n{'─'*50}")
        print(f"  FPS (physics only): {1000 / max(summary['total_ms'], 1e-9):.1f}")
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="2D Eulerian Fluid Simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark"],
        default="live",
        help="Run mode (default: live)"
    )
    parser.add_argument("--width",      type=int,   default=DEFAULT_WIDTH,      help="Cells along x")
    parser.add_argument("--height",     type=int,   default=DEFAULT_HEIGHT,     help="Cells along y")
    parser.add_argument("--cell-size",  type=float, default=DEFAULT_CELL_SIZE,  help="Cell side length")
    parser.add_argument("--iterations", type=int,   default=DEFAULT_ITERATIONS, help="Relaxation sweeps per step")
    parser.add_argument("--dt",         type=float, default=DEFAULT_DT,         help="Timestep per frame")
    parser.add_argument("--frames",     type=int,   default=100,                help="Number of frames")
    parser.add_argument("--seed",       type=int,   default=None,               help="Random seed for the initial field")
    parser.add_argument("--gravity",    action="store_true",                    help="Apply gravity each step")
    parser.add_argument("--gif",        type=str,   default=None,               help="Render --frames frames to a GIF instead of opening a window")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        if args.mode == "live":
            run_live(args)
        elif args.mode == "headless":
            run_headless(args)
        elif args.mode == "benchmark":
            run_benchmark(args)
    except ValueError as e:
        raise SystemExit(f"error: {e}")


if __name__ == "__main__":
    main()
