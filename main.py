"""
3D Swarm Simulation
===================

Headless nearest-neighbor flocking: every bird steers relative to its single
closest neighbor, closing distance when far and following the separation
vector when near.

Usage:
    python main.py                          # Default config (config/swarm.py)
    python main.py --preset fast            # 1000 birds, batched rule
    python main.py -n 2000 --mode parallel  # Numba all-pairs scan
    python main.py --mode grid --ticks 500  # Spatial grid neighbor search
"""

import argparse

from config import swarm as config
from core import Application
from swarm.params import MODES, RULES, SwarmParams


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="3D nearest-neighbor swarm simulation")
    parser.add_argument("--preset", type=str, choices=sorted(config.PRESETS), help="Start from a preset")
    parser.add_argument("--birds", "-n", type=int, dest="num_birds", help="Number of birds")
    parser.add_argument("--ticks", "-t", type=int, default=config.HOST["ticks"], help="Number of ticks to run")
    parser.add_argument("--mode", type=str, choices=MODES, help="Neighbor/force execution mode")
    parser.add_argument("--rule", type=str, choices=RULES, help="Force rule (default depends on mode)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--boundary", type=float, help="Half-width of the cubic domain")
    parser.add_argument("--avoidance-distance", type=float, help="Attract/repel threshold")
    parser.add_argument("--max-velocity", type=float, help="Velocity clamp")
    parser.add_argument("--max-acceleration", type=float, help="Acceleration clamp")
    parser.add_argument("--dt", type=float, help="Integration step")
    parser.add_argument("--log-interval", type=int, default=config.HOST["log_interval"],
                        help="Print progress every N ticks (0 disables)")
    parser.add_argument("--quiet", "-q", action="store_true", help="No progress output")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        params = SwarmParams.from_config(
            preset=args.preset,
            num_birds=args.num_birds,
            mode=args.mode,
            rule=args.rule,
            seed=args.seed,
            boundary=args.boundary,
            avoidance_distance=args.avoidance_distance,
            max_velocity=args.max_velocity,
            max_acceleration=args.max_acceleration,
            dt=args.dt,
        )
    except ValueError as e:
        raise SystemExit(f"[App] Invalid configuration: {e}")

    app = Application(params, ticks=args.ticks, log_interval=args.log_interval, verbose=not args.quiet)
    app.run()


if __name__ == "__main__":
    main()
