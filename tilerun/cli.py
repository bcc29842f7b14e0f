"""
Tilerun CLI - Command-line interface for the engine.

Usage:
    tilerun simulate [--character fighter] [--seed N] [--runs N]   Auto-play runs
    tilerun levels                                                 Print the level table
    tilerun serve [--host H] [--port P]                            Run the HTTP API
"""

import argparse
import sys

from .config import configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tilerun - Roguelike tile-reveal run engine",
        prog="tilerun",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from TILERUN_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Auto-play runs with bots on both sides")
    simulate_parser.add_argument("--character", default="fighter", help="Character id")
    simulate_parser.add_argument("--policy", default="heuristic", help="Opponent policy: random, first, heuristic")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed for the first run")
    simulate_parser.add_argument("--runs", type=int, default=1, help="Number of runs")
    simulate_parser.add_argument("--max-steps", type=int, default=10000, help="Step limit per run")

    # Levels command
    subparsers.add_parser("levels", help="Print the level table")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "levels":
        cmd_levels(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_simulate(args):
    """Auto-play one or more runs."""
    from .content.characters import CHARACTERS
    from .session import GameLoop, SessionManager

    if args.character not in CHARACTERS:
        print(f"Error: Unknown character: {args.character}")
        print(f"Choose from: {', '.join(CHARACTERS)}")
        sys.exit(1)

    manager = SessionManager()
    for run_number in range(args.runs):
        seed = args.seed + run_number if args.seed is not None else None
        try:
            session = manager.create_session(seed=seed, policy=args.policy, character_id=args.character)
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)

        summary = GameLoop(session.engine, seed=seed).run(max_steps=args.max_steps)
        print(
            f"Run {run_number + 1}: {summary.status.value} at level {summary.level_reached} "
            f"(boards won {summary.boards_won}, hp {summary.hp}, gold {summary.gold}, steps {summary.steps})"
        )
        manager.end_session(session.session_id)


def cmd_levels(args):
    """Print the level table."""
    from .content.levels import LEVEL_SPECS, fog_tile_count

    print(f"{'Lvl':>3} {'Size':>5} {'Player':>6} {'Opp':>4} {'Monsters':>9} {'Chains':>7} {'Fog':>4} Shop")
    for spec in LEVEL_SPECS:
        monsters = f"{spec.monsters[0]}-{spec.monsters[1]}"
        chains = f"{spec.chains[0]}-{spec.chains[1]}"
        print(
            f"{spec.level:>3} {spec.width}x{spec.height:<3} {spec.player_count:>6} "
            f"{spec.opponent_count:>4} {monsters:>9} {chains:>7} {fog_tile_count(spec.level):>4} "
            f"{'yes' if spec.has_shop else ''}"
        )


def cmd_serve(args):
    """Run the HTTP API."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    uvicorn.run("tilerun.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
