"""Entry point for ``python -m ecosim``.

Loads the YAML config, builds the starting world and a turn engine, then
either opens a Pygame window or runs a fixed number of turns headless,
logging the population after each one.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

from ecosim.errors import ConfigurationError
from ecosim.logging_config import configure_logging
from ecosim.simulation.config import SimulationConfig
from ecosim.simulation.engine import TurnEngine
from ecosim.simulation.rng import RandomService

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("ecosim")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecosim",
        description="Ecosim - plant/herbivore/carnivore grid ecosystem",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "-w",
        "--world",
        type=pathlib.Path,
        default=None,
        help="World description file (overrides world_file in the config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="RNG seed (overrides the config)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window and print the population each turn",
    )
    parser.add_argument(
        "--turns",
        type=int,
        default=50,
        help="Number of turns to run in headless mode (default: 50)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from config, or INFO)",
    )
    return parser


def run_headless(engine: TurnEngine, turns: int) -> None:
    """Run ``turns`` full turns and log the census after each."""
    for _ in range(turns):
        engine.run_full_turn()
        if engine.world is None:
            break
        census = engine.world.census()
        logger.info(
            "turn=%d %s",
            engine.turn,
            " ".join(f"{s.label}={n}" for s, n in census.items()),
        )


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, build the engine, then run headless or windowed."""
    args = build_parser().parse_args(argv)

    try:
        config = (
            SimulationConfig.from_yaml(args.config)
            if args.config.exists()
            else SimulationConfig()
        )
    except ConfigurationError as exc:
        configure_logging(level=args.log_level)
        logger.error("Could not load config: %s", exc)
        return 1
    if args.world is not None:
        config.world_file = args.world
    if args.seed is not None:
        config.seed = args.seed
    configure_logging(level=args.log_level or config.log_level)

    try:
        world = config.build_world()
    except (OSError, ConfigurationError) as exc:
        logger.error("Could not load world: %s", exc)
        return 1

    engine = TurnEngine(rng=RandomService(config.seed))
    engine.set_world(world)

    if args.headless:
        run_headless(engine, args.turns)
        return 0

    from ecosim.ui.pygame_client import PygameRenderer

    renderer = PygameRenderer(engine=engine, config=config)
    renderer.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
