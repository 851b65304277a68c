"""Config — load driver and session parameters from YAML files.

Species rules are fixed in code; what lives in YAML is everything a
driver needs to set a session up: the seed, the starting world (a world
file or an empty grid size), the tick interval and viewer settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from ecosim.errors import ConfigurationError
from ecosim.world.loader import load_world
from ecosim.world.world import World

MIN_TICK_INTERVAL_MS = 50


@dataclass
class SimulationConfig:
    """Top-level session configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        world_width: Grid columns when no world file is given.
        world_height: Grid rows when no world file is given.
        world_file: Optional world description to load at start-up.
        tick_interval_ms: Delay between automatic turns (floored at 50).
        cell_size: Pixel size per grid cell in the viewer.
        log_level: Logging level name.
    """

    seed: int = 42
    world_width: int = 20
    world_height: int = 20
    world_file: Path | None = None
    tick_interval_ms: int = 600
    cell_size: int = 24
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.tick_interval_ms = max(MIN_TICK_INTERVAL_MS, self.tick_interval_ms)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        A relative ``world_file`` is resolved against the config file's
        directory.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigurationError: If the document is not valid YAML or not
                a mapping.
        """
        path = Path(path)
        with path.open("r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                msg = f"{path.name}: not valid YAML: {exc}"
                raise ConfigurationError(msg) from exc
        if not isinstance(data, dict):
            msg = f"{path.name}: configuration must be a mapping"
            raise ConfigurationError(msg)

        world_file = data.get("world_file")
        if world_file is not None:
            world_file = Path(world_file)
            if not world_file.is_absolute():
                world_file = path.parent / world_file

        return cls(
            seed=data.get("seed", cls.seed),
            world_width=data.get("world_width", cls.world_width),
            world_height=data.get("world_height", cls.world_height),
            world_file=world_file,
            tick_interval_ms=data.get("tick_interval_ms", cls.tick_interval_ms),
            cell_size=data.get("cell_size", cls.cell_size),
            log_level=data.get("log_level", cls.log_level),
        )

    def build_world(self) -> World:
        """Return the configured starting world.

        Loads ``world_file`` when set, otherwise builds an empty grid of
        ``world_width`` x ``world_height``.
        """
        if self.world_file is not None:
            return load_world(self.world_file)
        return World(width=self.world_width, height=self.world_height)
