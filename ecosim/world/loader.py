"""World loader — build a populated grid from a declarative description.

Expected document (YAML, or JSON since JSON is valid YAML)::

    width: 10
    height: 8
    plants:
      - {energy: 2, x: 3, y: 4}
    herbivores:
      - {energy: 5, x: 1, y: 2}
    carnivores:
      - {energy: 10, x: 7, y: 6}

``posx``/``posy`` are accepted as aliases for ``x``/``y``.  A malformed
document raises ``WorldConfigError`` and no grid is returned.  Entries
that fall outside the grid or target an occupied slot are skipped with a
warning; they do not invalidate the rest of the world.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ecosim.errors import InvalidCoordinate, SlotOccupied, WorldConfigError
from ecosim.organisms.organism import Organism
from ecosim.organisms.species import Species
from ecosim.world.position import Position
from ecosim.world.world import World

logger = logging.getLogger(__name__)

_SECTIONS: dict[str, Species] = {
    "plants": Species.PLANT,
    "herbivores": Species.HERBIVORE,
    "carnivores": Species.CARNIVORE,
}


def load_world(path: str | Path) -> World:
    """Load a world description file.

    Args:
        path: Path to a YAML or JSON world file.

    Returns:
        A fully populated World.

    Raises:
        FileNotFoundError: If the file does not exist.
        WorldConfigError: If the file is not a valid world description.
    """
    path = Path(path)
    with path.open("r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            msg = f"{path.name}: not valid YAML/JSON: {exc}"
            raise WorldConfigError(msg) from exc
    world = parse_world(data)
    logger.info(
        "Loaded %s (%dx%d, %d organisms)",
        path.name,
        world.width,
        world.height,
        sum(world.census().values()),
    )
    return world


def parse_world(data: Any) -> World:
    """Build a World from an already-parsed description.

    Raises:
        WorldConfigError: If the description is malformed.
    """
    if not isinstance(data, Mapping):
        msg = "world description must be a mapping"
        raise WorldConfigError(msg)

    width = _require_int(data, "width")
    height = _require_int(data, "height")
    if width <= 0 or height <= 0:
        msg = f"invalid dimensions: {width}x{height}"
        raise WorldConfigError(msg)

    world = World(width=width, height=height)
    for section, species in _SECTIONS.items():
        entries = data.get(section) or []
        if not isinstance(entries, list):
            msg = f"'{section}' must be a list"
            raise WorldConfigError(msg)
        for index, entry in enumerate(entries):
            _place_entry(world, species, entry, f"{section}[{index}]")
    return world


def _place_entry(world: World, species: Species, entry: Any, where: str) -> None:
    if not isinstance(entry, Mapping):
        msg = f"{where}: entry must be a mapping"
        raise WorldConfigError(msg)

    x = _require_int(entry, "x", "posx", where=where)
    y = _require_int(entry, "y", "posy", where=where)
    energy = (
        _require_int(entry, "energy", where=where) if "energy" in entry else None
    )
    try:
        pos = Position(x, y)
    except InvalidCoordinate as exc:
        msg = f"{where}: {exc}"
        raise WorldConfigError(msg) from exc

    if not world.is_valid_position(pos):
        logger.warning("%s: (%d, %d) is outside the world, skipped", where, x, y)
        return

    organism = Organism(species=species, energy=energy)
    try:
        world.place(organism, pos)
    except SlotOccupied:
        logger.warning(
            "%s: %s slot occupied at (%d, %d), skipped",
            where,
            "animal" if species.is_animal else "plant",
            x,
            y,
        )


def _require_int(data: Mapping[str, Any], *keys: str, where: str = "world") -> int:
    """Return the first of ``keys`` present in ``data`` as an int."""
    for key in keys:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{where}: '{key}' must be an integer, got {value!r}"
                raise WorldConfigError(msg)
            return value
    msg = f"{where}: missing '{keys[0]}'"
    raise WorldConfigError(msg)
