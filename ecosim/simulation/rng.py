"""RandomService — the single source of simulation randomness.

Every movement, spawn-slot and tie-break decision draws from one
``RandomService`` owned by the turn engine.  The service wraps a NumPy
``Generator`` so that reseeding with the same value replays the exact
same stream, which is what makes whole runs reproducible from a seed.

Vision levels used by ``neighborhood``:

- **1**: cross pattern, the 4 cardinal cells.
- **2**: full 3x3 ring, 8 cells.
- **3**: full 5x5 ring, 24 cells.

All patterns exclude the centre and are clipped to the grid (no
wraparound).
"""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from enum import Enum, auto
from typing import TYPE_CHECKING, TypeVar

import numpy as np

from ecosim.errors import InvalidVisionLevel
from ecosim.organisms.species import Species
from ecosim.world.position import Position

if TYPE_CHECKING:
    from numpy.random import Generator

    from ecosim.world.cell import Cell
    from ecosim.world.world import World

T = TypeVar("T")

DEFAULT_SEED = 42


class NeighborFilter(Enum):
    """Cell predicates accepted by ``RandomService.random_neighbor``."""

    EMPTY = auto()  # no plant and no animal
    EMPTY_ANIMAL = auto()  # animal slot free, plant allowed
    EMPTY_PLANT = auto()  # plant slot free, animal allowed
    ORGANISM = auto()
    PLANT = auto()
    ANIMAL = auto()
    HERBIVORE = auto()
    CARNIVORE = auto()

    def matches(self, cell: Cell) -> bool:
        """Return True if ``cell`` satisfies this filter."""
        match self:
            case NeighborFilter.EMPTY:
                return cell.is_completely_empty
            case NeighborFilter.EMPTY_ANIMAL:
                return cell.is_empty_animal
            case NeighborFilter.EMPTY_PLANT:
                return cell.is_empty_plant
            case NeighborFilter.ORGANISM:
                return cell.has_plant or cell.has_animal
            case NeighborFilter.PLANT:
                return cell.has_plant
            case NeighborFilter.ANIMAL:
                return cell.has_animal
            case NeighborFilter.HERBIVORE:
                return (
                    cell.animal is not None
                    and cell.animal.species is Species.HERBIVORE
                )
            case NeighborFilter.CARNIVORE:
                return (
                    cell.animal is not None
                    and cell.animal.species is Species.CARNIVORE
                )
        return False


class RandomService:
    """Reseedable deterministic random source with grid utilities.

    Attributes:
        seed: The seed the current stream was built from.
    """

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self.seed = seed
        self._rng: Generator = np.random.default_rng(seed)

    def reseed(self, seed: int) -> None:
        """Restart the stream from ``seed``, discarding all prior state."""
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    # -- Basic draws --

    def next_int(self, bound: int) -> int:
        """Return an integer in ``[0, bound)``.

        Raises:
            ValueError: If ``bound`` is not positive.
        """
        if bound <= 0:
            msg = f"bound must be positive, got {bound}"
            raise ValueError(msg)
        return int(self._rng.integers(bound))

    def next_boolean(self) -> bool:
        return bool(self._rng.integers(2))

    def next_double(self) -> float:
        """Return a float in ``[0.0, 1.0)``."""
        return float(self._rng.random())

    def chance(self, probability: float) -> bool:
        """Return True with the given probability.

        Probabilities at or below 0 are always False and at or above 1
        always True; neither consumes a draw.
        """
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return self.next_double() < probability

    # -- Sequences --

    def choose(self, items: Sequence[T] | None) -> T | None:
        """Return a uniformly chosen element, or None if there is none."""
        if not items:
            return None
        return items[self.next_int(len(items))]

    def shuffle(self, items: MutableSequence[T] | None) -> None:
        """Shuffle ``items`` in place (Fisher-Yates).  None is ignored."""
        if items is None:
            return
        for i in range(len(items) - 1, 0, -1):
            j = self.next_int(i + 1)
            items[i], items[j] = items[j], items[i]

    # -- Neighbourhoods --

    @staticmethod
    def neighborhood(
        position: Position,
        world: World,
        vision_level: int,
    ) -> list[Position]:
        """Return the in-bounds positions seen at ``vision_level``.

        Rings are scanned column by column (x outer, y inner); this is
        the "scan order" used for every first-found tie-break.

        Raises:
            InvalidVisionLevel: If ``vision_level`` is not 1, 2 or 3.
        """
        if vision_level == 1:
            cells = world.neighbours(position, include_diagonals=False)
            return [cell.position for cell in cells]
        if vision_level == 2:
            return [cell.position for cell in world.neighbours(position)]
        if vision_level != 3:
            msg = (
                "vision level must be 1 (cross), 2 (3x3) or 3 (5x5), "
                f"got {vision_level}"
            )
            raise InvalidVisionLevel(msg)

        result: list[Position] = []
        for dx in range(-2, 3):
            for dy in range(-2, 3):
                nx, ny = position.x + dx, position.y + dy
                if (dx or dy) and 0 <= nx < world.width and 0 <= ny < world.height:
                    result.append(Position(nx, ny))
        return result

    def random_neighbor(
        self,
        position: Position,
        world: World,
        vision_level: int = 1,
        neighbor_filter: NeighborFilter = NeighborFilter.EMPTY,
    ) -> Position | None:
        """Pick a uniformly random neighbour whose cell passes the filter.

        Args:
            position: Centre of the neighbourhood.
            world: Grid to look at.
            vision_level: Neighbourhood pattern (1, 2 or 3).
            neighbor_filter: Which cells qualify.

        Returns:
            A matching position, or None if no cell qualifies.

        Raises:
            InvalidVisionLevel: If ``vision_level`` is not 1, 2 or 3.
        """
        candidates = [
            pos
            for pos in self.neighborhood(position, world, vision_level)
            if neighbor_filter.matches(world.cells[pos.y][pos.x])
        ]
        return self.choose(candidates)
