"""Position — an immutable grid coordinate."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from ecosim.errors import InvalidCoordinate


@dataclass(frozen=True)
class Position:
    """A non-negative ``(x, y)`` grid coordinate.

    Positions are value types: they compare and hash by coordinates and
    are never mutated after construction.

    Attributes:
        x: Column index (>= 0).
        y: Row index (>= 0).

    Raises:
        InvalidCoordinate: If either coordinate is negative.
    """

    x: int
    y: int

    def __post_init__(self) -> None:
        if self.x < 0:
            msg = f"x coordinate cannot be negative: {self.x}"
            raise InvalidCoordinate(msg)
        if self.y < 0:
            msg = f"y coordinate cannot be negative: {self.y}"
            raise InvalidCoordinate(msg)

    def distance_to(self, other: Position | None) -> int:
        """Return the Manhattan distance to ``other``.

        A missing position counts as infinitely far away
        (``sys.maxsize``).
        """
        if other is None:
            return sys.maxsize
        return abs(self.x - other.x) + abs(self.y - other.y)
