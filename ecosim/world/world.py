"""World grid — the spatial container for the simulation.

The World owns cells arranged in a fixed 2D grid and provides bounds
checks, neighbour queries, slot-aware placement and transfer, and
row-major iteration used by every phase of the turn engine.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ecosim.errors import SlotOccupied
from ecosim.organisms.species import Species
from ecosim.world.cell import Cell
from ecosim.world.position import Position

if TYPE_CHECKING:
    from ecosim.organisms.organism import Organism

# N, S, W, E
_CARDINAL_OFFSETS = ((0, -1), (0, 1), (-1, 0), (1, 0))
# 3x3 square minus the centre, column by column
_SQUARE_OFFSETS = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if dx or dy
)


@dataclass
class World:
    """A fixed-size 2D grid of cells.

    Attributes:
        width: Number of columns in the grid.
        height: Number of rows in the grid.
        cells: 2D list of Cell objects indexed as ``cells[y][x]``.
    """

    width: int
    height: int
    cells: list[list[Cell]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialise every position of the grid with an empty cell."""
        if self.width <= 0 or self.height <= 0:
            msg = f"invalid world dimensions: {self.width}x{self.height}"
            raise ValueError(msg)
        self.cells = [
            [Cell(position=Position(x, y)) for x in range(self.width)]
            for y in range(self.height)
        ]

    def is_valid_position(self, pos: Position) -> bool:
        """Return True if ``pos`` lies inside the grid."""
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def cell_at(self, x: int, y: int) -> Cell:
        """Return the cell at grid coordinates ``(x, y)``.

        Args:
            x: Column index.
            y: Row index.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        return self.cells[y][x]

    def get_cell(self, pos: Position) -> Cell | None:
        """Return the cell at ``pos``, or None if it is out of bounds."""
        if not self.is_valid_position(pos):
            return None
        return self.cells[pos.y][pos.x]

    def neighbours(
        self,
        pos: Position,
        *,
        include_diagonals: bool = True,
    ) -> list[Cell]:
        """Return the in-bounds cells around ``pos``, never wrapping.

        Cardinal neighbours come back as N, S, W, E.  With diagonals the
        3x3 square is walked column by column, skipping the centre.
        """
        offsets = _SQUARE_OFFSETS if include_diagonals else _CARDINAL_OFFSETS
        return [
            self.cells[pos.y + dy][pos.x + dx]
            for dx, dy in offsets
            if 0 <= pos.x + dx < self.width and 0 <= pos.y + dy < self.height
        ]

    # -- Occupancy --

    def place(self, organism: Organism, pos: Position) -> None:
        """Put ``organism`` into the matching slot at ``pos``.

        Animals go into the animal slot, plants into the plant slot.  The
        organism is told its new position.

        Raises:
            IndexError: If ``pos`` is out of bounds.
            SlotOccupied: If the matching slot already holds an organism.
        """
        cell = self.cell_at(pos.x, pos.y)
        if organism.species.is_animal:
            if cell.has_animal:
                msg = f"animal slot at ({pos.x}, {pos.y}) is occupied"
                raise SlotOccupied(msg)
            cell.set_animal(organism)
        else:
            if cell.has_plant:
                msg = f"plant slot at ({pos.x}, {pos.y}) is occupied"
                raise SlotOccupied(msg)
            cell.set_plant(organism)
        organism.position = pos

    def remove(self, organism: Organism) -> bool:
        """Clear the slot that currently holds ``organism``.

        Returns:
            True if the organism was found in its slot and removed.
        """
        if organism.position is None:
            return False
        cell = self.get_cell(organism.position)
        if cell is None:
            return False
        if cell.animal is organism:
            cell.remove_animal()
        elif cell.plant is organism:
            cell.remove_plant()
        else:
            return False
        organism.position = None
        return True

    def transfer_animal(self, src: Cell, dst: Cell) -> bool:
        """Move the animal from ``src`` to ``dst`` if the target slot is free.

        Returns:
            True if the animal moved.
        """
        if src.animal is None or dst.has_animal:
            return False
        animal = src.animal
        src.remove_animal()
        dst.set_animal(animal)
        animal.position = dst.position
        return True

    def transfer_plant(self, src: Cell, dst: Cell) -> bool:
        """Move the plant from ``src`` to ``dst`` if the target slot is free.

        Returns:
            True if the plant moved.
        """
        if src.plant is None or dst.has_plant:
            return False
        plant = src.plant
        src.remove_plant()
        dst.set_plant(plant)
        plant.position = dst.position
        return True

    def holds(self, organism: Organism) -> bool:
        """Return True if ``organism`` still sits in the slot it claims."""
        if organism.position is None:
            return False
        cell = self.get_cell(organism.position)
        if cell is None:
            return False
        return cell.animal is organism or cell.plant is organism

    # -- Iteration --

    def iter_cells(self) -> Iterator[Cell]:
        """Yield every cell in row-major order."""
        for row in self.cells:
            yield from row

    def animals(self, species: Species | None = None) -> list[Organism]:
        """Return a row-major snapshot of resident animals.

        Args:
            species: Restrict to one animal species if given.
        """
        return [
            cell.animal
            for cell in self.iter_cells()
            if cell.animal is not None
            and (species is None or cell.animal.species is species)
        ]

    def plants(self) -> list[Organism]:
        """Return a row-major snapshot of resident plants."""
        return [cell.plant for cell in self.iter_cells() if cell.plant is not None]

    def organisms(self) -> list[Organism]:
        """Return a row-major snapshot of every occupant, animal first per cell."""
        result: list[Organism] = []
        for cell in self.iter_cells():
            if cell.animal is not None:
                result.append(cell.animal)
            if cell.plant is not None:
                result.append(cell.plant)
        return result

    def census(self) -> dict[Species, int]:
        """Count resident organisms per species (dead ones included)."""
        counts = {species: 0 for species in Species}
        for cell in self.iter_cells():
            if cell.animal is not None:
                counts[cell.animal.species] += 1
            if cell.plant is not None:
                counts[cell.plant.species] += 1
        return counts
