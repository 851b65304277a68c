"""Cell — a single tile in the world grid.

A cell has two independent slots: one for an animal (herbivore or
carnivore) and one for a plant.  Either, both or neither may be filled.
Cells perform no validation beyond slot kind; movement, spawning and
cleanup rules live in the organism behaviours and the turn engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecosim.organisms.organism import Organism
    from ecosim.world.position import Position


@dataclass(eq=False)
class Cell:
    """A single tile in the world grid.

    Attributes:
        position: Grid coordinates of this cell.
        animal: Resident animal, or None.
        plant: Resident plant, or None.
    """

    position: Position
    animal: Organism | None = None
    plant: Organism | None = None

    # -- Animal slot --

    @property
    def has_animal(self) -> bool:
        return self.animal is not None

    @property
    def is_empty_animal(self) -> bool:
        return self.animal is None

    def set_animal(self, animal: Organism | None) -> None:
        """Overwrite the animal slot.

        Raises:
            ValueError: If ``animal`` is a plant.
        """
        if animal is not None and not animal.species.is_animal:
            msg = f"{animal.species.label} cannot occupy the animal slot"
            raise ValueError(msg)
        self.animal = animal

    def remove_animal(self) -> None:
        self.animal = None

    # -- Plant slot --

    @property
    def has_plant(self) -> bool:
        return self.plant is not None

    @property
    def is_empty_plant(self) -> bool:
        return self.plant is None

    def set_plant(self, plant: Organism | None) -> None:
        """Overwrite the plant slot.

        Raises:
            ValueError: If ``plant`` is an animal.
        """
        if plant is not None and plant.species.is_animal:
            msg = f"{plant.species.label} cannot occupy the plant slot"
            raise ValueError(msg)
        self.plant = plant

    def remove_plant(self) -> None:
        self.plant = None

    # -- Whole cell --

    @property
    def is_completely_empty(self) -> bool:
        """Return True if neither slot is occupied."""
        return self.animal is None and self.plant is None

    @property
    def organism(self) -> Organism | None:
        """Return the animal if present, else the plant, else None."""
        if self.animal is not None:
            return self.animal
        return self.plant
