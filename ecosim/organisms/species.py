"""Species — the closed set of organism kinds and their fixed parameters.

Every organism is tagged with exactly one ``Species``.  Behaviour is
dispatched on that tag (see ``behaviors.py``) and all numeric rules come
from the per-species ``SpeciesProfile`` table below.  The table is not
configurable at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Species(Enum):
    """Organism kinds present in the ecosystem."""

    PLANT = auto()
    HERBIVORE = auto()
    CARNIVORE = auto()

    @property
    def label(self) -> str:
        """Human-readable lowercase name."""
        return self.name.lower()

    @property
    def is_animal(self) -> bool:
        """Return True for species that occupy the animal slot."""
        return self is not Species.PLANT

    @property
    def profile(self) -> SpeciesProfile:
        return PROFILES[self]


@dataclass(frozen=True)
class SpeciesProfile:
    """Fixed parameters of a species.

    Attributes:
        max_energy: Upper bound of the energy pool.
        default_energy: Energy of a newborn or of an organism created
            without an explicit value.
        reproduction_threshold: Minimum energy required to reproduce.
        vision_level: Perception pattern (2 = 3x3 ring, 3 = 5x5 ring);
            None for stationary species.
        prey: Species this one eats, or None.
    """

    max_energy: int
    default_energy: int
    reproduction_threshold: int
    vision_level: int | None
    prey: Species | None


PROFILES: dict[Species, SpeciesProfile] = {
    Species.PLANT: SpeciesProfile(
        max_energy=3,
        default_energy=1,
        reproduction_threshold=3,
        vision_level=None,
        prey=None,
    ),
    Species.HERBIVORE: SpeciesProfile(
        max_energy=10,
        default_energy=3,
        reproduction_threshold=7,
        vision_level=2,
        prey=Species.PLANT,
    ),
    Species.CARNIVORE: SpeciesProfile(
        max_energy=20,
        default_energy=5,
        reproduction_threshold=14,
        vision_level=3,
        prey=Species.HERBIVORE,
    ),
}

# Animals random-walk over the 3x3 ring regardless of how far they see.
MOVEMENT_VISION_LEVEL = 2

# Offspring are only ever placed on a cardinal neighbour.
SPAWN_VISION_LEVEL = 1
