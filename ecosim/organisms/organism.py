"""Organism — the energy pool shared by plants and animals.

An organism is a species tag plus an integer energy pool.  Being alive is
a pure function of energy (``energy > 0``); there is no separate flag
that could drift out of sync.  The organism remembers the ``Position``
the world last placed it at, but never holds a reference to its cell.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ecosim.organisms.species import Species

if TYPE_CHECKING:
    from ecosim.world.position import Position


@dataclass(eq=False)
class Organism:
    """A single plant or animal.

    Attributes:
        species: Which kind of organism this is.
        energy: Current energy, within ``[0, species max]``.  Omit it to
            use the species default.
        position: Where the world last placed this organism, or None
            while detached (newborn not yet spawned, eaten, cleaned up).
    """

    species: Species
    energy: int | None = None
    position: Position | None = None

    def __post_init__(self) -> None:
        """Clamp the starting energy to ``[1, max]``.

        A freshly created organism is never dead.
        """
        profile = self.species.profile
        if self.energy is None:
            self.energy = profile.default_energy
        self.energy = min(max(1, self.energy), profile.max_energy)

    @classmethod
    def plant(cls, energy: int | None = None) -> Organism:
        return cls(species=Species.PLANT, energy=energy)

    @classmethod
    def herbivore(cls, energy: int | None = None) -> Organism:
        return cls(species=Species.HERBIVORE, energy=energy)

    @classmethod
    def carnivore(cls, energy: int | None = None) -> Organism:
        return cls(species=Species.CARNIVORE, energy=energy)

    @property
    def max_energy(self) -> int:
        return self.species.profile.max_energy

    @property
    def is_alive(self) -> bool:
        """Return True while energy is above zero."""
        return self.energy > 0

    @property
    def nutrition(self) -> int:
        """Energy handed to whoever eats this organism."""
        return self.energy

    def set_energy(self, value: int) -> None:
        """Set energy, clamped to ``[0, max]``."""
        self.energy = min(max(0, value), self.max_energy)

    def add_energy(self, amount: int) -> None:
        """Add ``amount`` energy, never exceeding the species maximum."""
        self.set_energy(self.energy + amount)

    def sub_energy(self, amount: int) -> None:
        """Remove ``amount`` energy, never dropping below zero."""
        self.set_energy(self.energy - amount)

    def __repr__(self) -> str:
        return (
            f"Organism({self.species.label}, energy={self.energy}, "
            f"position={self.position})"
        )
