"""Behaviours — what each species does during a turn.

Species form a closed set, so behaviour is a ``match`` on the organism's
species tag rather than a class hierarchy.  The capability contracts are:

- **Growth** (plants): +1 energy per step, capped at the species maximum.
  Dead plants never grow.
- **Movement** (animals): pick a destination for this tick or None.
  Herbivores flee, then seek the richest plant, then wander.  Carnivores
  chase the first herbivore they see, else wander.  Every step is at most
  one cell.
- **Fleeing** (herbivores): the free perceived cell farthest (Manhattan)
  from the nearest perceived carnivore.
- **Hunting** (carnivores): the first perceived herbivore.
- **Feeding**: herbivores eat plants, carnivores eat herbivores.  The
  prey's whole energy is transferred and the prey leaves its slot.
- **Reproduction** (all): threshold check, detached child, then a spawn
  attempt on a free cardinal neighbour.  A failed spawn changes nothing.

Scan order for all "first found" tie-breaks is the neighbourhood order
produced by ``RandomService.neighborhood``.  Only wandering and spawn
slot selection draw random numbers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ecosim.organisms.organism import Organism
from ecosim.organisms.species import (
    MOVEMENT_VISION_LEVEL,
    SPAWN_VISION_LEVEL,
    Species,
)
from ecosim.simulation.rng import NeighborFilter, RandomService
from ecosim.world.position import Position

if TYPE_CHECKING:
    from ecosim.world.cell import Cell
    from ecosim.world.world import World


# -- Growth ------------------------------------------------------------------


def grow(organism: Organism) -> None:
    """Grow a live plant by one energy point (capped at its maximum)."""
    if organism.species is not Species.PLANT or not organism.is_alive:
        return
    organism.add_energy(1)


# -- Perception --------------------------------------------------------------


def perceive(organism: Organism, world: World) -> list[Position]:
    """Return the positions an animal can see, in scan order.

    Plants and detached organisms perceive nothing.
    """
    level = organism.species.profile.vision_level
    if level is None or organism.position is None:
        return []
    return RandomService.neighborhood(organism.position, world, level)


def _perceived_with(
    organism: Organism,
    world: World,
    neighbor_filter: NeighborFilter,
) -> list[Position]:
    return [
        pos
        for pos in perceive(organism, world)
        if neighbor_filter.matches(world.cells[pos.y][pos.x])
    ]


# -- Fleeing and hunting -----------------------------------------------------


def choose_flee(organism: Organism, world: World) -> Position | None:
    """Pick the safest free cell for a herbivore that sees a carnivore.

    Safety is the Manhattan distance to the nearest perceived predator;
    the first cell in scan order wins ties.

    Returns:
        Flee destination, or None if no predator is perceived or no
        perceived cell has a free animal slot.
    """
    if organism.species is not Species.HERBIVORE:
        return None
    predators = _perceived_with(organism, world, NeighborFilter.CARNIVORE)
    if not predators:
        return None

    best: Position | None = None
    best_distance = -1
    for pos in _perceived_with(organism, world, NeighborFilter.EMPTY_ANIMAL):
        distance = min(pos.distance_to(predator) for predator in predators)
        if distance > best_distance:
            best_distance = distance
            best = pos
    return best


def choose_hunt(organism: Organism, world: World) -> Position | None:
    """Return the first herbivore a carnivore sees, or None."""
    if organism.species is not Species.CARNIVORE:
        return None
    prey = _perceived_with(organism, world, NeighborFilter.HERBIVORE)
    return prey[0] if prey else None


# -- Movement ----------------------------------------------------------------


def choose_move(
    organism: Organism,
    world: World,
    rng: RandomService,
) -> Position | None:
    """Choose where an animal goes this tick.

    Args:
        organism: The animal deciding.
        world: Current grid.
        rng: Shared random source (only used for wandering).

    Returns:
        Destination position, or None to stay put.
    """
    origin = organism.position
    if origin is None:
        return None
    match organism.species:
        case Species.HERBIVORE:
            return _herbivore_move(organism, origin, world, rng)
        case Species.CARNIVORE:
            return _carnivore_move(organism, origin, world, rng)
        case _:
            return None


def _herbivore_move(
    organism: Organism,
    origin: Position,
    world: World,
    rng: RandomService,
) -> Position | None:
    """Flee > richest visible plant > random free cell > stay."""
    flee = choose_flee(organism, world)
    if flee is not None:
        return flee

    best_plant: Position | None = None
    best_energy = 0
    for pos in perceive(organism, world):
        cell = world.cells[pos.y][pos.x]
        if cell.plant is None or cell.has_animal:
            continue
        if cell.plant.energy > best_energy:
            best_energy = cell.plant.energy
            best_plant = pos
    if best_plant is not None:
        return best_plant

    return _wander(origin, world, rng)


def _carnivore_move(
    organism: Organism,
    origin: Position,
    world: World,
    rng: RandomService,
) -> Position | None:
    """Step toward visible prey, else wander, else stay."""
    target = choose_hunt(organism, world)
    if target is not None:
        step = _step_toward(origin, target)
        cell = world.cells[step.y][step.x]
        if cell.is_empty_animal or can_eat(organism, cell):
            return step
    return _wander(origin, world, rng)


def _wander(
    origin: Position,
    world: World,
    rng: RandomService,
) -> Position | None:
    return rng.random_neighbor(
        origin,
        world,
        MOVEMENT_VISION_LEVEL,
        NeighborFilter.EMPTY_ANIMAL,
    )


def _step_toward(origin: Position, target: Position) -> Position:
    """Return the one-cell step from ``origin`` toward ``target``.

    Moves along the axis with the larger coordinate difference, or
    diagonally when both differences are equal.
    """
    dx = target.x - origin.x
    dy = target.y - origin.y
    step_x = (dx > 0) - (dx < 0)
    step_y = (dy > 0) - (dy < 0)
    if abs(dx) > abs(dy):
        step_y = 0
    elif abs(dy) > abs(dx):
        step_x = 0
    return Position(origin.x + step_x, origin.y + step_y)


# -- Feeding -----------------------------------------------------------------


def _prey_in(organism: Organism, cell: Cell | None) -> Organism | None:
    if cell is None:
        return None
    match organism.species.profile.prey:
        case Species.PLANT:
            return cell.plant
        case Species.HERBIVORE:
            animal = cell.animal
            if animal is not None and animal.species is Species.HERBIVORE:
                return animal
    return None


def can_eat(organism: Organism, cell: Cell | None) -> bool:
    """Return True if ``cell`` holds prey this organism can eat."""
    return _prey_in(organism, cell) is not None


def eat(organism: Organism, cell: Cell | None) -> int:
    """Consume the prey in ``cell``.

    The prey's current energy is added to the eater (capped at its
    maximum), the prey is emptied and removed from its slot.  Nothing
    happens if the cell holds no suitable prey.

    Returns:
        The nutrition taken from the prey (0 if nothing was eaten).
    """
    prey = _prey_in(organism, cell)
    if prey is None or cell is None:
        return 0
    nutrition = prey.nutrition
    organism.add_energy(nutrition)
    if prey.species.is_animal:
        cell.remove_animal()
    else:
        cell.remove_plant()
    prey.set_energy(0)
    prey.position = None
    return nutrition


# -- Reproduction ------------------------------------------------------------


def can_reproduce(organism: Organism) -> bool:
    """Return True if the organism is alive and at its breeding threshold.

    Free space is not checked here; ``spawn`` handles that.
    """
    if not organism.is_alive:
        return False
    return organism.energy >= organism.species.profile.reproduction_threshold


def reproduce(organism: Organism) -> Organism:
    """Create a detached default-energy child of the same species."""
    return Organism(species=organism.species)


def spawn(
    organism: Organism,
    world: World,
    rng: RandomService,
) -> Organism | None:
    """Place a child on a random free cardinal neighbour.

    On success the parent pays for it: animals keep ``energy - energy // 2``
    and plants drop back to 1.  On failure neither the parent nor the
    grid is touched.

    Returns:
        The placed child, or None if there was no room.
    """
    if organism.position is None:
        return None
    slot_filter = (
        NeighborFilter.EMPTY_ANIMAL
        if organism.species.is_animal
        else NeighborFilter.EMPTY_PLANT
    )
    target = rng.random_neighbor(
        organism.position,
        world,
        SPAWN_VISION_LEVEL,
        slot_filter,
    )
    if target is None:
        return None

    child = reproduce(organism)
    world.place(child, target)
    if organism.species.is_animal:
        organism.set_energy(organism.energy - organism.energy // 2)
    else:
        organism.set_energy(1)
    return child
