"""Shared fixtures for the Ecosim test suite."""

from __future__ import annotations

import pytest

from ecosim.organisms.organism import Organism
from ecosim.simulation.engine import TurnEngine
from ecosim.simulation.rng import RandomService
from ecosim.world.position import Position
from ecosim.world.world import World


@pytest.fixture
def rng() -> RandomService:
    """A deterministic random service for reproducible tests."""
    return RandomService(seed=12345)


@pytest.fixture
def small_world() -> World:
    """An empty 10x10 world."""
    return World(width=10, height=10)


@pytest.fixture
def engine(small_world: World, rng: RandomService) -> TurnEngine:
    """An idle engine over the empty 10x10 world."""
    return TurnEngine(world=small_world, rng=rng)


def put(world: World, organism: Organism, x: int, y: int) -> Organism:
    """Place ``organism`` at ``(x, y)`` and return it."""
    world.place(organism, Position(x, y))
    return organism


def grid_state(world: World) -> list[tuple[int, int, str, int]]:
    """Flatten the grid into comparable ``(x, y, species, energy)`` rows."""
    rows = []
    for cell in world.iter_cells():
        for organism in (cell.animal, cell.plant):
            if organism is not None:
                rows.append(
                    (
                        cell.position.x,
                        cell.position.y,
                        organism.species.label,
                        organism.energy,
                    ),
                )
    return rows
