"""TurnEngine — the phase state machine that drives the ecosystem.

A turn is five phases in a fixed order:

1. Plant growth
2. Herbivores (flee / feed / wander, pay movement energy)
3. Carnivores (hunt / feed / wander, pay movement energy)
4. Reproduction (every organism, independent of the phases above)
5. Cleanup (remove organisms whose energy reached zero)

The engine is idle (``current_phase is None``) between turns.  It can
run a whole turn, step one phase at a time, finish a partial turn, or
run a single named phase for inspection.  Each phase walks a row-major
snapshot of the occupants it concerns, so an organism that moves during
a pass is never visited twice.

Listeners are told about world, turn, phase and running-state changes;
they only observe.  Timing (ticking on an interval) belongs to the
driver, not to the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ecosim.organisms import behaviors
from ecosim.organisms.species import Species
from ecosim.simulation.rng import RandomService

if TYPE_CHECKING:
    from ecosim.organisms.organism import Organism
    from ecosim.world.world import World

logger = logging.getLogger(__name__)

_MOVE_COST = 1


class Phase(Enum):
    """Ordered phases forming one turn."""

    PLANT_GROWTH = "Plant growth"
    HERBIVORES = "Herbivores"
    CARNIVORES = "Carnivores"
    REPRODUCTION = "Reproduction"
    CLEANUP = "Cleanup"

    @property
    def label(self) -> str:
        return self.value

    def next(self) -> Phase | None:
        """Return the following phase, or None after the last one."""
        phases = list(Phase)
        index = phases.index(self)
        return phases[index + 1] if index + 1 < len(phases) else None


class SimulationListener:
    """Passive observer of a TurnEngine.  Override what you need."""

    def on_world_changed(self, world: World | None) -> None:
        """Called after every phase and whenever the world is replaced."""

    def on_turn_advanced(self, turn: int) -> None:
        """Called when the turn counter changes."""

    def on_phase_changed(self, phase: Phase | None) -> None:
        """Called when the phase pointer moves (None means idle)."""

    def on_log(self, message: str) -> None:
        """Called for each engine log message."""

    def on_simulation_state_changed(self, running: bool) -> None:
        """Called when the run/pause flag flips."""


@dataclass
class TurnEngine:
    """Drives the simulation phase by phase.

    Attributes:
        world: The grid being simulated (None until one is set).
        rng: The random source every behaviour draws from.
        turn: Number of turns started so far.
        current_phase: Next phase to run in the current turn, or None
            when idle.
        running: Run/pause flag for drivers that tick on an interval.
        listeners: Registered observers.
    """

    world: World | None = None
    rng: RandomService = field(default_factory=RandomService)
    turn: int = 0
    current_phase: Phase | None = None
    running: bool = False
    listeners: list[SimulationListener] = field(default_factory=list, repr=False)
    _breeders: set[Organism] | None = field(default=None, init=False, repr=False)

    # -- Listeners --

    def add_listener(self, listener: SimulationListener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: SimulationListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def _log(self, message: str) -> None:
        logger.info(message)
        for listener in self.listeners:
            listener.on_log(message)

    def _fire_world_changed(self) -> None:
        for listener in self.listeners:
            listener.on_world_changed(self.world)

    def _fire_turn_advanced(self) -> None:
        for listener in self.listeners:
            listener.on_turn_advanced(self.turn)

    def _fire_phase_changed(self) -> None:
        for listener in self.listeners:
            listener.on_phase_changed(self.current_phase)

    def _fire_state_changed(self) -> None:
        for listener in self.listeners:
            listener.on_simulation_state_changed(self.running)

    # -- World and seed --

    def set_world(self, world: World | None) -> None:
        """Replace the world and reset turn and phase tracking."""
        self.world = world
        self.turn = 0
        self.current_phase = None
        self._breeders = None
        self._fire_world_changed()
        self._fire_turn_advanced()
        self._fire_phase_changed()
        size = f"{world.width}x{world.height}" if world is not None else "<none>"
        self._log(f"World loaded: {size}")

    def reseed(self, seed: int) -> None:
        """Restart the random stream from ``seed``."""
        self.rng.reseed(seed)
        self._log(f"Random generator reseeded with {seed}")

    # -- Run flag --

    def start(self) -> None:
        """Mark the simulation as running (the driver does the ticking)."""
        if self.running:
            return
        if self.world is None:
            self._log("No world to simulate")
            return
        self.running = True
        self._fire_state_changed()
        self._log("Simulation started")

    def pause(self) -> None:
        if not self.running:
            return
        self.running = False
        self._fire_state_changed()
        self._log("Simulation paused")

    def toggle(self) -> None:
        if self.running:
            self.pause()
        else:
            self.start()

    # -- Turn control --

    def run_full_turn(self) -> None:
        """Run a whole turn, or finish the current one if mid-turn."""
        if self.world is None:
            self._log("Turn skipped: no world")
            return
        if self.current_phase is None:
            self._begin_turn()
        self.run_remaining_phases()

    def run_next_phase(self) -> None:
        """Run the current phase (starting a turn if idle) and advance."""
        if self.world is None:
            self._log("Phase skipped: no world")
            return
        if self.current_phase is None:
            self._begin_turn()

        self._execute_current_phase()
        self._advance()
        if self.current_phase is None:
            self._log(f"Turn {self.turn} complete")
        self._fire_world_changed()

    def run_remaining_phases(self) -> None:
        """Run every phase from the current one through cleanup.

        Does nothing when idle.
        """
        if self.world is None or self.current_phase is None:
            return
        while self.current_phase is not None:
            self._execute_current_phase()
            self._advance()
        self._log(f"Turn {self.turn} complete")
        self._fire_world_changed()

    def run_single_phase(self, phase: Phase) -> None:
        """Run exactly ``phase`` without advancing the phase pointer.

        Starting from idle counts as a new turn.  The phase is run on its
        own, so breeding eligibility is judged on current energy.
        """
        if self.world is None:
            self._log("Phase skipped: no world")
            return
        if self.current_phase is None:
            self.turn += 1
            self._log(f"Turn {self.turn}")
            self._fire_turn_advanced()

        self._breeders = None
        self.current_phase = phase
        self._fire_phase_changed()
        self._log(f"Running phase: {phase.label}")
        self._execute_current_phase()
        self._fire_world_changed()

    def run(self, turns: int) -> None:
        """Run a fixed number of full turns.

        Args:
            turns: Number of turns to advance.
        """
        for _ in range(turns):
            self.run_full_turn()

    def _begin_turn(self) -> None:
        self.turn += 1
        self.current_phase = Phase.PLANT_GROWTH
        self._breeders = self._collect_breeders()
        self._log(f"Turn {self.turn}")
        self._fire_turn_advanced()
        self._fire_phase_changed()

    def _advance(self) -> None:
        if self.current_phase is not None:
            self.current_phase = self.current_phase.next()
            if self.current_phase is None:
                self._breeders = None
            self._fire_phase_changed()

    def _execute_current_phase(self) -> None:
        match self.current_phase:
            case Phase.PLANT_GROWTH:
                self.phase_plant_growth()
            case Phase.HERBIVORES:
                self.phase_herbivores()
            case Phase.CARNIVORES:
                self.phase_carnivores()
            case Phase.REPRODUCTION:
                self.phase_reproduction()
            case Phase.CLEANUP:
                self.phase_cleanup()

    # -- Phases --

    def phase_plant_growth(self) -> None:
        """Every live plant grows once."""
        if self.world is not None:
            for plant in self.world.plants():
                behaviors.grow(plant)
        self._fire_world_changed()

    def phase_herbivores(self) -> None:
        """Every live herbivore flees, feeds or wanders."""
        self._animal_phase(Species.HERBIVORE)
        self._fire_world_changed()

    def phase_carnivores(self) -> None:
        """Every live carnivore hunts, feeds or wanders."""
        self._animal_phase(Species.CARNIVORE)
        self._fire_world_changed()

    def phase_reproduction(self) -> None:
        """Every live organism tries to reproduce once.

        An organism breeds only if it is at its threshold now.  Within a
        turn it must also have been at its threshold when the turn began,
        so energy gained by feeding this turn does not count until the
        next one.
        """
        world = self.world
        if world is not None:
            births = 0
            for organism in world.organisms():
                if not world.holds(organism) or not self._may_breed(organism):
                    continue
                if behaviors.spawn(organism, world, self.rng) is not None:
                    births += 1
            logger.debug("Reproduction: %d births", births)
        self._fire_world_changed()

    def _collect_breeders(self) -> set[Organism] | None:
        if self.world is None:
            return None
        return {o for o in self.world.organisms() if behaviors.can_reproduce(o)}

    def _may_breed(self, organism: Organism) -> bool:
        if self._breeders is not None and organism not in self._breeders:
            return False
        return behaviors.can_reproduce(organism)

    def phase_cleanup(self) -> None:
        """Remove every animal and plant whose energy reached zero."""
        world = self.world
        if world is not None:
            removed = 0
            for cell in world.iter_cells():
                if cell.animal is not None and not cell.animal.is_alive:
                    cell.animal.position = None
                    cell.remove_animal()
                    removed += 1
                if cell.plant is not None and not cell.plant.is_alive:
                    cell.plant.position = None
                    cell.remove_plant()
                    removed += 1
            logger.debug("Cleanup: %d removed", removed)
        self._fire_world_changed()

    def _animal_phase(self, species: Species) -> None:
        world = self.world
        if world is None:
            return
        for animal in world.animals(species):
            if not animal.is_alive or not world.holds(animal):
                continue
            self._act(animal, world)

    def _act(self, animal: Organism, world: World) -> None:
        """Move one animal, paying the move cost and eating on arrival.

        Prey on the destination is eaten before the animal steps in, so
        a carnivore can take over its victim's slot.  A blocked animal
        pays the same cost and stays where it is.
        """
        src = (
            world.get_cell(animal.position) if animal.position is not None else None
        )
        destination = behaviors.choose_move(animal, world, self.rng)
        if src is None or destination is None:
            animal.sub_energy(_MOVE_COST)
            return

        dst = world.cells[destination.y][destination.x]
        animal.sub_energy(_MOVE_COST)
        behaviors.eat(animal, dst)
        world.transfer_animal(src, dst)
