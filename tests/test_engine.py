"""Tests for ecosim.simulation.engine — the turn/phase state machine."""

from __future__ import annotations

from conftest import grid_state, put

from ecosim.organisms.organism import Organism
from ecosim.organisms.species import Species
from ecosim.simulation.engine import Phase, SimulationListener, TurnEngine
from ecosim.simulation.rng import RandomService
from ecosim.world.position import Position
from ecosim.world.world import World


class RecordingListener(SimulationListener):
    """Collects every notification for later inspection."""

    def __init__(self) -> None:
        self.worlds: list[World | None] = []
        self.turns: list[int] = []
        self.phases: list[Phase | None] = []
        self.messages: list[str] = []
        self.states: list[bool] = []

    def on_world_changed(self, world: World | None) -> None:
        self.worlds.append(world)

    def on_turn_advanced(self, turn: int) -> None:
        self.turns.append(turn)

    def on_phase_changed(self, phase: Phase | None) -> None:
        self.phases.append(phase)

    def on_log(self, message: str) -> None:
        self.messages.append(message)

    def on_simulation_state_changed(self, running: bool) -> None:
        self.states.append(running)


def _populated_world() -> World:
    world = World(width=12, height=12)
    for x, y in ((1, 1), (2, 5), (7, 3), (9, 9), (4, 10), (10, 1)):
        put(world, Organism.plant(2), x, y)
    for x, y in ((3, 3), (8, 8), (5, 6)):
        put(world, Organism.herbivore(6), x, y)
    put(world, Organism.carnivore(12), 6, 2)
    return world


class TestPhase:
    """Tests for the Phase enum."""

    def test_order(self) -> None:
        assert [p.label for p in Phase] == [
            "Plant growth",
            "Herbivores",
            "Carnivores",
            "Reproduction",
            "Cleanup",
        ]

    def test_next(self) -> None:
        assert Phase.PLANT_GROWTH.next() is Phase.HERBIVORES
        assert Phase.REPRODUCTION.next() is Phase.CLEANUP
        assert Phase.CLEANUP.next() is None


class TestStateMachine:
    """Turn and phase bookkeeping."""

    def test_starts_idle(self, engine: TurnEngine) -> None:
        assert engine.turn == 0
        assert engine.current_phase is None
        assert not engine.running

    def test_full_turn(self, engine: TurnEngine) -> None:
        engine.run_full_turn()
        assert engine.turn == 1
        assert engine.current_phase is None

    def test_run_many(self, engine: TurnEngine) -> None:
        engine.run(3)
        assert engine.turn == 3
        assert engine.current_phase is None

    def test_next_phase_from_idle_starts_turn(self, engine: TurnEngine) -> None:
        engine.run_next_phase()
        assert engine.turn == 1
        assert engine.current_phase is Phase.HERBIVORES

    def test_five_steps_complete_a_turn(self, engine: TurnEngine) -> None:
        for _ in range(5):
            engine.run_next_phase()
        assert engine.turn == 1
        assert engine.current_phase is None
        engine.run_next_phase()
        assert engine.turn == 2

    def test_remaining_phases_idle_is_noop(self, engine: TurnEngine) -> None:
        engine.run_remaining_phases()
        assert engine.turn == 0
        assert engine.current_phase is None

    def test_remaining_phases_finishes_turn(self, engine: TurnEngine) -> None:
        engine.run_next_phase()
        engine.run_next_phase()
        engine.run_remaining_phases()
        assert engine.turn == 1
        assert engine.current_phase is None

    def test_full_turn_mid_turn_finishes_current(self, engine: TurnEngine) -> None:
        engine.run_next_phase()
        engine.run_full_turn()
        assert engine.turn == 1
        assert engine.current_phase is None

    def test_single_phase_from_idle(self, engine: TurnEngine) -> None:
        engine.run_single_phase(Phase.CARNIVORES)
        assert engine.turn == 1
        assert engine.current_phase is Phase.CARNIVORES

    def test_single_phase_mid_turn_keeps_turn(self, engine: TurnEngine) -> None:
        engine.run_next_phase()
        engine.run_single_phase(Phase.CLEANUP)
        assert engine.turn == 1
        assert engine.current_phase is Phase.CLEANUP

    def test_no_world_is_noop(self) -> None:
        engine = TurnEngine()
        engine.run_full_turn()
        engine.run_next_phase()
        engine.run_single_phase(Phase.REPRODUCTION)
        engine.phase_cleanup()
        assert engine.turn == 0
        assert engine.current_phase is None

    def test_set_world_resets(self, engine: TurnEngine) -> None:
        engine.run_next_phase()
        engine.set_world(World(width=4, height=4))
        assert engine.turn == 0
        assert engine.current_phase is None
        assert engine.world is not None
        assert engine.world.width == 4

    def test_start_pause_toggle(self, engine: TurnEngine) -> None:
        engine.start()
        assert engine.running
        engine.pause()
        assert not engine.running
        engine.toggle()
        assert engine.running
        engine.toggle()
        assert not engine.running

    def test_cannot_start_without_world(self) -> None:
        engine = TurnEngine()
        engine.start()
        assert not engine.running

    def test_empty_world_turns(self, engine: TurnEngine) -> None:
        engine.run(4)
        assert engine.world is not None
        assert grid_state(engine.world) == []


class TestListeners:
    """Listener notifications."""

    def test_full_turn_notifications(self, engine: TurnEngine) -> None:
        listener = RecordingListener()
        engine.add_listener(listener)
        engine.run_full_turn()

        assert listener.turns == [1]
        assert listener.phases == [
            Phase.PLANT_GROWTH,
            Phase.HERBIVORES,
            Phase.CARNIVORES,
            Phase.REPRODUCTION,
            Phase.CLEANUP,
            None,
        ]
        assert listener.worlds
        assert all(w is engine.world for w in listener.worlds)
        assert "Turn 1 complete" in listener.messages

    def test_state_changes(self, engine: TurnEngine) -> None:
        listener = RecordingListener()
        engine.add_listener(listener)
        engine.start()
        engine.start()
        engine.pause()
        assert listener.states == [True, False]

    def test_set_world_notifies(self, engine: TurnEngine) -> None:
        listener = RecordingListener()
        engine.add_listener(listener)
        world = World(width=3, height=3)
        engine.set_world(world)
        assert listener.worlds == [world]
        assert listener.turns == [0]
        assert listener.phases == [None]
        assert "World loaded: 3x3" in listener.messages

    def test_add_is_idempotent_and_remove(self, engine: TurnEngine) -> None:
        listener = RecordingListener()
        engine.add_listener(listener)
        engine.add_listener(listener)
        assert engine.listeners == [listener]
        engine.remove_listener(listener)
        engine.run_full_turn()
        assert listener.turns == []


class TestPhases:
    """Behaviour of individual phases on small grids."""

    def test_plant_growth_cap(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        growing = put(world, Organism.plant(2), 1, 1)
        full = put(world, Organism.plant(3), 5, 5)
        withered = put(world, Organism.plant(1), 8, 8)
        withered.set_energy(0)

        engine.phase_plant_growth()

        assert growing.energy == 3
        assert full.energy == 3
        assert withered.energy == 0

    def test_blocked_herbivore_pays_and_stays(self, rng: RandomService) -> None:
        world = World(width=2, height=2)
        herbivore = put(world, Organism.herbivore(5), 0, 0)
        for x, y in ((1, 0), (0, 1), (1, 1)):
            put(world, Organism.herbivore(5), x, y)
        engine = TurnEngine(world=world, rng=rng)

        engine.run_single_phase(Phase.HERBIVORES)

        assert herbivore.position == Position(0, 0)
        assert herbivore.energy == 4

    def test_blocked_carnivore_pays_and_stays(self, rng: RandomService) -> None:
        world = World(width=2, height=2)
        carnivore = put(world, Organism.carnivore(5), 0, 0)
        for x, y in ((1, 0), (0, 1), (1, 1)):
            put(world, Organism.carnivore(5), x, y)
        engine = TurnEngine(world=world, rng=rng)

        engine.phase_carnivores()

        assert carnivore.position == Position(0, 0)
        assert carnivore.energy == 4

    def test_herbivore_moves_and_pays(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        herbivore = put(world, Organism.herbivore(8), 5, 5)

        engine.phase_herbivores()

        assert herbivore.energy == 7
        assert herbivore.position is not None
        assert herbivore.position != Position(5, 5)
        assert world.holds(herbivore)

    def test_herbivore_eats_plant(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        herbivore = put(world, Organism.herbivore(4), 5, 5)
        put(world, Organism.plant(3), 5, 6)

        engine.phase_herbivores()

        assert herbivore.position == Position(5, 6)
        assert herbivore.energy == 6
        assert world.cell_at(5, 6).is_empty_plant

    def test_starving_animal_dies_in_cleanup(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        herbivore = put(world, Organism.herbivore(1), 5, 5)

        engine.phase_herbivores()
        assert herbivore.energy == 0
        assert not herbivore.is_alive

        engine.phase_cleanup()
        assert world.census()[Species.HERBIVORE] == 0
        assert herbivore.position is None

    def test_dead_animals_do_not_move(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        carnivore = put(world, Organism.carnivore(3), 5, 5)
        carnivore.set_energy(0)

        engine.phase_carnivores()

        assert carnivore.position == Position(5, 5)
        assert carnivore.energy == 0

    def test_reproduction_halving(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        carnivore = put(world, Organism.carnivore(16), 2, 2)
        herbivore = put(world, Organism.herbivore(16), 7, 7)

        engine.run_single_phase(Phase.REPRODUCTION)

        assert carnivore.energy == 8
        assert herbivore.energy == 5
        assert world.census() == {
            Species.PLANT: 0,
            Species.HERBIVORE: 2,
            Species.CARNIVORE: 2,
        }
        for parent in (carnivore, herbivore):
            children = [
                a
                for a in world.animals(parent.species)
                if a is not parent
            ]
            assert len(children) == 1
            assert parent.position is not None
            assert parent.position.distance_to(children[0].position) == 1

    def test_plant_reproduction_resets_to_one(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        plant = put(world, Organism.plant(3), 4, 4)

        engine.phase_reproduction()

        assert plant.energy == 1
        assert len(world.plants()) == 2

    def test_blocked_plant_does_not_reproduce(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        plant = put(world, Organism.plant(3), 4, 4)
        for x, y in ((4, 3), (4, 5), (3, 4), (5, 4)):
            put(world, Organism.plant(1), x, y)
        before = grid_state(world)

        engine.phase_reproduction()

        assert plant.energy == 3
        assert grid_state(world) == before

    def test_feeding_does_not_unlock_breeding_this_turn(
        self,
        engine: TurnEngine,
    ) -> None:
        world = engine.world
        assert world is not None
        herbivore = put(world, Organism.herbivore(6), 5, 5)
        put(world, Organism.plant(3), 5, 6)

        engine.run_full_turn()
        assert herbivore.energy == 8
        assert world.census()[Species.HERBIVORE] == 1

        engine.run_full_turn()
        assert world.census()[Species.HERBIVORE] == 2
        assert herbivore.energy == 4

    def test_dropping_below_threshold_blocks_breeding(
        self,
        engine: TurnEngine,
    ) -> None:
        world = engine.world
        assert world is not None
        herbivore = put(world, Organism.herbivore(7), 5, 5)

        for _ in range(3):
            engine.run_next_phase()
        assert engine.current_phase is Phase.REPRODUCTION
        assert herbivore.energy == 6

        engine.run_next_phase()

        assert world.census()[Species.HERBIVORE] == 1
        assert herbivore.energy == 6

    def test_repeated_single_reproduction_uses_current_energy(
        self,
        engine: TurnEngine,
    ) -> None:
        world = engine.world
        assert world is not None
        carnivore = put(world, Organism.carnivore(20), 5, 5)

        engine.run_single_phase(Phase.REPRODUCTION)
        assert carnivore.energy == 10
        assert world.census()[Species.CARNIVORE] == 2

        engine.run_single_phase(Phase.REPRODUCTION)
        assert carnivore.energy == 10
        assert world.census()[Species.CARNIVORE] == 2

    def test_cleanup_idempotent(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        put(world, Organism.plant(2), 1, 1)
        put(world, Organism.herbivore(4), 2, 2)
        doomed = put(world, Organism.carnivore(5), 3, 3)
        doomed.set_energy(0)
        withered = put(world, Organism.plant(1), 3, 3)
        withered.set_energy(0)

        engine.phase_cleanup()
        first = grid_state(world)
        engine.phase_cleanup()

        assert grid_state(world) == first
        assert first == [(1, 1, "plant", 2), (2, 2, "herbivore", 4)]


class TestScenarios:
    """Whole-turn scenarios."""

    def test_predation_chain(self, engine: TurnEngine) -> None:
        world = engine.world
        assert world is not None
        herbivore = put(world, Organism.herbivore(5), 3, 3)
        plant = put(world, Organism.plant(2), 3, 4)
        carnivore = put(world, Organism.carnivore(10), 3, 5)

        engine.run_full_turn()

        cell = world.cell_at(3, 4)
        assert cell.is_empty_plant
        assert cell.animal is carnivore
        assert carnivore.position == Position(3, 4)
        assert 11 <= carnivore.energy <= 20
        assert not world.holds(herbivore)
        assert not world.holds(plant)
        assert world.census()[Species.HERBIVORE] == 0

    def test_determinism(self) -> None:
        first = TurnEngine(world=_populated_world(), rng=RandomService(seed=2024))
        second = TurnEngine(world=_populated_world(), rng=RandomService(seed=2024))

        for _ in range(15):
            first.run_full_turn()
            second.run_full_turn()
            assert first.world is not None
            assert second.world is not None
            assert grid_state(first.world) == grid_state(second.world)

    def test_reseed_replays_run(self) -> None:
        engine = TurnEngine(world=_populated_world(), rng=RandomService(seed=1))
        engine.run(10)
        assert engine.world is not None
        expected = grid_state(engine.world)

        engine.set_world(_populated_world())
        engine.reseed(1)
        engine.run(10)

        assert grid_state(engine.world) == expected

    def test_energy_stays_in_bounds(self) -> None:
        engine = TurnEngine(world=_populated_world(), rng=RandomService(seed=3))
        for _ in range(20):
            engine.run_full_turn()
            assert engine.world is not None
            for organism in engine.world.organisms():
                assert 0 <= organism.energy <= organism.max_energy
                assert organism.is_alive == (organism.energy > 0)
