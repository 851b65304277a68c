"""Pygame 2D viewer for the Ecosim simulation.

Renders plants, herbivores and carnivores on the grid with an info panel.
The viewer is both a passive listener of the engine (it only reads the
grid and counters) and the driver that decides when turns run: the
engine ticks at the configured interval while the display refreshes at
the Pygame frame rate.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, ClassVar

import numpy as np
import pygame

from ecosim.errors import ConfigurationError
from ecosim.organisms.species import Species
from ecosim.simulation.engine import Phase, SimulationListener
from ecosim.world.world import World

if TYPE_CHECKING:
    from ecosim.organisms.organism import Organism
    from ecosim.simulation.config import SimulationConfig
    from ecosim.simulation.engine import TurnEngine

# Colour palette
_BG = (25, 22, 18)
_GRID_LINE = (45, 40, 34)
_DEAD = (90, 90, 90)
_TEXT = (200, 200, 200)

# Energy colour ranges (dim -> bright), indexed by species
_ENERGY_LO: dict[Species, np.ndarray] = {
    Species.PLANT: np.array([20, 60, 10], dtype=np.float64),
    Species.HERBIVORE: np.array([120, 100, 20], dtype=np.float64),
    Species.CARNIVORE: np.array([110, 30, 30], dtype=np.float64),
}
_ENERGY_HI: dict[Species, np.ndarray] = {
    Species.PLANT: np.array([60, 210, 40], dtype=np.float64),
    Species.HERBIVORE: np.array([255, 220, 60], dtype=np.float64),
    Species.CARNIVORE: np.array([255, 70, 70], dtype=np.float64),
}

_LOG_LINES = 8


def energy_colour(organism: Organism) -> tuple[int, int, int]:
    """Blend the species colour range by the organism's energy fraction."""
    if not organism.is_alive:
        return _DEAD
    t = min(organism.energy / organism.max_energy, 1.0)
    lo = _ENERGY_LO[organism.species]
    hi = _ENERGY_HI[organism.species]
    r, g, b = (lo + t * (hi - lo)).astype(int).tolist()
    return (r, g, b)


class PygameRenderer(SimulationListener):
    """Renders a TurnEngine's world into a Pygame window.

    Attributes:
        engine: The engine to visualise and drive.
        config: Session configuration (seed, world source, timing).
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    # Interval presets in milliseconds between automatic turns
    _INTERVAL_STEPS: ClassVar[list[int]] = [
        50,
        100,
        200,
        300,
        450,
        600,
        900,
        1200,
        2000,
    ]

    # Number keys run one named phase on its own
    _PHASE_KEYS: ClassVar[dict[int, Phase]] = {
        pygame.K_1: Phase.PLANT_GROWTH,
        pygame.K_2: Phase.HERBIVORES,
        pygame.K_3: Phase.CARNIVORES,
        pygame.K_4: Phase.REPRODUCTION,
        pygame.K_5: Phase.CLEANUP,
    }

    def __init__(self, engine: TurnEngine, config: SimulationConfig) -> None:
        """Initialise the renderer and register it with the engine.

        Args:
            engine: The engine to render.
            config: Session configuration.
        """
        self.engine = engine
        self.config = config
        self.cell_size = config.cell_size
        self.tick_interval_ms = config.tick_interval_ms
        self._interval_index = self._nearest_interval(config.tick_interval_ms)
        self._elapsed_ms = 0.0
        self._log_lines: deque[str] = deque(maxlen=_LOG_LINES)
        self._phase: Phase | None = engine.current_phase

        world = engine.world
        cols = world.width if world is not None else config.world_width
        rows = world.height if world is not None else config.world_height
        self._panel_width = 260
        self._win_w = cols * self.cell_size + self._panel_width
        self._win_h = max(rows * self.cell_size, 420)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("Ecosim")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        engine.add_listener(self)

    # -- Listener callbacks --

    def on_log(self, message: str) -> None:
        self._log_lines.append(message)

    def on_phase_changed(self, phase: Phase | None) -> None:
        self._phase = phase

    # -- Main loop --

    def _nearest_interval(self, ms: int) -> int:
        """Return the index of the closest interval preset."""
        best = 0
        best_diff = abs(self._INTERVAL_STEPS[0] - ms)
        for i, step in enumerate(self._INTERVAL_STEPS):
            diff = abs(step - ms)
            if diff < best_diff:
                best, best_diff = i, diff
        return best

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, tick the engine, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt_ms = self.clock.tick(fps)
            self._handle_events()
            if self.engine.running:
                self._elapsed_ms += dt_ms
                while self._elapsed_ms >= self.tick_interval_ms:
                    self._elapsed_ms -= self.tick_interval_ms
                    self.engine.run_full_turn()
            self._draw()

        self.engine.remove_listener(self)
        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key)

    def _handle_key(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            self._elapsed_ms = 0.0
            self.engine.toggle()
        elif key == pygame.K_n:
            self.engine.run_next_phase()
        elif key == pygame.K_t:
            self.engine.run_full_turn()
        elif key in self._PHASE_KEYS:
            self.engine.run_single_phase(self._PHASE_KEYS[key])
        elif key == pygame.K_r:
            self.reset()
        elif key in (pygame.K_PLUS, pygame.K_EQUALS):
            # Faster means a shorter interval
            self._interval_index = max(0, self._interval_index - 1)
            self.tick_interval_ms = self._INTERVAL_STEPS[self._interval_index]
        elif key == pygame.K_MINUS:
            self._interval_index = min(
                len(self._INTERVAL_STEPS) - 1,
                self._interval_index + 1,
            )
            self.tick_interval_ms = self._INTERVAL_STEPS[self._interval_index]

    def reset(self) -> None:
        """Reload the starting world and reseed the engine.

        If the world file can no longer be loaded, an empty grid of the
        current size is used instead.
        """
        self.engine.pause()
        try:
            world = self.config.build_world()
        except (OSError, ConfigurationError) as exc:
            self.on_log(f"Reload failed: {exc}")
            current = self.engine.world
            if current is None:
                return
            world = World(width=current.width, height=current.height)
        self.engine.set_world(world)
        self.engine.reseed(self.config.seed)

    # -- Drawing --

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        if self.engine.world is not None:
            self._draw_grid(self.engine.world)
            self._draw_plants(self.engine.world)
            self._draw_animals(self.engine.world)
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_grid(self, world: World) -> None:
        cs = self.cell_size
        for y in range(world.height):
            for x in range(world.width):
                pygame.draw.rect(self.screen, _GRID_LINE, (x * cs, y * cs, cs, cs), 1)

    def _draw_plants(self, world: World) -> None:
        """Draw plants as filled squares, brighter with more energy."""
        cs = self.cell_size
        inset = max(1, cs // 8)
        for plant in world.plants():
            if plant.position is None:
                continue
            x, y = plant.position.x, plant.position.y
            pygame.draw.rect(
                self.screen,
                energy_colour(plant),
                (x * cs + inset, y * cs + inset, cs - 2 * inset, cs - 2 * inset),
            )

    def _draw_animals(self, world: World) -> None:
        """Draw animals as dots on top of any plant in the same cell."""
        cs = self.cell_size
        for animal in world.animals():
            if animal.position is None:
                continue
            radius = max(2, cs // 3 if animal.species is Species.CARNIVORE else cs // 4)
            cx = animal.position.x * cs + cs // 2
            cy = animal.position.y * cs + cs // 2
            pygame.draw.circle(self.screen, energy_colour(animal), (cx, cy), radius)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        world = self.engine.world
        panel_x = (world.width if world is not None else 0) * self.cell_size + 10
        y = 10

        phase = self._phase.label if self._phase is not None else "idle"
        lines = [
            f"Turn: {self.engine.turn}",
            f"Phase: {phase}",
            f"Interval: {self.tick_interval_ms} ms",
            f"{'RUNNING' if self.engine.running else 'PAUSED'}",
            "",
            "--- Population ---",
        ]
        if world is not None:
            for species, count in world.census().items():
                lines.append(f"{species.label}: {count}")

        lines += [
            "",
            "--- Controls ---",
            "SPACE: run/pause",
            "N: next phase  T: turn",
            "1-5: run one phase",
            "R: reset  +/-: speed",
            "ESC: quit",
            "",
            "--- Log ---",
            *self._log_lines,
        ]

        for line in lines:
            surf = self.font.render(line, True, _TEXT)
            self.screen.blit(surf, (panel_x, y))
            y += 18
