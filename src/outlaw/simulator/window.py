"""
Desktop host for the crossing simulation.

Key presses become EventBus input events, every frame publishes a TICK,
and the numpy frame the simulation draws is blitted to a resizable
pygame window. A side panel with raw numbers and the key bindings can be
toggled with F1 or TAB.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List

import pygame

from ..core.events import Event, EventBus, EventType, tick_event
from ..game.simulation import CrossingSimulation
from ..graphics.primitives import Buffer, create_buffer

logger = logging.getLogger(__name__)

MIN_WIDTH, MIN_HEIGHT = 160, 120

CONTROLS = [
    "ARROWS/WASD  Move",
    "SPACE        Start",
    "R            Restart",
    "F1/TAB       Debug panel",
    "ESC/Q        Quit",
]


@dataclass
class WindowConfig:
    width: int = 800
    height: int = 600
    title: str = "Outlaw Crossing"
    fullscreen: bool = False
    fps: int = 60
    panel_color: tuple[int, int, int] = (40, 28, 20)
    text_color: tuple[int, int, int] = (235, 215, 180)
    line_height: int = 18


class SimulatorWindow:
    """Runs one CrossingSimulation in a pygame window."""

    KEY_MAP = {
        pygame.K_UP: EventType.MOVE_UP,
        pygame.K_w: EventType.MOVE_UP,
        pygame.K_DOWN: EventType.MOVE_DOWN,
        pygame.K_s: EventType.MOVE_DOWN,
        pygame.K_LEFT: EventType.MOVE_LEFT,
        pygame.K_a: EventType.MOVE_LEFT,
        pygame.K_RIGHT: EventType.MOVE_RIGHT,
        pygame.K_d: EventType.MOVE_RIGHT,
        pygame.K_SPACE: EventType.START,
        pygame.K_RETURN: EventType.START,
        pygame.K_r: EventType.RESTART,
    }
    QUIT_KEYS = (pygame.K_ESCAPE, pygame.K_q)
    PANEL_KEYS = (pygame.K_F1, pygame.K_TAB)

    def __init__(
        self,
        simulation: CrossingSimulation,
        config: WindowConfig | None = None,
        event_bus: EventBus | None = None
    ) -> None:
        self.simulation = simulation
        self.config = config or WindowConfig()
        self.event_bus = event_bus or EventBus()

        self.show_panel = True
        self.frame = 0
        self._running = False
        self._screen: pygame.Surface | None = None
        self._clock: pygame.time.Clock | None = None
        self._font: pygame.font.Font | None = None
        self._buffer: Buffer = create_buffer(self.config.width, self.config.height)

    def _open(self) -> None:
        pygame.init()
        pygame.display.set_caption(self.config.title)
        self._screen = pygame.display.set_mode((self.config.width, self.config.height), self._flags())
        self._clock = pygame.time.Clock()
        self._font = pygame.font.SysFont(None, self.config.line_height)
        logger.info(f"Window open at {self.config.width}x{self.config.height}")

    def _flags(self) -> int:
        flags = pygame.DOUBLEBUF | pygame.RESIZABLE
        if self.config.fullscreen:
            flags |= pygame.FULLSCREEN
        return flags

    # ===== INPUT =====

    def _pump(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False
            elif event.type == pygame.KEYDOWN:
                self._on_key(event.key)
            elif event.type == pygame.VIDEORESIZE:
                self._on_resize(event.w, event.h)

    def _on_key(self, key: int) -> None:
        if key in self.QUIT_KEYS:
            self._running = False
        elif key in self.PANEL_KEYS:
            self.show_panel = not self.show_panel
        elif key in self.KEY_MAP:
            self.event_bus.emit(Event(self.KEY_MAP[key], source="keyboard"))

    def _on_resize(self, width: int, height: int) -> None:
        """Rebuild the screen and frame, and give the simulation new cell sizes."""
        width, height = max(MIN_WIDTH, width), max(MIN_HEIGHT, height)
        self.config.width, self.config.height = width, height
        self._screen = pygame.display.set_mode((width, height), self._flags())
        self._buffer = create_buffer(width, height)

        sim = self.simulation
        sim.handle_resize(width / sim.grid_cols, height / sim.visible_rows)
        logger.info(f"Window resized to {width}x{height}")

    # ===== RENDERING =====

    def _present(self) -> None:
        if self._screen is None:
            return

        self.simulation.draw(self._buffer)
        # surfarray wants (width, height, 3); the frame is (height, width, 3)
        self._screen.blit(pygame.surfarray.make_surface(self._buffer.swapaxes(0, 1)), (0, 0))
        if self.show_panel:
            self._draw_panel(self._panel_lines())
        pygame.display.flip()

    def _panel_lines(self) -> List[str]:
        snap = self.simulation.snapshot()
        reason = self.simulation.state_machine.context.reason
        fps = f"{self._clock.get_fps():.1f}" if self._clock else "--"
        return [
            f"FPS: {fps}  frame {self.frame}",
            f"State: {snap.state.name}" + (f" ({reason.value})" if reason else ""),
            f"Score: {snap.score}",
            f"Lives: {snap.lives}",
            f"Difficulty: {snap.difficulty:.2f}",
            f"Goals: {snap.goals_reached}/{snap.goal_count}",
            f"Cell: {snap.player_cell}",
            f"Level time: {snap.level_elapsed_ms / 1000:.1f}s",
            f"Obstacles: {sum(len(lane.obstacles) for lane in self.simulation.lanes)}",
            "",
            *CONTROLS,
        ]

    def _draw_panel(self, lines: List[str]) -> None:
        if self._font is None:
            return
        step = self.config.line_height
        panel = pygame.Rect(self.config.width - 220, 10, 210, 20 + step * len(lines))
        pygame.draw.rect(self._screen, self.config.panel_color, panel, border_radius=5)
        for i, line in enumerate(lines):
            label = self._font.render(line, True, self.config.text_color)
            self._screen.blit(label, (panel.x + 10, panel.y + 10 + i * step))

    # ===== LOOP =====

    async def _frame(self) -> None:
        self._pump()
        if self._clock is not None:
            self.event_bus.emit(tick_event(self._clock.get_time() / 1000.0, self.frame))
        await self.event_bus.process_queue()
        self._present()
        if self._clock is not None:
            self._clock.tick(self.config.fps)
        self.frame += 1

    async def run(self) -> None:
        """Open the window and run frames until it is closed or stop() is called."""
        self._open()
        self._running = True
        try:
            while self._running:
                await self._frame()
                # let queued coroutine handlers and other tasks run
                await asyncio.sleep(0)
        finally:
            pygame.quit()
            logger.info(f"Window closed after {self.frame} frames")

    def stop(self) -> None:
        self._running = False
