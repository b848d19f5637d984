"""Lanes: horizontal strips that own a stream of obstacles.

A hazard lane keeps its obstacles from ever crowding each other. Every
obstacle in a lane shares the lane's speed and direction, so once an
obstacle is accepted with enough clearance the gap never shrinks. The
only places clearance is checked are population and spawning.
"""

import logging
import math
import random
from enum import Enum
from typing import List, Optional

from outlaw.game.constants import (
    ARCHETYPES,
    BASE_SPAWN_COOLDOWN_MS,
    POPULATE_SAFETY_FACTOR,
    ArchetypeSpec,
    ObstacleArchetype,
    frequency_multiplier,
    obstacle_speed,
)
from outlaw.game.geometry import Rect, horizontal_gap, overlaps
from outlaw.game.obstacle import Obstacle
from outlaw.graphics.assets import AssetLoader
from outlaw.graphics.primitives import Buffer, draw_line, draw_rect, scale_color

logger = logging.getLogger(__name__)


class LaneCategory(str, Enum):
    SAFE = "safe"
    ROAD = "road"
    RIVER = "river"


LANE_COLORS = {
    LaneCategory.SAFE: (222, 184, 135),
    LaneCategory.ROAD: (160, 120, 80),
    LaneCategory.RIVER: (70, 130, 180),
}


class Lane:
    """One grid row of the level.

    Args:
        row: Grid row index (0 is the goal row at the top)
        category: Safe, road or river
        cell_height: Pixel height of a grid row
        viewport_width: Pixel width obstacles scroll across
        direction: +1 scrolls right, -1 scrolls left
        archetype: Obstacle kind; None for safe lanes
        frequency: Base spawns per second, before difficulty scaling
        difficulty: Current difficulty scalar
        rng: Random source for jitter
        populate: Pre-fill the lane with obstacles
    """

    def __init__(
        self,
        row: int,
        category: LaneCategory,
        cell_height: float,
        viewport_width: float,
        direction: int = 1,
        archetype: Optional[ObstacleArchetype] = None,
        frequency: float = 0.0,
        difficulty: float = 1.0,
        rng: Optional[random.Random] = None,
        populate: bool = True,
    ) -> None:
        self.row = row
        self.category = category
        self.cell_height = cell_height
        self.viewport_width = viewport_width
        self.direction = 1 if direction >= 0 else -1
        self.archetype = archetype if category != LaneCategory.SAFE else None
        self.base_frequency = frequency
        self.rng = rng or random.Random()

        self.obstacles: List[Obstacle] = []
        self.spawn_cooldown_ms = BASE_SPAWN_COOLDOWN_MS
        self._last_spawn_ms: Optional[float] = None
        self._last_attempt_ms = -math.inf

        self.difficulty = difficulty
        self.speed = obstacle_speed(difficulty)
        self.frequency = self.base_frequency * frequency_multiplier(difficulty)

        if populate and self.is_hazard:
            self.populate()

    # ===== PROPERTIES =====

    @property
    def is_hazard(self) -> bool:
        return self.archetype is not None and self.base_frequency > 0

    @property
    def spec(self) -> Optional[ArchetypeSpec]:
        return ARCHETYPES[self.archetype] if self.archetype is not None else None

    @property
    def top(self) -> float:
        return self.row * self.cell_height

    @property
    def bottom(self) -> float:
        return self.top + self.cell_height

    @property
    def center_y(self) -> float:
        return self.top + self.cell_height / 2

    @property
    def spawn_interval_ms(self) -> float:
        if self.frequency <= 0:
            return math.inf
        return 1000.0 / self.frequency

    # ===== SPAWNING =====

    def spawn_x(self) -> float:
        """Left edge of an obstacle entering from the lane's rear edge."""
        spec = self.spec
        if self.direction > 0:
            return -spec.spawn_margin
        return self.viewport_width + spec.spawn_margin - spec.width

    def has_room(self, x: float) -> bool:
        """Whether an obstacle at left edge x keeps min_gap (never below min_spacing) to every live one."""
        spec = self.spec
        candidate = Rect(x, self.top, spec.width, self.cell_height)
        return all(horizontal_gap(candidate, other.rect) >= spec.min_gap for other in self.obstacles)

    def spawn_at(self, x: float) -> Optional[Obstacle]:
        """Place an obstacle at x if it fits; otherwise return None."""
        if not self.is_hazard or not self.has_room(x):
            return None
        obstacle = Obstacle(self.archetype, x, self.center_y, self.speed, self.direction, rng=self.rng)
        self.obstacles.append(obstacle)
        self._enforce_cap()
        return obstacle

    def populate(self) -> int:
        """Pre-fill the lane from one offscreen edge to the other.

        Candidates that would crowd an existing obstacle are dropped,
        not nudged, so a busy lane just ends up sparser.

        Returns:
            Number of obstacles placed
        """
        spec = self.spec
        if spec is None:
            return 0

        interval_s = self.spawn_interval_ms / 1000.0
        travel = spec.effective_speed(self.speed) * interval_s
        spacing = max(travel, spec.min_spacing) * POPULATE_SAFETY_FACTOR
        span = self.viewport_width + 2 * spec.spawn_margin
        count = min(spec.max_active, int(span // spacing))

        start = self.spawn_x()
        placed = 0
        for i in range(count):
            jitter = self.rng.uniform(-1.0, 1.0) * spec.jitter * spacing
            x = start + self.direction * i * spacing + jitter
            if self.spawn_at(x) is not None:
                placed += 1
            else:
                logger.debug(f"Lane {self.row}: dropped {spec.width}px {self.archetype.value} at {x:.0f}")
        return placed

    def _try_spawn(self, now_ms: float) -> None:
        if self._last_spawn_ms is None:
            self._last_spawn_ms = now_ms
            return
        if now_ms - self._last_spawn_ms < self.spawn_interval_ms:
            return
        if now_ms - self._last_attempt_ms < self.spawn_cooldown_ms:
            return

        self._last_attempt_ms = now_ms
        spec = self.spec
        if self.spawn_at(self.spawn_x()) is None:
            self.spawn_cooldown_ms = min(spec.max_cooldown_ms, self.spawn_cooldown_ms + spec.cooldown_increase_ms)
            logger.debug(f"Lane {self.row}: spawn blocked, cooldown {self.spawn_cooldown_ms:.0f}ms")
        else:
            self._last_spawn_ms = now_ms
            self.spawn_cooldown_ms = BASE_SPAWN_COOLDOWN_MS

    def _enforce_cap(self) -> None:
        cap = self.spec.max_active
        while len(self.obstacles) > cap:
            evicted = self.obstacles.pop(0)
            logger.debug(f"Lane {self.row}: evicted oldest {evicted.archetype.value} at {evicted.x:.0f}")

    # ===== TICK =====

    def update(self, delta_ms: float, now_ms: float) -> None:
        """Spawn, advance and retire obstacles."""
        if not self.is_hazard:
            return

        self._try_spawn(now_ms)

        for obstacle in self.obstacles:
            obstacle.update(delta_ms)

        self.obstacles = [o for o in self.obstacles if not o.is_offscreen(self.viewport_width)]

    def check_collisions(self, player_rect: Rect) -> List[Obstacle]:
        """Deadly obstacles whose hitbox overlaps the player.

        Players whose vertical center is outside this lane never collide
        with it.
        """
        cy = player_rect.center_y
        if not (self.top <= cy < self.bottom):
            return []
        return [o for o in self.obstacles if o.deadly and overlaps(o.hitbox, player_rect)]

    def set_difficulty(self, difficulty: float) -> None:
        """Retune speed and frequency; every obstacle changes speed together."""
        self.difficulty = difficulty
        self.speed = obstacle_speed(difficulty)
        self.frequency = self.base_frequency * frequency_multiplier(difficulty)
        for obstacle in self.obstacles:
            obstacle.set_lane_speed(self.speed)

    def handle_resize(self, cell_height: float, viewport_width: float) -> None:
        """Move the lane to its new band. Obstacle x positions are kept."""
        self.cell_height = cell_height
        self.viewport_width = viewport_width
        for obstacle in self.obstacles:
            obstacle.center_y = self.center_y

    def clear(self) -> None:
        self.obstacles.clear()

    # ===== RENDERING =====

    def draw(self, buffer: Buffer, offset_y: float, assets: Optional[AssetLoader] = None) -> None:
        screen_top = int(self.top - offset_y)
        height = int(math.ceil(self.cell_height))
        if screen_top + height < 0 or screen_top > buffer.shape[0]:
            return

        width = buffer.shape[1]
        color = LANE_COLORS[self.category]
        draw_rect(buffer, 0, screen_top, width, height, color)

        if self.archetype == ObstacleArchetype.TRAIN:
            rail = (110, 110, 120)
            for frac in (0.35, 0.65):
                ry = screen_top + int(height * frac)
                draw_line(buffer, 0, ry, width, ry, rail, thickness=3)
            for tx in range(0, width, 24):
                draw_rect(buffer, tx, screen_top + int(height * 0.3), 6, int(height * 0.4), (90, 60, 40))
        elif self.category == LaneCategory.ROAD:
            rut = scale_color(color, 0.8)
            draw_line(buffer, 0, screen_top + height // 2, width, screen_top + height // 2, rut, thickness=2)
        elif self.category == LaneCategory.RIVER:
            wave = scale_color(color, 1.25)
            for wx in range(0, width, 40):
                draw_line(buffer, wx, screen_top + height // 3, wx + 16, screen_top + height // 3, wave, thickness=2)

        for obstacle in self.obstacles:
            obstacle.draw(buffer, offset_y, assets)
