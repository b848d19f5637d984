"""Obstacles that scroll across a lane.

Everything archetype-specific is read from ARCHETYPES; an Obstacle only
tracks its own position, speed and cosmetic state.
"""

import math
import random
from typing import Optional

from outlaw.animation.particles import ParticleEmitter, ParticlePresets
from outlaw.game.constants import ARCHETYPES, ArchetypeSpec, ObstacleArchetype
from outlaw.game.geometry import Rect
from outlaw.graphics.assets import AssetLoader
from outlaw.graphics.primitives import (
    Buffer,
    draw_circle,
    draw_image,
    draw_line,
    draw_rect,
    scale_color,
)


class Obstacle:
    """A moving hazard owned by exactly one Lane.

    Args:
        archetype: Which row of the archetype table applies
        x: Left edge in world pixels
        center_y: Vertical center of the owning lane
        lane_speed: Lane base speed in px/s, before the archetype multiplier
        direction: +1 moves right, -1 moves left
    """

    def __init__(
        self,
        archetype: ObstacleArchetype,
        x: float,
        center_y: float,
        lane_speed: float,
        direction: int,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.archetype = archetype
        self.spec: ArchetypeSpec = ARCHETYPES[archetype]
        self.x = x
        self.center_y = center_y
        self.direction = 1 if direction >= 0 else -1
        self.speed = self.spec.effective_speed(lane_speed)
        self.rotation = 0.0  # degrees, cosmetic

        self.smoke: Optional[ParticleEmitter] = None
        if self.spec.smokes:
            self.smoke = ParticleEmitter(ParticlePresets.train_smoke(*self._chimney()), rng=rng)

    @property
    def width(self) -> int:
        return self.spec.width

    @property
    def height(self) -> int:
        return self.spec.height

    @property
    def deadly(self) -> bool:
        return self.spec.deadly

    @property
    def right(self) -> float:
        return self.x + self.spec.width

    @property
    def center_x(self) -> float:
        return self.x + self.spec.width / 2

    @property
    def rect(self) -> Rect:
        """Visual rectangle in world pixels."""
        return Rect(self.x, self.center_y - self.height / 2, self.width, self.height)

    @property
    def hitbox(self) -> Rect:
        return self.rect.scaled(self.spec.hitbox_scale_x, self.spec.hitbox_scale_y)

    def set_lane_speed(self, lane_speed: float) -> None:
        self.speed = self.spec.effective_speed(lane_speed)

    def update(self, delta_ms: float) -> None:
        dt = delta_ms / 1000.0
        self.x += self.speed * self.direction * dt

        if self.spec.rotates:
            # Roll: one full turn per circumference travelled
            circumference = math.pi * self.width
            self.rotation = (self.rotation + 360.0 * self.speed * dt / circumference * self.direction) % 360.0

        if self.smoke is not None:
            self.smoke.move_to(*self._chimney())
            self.smoke.update(delta_ms)

    def _chimney(self) -> tuple[float, float]:
        front = self.right - 24 if self.direction > 0 else self.x + 24
        return front, self.center_y - self.height / 2

    def is_offscreen(self, viewport_width: float) -> bool:
        margin = self.spec.despawn_margin
        return self.x > viewport_width + margin or self.right < -margin

    # ===== RENDERING =====

    def draw(self, buffer: Buffer, offset_y: float, assets: Optional[AssetLoader] = None) -> None:
        rect = self.rect
        x = int(rect.x)
        y = int(rect.y - offset_y)

        sprite = assets.get(self.spec.sprite, (self.width, self.height)) if assets else None
        if sprite is not None:
            if self.direction < 0:
                sprite = sprite[:, ::-1]
            draw_image(buffer, sprite, x, y)
        else:
            self._draw_fallback(buffer, x, y)

        if self.smoke is not None:
            self.smoke.render(buffer, offset_y)

    def _draw_fallback(self, buffer: Buffer, x: int, y: int) -> None:
        color = self.spec.color
        w, h = self.width, self.height
        dark = scale_color(color, 0.6)

        if self.archetype == ObstacleArchetype.TUMBLEWEED:
            cx, cy = x + w // 2, y + h // 2
            r = w // 2
            draw_circle(buffer, cx, cy, r, color)
            # Two spokes show the roll
            for offset in (0.0, 90.0):
                angle = math.radians(self.rotation + offset)
                dx = int(r * 0.8 * math.cos(angle))
                dy = int(r * 0.8 * math.sin(angle))
                draw_line(buffer, cx - dx, cy - dy, cx + dx, cy + dy, dark, thickness=2)
        elif self.archetype == ObstacleArchetype.CACTUS:
            draw_rect(buffer, x + w // 2 - 8, y, 16, h, color)
            draw_rect(buffer, x + 4, y + h // 3, 8, h // 3, color)
            draw_rect(buffer, x + w - 12, y + h // 4, 8, h // 3, color)
        elif self.archetype == ObstacleArchetype.TRAIN:
            draw_rect(buffer, x, y + 10, w, h - 20, color)
            draw_rect(buffer, x, y + 10, w, h - 20, dark, filled=False, thickness=2)
            for wx in range(x + 16, x + w - 8, 36):
                draw_circle(buffer, wx, y + h - 10, 8, (30, 30, 30))
        else:
            draw_rect(buffer, x + 10, y + 8, w - 20, h - 24, color)
            head_x = x + w - 22 if self.direction > 0 else x
            draw_rect(buffer, head_x, y, 22, 20, dark)
            for lx in (x + 16, x + 30, x + w - 34, x + w - 20):
                draw_rect(buffer, lx, y + h - 18, 5, 18, dark)
