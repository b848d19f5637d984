"""Collectible pickups: coins and the sheriff badge.

A pickup is scored once. After collection it keeps animating (particle
burst plus a rising "+N" popup) until both effects have finished, even
if the level that spawned it has already been regenerated.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from outlaw.animation.easing import Easing, lerp
from outlaw.animation.particles import EmitterConfig, ParticleEmitter, ParticlePresets
from outlaw.game.constants import (
    BADGE_HITBOX_EXPAND,
    BADGE_PROXIMITY_FACTOR,
    BADGE_SIZE,
    COIN_HITBOX_EXPAND,
    COIN_PROXIMITY_FACTOR,
    COIN_SIZE,
    PICKUP_POPUP_MS,
    POINTS_FOR_BADGE,
    POINTS_FOR_COIN,
)
from outlaw.game.geometry import Rect, centers_close, overlaps
from outlaw.graphics.assets import AssetLoader
from outlaw.graphics.primitives import (
    Buffer,
    Color,
    draw_circle,
    draw_image,
    draw_rect,
    draw_text,
    scale_color,
    text_width,
)

logger = logging.getLogger(__name__)


class PickupState(Enum):
    ACTIVE = "active"
    COLLECTING = "collecting"  # scored, effects still playing
    DONE = "done"


@dataclass
class FloatingText:
    """Score popup that rises and fades out."""
    x: float
    y: float
    text: str
    color: Color
    life: float = PICKUP_POPUP_MS
    age: float = 0.0
    rise: float = 40.0

    @property
    def finished(self) -> bool:
        return self.age >= self.life

    def update(self, delta_ms: float) -> None:
        self.age = min(self.life, self.age + delta_ms)

    def draw(self, buffer: Buffer, offset_y: float) -> None:
        if self.finished:
            return
        t = self.age / self.life
        lift = lerp(0.0, self.rise, t, Easing.EASE_OUT_CUBIC)
        fade = 1.0 - lerp(0.0, 1.0, t, Easing.EASE_IN_QUAD)
        scale = 3
        x = int(self.x - text_width(self.text, scale) / 2)
        y = int(self.y - lift - offset_y)
        draw_text(buffer, self.text, x, y, scale_color(self.color, fade), scale=scale)


class Pickup:
    """Base class for grid-placed collectibles.

    Position is stored as a grid cell so a resize only changes the pixel
    mapping. The catch area is the visual rect expanded by
    HITBOX_EXPAND, and a centre-proximity test catches near misses.
    """

    kind = "pickup"
    SIZE = COIN_SIZE
    POINTS = 0
    HITBOX_EXPAND = 1.0
    PROXIMITY_FACTOR = 0.0
    COLOR: Color = (255, 255, 255)
    SPRITE = ""

    def __init__(
        self,
        col: int,
        row: int,
        cell_width: float,
        cell_height: float,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.col = col
        self.row = row
        self.cell_width = cell_width
        self.cell_height = cell_height
        self.state = PickupState.ACTIVE
        self._rng = rng
        self._age = 0.0
        self._emitter: Optional[ParticleEmitter] = None
        self._popup: Optional[FloatingText] = None

    @property
    def collected(self) -> bool:
        return self.state != PickupState.ACTIVE

    @property
    def finished(self) -> bool:
        return self.state == PickupState.DONE

    @property
    def center(self) -> tuple[float, float]:
        return (
            (self.col + 0.5) * self.cell_width,
            (self.row + 0.5) * self.cell_height,
        )

    @property
    def rect(self) -> Rect:
        cx, cy = self.center
        return Rect.from_center(cx, cy, self.SIZE, self.SIZE)

    @property
    def hitbox(self) -> Rect:
        return self.rect.scaled(self.HITBOX_EXPAND)

    def contains(self, player_rect: Rect) -> bool:
        """Whether the player touches this pickup (always False once collected)."""
        if self.collected:
            return False
        return overlaps(self.hitbox, player_rect) or centers_close(
            self.rect, player_rect, self.PROXIMITY_FACTOR
        )

    def collect(self) -> int:
        """Mark collected and start the effects.

        Returns:
            Points awarded; 0 if the pickup was already collected
        """
        if self.collected:
            return 0

        self.state = PickupState.COLLECTING
        cx, cy = self.center
        self._emitter = ParticleEmitter(self._burst_config(cx, cy), rng=self._rng)
        self._emitter.burst()
        self._popup = FloatingText(cx, cy - self.SIZE / 2, f"+{self.POINTS}", self.COLOR)
        logger.debug(f"{self.kind} at ({self.col}, {self.row}) collected for {self.POINTS}")
        return self.POINTS

    def _burst_config(self, x: float, y: float) -> EmitterConfig:
        return ParticlePresets.coin_burst(x, y)

    def update(self, delta_ms: float) -> None:
        self._age += delta_ms
        if self.state != PickupState.COLLECTING:
            return

        if self._emitter is not None:
            self._emitter.update(delta_ms)
        if self._popup is not None:
            self._popup.update(delta_ms)

        emitter_done = self._emitter is None or self._emitter.finished
        popup_done = self._popup is None or self._popup.finished
        if emitter_done and popup_done:
            self.state = PickupState.DONE
            self._emitter = None
            self._popup = None

    def handle_resize(self, cell_width: float, cell_height: float) -> None:
        self.cell_width = cell_width
        self.cell_height = cell_height

    # ===== RENDERING =====

    def draw(self, buffer: Buffer, offset_y: float, assets: Optional[AssetLoader] = None) -> None:
        if self.state == PickupState.ACTIVE:
            rect = self.rect
            sprite = assets.get(self.SPRITE, (self.SIZE, self.SIZE)) if assets else None
            if sprite is not None:
                draw_image(buffer, sprite, int(rect.x), int(rect.y - offset_y))
            else:
                self._draw_fallback(buffer, rect, offset_y)
        elif self.state == PickupState.COLLECTING:
            if self._emitter is not None:
                self._emitter.render(buffer, offset_y)
            if self._popup is not None:
                self._popup.draw(buffer, offset_y)

    def _draw_fallback(self, buffer: Buffer, rect: Rect, offset_y: float) -> None:
        draw_rect(buffer, int(rect.x), int(rect.y - offset_y), int(rect.width), int(rect.height), self.COLOR)


class Coin(Pickup):
    """Gold coin worth POINTS_FOR_COIN."""

    kind = "coin"
    SIZE = COIN_SIZE
    POINTS = POINTS_FOR_COIN
    HITBOX_EXPAND = COIN_HITBOX_EXPAND
    PROXIMITY_FACTOR = COIN_PROXIMITY_FACTOR
    COLOR = (255, 200, 40)
    SPRITE = "coin.png"

    def _draw_fallback(self, buffer: Buffer, rect: Rect, offset_y: float) -> None:
        cx, cy = int(rect.center_x), int(rect.center_y - offset_y)
        # Gentle shimmer while waiting to be picked up
        shine = 0.85 + 0.15 * ((self._age // 150) % 2)
        r = self.SIZE // 2
        draw_circle(buffer, cx, cy, r, scale_color(self.COLOR, shine))
        draw_circle(buffer, cx, cy, r, scale_color(self.COLOR, 0.6), filled=False)
        draw_rect(buffer, cx - 3, cy - r // 2, 6, r, scale_color(self.COLOR, 0.5))


class Badge(Pickup):
    """Sheriff badge: big points plus a shield of invincibility."""

    kind = "badge"
    SIZE = BADGE_SIZE
    POINTS = POINTS_FOR_BADGE
    HITBOX_EXPAND = BADGE_HITBOX_EXPAND
    PROXIMITY_FACTOR = BADGE_PROXIMITY_FACTOR
    COLOR = (230, 230, 240)
    SPRITE = "badge.png"

    def _burst_config(self, x: float, y: float) -> EmitterConfig:
        return ParticlePresets.badge_burst(x, y)

    def _draw_fallback(self, buffer: Buffer, rect: Rect, offset_y: float) -> None:
        cx, cy = int(rect.center_x), int(rect.center_y - offset_y)
        r = self.SIZE // 2
        draw_circle(buffer, cx, cy, r, (255, 215, 0))
        draw_circle(buffer, cx, cy, r - 6, self.COLOR)
        draw_rect(buffer, cx - 3, cy - r + 4, 6, self.SIZE - 8, (255, 215, 0))
        draw_rect(buffer, cx - r + 4, cy - 3, self.SIZE - 8, 6, (255, 215, 0))
