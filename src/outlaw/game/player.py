"""The player-controlled outlaw.

The player lives on integer grid cells and slides between them. Input is
only accepted when the player sits exactly on its target cell and the
move cooldown has elapsed. While sliding, collisions are not evaluated.
"""

import logging
import math
from enum import Enum
from typing import Optional, Tuple

from outlaw.game.constants import (
    PLAYER_WIDTH,
    PLAYER_HEIGHT,
    PLAYER_HITBOX_SCALE,
    PLAYER_SNAP_EPSILON,
    RESPAWN_FLASH_INTERVAL_MS,
)
from outlaw.game.geometry import Rect
from outlaw.graphics.assets import AssetLoader
from outlaw.graphics.primitives import Buffer, draw_rect, draw_circle, draw_image

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Directional intents the host can send."""
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


class InvincibilitySource(Enum):
    """What granted the current invincibility; decides how it is drawn."""
    RESPAWN = "respawn"  # flashing sprite
    BADGE = "badge"      # golden shield


class Player:
    """Grid-bound player with interpolated movement and timed invincibility."""

    BODY_COLOR = (200, 60, 40)
    HAT_COLOR = (90, 55, 25)
    SHIELD_COLOR = (255, 215, 0)
    SPRITE = "outlaw.png"

    def __init__(
        self,
        col: int,
        row: int,
        cell_width: float,
        cell_height: float,
        grid_cols: int,
        grid_rows: int,
        move_cooldown_ms: float = 100.0,
        move_speed: float = 18.0,
    ) -> None:
        self.cell_width = cell_width
        self.cell_height = cell_height
        self.grid_cols = grid_cols
        self.grid_rows = grid_rows
        self.move_cooldown_ms = move_cooldown_ms
        self.move_speed = move_speed  # cells per second

        # Interpolated position and the cell being moved to, in cells
        self.x = float(col)
        self.y = float(row)
        self.target_x = col
        self.target_y = row

        self.moving = False
        self._last_move_ms = -math.inf

        self.invincible = False
        self.invincibility_source: Optional[InvincibilitySource] = None
        self.invincible_until_ms = 0.0

        self.width = PLAYER_WIDTH
        self.height = PLAYER_HEIGHT

    # ===== INPUT / MOVEMENT =====

    def handle_input(self, direction: Direction, now_ms: float) -> bool:
        """Try to start a move one cell in direction.

        Returns:
            True if the move was accepted
        """
        at_target = (
            abs(self.x - self.target_x) < PLAYER_SNAP_EPSILON
            and abs(self.y - self.target_y) < PLAYER_SNAP_EPSILON
        )
        if not at_target or self.moving:
            return False
        if now_ms - self._last_move_ms < self.move_cooldown_ms:
            return False

        new_x = max(0, min(self.grid_cols - 1, self.target_x + direction.dx))
        new_y = max(0, min(self.grid_rows - 1, self.target_y + direction.dy))
        if (new_x, new_y) == (self.target_x, self.target_y):
            return False  # Blocked by the grid edge

        self.target_x = new_x
        self.target_y = new_y
        self.moving = True
        self._last_move_ms = now_ms
        return True

    def update(self, delta_ms: float, now_ms: float) -> None:
        """Advance the slide toward the target and expire invincibility."""
        if self.moving:
            step = self.move_speed * delta_ms / 1000.0
            dx = self.target_x - self.x
            dy = self.target_y - self.y
            distance = math.hypot(dx, dy)

            if distance <= step or distance < PLAYER_SNAP_EPSILON:
                self.x = float(self.target_x)
                self.y = float(self.target_y)
                self.moving = False
            else:
                self.x += dx / distance * step
                self.y += dy / distance * step

        if self.invincible and now_ms >= self.invincible_until_ms:
            self.invincible = False
            self.invincibility_source = None
            logger.debug("Player invincibility expired")

    def is_moving(self) -> bool:
        return self.moving

    @property
    def grid_position(self) -> Tuple[int, int]:
        """Current cell, rounded from the interpolated position."""
        return round(self.x), round(self.y)

    def reset(self, col: int, row: int) -> None:
        """Place the player on a cell, stopped and without invincibility."""
        self.x = float(col)
        self.y = float(row)
        self.target_x = col
        self.target_y = row
        self.moving = False
        self.invincible = False
        self.invincibility_source = None
        self.invincible_until_ms = 0.0

    # ===== STATUS =====

    def make_invincible(self, duration_ms: float, source: InvincibilitySource, now_ms: float) -> None:
        """Grant invincibility; a longer remaining window is never shortened."""
        until = now_ms + duration_ms
        if self.invincible and self.invincible_until_ms >= until:
            return
        self.invincible = True
        self.invincibility_source = source
        self.invincible_until_ms = until
        logger.debug(f"Player invincible via {source.value} for {duration_ms:.0f}ms")

    # ===== GEOMETRY =====

    @property
    def center(self) -> Tuple[float, float]:
        return (
            (self.x + 0.5) * self.cell_width,
            (self.y + 0.5) * self.cell_height,
        )

    @property
    def rect(self) -> Rect:
        """Visual rectangle in world pixels."""
        cx, cy = self.center
        return Rect.from_center(cx, cy, self.width, self.height)

    @property
    def hitbox(self) -> Rect:
        return self.rect.scaled(PLAYER_HITBOX_SCALE)

    def handle_resize(self, cell_width: float, cell_height: float) -> None:
        self.cell_width = cell_width
        self.cell_height = cell_height

    # ===== RENDERING =====

    def draw(
        self,
        buffer: Buffer,
        offset_y: float,
        now_ms: float,
        assets: Optional[AssetLoader] = None,
    ) -> None:
        if (
            self.invincible
            and self.invincibility_source == InvincibilitySource.RESPAWN
            and int(now_ms // RESPAWN_FLASH_INTERVAL_MS) % 2 == 1
        ):
            return  # Flash off-phase

        rect = self.rect
        x = int(rect.x)
        y = int(rect.y - offset_y)
        cx, cy = int(rect.center_x), int(rect.center_y - offset_y)

        if self.invincible and self.invincibility_source == InvincibilitySource.BADGE:
            draw_circle(buffer, cx, cy, int(self.width * 0.75), self.SHIELD_COLOR, filled=False)

        sprite = assets.get(self.SPRITE, (self.width, self.height)) if assets else None
        if sprite is not None:
            draw_image(buffer, sprite, x, y)
        else:
            draw_rect(buffer, x + 10, y + 14, self.width - 20, self.height - 14, self.BODY_COLOR)
            draw_rect(buffer, x + 4, y + 8, self.width - 8, 6, self.HAT_COLOR)
            draw_rect(buffer, x + 14, y, self.width - 28, 10, self.HAT_COLOR)
