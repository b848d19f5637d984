"""Vertical scrolling camera.

The offset follows the player with a first-order low-pass filter:
offset += (target - offset) * smoothing. Tracking is snappier while the
player is moving and calmer once it settles. There is no overshoot.
"""

from outlaw.game.constants import (
    CAMERA_ANCHOR_FRACTION,
    CAMERA_IDLE_SMOOTHING,
    CAMERA_MOVING_SMOOTHING,
)


class Camera:
    """Scroll offset in world pixels (0 shows the goal row at the top)."""

    def __init__(
        self,
        cell_height: float,
        total_rows: int,
        visible_rows: int,
        anchor_fraction: float = CAMERA_ANCHOR_FRACTION,
        moving_smoothing: float = CAMERA_MOVING_SMOOTHING,
        idle_smoothing: float = CAMERA_IDLE_SMOOTHING,
    ) -> None:
        self.cell_height = cell_height
        self.total_rows = total_rows
        self.visible_rows = visible_rows
        self.anchor_fraction = anchor_fraction
        self.moving_smoothing = moving_smoothing
        self.idle_smoothing = idle_smoothing
        self.offset = 0.0
        self.target = 0.0

    @property
    def max_offset(self) -> float:
        return max(0, self.total_rows - self.visible_rows) * self.cell_height

    def target_for(self, player_grid_y: float) -> float:
        """Offset that puts the player's center anchor_fraction up from the bottom."""
        player_center = (player_grid_y + 0.5) * self.cell_height
        view_height = self.visible_rows * self.cell_height
        ideal = player_center - view_height * (1.0 - self.anchor_fraction)
        return max(0.0, min(self.max_offset, ideal))

    def update(self, player_grid_y: float, moving: bool = False) -> None:
        self.target = self.target_for(player_grid_y)
        smoothing = self.moving_smoothing if moving else self.idle_smoothing
        self.offset += (self.target - self.offset) * smoothing

    def snap(self, player_grid_y: float) -> None:
        """Jump straight to the target, e.g. at level start."""
        self.target = self.target_for(player_grid_y)
        self.offset = self.target

    def handle_resize(self, cell_height: float) -> None:
        # Keep the same rows in view
        if self.cell_height > 0:
            ratio = cell_height / self.cell_height
            self.offset *= ratio
            self.target *= ratio
        self.cell_height = cell_height

    def world_to_screen(self, world_y: float) -> float:
        return world_y - self.offset
