"""Goal zones in the topmost row."""

from outlaw.game.constants import GOAL_HEIGHT_FRACTION, GOAL_WIDTH_FRACTION
from outlaw.game.geometry import Rect
from outlaw.graphics.primitives import Buffer, draw_rect, draw_line


class Goal:
    """One of `count` evenly spaced saloon doors across the top row.

    `reached` only ever goes from False to True; a fresh Goal is built
    when the level regenerates.
    """

    OPEN_COLOR = (120, 72, 36)
    REACHED_COLOR = (255, 200, 40)
    FRAME_COLOR = (70, 40, 20)

    def __init__(self, index: int, count: int, viewport_width: float, cell_height: float) -> None:
        if not 0 <= index < count:
            raise ValueError(f"Goal index {index} out of range for {count} goals")
        self.index = index
        self.count = count
        self._reached = False
        self.handle_resize(viewport_width, cell_height)

    @property
    def reached(self) -> bool:
        return self._reached

    def mark_reached(self) -> bool:
        """Mark this goal reached. Returns False if it already was."""
        if self._reached:
            return False
        self._reached = True
        return True

    def handle_resize(self, viewport_width: float, cell_height: float) -> None:
        slot = viewport_width / self.count
        self.width = slot * GOAL_WIDTH_FRACTION
        self.height = cell_height * GOAL_HEIGHT_FRACTION
        self.center_x = slot * (self.index + 0.5)
        self.center_y = cell_height / 2

    @property
    def left(self) -> float:
        return self.center_x - self.width / 2

    @property
    def right(self) -> float:
        return self.center_x + self.width / 2

    @property
    def rect(self) -> Rect:
        return Rect.from_center(self.center_x, self.center_y, self.width, self.height)

    def contains(self, px: float) -> bool:
        """Whether a horizontal pixel position lies strictly inside the goal."""
        return self.left < px < self.right

    def draw(self, buffer: Buffer, offset_y: float) -> None:
        rect = self.rect
        x, y = int(rect.x), int(rect.y - offset_y)
        w, h = int(rect.width), int(rect.height)
        color = self.REACHED_COLOR if self._reached else self.OPEN_COLOR
        draw_rect(buffer, x, y, w, h, color)
        draw_rect(buffer, x, y, w, h, self.FRAME_COLOR, filled=False, thickness=3)
        if not self._reached:
            # Swinging doors
            mid = x + w // 2
            draw_line(buffer, mid, y + h // 4, mid, y + h - h // 4, self.FRAME_COLOR, thickness=2)
