"""Axis-aligned rectangle geometry used by every collision test.

Coordinates are pixels with y increasing downward and (x, y) at the
top-left corner. Rectangles cover the half-open ranges [x, x + width)
and [y, y + height), so rectangles that only share an edge never overlap.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    """Immutable axis-aligned rectangle."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> "Rect":
        return cls(cx - width / 2, cy - height / 2, width, height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def scaled(self, factor_x: float, factor_y: float | None = None) -> "Rect":
        """Return a copy resized about its center.

        Factors below 1 shrink (hazard hitboxes), above 1 expand
        (pickup catch areas).
        """
        if factor_y is None:
            factor_y = factor_x
        return Rect.from_center(
            self.center_x, self.center_y,
            self.width * factor_x, self.height * factor_y,
        )

    def overlaps(self, other: "Rect") -> bool:
        return overlaps(self, other)

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px < self.right and self.y <= py < self.bottom


def overlaps(a: Rect, b: Rect) -> bool:
    """True iff the half-open intervals of a and b intersect on both axes."""
    return (
        a.x < b.x + b.width and b.x < a.x + a.width
        and a.y < b.y + b.height and b.y < a.y + a.height
    )


def centers_close(a: Rect, b: Rect, factor: float) -> bool:
    """True when the centers are within factor * combined size on both axes."""
    dx = abs(a.center_x - b.center_x)
    dy = abs(a.center_y - b.center_y)
    return dx < (a.width + b.width) * factor and dy < (a.height + b.height) * factor


def horizontal_gap(a: Rect, b: Rect) -> float:
    """Empty horizontal space between two rectangles (negative if they overlap)."""
    if a.x <= b.x:
        return b.x - a.right
    return a.x - b.right
