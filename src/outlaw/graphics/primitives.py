"""Drawing primitives for the simulation frame buffer.

The frame is a numpy array shaped (height, width, 3). Everything clips to
the buffer, so entities partly above or below the camera can be drawn
without bounds checks of their own.
"""

from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

Color = Tuple[int, int, int]
Buffer = NDArray[np.uint8]

Span = Tuple[slice, slice]


def create_buffer(width: int, height: int) -> Buffer:
    return np.zeros((height, width, 3), dtype=np.uint8)


def fill(buffer: Buffer, color: Color) -> None:
    buffer[...] = color


def scale_color(color: Color, factor: float) -> Color:
    """Darken (factor < 1) or brighten a color, clamped to 0-255."""
    return tuple(max(0, min(255, int(c * factor))) for c in color)


def _clip(buffer: Buffer, x: int, y: int, width: int, height: int) -> Optional[Span]:
    """Row and column slices of the on-screen part of a box, or None."""
    h, w = buffer.shape[:2]
    x0, x1 = max(0, x), min(w, x + width)
    y0, y1 = max(0, y), min(h, y + height)
    if x1 <= x0 or y1 <= y0:
        return None
    return slice(y0, y1), slice(x0, x1)


def draw_rect(
    buffer: Buffer,
    x: int,
    y: int,
    width: int,
    height: int,
    color: Color,
    filled: bool = True,
    thickness: int = 1,
) -> None:
    """Solid box, or a border `thickness` pixels wide when filled is False."""
    if filled:
        span = _clip(buffer, x, y, width, height)
        if span is not None:
            buffer[span] = color
        return

    t = max(1, min(thickness, width, height))
    for box in (
        (x, y, width, t),
        (x, y + height - t, width, t),
        (x, y, t, height),
        (x + width - t, y, t, height),
    ):
        draw_rect(buffer, *box, color)


def draw_circle(
    buffer: Buffer,
    cx: int,
    cy: int,
    radius: int,
    color: Color,
    filled: bool = True,
) -> None:
    """Disc, or a 2px ring when filled is False (badge shield, coin rim)."""
    if radius <= 0:
        return
    span = _clip(buffer, cx - radius, cy - radius, 2 * radius + 1, 2 * radius + 1)
    if span is None:
        return

    rows, cols = span
    yy, xx = np.ogrid[rows, cols]
    dist_sq = (xx - cx) ** 2 + (yy - cy) ** 2
    mask = dist_sq <= radius * radius
    if not filled:
        mask &= dist_sq > max(0, radius - 2) ** 2
    buffer[span][mask] = color


def draw_line(
    buffer: Buffer,
    x1: int,
    y1: int,
    x2: int,
    y2: int,
    color: Color,
    thickness: int = 1,
) -> None:
    """Straight line; rails and lane markings are horizontal, tumbleweed spokes are not."""
    half = thickness // 2
    if y1 == y2:
        lo, hi = sorted((x1, x2))
        draw_rect(buffer, lo, y1 - half, hi - lo + 1, thickness, color)
        return
    if x1 == x2:
        lo, hi = sorted((y1, y2))
        draw_rect(buffer, x1 - half, lo, thickness, hi - lo + 1, color)
        return

    # Bresenham, stamping a thickness-sized square at each step
    dx, dy = abs(x2 - x1), abs(y2 - y1)
    sx = 1 if x1 < x2 else -1
    sy = 1 if y1 < y2 else -1
    err = dx - dy
    x, y = x1, y1
    while True:
        draw_rect(buffer, x - half, y - half, thickness, thickness, color)
        if x == x2 and y == y2:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy


# 3x5 glyphs for score popups ("+500", "+1000")
_GLYPHS = {
    '0': ("010", "101", "101", "101", "010"),
    '1': ("010", "110", "010", "010", "111"),
    '2': ("110", "001", "010", "100", "111"),
    '3': ("110", "001", "010", "001", "110"),
    '4': ("101", "101", "111", "001", "001"),
    '5': ("111", "100", "110", "001", "110"),
    '6': ("011", "100", "110", "101", "010"),
    '7': ("111", "001", "010", "010", "010"),
    '8': ("010", "101", "010", "101", "010"),
    '9': ("010", "101", "011", "001", "110"),
    '+': ("000", "010", "111", "010", "000"),
    '-': ("000", "000", "111", "000", "000"),
}
_GLYPH_W, _GLYPH_H = 3, 5


def text_width(text: str, scale: int = 1) -> int:
    """Pixels draw_text advances for text (one blank column per glyph)."""
    return len(text) * (_GLYPH_W + 1) * scale


def draw_text(
    buffer: Buffer,
    text: str,
    x: int,
    y: int,
    color: Color,
    scale: int = 1,
) -> Tuple[int, int]:
    """Blocky bitmap text; characters without a glyph leave a gap.

    Returns:
        (width, height) of the drawn text in pixels
    """
    for i, char in enumerate(text.upper()):
        glyph = _GLYPHS.get(char)
        if glyph is None:
            continue
        left = x + i * (_GLYPH_W + 1) * scale
        for row, bits in enumerate(glyph):
            for col, bit in enumerate(bits):
                if bit == "1":
                    draw_rect(buffer, left + col * scale, y + row * scale, scale, scale, color)
    return text_width(text, scale), _GLYPH_H * scale


def draw_image(buffer: Buffer, image: Buffer, x: int, y: int, alpha: float = 1.0) -> None:
    """Blit an RGB or RGBA sprite with its top-left corner at (x, y)."""
    img_h, img_w = image.shape[:2]
    span = _clip(buffer, x, y, img_w, img_h)
    if span is None:
        return

    rows, cols = span
    src = image[rows.start - y:rows.stop - y, cols.start - x:cols.stop - x]
    if image.shape[2] == 3 and alpha >= 1.0:
        buffer[span] = src
        return

    if image.shape[2] == 4:
        weight = src[:, :, 3:4] / 255.0 * alpha
    else:
        weight = alpha
    dst = buffer[span]
    buffer[span] = (src[:, :, :3] * weight + dst * (1 - weight)).astype(np.uint8)
