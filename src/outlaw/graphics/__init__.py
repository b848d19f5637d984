"""Graphics for Outlaw Crossing: numpy drawing primitives and sprite loading."""

from outlaw.graphics.primitives import (
    Buffer,
    Color,
    create_buffer,
    fill,
    draw_rect,
    draw_circle,
    draw_line,
    draw_text,
    draw_image,
)
from outlaw.graphics.assets import AssetLoader, LoadState

__all__ = [
    "Buffer",
    "Color",
    "create_buffer",
    "fill",
    "draw_rect",
    "draw_circle",
    "draw_line",
    "draw_text",
    "draw_image",
    "AssetLoader",
    "LoadState",
]
