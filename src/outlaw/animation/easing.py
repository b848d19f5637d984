"""Easing curves for short-lived effects.

Effects here are timed in milliseconds: a particle or popup has an age and
a life, life_progress() turns that into 0..1, and ease() shapes it.
"""

from enum import Enum
import math


class Easing(Enum):
    """Curve shapes used by particles and score popups."""

    LINEAR = "linear"
    EASE_IN_QUAD = "ease_in_quad"
    EASE_OUT_CUBIC = "ease_out_cubic"
    EASE_IN_OUT_SINE = "ease_in_out_sine"


def life_progress(age_ms: float, life_ms: float) -> float:
    """Fraction of a lifetime that has elapsed, clamped to 0..1."""
    if life_ms <= 0:
        return 1.0
    return max(0.0, min(1.0, age_ms / life_ms))


def ease(curve: Easing, t: float) -> float:
    """Apply an easing curve to a clamped 0..1 value."""
    t = max(0.0, min(1.0, t))
    if curve == Easing.EASE_IN_QUAD:
        return t * t
    if curve == Easing.EASE_OUT_CUBIC:
        return 1 - (1 - t) ** 3
    if curve == Easing.EASE_IN_OUT_SINE:
        return (1 - math.cos(math.pi * t)) / 2
    return t


def lerp(start: float, end: float, t: float, curve: Easing = Easing.LINEAR) -> float:
    return start + (end - start) * ease(curve, t)


def lerp_color(
    start: tuple[int, int, int],
    end: tuple[int, int, int],
    t: float,
    curve: Easing = Easing.LINEAR
) -> tuple[int, int, int]:
    """Blend two RGB colors channel by channel."""
    return tuple(int(lerp(a, b, t, curve)) for a, b in zip(start, end))
