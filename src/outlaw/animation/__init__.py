"""Animation helpers: easing curves and particle effects."""

from outlaw.animation.easing import Easing, ease, lerp, lerp_color, life_progress
from outlaw.animation.particles import (
    Particle,
    EmitterConfig,
    ParticleEmitter,
    ParticlePresets,
)

__all__ = [
    "Easing",
    "ease",
    "lerp",
    "lerp_color",
    "life_progress",
    "Particle",
    "EmitterConfig",
    "ParticleEmitter",
    "ParticlePresets",
]
