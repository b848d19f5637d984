"""Particle effects: pickup bursts and locomotive smoke.

Particles live in world pixels and are drawn with a vertical camera
offset. Times are milliseconds, velocities pixels per second. Every
effect here is cosmetic; nothing in the simulation reads particle state
except to know when an effect has finished.
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass
import random
import math
import numpy as np

from outlaw.animation.easing import Easing, lerp, lerp_color, life_progress
from outlaw.graphics.primitives import Buffer

RGB = Tuple[int, int, int]
Range = Tuple[float, float]


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    life_ms: float
    color: RGB
    fade_to: RGB
    radius: float
    radius_end: float
    opacity: float
    age_ms: float = 0.0

    @property
    def alive(self) -> bool:
        return self.age_ms < self.life_ms

    def step(self, delta_ms: float, gravity: float, drag: float) -> None:
        dt = delta_ms / 1000.0
        self.vy += gravity * dt
        if drag > 0:
            keep = max(0.0, 1.0 - drag * dt)
            self.vx *= keep
            self.vy *= keep
        self.x += self.vx * dt
        self.y += self.vy * dt
        self.age_ms += delta_ms

    def look(self) -> Tuple[int, RGB]:
        """Current radius and opacity-scaled color."""
        t = life_progress(self.age_ms, self.life_ms)
        radius = int(lerp(self.radius, self.radius_end, t))
        alpha = self.opacity * (1.0 - lerp(0.0, 1.0, t, Easing.EASE_IN_QUAD))
        r, g, b = lerp_color(self.color, self.fade_to, t)
        return radius, (int(r * alpha), int(g * alpha), int(b * alpha))


@dataclass
class EmitterConfig:
    """How an emitter spawns particles. Ranges are (low, high)."""

    x: float = 0.0
    y: float = 0.0
    spread: Range = (0.0, 0.0)  # jitter of the spawn point, x and y
    per_second: float = 0.0  # 0 for burst-only effects
    burst: int = 10
    cap: int = 64
    speed: Range = (50.0, 100.0)
    heading: Range = (0.0, 360.0)  # degrees, 90 points down the screen
    gravity: float = 0.0
    drag: float = 0.0
    radius: Range = (1.0, 2.0)
    radius_end: Range = (0.0, 0.0)
    color: RGB = (255, 255, 255)
    fade_to: Optional[RGB] = None
    jitter_color: float = 0.0
    opacity: float = 1.0
    life_ms: Range = (500.0, 1000.0)


class ParticleEmitter:
    """Owns a pool of particles; continuous emitters also trickle new ones."""

    def __init__(self, config: EmitterConfig, rng: Optional[random.Random] = None, continuous: Optional[bool] = None):
        self.config = config
        self.particles: List[Particle] = []
        self.continuous = config.per_second > 0 if continuous is None else continuous
        self._rng = rng or random.Random()
        self._carry_ms = 0.0

    @property
    def live_count(self) -> int:
        return len(self.particles)

    @property
    def finished(self) -> bool:
        return not self.continuous and not self.particles

    def move_to(self, x: float, y: float) -> None:
        self.config.x = x
        self.config.y = y

    def burst(self, count: Optional[int] = None) -> None:
        self.emit(self.config.burst if count is None else count)

    def emit(self, count: int) -> None:
        room = self.config.cap - len(self.particles)
        for _ in range(max(0, min(count, room))):
            self.particles.append(self._spawn())

    def _spawn(self) -> Particle:
        cfg = self.config
        rng = self._rng
        heading = math.radians(rng.uniform(*cfg.heading))
        speed = rng.uniform(*cfg.speed)
        color = self._tint(cfg.color)
        return Particle(
            x=cfg.x + rng.uniform(-cfg.spread[0], cfg.spread[0]) / 2,
            y=cfg.y + rng.uniform(-cfg.spread[1], cfg.spread[1]) / 2,
            vx=math.cos(heading) * speed,
            vy=math.sin(heading) * speed,
            life_ms=rng.uniform(*cfg.life_ms),
            color=color,
            fade_to=self._tint(cfg.fade_to) if cfg.fade_to else color,
            radius=rng.uniform(*cfg.radius),
            radius_end=rng.uniform(*cfg.radius_end),
            opacity=cfg.opacity,
        )

    def _tint(self, color: RGB) -> RGB:
        amount = self.config.jitter_color
        if amount <= 0:
            return color
        return tuple(
            max(0, min(255, int(c + c * amount * self._rng.uniform(-1, 1))))
            for c in color
        )

    def update(self, delta_ms: float) -> None:
        cfg = self.config
        if self.continuous and cfg.per_second > 0:
            self._carry_ms += delta_ms
            interval = 1000.0 / cfg.per_second
            while self._carry_ms >= interval:
                self._carry_ms -= interval
                self.emit(1)

        for particle in self.particles:
            particle.step(delta_ms, cfg.gravity, cfg.drag)
        self.particles = [p for p in self.particles if p.alive]

    def render(self, buffer: Buffer, offset_y: float = 0.0) -> None:
        """Additively blend every live particle as a filled disc."""
        h, w = buffer.shape[:2]
        for particle in self.particles:
            radius, color = particle.look()
            radius = max(1, radius)
            if not any(color):
                continue

            cx, cy = int(particle.x), int(particle.y - offset_y)
            x0, x1 = max(0, cx - radius), min(w, cx + radius + 1)
            y0, y1 = max(0, cy - radius), min(h, cy + radius + 1)
            if x1 <= x0 or y1 <= y0:
                continue

            yy, xx = np.ogrid[y0:y1, x0:x1]
            disc = (xx - cx) ** 2 + (yy - cy) ** 2 <= radius * radius
            patch = buffer[y0:y1, x0:x1]
            lit = patch[disc].astype(np.int16) + np.array(color, dtype=np.int16)
            patch[disc] = np.minimum(lit, 255).astype(np.uint8)

    def clear(self) -> None:
        self.particles.clear()
        self._carry_ms = 0.0


class ParticlePresets:
    """Effect configurations used by pickups and obstacles."""

    @staticmethod
    def coin_burst(x: float, y: float) -> EmitterConfig:
        """Gold sparks when a coin is grabbed."""
        return EmitterConfig(
            x=x, y=y,
            burst=24, cap=40,
            speed=(60, 180),
            gravity=120, drag=0.05,
            radius=(1.5, 3.5), radius_end=(0, 0.5),
            color=(255, 230, 120), fade_to=(255, 170, 0), jitter_color=0.2,
            life_ms=(400, 800),
        )

    @staticmethod
    def badge_burst(x: float, y: float) -> EmitterConfig:
        """Bigger silver-to-gold star burst for the sheriff badge."""
        return EmitterConfig(
            x=x, y=y,
            burst=40, cap=60,
            speed=(80, 220),
            gravity=60, drag=0.08,
            radius=(2, 4), radius_end=(0, 1),
            color=(255, 255, 255), fade_to=(255, 215, 0), jitter_color=0.3,
            life_ms=(500, 1000),
        )

    @staticmethod
    def train_smoke(x: float, y: float) -> EmitterConfig:
        """Grey puffs rising from the locomotive stack."""
        return EmitterConfig(
            x=x, y=y,
            spread=(6, 4),
            per_second=8, burst=0, cap=24,
            speed=(15, 35), heading=(250, 290),
            gravity=-10, drag=0.2,
            radius=(4, 6), radius_end=(9, 13),
            color=(90, 90, 90), fade_to=(40, 40, 40), jitter_color=0.1,
            opacity=0.6,
            life_ms=(700, 1200),
        )
