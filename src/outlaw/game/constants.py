"""Tuning constants and the obstacle archetype table.

All times are milliseconds and all speeds are pixels per second.
Per-archetype numbers live in ARCHETYPES so spawn, collision and draw
code never branch on the archetype directly.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

# Base viewport the sizes below were tuned for
BASE_WIDTH = 800
BASE_HEIGHT = 600

# Player
PLAYER_WIDTH = 50
PLAYER_HEIGHT = 50
PLAYER_HITBOX_SCALE = 0.7
PLAYER_SNAP_EPSILON = 0.001  # cells
RESPAWN_FLASH_INTERVAL_MS = 200.0

# Scoring
POINTS_FOR_CROSSING = 100
POINTS_FOR_GOAL = 500
POINTS_FOR_COIN = 500
POINTS_FOR_BADGE = 1000

# Pickups
COIN_SIZE = 40
BADGE_SIZE = 44
COIN_HITBOX_EXPAND = 1.1
BADGE_HITBOX_EXPAND = 1.2
COIN_PROXIMITY_FACTOR = 0.375
BADGE_PROXIMITY_FACTOR = 0.45
COINS_PER_LANE = 3
MAX_COINS_PER_LANE = 5
BADGES_PER_LEVEL = 1
PICKUP_POPUP_MS = 800.0

# Goals
GOAL_WIDTH_FRACTION = 0.8
GOAL_HEIGHT_FRACTION = 0.8
MAX_GOAL_COUNT = 6

# Obstacle speed and spawn frequency scaling
INITIAL_OBSTACLE_SPEED = 60.0
SPEED_INCREMENT = 18.0  # per unit of difficulty
MAX_OBSTACLE_SPEED = 300.0
FREQUENCY_INCREMENT = 0.2  # per unit of difficulty
MAX_FREQUENCY_MULTIPLIER = 2.0

# Lane spawning
BASE_SPAWN_COOLDOWN_MS = 250.0
POPULATE_SAFETY_FACTOR = 1.5

# Camera
CAMERA_ANCHOR_FRACTION = 0.5  # player center this far up from the bottom edge
CAMERA_MOVING_SMOOTHING = 0.25
CAMERA_IDLE_SMOOTHING = 0.1

Color = Tuple[int, int, int]


class ObstacleArchetype(Enum):
    """Obstacle kinds, each with a row in ARCHETYPES."""
    HORSE = "horse"            # grounded, fast
    TUMBLEWEED = "tumbleweed"  # grounded, slow, rotating
    TRAIN = "train"            # wide, slow convoy
    CACTUS = "cactus"          # stationary hazard, slowest mover


@dataclass(frozen=True)
class ArchetypeSpec:
    """Fixed size and behaviour multipliers for one archetype."""

    width: int
    height: int
    speed_multiplier: float
    min_speed: float
    max_speed: float
    deadly: bool
    # Population walks at least width * spawn_spacing_multiplier apart (center to center)
    spawn_spacing_multiplier: float
    # Live obstacles keep at least min_gap of empty space (edge to edge)
    overlap_buffer_multiplier: float
    hitbox_scale_x: float
    hitbox_scale_y: float
    spawn_margin: float      # how far offscreen new obstacles appear
    despawn_margin: float    # how far past an edge before removal
    jitter: float            # fraction of spacing, at most 0.1
    max_active: int          # oldest evicted beyond this
    cooldown_increase_ms: float
    max_cooldown_ms: float
    color: Color
    rotates: bool = False
    smokes: bool = False
    sprite: str = ""

    @property
    def min_spacing(self) -> float:
        return self.width * self.spawn_spacing_multiplier

    @property
    def min_gap(self) -> float:
        """Smallest edge-to-edge gap allowed between two live obstacles; never below min_spacing."""
        return self.width * max(self.overlap_buffer_multiplier, self.spawn_spacing_multiplier)

    def effective_speed(self, lane_speed: float) -> float:
        """Clamp the lane speed scaled by this archetype's multiplier."""
        return max(self.min_speed, min(self.max_speed, lane_speed * self.speed_multiplier))


ARCHETYPES: Dict[ObstacleArchetype, ArchetypeSpec] = {
    ObstacleArchetype.HORSE: ArchetypeSpec(
        width=100, height=50,
        speed_multiplier=1.5, min_speed=72.0, max_speed=360.0,
        deadly=True,
        spawn_spacing_multiplier=3.5, overlap_buffer_multiplier=3.5,
        hitbox_scale_x=0.8, hitbox_scale_y=0.9,
        spawn_margin=200.0, despawn_margin=300.0,
        jitter=0.03,
        max_active=4,
        cooldown_increase_ms=300.0, max_cooldown_ms=1500.0,
        color=(139, 90, 43),
        sprite="horse.png",
    ),
    ObstacleArchetype.TUMBLEWEED: ArchetypeSpec(
        width=50, height=50,
        speed_multiplier=1.0, min_speed=48.0, max_speed=300.0,
        deadly=True,
        spawn_spacing_multiplier=3.0, overlap_buffer_multiplier=3.0,
        hitbox_scale_x=0.9, hitbox_scale_y=0.9,
        spawn_margin=100.0, despawn_margin=150.0,
        jitter=0.05,
        max_active=8,
        cooldown_increase_ms=100.0, max_cooldown_ms=1500.0,
        color=(181, 148, 90),
        rotates=True,
        sprite="tumbleweed.png",
    ),
    ObstacleArchetype.TRAIN: ArchetypeSpec(
        width=160, height=70,
        speed_multiplier=0.8, min_speed=48.0, max_speed=240.0,
        deadly=True,
        spawn_spacing_multiplier=4.5, overlap_buffer_multiplier=4.5,
        hitbox_scale_x=0.7, hitbox_scale_y=0.8,
        spawn_margin=250.0, despawn_margin=410.0,
        jitter=0.02,
        max_active=3,
        cooldown_increase_ms=500.0, max_cooldown_ms=2000.0,
        color=(60, 60, 70),
        smokes=True,
        sprite="train.png",
    ),
    ObstacleArchetype.CACTUS: ArchetypeSpec(
        width=50, height=70,
        speed_multiplier=0.6, min_speed=36.0, max_speed=60.0,
        deadly=True,
        spawn_spacing_multiplier=3.0, overlap_buffer_multiplier=3.0,
        hitbox_scale_x=0.9, hitbox_scale_y=0.9,
        spawn_margin=100.0, despawn_margin=150.0,
        jitter=0.05,
        max_active=8,
        cooldown_increase_ms=100.0, max_cooldown_ms=1500.0,
        color=(46, 125, 50),
        sprite="cactus.png",
    ),
}


def frequency_multiplier(difficulty: float) -> float:
    """Spawn frequency scale, capped at MAX_FREQUENCY_MULTIPLIER."""
    return min(MAX_FREQUENCY_MULTIPLIER, 1.0 + (difficulty - 1.0) * FREQUENCY_INCREMENT)


def obstacle_speed(difficulty: float) -> float:
    """Lane base speed for a difficulty, before the archetype multiplier."""
    return min(MAX_OBSTACLE_SPEED, INITIAL_OBSTACLE_SPEED + (difficulty - 1.0) * SPEED_INCREMENT)
