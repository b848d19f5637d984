"""Lane-crossing gameplay: entities, level generation and the simulation."""

from outlaw.game.camera import Camera
from outlaw.game.constants import ARCHETYPES, ArchetypeSpec, ObstacleArchetype
from outlaw.game.geometry import Rect, overlaps
from outlaw.game.goal import Goal
from outlaw.game.lane import Lane, LaneCategory
from outlaw.game.levels import LevelConfigError, LevelGenerator, LevelLayout
from outlaw.game.obstacle import Obstacle
from outlaw.game.pickups import Badge, Coin, Pickup, PickupState
from outlaw.game.player import Direction, InvincibilitySource, Player
from outlaw.game.simulation import CrossingSimulation, GameCallbacks, SimulationSnapshot

__all__ = [
    "ARCHETYPES",
    "ArchetypeSpec",
    "Badge",
    "Camera",
    "Coin",
    "CrossingSimulation",
    "Direction",
    "GameCallbacks",
    "Goal",
    "InvincibilitySource",
    "Lane",
    "LaneCategory",
    "LevelConfigError",
    "LevelGenerator",
    "LevelLayout",
    "Obstacle",
    "ObstacleArchetype",
    "Pickup",
    "PickupState",
    "Player",
    "Rect",
    "SimulationSnapshot",
    "overlaps",
]
