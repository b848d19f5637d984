"""Level templates and the difficulty-driven level generator.

Templates are hand-authored and listed top to bottom. The first lane is
the goal zone, the last is the start zone, and the lanes in between are
repeated to fill every row between them. Templates are validated with
pydantic when the generator is built, so a broken template fails before
any level is played.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, List, Literal, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from outlaw.game.constants import (
    BADGES_PER_LEVEL,
    COINS_PER_LANE,
    MAX_COINS_PER_LANE,
    MAX_GOAL_COUNT,
    ObstacleArchetype,
    frequency_multiplier,
)
from outlaw.game.lane import LaneCategory

logger = logging.getLogger(__name__)


class LevelConfigError(ValueError):
    """A level template is malformed."""


class LaneTemplate(BaseModel):
    """One authored lane."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: LaneCategory
    direction: Literal["left", "right"] = "left"
    archetype: Optional[ObstacleArchetype] = None
    frequency: float = Field(default=0.0, ge=0.0, le=5.0)  # obstacles per second

    @model_validator(mode="after")
    def _check_obstacles(self) -> "LaneTemplate":
        if self.category == LaneCategory.SAFE:
            if self.archetype is not None or self.frequency > 0:
                raise ValueError("safe lanes cannot carry obstacles")
        elif self.archetype is None or self.frequency <= 0:
            raise ValueError(
                f"{self.category.value} lanes need an archetype and a positive frequency"
            )
        return self

    @property
    def step(self) -> int:
        return 1 if self.direction == "right" else -1


class LevelTemplate(BaseModel):
    """A full level: goal zone, hazard section, start zone."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lanes: List[LaneTemplate] = Field(min_length=3)
    goal_count: int = Field(ge=1, le=MAX_GOAL_COUNT)

    @model_validator(mode="after")
    def _check_shape(self) -> "LevelTemplate":
        if self.lanes[0].category != LaneCategory.SAFE:
            raise ValueError("first lane (goal zone) must be safe")
        if self.lanes[-1].category != LaneCategory.SAFE:
            raise ValueError("last lane (start zone) must be safe")
        if not any(lane.category != LaneCategory.SAFE for lane in self.lanes[1:-1]):
            raise ValueError("a level needs at least one hazard lane")
        return self

    @property
    def middle(self) -> List[LaneTemplate]:
        return self.lanes[1:-1]


def _safe() -> dict:
    return {"category": "safe"}


def _road(direction: str, archetype: str, frequency: float) -> dict:
    return {"category": "road", "direction": direction, "archetype": archetype, "frequency": frequency}


def _river(direction: str, archetype: str, frequency: float) -> dict:
    return {"category": "river", "direction": direction, "archetype": archetype, "frequency": frequency}


DEFAULT_TEMPLATES: List[dict] = [
    # Level 1: one hazard lane between safe strips
    {
        "goal_count": 3,
        "lanes": [
            _safe(),
            _road("left", "train", 0.1),
            _safe(),
            _road("right", "horse", 0.15),
            _safe(),
            _road("left", "tumbleweed", 0.2),
            _safe(),
            _road("right", "train", 0.1),
            _safe(),
            _road("left", "horse", 0.15),
            _safe(),
            _road("right", "tumbleweed", 0.2),
            _safe(),
            _road("left", "horse", 0.15),
            _safe(),
        ],
    },
    # Level 2: paired hazard lanes and the first river crossing
    {
        "goal_count": 4,
        "lanes": [
            _safe(),
            _road("left", "train", 0.15),
            _safe(),
            _road("right", "tumbleweed", 0.2),
            _road("left", "horse", 0.25),
            _safe(),
            _road("right", "train", 0.15),
            _safe(),
            _river("left", "tumbleweed", 0.3),
            _road("right", "horse", 0.2),
            _safe(),
            _road("left", "cactus", 0.1),
            _safe(),
            _road("right", "tumbleweed", 0.25),
            _road("left", "horse", 0.2),
            _safe(),
        ],
    },
    # Level 3: long hazard runs, cacti and rivers
    {
        "goal_count": 5,
        "lanes": [
            _safe(),
            _road("right", "train", 0.25),
            _road("left", "tumbleweed", 0.35),
            _safe(),
            _road("right", "horse", 0.3),
            _road("left", "train", 0.2),
            _safe(),
            _river("right", "tumbleweed", 0.35),
            _road("left", "horse", 0.25),
            _safe(),
            _road("right", "train", 0.2),
            _road("left", "cactus", 0.15),
            _safe(),
            _road("right", "horse", 0.25),
            _road("left", "train", 0.2),
            _safe(),
            _river("right", "tumbleweed", 0.3),
            _road("left", "horse", 0.25),
            _safe(),
        ],
    },
]


def load_templates(raw: Sequence[Mapping[str, Any]]) -> List[LevelTemplate]:
    """Validate raw template dictionaries.

    Raises:
        LevelConfigError: If there are no templates or any is malformed
    """
    if not raw:
        raise LevelConfigError("at least one level template is required")

    templates = []
    for number, entry in enumerate(raw, start=1):
        try:
            templates.append(LevelTemplate.model_validate(entry))
        except ValidationError as e:
            raise LevelConfigError(f"level template {number} is malformed: {e}") from e
    return templates


@dataclass(frozen=True)
class LaneLayout:
    """Concrete lane for one grid row."""
    row: int
    category: LaneCategory
    direction: int
    archetype: Optional[ObstacleArchetype] = None
    frequency: float = 0.0  # base, before difficulty scaling


@dataclass
class LevelLayout:
    """Everything the controller needs to build one level generation."""
    difficulty: float
    template_index: int
    goal_count: int
    lanes: List[LaneLayout] = field(default_factory=list)
    coins: List[Tuple[int, int]] = field(default_factory=list)
    badges: List[Tuple[int, int]] = field(default_factory=list)


class LevelGenerator:
    """Turns a difficulty scalar into a concrete level layout.

    Args:
        templates: Raw template dicts (DEFAULT_TEMPLATES if None)
        grid_cols: Columns in the grid
        grid_rows: Rows in the grid
        start_row: Row the player starts on; it and every row below are safe
        rng: Random source for pickup placement
    """

    def __init__(
        self,
        templates: Optional[Sequence[Mapping[str, Any]]] = None,
        grid_cols: int = 8,
        grid_rows: int = 30,
        start_row: int = 27,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not 1 < start_row < grid_rows:
            raise LevelConfigError(f"start row {start_row} must lie inside a {grid_rows}-row grid below the goal row")
        self.templates = load_templates(DEFAULT_TEMPLATES if templates is None else templates)
        self.grid_cols = grid_cols
        self.grid_rows = grid_rows
        self.start_row = start_row
        self.rng = rng or random.Random()

    def template_index(self, difficulty: float) -> int:
        return max(0, min(len(self.templates) - 1, math.floor(difficulty) - 1))

    def goal_count(self, difficulty: float) -> int:
        """Template goal count, plus one per whole difficulty past the last template."""
        template = self.templates[self.template_index(difficulty)]
        extra = max(0, int(difficulty) - len(self.templates))
        return min(MAX_GOAL_COUNT, template.goal_count + extra)

    def coin_cap(self, difficulty: float) -> int:
        """Upper bound for coins in one safe lane."""
        return min(MAX_COINS_PER_LANE, round(COINS_PER_LANE * frequency_multiplier(difficulty)))

    def generate(self, difficulty: float) -> LevelLayout:
        difficulty = max(1.0, difficulty)
        index = self.template_index(difficulty)
        template = self.templates[index]
        middle = template.middle

        layout = LevelLayout(
            difficulty=difficulty,
            template_index=index,
            goal_count=self.goal_count(difficulty),
        )

        layout.lanes.append(LaneLayout(row=0, category=LaneCategory.SAFE, direction=1))

        # Repeat the middle section upward so its last lane sits just above the start zone
        for row in range(1, self.start_row):
            from_bottom = (self.start_row - 1 - row) % len(middle)
            lane = middle[len(middle) - 1 - from_bottom]
            layout.lanes.append(LaneLayout(
                row=row,
                category=lane.category,
                direction=lane.step,
                archetype=lane.archetype,
                frequency=lane.frequency,
            ))

        for row in range(self.start_row, self.grid_rows):
            layout.lanes.append(LaneLayout(row=row, category=LaneCategory.SAFE, direction=1))

        self._place_pickups(layout, difficulty)

        logger.info(
            f"Generated level: difficulty {difficulty:.2f}, template {index + 1}, "
            f"{layout.goal_count} goals, {len(layout.coins)} coins, {len(layout.badges)} badges"
        )
        return layout

    def _place_pickups(self, layout: LevelLayout, difficulty: float) -> None:
        safe_rows = [
            lane.row for lane in layout.lanes
            if lane.category == LaneCategory.SAFE and 0 < lane.row < self.start_row
        ]
        cap = self.coin_cap(difficulty)
        taken: dict[int, set[int]] = {}

        for row in safe_rows:
            count = min(self.grid_cols, self.rng.randint(0, cap))
            cols = self.rng.sample(range(self.grid_cols), count)
            taken[row] = set(cols)
            layout.coins.extend((col, row) for col in sorted(cols))

        for _ in range(BADGES_PER_LEVEL):
            candidates = [row for row in safe_rows if len(taken[row]) < self.grid_cols]
            if not candidates:
                break
            row = self.rng.choice(candidates)
            col = self.rng.choice([c for c in range(self.grid_cols) if c not in taken[row]])
            taken[row].add(col)
            layout.badges.append((col, row))
