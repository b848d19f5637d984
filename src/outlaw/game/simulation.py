"""Crossing simulation: the authoritative game tick.

CrossingSimulation owns the player, lanes, goals, pickups and camera and
is the only place lives, score and difficulty change. Gameplay outcomes
(collisions, pickups, goals, running out of lives) are reported through
callbacks and EventBus events; nothing in a tick raises for them.

Typical host loop:

    sim = CrossingSimulation(callbacks=GameCallbacks(on_game_over=...))
    sim.setup(800, 600)
    sim.start_level(1)
    while running:
        sim.handle_input(Direction.UP)   # on key press
        sim.update(delta_ms)
        sim.draw(buffer)
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence

from outlaw.config.settings import Settings, get_settings
from outlaw.core.events import Event, EventBus, EventType, sound_event
from outlaw.core.state import State, StateContext, StateMachine, TransitionReason
from outlaw.game.camera import Camera
from outlaw.game.constants import POINTS_FOR_CROSSING, POINTS_FOR_GOAL
from outlaw.game.goal import Goal
from outlaw.game.lane import Lane
from outlaw.game.levels import LevelGenerator, LevelLayout
from outlaw.game.pickups import Badge, Coin, Pickup
from outlaw.game.player import Direction, InvincibilitySource, Player
from outlaw.graphics.assets import AssetLoader
from outlaw.graphics.primitives import Buffer, fill

logger = logging.getLogger(__name__)


@dataclass
class GameCallbacks:
    """Outcome hooks for the UI layer. Every hook is optional."""
    on_life_lost: Optional[Callable[[int], None]] = None
    on_game_over: Optional[Callable[[], None]] = None
    on_level_complete: Optional[Callable[[int], None]] = None
    on_victory: Optional[Callable[[int], None]] = None
    on_score_updated: Optional[Callable[[int], None]] = None
    on_difficulty_changed: Optional[Callable[[float], None]] = None
    on_pickup_collected: Optional[Callable[[str, int], None]] = None


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only numbers for HUDs and debug panels."""
    state: State
    score: int
    lives: int
    difficulty: float
    goals_reached: int
    goal_count: int
    player_cell: tuple[int, int]
    level_elapsed_ms: float


class CrossingSimulation:
    """Lane-crossing simulation controller.

    Args:
        callbacks: Outcome hooks
        event_bus: Optional event sink; receives outcome and SOUND_PLAY events
        settings: Configuration (get_settings() if None)
        assets: Sprite source; entities draw fallback shapes without one
        rng: Random source for level generation and spawn jitter
        templates: Raw level templates (built-in set if None)
    """

    BACKGROUND = (40, 28, 16)

    def __init__(
        self,
        callbacks: Optional[GameCallbacks] = None,
        event_bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
        assets: Optional[AssetLoader] = None,
        rng: Optional[random.Random] = None,
        templates: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.callbacks = callbacks or GameCallbacks()
        self.event_bus = event_bus
        self.assets = assets
        self.rng = rng or random.Random(self.settings.seed)

        grid = self.settings.grid
        self.grid_cols = grid.cells_x
        self.grid_rows = grid.cells_y
        self.visible_rows = grid.visible_rows
        self.start_col = grid.start_col
        self.start_row = grid.start_row

        self.generator = LevelGenerator(
            templates,
            grid_cols=self.grid_cols,
            grid_rows=self.grid_rows,
            start_row=self.start_row,
            rng=self.rng,
        )

        self.state_machine = StateMachine()
        self.state_machine.add_listener(self._on_state_changed)

        # Geometry, filled in by setup()
        self.viewport_width = 0.0
        self.viewport_height = 0.0
        self.cell_width = 0.0
        self.cell_height = 0.0

        self.player: Optional[Player] = None
        self.camera: Optional[Camera] = None
        self.layout: Optional[LevelLayout] = None
        self.lanes: List[Lane] = []
        self.goals: List[Goal] = []
        self.pickups: List[Pickup] = []
        self._retiring: List[Pickup] = []

        self.score = 0
        self.lives = self.settings.gameplay.starting_lives
        self.difficulty = 1.0
        self.time_ms = 0.0
        self._level_started_ms = 0.0
        self._level_base_difficulty = 1.0

    # ===== LIFECYCLE =====

    def setup(self, viewport_width: float, viewport_height: float) -> None:
        """One-time initialization for a viewport size in pixels."""
        if viewport_width <= 0 or viewport_height <= 0:
            raise ValueError(f"Viewport must be positive, got {viewport_width}x{viewport_height}")

        self.viewport_width = float(viewport_width)
        self.viewport_height = float(viewport_height)
        self.cell_width = self.viewport_width / self.grid_cols
        self.cell_height = self.viewport_height / self.visible_rows

        gameplay = self.settings.gameplay
        self.player = Player(
            self.start_col,
            self.start_row,
            self.cell_width,
            self.cell_height,
            self.grid_cols,
            self.grid_rows,
            move_cooldown_ms=gameplay.move_cooldown_ms,
            move_speed=gameplay.move_speed_cells_per_s,
        )
        self.camera = Camera(self.cell_height, self.grid_rows, self.visible_rows)
        self.camera.snap(self.start_row)

        logger.info(
            f"Simulation set up: {viewport_width}x{viewport_height}, "
            f"grid {self.grid_cols}x{self.grid_rows}, cell {self.cell_width:.1f}x{self.cell_height:.1f}"
        )

    def start_level(self, difficulty: float = 1.0) -> None:
        """Begin a fresh run at a difficulty tier: score and lives reset."""
        self._require_setup()

        self.score = 0
        self.lives = self.settings.gameplay.starting_lives
        self.difficulty = max(1.0, float(difficulty))
        self.time_ms = 0.0
        self._retiring.clear()
        self.pickups = []

        self._generate_level()
        self.player.reset(self.start_col, self.start_row)
        self.camera.snap(self.start_row)

        self.state_machine.transition(State.RUNNING)
        self._emit(EventType.LEVEL_STARTED, difficulty=self.difficulty, lives=self.lives)
        self._score_changed()
        logger.info(f"Run started at difficulty {self.difficulty:.2f} with {self.lives} lives")

    def _generate_level(self) -> None:
        """Replace lanes, goals and pickups; in-flight pickup effects keep playing."""
        layout = self.generator.generate(self.difficulty)
        self.layout = layout

        self._retiring.extend(p for p in self.pickups if p.collected and not p.finished)

        self.lanes = [
            Lane(
                row=lane.row,
                category=lane.category,
                cell_height=self.cell_height,
                viewport_width=self.viewport_width,
                direction=lane.direction,
                archetype=lane.archetype,
                frequency=lane.frequency,
                difficulty=self.difficulty,
                rng=self.rng,
            )
            for lane in layout.lanes
        ]
        self.goals = [
            Goal(i, layout.goal_count, self.viewport_width, self.cell_height)
            for i in range(layout.goal_count)
        ]
        pickups: List[Pickup] = [
            Coin(col, row, self.cell_width, self.cell_height, rng=self.rng) for col, row in layout.coins
        ]
        pickups.extend(
            Badge(col, row, self.cell_width, self.cell_height, rng=self.rng) for col, row in layout.badges
        )
        self.pickups = pickups

        self._level_started_ms = self.time_ms
        self._level_base_difficulty = self.difficulty

    # ===== TICK =====

    def update(self, delta_ms: float) -> None:
        """Advance the simulation by one frame."""
        self._require_setup()

        state = self.state
        if state == State.NOT_STARTED:
            return

        delta_ms = max(0.0, min(float(delta_ms), self.settings.gameplay.max_frame_ms))
        self.time_ms += delta_ms
        now = self.time_ms

        self._update_pickup_effects(delta_ms)
        if state == State.ENDED:
            return

        player = self.player
        player.update(delta_ms, now)
        moving = player.is_moving()

        # 1. Camera
        self.camera.update(player.grid_position[1], moving)

        # 2. Lanes, then lethal collisions
        for lane in self.lanes:
            lane.update(delta_ms, now)

        if state == State.TRANSITION:
            if self.state_machine.context.pause_elapsed(now):
                self.state_machine.transition(State.RUNNING)
            return

        if not moving and not player.invincible and self._player_hit():
            self._lose_life(now)
            return

        # 3. Pickups
        if not moving:
            self._collect_pickups(now)

        # 4. Goals
        if not moving and player.grid_position[1] == 0:
            self._check_goals()

        # 5. Level completion
        if self.goals and all(goal.reached for goal in self.goals):
            self._complete_level(now)
            if self.state == State.ENDED:
                return

        # 6. Time ramp
        self._apply_time_ramp(now)

    def _player_hit(self) -> bool:
        hitbox = self.player.hitbox
        for lane in self.lanes:
            if lane.check_collisions(hitbox):
                return True
        return False

    def _lose_life(self, now: float) -> None:
        self.lives = max(0, self.lives - 1)
        logger.info(f"Life lost, {self.lives} remaining")
        self._emit(EventType.LIFE_LOST, lives=self.lives)
        self._notify(self.callbacks.on_life_lost, self.lives)
        self._play("hit")

        if self.lives == 0:
            self.state_machine.transition(State.ENDED, reason=TransitionReason.GAME_OVER, entered_at_ms=now)
            logger.info(f"Game over with score {self.score}")
            self._emit(EventType.GAME_OVER, score=self.score, difficulty=self.difficulty)
            self._notify(self.callbacks.on_game_over)
            self._play("game_over")
            return

        gameplay = self.settings.gameplay
        self.player.reset(self.start_col, self.start_row)
        self.player.make_invincible(gameplay.respawn_invincibility_ms, InvincibilitySource.RESPAWN, now)
        self._pause(TransitionReason.LIFE_LOST, gameplay.life_lost_pause_ms, now)

    def _collect_pickups(self, now: float) -> None:
        hitbox = self.player.hitbox
        for pickup in self.pickups:
            if not pickup.contains(hitbox):
                continue
            points = pickup.collect()
            if points == 0:
                continue

            self.score += points
            if isinstance(pickup, Badge):
                self.player.make_invincible(
                    self.settings.gameplay.badge_invincibility_ms, InvincibilitySource.BADGE, now
                )
            self._emit(
                EventType.PICKUP_COLLECTED,
                kind=pickup.kind, points=points, col=pickup.col, row=pickup.row,
            )
            self._notify(self.callbacks.on_pickup_collected, pickup.kind, points)
            self._play(pickup.kind)
            self._score_changed()

    def _check_goals(self) -> None:
        """Score the first open goal under the player; always send the player home."""
        px = self.player.center[0]
        for goal in self.goals:
            if not goal.reached and goal.contains(px):
                goal.mark_reached()
                self.score += POINTS_FOR_GOAL
                logger.info(f"Goal {goal.index + 1}/{len(self.goals)} reached")
                self._emit(EventType.GOAL_REACHED, index=goal.index, points=POINTS_FOR_GOAL)
                self._play("goal")
                self._score_changed()
                break

        self.player.reset(self.start_col, self.start_row)

    def _complete_level(self, now: float) -> None:
        bonus = POINTS_FOR_GOAL * len(self.goals)
        self.score += bonus
        gameplay = self.settings.gameplay
        self._raise_difficulty(self.difficulty + gameplay.goal_difficulty_step)

        logger.info(f"Level complete: bonus {bonus}, difficulty now {self.difficulty:.2f}")
        self._emit(EventType.LEVEL_COMPLETE, bonus=bonus, difficulty=self.difficulty)
        self._notify(self.callbacks.on_level_complete, bonus)
        self._play("level_complete")
        self._score_changed()

        if gameplay.victory_difficulty is not None and self.difficulty >= gameplay.victory_difficulty:
            self.state_machine.transition(State.ENDED, reason=TransitionReason.VICTORY, entered_at_ms=now)
            logger.info(f"Victory with score {self.score}")
            self._emit(EventType.VICTORY, score=self.score, difficulty=self.difficulty)
            self._notify(self.callbacks.on_victory, self.score)
            self._play("victory")
            return

        self._generate_level()
        self.player.reset(self.start_col, self.start_row)
        self._pause(TransitionReason.LEVEL_COMPLETE, gameplay.level_complete_pause_ms, now)

    def _apply_time_ramp(self, now: float) -> None:
        gameplay = self.settings.gameplay
        elapsed = now - self._level_started_ms
        if elapsed < gameplay.ramp_grace_ms:
            return
        steps = 1 + int((elapsed - gameplay.ramp_grace_ms) // gameplay.ramp_interval_ms)
        self._raise_difficulty(self._level_base_difficulty + steps * gameplay.ramp_step)

    def _raise_difficulty(self, candidate: float) -> bool:
        """Replace the difficulty if candidate is higher. It never goes down."""
        if candidate <= self.difficulty:
            return False
        self.difficulty = candidate
        for lane in self.lanes:
            lane.set_difficulty(candidate)
        logger.debug(f"Difficulty raised to {candidate:.2f}")
        self._emit(EventType.DIFFICULTY_CHANGED, difficulty=candidate)
        self._notify(self.callbacks.on_difficulty_changed, candidate)
        return True

    def _pause(self, reason: TransitionReason, pause_ms: float, now: float) -> None:
        if pause_ms <= 0:
            return
        self.state_machine.transition(State.TRANSITION, reason=reason, entered_at_ms=now, pause_ms=pause_ms)

    def _update_pickup_effects(self, delta_ms: float) -> None:
        for pickup in self.pickups:
            pickup.update(delta_ms)
        for pickup in self._retiring:
            pickup.update(delta_ms)
        self._retiring = [p for p in self._retiring if not p.finished]

    # ===== INPUT / GEOMETRY =====

    def handle_input(self, direction: Direction | str) -> bool:
        """Apply a directional intent.

        Returns:
            True if the player started moving
        """
        if self.player is None or self.state != State.RUNNING:
            return False
        if isinstance(direction, str):
            try:
                direction = Direction[direction.upper()]
            except KeyError:
                logger.warning(f"Ignoring unknown direction: {direction}")
                return False

        accepted = self.player.handle_input(direction, self.time_ms)
        if accepted and direction == Direction.UP:
            self.score += POINTS_FOR_CROSSING
            self._score_changed()
        if accepted:
            self._play("move")
        return accepted

    def handle_resize(self, cell_width: float, cell_height: float) -> None:
        """Propagate a new cell size to every entity."""
        self._require_setup()
        if cell_width <= 0 or cell_height <= 0:
            raise ValueError(f"Cell size must be positive, got {cell_width}x{cell_height}")

        self.cell_width = float(cell_width)
        self.cell_height = float(cell_height)
        self.viewport_width = self.cell_width * self.grid_cols
        self.viewport_height = self.cell_height * self.visible_rows

        self.player.handle_resize(self.cell_width, self.cell_height)
        self.camera.handle_resize(self.cell_height)
        for lane in self.lanes:
            lane.handle_resize(self.cell_height, self.viewport_width)
        for goal in self.goals:
            goal.handle_resize(self.viewport_width, self.cell_height)
        for pickup in self.pickups + self._retiring:
            pickup.handle_resize(self.cell_width, self.cell_height)
        logger.debug(f"Resized to cells {self.cell_width:.1f}x{self.cell_height:.1f}")

    # ===== RENDERING =====

    def draw(self, buffer: Buffer) -> None:
        """Render the visible part of the world into buffer."""
        self._require_setup()
        fill(buffer, self.BACKGROUND)
        offset = self.camera.offset

        for lane in self.lanes:
            lane.draw(buffer, offset, self.assets)
        for goal in self.goals:
            goal.draw(buffer, offset)
        for pickup in self.pickups:
            pickup.draw(buffer, offset, self.assets)
        for pickup in self._retiring:
            pickup.draw(buffer, offset, self.assets)
        self.player.draw(buffer, offset, self.time_ms, self.assets)

    # ===== STATE =====

    @property
    def state(self) -> State:
        return self.state_machine.state

    @property
    def level_elapsed_ms(self) -> float:
        return self.time_ms - self._level_started_ms

    @property
    def retiring_pickups(self) -> List[Pickup]:
        return list(self._retiring)

    def snapshot(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            state=self.state,
            score=self.score,
            lives=self.lives,
            difficulty=self.difficulty,
            goals_reached=sum(1 for g in self.goals if g.reached),
            goal_count=len(self.goals),
            player_cell=self.player.grid_position if self.player else (self.start_col, self.start_row),
            level_elapsed_ms=self.level_elapsed_ms,
        )

    def _require_setup(self) -> None:
        if self.player is None or self.camera is None:
            raise RuntimeError("CrossingSimulation.setup() must be called first")

    # ===== OUTPUT =====

    def _score_changed(self) -> None:
        self._emit(EventType.SCORE_UPDATED, score=self.score)
        self._notify(self.callbacks.on_score_updated, self.score)

    def _on_state_changed(self, old: State, new: State, context: StateContext) -> None:
        reason = context.reason.value if context.reason else None
        self._emit(EventType.STATE_CHANGED, old=old.name, new=new.name, reason=reason)

    def _emit(self, event_type: EventType, **data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(Event(event_type, data=data, source="simulation"))

    def _play(self, sound: str) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(sound_event(sound))

    def _notify(self, callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in outcome callback {getattr(callback, '__name__', callback)}: {e}")
