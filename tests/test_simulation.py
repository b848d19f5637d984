"""Tests for the crossing simulation controller."""

import random
import unittest

import numpy as np

from outlaw.config.settings import GameplaySettings, Settings
from outlaw.core.events import EventBus, EventType
from outlaw.core.state import State, TransitionReason
from outlaw.game.constants import ARCHETYPES, POINTS_FOR_BADGE, POINTS_FOR_CROSSING, POINTS_FOR_GOAL
from outlaw.game.obstacle import Obstacle
from outlaw.game.pickups import Badge
from outlaw.game.player import Direction, InvincibilitySource
from outlaw.game.simulation import CrossingSimulation, GameCallbacks


class Recorder:
    """Collects callback invocations by name."""

    def __init__(self):
        self.calls = []

    def callbacks(self):
        return GameCallbacks(
            on_life_lost=lambda lives: self.calls.append(("life_lost", lives)),
            on_game_over=lambda: self.calls.append(("game_over",)),
            on_level_complete=lambda bonus: self.calls.append(("level_complete", bonus)),
            on_victory=lambda score: self.calls.append(("victory", score)),
            on_score_updated=lambda score: self.calls.append(("score", score)),
            on_difficulty_changed=lambda d: self.calls.append(("difficulty", d)),
            on_pickup_collected=lambda kind, points: self.calls.append(("pickup", kind, points)),
        )

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    def last(self, name):
        return [call for call in self.calls if call[0] == name][-1]


def make_simulation(seed=5, event_bus=None, recorder=None, **gameplay):
    settings = Settings(seed=seed, gameplay=GameplaySettings(**gameplay))
    sim = CrossingSimulation(
        callbacks=recorder.callbacks() if recorder else None,
        event_bus=event_bus,
        settings=settings,
        rng=random.Random(seed),
    )
    sim.setup(800, 600)
    return sim


def put_obstacle_on_player(sim):
    """Move the player onto a hazard row and park a horse on top of them."""
    lane = next(lane for lane in sim.lanes if lane.is_hazard)
    sim.player.reset(sim.start_col, lane.row)
    cx = sim.player.center[0]
    lane.obstacles.append(Obstacle(lane.archetype, cx - lane.spec.width / 2, lane.center_y, lane.speed, lane.direction))
    return lane


class TestLifecycle(unittest.TestCase):

    def test_update_before_setup_raises(self):
        sim = CrossingSimulation(settings=Settings())
        with self.assertRaises(RuntimeError):
            sim.update(16)
        with self.assertRaises(RuntimeError):
            sim.start_level(1)

    def test_bad_viewport_raises(self):
        sim = CrossingSimulation(settings=Settings())
        with self.assertRaises(ValueError):
            sim.setup(0, 600)

    def test_not_started_ignores_update_and_input(self):
        sim = make_simulation()
        self.assertEqual(sim.state, State.NOT_STARTED)
        sim.update(16)
        self.assertEqual(sim.time_ms, 0)
        self.assertFalse(sim.handle_input(Direction.UP))

    def test_start_level_builds_world(self):
        sim = make_simulation()
        sim.start_level(1)
        self.assertEqual(sim.state, State.RUNNING)
        self.assertEqual(len(sim.lanes), 30)
        self.assertEqual(len(sim.goals), 3)
        self.assertEqual(sim.player.grid_position, (4, 27))
        self.assertEqual(sim.score, 0)
        self.assertEqual(sim.lives, 3)
        self.assertTrue(any(isinstance(p, Badge) for p in sim.pickups))

    def test_restart_resets_score_and_lives(self):
        sim = make_simulation()
        sim.start_level(1)
        sim.handle_input(Direction.UP)
        sim.lives = 1
        sim.start_level(2)
        self.assertEqual(sim.score, 0)
        self.assertEqual(sim.lives, 3)
        self.assertEqual(sim.difficulty, 2.0)
        self.assertEqual(len(sim.goals), 4)


class TestInput(unittest.TestCase):

    def setUp(self):
        self.sim = make_simulation()
        self.sim.start_level(1)

    def test_up_then_up_before_arrival(self):
        self.assertTrue(self.sim.handle_input(Direction.UP))
        self.assertEqual((self.sim.player.target_x, self.sim.player.target_y), (4, 26))
        self.assertFalse(self.sim.handle_input(Direction.UP))

    def test_forward_step_scores(self):
        self.sim.handle_input(Direction.UP)
        self.assertEqual(self.sim.score, POINTS_FOR_CROSSING)

    def test_sideways_step_does_not_score(self):
        self.sim.handle_input(Direction.LEFT)
        self.assertEqual(self.sim.score, 0)

    def test_string_directions(self):
        self.assertTrue(self.sim.handle_input("up"))
        self.assertFalse(self.sim.handle_input("sideways"))

    def test_player_arrives_through_update(self):
        # Sideways along the safe start row
        self.sim.handle_input(Direction.LEFT)
        for _ in range(10):
            self.sim.update(16)
        self.assertFalse(self.sim.player.is_moving())
        self.assertEqual(self.sim.player.grid_position, (3, 27))


class TestGoals(unittest.TestCase):

    def test_all_goals_reached_regenerates(self):
        recorder = Recorder()
        sim = make_simulation(recorder=recorder)
        sim.start_level(1)
        old_lanes, old_goals, old_pickups = sim.lanes, sim.goals, sim.pickups

        for goal in sim.goals:
            goal.mark_reached()
        sim.update(16)

        self.assertAlmostEqual(sim.difficulty, 1.5)
        self.assertEqual(sim.score, POINTS_FOR_GOAL * 3)
        self.assertIsNot(sim.lanes, old_lanes)
        self.assertIsNot(sim.goals, old_goals)
        self.assertIsNot(sim.pickups, old_pickups)
        self.assertFalse(any(goal.reached for goal in sim.goals))
        self.assertFalse(set(map(id, sim.lanes)) & set(map(id, old_lanes)))
        self.assertEqual(recorder.last("level_complete"), ("level_complete", POINTS_FOR_GOAL * 3))
        self.assertEqual(sim.state, State.RUNNING)

    def test_top_row_reaches_goal_and_resets(self):
        sim = make_simulation()
        sim.start_level(1)
        sim.player.reset(4, 0)
        sim.update(16)
        self.assertTrue(sim.goals[1].reached)
        self.assertEqual(sim.score, POINTS_FOR_GOAL)
        self.assertEqual(sim.player.grid_position, (sim.start_col, sim.start_row))

    def test_top_row_between_goals_still_resets(self):
        sim = make_simulation()
        sim.start_level(1)
        # Column 2's center (250px) falls in the gap between the first two goals
        sim.player.reset(2, 0)
        sim.update(16)
        self.assertFalse(any(goal.reached for goal in sim.goals))
        self.assertEqual(sim.score, 0)
        self.assertEqual(sim.player.grid_position, (sim.start_col, sim.start_row))

    def test_reached_goal_not_scored_twice(self):
        sim = make_simulation()
        sim.start_level(1)
        sim.player.reset(4, 0)
        sim.update(16)
        sim.player.reset(4, 0)
        sim.update(16)
        self.assertEqual(sim.score, POINTS_FOR_GOAL)

    def test_victory_ends_run(self):
        recorder = Recorder()
        sim = make_simulation(recorder=recorder, victory_difficulty=1.5)
        sim.start_level(1)
        for goal in sim.goals:
            goal.mark_reached()
        sim.update(16)
        self.assertEqual(sim.state, State.ENDED)
        self.assertEqual(sim.state_machine.context.reason, TransitionReason.VICTORY)
        self.assertEqual(recorder.count("victory"), 1)
        self.assertEqual(recorder.last("victory"), ("victory", POINTS_FOR_GOAL * 3))
        self.assertEqual(recorder.count("game_over"), 0)

    def test_endless_without_victory_threshold(self):
        sim = make_simulation(victory_difficulty=None)
        sim.start_level(5)
        for goal in sim.goals:
            goal.mark_reached()
        sim.update(16)
        self.assertEqual(sim.state, State.RUNNING)
        self.assertAlmostEqual(sim.difficulty, 5.5)

    def test_level_complete_pause(self):
        sim = make_simulation(level_complete_pause_ms=500)
        sim.start_level(1)
        for goal in sim.goals:
            goal.mark_reached()
        sim.update(16)
        self.assertEqual(sim.state, State.TRANSITION)
        self.assertFalse(sim.handle_input(Direction.UP))
        sim.update(250)
        sim.update(250)
        self.assertEqual(sim.state, State.RUNNING)


class TestCollisions(unittest.TestCase):

    def test_last_life_ends_game_once(self):
        recorder = Recorder()
        sim = make_simulation(recorder=recorder, starting_lives=1)
        sim.start_level(1)
        put_obstacle_on_player(sim)

        sim.update(16)
        self.assertEqual(sim.lives, 0)
        self.assertEqual(sim.state, State.ENDED)
        self.assertEqual(recorder.count("game_over"), 1)
        self.assertEqual(recorder.count("life_lost"), 1)

        put_obstacle_on_player(sim)
        for _ in range(20):
            sim.update(100)
        self.assertEqual(recorder.count("game_over"), 1)
        self.assertEqual(recorder.count("life_lost"), 1)
        self.assertEqual(sim.lives, 0)
        self.assertFalse(sim.handle_input(Direction.UP))

    def test_life_lost_respawns_with_invincibility(self):
        recorder = Recorder()
        sim = make_simulation(recorder=recorder)
        sim.start_level(1)
        put_obstacle_on_player(sim)

        sim.update(16)
        self.assertEqual(sim.lives, 2)
        self.assertEqual(recorder.last("life_lost"), ("life_lost", 2))
        self.assertEqual(sim.player.grid_position, (sim.start_col, sim.start_row))
        self.assertTrue(sim.player.invincible)
        self.assertEqual(sim.player.invincibility_source, InvincibilitySource.RESPAWN)
        self.assertEqual(sim.state, State.TRANSITION)
        self.assertFalse(sim.handle_input(Direction.UP))

        for _ in range(3):
            sim.update(250)
        self.assertEqual(sim.state, State.RUNNING)

    def test_invincible_player_survives(self):
        sim = make_simulation()
        sim.start_level(1)
        put_obstacle_on_player(sim)
        sim.player.make_invincible(5000, InvincibilitySource.BADGE, sim.time_ms)
        sim.update(16)
        self.assertEqual(sim.lives, 3)

    def test_moving_player_not_hit(self):
        sim = make_simulation()
        sim.start_level(1)
        lane = put_obstacle_on_player(sim)
        sim.player.handle_input(Direction.LEFT, sim.time_ms)
        sim.update(16)
        self.assertEqual(sim.lives, 3)
        self.assertTrue(lane.obstacles)

    def test_no_pause_keeps_running(self):
        sim = make_simulation(life_lost_pause_ms=0)
        sim.start_level(1)
        put_obstacle_on_player(sim)
        sim.update(16)
        self.assertEqual(sim.lives, 2)
        self.assertEqual(sim.state, State.RUNNING)


class TestPickups(unittest.TestCase):

    def setUp(self):
        self.recorder = Recorder()
        self.sim = make_simulation(recorder=self.recorder)
        self.sim.start_level(1)
        self.badge = next(p for p in self.sim.pickups if isinstance(p, Badge))

    def test_badge_scores_and_shields(self):
        self.sim.player.reset(self.badge.col, self.badge.row)
        self.sim.update(16)
        self.assertTrue(self.badge.collected)
        self.assertEqual(self.sim.score, POINTS_FOR_BADGE)
        self.assertTrue(self.sim.player.invincible)
        self.assertEqual(self.sim.player.invincibility_source, InvincibilitySource.BADGE)
        self.assertEqual(self.recorder.last("pickup"), ("pickup", "badge", POINTS_FOR_BADGE))

    def test_pickup_scored_once(self):
        self.sim.player.reset(self.badge.col, self.badge.row)
        self.sim.update(16)
        self.sim.update(16)
        self.assertEqual(self.sim.score, POINTS_FOR_BADGE)
        self.assertEqual(self.recorder.count("pickup"), 1)

    def test_effects_survive_regeneration(self):
        self.sim.player.reset(self.badge.col, self.badge.row)
        self.sim.update(16)
        for goal in self.sim.goals:
            goal.mark_reached()
        self.sim.update(16)
        self.assertNotIn(self.badge, self.sim.pickups)
        self.assertIn(self.badge, self.sim.retiring_pickups)
        for _ in range(20):
            self.sim.update(250)
        self.assertEqual(self.sim.retiring_pickups, [])
        self.assertTrue(self.badge.finished)


class TestDifficultyRamp(unittest.TestCase):

    def test_ramp_after_grace(self):
        recorder = Recorder()
        sim = make_simulation(recorder=recorder)
        sim.start_level(1)
        history = []
        for _ in range(120):
            sim.update(250)
            history.append(sim.difficulty)
        self.assertAlmostEqual(sim.level_elapsed_ms, 30000)
        self.assertAlmostEqual(sim.difficulty, 1.1)
        self.assertEqual(history[:119], [1.0] * 119)

        for _ in range(60):
            sim.update(250)
            history.append(sim.difficulty)
        self.assertAlmostEqual(sim.difficulty, 1.2)
        self.assertEqual(history, sorted(history), "Difficulty must never decrease")
        self.assertEqual(recorder.count("difficulty"), 2)

    def test_ramp_reaches_lanes(self):
        sim = make_simulation()
        sim.start_level(1)
        lane = next(lane for lane in sim.lanes if lane.is_hazard)
        speed = lane.speed
        for _ in range(121):
            sim.update(250)
        self.assertGreater(lane.speed, speed)

    def test_ramp_does_not_regenerate(self):
        sim = make_simulation()
        sim.start_level(1)
        lanes = sim.lanes
        for _ in range(130):
            sim.update(250)
        self.assertIs(sim.lanes, lanes)

    def test_completion_after_ramp_adds_step(self):
        sim = make_simulation()
        sim.start_level(1)
        for _ in range(120):
            sim.update(250)
        for goal in sim.goals:
            goal.mark_reached()
        sim.update(16)
        self.assertAlmostEqual(sim.difficulty, 1.6)
        self.assertAlmostEqual(sim.level_elapsed_ms, 0)

    def test_large_frames_are_clamped(self):
        sim = make_simulation()
        sim.start_level(1)
        sim.update(10_000)
        self.assertEqual(sim.time_ms, sim.settings.gameplay.max_frame_ms)
        sim.update(-50)
        self.assertEqual(sim.time_ms, sim.settings.gameplay.max_frame_ms)


class TestEvents(unittest.TestCase):

    def test_outcomes_reach_event_bus(self):
        bus = EventBus(history_limit=500)
        sim = make_simulation(event_bus=bus)
        sim.start_level(1)
        self.assertEqual(len(bus.get_history(EventType.LEVEL_STARTED)), 1)
        self.assertEqual(len(bus.get_history(EventType.STATE_CHANGED)), 1)

        sim.handle_input(Direction.UP)
        score_events = bus.get_history(EventType.SCORE_UPDATED)
        self.assertEqual(score_events[-1].data["score"], POINTS_FOR_CROSSING)

        sounds = [e.data["sound"] for e in bus.get_history(EventType.SOUND_PLAY, limit=50)]
        self.assertIn("move", sounds)

    def test_game_over_event_once(self):
        bus = EventBus()
        seen = []
        bus.subscribe(EventType.GAME_OVER, seen.append)
        sim = make_simulation(event_bus=bus, starting_lives=1)
        sim.start_level(1)
        put_obstacle_on_player(sim)
        for _ in range(5):
            sim.update(16)
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].data["score"], sim.score)

    def test_failing_callback_does_not_break_tick(self):
        def explode(score):
            raise RuntimeError("boom")

        sim = CrossingSimulation(
            callbacks=GameCallbacks(on_score_updated=explode),
            settings=Settings(seed=1),
        )
        sim.setup(800, 600)
        sim.start_level(1)
        self.assertTrue(sim.handle_input(Direction.UP))
        self.assertEqual(sim.score, POINTS_FOR_CROSSING)


class TestGeometryAndDraw(unittest.TestCase):

    def test_resize_propagates(self):
        sim = make_simulation()
        sim.start_level(1)
        sim.handle_resize(50, 40)
        self.assertEqual(sim.viewport_width, 400)
        self.assertEqual(sim.player.center, (4.5 * 50, 27.5 * 40))
        self.assertEqual(sim.lanes[3].center_y, 3.5 * 40)
        self.assertAlmostEqual(sim.goals[0].center_x, 400 / 3 / 2)
        for pickup in sim.pickups:
            self.assertEqual(pickup.center, ((pickup.col + 0.5) * 50, (pickup.row + 0.5) * 40))

    def test_resize_rejects_non_positive(self):
        sim = make_simulation()
        with self.assertRaises(ValueError):
            sim.handle_resize(0, 40)

    def test_draw_fills_buffer(self):
        sim = make_simulation()
        sim.start_level(1)
        buffer = np.zeros((600, 800, 3), dtype=np.uint8)
        sim.draw(buffer)
        self.assertTrue(buffer.any())

    def test_snapshot(self):
        sim = make_simulation()
        sim.start_level(1)
        snap = sim.snapshot()
        self.assertEqual(snap.state, State.RUNNING)
        self.assertEqual(snap.goal_count, 3)
        self.assertEqual(snap.player_cell, (4, 27))


class TestLaneSpacingInPlay(unittest.TestCase):

    def test_live_lanes_keep_min_spacing(self):
        sim = make_simulation()
        sim.start_level(3)
        worst = {}
        for _ in range(2400):
            sim.update(50)
            for lane in sim.lanes:
                ordered = sorted(lane.obstacles, key=lambda o: o.x)
                for a, b in zip(ordered, ordered[1:]):
                    gap = b.x - a.right
                    worst[lane.archetype] = min(worst.get(lane.archetype, gap), gap)

        self.assertTrue(worst, "Level 3 should have populated hazard lanes")
        for archetype, gap in worst.items():
            self.assertGreaterEqual(gap, ARCHETYPES[archetype].min_spacing - 1e-6, archetype.value)
        self.assertGreater(sim.difficulty, 3.0, "Time ramp should have retuned lane speeds mid-run")


if __name__ == "__main__":
    unittest.main(verbosity=2)
