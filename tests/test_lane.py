"""Tests for lane population, spawning, spacing and collisions."""

import random
import unittest

from outlaw.game.constants import ARCHETYPES, BASE_SPAWN_COOLDOWN_MS, ObstacleArchetype, obstacle_speed
from outlaw.game.geometry import Rect
from outlaw.game.lane import Lane, LaneCategory
from outlaw.game.obstacle import Obstacle

CELL_H = 75
VIEW_W = 800


def make_lane(archetype, frequency=0.5, direction=-1, difficulty=1.0, populate=True, seed=1, row=5):
    return Lane(
        row=row,
        category=LaneCategory.ROAD,
        cell_height=CELL_H,
        viewport_width=VIEW_W,
        direction=direction,
        archetype=archetype,
        frequency=frequency,
        difficulty=difficulty,
        rng=random.Random(seed),
        populate=populate,
    )


def min_gap_between(obstacles):
    ordered = sorted(obstacles, key=lambda o: o.x)
    gaps = [b.x - a.right for a, b in zip(ordered, ordered[1:])]
    return min(gaps) if gaps else None


class TestPopulation(unittest.TestCase):

    def test_slow_wide_lane_degrades_by_dropping(self):
        lane = make_lane(ObstacleArchetype.TRAIN, frequency=0.1)
        self.assertLessEqual(len(lane.obstacles), 1,
                             "A sparse train lane must not be crammed")

    def test_populated_lane_keeps_gap(self):
        for archetype in ObstacleArchetype:
            lane = make_lane(archetype, frequency=3.0, difficulty=5.0)
            gap = min_gap_between(lane.obstacles)
            if gap is not None:
                self.assertGreaterEqual(gap, ARCHETYPES[archetype].min_spacing - 1e-6, archetype)

    def test_never_exceeds_cap(self):
        lane = make_lane(ObstacleArchetype.TUMBLEWEED, frequency=5.0, difficulty=10.0)
        self.assertLessEqual(len(lane.obstacles), ARCHETYPES[ObstacleArchetype.TUMBLEWEED].max_active)

    def test_safe_lane_has_no_obstacles(self):
        lane = Lane(row=3, category=LaneCategory.SAFE, cell_height=CELL_H, viewport_width=VIEW_W,
                    archetype=ObstacleArchetype.HORSE, frequency=1.0)
        self.assertFalse(lane.is_hazard)
        self.assertEqual(lane.obstacles, [])
        lane.update(1000, 1000)
        lane.update(1000, 2000)
        self.assertEqual(lane.obstacles, [])


class TestSpacingInvariant(unittest.TestCase):

    def test_no_overlap_across_ticks(self):
        for archetype in ObstacleArchetype:
            lane = make_lane(archetype, frequency=2.0, difficulty=5.0, seed=7)
            min_spacing = ARCHETYPES[archetype].min_spacing
            now = 0.0
            for _ in range(400):
                now += 50
                lane.update(50, now)
                gap = min_gap_between(lane.obstacles)
                if gap is not None:
                    self.assertGreaterEqual(gap, min_spacing - 1e-6,
                                            f"{archetype.value} obstacles crowded at t={now}")
                self.assertLessEqual(len(lane.obstacles), ARCHETYPES[archetype].max_active)

    def test_rightward_lane_keeps_gap(self):
        lane = make_lane(ObstacleArchetype.HORSE, frequency=2.0, direction=1, difficulty=3.0, seed=3)
        now = 0.0
        for _ in range(300):
            now += 50
            lane.update(50, now)
            gap = min_gap_between(lane.obstacles)
            if gap is not None:
                self.assertGreaterEqual(gap, ARCHETYPES[ObstacleArchetype.HORSE].min_spacing - 1e-6)

    def test_gap_never_below_min_spacing(self):
        for archetype, spec in ARCHETYPES.items():
            self.assertGreaterEqual(spec.min_gap, spec.min_spacing, archetype)
            self.assertGreaterEqual(spec.min_spacing, 3 * spec.width, archetype)

    def test_has_room_rejects_crowding(self):
        lane = make_lane(ObstacleArchetype.HORSE, populate=False)
        self.assertIsNotNone(lane.spawn_at(300))
        spec = ARCHETYPES[ObstacleArchetype.HORSE]
        self.assertIsNone(lane.spawn_at(300 + spec.width + spec.min_gap - 1))
        self.assertIsNotNone(lane.spawn_at(300 + spec.width + spec.min_gap))


class TestSpawning(unittest.TestCase):

    def test_blocked_spawn_cooldown_is_bounded(self):
        lane = make_lane(ObstacleArchetype.HORSE, frequency=5.0, populate=False)
        spec = lane.spec
        self.assertIsNotNone(lane.spawn_at(lane.spawn_x()))

        # Zero-length ticks: the blocker never moves out of the way
        for now in range(0, 20000, 100):
            lane.update(0, now)
            self.assertLessEqual(lane.spawn_cooldown_ms, spec.max_cooldown_ms)
        self.assertEqual(lane.spawn_cooldown_ms, spec.max_cooldown_ms)
        self.assertEqual(len(lane.obstacles), 1)

        lane.clear()
        for now in range(20000, 22000, 100):
            lane.update(0, now)
            if lane.obstacles:
                break
        self.assertEqual(len(lane.obstacles), 1)
        self.assertEqual(lane.spawn_cooldown_ms, BASE_SPAWN_COOLDOWN_MS)

    def test_spawns_over_time(self):
        lane = make_lane(ObstacleArchetype.TUMBLEWEED, frequency=1.0, populate=False)
        now = 0.0
        for _ in range(200):
            now += 50
            lane.update(50, now)
        self.assertGreater(len(lane.obstacles), 0)

    def test_cap_evicts_oldest(self):
        lane = make_lane(ObstacleArchetype.TUMBLEWEED, populate=False)
        cap = ARCHETYPES[ObstacleArchetype.TUMBLEWEED].max_active
        placed = [lane.spawn_at(i * 200.0) for i in range(cap + 2)]
        self.assertTrue(all(o is not None for o in placed))
        self.assertEqual(len(lane.obstacles), cap)
        self.assertNotIn(placed[0], lane.obstacles)
        self.assertNotIn(placed[1], lane.obstacles)
        self.assertIn(placed[-1], lane.obstacles)

    def test_offscreen_obstacles_retire(self):
        lane = make_lane(ObstacleArchetype.HORSE, direction=1, populate=False)
        spec = lane.spec
        lane.spawn_at(VIEW_W + spec.despawn_margin - 10)
        lane.update(1000, 1000)
        self.assertEqual(lane.obstacles, [])

    def test_entering_obstacle_is_not_retired(self):
        lane = make_lane(ObstacleArchetype.TRAIN, direction=-1, populate=False)
        lane.spawn_at(lane.spawn_x())
        lane.update(16, 16)
        self.assertEqual(len(lane.obstacles), 1)

    def test_set_difficulty_changes_all_speeds(self):
        lane = make_lane(ObstacleArchetype.HORSE, frequency=1.0, populate=False)
        lane.spawn_at(0)
        lane.spawn_at(500)
        self.assertEqual(len(lane.obstacles), 2)
        before = [o.speed for o in lane.obstacles]
        lane.set_difficulty(6.0)
        after = [o.speed for o in lane.obstacles]
        self.assertEqual(len(set(after)), 1)
        self.assertGreater(after[0], before[0])
        self.assertGreater(lane.frequency, 1.0)


class TestCollisions(unittest.TestCase):

    def setUp(self):
        self.lane = make_lane(ObstacleArchetype.TRAIN, populate=False, row=5)
        self.obstacle = self.lane.spawn_at(300)
        self.cx = self.obstacle.center_x

    def test_player_in_lane_collides(self):
        player = Rect.from_center(self.cx, self.lane.center_y, 35, 35)
        self.assertEqual(self.lane.check_collisions(player), [self.obstacle])

    def test_player_centered_in_other_lane_ignored(self):
        # Tall rect reaching into the train's hitbox, but centred one row up
        player = Rect.from_center(self.cx, self.lane.top - 5, 50, 60)
        self.assertEqual(self.lane.check_collisions(player), [])
        inside = Rect.from_center(self.cx, self.lane.top + 5, 50, 60)
        self.assertEqual(self.lane.check_collisions(inside), [self.obstacle])

    def test_visual_overlap_outside_hitbox_is_safe(self):
        # Just inside the visual rect but outside the shrunken hitbox
        hitbox = self.obstacle.hitbox
        player = Rect(self.obstacle.x + 1, self.lane.center_y - 5, hitbox.x - self.obstacle.x - 2, 10)
        self.assertEqual(self.lane.check_collisions(player), [])

    def test_resize_moves_obstacles_with_lane(self):
        self.lane.handle_resize(50, 400)
        self.assertAlmostEqual(self.obstacle.center_y, 5.5 * 50)


class TestObstacle(unittest.TestCase):

    def test_speed_clamped_per_archetype(self):
        spec = ARCHETYPES[ObstacleArchetype.CACTUS]
        cactus = Obstacle(ObstacleArchetype.CACTUS, 0, 100, lane_speed=300, direction=1)
        self.assertGreaterEqual(cactus.speed, spec.min_speed)
        self.assertLessEqual(cactus.speed, spec.max_speed)

    def test_cactus_speeds_up_with_difficulty(self):
        spec = ARCHETYPES[ObstacleArchetype.CACTUS]
        speeds = [spec.effective_speed(obstacle_speed(d)) for d in (1, 2, 3, 6, 12)]
        self.assertEqual(speeds, sorted(speeds))
        self.assertGreater(speeds[2], speeds[0])
        self.assertAlmostEqual(speeds[0], spec.min_speed)
        self.assertAlmostEqual(speeds[-1], spec.max_speed)

    def test_moves_in_direction(self):
        horse = Obstacle(ObstacleArchetype.HORSE, 100, 100, lane_speed=60, direction=-1)
        horse.update(1000)
        self.assertAlmostEqual(horse.x, 100 - horse.speed)

    def test_train_smokes(self):
        train = Obstacle(ObstacleArchetype.TRAIN, 100, 100, lane_speed=60, direction=1, rng=random.Random(0))
        self.assertIsNotNone(train.smoke)
        for _ in range(10):
            train.update(50)
        self.assertGreater(train.smoke.live_count, 0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
