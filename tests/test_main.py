"""Tests for wiring input events into the simulation."""

import logging
import random
import unittest

from outlaw.config.settings import Settings
from outlaw.core.events import Event, EventBus, EventType, tick_event
from outlaw.core.state import State
from outlaw.game.simulation import CrossingSimulation
from outlaw.main import bind_controls, setup_logging


class TestBindControls(unittest.TestCase):

    def setUp(self):
        self.bus = EventBus()
        self.sim = CrossingSimulation(event_bus=self.bus, settings=Settings(seed=3), rng=random.Random(3))
        self.sim.setup(800, 600)
        self.unsubscribers = bind_controls(self.bus, self.sim)

    def test_start_then_move(self):
        self.bus.emit(Event(EventType.START, source="keyboard"))
        self.assertEqual(self.sim.state, State.RUNNING)
        self.bus.emit(Event(EventType.MOVE_UP, source="keyboard"))
        self.assertEqual(self.sim.player.target_y, 26)

    def test_tick_advances_clock(self):
        self.bus.emit(Event(EventType.START))
        self.bus.emit(tick_event(0.1, 0))
        self.assertAlmostEqual(self.sim.time_ms, 100)

    def test_start_ignored_while_running(self):
        self.bus.emit(Event(EventType.START))
        self.bus.emit(Event(EventType.MOVE_LEFT))
        score_before = self.sim.score
        self.bus.emit(Event(EventType.START))
        self.assertEqual(self.sim.player.target_x, 3)
        self.assertEqual(self.sim.score, score_before)

    def test_restart(self):
        self.bus.emit(Event(EventType.START))
        self.bus.emit(Event(EventType.MOVE_UP))
        self.bus.emit(Event(EventType.RESTART))
        self.assertEqual(self.sim.score, 0)
        self.assertEqual(self.sim.player.grid_position, (4, 27))

    def test_unsubscribe(self):
        for unsubscribe in self.unsubscribers:
            unsubscribe()
        self.bus.emit(Event(EventType.START))
        self.assertEqual(self.sim.state, State.NOT_STARTED)


class TestSetupLogging(unittest.TestCase):

    LANE_LOGGER = "outlaw.game.lane"

    def tearDown(self):
        logging.getLogger(self.LANE_LOGGER).setLevel(logging.NOTSET)

    def test_lane_chatter_hidden_by_default(self):
        setup_logging(debug=False)
        self.assertEqual(logging.getLogger(self.LANE_LOGGER).level, logging.INFO)

    def test_debug_lets_lane_chatter_through(self):
        logging.getLogger(self.LANE_LOGGER).setLevel(logging.INFO)
        setup_logging(debug=True)
        self.assertEqual(logging.getLogger(self.LANE_LOGGER).level, logging.NOTSET)


if __name__ == "__main__":
    unittest.main(verbosity=2)
