from __future__ import annotations

import math
import unittest

from patrolbot.bridge import Position
from patrolbot.motion import (
    CIRCLE_RADIUS,
    MotionController,
    PatrolState,
    advance,
    never_jump,
    target_point,
    yaw_towards,
)
from patrolbot.test.fakes import FakeLoop, FakeSession


ORIGIN = Position(10.0, 64.0, 20.0)


class TestPatrolMath(unittest.TestCase):
    def test_round_completes_on_first_tick_past_full_turn(self) -> None:
        state = PatrolState()
        for _ in range(125):
            self.assertFalse(advance(state))
        self.assertEqual(state.rounds, 0)
        self.assertAlmostEqual(state.angle, 6.25)
        self.assertTrue(advance(state))
        self.assertEqual(state.angle, 0.0)
        self.assertEqual(state.rounds, 1)
        self.assertEqual(state.total_rotations, 1)
        self.assertTrue(state.clockwise)

    def test_direction_flips_every_two_rounds_starting_clockwise(self) -> None:
        state = PatrolState()
        flips = []
        directions = [state.clockwise]
        for n in range(1, 252 * 4 + 1):
            before = state.clockwise
            advance(state)
            if state.clockwise != before:
                flips.append(n)
                directions.append(state.clockwise)
        self.assertEqual(flips, [252, 504, 756, 1008])
        self.assertEqual(directions, [True, False, True, False, True])
        self.assertEqual(state.total_rotations, 8)
        self.assertEqual(state.rounds, 0)

    def test_counter_clockwise_angle_goes_negative(self) -> None:
        state = PatrolState(clockwise=False)
        advance(state)
        self.assertAlmostEqual(state.angle, -0.05)

    def test_target_point_lies_on_circle(self) -> None:
        state = PatrolState()
        for _ in range(600):
            advance(state)
            tx, tz = target_point(ORIGIN, state.angle)
            self.assertAlmostEqual(math.hypot(tx - ORIGIN.x, tz - ORIGIN.z), CIRCLE_RADIUS)

    def test_yaw_zero_faces_negative_z(self) -> None:
        here = Position(0.0, 0.0, 0.0)
        self.assertAlmostEqual(yaw_towards(here, 0.0, -1.0), 0.0)
        self.assertAlmostEqual(yaw_towards(here, 1.0, 0.0), -math.pi / 2)
        self.assertAlmostEqual(yaw_towards(here, -1.0, 0.0), math.pi / 2)


class TestMotionController(unittest.TestCase):
    def setUp(self) -> None:
        self.loop = FakeLoop()
        self.session = FakeSession(ORIGIN)
        self.motion = MotionController(self.session, self.loop, jump_chance=never_jump)

    def test_first_tick_after_spawn(self) -> None:
        self.motion.start(ORIGIN)
        self.assertIn(("sprint", True), self.session.controls)
        self.motion.tick()
        self.assertAlmostEqual(self.motion.state.angle, 0.05)
        tx, tz = target_point(ORIGIN, self.motion.state.angle)
        self.assertAlmostEqual(tx, 14.994, places=3)
        self.assertAlmostEqual(tz, 20.250, places=3)
        yaw, pitch, force = self.session.looks[-1]
        self.assertAlmostEqual(yaw, math.atan2(-(tx - ORIGIN.x), -(tz - ORIGIN.z)))
        self.assertEqual(pitch, 0.0)
        self.assertTrue(force)
        self.assertEqual(self.session.controls[-1], ("forward", True))

    def test_tick_without_position_is_a_no_op(self) -> None:
        self.motion.start(ORIGIN)
        self.session.entity.position = None
        self.motion.tick()
        self.assertEqual(self.motion.state.angle, 0.0)
        self.assertEqual(self.session.looks, [])

    def test_ticks_run_on_the_loop_until_stopped(self) -> None:
        self.motion.start(ORIGIN)
        self.loop.advance(0.35)
        self.assertEqual(len(self.session.looks), 3)
        self.assertAlmostEqual(self.motion.state.angle, 0.15)
        self.motion.stop()
        self.assertFalse(self.motion.running)
        self.loop.advance(2.0)
        self.assertEqual(len(self.session.looks), 3)
        self.assertEqual(self.loop.pending(), [])

    def test_stop_is_idempotent(self) -> None:
        self.motion.stop()
        self.motion.start(ORIGIN)
        self.motion.stop()
        self.motion.stop()
        self.assertFalse(self.motion.running)

    def test_restart_resets_patrol_state(self) -> None:
        self.motion.start(ORIGIN)
        for _ in range(300):
            self.motion.tick()
        self.assertFalse(self.motion.state.clockwise)
        self.motion.stop()
        self.motion.start(ORIGIN)
        self.assertEqual(self.motion.state, PatrolState())

    def test_start_twice_keeps_single_timer_pair(self) -> None:
        self.motion.start(ORIGIN)
        self.motion.start(ORIGIN)
        self.assertEqual(len(self.loop.pending()), 2)
        self.loop.advance(0.1)
        self.assertEqual(len(self.session.looks), 1)

    def test_random_jump_pulse_releases_after_hold(self) -> None:
        chances = iter([True])
        motion = MotionController(self.session, self.loop, jump_chance=lambda: next(chances, False))
        motion.start(ORIGIN)
        self.loop.advance(0.25)
        jumps = [c for c in self.session.controls if c[0] == "jump"]
        self.assertEqual(jumps, [("jump", True), ("jump", False)])

    def test_jump_check_only_when_grounded(self) -> None:
        self.motion.start(ORIGIN)
        self.loop.advance(2.0)
        self.assertNotIn(("jump", True), self.session.controls)
        self.session.entity.on_ground = True
        self.loop.advance(1.0)
        self.assertIn(("jump", True), self.session.controls)
        self.loop.advance(0.1)
        self.assertEqual([c for c in self.session.controls if c[0] == "jump"][-1], ("jump", False))


if __name__ == "__main__":
    unittest.main()
