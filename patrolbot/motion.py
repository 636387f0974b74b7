from __future__ import annotations

"""Circular patrol around a remembered origin.

Purpose: On a fixed tick, advance an angle around the origin, face the next
point on the circle and hold forward. Two rounds clockwise, then two rounds
counter-clockwise, repeating. A second, slower tick makes the bot hop while
it is on the ground.

Engineering notes: Overshoot past a full turn is discarded, so each round
starts at angle 0 exactly. Timer handles are cancelled synchronously in
`stop()`; in-flight jump releases are left to fire.

"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .bridge import Position
from .timers import Interval, Timeout


logger = logging.getLogger("patrolbot.motion")


CIRCLE_RADIUS = 5.0
MOVEMENT_SPEED = 0.05  # radians per tick
TICK_SECONDS = 0.1
ROUNDS_PER_DIRECTION = 2
JUMP_CHECK_SECONDS = 1.0
JUMP_HOLD_SECONDS = 0.1
RANDOM_JUMP_CHANCE = 0.1

FULL_TURN = 2 * math.pi


def random_jump(chance: float = RANDOM_JUMP_CHANCE, rng: Optional[random.Random] = None) -> Callable[[], bool]:
    """Return a jump strategy that fires with probability `chance` per tick."""
    draw = (rng or random).random

    def _should_jump() -> bool:
        return draw() < chance

    return _should_jump


def never_jump() -> bool:
    return False


@dataclass
class PatrolState:
    angle: float = 0.0
    clockwise: bool = True
    rounds: int = 0
    total_rotations: int = 0

    @property
    def direction(self) -> str:
        return "clockwise" if self.clockwise else "counter-clockwise"


def advance(state: PatrolState, speed: float = MOVEMENT_SPEED) -> bool:
    """Step the patrol angle once. Returns True when a round completed."""
    state.angle += speed * (1 if state.clockwise else -1)
    if abs(state.angle) < FULL_TURN:
        return False
    state.rounds += 1
    state.total_rotations += 1
    state.angle = 0.0
    logger.info(
        "completed round %d (%s), total rotations: %d",
        state.rounds,
        state.direction,
        state.total_rotations,
    )
    if state.rounds >= ROUNDS_PER_DIRECTION:
        state.clockwise = not state.clockwise
        state.rounds = 0
        logger.info("switching direction to %s", state.direction)
    return True


def target_point(origin: Position, angle: float, radius: float = CIRCLE_RADIUS) -> tuple[float, float]:
    """Point on the patrol circle as (x, z); height is not patrolled."""
    return origin.x + radius * math.cos(angle), origin.z + radius * math.sin(angle)


def yaw_towards(current: Position, target_x: float, target_z: float) -> float:
    # Yaw 0 faces -Z in the game's convention.
    dx = target_x - current.x
    dz = target_z - current.z
    return math.atan2(-dx, -dz)


class MotionController:
    def __init__(
        self,
        session: Any,
        loop: Any,
        *,
        jump_chance: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.session = session
        self._loop = loop
        self._should_jump = jump_chance or random_jump()
        self.state = PatrolState()
        self.origin: Optional[Position] = None
        self._move_timer: Optional[Interval] = None
        self._jump_timer: Optional[Interval] = None

    @property
    def running(self) -> bool:
        return self._move_timer is not None

    def start(self, origin: Position) -> None:
        self.stop()
        self.origin = origin
        self.state = PatrolState()
        self.session.set_control_state("sprint", True)
        self._move_timer = Interval(self._loop, TICK_SECONDS, self.tick)
        self._jump_timer = Interval(self._loop, JUMP_CHECK_SECONDS, self.jump_check)
        logger.info(
            "circular movement started around x=%.2f y=%.2f z=%.2f",
            origin.x,
            origin.y,
            origin.z,
        )

    def stop(self) -> None:
        if self._move_timer is not None:
            self._move_timer.cancel()
            self._move_timer = None
        if self._jump_timer is not None:
            self._jump_timer.cancel()
            self._jump_timer = None
        logger.debug("movement stopped")

    def tick(self) -> None:
        current = self.session.entity.position
        if current is None or self.origin is None:
            return
        advance(self.state)
        tx, tz = target_point(self.origin, self.state.angle)
        yaw = yaw_towards(current, tx, tz)
        logger.debug("tick angle=%.3f target=(%.3f, %.3f) yaw=%.3f", self.state.angle, tx, tz, yaw)
        self.session.look(yaw, 0.0, True)
        self.session.set_control_state("forward", True)
        if self._should_jump():
            self.jump()

    def jump_check(self) -> None:
        if self.session.entity.on_ground:
            self.jump()

    def jump(self) -> None:
        """Press jump and release it after a short hold."""
        self.session.set_control_state("jump", True)
        Timeout(self._loop, JUMP_HOLD_SECONDS, self._release_jump)

    def _release_jump(self) -> None:
        self.session.set_control_state("jump", False)
