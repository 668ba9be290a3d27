from __future__ import annotations

import logging
import math
from typing import Callable, Optional

from curlpoke.core.config import DifficultyTuning, PokeTuning
from curlpoke.core.types import (
    GuideDirection, PokeJudgment, PokeOutcome, Point, SessionState, Stone,
)
from curlpoke.sim.guide import GuideDirector

logger = logging.getLogger(__name__)

# guide -> the side that has to be poked (curl right by poking the left edge)
_REQUIRED_SIDE = {
    GuideDirection.RIGHT: GuideDirection.LEFT,
    GuideDirection.LEFT: GuideDirection.RIGHT,
    GuideDirection.STRAIGHT: GuideDirection.STRAIGHT,
}


def classify_side(dx: float, r: float, tuning: PokeTuning) -> GuideDirection:
    deadzone = max(tuning.deadzone_min, r * tuning.deadzone_frac)
    if dx < -deadzone:
        return GuideDirection.LEFT
    if dx > deadzone:
        return GuideDirection.RIGHT
    return GuideDirection.STRAIGHT


def is_correct(guide: GuideDirection, side: GuideDirection) -> bool:
    return _REQUIRED_SIDE[guide] == side


class PokeResolver:
    """
    Judges one poke against the active stone.

    Checks run in a fixed order: timing, then reach, then side. Only a
    fully correct poke touches any state; every other outcome is returned
    for the session to turn into a game over.
    """

    def __init__(self, tuning: PokeTuning, difficulty: DifficultyTuning,
                 guide: GuideDirector,
                 on_score: Optional[Callable[[int], None]] = None) -> None:
        self.tuning = tuning
        self.difficulty = difficulty
        self.guide = guide
        self.on_score = on_score

    def resolve(self, state: SessionState, stone: Optional[Stone],
                finger: Point) -> PokeJudgment:
        if stone is None:
            return PokeJudgment(PokeOutcome.NO_STONE)

        t = self.tuning
        fx, fy = finger

        if stone.y < fy - stone.r * t.late_margin:
            return PokeJudgment(PokeOutcome.LATE)

        dx = fx - stone.x
        dy = fy - stone.y
        dist = math.hypot(dx, dy)
        if dist > stone.r * t.reach:
            return PokeJudgment(PokeOutcome.INACCURATE, dx=dx, distance=dist)

        side = classify_side(dx, stone.r, t)
        if not is_correct(state.guide, side):
            return PokeJudgment(PokeOutcome.WRONG_SIDE, side=side, dx=dx, distance=dist)

        self._apply_hit(state, stone)
        return PokeJudgment(PokeOutcome.HIT, side=side, dx=dx, distance=dist)

    def _apply_hit(self, state: SessionState, stone: Stone) -> None:
        t = self.tuning
        d = self.difficulty
        curl = state.guide.curl

        stone.touched = True
        stone.vy *= t.speed_boost
        stone.vx = curl * state.curl_strength
        stone.spin_vel = curl * (t.spin_base + min(t.spin_bonus_cap, state.score * t.spin_per_score))

        state.score += 1
        if self.on_score is not None:
            self.on_score(1)

        state.base_speed = min(d.speed_cap, state.base_speed + d.speed_step)
        state.curl_strength = min(d.curl_cap, state.curl_strength + d.curl_step)

        # same stone can take more pokes in later rounds
        state.guide = self.guide.next()
        logger.debug("hit: score=%d speed=%.0f curl=%.0f", state.score,
                     state.base_speed, state.curl_strength)
