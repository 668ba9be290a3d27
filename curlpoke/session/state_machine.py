from __future__ import annotations

import logging
import random
from typing import Iterable, Optional, Tuple

from curlpoke.core.config import Preset, DEFAULT_PRESET
from curlpoke.core.control import ControlAction
from curlpoke.core.types import (
    FailReason, FingertipAnchor, Frame, Phase, PokeJudgment, PokeOutcome,
    PointerEvent, SessionState, StoneEvent, Viewport,
)
from curlpoke.runtime.calibration import FALLBACK_ANCHOR
from curlpoke.remote.counter import UNAVAILABLE
from curlpoke.sim.guide import GuideDirector
from curlpoke.sim.hand import HandController
from curlpoke.sim.input import InputController
from curlpoke.sim.poke import PokeResolver
from curlpoke.sim.stones import StoneSimulation

logger = logging.getLogger(__name__)

_POKE_FAILURES = {
    PokeOutcome.LATE: FailReason.LATE,
    PokeOutcome.INACCURATE: FailReason.INACCURATE,
    PokeOutcome.WRONG_SIDE: FailReason.WRONG_SIDE,
}

_STONE_FAILURES = {
    StoneEvent.CROSSED_LINE: FailReason.CROSSED_LINE,
    StoneEvent.ESCAPED: FailReason.ESCAPED,
}


class GameSession:
    """
    ATTRACT -> PLAYING -> GAME_OVER -> (retry) PLAYING ...

    Owns every piece of mutable game state. One call to tick() per
    display refresh; pointer events and control actions are applied
    between ticks. Gameplay failures never raise, they only move the
    session to GAME_OVER.
    """

    def __init__(self, preset: Preset = DEFAULT_PRESET,
                 viewport: Optional[Viewport] = None,
                 anchor: FingertipAnchor = FALLBACK_ANCHOR,
                 sprite_size: Optional[Tuple[int, int]] = None,
                 rng: Optional[random.Random] = None,
                 counter=None) -> None:
        self.preset = preset
        self.viewport = viewport or Viewport(1280, 720)
        self.anchor = anchor
        self.counter = counter
        rng = rng or random.Random()

        self.state = SessionState(
            base_speed=preset.difficulty.base_speed,
            curl_strength=preset.difficulty.curl_strength,
        )
        self.guide = GuideDirector(rng)
        self.state.guide = self.guide.current

        self.stones = StoneSimulation(preset.stones, self.viewport, rng)
        self.hand = HandController(preset.hand, self.viewport, sprite_size)
        self.resolver = PokeResolver(
            preset.poke, preset.difficulty, self.guide,
            on_score=self._notify_counter,
        )
        self.input = InputController(self.hand, self.state, self.poke)
        self.last_judgment: Optional[PokeJudgment] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    # ---------------------- controls ----------------------

    def start(self) -> None:
        self.state.started = True
        self._reset()
        logger.info("session started")

    def retry(self) -> None:
        if not self.state.started:
            self.start()
            return
        self._reset()
        logger.info("session restarted")

    def quit(self) -> None:
        # ends the session; the loop keeps rendering
        self.state.running = False
        self.state.quit = True
        logger.info("session quit at score %d", self.state.score)

    def apply(self, actions: Iterable[ControlAction]) -> None:
        for a in actions:
            if a == ControlAction.START:
                if self.phase == Phase.ATTRACT:
                    self.start()
                else:
                    self.retry()
            elif a == ControlAction.RETRY:
                self.retry()
            elif a == ControlAction.QUIT:
                self.quit()

    def _reset(self) -> None:
        s = self.state
        d = self.preset.difficulty
        s.running = True
        s.quit = False
        s.failure = None
        s.score = 0
        s.base_speed = d.base_speed
        s.curl_strength = d.curl_strength
        self.hand.reset_poke_anim()
        self.hand.holding = False
        self.last_judgment = None

        self.stones.clear()
        self.stones.spawn_active(True, self._spawn_speed())
        s.guide = self.guide.next()

    def _game_over(self, reason: FailReason) -> None:
        if not self.state.running:
            return
        self.state.running = False
        self.state.failure = reason
        logger.info("game over (%s) at score %d", reason.value, self.state.score)

    # ---------------------- input ----------------------

    def handle_pointer(self, ev: PointerEvent) -> bool:
        return self.input.handle(ev)

    def poke(self) -> PokeJudgment:
        finger = self.hand.fingertip(self.anchor)
        j = self.resolver.resolve(self.state, self.stones.active, finger)
        self.last_judgment = j
        reason = _POKE_FAILURES.get(j.outcome)
        if reason is not None:
            self._game_over(reason)
        return j

    def _notify_counter(self, delta: int) -> None:
        if self.counter is not None:
            self.counter.increment(delta)

    # ---------------------- loop ----------------------

    def resize(self, width: float, height: float, device_pixel_ratio: float = 1.0) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"viewport must be positive, got {width}x{height}")
        self.viewport.width = width
        self.viewport.height = height
        self.viewport.device_pixel_ratio = device_pixel_ratio
        self.hand.layout()

    def _spawn_speed(self) -> float:
        s = self.state
        return s.base_speed + s.score * self.preset.difficulty.speed_per_score

    def tick(self, dt: float) -> Frame:
        dt = min(self.preset.loop.max_dt, max(0.0, dt))
        self.hand.update(dt)

        if self.state.running and self.stones.active is not None:
            finger_y = self.hand.fingertip(self.anchor)[1]
            ev = self.stones.advance(
                dt, finger_y, self.preset.poke.crossed_margin, self._spawn_speed(),
            )
            reason = _STONE_FAILURES.get(ev)
            if reason is not None:
                self._game_over(reason)
            elif ev in (StoneEvent.PROMOTED, StoneEvent.RESPAWNED):
                self.state.guide = self.guide.next()

        return self.frame()

    def frame(self) -> Frame:
        s = self.state
        return Frame(
            phase=s.phase,
            score=s.score,
            guide=s.guide,
            hand=self.hand.pose(poke_frame=self.hand.poke_anim > 0.0),
            fingertip=self.hand.fingertip(self.anchor),
            stones=self.stones.views(),
            failure=s.failure,
            global_total=self.counter.display_text() if self.counter is not None else UNAVAILABLE,
            quit=s.quit,
        )
