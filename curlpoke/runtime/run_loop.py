from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from curlpoke.core.control import ControlAction, SessionControls
from curlpoke.core.types import (
    Frame, Phase, PointerDevice, PointerEvent, PointerKind,
)
from curlpoke.session.state_machine import GameSession

logger = logging.getLogger(__name__)


@dataclass
class FakeSource:
    """
    Deterministic fake pointer to validate runtime wiring.
    Follows the active stone and pokes it every `period_s` seconds.
    """
    session: GameSession
    period_s: float = 0.9
    _last_poke: float = 0.0

    def events(self, t: float) -> List[PointerEvent]:
        out = []
        stone = self.session.stones.active
        if stone is None:
            return out
        out.append(PointerEvent(PointerKind.MOVE, stone.x, PointerDevice.MOUSE))
        if t - self._last_poke >= self.period_s:
            self._last_poke = t
            out.append(PointerEvent(PointerKind.DOWN, stone.x, PointerDevice.MOUSE))
            out.append(PointerEvent(PointerKind.UP, stone.x, PointerDevice.MOUSE))
        return out


def run_session(session: GameSession, controls: SessionControls,
                poll: Callable[[float], List[PointerEvent]],
                render: Optional[Callable[[Frame], None]] = None,
                hz: float = 60.0) -> None:
    """
    The frame loop: drain controls, apply pointer events, tick, render.
    Runs until an EXIT control is posted.
    """
    last = time.monotonic()
    period = 1.0 / hz
    while not controls.exit_requested():
        now = time.monotonic()
        dt = now - last
        last = now

        session.apply(controls.drain())
        for ev in poll(now):
            session.handle_pointer(ev)

        frame = session.tick(dt)
        if render is not None:
            render(frame)

        spare = period - (time.monotonic() - now)
        if spare > 0:
            time.sleep(spare)


def run(seconds: float = 20.0) -> None:
    session = GameSession()
    controls = SessionControls()
    src = FakeSource(session)
    t_end = time.monotonic() + seconds
    last_phase = [session.phase]

    def poll(now: float) -> List[PointerEvent]:
        if now >= t_end:
            controls.post(ControlAction.EXIT)
        return src.events(now)

    def render(frame: Frame) -> None:
        if frame.phase != last_phase[0]:
            print(f"[CurlPoke] {last_phase[0].value} -> {frame.phase.value} score={frame.score}"
                  + (f" ({frame.failure.value})" if frame.failure else ""))
            last_phase[0] = frame.phase
            if frame.phase == Phase.GAME_OVER:
                controls.post(ControlAction.RETRY)

    print("[CurlPoke] Runtime loop (FAKE POINTER). Ctrl+C to exit.")
    controls.post(ControlAction.START)
    try:
        run_session(session, controls, poll, render)
    except KeyboardInterrupt:
        print("\n[CurlPoke] exiting")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
