from __future__ import annotations

from typing import Callable

from curlpoke.core.types import PointerDevice, PointerEvent, PointerKind, SessionState
from curlpoke.sim.hand import HandController


class InputController:
    """
    Pointer rules:
    - the hand always follows X, even before a session starts
    - mouse pokes on press
    - touch / pen pokes on release, so a drag-then-let-go times the poke
    """

    def __init__(self, hand: HandController, state: SessionState,
                 poke: Callable[[], object]) -> None:
        self.hand = hand
        self.state = state
        self._poke = poke

    def _live(self) -> bool:
        return self.state.started and self.state.running

    def handle(self, ev: PointerEvent) -> bool:
        """Apply one pointer event. Returns True if it triggered a poke."""
        if ev.kind == PointerKind.MOVE:
            self.hand.set_target(ev.x)
            return False

        if ev.kind == PointerKind.DOWN:
            if not self._live():
                return False
            self.hand.holding = True
            self.hand.reset_poke_anim()
            self.hand.set_target(ev.x)
            if ev.device == PointerDevice.MOUSE:
                return self._fire()
            return False

        if ev.kind == PointerKind.UP:
            was_holding = self.hand.holding
            self.hand.holding = False
            if was_holding and self._live() and ev.device != PointerDevice.MOUSE:
                return self._fire()
            return False

        if ev.kind == PointerKind.CANCEL:
            self.hand.holding = False
        return False

    def _fire(self) -> bool:
        self._poke()
        self.hand.start_poke_anim()
        return True
