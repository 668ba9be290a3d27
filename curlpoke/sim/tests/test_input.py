import pytest

from curlpoke.core.config import DEFAULT_PRESET
from curlpoke.core.types import (
    PointerDevice, PointerEvent, PointerKind, SessionState, Viewport,
)
from curlpoke.sim.hand import HandController
from curlpoke.sim.input import InputController

MOUSE, TOUCH, PEN = PointerDevice.MOUSE, PointerDevice.TOUCH, PointerDevice.PEN


def ev(kind, x=500.0, device=MOUSE):
    return PointerEvent(kind=kind, x=x, device=device)


def rig(started=True, running=True):
    hand = HandController(DEFAULT_PRESET.hand, Viewport(1000, 800))
    state = SessionState(started=started, running=running)
    pokes = []
    ic = InputController(hand, state, lambda: pokes.append(1))
    return ic, hand, state, pokes


def test_move_tracks_even_before_start():
    ic, hand, _, pokes = rig(started=False, running=False)
    ic.handle(ev(PointerKind.MOVE, x=10.0))
    assert hand.target_x == pytest.approx(120.0)
    ic.handle(ev(PointerKind.MOVE, x=990.0))
    assert hand.target_x == pytest.approx(880.0)
    ic.handle(ev(PointerKind.MOVE, x=400.0))
    assert hand.target_x == 400.0
    assert pokes == []


@pytest.mark.parametrize("started,running", [(False, False), (True, False)])
def test_down_ignored_unless_playing(started, running):
    ic, hand, _, pokes = rig(started, running)
    assert ic.handle(ev(PointerKind.DOWN)) is False
    assert not hand.holding
    assert pokes == []


def test_mouse_pokes_on_press():
    ic, hand, _, pokes = rig()
    hand.poke_anim = 0.5

    assert ic.handle(ev(PointerKind.DOWN, x=300.0)) is True
    assert pokes == [1]
    assert hand.holding
    assert hand.target_x == 300.0
    assert hand.poke_anim == pytest.approx(0.0001)

    assert ic.handle(ev(PointerKind.UP)) is False
    assert pokes == [1]
    assert not hand.holding


@pytest.mark.parametrize("device", [TOUCH, PEN])
def test_touch_and_pen_poke_on_release(device):
    ic, hand, _, pokes = rig()
    hand.poke_anim = 0.5

    assert ic.handle(ev(PointerKind.DOWN, device=device)) is False
    assert pokes == []
    assert hand.holding
    assert hand.poke_anim == 0.0

    ic.handle(ev(PointerKind.MOVE, x=700.0, device=device))
    assert ic.handle(ev(PointerKind.UP, x=700.0, device=device)) is True
    assert pokes == [1]
    assert not hand.holding


def test_release_without_press_does_nothing():
    ic, hand, _, pokes = rig()
    assert ic.handle(ev(PointerKind.UP, device=TOUCH)) is False
    assert pokes == []


def test_cancel_drops_the_hold_without_poking():
    ic, hand, _, pokes = rig()
    ic.handle(ev(PointerKind.DOWN, device=TOUCH))
    ic.handle(ev(PointerKind.CANCEL, device=TOUCH))
    assert not hand.holding
    ic.handle(ev(PointerKind.UP, device=TOUCH))
    assert pokes == []


def test_release_after_game_over_does_not_poke():
    ic, hand, state, pokes = rig()
    ic.handle(ev(PointerKind.DOWN, device=TOUCH))
    state.running = False
    ic.handle(ev(PointerKind.UP, device=TOUCH))
    assert pokes == []
    assert not hand.holding
