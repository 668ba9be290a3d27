from __future__ import annotations

import logging

from pynput import keyboard

from curlpoke.core.control import ControlAction, SessionControls

logger = logging.getLogger(__name__)


def run_hotkeys(controls: SessionControls) -> None:
    """
    Global hotkeys (X11):
    - Ctrl+Alt+Space: Start / Retry
    - Ctrl+Alt+Q:     Quit session
    - Ctrl+Alt+Esc:   Exit
    """

    pressed = set()

    CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}
    ALT_KEYS  = {keyboard.Key.alt, keyboard.Key.alt_l, keyboard.Key.alt_r}

    def is_ctrl():
        return any(k in pressed for k in CTRL_KEYS)

    def is_alt():
        return any(k in pressed for k in ALT_KEYS)

    def on_press(k):
        pressed.add(k)

        if is_ctrl() and is_alt():
            if k == keyboard.Key.space:
                controls.post(ControlAction.START)
                logger.info("start/retry (Ctrl+Alt+Space)")
            elif getattr(k, "char", None) in ("q", "Q"):
                controls.post(ControlAction.QUIT)
                logger.info("quit session (Ctrl+Alt+Q)")
            elif k == keyboard.Key.esc:
                controls.post(ControlAction.EXIT)
                logger.info("exit (Ctrl+Alt+Esc)")

    def on_release(k):
        pressed.discard(k)

    with keyboard.Listener(on_press=on_press, on_release=on_release) as listener:
        listener.join()
