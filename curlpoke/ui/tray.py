from __future__ import annotations

import logging
import threading
import time
from typing import Callable

import pystray
from PIL import Image, ImageDraw

from curlpoke.core.control import ControlAction, SessionControls

logger = logging.getLogger(__name__)


def _make_icon(playing: bool) -> Image.Image:
    # little curling stone: grey disc, handle brighter while a round is live
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)
    d.ellipse((10, 14, 54, 58), fill=(150, 160, 170, 255), outline=(255, 255, 255, 220), width=3)
    handle = (125, 211, 252, 255) if playing else (255, 255, 255, 90)
    d.rounded_rectangle((24, 26, 40, 34), radius=3, fill=handle)
    return img


def run_tray(controls: SessionControls, status: Callable[[], str],
             playing: Callable[[], bool], stop_flag: threading.Event) -> None:
    """
    Tray menu with Start / Retry / Quit. Actions go through SessionControls;
    the game loop picks them up on its next tick.
    """
    icon = pystray.Icon("CurlPoke")

    def update_icon():
        icon.icon = _make_icon(playing())
        icon.title = f"CurlPoke ({status()})"

    def post(action: ControlAction):
        def _cb(_icon, _item):
            controls.post(action)
        return _cb

    def on_exit(_icon, _item):
        controls.post(ControlAction.EXIT)
        stop_flag.set()
        icon.stop()

    icon.menu = pystray.Menu(
        pystray.MenuItem("Start", post(ControlAction.START)),
        pystray.MenuItem("Retry", post(ControlAction.RETRY)),
        pystray.MenuItem("Quit session", post(ControlAction.QUIT)),
        pystray.Menu.SEPARATOR,
        pystray.MenuItem("Exit", on_exit),
    )

    update_icon()

    # keep the title/score fresh while the game runs
    def watcher():
        last = None
        while not stop_flag.is_set():
            cur = (status(), playing())
            if cur != last:
                update_icon()
                last = cur
            time.sleep(0.2)

    threading.Thread(target=watcher, daemon=True).start()
    try:
        icon.run()
    except Exception:
        # Tray backends can be fragile; do not kill the game.
        logger.warning("tray backend crashed", exc_info=True)
        stop_flag.set()
