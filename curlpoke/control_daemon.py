from __future__ import annotations

import logging
import threading
from typing import Callable

from curlpoke.core.control import SessionControls

logger = logging.getLogger(__name__)


def start_controls(controls: SessionControls, status: Callable[[], str],
                   playing: Callable[[], bool], tray: bool = True) -> threading.Event:
    """
    Bring up the optional desktop controls next to the game window.
    Each backend is best effort: if it is missing or crashes, the
    in-window keys still work.
    """
    stop = threading.Event()

    try:
        from curlpoke.ui.hotkeys import run_hotkeys
    except Exception as e:
        logger.warning("hotkeys unavailable: %s", e)
    else:
        threading.Thread(target=run_hotkeys, args=(controls,), daemon=True).start()
        print("  Hotkeys: Ctrl+Alt+Space start/retry, Ctrl+Alt+Q quit, Ctrl+Alt+Esc exit")

    if not tray:
        return stop
    try:
        from curlpoke.ui.tray import run_tray
    except Exception as e:
        print(f"  Tray: unavailable ({e}).")
        return stop

    print("  Tray: Start / Retry / Quit session / Exit")
    threading.Thread(target=run_tray, args=(controls, status, playing, stop), daemon=True).start()
    return stop
