from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Deque, List


class ControlAction(str, Enum):
    START = "START"
    RETRY = "RETRY"
    QUIT = "QUIT"
    EXIT = "EXIT"   # close the whole app, not just the session


@dataclass
class SessionControls:
    """
    Shared control plane.
    Tray / hotkey threads post actions; the game loop drains them once per tick.
    """
    _pending: Deque[ControlAction] = field(default_factory=deque)
    _lock: Lock = field(default_factory=Lock)
    _exit: bool = False

    def post(self, action: ControlAction) -> None:
        with self._lock:
            if action == ControlAction.EXIT:
                self._exit = True
            self._pending.append(action)

    def drain(self) -> List[ControlAction]:
        with self._lock:
            out = list(self._pending)
            self._pending.clear()
            return out

    def exit_requested(self) -> bool:
        with self._lock:
            return self._exit
