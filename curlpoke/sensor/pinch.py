from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from curlpoke.core.types import PointerKind, clamp01


def _dist(a, b):
    dx = a.x - b.x
    dy = a.y - b.y
    dz = a.z - b.z
    return (dx*dx + dy*dy + dz*dz) ** 0.5


def pinch_strength(thumb_tip, index_tip, index_mcp, pinky_mcp) -> float:
    """0 = open hand, 1 = touching. Distance is normalized by palm width (index MCP <-> pinky MCP)."""
    palm = _dist(index_mcp, pinky_mcp) + 1e-6
    return clamp01(1.0 - (_dist(thumb_tip, index_tip) / palm))


@dataclass
class PinchLatch:
    """
    Pinch -> press/release with hysteresis.
    Presses at `on`, releases at `off`; in between the last state holds.
    """
    on: float = 0.72
    off: float = 0.55
    pressed: bool = False

    def update(self, pinch: float) -> Optional[PointerKind]:
        if not self.pressed and pinch >= self.on:
            self.pressed = True
            return PointerKind.DOWN
        if self.pressed and pinch <= self.off:
            self.pressed = False
            return PointerKind.UP
        return None

    def lost(self) -> bool:
        """Hand vanished. True if a press was open (caller sends CANCEL, never UP)."""
        was = self.pressed
        self.pressed = False
        return was
