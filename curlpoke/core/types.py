"""
CurlPoke — CORE CONTRACTS

Shared value types passed between input, simulation, session and render.

Everything the loop owns (stones, hand, session) is mutable and lives in
exactly one place. Everything that crosses a boundary (pointer events,
anchors, frames) is frozen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


Point = Tuple[float, float]


# ============================================================
# Pointer input (window / webcam → InputController)
# ============================================================

class PointerKind(str, Enum):
    MOVE = "MOVE"
    DOWN = "DOWN"
    UP = "UP"
    CANCEL = "CANCEL"


class PointerDevice(str, Enum):
    MOUSE = "MOUSE"
    TOUCH = "TOUCH"
    PEN = "PEN"


@dataclass(frozen=True)
class PointerEvent:
    """A single pointer sample in viewport (CSS-pixel) coordinates."""
    kind: PointerKind
    x: float
    device: PointerDevice = PointerDevice.MOUSE
    y: float = 0.0


# ============================================================
# Rounds and judgments
# ============================================================

class GuideDirection(str, Enum):
    LEFT = "L"
    STRAIGHT = "S"
    RIGHT = "R"

    @property
    def curl(self) -> int:
        """+1 curls right, -1 curls left, 0 keeps the stone straight."""
        if self is GuideDirection.RIGHT:
            return 1
        if self is GuideDirection.LEFT:
            return -1
        return 0

    @property
    def arrow(self) -> str:
        return {"L": "←", "S": "↑", "R": "→"}[self.value]


class Phase(str, Enum):
    ATTRACT = "ATTRACT"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"


class PokeOutcome(str, Enum):
    HIT = "HIT"
    LATE = "LATE"
    INACCURATE = "INACCURATE"
    WRONG_SIDE = "WRONG_SIDE"
    NO_STONE = "NO_STONE"


class FailReason(str, Enum):
    LATE = "LATE"
    INACCURATE = "INACCURATE"
    WRONG_SIDE = "WRONG_SIDE"
    CROSSED_LINE = "CROSSED_LINE"   # untouched stone slipped past the fingertip
    ESCAPED = "ESCAPED"             # untouched stone left the top edge


class StoneEvent(str, Enum):
    NONE = "NONE"
    CROSSED_LINE = "CROSSED_LINE"
    ESCAPED = "ESCAPED"
    PROMOTED = "PROMOTED"
    RESPAWNED = "RESPAWNED"


# ============================================================
# World state
# ============================================================

@dataclass
class Viewport:
    width: float
    height: float
    device_pixel_ratio: float = 1.0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"viewport must be positive, got {self.width}x{self.height}")

    @property
    def pixel_ratio(self) -> float:
        return clamp(self.device_pixel_ratio or 1.0, 1.0, 2.5)

    @property
    def backing_size(self) -> Tuple[int, int]:
        r = self.pixel_ratio
        return int(math.floor(self.width * r)), int(math.floor(self.height * r))

    def to_backing(self, x: float, y: float) -> Tuple[int, int]:
        """Logical (game) point -> backing-store pixel."""
        r = self.pixel_ratio
        return int(x * r), int(y * r)

    def to_logical(self, px: float, py: float) -> Tuple[float, float]:
        """Backing-store pixel (e.g. a window mouse position) -> logical point."""
        r = self.pixel_ratio
        return px / r, py / r


@dataclass
class Stone:
    x: float
    y: float
    r: float
    vx: float = 0.0
    vy: float = 0.0
    spin: float = 0.0
    spin_vel: float = 0.0
    touched: bool = False


@dataclass(frozen=True)
class FingertipAnchor:
    """Fingertip position in poke-sprite pixel space."""
    local_x: float
    local_y: float
    source: str = "fallback"   # "scan" | "cache" | "fallback"


@dataclass
class SessionState:
    """
    The whole mutable game context. One instance per GameSession.
    """
    started: bool = False
    running: bool = False
    quit: bool = False
    score: int = 0
    base_speed: float = 135.0
    curl_strength: float = 70.0
    guide: GuideDirection = GuideDirection.STRAIGHT
    failure: Optional[FailReason] = None

    @property
    def phase(self) -> Phase:
        if not self.started:
            return Phase.ATTRACT
        if self.running:
            return Phase.PLAYING
        return Phase.GAME_OVER


# ============================================================
# Session → Renderer
# ============================================================

@dataclass(frozen=True)
class HandPose:
    """Where the hand sprite lands this frame (top-left, size, scale)."""
    x0: float
    y0: float
    draw_w: float
    draw_h: float
    scale: float
    poke_frame: bool


@dataclass(frozen=True)
class StoneView:
    x: float
    y: float
    r: float
    spin: float
    active: bool


@dataclass(frozen=True)
class PokeJudgment:
    outcome: PokeOutcome
    side: Optional[GuideDirection] = None
    dx: float = 0.0
    distance: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome == PokeOutcome.HIT


@dataclass(frozen=True)
class Frame:
    """Everything a renderer needs for one tick. Drawing itself is not our job."""
    phase: Phase
    score: int
    guide: GuideDirection
    hand: HandPose
    fingertip: Point
    stones: Tuple[StoneView, ...] = field(default_factory=tuple)
    failure: Optional[FailReason] = None
    global_total: str = "—"
    quit: bool = False


def clamp(v: float, lo: float, hi: float) -> float:
    if v < lo:
        return lo
    if v > hi:
        return hi
    return v


def clamp01(x: float) -> float:
    return clamp(x, 0.0, 1.0)


def ease_out_cubic(t: float) -> float:
    return 1.0 - (1.0 - t) ** 3
