from __future__ import annotations

import logging
import random
from typing import Optional, Tuple

from curlpoke.core.config import StoneTuning
from curlpoke.core.smoothing import damp
from curlpoke.core.types import Stone, StoneEvent, StoneView, Viewport, clamp

logger = logging.getLogger(__name__)


class StoneSimulation:
    """
    Owns the active stone and the one pre-spawned behind it.

    `next` only ever exists while `active` is above the pre-spawn line,
    and is created at most once per active stone. When a touched active
    stone leaves the top edge, `next` takes its place (or a fresh stone
    is spawned if none is waiting).
    """

    def __init__(self, tuning: StoneTuning, viewport: Viewport,
                 rng: Optional[random.Random] = None) -> None:
        self.tuning = tuning
        self.viewport = viewport
        self.rng = rng or random.Random()
        self.active: Optional[Stone] = None
        self.next: Optional[Stone] = None

    def clear(self) -> None:
        self.active = None
        self.next = None

    def radius(self) -> float:
        lo, hi = self.tuning.radius_range
        return clamp(self.viewport.width * self.tuning.radius_frac, lo, hi)

    def spawn(self, is_first: bool, extra_depth: float, speed: float) -> Stone:
        """Build a stone below the bottom edge moving up at `speed`."""
        t = self.tuning
        w, h = self.viewport.width, self.viewport.height
        r = self.radius()
        x = self.rng.uniform(w * t.spawn_band[0], w * t.spawn_band[1])
        if is_first:
            depth = t.first_depth
        else:
            depth = self.rng.uniform(*t.depth_range) + extra_depth
        return Stone(x=x, y=h + r + depth, r=r, vy=-speed)

    def spawn_active(self, is_first: bool, speed: float) -> Stone:
        self.active = self.spawn(is_first, 0.0, speed)
        self.next = None
        return self.active

    def update(self, stone: Stone, dt: float) -> None:
        t = self.tuning
        stone.y += stone.vy * dt
        stone.x += stone.vx * dt
        stone.spin += stone.spin_vel * dt

        # curl settles out
        stone.vx = damp(stone.vx, t.vx_damping, dt)
        stone.spin_vel = damp(stone.spin_vel, t.spin_damping, dt)

        m = stone.r * t.wall_margin
        stone.x = clamp(stone.x, m, self.viewport.width - m)

    def advance(self, dt: float, finger_y: float, crossed_margin: float,
                speed: float) -> StoneEvent:
        """
        One pipeline step. Returns what happened to the active stone;
        the caller turns CROSSED_LINE / ESCAPED into a game over and
        PROMOTED / RESPAWNED into a new guide.
        """
        s = self.active
        if s is None:
            return StoneEvent.NONE

        self.update(s, dt)

        if not s.touched and s.y < finger_y - s.r * crossed_margin:
            return StoneEvent.CROSSED_LINE

        event = StoneEvent.NONE
        if s.y < -s.r - self.tuning.exit_margin:
            if not s.touched:
                return StoneEvent.ESCAPED
            if self.next is not None:
                self.active, self.next = self.next, None
                event = StoneEvent.PROMOTED
            else:
                self.spawn_active(False, speed)
                event = StoneEvent.RESPAWNED
            logger.debug("active stone replaced (%s)", event.value)

        self._maybe_prespawn(speed)

        if self.next is not None:
            self.update(self.next, dt)
        return event

    def _maybe_prespawn(self, speed: float) -> None:
        a = self.active
        if a is None or self.next is not None:
            return
        if a.y < self.viewport.height * self.tuning.prespawn_frac:
            # deeper start so it can't reach the poke line before promotion
            extra = self.rng.uniform(*self.tuning.prespawn_depth)
            self.next = self.spawn(False, extra, speed)

    def views(self) -> Tuple[StoneView, ...]:
        out = []
        # back to front: on-deck stone first
        if self.next is not None:
            n = self.next
            out.append(StoneView(n.x, n.y, n.r, n.spin, active=False))
        if self.active is not None:
            a = self.active
            out.append(StoneView(a.x, a.y, a.r, a.spin, active=True))
        return tuple(out)
