from __future__ import annotations

from typing import Optional, Tuple

from curlpoke.core.config import HandTuning
from curlpoke.core.smoothing import ExpApproach
from curlpoke.core.types import (
    FingertipAnchor, HandPose, Point, Viewport, clamp, clamp01, ease_out_cubic,
)


class HandController:
    """
    The on-screen hand. Bottom anchored, slides horizontally toward the
    pointer and bobs up briefly after each poke.
    """

    def __init__(self, tuning: HandTuning, viewport: Viewport,
                 sprite_size: Optional[Tuple[int, int]] = None) -> None:
        self.tuning = tuning
        self.viewport = viewport
        self.sprite_size = sprite_size or tuning.sprite_size

        self.target_x = viewport.width * 0.5
        self._x = ExpApproach(k=tuning.smoothing_k, x0=self.target_x)
        self.y = viewport.height
        self.holding = False
        self.poke_anim = 0.0

    @property
    def x(self) -> float:
        return self._x.x

    def _band(self) -> Tuple[float, float]:
        lo, hi = self.tuning.track_band
        w = self.viewport.width
        return w * lo, w * hi

    def layout(self) -> None:
        """Re-anchor after a viewport change."""
        self.y = self.viewport.height
        lo, hi = self._band()
        self._x.reset(clamp(self.x, lo, hi))
        self.target_x = clamp(self.target_x, lo, hi)

    def set_target(self, x: float) -> None:
        lo, hi = self._band()
        self.target_x = clamp(x, lo, hi)

    def reset_poke_anim(self) -> None:
        self.poke_anim = 0.0

    def start_poke_anim(self) -> None:
        self.poke_anim = self.tuning.poke_anim_start

    def update(self, dt: float) -> None:
        lo, hi = self._band()
        self._x.apply(self.target_x, dt)
        self._x.reset(clamp(self.x, lo, hi))

        if self.poke_anim > 0.0:
            self.poke_anim += dt * self.tuning.poke_anim_rate
            if self.poke_anim >= 1.0:
                self.poke_anim = 0.0

    def pose(self, poke_frame: bool) -> HandPose:
        t = self.tuning
        up = ease_out_cubic(clamp01(self.poke_anim)) if self.poke_anim > 0.0 else 0.0
        anchor_x = self.x
        anchor_y = self.y - up * t.bob_px

        lo, hi = t.width_range
        target_w = clamp(self.viewport.width * t.width_frac, lo, hi) * t.scale
        nat_w, nat_h = self.sprite_size
        scale = target_w / nat_w
        draw_w = nat_w * scale
        draw_h = nat_h * scale
        return HandPose(
            x0=anchor_x - draw_w / 2.0,
            y0=anchor_y - draw_h,
            draw_w=draw_w,
            draw_h=draw_h,
            scale=scale,
            poke_frame=poke_frame,
        )

    def fingertip(self, anchor: FingertipAnchor) -> Point:
        # collision always uses the poke sprite's transform
        p = self.pose(poke_frame=True)
        return (p.x0 + anchor.local_x * p.scale, p.y0 + anchor.local_y * p.scale)
