from __future__ import annotations

import logging
import math
import time
from collections import deque
from typing import Deque, List, Optional, Tuple

import cv2
import numpy as np

from curlpoke.core.control import ControlAction, SessionControls
from curlpoke.core.types import (
    Frame, GuideDirection, Phase, PointerDevice, PointerEvent, PointerKind, Viewport,
)
from curlpoke.session.state_machine import GameSession

logger = logging.getLogger(__name__)

WINDOW = "CurlPoke"

ICE = (255, 242, 217)          # BGR
LINE = (120, 80, 40)
STONE = (178, 166, 154)
SKIN = (160, 201, 242)
ACCENT = (252, 211, 125)
INK = (40, 40, 40)

_ARROWS = {GuideDirection.LEFT: "<", GuideDirection.STRAIGHT: "^", GuideDirection.RIGHT: ">"}
_MOUSE_KINDS = {
    cv2.EVENT_MOUSEMOVE: PointerKind.MOVE,
    cv2.EVENT_LBUTTONDOWN: PointerKind.DOWN,
    cv2.EVENT_LBUTTONUP: PointerKind.UP,
}


def _load_sprite(path: Optional[str]):
    if not path:
        return None
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None or img.ndim != 3 or img.shape[2] != 4:
        logger.warning("hand sprite %s unusable; drawing fallback shapes", path)
        return None
    return img


def _blit(dst: np.ndarray, src: np.ndarray, x0: int, y0: int) -> None:
    """Alpha-blend a BGRA sprite onto a BGR canvas, clipped to the canvas."""
    h, w = src.shape[:2]
    H, W = dst.shape[:2]
    ax0, ay0 = max(x0, 0), max(y0, 0)
    ax1, ay1 = min(x0 + w, W), min(y0 + h, H)
    if ax0 >= ax1 or ay0 >= ay1:
        return
    part = src[ay0 - y0:ay1 - y0, ax0 - x0:ax1 - x0]
    a = part[:, :, 3:4].astype(np.float32) / 255.0
    roi = dst[ay0:ay1, ax0:ax1].astype(np.float32)
    dst[ay0:ay1, ax0:ax1] = (part[:, :, :3] * a + roi * (1.0 - a)).astype(np.uint8)


class WindowRenderer:
    """
    Primitive-shape renderer. Art is not the point; seeing the game state is.
    The canvas is the viewport's backing store; game coordinates are logical
    and get scaled by the pixel ratio on the way in.
    """

    def __init__(self, viewport: Viewport, sprite_path: Optional[str] = None):
        self.viewport = viewport
        self.sprite = _load_sprite(sprite_path)

    def _pt(self, x: float, y: float) -> Tuple[int, int]:
        return self.viewport.to_backing(x, y)

    def _len(self, v: float) -> int:
        return max(1, int(v * self.viewport.pixel_ratio))

    def render(self, frame: Frame) -> np.ndarray:
        vp = self.viewport
        w, h = vp.backing_size
        img = np.empty((h, w, 3), np.uint8)
        img[:] = ICE
        cv2.line(img, (w // 2, 0), (w // 2, h), LINE, self._len(2))

        for s in frame.stones:
            c = self._pt(s.x, s.y)
            r = self._len(s.r)
            cv2.ellipse(img, self._pt(s.x, s.y + s.r * 0.62), (self._len(s.r * 0.95), self._len(s.r * 0.32)),
                        0, 0, 360, (200, 190, 180), -1)
            cv2.circle(img, c, r, STONE, -1, cv2.LINE_AA)
            cv2.circle(img, c, r, INK, self._len(2), cv2.LINE_AA)
            # handle shows the spin
            hx = s.x + math.cos(s.spin) * s.r * 0.6
            hy = s.y + math.sin(s.spin) * s.r * 0.6
            cv2.line(img, c, self._pt(hx, hy), INK if s.active else LINE, self._len(4), cv2.LINE_AA)

        self._draw_hand(img, frame)
        cv2.circle(img, self._pt(*frame.fingertip), self._len(3), (0, 0, 255), -1)
        self._draw_guide(img, frame.guide)
        self._draw_hud(img, frame)
        return img

    def _draw_hand(self, img: np.ndarray, frame: Frame) -> None:
        p = frame.hand
        if self.sprite is not None:
            sprite = cv2.resize(self.sprite, (self._len(p.draw_w), self._len(p.draw_h)))
            _blit(img, sprite, *self._pt(p.x0, p.y0))
            return
        cx = p.x0 + p.draw_w / 2
        bottom = p.y0 + p.draw_h
        fx, fy = frame.fingertip
        cv2.rectangle(img, self._pt(cx - 40, bottom - 120), self._pt(cx + 40, bottom), SKIN, -1)
        cv2.rectangle(img, self._pt(fx - 9, fy), self._pt(fx + 9, bottom - 110), SKIN, -1)

    def _draw_guide(self, img: np.ndarray, guide: GuideDirection) -> None:
        # preview stone: the dot marks where to poke, opposite the curl
        x, y, r = self.viewport.width / 2, 76, 20
        c = self._pt(x, y)
        cv2.circle(img, c, self._len(r), STONE, -1, cv2.LINE_AA)
        cv2.circle(img, c, self._len(r), INK, self._len(2), cv2.LINE_AA)
        cv2.circle(img, self._pt(x - guide.curl * r * 0.55, y), self._len(5), ACCENT, -1, cv2.LINE_AA)

    def _draw_hud(self, img: np.ndarray, frame: Frame) -> None:
        font = cv2.FONT_HERSHEY_SIMPLEX
        s = self.viewport.pixel_ratio
        cv2.putText(img, f"{frame.score}", self._pt(20, 48), font, 1.4 * s, INK, self._len(3), cv2.LINE_AA)
        cv2.putText(img, _ARROWS[frame.guide], self._pt(self.viewport.width / 2 - 10, 130), font, 1.2 * s,
                    INK, self._len(3), cv2.LINE_AA)
        cv2.putText(img, f"world: {frame.global_total}", self._pt(20, 84), font, 0.6 * s, INK, self._len(1),
                    cv2.LINE_AA)

        msg = None
        if frame.phase == Phase.ATTRACT:
            msg = "SPACE to start"
        elif frame.phase == Phase.GAME_OVER:
            reason = frame.failure.value.replace("_", " ").lower() if frame.failure else ""
            msg = "thanks for playing" if frame.quit else f"missed ({reason}) - SPACE retry, Q quit"
        if msg:
            cv2.putText(img, msg, self._pt(40, self.viewport.height / 2), font, 0.9 * s, INK, self._len(2),
                        cv2.LINE_AA)


class WindowInput:
    """OpenCV mouse callback -> PointerEvent queue (device MOUSE, logical coords)."""

    def __init__(self, viewport: Viewport) -> None:
        self.viewport = viewport
        self.queue: Deque[PointerEvent] = deque()

    def on_mouse(self, event, x, y, flags, param) -> None:
        kind = _MOUSE_KINDS.get(event)
        if kind is None:
            return
        lx, ly = self.viewport.to_logical(x, y)
        self.queue.append(PointerEvent(kind, lx, PointerDevice.MOUSE, ly))

    def drain(self) -> List[PointerEvent]:
        out = list(self.queue)
        self.queue.clear()
        return out


def handle_key(key: int, controls: SessionControls) -> None:
    if key == 27:  # ESC
        controls.post(ControlAction.EXIT)
    elif key == ord(" "):
        controls.post(ControlAction.START)
    elif key in (ord("r"), ord("R")):
        controls.post(ControlAction.RETRY)
    elif key in (ord("q"), ord("Q")):
        controls.post(ControlAction.QUIT)


def main(session: GameSession, controls: SessionControls,
         sprite_path: Optional[str] = None, webcam=None) -> None:
    vp = session.viewport
    renderer = WindowRenderer(vp, sprite_path)
    mouse = WindowInput(vp)

    # backing store is drawn at pixel_ratio; the window shows it at logical size
    cv2.namedWindow(WINDOW, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW, int(vp.width), int(vp.height))
    cv2.setMouseCallback(WINDOW, mouse.on_mouse)

    print("[CurlPoke] Window runtime. SPACE start/retry, Q quit session, ESC exit.")
    last = time.monotonic()
    try:
        while not controls.exit_requested():
            now = time.monotonic()
            dt = now - last
            last = now

            session.apply(controls.drain())
            events = mouse.drain()
            if webcam is not None:
                cam_events, dbg = webcam.read()
                events.extend(cam_events)
                if dbg is not None:
                    cv2.imshow(f"{WINDOW} camera", dbg)
            for ev in events:
                session.handle_pointer(ev)

            frame = session.tick(dt)
            cv2.imshow(WINDOW, renderer.render(frame))
            handle_key(cv2.waitKey(1) & 0xFF, controls)
    finally:
        if webcam is not None:
            webcam.close()
        cv2.destroyAllWindows()
