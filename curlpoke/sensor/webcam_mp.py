from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import mediapipe as mp

from curlpoke.core.types import PointerDevice, PointerEvent, PointerKind, clamp01
from curlpoke.sensor.pinch import PinchLatch, pinch_strength

logger = logging.getLogger(__name__)


@dataclass
class WebcamMPSrc:
    """
    Webcam hand as a touch pointer.
    Index fingertip x drives the hand; a thumb-index pinch is a press,
    letting go is the release (so pokes fire on release, like touch).
    """
    viewport_w: float
    cam_index: int = 0
    mirror: bool = True
    pinch_on: float = 0.72
    pinch_off: float = 0.55

    def __post_init__(self) -> None:
        self.cap = cv2.VideoCapture(self.cam_index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, 1280)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 720)

        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            model_complexity=1,
            min_detection_confidence=0.6,
            min_tracking_confidence=0.6,
        )
        self.mp_draw = mp.solutions.drawing_utils
        self.latch = PinchLatch(self.pinch_on, self.pinch_off)
        self._last_x: Optional[float] = None

    def read(self) -> Tuple[List[PointerEvent], Optional[any]]:
        ok, frame = self.cap.read()
        if not ok:
            return [], None

        if self.mirror:
            frame = cv2.flip(frame, 1)

        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        res = self.hands.process(rgb)

        if not res.multi_hand_landmarks:
            # hand left the camera mid-press: drop it without poking
            if self.latch.lost():
                return [PointerEvent(PointerKind.CANCEL, self._last_x or 0.0, PointerDevice.TOUCH)], frame
            return [], frame

        lm = res.multi_hand_landmarks[0].landmark
        tip = lm[8]
        x = clamp01(float(tip.x)) * self.viewport_w
        self._last_x = x

        pinch = pinch_strength(lm[4], tip, lm[5], lm[17])

        events = [PointerEvent(PointerKind.MOVE, x, PointerDevice.TOUCH)]
        edge = self.latch.update(pinch)
        if edge is not None:
            events.append(PointerEvent(edge, x, PointerDevice.TOUCH))

        self.mp_draw.draw_landmarks(frame, res.multi_hand_landmarks[0], self.mp_hands.HAND_CONNECTIONS)
        cv2.putText(frame, f"pinch={pinch:.2f} {'DOWN' if self.latch.pressed else 'UP'}", (20, 40),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.0, (255, 255, 255), 2, cv2.LINE_AA)
        return events, frame

    def close(self) -> None:
        self.hands.close()
        self.cap.release()
