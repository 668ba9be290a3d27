from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from curlpoke.core.config import config_dir
from curlpoke.core.types import FingertipAnchor

logger = logging.getLogger(__name__)

# poke sprite (295x471): the index finger sits in columns 48..85
FINGER_X0 = 48
FINGER_X1 = 85
ALPHA_MIN = 10

FALLBACK_ANCHOR = FingertipAnchor(
    local_x=(FINGER_X0 + FINGER_X1) / 2.0,
    local_y=8.0,
    source="fallback",
)


def _cache_path() -> Path:
    return config_dir() / "anchor.json"


def _cache_key(sprite: Path) -> str:
    st = sprite.stat()
    return f"{sprite.resolve()}:{st.st_size}:{int(st.st_mtime)}"


def save_anchor(sprite: Path, anchor: FingertipAnchor) -> None:
    p = _cache_path()
    data = {}
    if p.exists():
        try:
            data = json.loads(p.read_text())
        except (OSError, ValueError):
            data = {}
        if not isinstance(data, dict):
            data = {}
    data[_cache_key(sprite)] = {"local_x": anchor.local_x, "local_y": anchor.local_y}
    p.write_text(json.dumps(data, indent=2))


def load_anchor(sprite: Path) -> Optional[FingertipAnchor]:
    p = _cache_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text())
        rec = data.get(_cache_key(sprite)) if isinstance(data, dict) else None
        if not isinstance(rec, dict):
            return None
        return FingertipAnchor(float(rec["local_x"]), float(rec["local_y"]), source="cache")
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("anchor cache unreadable: %s (%s)", p, exc)
        return None


class FingertipLocator:
    """
    Finds the fingertip in the poke sprite:
    - walks the finger column band top to bottom
    - first row with any alpha > ALPHA_MIN is the tip row
    - x is the alpha-weighted centroid of that row's opaque pixels

    Anything unexpected falls back to a fixed anchor so the game stays playable.
    """

    def __init__(self, x0: int = FINGER_X0, x1: int = FINGER_X1, alpha_min: int = ALPHA_MIN,
                 fallback: FingertipAnchor = FALLBACK_ANCHOR):
        self.x0 = x0
        self.x1 = x1
        self.alpha_min = alpha_min
        self.fallback = fallback

    def calibrate(self, image: Image.Image) -> FingertipAnchor:
        try:
            alpha = np.asarray(image.convert("RGBA"))[:, :, 3]
        except (OSError, ValueError) as exc:
            logger.warning("fingertip scan failed (%s); using fallback", exc)
            return self.fallback

        h, w = alpha.shape
        if w == 0 or h == 0:
            return self.fallback
        x0 = min(max(self.x0, 0), w - 1)
        x1 = min(max(self.x1, 0), w - 1)
        band = alpha[:, x0:x1 + 1].astype(np.float64)

        opaque = band > self.alpha_min
        rows = np.flatnonzero(opaque.any(axis=1))
        if rows.size == 0:
            logger.warning("no opaque pixels in finger band %d..%d; using fallback", x0, x1)
            return self.fallback

        y = int(rows[0])
        weights = np.where(opaque[y], band[y], 0.0)
        xs = np.arange(x0, x1 + 1, dtype=np.float64)
        local_x = float((xs * weights).sum() / weights.sum())
        logger.info("fingertip anchor at (%.1f, %d)", local_x, y)
        return FingertipAnchor(local_x=local_x, local_y=float(y), source="scan")

    def calibrate_file(self, sprite: Union[str, Path], use_cache: bool = True) -> FingertipAnchor:
        """Load the sprite, scan it once, and remember the answer."""
        sprite = Path(sprite)
        try:
            if use_cache:
                cached = load_anchor(sprite)
                if cached is not None:
                    return cached
            with Image.open(sprite) as img:
                anchor = self.calibrate(img)
        except (OSError, UnidentifiedImageError) as exc:
            logger.warning("sprite %s not loadable (%s); using fallback", sprite, exc)
            return self.fallback

        if use_cache and anchor.source == "scan":
            try:
                save_anchor(sprite, anchor)
            except OSError as exc:
                logger.warning("could not cache anchor: %s", exc)
        return anchor


def sprite_size(sprite: Union[str, Path, None]):
    """Natural (w, h) of a sprite, or None if it can't be read."""
    if sprite is None:
        return None
    try:
        with Image.open(sprite) as img:
            return img.size
    except (OSError, UnidentifiedImageError):
        return None


if __name__ == "__main__":
    # precompute offline: python -m curlpoke.runtime.calibration hand2.png
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) < 2:
        print("usage: python -m curlpoke.runtime.calibration <poke-sprite.png>")
        sys.exit(2)
    a = FingertipLocator().calibrate_file(sys.argv[1], use_cache=True)
    print(f"[Calibration] {a.source}: local_x={a.local_x:.2f} local_y={a.local_y:.0f}")
