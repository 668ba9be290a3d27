"""
CurlPoke — tuning defaults and environment configuration.

All gameplay constants live here as frozen dataclasses, grouped the way the
loop consumes them. A Preset bundles one of each.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class PresetName(str, Enum):
    DEFAULT = "Default"


@dataclass(frozen=True)
class DifficultyTuning:
    base_speed: float = 135.0       # px/s upward at score 0
    curl_strength: float = 70.0     # px/s lateral kick on a curled hit
    speed_per_score: float = 8.0    # spawn speed bonus per point
    speed_step: float = 4.0
    speed_cap: float = 320.0
    curl_step: float = 2.0
    curl_cap: float = 160.0


@dataclass(frozen=True)
class StoneTuning:
    radius_frac: float = 0.095
    radius_range: Tuple[float, float] = (42.0, 72.0)
    spawn_band: Tuple[float, float] = (0.25, 0.75)
    first_depth: float = 40.0
    depth_range: Tuple[float, float] = (80.0, 160.0)
    prespawn_depth: Tuple[float, float] = (320.0, 520.0)
    prespawn_frac: float = 0.25     # pre-spawn once active y < frac * height
    vx_damping: float = 0.6
    spin_damping: float = 0.22
    wall_margin: float = 1.2        # x clamped to [m*r, w - m*r]
    exit_margin: float = 10.0       # stone gone once y < -r - margin


@dataclass(frozen=True)
class PokeTuning:
    late_margin: float = 1.3        # manual poke: too late beyond r * this
    crossed_margin: float = 0.9     # passive: untouched stone past r * this
    reach: float = 1.05
    deadzone_min: float = 8.0
    deadzone_frac: float = 0.22
    speed_boost: float = 1.22
    spin_base: float = 2.6
    spin_per_score: float = 0.08
    spin_bonus_cap: float = 2.3


@dataclass(frozen=True)
class HandTuning:
    track_band: Tuple[float, float] = (0.12, 0.88)
    smoothing_k: float = 0.0001     # x += (target - x) * (1 - k**dt)
    poke_anim_rate: float = 6.0
    poke_anim_start: float = 0.0001
    bob_px: float = 10.0
    width_frac: float = 0.28
    width_range: Tuple[float, float] = (120.0, 190.0)
    scale: float = 0.75
    sprite_size: Tuple[int, int] = (295, 471)


@dataclass(frozen=True)
class LoopTuning:
    max_dt: float = 0.033
    target_hz: float = 60.0


@dataclass(frozen=True)
class Preset:
    name: PresetName
    difficulty: DifficultyTuning = DifficultyTuning()
    stones: StoneTuning = StoneTuning()
    poke: PokeTuning = PokeTuning()
    hand: HandTuning = HandTuning()
    loop: LoopTuning = LoopTuning()


DEFAULT_PRESET = Preset(name=PresetName.DEFAULT)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
}


# ============================================================
# Environment
# ============================================================

def config_dir() -> Path:
    p = Path(os.environ.get("CURLPOKE_CONFIG_DIR", Path.home() / ".config" / "curlpoke"))
    p.mkdir(parents=True, exist_ok=True)
    return p


@dataclass(frozen=True)
class CounterConfig:
    """Global tally backend. Empty url means the counter is unavailable."""
    url: str = ""
    key: str = ""
    table: str = "global_counter"
    record_id: int = 1
    rpc: str = "increment_global_total"
    poll_s: float = 5.0
    timeout_s: float = 4.0

    @property
    def enabled(self) -> bool:
        return self.url.startswith("http")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "CounterConfig":
        env = os.environ if environ is None else environ
        poll = env.get("CURLPOKE_COUNTER_POLL_S")
        return cls(
            url=env.get("CURLPOKE_COUNTER_URL", "").rstrip("/"),
            key=env.get("CURLPOKE_COUNTER_KEY", ""),
            poll_s=float(poll) if poll else cls.poll_s,
        )
