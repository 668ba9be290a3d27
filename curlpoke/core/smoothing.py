from __future__ import annotations


def _alpha(k: float, dt: float) -> float:
    # fraction of the remaining gap closed in dt, independent of frame rate
    return 1.0 - k ** max(dt, 0.0)


class ExpApproach:
    """
    Frame-rate independent exponential approach.
    x moves toward the target by (1 - k**dt) of the gap each step,
    so two 8ms steps land where one 16ms step would.
    """

    def __init__(self, k: float = 0.0001, x0: float = 0.0):
        if not 0.0 < k < 1.0:
            raise ValueError(f"k must be in (0, 1), got {k}")
        self.k = float(k)
        self.x = float(x0)

    def reset(self, x: float) -> None:
        self.x = float(x)

    def apply(self, target: float, dt: float) -> float:
        self.x += (target - self.x) * _alpha(self.k, dt)
        return self.x


def damp(v: float, rate: float, dt: float) -> float:
    """Linear per-step damping, v *= (1 - rate*dt)."""
    return v * (1.0 - rate * dt)
