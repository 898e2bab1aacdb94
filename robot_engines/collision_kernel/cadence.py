"""Fixed-rate gate for work that need not run every frame."""
from __future__ import annotations

DEFAULT_COLLISION_HZ = 20.0


class FixedRateGate:
    """
    Accumulates frame time and opens once per 1/hz seconds.

    hz <= 0 opens on every tick.
    """

    def __init__(self, hz: float = DEFAULT_COLLISION_HZ):
        self.hz = hz
        self._accum = 0.0

    @property
    def interval(self) -> float:
        return 0.0 if self.hz <= 0 else 1.0 / self.hz

    def ready(self, dt: float) -> bool:
        self._accum += max(0.0, dt)
        if self._accum < self.interval:
            return False
        self._accum = 0.0
        return True

    def force(self) -> None:
        """Make the next tick open regardless of elapsed time."""
        self._accum = self.interval

    def reset(self) -> None:
        self._accum = 0.0
