"""
Tick clock and interval timers — the scheduling heartbeat of the aggregator.

The host loop calls ``on_tick(dt)`` once per frame. Work that should not run
every frame (sampling targets, re-baking the image) is gated by an
``IntervalTimer``: a plain elapsed-time counter that fires once the interval
has passed and then starts counting again from zero.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class IntervalTimer:
    """Fires at most once per tick after ``interval`` seconds have accumulated."""

    interval: float
    elapsed: float = 0.0

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError(f"Timer interval must be non-negative, got {self.interval}")

    def tick(self, dt: float) -> bool:
        """Advance by dt seconds. Returns True if the timer fired."""
        self.elapsed += dt
        if self.elapsed >= self.interval:
            self.elapsed = 0.0
            return True
        return False

    def reset(self) -> None:
        self.elapsed = 0.0


class Clock:
    """
    Fixed-step host clock for driving the aggregator outside a game loop.

    Attributes:
        tick: Current tick (starts at 0).
        dt: Seconds represented per tick.
        max_ticks: Maximum ticks before the clock reports done (0 = unlimited).
    """

    def __init__(self, dt: float = 1.0 / 30.0, max_ticks: int = 0):
        if dt <= 0:
            raise ValueError(f"Clock dt must be positive, got {dt}")
        self.tick: int = 0
        self.dt: float = dt
        self.max_ticks: int = max_ticks

    @property
    def time(self) -> float:
        """Current time in seconds."""
        return self.tick * self.dt

    @property
    def is_done(self) -> bool:
        return self.max_ticks > 0 and self.tick >= self.max_ticks

    def advance(self) -> float:
        """Advance by one tick and return the elapsed seconds."""
        self.tick += 1
        return self.dt

    def reset(self) -> None:
        self.tick = 0

    def __repr__(self) -> str:
        return f"Clock(tick={self.tick}, time={self.time:.2f}s)"
