"""
Track playback — replays recorded entity positions as sample targets.

A track table has one row per recorded position with ``time``, ``entity``,
``x`` and either ``y`` or ``z`` columns. When both are present the table is
read as y-up 3D and ``z`` is the second ground-plane axis. Each entity
becomes one sample target that reports its most recent recorded position at
the current clock time, the same way a live tracked transform would.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
import pandas as pd

from densitymap.core.clock import Clock

REQUIRED_COLUMNS = ("time", "entity", "x")


class TrackPlayback:
    """Per-entity position history, queryable by time."""

    def __init__(self, frame: pd.DataFrame):
        missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise ValueError(f"Track table is missing columns: {missing}")
        plane = "z" if "z" in frame.columns else "y" if "y" in frame.columns else None
        if plane is None:
            raise ValueError("Track table needs a 'y' or 'z' column")

        ordered = frame.sort_values(["entity", "time"], kind="stable")
        self._tracks: dict[object, tuple[np.ndarray, np.ndarray]] = {}
        for entity, group in ordered.groupby("entity", sort=True):
            times = group["time"].to_numpy(dtype=np.float64)
            coords = group[["x", plane]].to_numpy(dtype=np.float64)
            self._tracks[entity] = (times, coords)

        self.duration: float = float(frame["time"].max()) if len(frame) else 0.0

    @property
    def entities(self) -> list:
        return list(self._tracks)

    def position_at(self, entity, time: float) -> tuple[float, float] | None:
        """Latest recorded position at or before ``time``; None before the first record."""
        times, coords = self._tracks[entity]
        idx = int(np.searchsorted(times, time, side="right")) - 1
        if idx < 0:
            return None
        return float(coords[idx, 0]), float(coords[idx, 1])

    def targets(self, clock: Clock) -> list[Callable[[], tuple[float, float] | None]]:
        """One sample target per entity, reading positions at the clock's time."""
        return [self._target(entity, clock) for entity in self._tracks]

    def _target(self, entity, clock: Clock):
        return lambda: self.position_at(entity, clock.time)

    def __len__(self) -> int:
        return len(self._tracks)
