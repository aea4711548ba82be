"""
Density grid — the discretized count grid that position samples accumulate into.

The grid covers an axis-aligned world rectangle starting at ``origin`` (the
bottom-left corner) and spanning ``extent`` world units, split into square
cells of ``cell_size``. Counts are stored flat in row-major order
(``index = y * width + x``) so the rest of the pipeline can reshape them freely.

Design principles:
- NumPy arrays for counts → cheap bulk reads during a bake
- The maximum count is tracked incrementally, never by rescanning
- Samples outside the rectangle are dropped, not clamped onto edge cells
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridConfig:
    """World-space placement and resolution of a density grid."""

    origin: tuple[float, float] = (0.0, 0.0)
    extent: tuple[float, float] = (50.0, 50.0)
    cell_size: float = 0.5

    def __post_init__(self):
        object.__setattr__(self, "origin", (float(self.origin[0]), float(self.origin[1])))
        object.__setattr__(self, "extent", (float(self.extent[0]), float(self.extent[1])))
        object.__setattr__(self, "cell_size", float(self.cell_size))

        if not all(math.isfinite(v) for v in self.origin):
            raise ValueError(f"Grid origin must be finite, got {self.origin}")
        if not math.isfinite(self.cell_size) or self.cell_size <= 0:
            raise ValueError(f"Grid cell_size must be a positive number, got {self.cell_size}")
        for axis, size in zip("xy", self.extent):
            if not math.isfinite(size) or size <= 0:
                raise ValueError(f"Grid extent along {axis} must be positive, got {size}")

    def dimensions(self) -> tuple[int, int]:
        """Grid (width, height) in cells; never smaller than 1x1."""
        width = max(1, math.ceil(self.extent[0] / self.cell_size))
        height = max(1, math.ceil(self.extent[1] / self.cell_size))
        return width, height


def project_position(position: Sequence[float]) -> tuple[float, float]:
    """
    Project a world position onto the grid plane.

    2D positions are read as (x, y). 3D positions are read as (x, y, z) with
    y pointing up, so the ground-plane coordinates are (x, z).
    """
    if len(position) == 2:
        return float(position[0]), float(position[1])
    if len(position) == 3:
        return float(position[0]), float(position[2])
    raise ValueError(f"Expected a 2D or 3D position, got {len(position)} components")


class GridModel:
    """
    Accumulates weighted position samples into integer cell counts.

    Attributes:
        config: Current placement/resolution.
        width: Grid width in cells.
        height: Grid height in cells.
        counts: Flat int64 array of length width * height (row-major).
        max_observed_count: Largest value in ``counts``.
    """

    def __init__(self, config: GridConfig | None = None):
        self.config: GridConfig = config or GridConfig()
        self.width, self.height = self.config.dimensions()
        self.counts: NDArray[np.int64] = np.zeros(self.width * self.height, dtype=np.int64)
        self.max_observed_count: int = 0

    def configure(
        self,
        origin: tuple[float, float],
        extent: tuple[float, float],
        cell_size: float,
    ) -> bool:
        """
        Apply a new placement/resolution.

        Any change to origin, extent or cell size reallocates the counts and
        resets the maximum. Calling again with identical inputs is a no-op,
        so callers may invoke this every tick.

        Returns:
            True if the grid was reset.
        """
        config = GridConfig(origin=origin, extent=extent, cell_size=cell_size)
        if config == self.config:
            return False

        self.config = config
        self.width, self.height = config.dimensions()
        self.counts = np.zeros(self.width * self.height, dtype=np.int64)
        self.max_observed_count = 0
        logger.info(
            "Grid configured: %dx%d cells of %.3f at origin %s",
            self.width, self.height, config.cell_size, config.origin,
        )
        return True

    def cell_index(self, position: Sequence[float]) -> tuple[int, int] | None:
        """Cell (ix, iy) containing a world position, or None if outside."""
        px, py = project_position(position)
        if not (math.isfinite(px) and math.isfinite(py)):
            return None
        ox, oy = self.config.origin
        ix = math.floor((px - ox) / self.config.cell_size)
        iy = math.floor((py - oy) / self.config.cell_size)
        if 0 <= ix < self.width and 0 <= iy < self.height:
            return ix, iy
        return None

    def accumulate(self, position: Sequence[float], weight: int = 1) -> bool:
        """
        Add one weighted sample.

        Returns:
            True if the sample landed inside the grid, False if it was dropped.
        """
        cell = self.cell_index(position)
        if cell is None:
            logger.debug("Dropped out-of-bounds sample at %s", tuple(position))
            return False

        ix, iy = cell
        idx = iy * self.width + ix
        new_value = int(self.counts[idx]) + max(1, int(weight))
        self.counts[idx] = new_value
        if new_value > self.max_observed_count:
            self.max_observed_count = new_value
        return True

    def accumulate_many(
        self,
        positions: Iterable[Sequence[float]] | NDArray[np.float64],
        weights: Iterable[int] | NDArray[np.int64] | None = None,
    ) -> int:
        """
        Add a batch of samples at once.

        Follows the same projection, drop and weight rules as ``accumulate``.

        Returns:
            Number of samples that landed inside the grid.
        """
        if not isinstance(positions, np.ndarray):
            positions = list(positions)
        pts = np.asarray(positions, dtype=np.float64)
        if pts.size == 0:
            return 0
        if pts.ndim != 2 or pts.shape[1] not in (2, 3):
            raise ValueError(f"Expected an (N, 2) or (N, 3) position array, got shape {pts.shape}")

        px = pts[:, 0]
        py = pts[:, 1] if pts.shape[1] == 2 else pts[:, 2]

        if weights is None:
            w = np.ones(len(pts), dtype=np.int64)
        else:
            if not isinstance(weights, np.ndarray):
                weights = list(weights)
            w = np.maximum(1, np.asarray(weights, dtype=np.int64))
            if w.shape != (len(pts),):
                raise ValueError("weights must have one entry per position")

        ox, oy = self.config.origin
        ix = np.floor((px - ox) / self.config.cell_size)
        iy = np.floor((py - oy) / self.config.cell_size)
        inside = (ix >= 0) & (ix < self.width) & (iy >= 0) & (iy < self.height)

        accepted = int(np.count_nonzero(inside))
        if accepted == 0:
            return 0

        idx = iy[inside].astype(np.int64) * self.width + ix[inside].astype(np.int64)
        np.add.at(self.counts, idx, w[inside])

        touched_max = int(self.counts[idx].max())
        if touched_max > self.max_observed_count:
            self.max_observed_count = touched_max

        dropped = len(pts) - accepted
        if dropped:
            logger.debug("Dropped %d of %d samples outside the grid", dropped, len(pts))
        return accepted

    def clear(self) -> None:
        """Zero all counts."""
        self.counts.fill(0)
        self.max_observed_count = 0

    def as_array(self) -> NDArray[np.int64]:
        """Counts as a (height, width) view; row 0 is the bottom row."""
        return self.counts.reshape(self.height, self.width)

    def total(self) -> int:
        return int(self.counts.sum())

    def __repr__(self) -> str:
        return (
            f"GridModel({self.width}x{self.height}, cell={self.config.cell_size}, "
            f"max={self.max_observed_count})"
        )
