"""
Heatmap aggregator — ties the grid, baker and timers together.

The aggregator is driven by a host loop calling ``on_tick(dt)`` every frame:
1. Advance the sample timer; when it fires, sample every target once
2. Advance the bake timer; when it fires and the grid changed, re-bake

Samples are applied in the order they arrive and a bake always reflects every
sample added before it. The aggregator is single-threaded: funnel all samplers
through one instance, or give each sampler its own.

The display side reads ``image`` and ``dirty``; how the image is shown is not
this module's concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from densitymap.analytics.baker import DensityBaker, ImageBuffer
from densitymap.core.clock import IntervalTimer
from densitymap.core.grid import GridConfig, GridModel
from densitymap.export.png import save_png_exact, save_png_scaled

logger = logging.getLogger(__name__)

# A sample target returns the current world position, or None to skip a round.
SampleTarget = Callable[[], Sequence[float] | None]


@dataclass(frozen=True)
class SamplingConfig:
    """Timing and weighting of periodic sampling."""

    interval: float = 0.25  # seconds between target sampling rounds
    weight: int = 1  # weight per sample
    rebake_interval: float = 0.5  # seconds between dirty checks

    def __post_init__(self):
        if self.interval < 0 or self.rebake_interval < 0:
            raise ValueError("Sampling and rebake intervals must be non-negative")
        if self.weight < 1:
            raise ValueError(f"Sample weight must be >= 1, got {self.weight}")


@dataclass(frozen=True)
class ExportConfig:
    """Defaults for PNG export."""

    directory: str = "heatmaps"
    width: int = 2048
    height: int = 2048
    scale: int = 0  # > 1 exports at scale x grid size instead of width/height
    bilinear: bool = True


@dataclass
class AggregatorStats:
    accepted: int = 0
    dropped: int = 0
    bakes: int = 0
    sample_rounds: int = 0
    exports: list[Path] = field(default_factory=list)


class HeatmapAggregator:
    """
    Owns one density grid and produces baked images from it.

    Attributes:
        grid: The count grid (the only persistent mutable state).
        baker: Tone/blur/color settings used for every bake.
        sampling: Timer and weight settings.
        targets: Callables polled on every sampling round.
        image: Most recent bake, or None before the first bake.
        dirty: True when the grid changed since the last bake.
    """

    def __init__(
        self,
        grid_config: GridConfig | None = None,
        baker: DensityBaker | None = None,
        sampling: SamplingConfig | None = None,
        export: ExportConfig | None = None,
        targets: Iterable[SampleTarget] = (),
    ):
        self.grid = GridModel(grid_config)
        self.baker = baker or DensityBaker()
        self.sampling = sampling or SamplingConfig()
        self.export = export or ExportConfig()
        self.targets: list[SampleTarget] = list(targets)

        self.image: ImageBuffer | None = None
        self.dirty: bool = True
        self.stats = AggregatorStats()

        self._sample_timer = IntervalTimer(self.sampling.interval)
        self._bake_timer = IntervalTimer(self.sampling.rebake_interval)

    # ── Grid management ──────────────────────────────────────────

    def configure(
        self,
        origin: tuple[float, float],
        extent: tuple[float, float],
        cell_size: float,
    ) -> bool:
        """Reconfigure the grid; returns True if the counts were reset."""
        if self.grid.configure(origin, extent, cell_size):
            self.dirty = True
            return True
        return False

    def clear(self) -> ImageBuffer:
        """Drop all accumulated samples and re-bake immediately."""
        self.grid.clear()
        logger.info("Heatmap cleared")
        self.dirty = True
        return self.bake()

    # ── Sampling ─────────────────────────────────────────────────

    def add_sample(self, position: Sequence[float], weight: int | None = None) -> bool:
        """Add one sample, e.g. an event ping. Returns False if it was dropped."""
        w = self.sampling.weight if weight is None else weight
        if self.grid.accumulate(position, w):
            self.stats.accepted += 1
            self.dirty = True
            return True
        self.stats.dropped += 1
        return False

    def add_samples(
        self,
        positions: Iterable[Sequence[float]] | NDArray[np.float64],
        weights: Iterable[int] | NDArray[np.int64] | None = None,
    ) -> int:
        """Add a batch of samples; returns how many landed inside the grid."""
        if not isinstance(positions, np.ndarray):
            positions = list(positions)
        pts = np.asarray(positions, dtype=np.float64)
        if weights is None:
            weights = np.full(len(pts), self.sampling.weight, dtype=np.int64)
        accepted = self.grid.accumulate_many(pts, weights)
        self.stats.accepted += accepted
        self.stats.dropped += len(pts) - accepted
        if accepted:
            self.dirty = True
        return accepted

    def add_target(self, target: SampleTarget) -> None:
        self.targets.append(target)

    def sample_targets(self) -> int:
        """Sample every target once; returns the number of accepted samples."""
        accepted = 0
        for target in self.targets:
            position = target()
            if position is None:
                continue
            if self.add_sample(position):
                accepted += 1
        self.stats.sample_rounds += 1
        return accepted

    # ── Baking ───────────────────────────────────────────────────

    def bake(self) -> ImageBuffer:
        self.image = self.baker.bake(self.grid)
        self.dirty = False
        self.stats.bakes += 1
        return self.image

    def current_image(self) -> ImageBuffer:
        """Latest image, baking first if the grid changed since the last bake."""
        if self.dirty or self.image is None:
            return self.bake()
        return self.image

    def on_tick(self, dt: float) -> bool:
        """
        Advance both timers by dt seconds.

        Returns:
            True if a bake happened during this tick.
        """
        if self._sample_timer.tick(dt):
            self.sample_targets()

        if self._bake_timer.tick(dt) and self.dirty:
            self.bake()
            return True
        return False

    # ── Export ───────────────────────────────────────────────────

    def export_exact(
        self,
        width: int | None = None,
        height: int | None = None,
        bilinear: bool | None = None,
        directory: str | Path | None = None,
    ) -> Path:
        path = save_png_exact(
            self.current_image(),
            width if width is not None else self.export.width,
            height if height is not None else self.export.height,
            directory if directory is not None else self.export.directory,
            bilinear=self.export.bilinear if bilinear is None else bilinear,
        )
        self.stats.exports.append(path)
        return path

    def export_scaled(
        self,
        scale: int | None = None,
        bilinear: bool | None = None,
        directory: str | Path | None = None,
    ) -> Path:
        path = save_png_scaled(
            self.current_image(),
            scale if scale is not None else self.export.scale,
            directory if directory is not None else self.export.directory,
            bilinear=self.export.bilinear if bilinear is None else bilinear,
        )
        self.stats.exports.append(path)
        return path

    def summary(self) -> dict:
        return {
            "grid_width": self.grid.width,
            "grid_height": self.grid.height,
            "cell_size": self.grid.config.cell_size,
            "samples_accepted": self.stats.accepted,
            "samples_dropped": self.stats.dropped,
            "total_count": self.grid.total(),
            "max_count": self.grid.max_observed_count,
            "bakes": self.stats.bakes,
            "exports": [str(p) for p in self.stats.exports],
        }

    def __repr__(self) -> str:
        return f"HeatmapAggregator({self.grid!r}, dirty={self.dirty}, targets={len(self.targets)})"
