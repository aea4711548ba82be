"""
Tone mapping — normalize raw counts to [0, 1] and apply a response curve.

Density counts are heavily skewed: a few cells collect most samples while
rare paths barely register. Exactly one curve is applied per bake:

- log compression ``log(1 + k t) / log(1 + k)`` lifts sparse cells without
  saturating the hot spots
- otherwise a gamma curve ``t ** (1 / gamma)`` (gamma > 1 lifts mids,
  gamma < 1 crushes them)
- otherwise the linear normalized value
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

LOG_COMPRESSION = 8.0
GAMMA_EPSILON = 1e-3


@dataclass(frozen=True)
class ToneMapConfig:
    """Normalization and response-curve settings."""

    fixed_max: int = 0  # <= 0 means "use the observed max"
    use_log_scale: bool = True
    gamma: float = 1.6  # only used when use_log_scale is off
    min_visible_threshold: float = 0.02

    def __post_init__(self):
        if not math.isfinite(self.gamma) or self.gamma <= 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if not 0.0 <= self.min_visible_threshold <= 1.0:
            raise ValueError(
                f"min_visible_threshold must be within [0, 1], got {self.min_visible_threshold}"
            )

    def normalization_max(self, max_observed_count: float) -> float:
        return float(self.fixed_max) if self.fixed_max > 0 else float(max_observed_count)


def tone_map(
    counts: ArrayLike,
    max_observed_count: float,
    config: ToneMapConfig,
) -> NDArray[np.float64]:
    """
    Map raw counts to perceptual visibility values.

    Args:
        counts: Non-negative counts of any shape.
        max_observed_count: Largest count seen so far.
        config: Tone mapping settings.

    Returns:
        Float array of the same shape with values in [0, 1].
    """
    values = np.asarray(counts, dtype=np.float64)
    norm_max = config.normalization_max(max_observed_count)
    if norm_max <= 0:
        return np.zeros_like(values)

    t = np.clip(values / norm_max, 0.0, 1.0)

    if config.use_log_scale:
        return np.log1p(LOG_COMPRESSION * t) / math.log1p(LOG_COMPRESSION)
    if abs(config.gamma - 1.0) > GAMMA_EPSILON:
        return np.power(t, 1.0 / config.gamma)
    return t
