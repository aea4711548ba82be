"""
Separable box blur with shrinking boundary windows.

A horizontal moving average followed by a vertical one. Near the edges the
window only covers the samples that exist, and each cell is divided by the
number of samples actually inside its window, so there is no zero padding,
wraparound or mirroring. Both passes use running sums, which keeps the cost
at O(width * height) whatever the radius.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.ndimage import uniform_filter1d


@dataclass(frozen=True)
class BlurConfig:
    radius: int = 2  # 0 disables the blur

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"Blur radius must be >= 0, got {self.radius}")


def _window_sizes(length: int, radius: int) -> NDArray[np.float64]:
    """Number of existing samples inside each position's window."""
    idx = np.arange(length)
    hi = np.minimum(idx + radius, length - 1)
    lo = np.maximum(idx - radius, 0)
    return (hi - lo + 1).astype(np.float64)


def _blur_axis(field: NDArray[np.float64], radius: int, axis: int) -> NDArray[np.float64]:
    size = 2 * radius + 1
    # Constant-zero extension turns the running mean into a plain windowed sum.
    sums = uniform_filter1d(field, size=size, axis=axis, mode="constant", cval=0.0) * size

    shape = [1] * field.ndim
    shape[axis] = field.shape[axis]
    return sums / _window_sizes(field.shape[axis], radius).reshape(shape)


def box_blur(field: ArrayLike, radius: int) -> NDArray[np.float64]:
    """
    Smooth a 2D field with a (2r+1) x (2r+1) box, horizontal pass first.

    Args:
        field: (height, width) float grid.
        radius: Window radius in cells; 0 returns an unmodified copy.

    Returns:
        A new (height, width) float64 array.
    """
    if radius < 0:
        raise ValueError(f"Blur radius must be >= 0, got {radius}")

    data = np.array(field, dtype=np.float64)
    if data.ndim != 2:
        raise ValueError(f"box_blur expects a 2D field, got shape {data.shape}")
    if radius == 0 or data.size == 0:
        return data

    horizontal = _blur_axis(data, radius, axis=1)
    return _blur_axis(horizontal, radius, axis=0)
