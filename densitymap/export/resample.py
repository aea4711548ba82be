"""
Image resampling for export at arbitrary resolutions.

Each destination pixel samples the source at its normalized center
``((x + 0.5) / out_width, (y + 0.5) / out_height)``:

- nearest: the source pixel containing that point, clamped to the image
- bilinear: the four surrounding source pixel centers, each clamped to the
  image independently (clamp-to-edge), blended along x then along y
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from densitymap.analytics.baker import ImageBuffer


def _nearest_indices(out_size: int, src_size: int) -> NDArray[np.int64]:
    centers = (np.arange(out_size) + 0.5) / out_size
    return np.clip(np.floor(centers * src_size), 0, src_size - 1).astype(np.int64)


def _bilinear_axis(
    out_size: int, src_size: int
) -> tuple[NDArray[np.int64], NDArray[np.int64], NDArray[np.float64]]:
    """Lower/upper source indices and blend weight along one axis."""
    coord = (np.arange(out_size) + 0.5) / out_size * src_size - 0.5
    lower = np.floor(coord).astype(np.int64)
    upper = np.minimum(lower + 1, src_size - 1)
    lower = np.clip(lower, 0, src_size - 1)
    upper = np.clip(upper, 0, src_size - 1)
    weight = np.clip(coord - lower, 0.0, 1.0)
    return lower, upper, weight


def resample(
    source: ImageBuffer,
    out_width: int,
    out_height: int,
    bilinear: bool = True,
) -> ImageBuffer:
    """
    Reproject an image to out_width x out_height.

    Raises:
        ValueError: If either output dimension is not positive.
    """
    if out_width <= 0 or out_height <= 0:
        raise ValueError(f"Export size must be > 0, got {out_width}x{out_height}")

    src = source.pixels.astype(np.float64)
    src_h, src_w = src.shape[:2]

    if not bilinear:
        ys = _nearest_indices(out_height, src_h)
        xs = _nearest_indices(out_width, src_w)
        return ImageBuffer(src[ys[:, None], xs[None, :]])

    x0, x1, tx = _bilinear_axis(out_width, src_w)
    y0, y1, ty = _bilinear_axis(out_height, src_h)
    tx = tx[None, :, None]
    ty = ty[:, None, None]

    c00 = src[y0[:, None], x0[None, :]]
    c10 = src[y0[:, None], x1[None, :]]
    c01 = src[y1[:, None], x0[None, :]]
    c11 = src[y1[:, None], x1[None, :]]

    row0 = c00 + (c10 - c00) * tx
    row1 = c01 + (c11 - c01) * tx
    return ImageBuffer(row0 + (row1 - row0) * ty)
