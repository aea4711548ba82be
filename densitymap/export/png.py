"""
PNG export of baked density images.

Files are named ``heatmap_{width}x{height}_{YYYYmmdd_HHMMSS}.png`` (UTC) and
written into a directory chosen by the caller. Names are per second, so a
second export of the same size within that second gets a ``_1``, ``_2``, ...
suffix instead of overwriting the first. Images are flipped on encode
so the grid's bottom row (the origin side) ends up at the bottom of the
picture.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
from matplotlib import image as mpimg

from densitymap.analytics.baker import ImageBuffer
from densitymap.export.resample import resample

logger = logging.getLogger(__name__)


def encode_png(image: ImageBuffer) -> bytes:
    """Encode an image as RGBA8 PNG bytes."""
    rgba = np.ascontiguousarray(np.flipud(image.to_rgba8()))
    buffer = io.BytesIO()
    mpimg.imsave(buffer, rgba, format="png")
    return buffer.getvalue()


def export_filename(width: int, height: int, when: datetime | None = None) -> str:
    stamp = (when or datetime.now(timezone.utc)).strftime("%Y%m%d_%H%M%S")
    return f"heatmap_{width}x{height}_{stamp}.png"


def _unique_path(directory: Path, name: str) -> Path:
    """Path for name in directory, adding _1, _2, ... when the name is taken."""
    path = directory / name
    counter = 1
    while path.exists():
        path = directory / f"{Path(name).stem}_{counter}.png"
        counter += 1
    return path


def save_png_exact(
    image: ImageBuffer,
    width: int,
    height: int,
    directory: str | Path,
    bilinear: bool = True,
) -> Path:
    """
    Resample to exactly width x height and write a PNG.

    Returns:
        Path of the written file.

    Raises:
        ValueError: If width or height is not positive. Nothing is written.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Export size must be > 0, got {width}x{height}")

    scaled = image if (width, height) == (image.width, image.height) else resample(
        image, width, height, bilinear=bilinear
    )
    data = encode_png(scaled)

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = _unique_path(out_dir, export_filename(width, height))
    path.write_bytes(data)
    logger.info("Saved heatmap PNG to %s", path)
    return path


def save_png_scaled(
    image: ImageBuffer,
    scale: int,
    directory: str | Path,
    bilinear: bool = True,
) -> Path:
    """Export at an integer multiple of the image size; scale <= 1 keeps the size."""
    factor = max(1, int(scale))
    return save_png_exact(image, image.width * factor, image.height * factor, directory, bilinear)
