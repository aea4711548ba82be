"""
Density baker — turns the count grid into an RGBA image.

A bake is the full recomputation from raw counts to pixels:
1. Tone map counts to [0, 1]
2. Box blur the resulting field
3. Cut off cells below the visibility threshold (fully transparent)
4. Color the remaining cells through the ramp, with alpha set to the
   overlay opacity instead of the ramp's own alpha

Nothing here is cached between bakes; every call returns a fresh buffer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from densitymap.analytics.blur import BlurConfig, box_blur
from densitymap.analytics.ramp import DEFAULT_RAMP, ColorRamp
from densitymap.analytics.tonemap import ToneMapConfig, tone_map
from densitymap.core.grid import GridModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageBuffer:
    """
    Immutable RGBA image.

    ``pixels`` has shape (height, width, 4) with float32 channels in [0, 1].
    Row 0 is the bottom row of the grid (the row containing the origin).
    """

    pixels: NDArray[np.float32]

    def __post_init__(self):
        pixels = np.array(self.pixels, dtype=np.float32)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"ImageBuffer needs a (height, width, 4) array, got {pixels.shape}")
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def pixel(self, x: int, y: int) -> tuple[float, float, float, float]:
        r, g, b, a = self.pixels[y, x]
        return float(r), float(g), float(b), float(a)

    def to_rgba8(self) -> NDArray[np.uint8]:
        """Denormalize to 8 bits per channel."""
        return np.clip(np.rint(self.pixels * 255.0), 0, 255).astype(np.uint8)

    @classmethod
    def transparent(cls, width: int, height: int) -> ImageBuffer:
        return cls(np.zeros((height, width, 4), dtype=np.float32))


class DensityBaker:
    """
    Bakes a GridModel into an ImageBuffer.

    Attributes:
        tone: Normalization/curve settings, including the visibility cutoff.
        blur: Smoothing radius.
        ramp: Color gradient; only its RGB channels reach the baked pixels.
        opacity: Alpha written for every visible pixel.
    """

    def __init__(
        self,
        tone: ToneMapConfig | None = None,
        blur: BlurConfig | None = None,
        ramp: ColorRamp | None = None,
        opacity: float = 0.85,
    ):
        if not 0.0 <= opacity <= 1.0:
            raise ValueError(f"opacity must be within [0, 1], got {opacity}")
        self.tone = tone or ToneMapConfig()
        self.blur = blur or BlurConfig()
        self.ramp = ramp or DEFAULT_RAMP
        self.opacity = float(opacity)

    def density_field(self, grid: GridModel) -> NDArray[np.float64]:
        """Tone-mapped and blurred (height, width) field, clamped to [0, 1]."""
        toned = tone_map(grid.as_array(), grid.max_observed_count, self.tone)
        blurred = box_blur(toned, self.blur.radius)
        return np.clip(blurred, 0.0, 1.0)

    def bake_field(self, field: ArrayLike) -> ImageBuffer:
        """Apply the visibility cutoff and color ramp to a [0, 1] field."""
        t = np.clip(np.asarray(field, dtype=np.float64), 0.0, 1.0)
        if t.ndim != 2:
            raise ValueError(f"Expected a 2D density field, got shape {t.shape}")

        pixels = self.ramp.evaluate_many(t)
        visible = t >= self.tone.min_visible_threshold
        pixels[..., 3] = self.opacity
        pixels[~visible] = 0.0
        return ImageBuffer(pixels)

    def bake(self, grid: GridModel) -> ImageBuffer:
        image = self.bake_field(self.density_field(grid))
        logger.debug(
            "Baked %dx%d image (max count %d)", image.width, image.height, grid.max_observed_count
        )
        return image
