"""
densitymap — spatial density heatmaps from repeated position samples.

Samples accumulate into a count grid, which is baked into an RGBA image
(tone mapping, box blur, visibility cutoff, color ramp) and exported as PNG.
"""

from densitymap.analytics.baker import DensityBaker, ImageBuffer
from densitymap.analytics.blur import BlurConfig, box_blur
from densitymap.analytics.ramp import DEFAULT_RAMP, ColorRamp
from densitymap.analytics.tonemap import ToneMapConfig, tone_map
from densitymap.core.aggregator import ExportConfig, HeatmapAggregator, SamplingConfig
from densitymap.core.clock import Clock, IntervalTimer
from densitymap.core.grid import GridConfig, GridModel
from densitymap.export.png import encode_png, save_png_exact, save_png_scaled
from densitymap.export.resample import resample

__all__ = [
    "BlurConfig",
    "Clock",
    "ColorRamp",
    "DEFAULT_RAMP",
    "DensityBaker",
    "ExportConfig",
    "GridConfig",
    "GridModel",
    "HeatmapAggregator",
    "ImageBuffer",
    "IntervalTimer",
    "SamplingConfig",
    "ToneMapConfig",
    "box_blur",
    "encode_png",
    "resample",
    "save_png_exact",
    "save_png_scaled",
    "tone_map",
]
