"""
Configuration loader — reads YAML heatmap configs and builds pipeline objects.

A config file has these optional sections (missing ones use defaults):

* **grid** — origin [x, y], extent [w, h], cell_size
* **tone** — fixed_max, use_log_scale, gamma, min_visible_threshold
* **blur** — radius
* **appearance** — opacity, and either ramp stops (``ramp`` / ``alpha``) or a
  matplotlib ``colormap`` name
* **sampling** — interval, weight, rebake_interval
* **export** — directory, width, height, scale, bilinear
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from densitymap.analytics.baker import DensityBaker
from densitymap.analytics.blur import BlurConfig
from densitymap.analytics.ramp import DEFAULT_RAMP, ColorRamp
from densitymap.analytics.tonemap import ToneMapConfig
from densitymap.core.aggregator import ExportConfig, HeatmapAggregator, SamplingConfig
from densitymap.core.grid import GridConfig

logger = logging.getLogger(__name__)

# Outside these the pipeline still works, but the result is rarely what was meant.
CONVENTIONAL_RANGES = {
    "cell_size": (0.05, float("inf")),
    "gamma": (0.5, 4.0),
    "min_visible_threshold": (0.0, 0.5),
    "blur_radius": (0, 8),
}


def load_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    with open(path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    logger.info("Loaded config from %s", path)
    return config


def _warn_if_unusual(name: str, value: float) -> None:
    low, high = CONVENTIONAL_RANGES[name]
    if not low <= value <= high:
        logger.warning("%s=%s is outside the usual range [%s, %s]", name, value, low, high)


def _pair(value: Any, name: str) -> tuple[float, float]:
    if isinstance(value, dict):
        value = (value["x"], value["y"])
    if len(value) != 2:
        raise ValueError(f"{name} must have exactly two components, got {value!r}")
    return float(value[0]), float(value[1])


def build_grid_config(config: dict[str, Any]) -> GridConfig:
    grid_cfg = config.get("grid", {})
    grid = GridConfig(
        origin=_pair(grid_cfg.get("origin", (0.0, 0.0)), "grid.origin"),
        extent=_pair(grid_cfg.get("extent", (50.0, 50.0)), "grid.extent"),
        cell_size=float(grid_cfg.get("cell_size", 0.5)),
    )
    _warn_if_unusual("cell_size", grid.cell_size)
    return grid


def build_tone_config(config: dict[str, Any]) -> ToneMapConfig:
    tone_cfg = config.get("tone", {})
    tone = ToneMapConfig(
        fixed_max=int(tone_cfg.get("fixed_max", 0)),
        use_log_scale=bool(tone_cfg.get("use_log_scale", True)),
        gamma=float(tone_cfg.get("gamma", 1.6)),
        min_visible_threshold=float(tone_cfg.get("min_visible_threshold", 0.02)),
    )
    _warn_if_unusual("gamma", tone.gamma)
    _warn_if_unusual("min_visible_threshold", tone.min_visible_threshold)
    return tone


def build_blur_config(config: dict[str, Any]) -> BlurConfig:
    blur = BlurConfig(radius=int(config.get("blur", {}).get("radius", 2)))
    _warn_if_unusual("blur_radius", blur.radius)
    return blur


def build_ramp(config: dict[str, Any]) -> ColorRamp:
    appearance = config.get("appearance", {})
    if "colormap" in appearance:
        return ColorRamp.from_colormap(appearance["colormap"], int(appearance.get("colormap_samples", 9)))
    if "ramp" in appearance:
        return ColorRamp.from_config(appearance["ramp"], appearance.get("alpha"))
    return DEFAULT_RAMP


def build_baker(config: dict[str, Any]) -> DensityBaker:
    return DensityBaker(
        tone=build_tone_config(config),
        blur=build_blur_config(config),
        ramp=build_ramp(config),
        opacity=float(config.get("appearance", {}).get("opacity", 0.85)),
    )


def build_sampling_config(config: dict[str, Any]) -> SamplingConfig:
    sampling_cfg = config.get("sampling", {})
    return SamplingConfig(
        interval=float(sampling_cfg.get("interval", 0.25)),
        weight=int(sampling_cfg.get("weight", 1)),
        rebake_interval=float(sampling_cfg.get("rebake_interval", 0.5)),
    )


def build_export_config(config: dict[str, Any]) -> ExportConfig:
    export_cfg = config.get("export", {})
    return ExportConfig(
        directory=str(export_cfg.get("directory", "heatmaps")),
        width=int(export_cfg.get("width", 2048)),
        height=int(export_cfg.get("height", 2048)),
        scale=int(export_cfg.get("scale", 0)),
        bilinear=bool(export_cfg.get("bilinear", True)),
    )


def build_aggregator(config: dict[str, Any], targets=()) -> HeatmapAggregator:
    """Build a ready-to-use aggregator from an already-loaded config dict."""
    return HeatmapAggregator(
        grid_config=build_grid_config(config),
        baker=build_baker(config),
        sampling=build_sampling_config(config),
        export=build_export_config(config),
        targets=targets,
    )


def build_from_path(config_path: str | Path | None, targets=()) -> HeatmapAggregator:
    """Build an aggregator from a YAML file; None uses all defaults."""
    config = load_config(config_path) if config_path is not None else {}
    return build_aggregator(config, targets=targets)
