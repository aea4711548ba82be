"""
Color ramps — piecewise-linear gradients from low density to high density.

A ramp holds two independent stop sequences: RGB color stops and alpha stops.
Evaluating at t clamps t to [0, 1] and linearly interpolates each channel
between the two bracketing stops. Ends hold the first/last stop value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
from matplotlib import colormaps
from matplotlib.colors import to_rgb
from numpy.typing import ArrayLike, NDArray

ColorStop = tuple[float, tuple[float, float, float]]
AlphaStop = tuple[float, float]


def _check_positions(positions: Sequence[float], label: str) -> None:
    if not positions:
        raise ValueError(f"Color ramp needs at least one {label} stop")
    for prev, cur in zip(positions, positions[1:]):
        if cur < prev:
            raise ValueError(f"{label.capitalize()} stop positions must be non-decreasing: {list(positions)}")


@dataclass(frozen=True)
class ColorRamp:
    """Gradient with independent RGB and alpha stops."""

    color_stops: tuple[ColorStop, ...]
    alpha_stops: tuple[AlphaStop, ...] = field(default=((0.0, 1.0), (1.0, 1.0)))

    def __post_init__(self):
        colors = tuple(
            (float(pos), tuple(float(c) for c in rgb)) for pos, rgb in self.color_stops
        )
        alphas = tuple((float(pos), float(a)) for pos, a in self.alpha_stops)
        for _, rgb in colors:
            if len(rgb) != 3:
                raise ValueError(f"Color stops need 3 channels, got {rgb}")
        _check_positions([p for p, _ in colors], "color")
        _check_positions([p for p, _ in alphas], "alpha")
        object.__setattr__(self, "color_stops", colors)
        object.__setattr__(self, "alpha_stops", alphas)

    # ── Evaluation ───────────────────────────────────────────────

    def evaluate_many(self, values: ArrayLike) -> NDArray[np.float64]:
        """Evaluate at every value; returns an array of shape values.shape + (4,)."""
        t = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
        out = np.empty(t.shape + (4,), dtype=np.float64)

        positions = np.array([p for p, _ in self.color_stops])
        rgb = np.array([c for _, c in self.color_stops])
        for channel in range(3):
            out[..., channel] = np.interp(t, positions, rgb[:, channel])

        alpha_positions = np.array([p for p, _ in self.alpha_stops])
        alpha_values = np.array([a for _, a in self.alpha_stops])
        out[..., 3] = np.interp(t, alpha_positions, alpha_values)
        return out

    def evaluate(self, t: float) -> tuple[float, float, float, float]:
        r, g, b, a = self.evaluate_many(t)
        return float(r), float(g), float(b), float(a)

    def evaluate_color(self, t: float) -> tuple[float, float, float]:
        return self.evaluate(t)[:3]

    # ── Construction ─────────────────────────────────────────────

    @classmethod
    def from_config(
        cls,
        colors: list[dict[str, Any]],
        alphas: list[dict[str, Any]] | None = None,
    ) -> ColorRamp:
        """
        Build a ramp from config entries.

        Color entries look like ``{"position": 0.5, "color": "#19e633"}``; the
        color may be any matplotlib color spec or an [r, g, b] list in [0, 1].
        Alpha entries look like ``{"position": 0.0, "alpha": 1.0}``.
        """
        color_stops = tuple((float(c["position"]), to_rgb(_color_spec(c["color"]))) for c in colors)
        if not alphas:
            return cls(color_stops)
        alpha_stops = tuple((float(a["position"]), float(a["alpha"])) for a in alphas)
        return cls(color_stops, alpha_stops)

    @classmethod
    def from_colormap(cls, name: str, samples: int = 9) -> ColorRamp:
        """Sample a registered matplotlib colormap at evenly spaced stops."""
        if samples < 2:
            raise ValueError(f"Need at least 2 samples to build a ramp, got {samples}")
        cmap = colormaps[name]
        positions = np.linspace(0.0, 1.0, samples)
        return cls(tuple((float(p), tuple(cmap(float(p))[:3])) for p in positions))


def _color_spec(value: Any) -> Any:
    # YAML gives lists; matplotlib wants tuples for RGB triplets.
    return tuple(value) if isinstance(value, list) else value


# Blue -> cyan -> green -> yellow -> red
DEFAULT_RAMP = ColorRamp(
    color_stops=(
        (0.0, (0.0, 0.1, 0.9)),
        (0.25, (0.0, 0.8, 1.0)),
        (0.5, (0.1, 0.9, 0.2)),
        (0.75, (1.0, 0.9, 0.0)),
        (1.0, (1.0, 0.2, 0.0)),
    ),
)
