"""Tests for DensityBaker and ImageBuffer."""

import numpy as np
import pytest

from densitymap.analytics.baker import DensityBaker, ImageBuffer
from densitymap.analytics.blur import BlurConfig
from densitymap.analytics.ramp import DEFAULT_RAMP, ColorRamp
from densitymap.analytics.tonemap import ToneMapConfig
from densitymap.core.grid import GridConfig, GridModel


@pytest.fixture
def scenario_grid() -> GridModel:
    grid = GridModel(GridConfig(origin=(0.0, 0.0), extent=(3.0, 3.0), cell_size=1.0))
    for _ in range(3):
        grid.accumulate((0.5, 0.5))
    grid.accumulate((2.5, 2.5))
    return grid


def linear_baker(threshold=0.0, opacity=0.5, radius=0, ramp=None) -> DensityBaker:
    return DensityBaker(
        tone=ToneMapConfig(fixed_max=3, use_log_scale=False, gamma=1.0, min_visible_threshold=threshold),
        blur=BlurConfig(radius=radius),
        ramp=ramp,
        opacity=opacity,
    )


class TestDensityBaker:
    def test_density_field_scenario(self, scenario_grid) -> None:
        field = linear_baker().density_field(scenario_grid)
        expected = np.zeros((3, 3))
        expected[0, 0] = 1.0
        expected[2, 2] = 1.0 / 3.0
        np.testing.assert_allclose(field, expected)

    def test_zero_threshold_colors_every_cell(self, scenario_grid) -> None:
        image = linear_baker(threshold=0.0, opacity=0.5).bake(scenario_grid)
        assert (image.width, image.height) == (3, 3)
        np.testing.assert_allclose(image.pixels[..., 3], 0.5)
        assert image.pixel(0, 0)[:3] == pytest.approx(DEFAULT_RAMP.evaluate_color(1.0), abs=1e-6)
        assert image.pixel(1, 1)[:3] == pytest.approx(DEFAULT_RAMP.evaluate_color(0.0), abs=1e-6)

    def test_threshold_cutoff_is_fully_transparent(self, scenario_grid) -> None:
        image = linear_baker(threshold=0.5, opacity=0.8).bake(scenario_grid)
        assert image.pixel(2, 2) == (0.0, 0.0, 0.0, 0.0)
        assert image.pixel(1, 0) == (0.0, 0.0, 0.0, 0.0)
        assert image.pixel(0, 0)[3] == pytest.approx(0.8)

    def test_ramp_alpha_ignored(self, scenario_grid) -> None:
        ramp = ColorRamp(
            color_stops=((0.0, (1.0, 1.0, 1.0)),),
            alpha_stops=((0.0, 0.0), (1.0, 0.0)),
        )
        image = linear_baker(threshold=0.1, opacity=0.7, ramp=ramp).bake(scenario_grid)
        assert image.pixel(0, 0)[3] == pytest.approx(0.7)

    def test_clear_then_bake_is_transparent(self, scenario_grid) -> None:
        scenario_grid.clear()
        image = DensityBaker(tone=ToneMapConfig(min_visible_threshold=0.02)).bake(scenario_grid)
        assert np.all(image.pixels[..., 3] == 0.0)

    def test_blur_spreads_density(self, scenario_grid) -> None:
        image = linear_baker(threshold=0.01, radius=1).bake(scenario_grid)
        assert image.pixel(1, 1)[3] == pytest.approx(0.5)

    def test_each_bake_is_fresh(self, scenario_grid) -> None:
        baker = linear_baker()
        first = baker.bake(scenario_grid)
        scenario_grid.accumulate((1.5, 1.5), weight=3)
        second = baker.bake(scenario_grid)
        assert first is not second
        assert first.pixel(1, 1) != second.pixel(1, 1)

    @pytest.mark.parametrize("opacity", [-0.1, 1.5])
    def test_rejects_bad_opacity(self, opacity) -> None:
        with pytest.raises(ValueError, match="opacity"):
            DensityBaker(opacity=opacity)


class TestImageBuffer:
    def test_read_only(self) -> None:
        image = ImageBuffer.transparent(2, 2)
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1.0

    def test_rejects_wrong_shape(self) -> None:
        with pytest.raises(ValueError):
            ImageBuffer(np.zeros((2, 2, 3)))

    def test_to_rgba8(self) -> None:
        pixels = np.zeros((1, 2, 4), dtype=np.float32)
        pixels[0, 0] = (1.0, 0.0, 1.0, 1.0)
        pixels[0, 1] = (0.2, 0.4, 0.6, 0.8)
        rgba = ImageBuffer(pixels).to_rgba8()
        assert rgba.dtype == np.uint8
        assert rgba[0, 0].tolist() == [255, 0, 255, 255]
        assert rgba[0, 1].tolist() == [51, 102, 153, 204]
