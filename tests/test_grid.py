"""Tests for GridModel accumulation."""

import numpy as np
import pytest

from densitymap.core.grid import GridConfig, GridModel


def make_grid(extent=(3.0, 3.0), cell_size=1.0, origin=(0.0, 0.0)) -> GridModel:
    return GridModel(GridConfig(origin=origin, extent=extent, cell_size=cell_size))


class TestGridConfig:
    def test_dimensions_round_up(self) -> None:
        assert GridConfig(extent=(2.5, 1.0), cell_size=1.0).dimensions() == (3, 1)

    def test_dimensions_at_least_one_cell(self) -> None:
        assert GridConfig(extent=(0.01, 0.01), cell_size=1.0).dimensions() == (1, 1)

    @pytest.mark.parametrize("cell_size", [0.0, -0.5, float("nan")])
    def test_rejects_bad_cell_size(self, cell_size) -> None:
        with pytest.raises(ValueError, match="cell_size"):
            GridConfig(cell_size=cell_size)

    def test_rejects_non_positive_extent(self) -> None:
        with pytest.raises(ValueError, match="extent"):
            GridConfig(extent=(10.0, 0.0))


class TestGridModel:
    def test_concrete_scenario(self) -> None:
        grid = make_grid()
        for _ in range(3):
            grid.accumulate((0.5, 0.5))
        grid.accumulate((2.5, 2.5))

        assert grid.counts.tolist() == [3, 0, 0, 0, 0, 0, 0, 0, 1]
        assert grid.max_observed_count == 3

    def test_boundary_uses_floor(self) -> None:
        """A sample exactly on a cell edge belongs to the upper cell."""
        grid = make_grid()
        assert grid.cell_index((1.0, 1.0)) == (1, 1)
        grid.accumulate((1.0, 1.0))
        assert grid.as_array()[1, 1] == 1
        assert grid.as_array()[0, 0] == 0

    @pytest.mark.parametrize(
        "position",
        [
            (3.0, 0.5), (-0.01, 0.5), (0.5, 3.0), (0.5, -2.0),
            (float("inf"), 0.5), (0.5, float("-inf")), (float("nan"), 0.5), (0.5, float("nan")),
        ],
    )
    def test_out_of_bounds_dropped(self, position) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 0.5))
        before = grid.counts.copy()

        assert grid.accumulate(position) is False
        np.testing.assert_array_equal(grid.counts, before)
        assert grid.max_observed_count == 1

    def test_origin_offset(self) -> None:
        grid = make_grid(origin=(-10.0, 5.0))
        assert grid.cell_index((-9.5, 5.5)) == (0, 0)
        assert grid.cell_index((-10.5, 5.5)) is None

    def test_three_d_positions_use_ground_plane(self) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 99.0, 2.5))
        assert grid.as_array()[2, 0] == 1

    def test_weight_below_one_counts_as_one(self) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 0.5), weight=0)
        grid.accumulate((0.5, 0.5), weight=-4)
        assert grid.counts[0] == 2

    def test_weighted_sample(self) -> None:
        grid = make_grid()
        grid.accumulate((1.5, 0.5), weight=5)
        assert grid.counts[1] == 5
        assert grid.max_observed_count == 5

    def test_max_invariant_after_every_call(self) -> None:
        rng = np.random.default_rng(7)
        grid = make_grid(extent=(10.0, 10.0))
        for _ in range(500):
            pos = rng.uniform(-2.0, 12.0, size=2)
            grid.accumulate(tuple(pos), weight=int(rng.integers(1, 4)))
            assert grid.max_observed_count == grid.counts.max()

    def test_clear(self) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 0.5), weight=3)
        grid.clear()
        assert grid.total() == 0
        assert grid.max_observed_count == 0

    def test_configure_same_inputs_is_noop(self) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 0.5))
        assert grid.configure((0.0, 0.0), (3.0, 3.0), 1.0) is False
        assert grid.counts[0] == 1

    def test_configure_change_resets(self) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 0.5))
        assert grid.configure((1.0, 0.0), (3.0, 3.0), 1.0) is True
        assert grid.total() == 0
        assert grid.max_observed_count == 0

        assert grid.configure((1.0, 0.0), (4.0, 2.0), 0.5) is True
        assert (grid.width, grid.height) == (8, 4)
        assert grid.counts.shape == (32,)

    def test_configure_rejects_bad_cell_size(self) -> None:
        grid = make_grid()
        with pytest.raises(ValueError):
            grid.configure((0.0, 0.0), (3.0, 3.0), 0.0)


class TestAccumulateMany:
    def test_non_finite_dropped_like_single(self) -> None:
        positions = [(float("inf"), 0.5), (float("nan"), 0.5), (0.5, 0.5)]
        single = make_grid()
        for pos in positions:
            single.accumulate(pos)

        batch = make_grid()
        assert batch.accumulate_many(iter(positions)) == 1
        np.testing.assert_array_equal(batch.counts, single.counts)

    def test_matches_single_accumulate(self) -> None:
        rng = np.random.default_rng(3)
        positions = rng.uniform(-1.0, 6.0, size=(200, 2))
        weights = rng.integers(1, 5, size=200)

        single = make_grid(extent=(5.0, 5.0))
        for pos, w in zip(positions, weights):
            single.accumulate(tuple(pos), int(w))

        batch = make_grid(extent=(5.0, 5.0))
        accepted = batch.accumulate_many(positions, weights)

        np.testing.assert_array_equal(batch.counts, single.counts)
        assert batch.max_observed_count == single.max_observed_count
        inside = np.all((positions >= 0.0) & (positions < 5.0), axis=1)
        assert accepted == int(inside.sum())

    def test_three_d_batch(self) -> None:
        grid = make_grid()
        assert grid.accumulate_many([(0.5, 7.0, 1.5), (2.5, 0.0, 0.5)]) == 2
        assert grid.as_array()[1, 0] == 1
        assert grid.as_array()[0, 2] == 1

    def test_empty_batch(self) -> None:
        grid = make_grid()
        assert grid.accumulate_many([]) == 0
        assert grid.total() == 0

    def test_keeps_existing_max(self) -> None:
        grid = make_grid()
        grid.accumulate((0.5, 0.5), weight=10)
        grid.accumulate_many([(2.5, 2.5)])
        assert grid.max_observed_count == 10
