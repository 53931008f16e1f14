"""Tests for heightfield generation and height lookups."""

import math

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from desert_terrain.config import TerrainConfig
from desert_terrain.errors import InvalidConfigurationError
from desert_terrain.world.heightfield import (
    HeightfieldBuilder,
    HeightGrid,
    LandformFeature,
    generate_heightfield,
    stamp_dune,
)
from desert_terrain.world.noise import LinearCongruentialRandom, SimplexNoise


def small_builder(**overrides) -> HeightfieldBuilder:
    return HeightfieldBuilder(TerrainConfig(world_size=64.0, resolution=33, max_height=5.0, **overrides))


class TestHeightGrid:
    """HeightGrid construction and queries."""

    @pytest.mark.parametrize(
        "values, world_size",
        [
            (np.zeros((1, 1)), 10.0),
            (np.zeros((3, 4)), 10.0),
            (np.zeros(9), 10.0),
            (np.zeros((3, 3)), 0.0),
            (np.array([[0.0, 1.0], [np.nan, 0.0]]), 10.0),
            (np.array([[0.0, np.inf], [0.0, 0.0]]), 10.0),
        ],
    )
    def test_rejects_invalid_grids(self, values, world_size):
        with pytest.raises(InvalidConfigurationError):
            HeightGrid(values, world_size=world_size)

    def test_grid_is_read_only(self, random_grid):
        with pytest.raises(ValueError):
            random_grid.values[0, 0] = 1.0
        with pytest.raises(ValueError):
            random_grid.vertex_heights()[0, 0] = 1.0

    def test_grid_copies_input(self):
        source = np.zeros((3, 3))
        grid = HeightGrid(source, world_size=10.0)
        source[1, 1] = 5.0
        assert grid.height_at(0.0, 0.0) == 0.0

    def test_centered_by_default(self, random_grid):
        assert random_grid.origin_x == -4.0
        assert random_grid.origin_z == -4.0
        assert random_grid.spacing == 2.0
        assert random_grid.grid_to_world(0, 0) == (-4.0, -4.0)
        assert random_grid.grid_to_world(4, 4) == (4.0, 4.0)
        assert random_grid.world_to_grid(0.0, 2.0) == (2.0, 3.0)

    def test_explicit_origin(self):
        grid = HeightGrid(np.ones((3, 3)), world_size=10.0, origin=(0.0, 0.0))
        assert grid.contains(0.0, 0.0)
        assert grid.contains(10.0, 10.0)
        assert not grid.contains(-0.1, 5.0)
        assert grid.height_at(5.0, 5.0) == 1.0
        assert grid.height_at(-1.0, 5.0) == 0.0

    def test_exact_at_vertices(self, random_grid):
        for iz in range(random_grid.resolution):
            for ix in range(random_grid.resolution):
                x, z = random_grid.grid_to_world(ix, iz)
                expected = random_grid.values[iz, ix] * random_grid.max_height
                assert random_grid.height_at(x, z) == pytest.approx(expected, abs=1e-9)
                assert random_grid.vertex_height(ix, iz) == pytest.approx(expected)

    def test_far_edge_is_clamped_to_last_cell(self, random_grid):
        last = random_grid.resolution - 1
        assert random_grid.height_at(4.0, 4.0) == pytest.approx(random_grid.values[last, last] * 10.0)
        assert random_grid.height_at(4.0, -4.0) == pytest.approx(random_grid.values[0, last] * 10.0)

    def test_cell_center_is_corner_average(self, random_grid):
        v = random_grid.values
        expected = (v[1, 2] + v[1, 3] + v[2, 2] + v[2, 3]) / 4 * 10.0
        x, z = random_grid.grid_to_world(2.5, 1.5)
        assert random_grid.height_at(x, z) == pytest.approx(expected)

    def test_x_and_z_axes_are_not_swapped(self):
        values = np.zeros((3, 3))
        values[0, 2] = 1.0  # iz=0, ix=2
        grid = HeightGrid(values, world_size=2.0)
        assert grid.height_at(1.0, -1.0) == 1.0
        assert grid.height_at(-1.0, 1.0) == 0.0

    @pytest.mark.parametrize(
        "x, z",
        [(-4.01, 0.0), (0.0, 4.01), (1e9, 0.0), (-1e9, -1e9), (math.nan, 0.0), (0.0, math.inf)],
    )
    def test_out_of_bounds_returns_default(self, random_grid, x, z):
        assert random_grid.height_at(x, z) == 0.0

    def test_custom_out_of_bounds_default(self):
        grid = HeightGrid(np.ones((2, 2)), world_size=1.0, out_of_bounds_height=-7.5)
        assert grid.height_at(10.0, 10.0) == -7.5

    def test_dense_sampling_is_continuous(self, random_grid):
        v = random_grid.values * random_grid.max_height
        grad_x = np.max(np.abs(np.diff(v, axis=1))) / random_grid.spacing
        grad_z = np.max(np.abs(np.diff(v, axis=0))) / random_grid.spacing

        # Diagonal sweep crossing several cell boundaries on both axes
        ts = np.linspace(-3.99, 3.99, 2000)
        heights = [random_grid.height_at(t, 0.7 * t) for t in ts]
        step = ts[1] - ts[0]
        bound = grad_x * step + grad_z * 0.7 * step + 1e-9
        assert max(abs(b - a) for a, b in zip(heights, heights[1:])) <= bound

    @settings(max_examples=200, deadline=None)
    @given(
        x=st.floats(-4.0, 4.0),
        z=st.floats(-4.0, 4.0),
        dx=st.floats(-0.5, 0.5),
        dz=st.floats(-0.5, 0.5),
    )
    def test_lipschitz_between_nearby_points(self, x, z, dx, dz):
        rng = np.random.default_rng(99)
        grid = HeightGrid(rng.random((5, 5)), world_size=8.0, max_height=10.0)
        x2 = min(4.0, max(-4.0, x + dx))
        z2 = min(4.0, max(-4.0, z + dz))
        v = grid.values * grid.max_height
        grad_x = np.max(np.abs(np.diff(v, axis=1))) / grid.spacing
        grad_z = np.max(np.abs(np.diff(v, axis=0))) / grid.spacing
        diff = abs(grid.height_at(x, z) - grid.height_at(x2, z2))
        assert diff <= grad_x * abs(x2 - x) + grad_z * abs(z2 - z) + 1e-9

    def test_flat_grid_normal_points_up(self, flat_grid):
        assert flat_grid.normal_at(10.0, -20.0) == pytest.approx((0.0, 1.0, 0.0))
        assert flat_grid.slope_at(10.0, -20.0) == pytest.approx(0.0)
        assert flat_grid.normal_at(1000.0, 0.0) == (0.0, 1.0, 0.0)

    def test_ramp_normal_and_slope(self):
        # Height rises by 1 world unit per world unit along +x
        values = np.tile(np.arange(5, dtype=float), (5, 1))
        grid = HeightGrid(values, world_size=4.0, max_height=1.0)
        nx, ny, nz = grid.normal_at(0.3, 0.1)
        assert nx == pytest.approx(-math.sqrt(0.5))
        assert ny == pytest.approx(math.sqrt(0.5))
        assert nz == pytest.approx(0.0)
        assert grid.slope_at(0.3, 0.1) == pytest.approx(math.pi / 4)
        # One-sided difference at the edge sees the same slope
        assert grid.slope_at(2.0, 2.0) == pytest.approx(math.pi / 4)

    def test_height_range(self, random_grid):
        assert random_grid.min_height() == pytest.approx(random_grid.values.min() * 10.0)
        assert random_grid.max_vertex_height() == pytest.approx(random_grid.values.max() * 10.0)


class TestStampDune:
    """Additive dune stamping."""

    def test_peak_and_falloff(self):
        values = np.zeros((11, 11))
        stamp_dune(values, LandformFeature(center_x=5, center_z=5, radius=4, height=0.8))
        assert values[5, 5] == pytest.approx(0.8)
        # distance 2 of radius 4 -> (1 - 0.5) ** 2
        assert values[5, 7] == pytest.approx(0.8 * 0.25)
        assert values[5, 9] == 0.0
        assert values[0, 0] == 0.0

    def test_overlapping_dunes_compound(self):
        values = np.full((11, 11), 0.1)
        dune = LandformFeature(center_x=5, center_z=5, radius=3, height=0.5)
        stamp_dune(values, dune)
        stamp_dune(values, dune)
        assert values[5, 5] == pytest.approx(1.1)
        assert values[0, 0] == pytest.approx(0.1)

    def test_elongation_stretches_along_rotated_axis(self):
        values = np.zeros((11, 11))
        stamp_dune(values, LandformFeature(center_x=5, center_z=5, radius=2, height=1.0, elongation=2.0))
        assert values[5, 8] > 0.0  # 3 cells along x
        assert values[8, 5] == 0.0  # 3 cells along z

        rotated = np.zeros((11, 11))
        stamp_dune(
            rotated,
            LandformFeature(center_x=5, center_z=5, radius=2, height=1.0, elongation=2.0, rotation=math.pi / 2),
        )
        assert rotated[8, 5] > 0.0
        assert rotated[5, 8] == pytest.approx(0.0)

    def test_dune_at_edge_is_clipped(self):
        values = np.zeros((6, 6))
        stamp_dune(values, LandformFeature(center_x=0, center_z=5, radius=3, height=1.0))
        assert values[5, 0] == pytest.approx(1.0)
        assert values[0, 5] == 0.0

    def test_dune_off_grid_is_ignored(self):
        values = np.zeros((6, 6))
        stamp_dune(values, LandformFeature(center_x=40, center_z=40, radius=3, height=1.0))
        assert not values.any()

    @pytest.mark.parametrize("radius, elongation", [(0.0, 1.0), (-2.0, 1.0), (3.0, 0.5)])
    def test_rejects_invalid_dunes(self, radius, elongation):
        with pytest.raises(InvalidConfigurationError):
            LandformFeature(center_x=0, center_z=0, radius=radius, height=1.0, elongation=elongation)


class TestHeightfieldBuilder:
    """Noise layering, shaping and dune generation."""

    def test_generation_is_deterministic(self):
        first = small_builder().generate(33, seed=7)
        second = small_builder().generate(33, seed=7)
        assert np.array_equal(first.values, second.values)

    def test_seed_changes_terrain(self):
        assert not np.array_equal(
            small_builder().generate(33, seed=7).values,
            small_builder().generate(33, seed=8).values,
        )

    def test_grid_uses_config(self):
        grid = small_builder().generate(17, seed=1)
        assert grid.resolution == 17
        assert grid.world_size == 64.0
        assert grid.max_height == 5.0

    def test_base_layer_is_shaped_into_range(self):
        builder = small_builder()
        base = builder.base_layer(SimplexNoise(11), 40)
        assert base.shape == (40, 40)
        assert base.min() >= 0.0
        assert base.max() <= 0.8

    def test_explicit_empty_dune_list_leaves_base_layer(self):
        builder = small_builder()
        grid = builder.generate(25, seed=3, dunes=[])
        assert np.array_equal(grid.values, builder.base_layer(SimplexNoise(3), 25))

    def test_random_dunes_follow_config(self):
        builder = small_builder()
        dunes = builder.random_dunes(LinearCongruentialRandom(5), 128)
        assert 20 <= len(dunes) <= 30
        for dune in dunes:
            assert 0 <= dune.center_x <= 127
            assert 0 <= dune.center_z <= 127
            assert 10 <= dune.radius <= 30
            assert 0.1 <= dune.height < 0.6
            assert 1.0 <= dune.elongation < 4.0
            assert 0.0 <= dune.rotation < math.pi

    def test_dunes_raise_terrain(self):
        builder = small_builder(dune_count=(5, 5))
        plain = builder.generate(33, seed=4, dunes=[])
        duned = builder.generate(33, seed=4)
        assert np.all(duned.values >= plain.values)
        assert duned.values.sum() > plain.values.sum()

    def test_rejects_small_resolution(self):
        with pytest.raises(InvalidConfigurationError):
            small_builder().generate(1, seed=0)

    def test_generate_heightfield_helper(self):
        config = TerrainConfig(world_size=50.0, max_height=2.0)
        grid = generate_heightfield(9, seed=21, config=config)
        assert grid.resolution == 9
        assert grid.world_size == 50.0
        assert np.array_equal(grid.values, HeightfieldBuilder(config).generate(9, 21).values)
