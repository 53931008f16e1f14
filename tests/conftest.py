"""Shared fixtures for the terrain tests."""

import numpy as np
import pytest

from desert_terrain.config import Config, ObstacleConfig, TerrainConfig, WorldConfig
from desert_terrain.world import HeightGrid


class SlopedGround:
    """Analytic terrain: a plane rising along +x and +z."""

    def height_at(self, x: float, z: float) -> float:
        return 0.25 * x + 0.1 * z + 3.0


@pytest.fixture
def flat_grid() -> HeightGrid:
    """100 x 100 world of zero height centred on the origin."""
    return HeightGrid(np.zeros((3, 3)), world_size=100.0)


@pytest.fixture
def random_grid() -> HeightGrid:
    """Small grid of arbitrary heights, spacing 2 world units."""
    rng = np.random.default_rng(1234)
    return HeightGrid(rng.random((5, 5)), world_size=8.0, max_height=10.0)


@pytest.fixture
def sloped_ground() -> SlopedGround:
    return SlopedGround()


@pytest.fixture
def small_config() -> Config:
    """Fast world: coarse grid, few obstacles, fixed seed."""
    return Config(
        world=WorldConfig(seed=2024),
        terrain=TerrainConfig(world_size=200.0, resolution=33, max_height=10.0),
        obstacles=ObstacleConfig(rock_count=12, rock_cluster_count=3, cactus_count=8),
    )
