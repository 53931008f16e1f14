"""Centralized configuration for world generation."""

from dataclasses import dataclass, field

from .errors import InvalidConfigurationError


def _check_range(name: str, value: tuple[float, float]) -> None:
    low, high = value
    if low > high:
        raise InvalidConfigurationError(f"{name} range is inverted: {value}")


@dataclass
class TerrainConfig:
    """Configuration for heightfield generation."""

    world_size: float = 1000.0
    resolution: int = 256
    max_height: float = 20.0
    # Base frequency of the large-scale octave
    noise_scale: float = 5.0
    # (frequency multiplier, amplitude) per octave, large to small
    octaves: tuple[tuple[float, float], ...] = ((1.0, 0.7), (2.0, 0.2), (4.0, 0.1))
    # Shaping curve: value ** exponent * scale (flat basins, risen dunes)
    shape_exponent: float = 1.5
    shape_scale: float = 0.8
    # Dune stamping, in grid cells / normalized height
    dune_count: tuple[int, int] = (20, 30)
    dune_radius: tuple[int, int] = (10, 30)
    dune_height: tuple[float, float] = (0.1, 0.6)
    dune_elongation: tuple[float, float] = (1.0, 4.0)
    # Returned by height lookups outside the grid
    out_of_bounds_height: float = 0.0

    def __post_init__(self) -> None:
        if self.resolution < 2:
            raise InvalidConfigurationError(f"resolution must be >= 2, got {self.resolution}")
        if self.world_size <= 0:
            raise InvalidConfigurationError(f"world_size must be positive, got {self.world_size}")
        if self.max_height <= 0:
            raise InvalidConfigurationError(f"max_height must be positive, got {self.max_height}")
        if not self.octaves:
            raise InvalidConfigurationError("at least one noise octave is required")
        _check_range("dune_count", self.dune_count)
        _check_range("dune_radius", self.dune_radius)
        _check_range("dune_height", self.dune_height)
        _check_range("dune_elongation", self.dune_elongation)
        if self.dune_count[0] < 0:
            raise InvalidConfigurationError("dune_count cannot be negative")
        if self.dune_radius[0] <= 0:
            raise InvalidConfigurationError("dune_radius must be positive")
        if self.dune_elongation[0] < 1.0:
            raise InvalidConfigurationError("dune_elongation must be >= 1")


@dataclass
class ObstacleConfig:
    """Configuration for obstacle scattering and the spatial index."""

    rock_count: int = 30
    rock_cluster_count: int = 10
    cactus_count: int = 25
    # World units per spatial hash cell; larger than typical bounding radius
    cell_size: float = 10.0
    # Rock annulus, as fractions of half the world size
    rock_inner_fraction: float = 0.04
    rock_outer_fraction: float = 0.84
    rock_scale: tuple[float, float] = (1.0, 4.0)
    cactus_scale: tuple[float, float] = (0.5, 1.0)
    cluster_members: tuple[int, int] = (3, 7)
    cluster_offset: tuple[float, float] = (1.0, 4.0)
    cluster_scale: tuple[float, float] = (1.0, 3.0)

    def __post_init__(self) -> None:
        if self.cell_size <= 0:
            raise InvalidConfigurationError(f"cell_size must be positive, got {self.cell_size}")
        if min(self.rock_count, self.rock_cluster_count, self.cactus_count) < 0:
            raise InvalidConfigurationError("obstacle counts cannot be negative")
        if not 0.0 <= self.rock_inner_fraction <= self.rock_outer_fraction <= 1.0:
            raise InvalidConfigurationError(
                "rock annulus fractions must satisfy 0 <= inner <= outer <= 1"
            )
        _check_range("rock_scale", self.rock_scale)
        _check_range("cactus_scale", self.cactus_scale)
        _check_range("cluster_members", self.cluster_members)
        _check_range("cluster_offset", self.cluster_offset)
        _check_range("cluster_scale", self.cluster_scale)
        if min(self.rock_scale[0], self.cactus_scale[0], self.cluster_scale[0]) <= 0:
            raise InvalidConfigurationError("obstacle scales must be positive")


@dataclass
class WorldConfig:
    """Configuration for the world as a whole."""

    # Random seed for reproducibility (None = random seed)
    seed: int | None = None


@dataclass
class Config:
    """Main configuration container."""

    world: WorldConfig = field(default_factory=WorldConfig)
    terrain: TerrainConfig = field(default_factory=TerrainConfig)
    obstacles: ObstacleConfig = field(default_factory=ObstacleConfig)

    @classmethod
    def default(cls) -> "Config":
        """Create default configuration."""
        return cls(
            world=WorldConfig(),
            terrain=TerrainConfig(),
            obstacles=ObstacleConfig(),
        )
