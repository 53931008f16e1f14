"""Heightfield generation and interpolated height queries."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Protocol

import numpy as np

from ..config import TerrainConfig
from ..errors import InvalidConfigurationError
from .noise import LinearCongruentialRandom, NoiseSource, RandomSource, SimplexNoise

logger = logging.getLogger(__name__)

# Keeps the dune stream apart from the permutation shuffle of the same seed
DUNE_SEED_OFFSET = 1


class HeightSource(Protocol):
    """Protocol for anything that answers world-space height lookups."""

    def height_at(self, x: float, z: float) -> float: ...


class Generator(Protocol):
    """Protocol for heightfield generators."""

    def generate(self, resolution: int, seed: int) -> HeightGrid: ...


class HeightGrid:
    """
    Square grid of normalized elevation samples covering a square of world.

    Vertex (ix, iz) sits at world position
    ``(origin_x + ix * spacing, origin_z + iz * spacing)`` with
    ``spacing = world_size / (resolution - 1)``, the same layout a plane mesh
    with ``resolution - 1`` segments per side has. Values are stored
    normalized; lookups scale them by ``max_height``.

    The grid is read-only once constructed.
    """

    def __init__(
        self,
        values: np.ndarray,
        world_size: float,
        max_height: float = 1.0,
        origin: tuple[float, float] | None = None,
        out_of_bounds_height: float = 0.0,
    ):
        """
        Initialize the grid.

        Args:
            values: Square array of normalized heights, indexed [iz, ix]
            world_size: Side length of the covered square in world units
            max_height: Scale applied to normalized values
            origin: World (x, z) of vertex (0, 0); defaults to centering the
                grid on the world origin
            out_of_bounds_height: Height reported outside the grid
        """
        values = np.array(values, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise InvalidConfigurationError(f"height values must be square, got shape {values.shape}")
        if values.shape[0] < 2:
            raise InvalidConfigurationError(f"resolution must be >= 2, got {values.shape[0]}")
        if world_size <= 0:
            raise InvalidConfigurationError(f"world_size must be positive, got {world_size}")
        if not np.all(np.isfinite(values)):
            raise InvalidConfigurationError("height values must be finite")

        values.setflags(write=False)
        self.values = values
        self.world_size = float(world_size)
        self.max_height = float(max_height)
        if origin is None:
            origin = (-self.world_size / 2, -self.world_size / 2)
        self.origin_x, self.origin_z = float(origin[0]), float(origin[1])
        self.out_of_bounds_height = out_of_bounds_height

    @property
    def resolution(self) -> int:
        """Vertices per side."""
        return self.values.shape[0]

    @property
    def spacing(self) -> float:
        """World distance between neighbouring vertices."""
        return self.world_size / (self.resolution - 1)

    def world_to_grid(self, x: float, z: float) -> tuple[float, float]:
        """Convert world coordinates to fractional grid coordinates (unclamped)."""
        scale = self.resolution - 1
        return (
            (x - self.origin_x) / self.world_size * scale,
            (z - self.origin_z) / self.world_size * scale,
        )

    def grid_to_world(self, gx: float, gz: float) -> tuple[float, float]:
        """Convert grid coordinates to world coordinates."""
        return (self.origin_x + gx * self.spacing, self.origin_z + gz * self.spacing)

    def contains(self, x: float, z: float) -> bool:
        """Check if a world position lies on the grid (edges included)."""
        nx = (x - self.origin_x) / self.world_size
        nz = (z - self.origin_z) / self.world_size
        return 0.0 <= nx <= 1.0 and 0.0 <= nz <= 1.0

    def vertex_height(self, ix: int, iz: int) -> float:
        """World-scaled height stored at a vertex, indices clamped to the grid."""
        last = self.resolution - 1
        ix = max(0, min(last, ix))
        iz = max(0, min(last, iz))
        return float(self.values[iz, ix]) * self.max_height

    def vertex_heights(self) -> np.ndarray:
        """World-scaled vertex heights, as a renderer would build its mesh from."""
        heights = self.values * self.max_height
        heights.setflags(write=False)
        return heights

    def height_at(self, x: float, z: float) -> float:
        """
        Get the bilinearly interpolated height at world coordinates.

        Returns ``out_of_bounds_height`` outside the grid.
        """
        nx = (x - self.origin_x) / self.world_size
        nz = (z - self.origin_z) / self.world_size
        # Written so NaN coordinates also fall through to the default
        if not (0.0 <= nx <= 1.0 and 0.0 <= nz <= 1.0):
            return self.out_of_bounds_height

        scale = self.resolution - 1
        gx = nx * scale
        gz = nz * scale
        # Far edge uses the last cell with a fractional offset of 1
        ix = min(int(gx), self.resolution - 2)
        iz = min(int(gz), self.resolution - 2)
        fx = gx - ix
        fz = gz - iz

        v = self.values
        h1 = v[iz, ix]
        h2 = v[iz, ix + 1]
        h3 = v[iz + 1, ix]
        h4 = v[iz + 1, ix + 1]

        h12 = h1 * (1 - fx) + h2 * fx
        h34 = h3 * (1 - fx) + h4 * fx
        return float(h12 * (1 - fz) + h34 * fz) * self.max_height

    def normal_at(self, x: float, z: float) -> tuple[float, float, float]:
        """
        Get the unit surface normal (y up) at world coordinates.

        Uses central differences one vertex spacing apart; off the grid the
        surface is flat.
        """
        if not self.contains(x, z):
            return (0.0, 1.0, 0.0)

        h = self.spacing
        x_far = self.origin_x + self.world_size
        z_far = self.origin_z + self.world_size
        x_hi, x_lo = min(x + h, x_far), max(x - h, self.origin_x)
        z_hi, z_lo = min(z + h, z_far), max(z - h, self.origin_z)

        dhdx = (self.height_at(x_hi, z) - self.height_at(x_lo, z)) / (x_hi - x_lo)
        dhdz = (self.height_at(x, z_hi) - self.height_at(x, z_lo)) / (z_hi - z_lo)

        length = math.sqrt(dhdx * dhdx + 1.0 + dhdz * dhdz)
        return (-dhdx / length, 1.0 / length, -dhdz / length)

    def slope_at(self, x: float, z: float) -> float:
        """Angle of the surface from horizontal, in radians."""
        _, ny, _ = self.normal_at(x, z)
        return math.acos(max(-1.0, min(1.0, ny)))

    def min_height(self) -> float:
        """Lowest world-scaled vertex height."""
        return float(self.values.min()) * self.max_height

    def max_vertex_height(self) -> float:
        """Highest world-scaled vertex height."""
        return float(self.values.max()) * self.max_height

    def __repr__(self) -> str:
        return (
            f"HeightGrid(resolution={self.resolution}, world_size={self.world_size}, "
            f"max_height={self.max_height})"
        )


@dataclass
class LandformFeature:
    """A dune stamp, in grid coordinates and normalized height."""

    center_x: float
    center_z: float
    radius: float
    height: float
    elongation: float = 1.0
    rotation: float = 0.0

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise InvalidConfigurationError(f"dune radius must be positive, got {self.radius}")
        if self.elongation < 1.0:
            raise InvalidConfigurationError(f"dune elongation must be >= 1, got {self.elongation}")


def stamp_dune(values: np.ndarray, dune: LandformFeature) -> None:
    """
    Add a dune to a height array in place.

    Each sample within the rotated ellipse gains
    ``height * (1 - distance / radius) ** 2``; existing height is kept so
    overlapping dunes compound.
    """
    resolution_z, resolution_x = values.shape
    # Long axis reaches radius * elongation from the center
    r = int(math.ceil(dune.radius * dune.elongation))
    cx = int(math.floor(dune.center_x))
    cz = int(math.floor(dune.center_z))

    x_lo, x_hi = max(0, cx - r), min(resolution_x, cx + r + 1)
    z_lo, z_hi = max(0, cz - r), min(resolution_z, cz + r + 1)
    if x_lo >= x_hi or z_lo >= z_hi:
        return

    xs = np.arange(x_lo, x_hi, dtype=np.float64) - dune.center_x
    zs = np.arange(z_lo, z_hi, dtype=np.float64) - dune.center_z
    dx, dz = np.meshgrid(xs, zs)

    cos_r = math.cos(dune.rotation)
    sin_r = math.sin(dune.rotation)
    # Into the dune's local frame, stretched along its long axis
    local_x = (dx * cos_r - dz * sin_r) / dune.elongation
    local_z = dx * sin_r + dz * cos_r
    distance = np.sqrt(local_x * local_x + local_z * local_z)

    inside = distance < dune.radius
    falloff = 1.0 - distance / dune.radius
    contribution = np.where(inside, falloff * falloff * dune.height, 0.0)
    values[z_lo:z_hi, x_lo:x_hi] += contribution


class HeightfieldBuilder:
    """
    Builds desert heightfields from layered simplex noise and dune stamps.

    The base layer sums the configured octaves, normalizes to [0, 1] and
    applies the shaping curve; dunes are then stamped one after another.
    """

    def __init__(self, config: TerrainConfig | None = None):
        self.config = config if config is not None else TerrainConfig()

    def generate(
        self,
        resolution: int,
        seed: int,
        dunes: Iterable[LandformFeature] | None = None,
    ) -> HeightGrid:
        """
        Generate a heightfield.

        Args:
            resolution: Vertices per side (>= 2)
            seed: Seed for the noise table and dune layout
            dunes: Explicit dunes to stamp instead of a random set

        Returns:
            The finished, read-only HeightGrid
        """
        if resolution < 2:
            raise InvalidConfigurationError(f"resolution must be >= 2, got {resolution}")

        noise = SimplexNoise(seed)
        values = self.base_layer(noise, resolution)

        if dunes is None:
            rng = LinearCongruentialRandom(seed + DUNE_SEED_OFFSET)
            dunes = self.random_dunes(rng, resolution)
        dunes = list(dunes)
        for dune in dunes:
            stamp_dune(values, dune)

        logger.info(
            "Generated %dx%d heightfield (seed=%s, dunes=%d)",
            resolution, resolution, seed, len(dunes),
        )
        return HeightGrid(
            values,
            world_size=self.config.world_size,
            max_height=self.config.max_height,
            out_of_bounds_height=self.config.out_of_bounds_height,
        )

    def base_layer(self, noise: NoiseSource, resolution: int) -> np.ndarray:
        """Shaped multi-octave noise, one sample per vertex."""
        cfg = self.config
        coords = np.arange(resolution, dtype=np.float64) / resolution - 0.5
        nx, nz = np.meshgrid(coords, coords)

        value = np.zeros((resolution, resolution), dtype=np.float64)
        total_amplitude = 0.0
        for multiplier, amplitude in cfg.octaves:
            frequency = cfg.noise_scale * multiplier
            value += noise.sample(nx * frequency, nz * frequency) * amplitude
            total_amplitude += amplitude

        # Normalize to 0-1; clip so the shaping power stays real
        value = (value / total_amplitude + 1.0) * 0.5
        np.clip(value, 0.0, 1.0, out=value)
        return np.power(value, cfg.shape_exponent) * cfg.shape_scale

    def random_dunes(self, rng: RandomSource, resolution: int) -> list[LandformFeature]:
        """Draw a random dune set from the configured ranges."""
        cfg = self.config
        count = rng.randint(*cfg.dune_count)
        dunes = []
        for _ in range(count):
            dunes.append(
                LandformFeature(
                    center_x=rng.randint(0, resolution - 1),
                    center_z=rng.randint(0, resolution - 1),
                    radius=rng.randint(*cfg.dune_radius),
                    height=rng.uniform(*cfg.dune_height),
                    elongation=rng.uniform(*cfg.dune_elongation),
                    rotation=rng.uniform(0.0, math.pi),
                )
            )
        logger.debug("Drew %d dunes for resolution %d", count, resolution)
        return dunes


def generate_heightfield(
    resolution: int, seed: int, config: TerrainConfig | None = None
) -> HeightGrid:
    """Generate a heightfield with the default builder."""
    return HeightfieldBuilder(config).generate(resolution, seed)
