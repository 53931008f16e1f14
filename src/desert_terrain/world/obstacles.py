"""Static obstacles and their placement on the terrain."""

from __future__ import annotations

import itertools
import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable

from ..config import ObstacleConfig
from ..errors import InvalidConfigurationError
from .heightfield import HeightSource
from .noise import RandomSource

logger = logging.getLogger(__name__)

_obstacle_ids = itertools.count(1)

# Extra clearance added when pushing a disc out of an obstacle
PUSH_BUFFER = 1e-3


class ObstacleKind(Enum):
    """Categories of static obstacle, each with its own placement policy."""

    ROCK = auto()
    ROCK_CLUSTER = auto()
    CACTUS = auto()


# Builds the renderer handle for a new obstacle from its kind and radius
VisualFactory = Callable[[ObstacleKind, float], Any]


@dataclass(frozen=True, eq=False)
class Obstacle:
    """
    A static obstacle approximated by a vertical cylinder.

    Position is a snapshot taken at placement; the core never moves it.
    Identity-hashed so the same obstacle can sit in several index buckets.
    """

    x: float
    y: float
    z: float
    radius: float
    kind: ObstacleKind = ObstacleKind.ROCK
    # Opaque handle to whatever the renderer draws for this obstacle,
    # set at placement through the placer's visual_factory
    visual: Any = field(default=None, repr=False)
    id: int = field(default_factory=lambda: next(_obstacle_ids))

    def __post_init__(self) -> None:
        if not self.radius > 0:
            raise InvalidConfigurationError(f"obstacle radius must be positive, got {self.radius}")

    @property
    def position(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def horizontal_distance(self, px: float, pz: float) -> float:
        """Distance from the obstacle axis to a point, ignoring height."""
        dx = px - self.x
        dz = pz - self.z
        return math.sqrt(dx * dx + dz * dz)

    def contains(self, px: float, pz: float) -> bool:
        """Check if a point is inside this obstacle's footprint."""
        dx = px - self.x
        dz = pz - self.z
        return dx * dx + dz * dz < self.radius * self.radius

    def distance_to_edge(self, px: float, pz: float) -> float:
        """Get distance from point to obstacle edge (negative if inside)."""
        return self.horizontal_distance(px, pz) - self.radius

    def get_push_vector(self, px: float, pz: float, radius: float = 0.0) -> tuple[float, float]:
        """
        Get a vector that would push a disc of the given radius out of this obstacle.

        Returns (0, 0) if the disc does not overlap.
        """
        reach = self.radius + radius
        dx = px - self.x
        dz = pz - self.z
        dist = math.sqrt(dx * dx + dz * dz)

        if dist >= reach:
            return (0.0, 0.0)

        push_dist = reach - dist + PUSH_BUFFER
        if dist == 0.0:
            # Dead center, push in a fixed direction
            return (push_dist, 0.0)

        return (dx / dist * push_dist, dz / dist * push_dist)


class ObstaclePlacer:
    """
    Scatters obstacles across a square world centred on the origin.

    Every obstacle is seated on the terrain at its own position. Placement
    is permissive: obstacles may overlap each other or sit on steep ground.
    """

    def __init__(
        self,
        height_field: HeightSource,
        world_size: float,
        rng: RandomSource,
        config: ObstacleConfig | None = None,
        visual_factory: VisualFactory | None = None,
    ):
        """
        Initialize the placer.

        Args:
            height_field: Terrain used to seat obstacles
            world_size: Side length of the world square
            rng: Seeded random source
            config: Scale and distribution settings
            visual_factory: Called with (kind, radius) for each placed
                obstacle; its result becomes the obstacle's visual
        """
        if world_size <= 0:
            raise InvalidConfigurationError(f"world_size must be positive, got {world_size}")
        self.height_field = height_field
        self.world_size = world_size
        self.half_size = world_size / 2
        self.rng = rng
        self.config = config if config is not None else ObstacleConfig()
        self.visual_factory = visual_factory

    def scatter(self, kind: ObstacleKind, count: int) -> list[Obstacle]:
        """
        Place obstacles of one kind.

        Args:
            kind: Obstacle category, selects the placement policy
            count: Number of placements (clusters for ROCK_CLUSTER)

        Returns:
            The placed obstacles
        """
        if count < 0:
            raise InvalidConfigurationError(f"count cannot be negative, got {count}")

        if kind is ObstacleKind.ROCK:
            placed = [self._place_rock() for _ in range(count)]
        elif kind is ObstacleKind.CACTUS:
            placed = [self._place_cactus() for _ in range(count)]
        elif kind is ObstacleKind.ROCK_CLUSTER:
            placed = []
            for _ in range(count):
                placed.extend(self._place_cluster())
        else:
            raise InvalidConfigurationError(f"unknown obstacle kind: {kind}")

        logger.debug("Scattered %d %s obstacles", len(placed), kind.name.lower())
        return placed

    def _seat(self, x: float, z: float, radius: float, kind: ObstacleKind, offset: float = 0.0) -> Obstacle:
        """Create an obstacle resting on the terrain at (x, z)."""
        y = self.height_field.height_at(x, z) + offset
        visual = self.visual_factory(kind, radius) if self.visual_factory is not None else None
        return Obstacle(x=x, y=y, z=z, radius=radius, kind=kind, visual=visual)

    def _uniform_position(self, margin: float = 0.0) -> tuple[float, float]:
        """Uniform position inside the world square, inset by margin."""
        inset = min(margin, self.half_size)
        x = self.rng.uniform(-self.half_size + inset, self.half_size - inset)
        z = self.rng.uniform(-self.half_size + inset, self.half_size - inset)
        return x, z

    def _place_rock(self) -> Obstacle:
        """Rocks scatter over an annulus around the world center."""
        cfg = self.config
        angle = self.rng.uniform(0.0, 2 * math.pi)
        inner = cfg.rock_inner_fraction * self.half_size
        outer = cfg.rock_outer_fraction * self.half_size
        distance = self.rng.uniform(inner, outer)
        x = math.cos(angle) * distance
        z = math.sin(angle) * distance

        # Rocks are squashed slightly differently on each axis
        scale = self.rng.uniform(*cfg.rock_scale)
        scale_x = scale * self.rng.uniform(0.8, 1.2)
        scale_z = scale * self.rng.uniform(0.8, 1.2)
        return self._seat(x, z, max(scale_x, scale_z) * 0.8, ObstacleKind.ROCK)

    def _place_cactus(self) -> Obstacle:
        """Cacti scatter uniformly over the world square."""
        x, z = self._uniform_position()
        scale = self.rng.uniform(*self.config.cactus_scale)
        return self._seat(x, z, 0.5 * scale, ObstacleKind.CACTUS)

    def _place_cluster(self) -> list[Obstacle]:
        """Place one cluster: an anchor with a few rocks scattered around it."""
        cfg = self.config
        max_offset = cfg.cluster_offset[1]
        anchor_x, anchor_z = self._uniform_position(margin=max_offset)

        members = []
        for _ in range(self.rng.randint(*cfg.cluster_members)):
            angle = self.rng.uniform(0.0, 2 * math.pi)
            distance = self.rng.uniform(*cfg.cluster_offset)
            x = anchor_x + math.cos(angle) * distance
            z = anchor_z + math.sin(angle) * distance

            scale = self.rng.uniform(*cfg.cluster_scale)
            # Each member re-queries the ground under itself
            members.append(
                self._seat(x, z, scale / 2, ObstacleKind.ROCK_CLUSTER, offset=scale / 2)
            )
        return members


def scatter_obstacles(
    kind: ObstacleKind,
    count: int,
    height_field: HeightSource,
    world_size: float,
    rng: RandomSource | None = None,
    config: ObstacleConfig | None = None,
    seed: int | None = None,
    visual_factory: VisualFactory | None = None,
) -> list[Obstacle]:
    """
    Scatter obstacles of one kind over the terrain.

    Randomness comes from ``rng`` or, failing that, from ``random.Random(seed)``;
    one of the two is required so the layout can always be reproduced.
    """
    if rng is None:
        if seed is None:
            raise InvalidConfigurationError("scatter_obstacles needs an rng or a seed")
        rng = random.Random(seed)
    placer = ObstaclePlacer(height_field, world_size, rng, config, visual_factory)
    return placer.scatter(kind, count)
