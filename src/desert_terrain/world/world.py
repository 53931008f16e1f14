"""World context - wires terrain, obstacles, index and collision together."""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field

from ..config import Config
from .collision import CollisionEngine, QueryResult, Vec3
from .heightfield import Generator, HeightfieldBuilder, HeightGrid
from .obstacles import Obstacle, ObstacleKind, ObstaclePlacer, VisualFactory
from .spatial import SpatialHashIndex, build_spatial_index

logger = logging.getLogger(__name__)


@dataclass
class WorldStats:
    """Summary of a generated world."""

    seed: int = 0
    resolution: int = 0
    world_size: float = 0.0
    min_height: float = 0.0
    max_height: float = 0.0
    obstacle_count: int = 0
    obstacles_by_kind: dict[str, int] = field(default_factory=dict)
    bucket_count: int = 0


class World:
    """
    One generated desert and the queries it serves.

    Construction only resolves the seed; ``initialize()`` runs generation
    in dependency order:
    - heightfield (noise + dunes)
    - obstacle scattering, seated on the heightfield
    - spatial index over the finished obstacle list
    - collision engine over heightfield and index

    Everything is read-only after ``initialize()``.
    """

    def __init__(
        self,
        config: Config | None = None,
        generator: Generator | None = None,
        visual_factory: VisualFactory | None = None,
    ):
        """
        Initialize the world.

        Args:
            config: World, terrain and obstacle configuration
            generator: Heightfield generator; defaults to a HeightfieldBuilder
                over ``config.terrain``
            visual_factory: Builds each obstacle's renderer handle
        """
        self.config = config if config is not None else Config.default()
        self.generator = generator if generator is not None else HeightfieldBuilder(self.config.terrain)
        self.visual_factory = visual_factory

        # Seeded random number generator for reproducibility
        if self.config.world.seed is not None:
            self.seed = self.config.world.seed
        else:
            self.seed = random.randint(0, 2**31 - 1)
        self.rng = random.Random(self.seed)

        self.terrain: HeightGrid | None = None
        self.obstacles: list[Obstacle] = []
        self.index: SpatialHashIndex | None = None
        self.collision: CollisionEngine | None = None

    def initialize(self) -> None:
        """Generate the terrain and populate it."""
        terrain_cfg = self.config.terrain
        obstacle_cfg = self.config.obstacles

        logger.info("Generating world (seed=%d, resolution=%d)", self.seed, terrain_cfg.resolution)
        self.terrain = self.generator.generate(terrain_cfg.resolution, self.seed)

        placer = ObstaclePlacer(
            self.terrain, terrain_cfg.world_size, self.rng, obstacle_cfg, self.visual_factory
        )
        self.obstacles = []
        self.obstacles.extend(placer.scatter(ObstacleKind.ROCK, obstacle_cfg.rock_count))
        self.obstacles.extend(placer.scatter(ObstacleKind.ROCK_CLUSTER, obstacle_cfg.rock_cluster_count))
        self.obstacles.extend(placer.scatter(ObstacleKind.CACTUS, obstacle_cfg.cactus_count))

        self.index = build_spatial_index(self.obstacles, obstacle_cfg.cell_size)
        self.collision = CollisionEngine(self.terrain, self.index)

    def _require_ready(self) -> CollisionEngine:
        if self.collision is None:
            raise RuntimeError("World.initialize() must be called before querying")
        return self.collision

    def height_at(self, x: float, z: float) -> float:
        """Terrain height at a world position."""
        return self._require_ready().height_field.height_at(x, z)

    def check_collision(self, position: tuple[float, float, float], radius: float) -> QueryResult:
        """Check a disc at a position against the world's obstacles."""
        return self._require_ready().check(position, radius)

    def push_out(self, position: tuple[float, float, float], radius: float) -> Vec3:
        """Move a position clear of overlapping obstacles, standing on the terrain."""
        return self._require_ready().push_out(position, radius)

    def validate_move(
        self,
        start: tuple[float, float, float],
        end: tuple[float, float, float],
        radius: float,
    ) -> Vec3:
        """Resolve a movement against the world's obstacles."""
        return self._require_ready().validate_move(start, end, radius)

    @property
    def stats(self) -> WorldStats:
        """Snapshot of the generated world."""
        self._require_ready()
        by_kind = Counter(obstacle.kind.name.lower() for obstacle in self.obstacles)
        return WorldStats(
            seed=self.seed,
            resolution=self.terrain.resolution,
            world_size=self.terrain.world_size,
            min_height=self.terrain.min_height(),
            max_height=self.terrain.max_vertex_height(),
            obstacle_count=len(self.obstacles),
            obstacles_by_kind=dict(by_kind),
            bucket_count=self.index.bucket_count,
        )
