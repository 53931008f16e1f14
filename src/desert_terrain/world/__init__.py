"""World module - terrain generation and spatial queries, no rendering."""

from .collision import CollisionEngine, QueryResult, Vec3
from .heightfield import (
    Generator,
    HeightfieldBuilder,
    HeightGrid,
    HeightSource,
    LandformFeature,
    generate_heightfield,
    stamp_dune,
)
from .noise import LinearCongruentialRandom, SimplexNoise
from .obstacles import Obstacle, ObstacleKind, ObstaclePlacer, VisualFactory, scatter_obstacles
from .spatial import CollisionIndex, SpatialHashIndex, build_spatial_index
from .world import World, WorldStats

__all__ = [
    "CollisionEngine",
    "CollisionIndex",
    "Generator",
    "HeightGrid",
    "HeightSource",
    "HeightfieldBuilder",
    "LandformFeature",
    "LinearCongruentialRandom",
    "Obstacle",
    "ObstacleKind",
    "ObstaclePlacer",
    "QueryResult",
    "SimplexNoise",
    "SpatialHashIndex",
    "Vec3",
    "VisualFactory",
    "World",
    "WorldStats",
    "build_spatial_index",
    "generate_heightfield",
    "scatter_obstacles",
    "stamp_dune",
]
