"""Collision queries against the terrain and static obstacles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

from ..errors import InvalidConfigurationError
from .heightfield import HeightSource
from .obstacles import Obstacle
from .spatial import CollisionIndex

# Used when the query point sits exactly on an obstacle's axis
FALLBACK_NORMAL = (1.0, 0.0, 0.0)

# Push-out passes before giving up on a crowded spot
MAX_PUSH_ITERATIONS = 4


class Vec3(NamedTuple):
    """World-space position, y up."""

    x: float
    y: float
    z: float


@dataclass(frozen=True)
class QueryResult:
    """
    Outcome of a collision query.

    ``terrain_height`` is always filled in so the caller can clamp its
    vertical position. The other fields are only meaningful when
    ``collided`` is true.
    """

    collided: bool
    terrain_height: float
    hit_obstacle: Obstacle | None = None
    separation_normal: tuple[float, float, float] | None = None
    penetration_depth: float = 0.0


class CollisionEngine:
    """
    Answers per-tick collision queries for an external movement controller.

    Terrain is a height constraint, not a collision: it only fills in
    ``terrain_height``. Obstacles are vertical cylinders compared in the
    horizontal plane. Queries never modify the terrain or the index.
    """

    def __init__(self, height_field: HeightSource, index: CollisionIndex):
        self.height_field = height_field
        self.index = index

    def _rings(self, radius: float) -> int:
        """Cell rings around the query cell that a disc of this radius can reach."""
        if not 0.0 <= radius < math.inf:
            raise InvalidConfigurationError(f"query radius must be finite and non-negative, got {radius}")
        return math.floor(radius / self.index.cell_size) + 1

    def check(self, position: tuple[float, float, float], radius: float) -> QueryResult:
        """
        Check a disc of the given radius at a position against all obstacles.

        Returns the first overlapping candidate found. When several overlap,
        which one is reported depends on bucket order.
        """
        x, _, z = position
        terrain_height = self.height_field.height_at(x, z)

        for obstacle in self.index.query(x, z, self._rings(radius)):
            dx = x - obstacle.x
            dz = z - obstacle.z
            distance = math.sqrt(dx * dx + dz * dz)
            reach = radius + obstacle.radius

            if distance < reach:
                if distance > 0.0:
                    normal = (dx / distance, 0.0, dz / distance)
                else:
                    normal = FALLBACK_NORMAL
                return QueryResult(
                    collided=True,
                    terrain_height=terrain_height,
                    hit_obstacle=obstacle,
                    separation_normal=normal,
                    penetration_depth=reach - distance,
                )

        return QueryResult(collided=False, terrain_height=terrain_height)

    def push_out(self, position: tuple[float, float, float], radius: float) -> Vec3:
        """
        Move a position out of every obstacle it overlaps.

        Push vectors from all overlapping candidates are summed per pass;
        a few passes settle points wedged between neighbours. The result
        is clamped to stand on the terrain.
        """
        x, y, z = position
        rings = self._rings(radius)
        for _ in range(MAX_PUSH_ITERATIONS):
            total_dx, total_dz = 0.0, 0.0
            # Duplicate candidates from neighbouring buckets count once
            seen: set[int] = set()
            for obstacle in self.index.query(x, z, rings):
                if obstacle.id in seen:
                    continue
                seen.add(obstacle.id)
                dx, dz = obstacle.get_push_vector(x, z, radius)
                total_dx += dx
                total_dz += dz

            if total_dx == 0.0 and total_dz == 0.0:
                break
            x += total_dx
            z += total_dz

        return Vec3(x, max(y, self.height_field.height_at(x, z)), z)

    def validate_move(
        self,
        start: tuple[float, float, float],
        end: tuple[float, float, float],
        radius: float,
    ) -> Vec3:
        """
        Validate a movement and return the actual destination.

        If the destination is blocked, slides out of the obstacle or stays
        at the start position.
        """
        if not self.check(end, radius).collided:
            x, y, z = end
            return Vec3(x, max(y, self.height_field.height_at(x, z)), z)

        pushed = self.push_out(end, radius)
        if self.check(pushed, radius).collided:
            x, y, z = start
            return Vec3(x, max(y, self.height_field.height_at(x, z)), z)
        return pushed
