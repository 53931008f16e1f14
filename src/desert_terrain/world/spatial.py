"""Spatial hash index for static obstacle neighbor queries."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Iterable, Iterator, Protocol

from ..errors import InvalidConfigurationError
from .obstacles import Obstacle

logger = logging.getLogger(__name__)


class CollisionIndex(Protocol):
    """Protocol for indexes that return obstacle candidates near a point."""

    cell_size: float

    def query(self, x: float, z: float, rings: int = 1) -> list[Obstacle]: ...


class SpatialHashIndex:
    """
    Spatial hash over the horizontal plane for O(1) neighbor lookups.

    Each obstacle is referenced from every cell its bounding circle spans,
    so a lookup only needs the cells around the query point. Cells are
    unbounded integer pairs and created on first insert; the index is built
    once and only read afterwards.
    """

    def __init__(self, cell_size: float = 10.0):
        """
        Initialize the index.

        Args:
            cell_size: World units per cell, best kept above the typical
                obstacle radius
        """
        if not cell_size > 0:
            raise InvalidConfigurationError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = cell_size
        self.cells: dict[tuple[int, int], list[Obstacle]] = defaultdict(list)
        self._obstacles: dict[int, Obstacle] = {}

    def _get_cell(self, x: float, z: float) -> tuple[int, int]:
        """Get the cell coordinates for a position."""
        return (math.floor(x / self.cell_size), math.floor(z / self.cell_size))

    def cells_for(self, obstacle: Obstacle) -> list[tuple[int, int]]:
        """Cells covered by the square around the obstacle's bounding circle."""
        min_col, min_row = self._get_cell(obstacle.x - obstacle.radius, obstacle.z - obstacle.radius)
        max_col, max_row = self._get_cell(obstacle.x + obstacle.radius, obstacle.z + obstacle.radius)
        return [
            (col, row)
            for col in range(min_col, max_col + 1)
            for row in range(min_row, max_row + 1)
        ]

    def insert(self, obstacle: Obstacle) -> None:
        """Add an obstacle to every cell it spans."""
        for cell in self.cells_for(obstacle):
            self.cells[cell].append(obstacle)
        self._obstacles[obstacle.id] = obstacle

    def query(self, x: float, z: float, rings: int = 1) -> list[Obstacle]:
        """
        Get collision candidates from the block of cells around a point.

        The default single ring is the 3x3 block, enough for query discs
        narrower than a cell; wider discs need ``floor(radius / cell_size) + 1``
        rings. An obstacle spanning several of those cells appears once per
        cell; callers do their own exact distance check. Non-finite
        coordinates have no cell and get no candidates.
        """
        if not (math.isfinite(x) and math.isfinite(z)):
            return []
        col, row = self._get_cell(x, z)
        candidates: list[Obstacle] = []
        for c in range(col - rings, col + rings + 1):
            for r in range(row - rings, row + rings + 1):
                # .get keeps lookups from growing the table
                bucket = self.cells.get((c, r))
                if bucket:
                    candidates.extend(bucket)
        return candidates

    def get_nearby(self, x: float, z: float, radius: float) -> Iterator[Obstacle]:
        """
        Get all obstacles whose footprint intersects a disc.

        Args:
            x: Center x coordinate
            z: Center z coordinate
            radius: Disc radius

        Yields:
            Each intersecting obstacle once
        """
        if not (math.isfinite(x) and math.isfinite(z) and math.isfinite(radius)):
            return
        min_col, min_row = self._get_cell(x - radius, z - radius)
        max_col, max_row = self._get_cell(x + radius, z + radius)

        seen: set[int] = set()
        for col in range(min_col, max_col + 1):
            for row in range(min_row, max_row + 1):
                for obstacle in self.cells.get((col, row), ()):
                    if obstacle.id in seen:
                        continue
                    seen.add(obstacle.id)
                    # Actual distance check
                    reach = radius + obstacle.radius
                    dx = obstacle.x - x
                    dz = obstacle.z - z
                    if dx * dx + dz * dz < reach * reach:
                        yield obstacle

    def get_at(self, x: float, z: float) -> Obstacle | None:
        """Get the first obstacle whose footprint covers a point."""
        for obstacle in self.get_nearby(x, z, 0.0):
            return obstacle
        return None

    @property
    def bucket_count(self) -> int:
        """Number of non-empty cells."""
        return len(self.cells)

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(self._obstacles.values())

    def __len__(self) -> int:
        """Return the number of distinct obstacles in the index."""
        return len(self._obstacles)


def build_spatial_index(obstacles: Iterable[Obstacle], cell_size: float = 10.0) -> SpatialHashIndex:
    """Build an index over a finished obstacle list."""
    index = SpatialHashIndex(cell_size)
    for obstacle in obstacles:
        index.insert(obstacle)
    logger.info(
        "Indexed %d obstacles into %d cells (cell_size=%s)",
        len(index), index.bucket_count, cell_size,
    )
    return index
