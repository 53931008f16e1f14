"""Main entry point: generate a desert and run a few sample queries."""

import logging

from .config import Config
from .world import World

logger = logging.getLogger(__name__)

# Character-sized probe used for the sample collision queries
PROBE_RADIUS = 0.6


def main() -> None:
    """Generate the default world and report on it."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Load configuration
    config = Config.default()

    # Create world
    world = World(config)
    world.initialize()

    stats = world.stats
    logger.info("Seed: %d", stats.seed)
    logger.info("World size: %sx%s, resolution %d", stats.world_size, stats.world_size, stats.resolution)
    logger.info("Height range: %.2f .. %.2f", stats.min_height, stats.max_height)
    logger.info("Obstacles: %d %s in %d cells", stats.obstacle_count, stats.obstacles_by_kind, stats.bucket_count)

    # Probe the terrain along the x axis, then at each of the first few obstacles
    for x in (-250.0, 0.0, 250.0):
        result = world.check_collision((x, 0.0, 0.0), PROBE_RADIUS)
        logger.info("(%.1f, 0.0): height %.3f, collided=%s", x, result.terrain_height, result.collided)

    for obstacle in world.obstacles[:3]:
        result = world.check_collision(obstacle.position, PROBE_RADIUS)
        logger.info(
            "Obstacle %d at (%.1f, %.1f): collided=%s, depth %.3f",
            obstacle.id, obstacle.x, obstacle.z, result.collided, result.penetration_depth,
        )


if __name__ == "__main__":
    main()
