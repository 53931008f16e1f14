"""Error types raised by the terrain core."""


class TerrainError(Exception):
    """Base class for terrain core errors."""


class InvalidConfigurationError(TerrainError, ValueError):
    """A grid, obstacle, index or config was built with impossible parameters."""
