"""Deterministic 2D simplex noise and the seeded sequence behind it."""

from __future__ import annotations

import math
from typing import Protocol

import numpy as np

# Skew / unskew factors for the 2D triangular lattice
F2 = 0.5 * (math.sqrt(3.0) - 1.0)
G2 = (3.0 - math.sqrt(3.0)) / 6.0

# Brings the summed corner contributions to roughly [-1, 1]
NOISE_SCALE = 70.0

# Gradients selected by the modulo-12 permutation table (z components dropped)
GRADIENTS = np.array(
    [
        (1, 1), (-1, 1), (1, -1), (-1, -1),
        (1, 0), (-1, 0), (1, 0), (-1, 0),
        (0, 1), (0, -1), (0, 1), (0, -1),
    ],
    dtype=np.float64,
)

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


class RandomSource(Protocol):
    """Protocol for seeded random sources used during generation."""

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def randint(self, a: int, b: int) -> int: ...


class NoiseSource(Protocol):
    """Protocol for scalar 2D noise fields."""

    def sample(self, x: np.ndarray, y: np.ndarray) -> np.ndarray: ...


class LinearCongruentialRandom:
    """
    Small seeded linear-congruential sequence.

    Produces the same stream for the same seed on every platform, which is
    what makes a terrain reproducible from a stored seed. Only a short
    period (233280), so it is meant for generation, not statistics.
    """

    def __init__(self, seed: int | float):
        self.seed = seed
        self._state = seed

    def random(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def uniform(self, a: float, b: float) -> float:
        """Next value in [a, b)."""
        return a + (b - a) * self.random()

    def randint(self, a: int, b: int) -> int:
        """Next integer in [a, b], both ends inclusive."""
        return a + int(math.floor(self.random() * (b - a + 1)))


class SimplexNoise:
    """
    Seeded 2D simplex noise.

    Construction shuffles 0-255 with a LinearCongruentialRandom, then
    doubles the table to 512 entries so corner lookups never wrap.
    Sampling is a pure function of the coordinate after that.
    """

    def __init__(self, seed: int | float = 0):
        self.seed = seed
        rng = LinearCongruentialRandom(seed)

        p = list(range(256))
        for i in range(255, 0, -1):
            j = int(math.floor(rng.random() * (i + 1)))
            p[i], p[j] = p[j], p[i]

        self.perm = np.array([p[i & 255] for i in range(512)], dtype=np.int64)
        self.perm_mod12 = self.perm % 12

    def sample(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """
        Evaluate noise at arrays of coordinates.

        Args:
            x: X coordinates (any shape)
            y: Y coordinates (broadcastable against x)

        Returns:
            Array of noise values, roughly in [-1, 1]
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        # Skew into the lattice to find the containing simplex cell
        s = (x + y) * F2
        i = np.floor(x + s).astype(np.int64)
        j = np.floor(y + s).astype(np.int64)

        t = (i + j) * G2
        x0 = x - (i - t)
        y0 = y - (j - t)

        # Lower or upper triangle of the cell
        i1 = (x0 > y0).astype(np.int64)
        j1 = 1 - i1

        x1 = x0 - i1 + G2
        y1 = y0 - j1 + G2
        x2 = x0 - 1.0 + 2.0 * G2
        y2 = y0 - 1.0 + 2.0 * G2

        ii = i & 255
        jj = j & 255
        gi0 = self.perm_mod12[ii + self.perm[jj]]
        gi1 = self.perm_mod12[ii + i1 + self.perm[jj + j1]]
        gi2 = self.perm_mod12[ii + 1 + self.perm[jj + 1]]

        n0 = self._corner(gi0, x0, y0)
        n1 = self._corner(gi1, x1, y1)
        n2 = self._corner(gi2, x2, y2)

        return NOISE_SCALE * (n0 + n1 + n2)

    def noise2d(self, x: float, y: float) -> float:
        """Evaluate noise at a single coordinate."""
        return float(self.sample(np.array(x), np.array(y)))

    @staticmethod
    def _corner(gi: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Radially attenuated gradient contribution of one simplex corner."""
        falloff = 0.5 - x * x - y * y
        grad = GRADIENTS[gi]
        dot = grad[..., 0] * x + grad[..., 1] * y
        falloff = np.maximum(falloff, 0.0)
        falloff *= falloff
        return falloff * falloff * dot
