"""Smooth deterministic 2D noise for organic coastlines, using OpenSimplex."""

from opensimplex import OpenSimplex


class OrganicNoise:
    """Deterministic noise generator with a fixed seed."""

    def __init__(self, seed: int, scale: float = 1.0) -> None:
        self.seed = seed
        self.scale = scale
        self._simplex = OpenSimplex(seed=seed)

    def sample(self, x: float, y: float) -> float:
        """Sample noise at map coordinates. Returns value in [-1, 1]."""
        return self._simplex.noise2(x * self.scale, y * self.scale)

    def octave_sample(
        self,
        x: float,
        y: float,
        octaves: int = 3,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> float:
        """Fractal Brownian motion over ``octaves`` layers, roughly in [-1, 1]."""
        total = 0.0
        amplitude = 1.0
        frequency = self.scale
        max_amplitude = 0.0

        for _ in range(octaves):
            total += amplitude * self._simplex.noise2(x * frequency, y * frequency)
            max_amplitude += amplitude
            amplitude *= persistence
            frequency *= lacunarity

        return total / max_amplitude

    def unit_sample(self, x: float, y: float) -> float:
        """Sample remapped to [0, 1]."""
        return min(1.0, max(0.0, (self.sample(x, y) + 1.0) * 0.5))
