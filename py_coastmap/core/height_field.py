"""
Height-field synthesis from radial "blob" sources.

Blob centers are constrained to an interior safe zone inset by
``blob radius + water margin`` from every map edge, so land never reaches the
strip that border carving later turns into water. Each cell's height is the
maximum contribution over all blobs.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .mesh import Mesh
from .noise import OrganicNoise
from ..utils.random import derive_int_seed, make_prng

logger = structlog.get_logger()

# Falloff values at or above this use the exponential "wide plateau" curve
PLATEAU_FALLOFF = 2.0
MAX_CONTINENTAL_FALLOFF = 3.0
MAX_CONTINENTAL_BLOBS = 3
CONTINENTAL_RADIUS_MULTIPLIER = 2.0

RADIUS_RANGE = (0.6, 1.2)  # fraction of the base radius
JITTER_FRACTION = 0.3  # of the blob radius


@dataclass
class HeightFieldParams:
    """Terrain synthesis parameters."""

    map_width: float
    map_height: float
    blob_count: int = 2
    main_peak_height: float = 1.0
    secondary_peak_height_range: Tuple[float, float] = (0.3, 0.7)
    falloff: float = 2.0
    sharpness: float = 0.1  # per-cell randomness, 0 disables it
    continental_mode: bool = True
    water_margin: float = 50.0

    # Base blob radius as a fraction of the smaller map dimension
    base_radius_fraction: float = 0.15
    # Organic noise (continental mode only)
    noise_scale: float = 0.01
    noise_amplitude: float = 0.3

    def __post_init__(self):
        low, high = self.secondary_peak_height_range
        if self.map_width <= 0 or self.map_height <= 0:
            raise ValueError("Map width and height must be positive")
        if self.blob_count < 0:
            raise ValueError("blob_count must be >= 0")
        if low > high:
            raise ValueError("secondary_peak_height_range must be (low, high)")
        if self.falloff <= 0:
            raise ValueError("falloff must be positive")
        if not 0 <= self.sharpness <= 1:
            raise ValueError("sharpness must be within [0, 1]")
        if self.water_margin < 0:
            raise ValueError("water_margin must be >= 0")
        if self.base_radius_fraction <= 0:
            raise ValueError("base_radius_fraction must be positive")

    @property
    def base_radius(self) -> float:
        return min(self.map_width, self.map_height) * self.base_radius_fraction

    @property
    def effective_blob_count(self) -> int:
        if self.continental_mode:
            return min(MAX_CONTINENTAL_BLOBS, self.blob_count)
        return self.blob_count

    @property
    def effective_falloff(self) -> float:
        if self.continental_mode:
            return min(MAX_CONTINENTAL_FALLOFF, max(PLATEAU_FALLOFF, self.falloff))
        return self.falloff

    @property
    def effective_radius(self) -> float:
        if self.continental_mode:
            return self.base_radius * CONTINENTAL_RADIUS_MULTIPLIER
        return self.base_radius


@dataclass
class Blob:
    """Radial height source, discarded after one synthesis pass."""

    x: float
    y: float
    radius: float
    height: float


@dataclass
class HeightFieldStats:
    """Diagnostics from one synthesis pass."""

    min_height: float
    max_height: float
    blob_count: int
    positive_cells: int


def falloff_curve(d: np.ndarray, falloff: float) -> np.ndarray:
    """
    Height fraction at normalized distance ``d`` from a blob center.

    Power curve ``falloff^(10d)`` below the plateau threshold, exponential
    decay ``exp(-d * falloff * 0.5)`` at or above it.
    """
    if falloff >= PLATEAU_FALLOFF:
        return np.exp(-d * (falloff * 0.5))
    return np.power(falloff, d * 10)


def place_blob(
    params: HeightFieldParams, peak_height: float, prng: AleaPRNG
) -> Optional[Blob]:
    """
    Place one blob uniformly inside the safe zone.

    The radius is shrunk when the safe zone would be empty; None is returned
    when the map is too small for any blob at this water margin.
    """
    width, height = params.map_width, params.map_height
    radius = params.effective_radius * prng.uniform(*RADIUS_RANGE)

    room = min(width, height) / 2 - params.water_margin
    if room <= 0:
        logger.warning(
            "Safe zone collapsed, blob skipped",
            water_margin=params.water_margin,
            width=width,
            height=height,
        )
        return None
    if radius > room:
        logger.debug("Blob radius shrunk to fit safe zone", radius=radius, room=room)
        radius = room

    margin = radius + params.water_margin
    x = prng.uniform(margin, width - margin)
    y = prng.uniform(margin, height - margin)

    # Jitter breaks up perfectly regular placement, then back inside the zone
    jitter = radius * JITTER_FRACTION
    x = min(max(x + prng.uniform(-jitter, jitter), margin), width - margin)
    y = min(max(y + prng.uniform(-jitter, jitter), margin), height - margin)

    return Blob(x=x, y=y, radius=radius, height=peak_height)


def generate_blobs(params: HeightFieldParams, prng: AleaPRNG) -> List[Blob]:
    """One main blob at full peak height plus secondary blobs."""
    blobs = []
    for i in range(params.effective_blob_count):
        if i == 0:
            peak = params.main_peak_height
        else:
            peak = prng.uniform(*params.secondary_peak_height_range)
        blob = place_blob(params, peak, prng)
        if blob is not None:
            blobs.append(blob)
    return blobs


def _noise_field(noise: OrganicNoise, centroids: np.ndarray) -> np.ndarray:
    return np.array([noise.octave_sample(x, y) for x, y in centroids], dtype=float)


def synthesize_height_field(
    mesh: Mesh, params: HeightFieldParams, prng: Optional[AleaPRNG] = None
) -> HeightFieldStats:
    """
    Compute every cell's height from randomly placed blobs.

    Args:
        mesh: Mesh whose cells receive ``height``
        params: Terrain parameters
        prng: Random source; an unseeded one is created when omitted

    Returns:
        HeightFieldStats with the observed min/max height
    """
    prng = prng or make_prng()
    falloff = params.effective_falloff
    plateau = falloff >= PLATEAU_FALLOFF
    sharpness = params.sharpness * 0.5 if plateau else params.sharpness

    logger.info(
        "Synthesizing height field",
        cells=len(mesh),
        blobs=params.effective_blob_count,
        falloff=falloff,
        continental_mode=params.continental_mode,
        water_margin=params.water_margin,
    )

    blobs = generate_blobs(params, prng)
    centroids = mesh.centroids
    heights = np.zeros(len(mesh), dtype=float)

    warp = None
    texture = None
    if params.continental_mode and len(mesh) > 0:
        warp_noise = OrganicNoise(derive_int_seed(prng), scale=params.noise_scale)
        texture_noise = OrganicNoise(
            derive_int_seed(prng), scale=params.noise_scale * 0.25
        )
        warp = _noise_field(warp_noise, centroids)
        texture = np.array(
            [texture_noise.unit_sample(x, y) for x, y in centroids], dtype=float
        )

    for blob in blobs:
        logger.debug(
            "Blob placed", x=blob.x, y=blob.y, radius=blob.radius, peak=blob.height
        )
        distance = np.hypot(centroids[:, 0] - blob.x, centroids[:, 1] - blob.y)
        inside = np.nonzero(distance <= blob.radius)[0]
        if len(inside) == 0:
            continue

        d = distance[inside] / blob.radius
        if warp is not None:
            d = np.clip(d * (1.0 + params.noise_amplitude * warp[inside]), 0.0, None)

        base = blob.height * falloff_curve(d, falloff)
        factors = np.array(
            [1 + (prng.random() - 0.5) * sharpness * 2 for _ in range(len(inside))]
        )
        heights[inside] = np.maximum(heights[inside], base * factors)

    if texture is not None:
        heights *= 0.5 + 0.5 * texture

    for cell, h in zip(mesh.cells, heights):
        cell.height = float(h)

    stats = HeightFieldStats(
        min_height=float(heights.min()) if len(heights) else 0.0,
        max_height=float(heights.max()) if len(heights) else 0.0,
        blob_count=len(blobs),
        positive_cells=int(np.count_nonzero(heights > 0)),
    )

    if stats.positive_cells == 0:
        logger.warning("No cell received a positive height", blobs=len(blobs))
    else:
        logger.info(
            "Height field synthesized",
            min_height=round(stats.min_height, 3),
            max_height=round(stats.max_height, 3),
            positive_cells=stats.positive_cells,
        )
    return stats
