"""Configuration management."""

import logging
import sys
from typing import Optional

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.height_field import HeightFieldParams


class Settings(BaseSettings):
    """Generation settings pulled from environment variables (``COASTMAP_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="COASTMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Map
    map_width: float = Field(default=1000, gt=0, description="Map width")
    map_height: float = Field(default=500, gt=0, description="Map height")
    n_points: int = Field(default=8000, ge=1, description="Approximate cell count")
    seed: Optional[str] = Field(default=None, description="Random seed")

    # Terrain
    blob_count: int = Field(default=2, ge=0, description="Number of blobs")
    main_peak_height: float = Field(default=1.0, description="Main blob peak")
    secondary_peak_low: float = Field(default=0.3, description="Secondary peak min")
    secondary_peak_high: float = Field(default=0.7, description="Secondary peak max")
    falloff: float = Field(default=2.0, gt=0, description="Blob falloff")
    sharpness: float = Field(
        default=0.1, ge=0, le=1, description="Per-cell height randomness"
    )
    continental_mode: bool = Field(default=True, description="Continental terrain")
    water_margin: float = Field(default=50, ge=0, description="Border water strip")
    noise_scale: float = Field(default=0.01, gt=0, description="Coastline noise frequency")
    noise_amplitude: float = Field(
        default=0.3, ge=0, description="Coastline noise strength"
    )

    # Classification and coastlines
    sea_level: float = Field(default=0.15, description="Target sea level")
    min_island_fraction: float = Field(
        default=0.01, ge=0, le=1, description="Smallest island kept, share of cells"
    )
    vertex_precision: int = Field(
        default=2, ge=0, le=12, description="Decimal places for vertex identity"
    )
    border_tolerance: float = Field(
        default=10, ge=0, description="Centroid distance that counts as map border"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log format: console or json")

    @model_validator(mode="after")
    def check_peak_range(self):
        if self.secondary_peak_low > self.secondary_peak_high:
            raise ValueError("secondary_peak_low must not exceed secondary_peak_high")
        return self

    def height_field_params(self) -> HeightFieldParams:
        """Terrain parameters for the synthesizer."""
        return HeightFieldParams(
            map_width=self.map_width,
            map_height=self.map_height,
            blob_count=self.blob_count,
            main_peak_height=self.main_peak_height,
            secondary_peak_height_range=(
                self.secondary_peak_low,
                self.secondary_peak_high,
            ),
            falloff=self.falloff,
            sharpness=self.sharpness,
            continental_mode=self.continental_mode,
            water_margin=self.water_margin,
            noise_scale=self.noise_scale,
            noise_amplitude=self.noise_amplitude,
        )


def configure_logging(settings: "Settings") -> None:
    """Route structlog through stdlib logging at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Instantiate singleton settings object
settings = Settings()
