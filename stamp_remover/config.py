"""
Stamp Remover Configuration

Environment-based configuration for the watermark removal pipeline.
"""

from dataclasses import dataclass
from functools import lru_cache
from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class Thresholds:
    """Immutable detection and repair parameters for a single run."""
    # Loader
    max_dimension: int = 2048

    # Region of interest (fractions of the shorter image side)
    roi_fraction: float = 0.18
    roi_padding_fraction: float = 0.08

    # Colour test (8-bit, exclusive floors)
    white_floor: int = 235
    alpha_floor: int = 200

    # Morphology
    dilation_iterations: int = 2

    # Detection gate (strict inequalities)
    min_masked_pixels: int = 80
    max_area_ratio: float = 0.25


class Settings(BaseSettings):
    """Stamp remover settings loaded from environment variables."""

    # Worker identity
    worker_id: str = "stamp-remover-1"

    # Logging
    log_level: str = "INFO"

    # Output
    output_suffix: str = "_clean"

    # Thresholds
    max_dimension: int = 2048
    roi_fraction: float = 0.18
    roi_padding_fraction: float = 0.08
    white_floor: int = 235
    alpha_floor: int = 200
    dilation_iterations: int = 2
    min_masked_pixels: int = 80
    max_area_ratio: float = 0.25

    # Metrics
    metrics_port: int = 0  # 0 = metrics disabled
    pushgateway_url: str = ""  # Empty = local HTTP server, set to pushgateway URL for remote

    def thresholds(self) -> Thresholds:
        """Freeze the threshold fields into a value passed down the pipeline."""
        return Thresholds(
            max_dimension=self.max_dimension,
            roi_fraction=self.roi_fraction,
            roi_padding_fraction=self.roi_padding_fraction,
            white_floor=self.white_floor,
            alpha_floor=self.alpha_floor,
            dilation_iterations=self.dilation_iterations,
            min_masked_pixels=self.min_masked_pixels,
            max_area_ratio=self.max_area_ratio,
        )

    class Config:
        env_prefix = "STAMP_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
