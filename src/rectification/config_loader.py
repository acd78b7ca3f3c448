"""Configuration loader with Pydantic validation for the Rectification module.

Loads pipeline thresholds and output settings from the bundled config.yaml
and resolves the process-wide debug toggle.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

# Environment variable that switches debug snapshots on for every call
DEBUG_ENV_VAR = "IMAGE_SCAN_DEBUG"


class EdgeConfig(BaseModel):
    """Edge detection configuration.

    Attributes:
        blur_kernel_size: Gaussian kernel size (odd, square)
        canny_low: Canny hysteresis low threshold (0-255)
        canny_high: Canny hysteresis high threshold (0-255)
    """

    blur_kernel_size: int = Field(default=5, ge=3)
    canny_low: float = Field(default=50.0, ge=0.0, le=255.0)
    canny_high: float = Field(default=150.0, ge=0.0, le=255.0)

    @field_validator("blur_kernel_size")
    @classmethod
    def _kernel_must_be_odd(cls, v: int) -> int:
        if v % 2 == 0:
            raise ValueError(f"blur_kernel_size must be odd, got {v}")
        return v

    @model_validator(mode="after")
    def _check_threshold_order(self) -> "EdgeConfig":
        if self.canny_low >= self.canny_high:
            raise ValueError(
                f"canny_low ({self.canny_low}) must be less than "
                f"canny_high ({self.canny_high})"
            )
        return self


class ContourConfig(BaseModel):
    """Contour selection configuration.

    Attributes:
        min_area_ratio: Minimum dominant contour area as a fraction of the image
        approx_epsilon_ratio: approxPolyDP epsilon as a fraction of the perimeter
    """

    min_area_ratio: float = Field(default=0.05, gt=0.0, lt=1.0)
    approx_epsilon_ratio: float = Field(default=0.05, gt=0.0, lt=1.0)


class FallbackConfig(BaseModel):
    """Margin-based default rectangle configuration.

    Attributes:
        margin_ratio: Top/bottom margin as a fraction of image height
    """

    margin_ratio: float = Field(default=0.05, ge=0.0, lt=0.5)


class OutputConfig(BaseModel):
    """Rectified image encoding.

    Attributes:
        jpeg_quality: JPEG quality for the scanned image (1-100)
    """

    jpeg_quality: int = Field(default=80, ge=1, le=100)


class DebugConfig(BaseModel):
    """Debug snapshot configuration.

    Attributes:
        enabled: Default debug toggle when neither caller nor environment sets it
        max_width: Snapshots wider than this are downscaled
        jpeg_quality: JPEG quality for snapshots (1-100)
    """

    enabled: bool = False
    max_width: int = Field(default=800, ge=1)
    jpeg_quality: int = Field(default=60, ge=1, le=100)


class EngineConfig(BaseModel):
    """OpenCV runtime configuration.

    Attributes:
        num_threads: Worker threads for OpenCV (None keeps the library default)
        use_optimized: Enable OpenCV optimized code paths
    """

    num_threads: Optional[int] = Field(default=None, ge=0)
    use_optimized: bool = True


class RectificationConfig(BaseModel):
    """Complete rectification module configuration."""

    edges: EdgeConfig = Field(default_factory=EdgeConfig)
    contours: ContourConfig = Field(default_factory=ContourConfig)
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> RectificationConfig:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated RectificationConfig object

    Raises:
        FileNotFoundError: If config file does not exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If configuration validation fails

    Example:
        >>> config = load_config()
        >>> print(config.edges.canny_low)
        50.0
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading rectification config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    config = RectificationConfig(**config_dict)
    logger.info("Successfully loaded rectification configuration")
    return config


def get_default_config() -> RectificationConfig:
    """Get default configuration from the bundled config.yaml file."""
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    # Fallback to hardcoded defaults if config file is missing
    return RectificationConfig()


def resolve_debug_flag(
    explicit: Optional[bool], config: Optional[RectificationConfig] = None
) -> bool:
    """
    Decide whether debug snapshots are captured for a call.

    Precedence: explicit caller flag, then the IMAGE_SCAN_DEBUG environment
    variable, then `debug.enabled` from the config.
    """
    if explicit is not None:
        return explicit

    env_value = os.environ.get(DEBUG_ENV_VAR)
    if env_value is not None:
        return env_value.strip().lower() == "true"

    return config.debug.enabled if config is not None else False
