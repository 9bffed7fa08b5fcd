"""
Atelier Crop Configuration
==========================

This module handles configuration loading for the crop engine.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ATELIER_CROP_DEFAULT_ROTATION   -> crop.default_rotation
    ATELIER_CROP_QUALITY            -> crop.quality
    ATELIER_CROP_FORMAT             -> crop.output_format
    ATELIER_CROP_INTERPOLATION      -> crop.interpolation
    ATELIER_CROP_MAX_SOURCE_BYTES   -> crop.max_source_bytes
    ATELIER_CROP_AVATAR_SIZE        -> crop.avatar_size
    ATELIER_CROP_LOG_LEVEL          -> logging.level
    ATELIER_CROP_LOG_FORMAT         -> logging.format

Example:
    from atelier_crop.config import settings

    print(settings.crop.quality)
    print(settings.crop.output_format)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class CropConfig(BaseModel):
    """
    Crop and export parameters.

    These are the defaults the browser cropper relied on implicitly:
    no rotation, JPEG at quality 0.9, and a 256px square for avatars.
    """

    default_rotation: float = Field(
        default=0.0,
        description="Rotation in degrees applied when the caller passes none",
    )
    quality: float = Field(
        default=0.9,
        gt=0,
        le=1.0,
        description="Lossy encoder quality in (0, 1]",
    )
    output_format: Literal["jpeg", "png", "webp"] = Field(
        default="jpeg",
        description="Encoded output format",
    )
    background: Tuple[int, int, int] = Field(
        default=(0, 0, 0),
        description="RGB fill for uncovered pixels when the format has no alpha",
    )
    interpolation: Literal["nearest", "linear", "cubic"] = Field(
        default="linear",
        description="Resampling filter used when drawing the rotated source",
    )
    max_source_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Largest encoded source accepted for decoding",
    )
    avatar_size: int = Field(
        default=256,
        ge=1,
        description="Edge length of fixed-size avatar crops in pixels",
    )
    avatar_fraction: float = Field(
        default=0.8,
        gt=0,
        le=1.0,
        description="Share of the shorter side covered by the default avatar selection",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for Atelier Crop.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    crop: CropConfig = Field(default_factory=CropConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    crop = config_data.setdefault("crop", {})
    if env_rot := os.environ.get("ATELIER_CROP_DEFAULT_ROTATION"):
        crop["default_rotation"] = float(env_rot)
    if env_quality := os.environ.get("ATELIER_CROP_QUALITY"):
        crop["quality"] = float(env_quality)
    if env_format := os.environ.get("ATELIER_CROP_FORMAT"):
        crop["output_format"] = env_format.lower()
    if env_interp := os.environ.get("ATELIER_CROP_INTERPOLATION"):
        crop["interpolation"] = env_interp.lower()
    if env_max := os.environ.get("ATELIER_CROP_MAX_SOURCE_BYTES"):
        crop["max_source_bytes"] = int(env_max)
    if env_avatar := os.environ.get("ATELIER_CROP_AVATAR_SIZE"):
        crop["avatar_size"] = int(env_avatar)

    if env_log := os.environ.get("ATELIER_CROP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_log_format := os.environ.get("ATELIER_CROP_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_log_format


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
