"""Configuration loader for the keyword graph visualizer."""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from typing_extensions import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

LOGGER = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]
CONFIG_PATH_ENV_VAR = "KWGRAPH_CONFIG_PATH"


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded."""


class _FrozenModel(BaseModel):
    """Base model enforcing immutability for config sections."""

    model_config = ConfigDict(frozen=True)


class PipelineConfig(_FrozenModel):
    """Pipeline-level configuration."""

    version: str = Field("1.0.0", min_length=1)


class LayoutConfig(_FrozenModel):
    """Force simulation constants used by ``Diagram.arrange``."""

    repulsion_constant: float = Field(10000.0, gt=0)
    attraction_constant: float = Field(0.1, gt=0)
    gravity_constant: float = Field(0.005, ge=0)
    spring_length: float = Field(100.0, gt=0)
    spring_length_multiplier: float = Field(3.0, ge=0)
    damping: float = Field(0.9, gt=0.0, lt=1.0)
    initial_temperature: float = Field(50.0, gt=0)
    cooling_rate: float = Field(0.98, gt=0.0, le=1.0)
    min_temperature: float = Field(2.0, gt=0)
    min_distance: float = Field(1.0, gt=0)
    max_iterations: int = Field(2000, ge=1)
    convergence_threshold: float = Field(0.01, gt=0)
    stable_iterations: int = Field(10, ge=1)
    seed_radius: float = Field(100.0, gt=0)

    @model_validator(mode="after")
    def _check_temperatures(self) -> "LayoutConfig":
        """Ensure the cooling schedule never starts below its floor.

        Returns:
            LayoutConfig: The validated configuration.

        Raises:
            ValueError: If ``min_temperature`` exceeds ``initial_temperature``.
        """
        if self.min_temperature > self.initial_temperature:
            raise ValueError("min_temperature must not exceed initial_temperature")
        return self


class BuilderConfig(_FrozenModel):
    """Bounds applied while expanding the relationship graph."""

    depth_limit: int = Field(3, ge=1)
    fan_out_limit: int = Field(5, ge=1)


class RenderingConfig(_FrozenModel):
    """Visual defaults for diagram drawing."""

    base_font_size: float = Field(8.0, gt=0)
    font_weight_multiplier: float = Field(20.0, ge=0)
    node_size: int = Field(8, ge=1)
    background: str = Field("black", min_length=1)
    node_fill: str = Field("blue", min_length=1)
    node_stroke: str = Field("black", min_length=1)
    connector_color: str = Field("gray", min_length=1)
    label_color: str = Field("white", min_length=1)
    font_family: Literal["sans-serif", "serif", "monospace"] = "sans-serif"
    char_width_ratio: float = Field(0.6, gt=0)
    line_height_ratio: float = Field(1.2, gt=0)


class ProcessingConfig(_FrozenModel):
    """Background keyword acquisition settings."""

    worker_count: int = Field(1, ge=1)


class AppConfig(_FrozenModel):
    """Top-level application configuration composed from config.yaml."""

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    builder: BuilderConfig = Field(default_factory=BuilderConfig)
    rendering: RenderingConfig = Field(default_factory=RenderingConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)

    @staticmethod
    def default_path() -> Path:
        """Return the default location of the configuration file.

        Returns:
            Path: Absolute path to config.yaml at the repository root.
        """
        return REPO_ROOT / "config.yaml"


def _resolve_config_path(path: Optional[Path]) -> Path:
    """Pick the configuration file honouring the environment override."""

    if path is not None:
        return path
    override = os.getenv(CONFIG_PATH_ENV_VAR)
    if override:
        candidate = Path(override).expanduser()
        LOGGER.info("Configuration path overridden from environment: %s", candidate)
        return candidate
    return AppConfig.default_path()


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read YAML content from disk.

    Args:
        path: Location of the YAML file.

    Returns:
        Dict[str, Any]: Parsed YAML content.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        LOGGER.error("Configuration file missing at %s", path)
        raise ConfigError("Configuration file not found") from exc
    except yaml.YAMLError as exc:
        LOGGER.error("Invalid YAML syntax in %s", path)
        raise ConfigError("Invalid YAML syntax") from exc
    if not isinstance(data, dict):
        LOGGER.error("Configuration root must be a mapping: %s", path)
        raise ConfigError("Configuration root must be a mapping")
    return data


@lru_cache(maxsize=1)
def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load application configuration from YAML.

    Args:
        path: Optional override path to the YAML file.

    Returns:
        AppConfig: Parsed configuration object.

    Raises:
        ConfigError: If the configuration cannot be loaded or validated.
    """
    config_path = _resolve_config_path(path)
    raw_content = _read_yaml(config_path)
    try:
        return AppConfig(**raw_content)
    except ValidationError as exc:
        LOGGER.error("Invalid configuration values: %s", exc)
        raise ConfigError("Configuration validation failed") from exc
