"""Configuration utilities for the staged OCR pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from staged_ocr.errors import ConfigurationError

ORIENTATION_POLICIES = ("heuristic", "classifier")
ENGINE_POLICIES = ("shared", "per_worker")


@dataclass
class DetectorConfig:
    """Configuration options for the text-region detection backend."""

    backend: str = "contour"
    model_path: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    device: str = "auto"
    min_score: float = 0.0
    sort_regions: bool = False
    kernel_width: int = 17
    kernel_height: int = 3
    min_area_fraction: float = 0.0005


@dataclass
class RecognizerConfig:
    """Configuration options for text-line recognition backends."""

    backend: str = "tesseract"
    language: str = "eng"
    model_name: str = "microsoft/trocr-base-printed"
    page_segmentation_mode: int = 7
    expand_regions: bool = True
    filter_enabled: bool = True
    filter_threshold: float = 0.5


@dataclass
class OrientationConfig:
    """How crops are rotated before recognition."""

    policy: str = "heuristic"
    backend: Optional[str] = None
    ratio_threshold: float = 1.5
    min_confidence: float = 0.0


@dataclass
class PipelineConfig:
    """High level pipeline configuration."""

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    recognizer: RecognizerConfig = field(default_factory=RecognizerConfig)
    orientation: OrientationConfig = field(default_factory=OrientationConfig)
    num_workers: int = 0
    engine_policy: str = "shared"

    def validate(self) -> "PipelineConfig":
        """Raise ``ConfigurationError`` for values no pipeline can run with."""

        if isinstance(self.num_workers, bool) or not isinstance(self.num_workers, int):
            raise ConfigurationError(f"num_workers must be an integer, got {self.num_workers!r}")
        if self.num_workers < 0:
            raise ConfigurationError(f"num_workers must be >= 0, got {self.num_workers}")
        if not 0.0 <= self.detector.min_score <= 1.0:
            raise ConfigurationError(f"min_score must be within [0, 1], got {self.detector.min_score}")
        if not 0.0 <= self.detector.min_area_fraction < 1.0:
            raise ConfigurationError(
                f"min_area_fraction must be within [0, 1), got {self.detector.min_area_fraction}"
            )
        if self.engine_policy not in ENGINE_POLICIES:
            raise ConfigurationError(f"Unsupported engine policy: {self.engine_policy}")
        if not 0.0 <= self.recognizer.filter_threshold <= 1.0:
            raise ConfigurationError(
                f"filter_threshold must be within [0, 1], got {self.recognizer.filter_threshold}"
            )
        if self.orientation.policy not in ORIENTATION_POLICIES:
            raise ConfigurationError(f"Unsupported orientation policy: {self.orientation.policy}")
        if self.orientation.ratio_threshold <= 0:
            raise ConfigurationError("ratio_threshold must be positive")
        if self.orientation.min_confidence < 0:
            raise ConfigurationError(
                f"orientation min_confidence must be >= 0, got {self.orientation.min_confidence}"
            )
        return self


def _deep_update(target: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key] = _deep_update(dict(target[key]), value)
        else:
            target[key] = value
    return target


def _section(cls: type, data: Dict[str, Any], name: str) -> Any:
    try:
        return cls(**(data.get(name) or {}))
    except TypeError as exc:
        raise ConfigurationError(f"Invalid '{name}' section: {exc}") from exc


def load_config(path: str | Path | None = None, overrides: Optional[Dict[str, Any]] = None) -> PipelineConfig:
    """Load configuration from a YAML file and optional overrides."""

    data: Dict[str, Any] = {}
    if path:
        with open(Path(path), "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    if overrides:
        data = _deep_update(data, overrides)

    pipeline = PipelineConfig(
        detector=_section(DetectorConfig, data, "detector"),
        recognizer=_section(RecognizerConfig, data, "recognizer"),
        orientation=_section(OrientationConfig, data, "orientation"),
        num_workers=data.get("num_workers", 0),
        engine_policy=data.get("engine_policy", "shared"),
    )
    return pipeline.validate()


__all__ = [
    "DetectorConfig",
    "OrientationConfig",
    "PipelineConfig",
    "RecognizerConfig",
    "load_config",
]
