"""Public API for the staged OCR pipeline."""
from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Callable, Iterable, TypeVar

import numpy as np

from staged_ocr.config import DetectorConfig, PipelineConfig, load_config
from staged_ocr.detectors.base import Detector
from staged_ocr.detectors.contour import ContourTextDetector
from staged_ocr.detectors.yolo_ultralytics import YoloUltralyticsDetector
from staged_ocr.errors import ConfigurationError
from staged_ocr.ocr.base import Recognizer
from staged_ocr.ocr.tesseract_ocr import TesseractOCR
from staged_ocr.ocr.trocr_hf import TrOcrHF
from staged_ocr.orientation.base import OrientationClassifier
from staged_ocr.orientation.tesseract_osd import TesseractOrientation
from staged_ocr.pipeline.engine_pool import EnginePool
from staged_ocr.pipeline.orientation import ClassifierPolicy, HeuristicPolicy, OrientationPolicy
from staged_ocr.pipeline.pipeline import OcrPipeline
from staged_ocr.pipeline.postprocess import DetectionResult
from staged_ocr.utils.io import iter_images, load_image


LOGGER = logging.getLogger(__name__)

EngineT = TypeVar("EngineT")


def _resolve_detector_device(config: DetectorConfig) -> None:
    """Ensure the detector device is compatible with the runtime environment."""

    if config.backend.lower() != "yolo_ultralytics":
        return
    requested = (config.device or "").lower()
    try:
        import torch

        cuda_available = torch.cuda.is_available()
    except ImportError:  # pragma: no cover - torch availability depends on install
        cuda_available = False

    if requested in {"", "auto"}:
        config.device = "cuda:0" if cuda_available else "cpu"
    elif requested.startswith("cuda") and not cuda_available:
        warnings.warn(
            "CUDA device requested but not available. Falling back to CPU.",
            RuntimeWarning,
        )
        config.device = "cpu"

    accelerator = "GPU" if config.device.startswith("cuda") else "CPU"
    LOGGER.info("Detector device resolved to %s (%s)", config.device, accelerator)


def _prepare_config(config: PipelineConfig) -> PipelineConfig:
    config.validate()
    _resolve_detector_device(config.detector)
    return config


def _pooled(factory: Callable[[], EngineT], config: PipelineConfig) -> EngineT | EnginePool:
    if config.engine_policy == "per_worker" and config.num_workers > 1:
        LOGGER.info("Creating %d engine instances for per-worker access", config.num_workers)
        return EnginePool.per_worker(factory, config.num_workers)
    return EnginePool.shared(factory())


def _build_detector(config: PipelineConfig) -> Detector:
    backend = config.detector.backend.lower()
    LOGGER.info("Initializing detector backend '%s'", backend)
    if backend == "contour":
        return ContourTextDetector(config.detector)
    if backend == "yolo_ultralytics":
        return YoloUltralyticsDetector(config.detector)
    raise ConfigurationError(f"Unsupported detector backend: {backend}")


def _recognizer_factory(config: PipelineConfig) -> Callable[[], Recognizer]:
    backend = config.recognizer.backend.lower()
    LOGGER.info("Initializing recognizer backend '%s'", backend)
    if backend == "tesseract":
        return lambda: TesseractOCR(config.recognizer)
    if backend == "trocr":
        return lambda: TrOcrHF(config.recognizer)
    raise ConfigurationError(f"Unsupported recognizer backend: {backend}")


def _classifier_factory(config: PipelineConfig) -> Callable[[], OrientationClassifier]:
    backend = (config.orientation.backend or "").lower()
    if not backend:
        raise ConfigurationError("Orientation policy 'classifier' requires an orientation backend")
    LOGGER.info("Initializing orientation backend '%s'", backend)
    if backend == "tesseract_osd":
        return lambda: TesseractOrientation(config.orientation)
    raise ConfigurationError(f"Unsupported orientation backend: {backend}")


def _build_orientation(config: PipelineConfig) -> OrientationPolicy:
    if config.orientation.policy == "heuristic":
        return HeuristicPolicy(ratio_threshold=config.orientation.ratio_threshold)
    engine = _pooled(_classifier_factory(config), config)
    return ClassifierPolicy(engine=engine, min_confidence=config.orientation.min_confidence)


def build_pipeline(config: PipelineConfig) -> OcrPipeline:
    """Construct a pipeline from config without loading any engine."""

    cfg = _prepare_config(config)
    return OcrPipeline(
        detector=_build_detector(cfg),
        recognizer=_pooled(_recognizer_factory(cfg), cfg),
        config=cfg,
        orientation=_build_orientation(cfg),
    )


def create_pipeline(config_path: str | Path | None = None, overrides: dict | None = None) -> OcrPipeline:
    """Instantiate and load a pipeline from config."""

    pipeline = build_pipeline(load_config(config_path, overrides))
    pipeline.load()
    cfg = pipeline.config
    LOGGER.info(
        "Pipeline ready: detector=%s | recognizer=%s | orientation=%s | workers=%d (%s engines)",
        cfg.detector.backend,
        cfg.recognizer.backend,
        cfg.orientation.policy,
        cfg.num_workers,
        cfg.engine_policy,
    )
    return pipeline


def run_on_image(image: np.ndarray, config: PipelineConfig | None = None) -> DetectionResult:
    """Run the pipeline on a single image array."""

    pipeline = build_pipeline(config or load_config())
    pipeline.load()
    return pipeline.run(image)


def run_on_directory(directory: str | Path, config_path: str | Path | None = None) -> Iterable[tuple[Path, DetectionResult]]:
    """Generator that yields ``(path, DetectionResult)`` for every image in ``directory``."""

    pipeline = create_pipeline(config_path)
    for path in iter_images(directory):
        yield path, pipeline.run(load_image(path))


__all__ = [
    "build_pipeline",
    "create_pipeline",
    "run_on_directory",
    "run_on_image",
    "DetectionResult",
    "OcrPipeline",
]
