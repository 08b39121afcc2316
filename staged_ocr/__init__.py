"""Staged OCR: detection, orientation and recognition composed into one pipeline."""
from staged_ocr.config import PipelineConfig, load_config
from staged_ocr.detectors.base import NOT_SCORED, BoundingBox, DetectedRegion, Detector
from staged_ocr.errors import ConfigurationError, InferenceError, InvalidRegion, OcrError
from staged_ocr.ocr.base import RecognizedText, Recognizer
from staged_ocr.orientation.base import OrientationClassifier
from staged_ocr.pipeline.engine_pool import EnginePool
from staged_ocr.pipeline.orientation import ClassifierPolicy, HeuristicPolicy
from staged_ocr.pipeline.pipeline import LoggingErrorReporter, OcrPipeline
from staged_ocr.pipeline.postprocess import DetectionEntry, DetectionResult, RegionFailure, filter_text

__all__ = [
    "BoundingBox",
    "ClassifierPolicy",
    "ConfigurationError",
    "DetectedRegion",
    "DetectionEntry",
    "DetectionResult",
    "Detector",
    "EnginePool",
    "HeuristicPolicy",
    "InferenceError",
    "InvalidRegion",
    "LoggingErrorReporter",
    "NOT_SCORED",
    "OcrError",
    "OcrPipeline",
    "OrientationClassifier",
    "PipelineConfig",
    "RecognizedText",
    "Recognizer",
    "RegionFailure",
    "filter_text",
    "load_config",
]
