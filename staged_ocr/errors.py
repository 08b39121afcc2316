"""Error taxonomy shared by the pipeline stages and engine backends."""
from __future__ import annotations


class OcrError(Exception):
    """Base class for errors raised by the OCR pipeline."""


class InvalidRegion(OcrError):
    """A region's geometry cannot be turned into a non-empty crop."""


class InferenceError(OcrError, RuntimeError):
    """An inference engine failed or returned malformed output."""


class ConfigurationError(OcrError, ValueError):
    """The pipeline was configured inconsistently."""


__all__ = ["OcrError", "InvalidRegion", "InferenceError", "ConfigurationError"]
