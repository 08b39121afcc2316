"""Shared fixtures: in-memory engines standing in for real models."""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

import numpy as np
import pytest

from staged_ocr.config import PipelineConfig
from staged_ocr.detectors.base import NOT_SCORED, BoundingBox, DetectedRegion, Detector
from staged_ocr.errors import InferenceError
from staged_ocr.ocr.base import RecognizedText, Recognizer
from staged_ocr.orientation.base import OrientationClassifier


class FakeDetector(Detector):
    def __init__(self, regions: List[DetectedRegion], error: Optional[Exception] = None) -> None:
        self.regions = regions
        self.error = error
        self.loaded = False
        self.calls = 0

    def load(self) -> None:
        self.loaded = True

    def predict(self, image: np.ndarray) -> List[DetectedRegion]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.regions)


class IntensityRecognizer(Recognizer):
    """Reads a crop's brightest pixel value and turns it into text.

    ``failing`` values raise ``InferenceError`` and ``crashing`` values raise
    ``ValueError``; ``delays`` slow selected values down so parallel runs
    finish out of order.
    """

    def __init__(
        self,
        failing: tuple[int, ...] = (),
        delays: Optional[Dict[int, float]] = None,
        score: Optional[float] = None,
        on_call: Optional[Callable[[int], None]] = None,
        crashing: tuple[int, ...] = (),
    ) -> None:
        self.failing = failing
        self.crashing = crashing
        self.delays = delays or {}
        self.score = score
        self.on_call = on_call
        self.shapes: List[tuple[int, ...]] = []
        self.loaded = False
        self._lock = threading.Lock()

    def load(self) -> None:
        self.loaded = True

    def predict(self, image: np.ndarray) -> RecognizedText:
        value = int(image.max())
        with self._lock:
            self.shapes.append(image.shape)
        if self.on_call is not None:
            self.on_call(value)
        time.sleep(self.delays.get(value, 0.0))
        if value in self.failing:
            raise InferenceError(f"engine fault on {value}")
        if value in self.crashing:
            raise ValueError(f"unexpected bug on {value}")
        text = f"v{value}"
        return RecognizedText(text=text, confidences=[1.0] * len(text), score=self.score)


class ScriptedRecognizer(Recognizer):
    def __init__(self, result: RecognizedText) -> None:
        self.result = result
        self.shapes: List[tuple[int, ...]] = []

    def load(self) -> None:
        pass

    def predict(self, image: np.ndarray) -> RecognizedText:
        self.shapes.append(image.shape)
        return self.result


class FixedOrientation(OrientationClassifier):
    def __init__(self, angle: int, confidence: float = 1.0) -> None:
        self.angle = angle
        self.confidence = confidence
        self.loaded = False

    def load(self) -> None:
        self.loaded = True

    def predict(self, image: np.ndarray) -> int:
        return self.angle

    def predict_scored(self, image: np.ndarray) -> tuple[int, float]:
        return self.angle, self.confidence


class CollectingReporter:
    def __init__(self) -> None:
        self.failures = []

    def report(self, failure) -> None:
        self.failures.append(failure)


def region(x: float, y: float, w: float, h: float, score: float = NOT_SCORED, label: str = "text") -> DetectedRegion:
    return DetectedRegion(box=BoundingBox(x, y, w, h), label=label, score=score)


def paint_regions(image_shape: tuple[int, int], regions: List[DetectedRegion]) -> np.ndarray:
    """Fill region ``i`` with intensity ``10 * (i + 1)`` on a black canvas."""

    height, width = image_shape
    image = np.zeros((height, width), dtype=np.uint8)
    for i, reg in enumerate(regions):
        x, y, w, h = (int(v) for v in reg.box.to_pixels(width, height))
        image[y:y + h, x:x + w] = 10 * (i + 1)
    return image


@pytest.fixture
def plain_config() -> PipelineConfig:
    """Sequential config with crop expansion off so each crop sees one region."""

    config = PipelineConfig()
    config.recognizer.expand_regions = False
    return config


@pytest.fixture
def row_regions() -> List[DetectedRegion]:
    return [
        region(0.05, 0.1, 0.2, 0.1),
        region(0.3, 0.1, 0.2, 0.1),
        region(0.55, 0.1, 0.2, 0.1),
        region(0.05, 0.5, 0.2, 0.1),
    ]
