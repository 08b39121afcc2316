"""Rotate crops so their text runs horizontally before recognition."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import cv2
import numpy as np

from staged_ocr.errors import ConfigurationError, InferenceError
from staged_ocr.orientation.base import ANGLE_CLASSES, OrientationClassifier
from staged_ocr.pipeline.engine_pool import EnginePool


LOGGER = logging.getLogger(__name__)

_CLOCKWISE = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def rotate(image: np.ndarray, angle: int) -> np.ndarray:
    """Rotate ``image`` clockwise by a multiple of 90 degrees into a new array."""

    angle %= 360
    if angle == 0:
        return image.copy()
    if angle not in _CLOCKWISE:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {angle}")
    return cv2.rotate(image, _CLOCKWISE[angle])


def needs_rotation(image: np.ndarray, ratio_threshold: float = 1.5) -> bool:
    """Tall, narrow crops are taken to be vertical text lines."""

    height, width = image.shape[:2]
    return height / width > ratio_threshold


@dataclass(frozen=True)
class HeuristicPolicy:
    """Rotate 90 degrees counter-clockwise when height / width exceeds the threshold."""

    ratio_threshold: float = 1.5


@dataclass(frozen=True)
class ClassifierPolicy:
    """Ask an orientation classifier and undo the rotation it reports.

    Predictions below ``min_confidence`` are ignored and the crop is left as is.
    """

    engine: Union[OrientationClassifier, EnginePool, None]
    min_confidence: float = 0.0


OrientationPolicy = Union[HeuristicPolicy, ClassifierPolicy]


class OrientationNormalizer:
    """Applies the orientation policy chosen at pipeline construction."""

    def __init__(self, policy: OrientationPolicy) -> None:
        if isinstance(policy, ClassifierPolicy):
            if policy.engine is None:
                raise ConfigurationError("Classifier orientation policy requires an orientation engine")
            engine = policy.engine
            self._pool = engine if isinstance(engine, EnginePool) else EnginePool.shared(engine)
        elif isinstance(policy, HeuristicPolicy):
            self._pool = None
        else:
            raise ConfigurationError(f"Unknown orientation policy: {policy!r}")
        self.policy = policy

    def load(self) -> None:
        if self._pool is not None:
            self._pool.load()

    def _classify(self, image: np.ndarray) -> int:
        with self._pool.acquire() as engine:
            angle, confidence = engine.predict_scored(image)
        if angle not in ANGLE_CLASSES:
            raise InferenceError(f"Orientation engine returned unsupported angle class {angle!r}")
        if confidence < self.policy.min_confidence:
            LOGGER.debug("Ignoring orientation %d with confidence %.3f", angle, confidence)
            return 0
        return angle

    def normalize(self, image: np.ndarray) -> tuple[np.ndarray, int]:
        """Return the oriented crop and the clockwise rotation applied to it."""

        if isinstance(self.policy, HeuristicPolicy):
            if needs_rotation(image, self.policy.ratio_threshold):
                return rotate(image, 270), 270
            return image, 0

        correction = (360 - self._classify(image)) % 360
        if correction == 0:
            return image, 0
        return rotate(image, correction), correction


__all__ = [
    "ClassifierPolicy",
    "HeuristicPolicy",
    "OrientationNormalizer",
    "OrientationPolicy",
    "needs_rotation",
    "rotate",
]
