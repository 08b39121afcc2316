"""Orientation classifier interface."""
from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

ANGLE_CLASSES = (0, 90, 180, 270)


class OrientationClassifier(ABC):
    """Predicts how far a text crop is rotated clockwise from upright."""

    @abstractmethod
    def load(self) -> None:
        """Allocate resources (models, sessions, etc.)."""

    @abstractmethod
    def predict(self, image: np.ndarray) -> int:
        """Return one of ``ANGLE_CLASSES``."""

    def predict_scored(self, image: np.ndarray) -> tuple[int, float]:
        """Return the angle class with the engine's confidence in it."""

        return self.predict(image), 1.0


__all__ = ["ANGLE_CLASSES", "OrientationClassifier"]
