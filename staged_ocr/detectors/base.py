"""Detector interface."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

NOT_SCORED = -1.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in coordinates normalised to the source image."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_pixels(cls, x: float, y: float, width: float, height: float, image_width: int, image_height: int) -> "BoundingBox":
        return cls(x / image_width, y / image_height, width / image_width, height / image_height)

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float, image_width: int, image_height: int) -> "BoundingBox":
        return cls.from_pixels(x1, y1, x2 - x1, y2 - y1, image_width, image_height)

    @classmethod
    def from_polygon(cls, points: Sequence[Sequence[float]], image_width: int, image_height: int) -> "BoundingBox":
        """Envelope of a quadrilateral or polygon given in pixel coordinates."""

        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        x1, y1 = pts.min(axis=0)
        x2, y2 = pts.max(axis=0)
        return cls.from_xyxy(float(x1), float(y1), float(x2), float(y2), image_width, image_height)

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    def to_pixels(self, image_width: int, image_height: int) -> tuple[float, float, float, float]:
        return (
            self.x * image_width,
            self.y * image_height,
            self.width * image_width,
            self.height * image_height,
        )

    def as_list(self) -> List[float]:
        return [self.x, self.y, self.width, self.height]


@dataclass(frozen=True)
class DetectedRegion:
    """Text region returned by a detector."""

    box: BoundingBox
    label: Optional[str] = None
    score: float = NOT_SCORED

    @property
    def is_scored(self) -> bool:
        return self.score != NOT_SCORED


class Detector(ABC):
    """Abstract base class for text-region detection backends."""

    @abstractmethod
    def load(self) -> None:
        """Load underlying weights and allocate resources."""

    @abstractmethod
    def predict(self, image: np.ndarray) -> List[DetectedRegion]:
        """Return the regions found in ``image`` in emission order.

        Implementations raise ``InferenceError`` on malformed input or engine faults.
        """


__all__ = ["BoundingBox", "DetectedRegion", "Detector", "NOT_SCORED"]
