"""Model-free text-line detector built on OpenCV morphology."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import cv2
import numpy as np

from staged_ocr.config import DetectorConfig
from staged_ocr.detectors.base import NOT_SCORED, BoundingBox, DetectedRegion, Detector
from staged_ocr.errors import InferenceError


LOGGER = logging.getLogger(__name__)


@dataclass
class ContourTextDetector(Detector):
    """Finds horizontal runs of text by closing a gradient mask with a wide kernel.

    Regions are emitted top-to-bottom, left-to-right and are not scored.
    """

    config: DetectorConfig

    def load(self) -> None:  # pragma: no cover - nothing to do
        pass

    def _text_mask(self, image: np.ndarray) -> np.ndarray:
        gray = image if image.ndim == 2 else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        gradient = cv2.morphologyEx(gray, cv2.MORPH_GRADIENT, np.ones((3, 3), np.uint8))
        _, binary = cv2.threshold(gradient, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        kernel = cv2.getStructuringElement(
            cv2.MORPH_RECT, (self.config.kernel_width, self.config.kernel_height)
        )
        return cv2.morphologyEx(binary, cv2.MORPH_CLOSE, kernel)

    def predict(self, image: np.ndarray) -> List[DetectedRegion]:
        if image is None or image.size == 0 or image.ndim not in (2, 3):
            raise InferenceError("Contour detector expects a non-empty 2D or 3D image array")
        try:
            mask = self._text_mask(image)
            contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        except cv2.error as exc:
            raise InferenceError(f"Contour detection failed: {exc}") from exc
        LOGGER.debug("found %d contours before filtering", len(contours))

        height, width = image.shape[:2]
        min_area = height * width * self.config.min_area_fraction
        rects = []
        for contour in contours:
            x, y, w, h = cv2.boundingRect(contour)
            if w * h < min_area or w < 2 or h < 2:
                continue
            rects.append((x, y, w, h))
        rects.sort(key=lambda r: (r[1], r[0]))
        LOGGER.debug("retained %d text regions", len(rects))

        return [
            DetectedRegion(
                box=BoundingBox.from_pixels(x, y, w, h, width, height),
                label="text",
                score=NOT_SCORED,
            )
            for x, y, w, h in rects
        ]


__all__ = ["ContourTextDetector"]
