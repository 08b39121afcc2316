"""Orientation classification through Tesseract's OSD mode."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pytesseract
from pytesseract import Output

from staged_ocr.config import OrientationConfig
from staged_ocr.errors import InferenceError
from staged_ocr.orientation.base import OrientationClassifier


@dataclass
class TesseractOrientation(OrientationClassifier):
    """Uses ``pytesseract.image_to_osd``.

    Tesseract reports ``orientation`` as the clockwise rotation of the content
    and ``rotate`` as the clockwise turn that would undo it. The angle class is
    the former. ``orientation_conf`` is on Tesseract's own scale, not ``[0, 1]``.
    """

    config: OrientationConfig

    def load(self) -> None:
        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as exc:
            raise RuntimeError("tesseract binary is not installed or not on PATH") from exc

    def predict_scored(self, image: np.ndarray) -> tuple[int, float]:
        if image is None or image.size == 0:
            raise InferenceError("Cannot classify orientation of an empty crop")
        try:
            osd = pytesseract.image_to_osd(image, output_type=Output.DICT)
        except pytesseract.TesseractError as exc:
            raise InferenceError(f"Tesseract OSD failed: {exc}") from exc
        return int(osd["orientation"]) % 360, float(osd.get("orientation_conf", 0.0))

    def predict(self, image: np.ndarray) -> int:
        return self.predict_scored(image)[0]


__all__ = ["TesseractOrientation"]
