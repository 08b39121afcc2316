"""Tesseract OCR backend."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

import cv2
import numpy as np
import pytesseract
from pytesseract import Output

from staged_ocr.config import RecognizerConfig
from staged_ocr.errors import InferenceError
from staged_ocr.ocr.base import RecognizedText, Recognizer


def _words_to_text(words: List[str], scores: List[float]) -> RecognizedText:
    """Join words with single spaces, giving each character its word's confidence.

    A separating space takes the lower confidence of its two neighbours.
    """

    chars: List[str] = []
    confidences: List[float] = []
    for i, (word, score) in enumerate(zip(words, scores)):
        if i > 0:
            chars.append(" ")
            confidences.append(min(scores[i - 1], score))
        chars.extend(word)
        confidences.extend([score] * len(word))
    line_score = float(sum(scores) / len(scores)) if scores else None
    return RecognizedText(text="".join(chars), confidences=confidences, score=line_score)


@dataclass
class TesseractOCR(Recognizer):
    """Wrapper around pytesseract word-level output."""

    config: RecognizerConfig

    def load(self) -> None:
        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as exc:
            raise RuntimeError("tesseract binary is not installed or not on PATH") from exc

    def predict(self, image: np.ndarray) -> RecognizedText:
        if image is None or image.size == 0:
            raise InferenceError("Cannot recognise an empty crop")
        gray = image if image.ndim == 2 else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        _, thresh = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        try:
            data = pytesseract.image_to_data(
                thresh,
                lang=self.config.language,
                config=f"--psm {self.config.page_segmentation_mode}",
                output_type=Output.DICT,
            )
        except pytesseract.TesseractError as exc:
            raise InferenceError(f"Tesseract failed: {exc}") from exc

        words: List[str] = []
        scores: List[float] = []
        for text, conf in zip(data.get("text", []), data.get("conf", [])):
            text = (text or "").strip()
            conf = float(conf)
            # -1 marks layout rows (blocks, lines) rather than words
            if not text or conf < 0:
                continue
            words.append(text)
            scores.append(min(conf, 100.0) / 100.0)
        return _words_to_text(words, scores)


__all__ = ["TesseractOCR"]
