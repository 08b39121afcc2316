"""Transformer OCR backend using Hugging Face TrOCR."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

import cv2
import numpy as np

from staged_ocr.config import RecognizerConfig
from staged_ocr.errors import InferenceError
from staged_ocr.ocr.base import RecognizedText, Recognizer


@dataclass
class TrOcrHF(Recognizer):
    """Lazy-loading wrapper around a Hugging Face TrOCR checkpoint.

    Per-character confidences come from the probability of the generated token
    each character was decoded from.
    """

    config: RecognizerConfig

    def __post_init__(self) -> None:
        self._processor = None
        self._model = None
        self._device = "cpu"

    def load(self) -> None:
        from transformers import TrOCRProcessor, VisionEncoderDecoderModel
        import torch

        self._processor = TrOCRProcessor.from_pretrained(self.config.model_name)
        self._model = VisionEncoderDecoderModel.from_pretrained(self.config.model_name)
        self._device = "cuda" if torch.cuda.is_available() else "cpu"
        self._model.to(self._device)

    def predict(self, image: np.ndarray) -> RecognizedText:
        if self._processor is None or self._model is None:
            raise RuntimeError("Call load() before running OCR.")
        if image is None or image.size == 0:
            raise InferenceError("Cannot recognise an empty crop")

        import torch

        rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB if image.ndim == 2 else cv2.COLOR_BGR2RGB)
        pixel_values = self._processor(images=rgb, return_tensors="pt").pixel_values.to(self._device)
        try:
            with torch.inference_mode():
                output = self._model.generate(pixel_values, output_scores=True, return_dict_in_generate=True)
                transition = self._model.compute_transition_scores(
                    output.sequences, output.scores, normalize_logits=True
                )
        except RuntimeError as exc:
            raise InferenceError(f"TrOCR generation failed: {exc}") from exc

        tokenizer = self._processor.tokenizer
        # the first position is the decoder start token, which has no score
        token_ids = output.sequences[0, 1:].tolist()
        log_probs = transition[0].tolist()
        chars: List[str] = []
        confidences: List[float] = []
        for token_id, log_prob in zip(token_ids, log_probs):
            piece = tokenizer.decode([token_id], skip_special_tokens=True)
            if not piece:
                continue
            chars.extend(piece)
            confidences.extend([math.exp(log_prob)] * len(piece))

        while chars and chars[0].isspace():
            chars.pop(0)
            confidences.pop(0)
        while chars and chars[-1].isspace():
            chars.pop()
            confidences.pop()
        score = float(np.mean(confidences)) if confidences else None
        return RecognizedText(text="".join(chars), confidences=confidences, score=score)


__all__ = ["TrOcrHF"]
