"""Recognizer interface."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


@dataclass
class RecognizedText:
    """Transcription of one text line.

    ``confidences`` holds one value per character of ``text``. ``score`` is the
    engine's own line-level confidence when it reports one.
    """

    text: str
    confidences: List[float] = field(default_factory=list)
    score: Optional[float] = None

    @property
    def is_aligned(self) -> bool:
        return len(self.text) == len(self.confidences)


class Recognizer(ABC):
    """Abstract text-line recognition backend."""

    @abstractmethod
    def load(self) -> None:
        """Allocate resources (models, sessions, etc.)."""

    @abstractmethod
    def predict(self, image: np.ndarray) -> RecognizedText:
        """Transcribe a single text-line image.

        Implementations raise ``InferenceError`` on malformed input or engine faults.
        """


__all__ = ["RecognizedText", "Recognizer"]
