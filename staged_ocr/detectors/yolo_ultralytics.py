"""Ultralytics YOLO detector backend."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from staged_ocr.config import DetectorConfig
from staged_ocr.detectors.base import BoundingBox, DetectedRegion, Detector
from staged_ocr.errors import InferenceError


@dataclass
class YoloUltralyticsDetector(Detector):
    """Wrapper around an ``ultralytics`` model trained to find text regions."""

    config: DetectorConfig

    def __post_init__(self) -> None:
        self._model = None
        self._names: dict[int, str] | None = None

    def load(self) -> None:
        from ultralytics import YOLO

        device = None if self.config.device == "auto" else self.config.device
        self._model = YOLO(self.config.model_path)
        if device is not None:
            self._model.to(device)
        self._names = self._model.names

    def predict(self, image: np.ndarray) -> List[DetectedRegion]:
        if self._model is None:
            raise RuntimeError("Detector has not been loaded. Call load() first.")
        if image is None or image.size == 0:
            raise InferenceError("Cannot run detection on an empty image")

        try:
            results = self._model.predict(
                [image],
                conf=self.config.conf_threshold,
                iou=self.config.iou_threshold,
                device=None if self.config.device == "auto" else self.config.device,
                verbose=False,
            )
        except Exception as exc:
            raise InferenceError(f"YOLO detection failed: {exc}") from exc

        regions: List[DetectedRegion] = []
        if not results or results[0].boxes is None:
            return regions
        res = results[0]
        # xywhn is centre-based and normalised to the input image
        boxes = res.boxes.xywhn.cpu().numpy()
        scores = res.boxes.conf.cpu().numpy()
        classes = res.boxes.cls.cpu().numpy().astype(int)
        for (cx, cy, w, h), score, cls_idx in zip(boxes, scores, classes):
            name = self._names.get(cls_idx, str(cls_idx)) if self._names else str(cls_idx)
            regions.append(
                DetectedRegion(
                    box=BoundingBox(float(cx - w / 2), float(cy - h / 2), float(w), float(h)),
                    label=name,
                    score=float(score),
                )
            )
        return regions


__all__ = ["YoloUltralyticsDetector"]
