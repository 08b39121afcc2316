"""I/O helpers for images and serialised results."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Generator, List

import cv2
import numpy as np

from staged_ocr.pipeline.postprocess import DetectionResult

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp"}


def load_image(path: str | Path) -> np.ndarray:
    """Load an image from disk as a numpy array in BGR order."""

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Unable to load image: {path}")
    return image


def iter_images(directory: str | Path) -> Generator[Path, None, None]:
    """Yield image files directly inside ``directory`` in name order."""

    for path in sorted(Path(directory).iterdir()):
        if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES:
            yield path


def result_to_dict(result: DetectionResult, *, pixels: bool = False) -> Dict[str, Any]:
    records: List[Dict[str, Any]] = result.to_records(pixels=pixels)
    payload: Dict[str, Any] = {"detections": records}
    if result.image_size is not None:
        payload["image_size"] = list(result.image_size)
    if result.failures:
        payload["skipped"] = [failure.index for failure in result.failures]
    if result.cancelled:
        payload["cancelled"] = True
    return payload


def save_result(path: str | Path, result: DetectionResult, *, pixels: bool = False) -> None:
    """Write a result as JSON."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(result_to_dict(result, pixels=pixels), f, ensure_ascii=False, indent=2)


__all__ = ["IMAGE_SUFFIXES", "iter_images", "load_image", "result_to_dict", "save_result"]
