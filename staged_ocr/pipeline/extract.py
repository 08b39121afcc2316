"""Turn detector boxes into recognition crops."""
from __future__ import annotations

import math

import numpy as np

from staged_ocr.detectors.base import BoundingBox
from staged_ocr.errors import InvalidRegion


def expand_box(box: BoundingBox) -> BoundingBox:
    """Pad a normalised box by its shorter side on every edge and clamp it to the image.

    Detectors tend to bound glyphs tightly; the shorter side grows to three
    times its size and the longer side gains the same padding. The result is
    recentred, its near edges are clamped at 0 and any excess past 1 is cut.
    """

    cx, cy = box.center
    width, height = box.width, box.height
    if width > height:
        width += height * 2.0
        height *= 3.0
    else:
        height += width * 2.0
        width *= 3.0

    x = max(0.0, cx - width / 2)
    y = max(0.0, cy - height / 2)
    if x + width > 1:
        width = 1 - x
    if y + height > 1:
        height = 1 - y
    return BoundingBox(x, y, width, height)


def to_pixel_rect(box: BoundingBox, image_width: int, image_height: int) -> tuple[int, int, int, int]:
    """Scale a normalised box to pixels, truncating to integer boundaries."""

    values = (box.x, box.y, box.width, box.height)
    if not all(math.isfinite(v) for v in values):
        raise InvalidRegion(f"Box has non-finite coordinates: {box}")
    return (
        int(box.x * image_width),
        int(box.y * image_height),
        int(box.width * image_width),
        int(box.height * image_height),
    )


def extract(image: np.ndarray, box: BoundingBox, *, expand: bool = True) -> np.ndarray:
    """Return a fresh copy of the image area covered by ``box``.

    Raises ``InvalidRegion`` when the box collapses to an empty rectangle.
    """

    height, width = image.shape[:2]
    region = expand_box(box) if expand else box
    x, y, w, h = to_pixel_rect(region, width, height)
    # Clip both edges so a box hanging off the left or top keeps its far edge.
    x2 = min(width, x + w)
    y2 = min(height, y + h)
    x = max(0, x)
    y = max(0, y)
    w = x2 - x
    h = y2 - y
    if w <= 0 or h <= 0:
        raise InvalidRegion(f"Region {box} maps to an empty {w}x{h} crop at ({x}, {y})")
    return image[y:y + h, x:x + w].copy()


__all__ = ["expand_box", "extract", "to_pixel_rect"]
