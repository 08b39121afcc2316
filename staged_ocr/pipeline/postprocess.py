"""Post-processing helpers for detected regions and recognised text."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from staged_ocr.detectors.base import NOT_SCORED, BoundingBox, DetectedRegion
from staged_ocr.errors import InferenceError


@dataclass
class DetectionEntry:
    """Unified representation of a located and transcribed text region.

    ``box`` is always in the coordinate space of the original image.
    """

    text: str
    score: float
    box: BoundingBox
    label: Optional[str] = None
    index: int = 0
    angle: int = 0

    def to_record(self, image_size: Optional[tuple[int, int]] = None) -> Dict[str, Any]:
        box = list(self.box.to_pixels(*image_size)) if image_size else self.box.as_list()
        return {"text": self.text, "score": self.score, "box": box}


@dataclass
class RegionFailure:
    """A region that was skipped because extraction or inference failed."""

    index: int
    region: DetectedRegion
    error: Exception


@dataclass
class DetectionResult:
    """Entries for one image, in the order the detector emitted the regions."""

    entries: List[DetectionEntry] = field(default_factory=list)
    failures: List[RegionFailure] = field(default_factory=list)
    image_size: Optional[tuple[int, int]] = None
    cancelled: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DetectionEntry]:
        return iter(self.entries)

    @property
    def texts(self) -> List[str]:
        return [entry.text for entry in self.entries]

    def to_records(self, pixels: bool = False) -> List[Dict[str, Any]]:
        """Serialise as an ordered list of ``{"text", "score", "box": [x, y, w, h]}``."""

        if pixels and self.image_size is None:
            raise ValueError("Pixel records need the result's image size")
        size = self.image_size if pixels else None
        return [entry.to_record(size) for entry in self.entries]


def filter_text(text: str, confidences: Sequence[float], enabled: bool, threshold: float) -> str:
    """Drop characters recognised with confidence below ``threshold``.

    Repeated-glyph artefacts usually carry a lower confidence than the real
    character next to them. Characters are dropped at any position. If no
    character survives the original text is returned unchanged.
    """

    if not enabled:
        return text
    if len(confidences) != len(text):
        raise InferenceError(
            f"Recognizer returned {len(confidences)} confidences for {len(text)} characters"
        )
    kept = "".join(char for char, conf in zip(text, confidences) if conf >= threshold)
    return kept if kept else text


def filter_regions(regions: Sequence[DetectedRegion], min_score: float) -> List[DetectedRegion]:
    """Drop scored regions below ``min_score``; unscored regions are always kept."""

    return [r for r in regions if r.score == NOT_SCORED or r.score >= min_score]


def reading_order(regions: Sequence[DetectedRegion], line_tolerance: float = 0.01) -> List[int]:
    """Positions of ``regions`` ordered top-to-bottom, then left-to-right within a line.

    Two regions whose top edges differ by less than ``line_tolerance`` (in
    normalised units) are treated as being on the same line.
    """

    boxes = [r.box for r in regions]
    order = sorted(range(len(boxes)), key=lambda i: (boxes[i].y, boxes[i].x))
    for i in range(len(order) - 1):
        for j in range(i, -1, -1):
            current, following = boxes[order[j]], boxes[order[j + 1]]
            if abs(following.y - current.y) < line_tolerance and following.x < current.x:
                order[j], order[j + 1] = order[j + 1], order[j]
            else:
                break
    return order


def sort_reading_order(regions: Sequence[DetectedRegion], line_tolerance: float = 0.01) -> List[DetectedRegion]:
    """Return ``regions`` in reading order (see ``reading_order``)."""

    return [regions[i] for i in reading_order(regions, line_tolerance)]


__all__ = [
    "DetectionEntry",
    "DetectionResult",
    "RegionFailure",
    "filter_regions",
    "filter_text",
    "reading_order",
    "sort_reading_order",
]
