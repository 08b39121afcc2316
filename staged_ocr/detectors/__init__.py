"""Detector backends."""
from .base import NOT_SCORED, BoundingBox, DetectedRegion, Detector
from .contour import ContourTextDetector
from .yolo_ultralytics import YoloUltralyticsDetector

__all__ = [
    "BoundingBox",
    "ContourTextDetector",
    "DetectedRegion",
    "Detector",
    "NOT_SCORED",
    "YoloUltralyticsDetector",
]
