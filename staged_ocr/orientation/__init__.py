"""Orientation classifier backends."""
from .base import ANGLE_CLASSES, OrientationClassifier
from .tesseract_osd import TesseractOrientation

__all__ = ["ANGLE_CLASSES", "OrientationClassifier", "TesseractOrientation"]
