"""Recognition backends."""
from .base import RecognizedText, Recognizer
from .tesseract_ocr import TesseractOCR
from .trocr_hf import TrOcrHF

__all__ = ["RecognizedText", "Recognizer", "TesseractOCR", "TrOcrHF"]
