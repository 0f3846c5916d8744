"""OCR: recognizer backends and the engine that classifies images from their text."""

from alttext.ocr.engine import OcrEngine, detect_image_type, estimate_complexity
from alttext.ocr.factory import get_text_recognizer
from alttext.ocr.recognizer import BaseTextRecognizer, MockTextRecognizer, Recognition

__all__ = [
    "BaseTextRecognizer",
    "MockTextRecognizer",
    "OcrEngine",
    "Recognition",
    "detect_image_type",
    "estimate_complexity",
    "get_text_recognizer",
]
