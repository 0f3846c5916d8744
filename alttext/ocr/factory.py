"""Factory for text recognizers. Imports are lazy so pytesseract is not loaded until needed."""

from alttext.core.config import Settings
from alttext.ocr.recognizer import BaseTextRecognizer


def get_text_recognizer(recognizer_name: str, settings: Settings | None = None) -> BaseTextRecognizer:
    """Return a text recognizer by name."""
    if recognizer_name == "mock":
        from alttext.ocr.recognizer import MockTextRecognizer

        return MockTextRecognizer()
    if recognizer_name == "tesseract":
        from alttext.ocr.recognizer import TesseractRecognizer

        settings = settings or Settings()
        return TesseractRecognizer(
            language=settings.ocr_language,
            tesseract_cmd=settings.tesseract_cmd,
        )
    raise ValueError(f"Unknown text recognizer: {recognizer_name}")
