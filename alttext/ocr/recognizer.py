"""Abstract base, Tesseract and mock implementations of the text recognition backend."""

import logging
from abc import ABC, abstractmethod

from PIL import Image
from pydantic import BaseModel, Field

from alttext.core.image_io import ImageLoader
from alttext.models.entities import BoundingBox, WordBox

_log = logging.getLogger(__name__)

RecognitionSource = str | Image.Image


class Recognition(BaseModel):
    """Raw backend output. confidence is normalized to [0, 1]."""

    text: str = ""
    confidence: float = 0.0
    words: list[WordBox] = Field(default_factory=list)


class BaseTextRecognizer(ABC):
    """Abstract text recognizer: accepts an image locator or an already drawn raster surface."""

    name: str = "base"

    def initialize(self) -> None:
        """Load models or check the engine binary. Called once, lazily."""
        return None

    @abstractmethod
    def recognize(self, source: RecognitionSource) -> Recognition:
        ...

    def terminate(self) -> None:
        return None


class MockTextRecognizer(BaseTextRecognizer):
    """Placeholder recognizer for testing and development."""

    name = "mock"

    def __init__(self, text: str = "", confidence: float = 0.0) -> None:
        self._text = text
        self._confidence = confidence

    def recognize(self, source: RecognitionSource) -> Recognition:
        words = [
            WordBox(
                text=w,
                confidence=self._confidence,
                bbox=BoundingBox(x0=i * 10, y0=0, x1=i * 10 + 9, y1=10),
            )
            for i, w in enumerate(self._text.split())
        ]
        return Recognition(text=self._text, confidence=self._confidence, words=words)


class TesseractRecognizer(BaseTextRecognizer):
    """
    Recognizer backed by the Tesseract binary through pytesseract.

    Locators are loaded with ImageLoader; raster surfaces are passed through as-is.
    """

    name = "tesseract"

    def __init__(
        self,
        language: str = "eng",
        tesseract_cmd: str | None = None,
        loader: ImageLoader | None = None,
    ) -> None:
        self._language = language
        self._tesseract_cmd = tesseract_cmd
        self._loader = loader or ImageLoader()
        self._version: str | None = None

    def initialize(self) -> None:
        import pytesseract

        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd
        self._version = str(pytesseract.get_tesseract_version())
        _log.info("Tesseract %s ready (lang=%s)", self._version, self._language)

    def recognize(self, source: RecognitionSource) -> Recognition:
        import pytesseract

        image = source if isinstance(source, Image.Image) else self._loader.load(source)
        data = pytesseract.image_to_data(
            image, lang=self._language, output_type=pytesseract.Output.DICT
        )
        words: list[WordBox] = []
        lines: dict[tuple[int, int, int], list[str]] = {}
        for i, raw_text in enumerate(data["text"]):
            text = (raw_text or "").strip()
            conf = float(data["conf"][i])
            if not text or conf < 0:
                continue
            left, top = int(data["left"][i]), int(data["top"][i])
            words.append(
                WordBox(
                    text=text,
                    confidence=conf / 100.0,
                    bbox=BoundingBox(
                        x0=left,
                        y0=top,
                        x1=left + int(data["width"][i]),
                        y1=top + int(data["height"][i]),
                    ),
                )
            )
            key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
            lines.setdefault(key, []).append(text)
        full_text = "\n".join(" ".join(line) for line in lines.values())
        confidence = sum(w.confidence for w in words) / len(words) if words else 0.0
        return Recognition(text=full_text, confidence=confidence, words=words)
