"""OCR engine: lazy backend initialization, direct/surface recognition and image classification."""

import asyncio
import logging
import time

from alttext.core.errors import ImageNotLoadedError
from alttext.models.entities import (
    Complexity,
    ImageRecord,
    ImageType,
    OCRAnalysis,
    OCRResult,
)
from alttext.ocr.recognizer import BaseTextRecognizer, Recognition
from alttext.page.base import BasePage

_log = logging.getLogger(__name__)

HAS_TEXT_MIN_CONFIDENCE = 0.3
DIAGRAM_MIN_TEXT_LENGTH = 50
DIAGRAM_MIN_CONFIDENCE = 0.6
COMPLEX_MIN_AREA = 1_000_000

_TYPE_KEYWORDS: list[tuple[ImageType, tuple[str, ...], tuple[str, ...]]] = [
    # (type, locator keywords, alt keywords)
    (ImageType.chart, ("chart", "graph"), ("chart", "graph")),
    (ImageType.diagram, ("diagram", "flow"), ("diagram", "flow")),
    (ImageType.screenshot, ("screenshot", "screen"), ("screenshot",)),
]


def detect_image_type(record: ImageRecord, ocr: OCRResult) -> ImageType:
    """Keyword match on locator and alt text, then long confident text means diagram, else photo."""
    src = record.src.lower()
    alt = record.alt.lower()
    for image_type, src_words, alt_words in _TYPE_KEYWORDS:
        if any(w in src for w in src_words) or any(w in alt for w in alt_words):
            return image_type
    if len(ocr.text) > DIAGRAM_MIN_TEXT_LENGTH and ocr.confidence > DIAGRAM_MIN_CONFIDENCE:
        return ImageType.diagram
    return ImageType.photo


def estimate_complexity(ocr: OCRResult, record: ImageRecord) -> Complexity:
    text_length = len(ocr.text)
    word_count = len(ocr.words)
    area = record.width * record.height
    if text_length < 20 and word_count < 5:
        return Complexity.simple
    if text_length > 100 or word_count > 20 or area > COMPLEX_MIN_AREA:
        return Complexity.complex
    return Complexity.moderate


def has_text(ocr: OCRResult) -> bool:
    return len(ocr.text) > 0 and ocr.confidence > HAS_TEXT_MIN_CONFIDENCE


class OcrEngine:
    """
    Wraps a text recognizer for the pipeline.

    initialize() is idempotent and concurrent callers share one in-flight initialization.
    analyze() first recognizes the image locator directly; if that fails and a page is
    available it draws the element into a raster surface and recognizes that instead.
    analyze() never raises: failures produce an empty, zero-confidence result with error set.
    """

    def __init__(self, recognizer: BaseTextRecognizer, page: BasePage | None = None) -> None:
        self.recognizer = recognizer
        self.page = page
        self._initialized = False
        self._init_task: asyncio.Task | None = None

    async def _initialize(self) -> None:
        _log.info("Initializing OCR backend %s", self.recognizer.name)
        await asyncio.to_thread(self.recognizer.initialize)
        self._initialized = True

    async def initialize(self) -> None:
        if self._initialized:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        try:
            await self._init_task
        except Exception:
            # Let a later call retry instead of caching the failure forever.
            self._init_task = None
            raise

    def is_ready(self) -> bool:
        return self._initialized

    async def terminate(self) -> None:
        if self._initialized:
            await asyncio.to_thread(self.recognizer.terminate)
        self._initialized = False
        self._init_task = None

    async def _recognize(self, record: ImageRecord) -> Recognition:
        try:
            return await asyncio.to_thread(self.recognizer.recognize, record.src)
        except Exception as direct_error:
            if self.page is None or record.element is None:
                raise
            _log.warning("Direct OCR failed for %s, trying raster surface: %s", record.src, direct_error)
        # SecurityError from a tainted surface propagates to analyze() as a normal failure.
        surface = await asyncio.to_thread(self.page.draw_to_surface, record.element)
        return await asyncio.to_thread(self.recognizer.recognize, surface)

    async def analyze(self, record: ImageRecord) -> OCRAnalysis:
        started = time.perf_counter()
        try:
            await self.initialize()
            if record.width == 0 or record.height == 0:
                raise ImageNotLoadedError("Image has zero dimensions - possible CORS issue")
            recognition = await self._recognize(record)
            ocr = OCRResult(
                text=recognition.text.strip(),
                confidence=recognition.confidence,
                words=recognition.words,
                processing_time=time.perf_counter() - started,
            )
            error = None
        except Exception as e:
            _log.warning("OCR analysis failed for %s, returning empty result: %s", record.src, e)
            ocr = OCRResult(processing_time=time.perf_counter() - started)
            error = str(e) or type(e).__name__
        return OCRAnalysis(
            ocr=ocr,
            has_text=has_text(ocr),
            image_type=detect_image_type(record, ocr),
            complexity=estimate_complexity(ocr, record),
            error=error,
        )
