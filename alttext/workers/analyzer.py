"""Single-image analysis: OCR, materialization and captioning behind the analysis cache."""

import logging
import time

from alttext.ai.chain import CaptionChain
from alttext.ai.local import (
    caption_from_alt_text,
    generate_basic_description,
    generate_local_caption,
    is_cors_limited,
)
from alttext.core.alt_text import is_generic_alt_text
from alttext.core.cache import AnalysisCache
from alttext.core.errors import ImageNotLoadedError
from alttext.core.logging import image_context
from alttext.core.materializer import ImageMaterializer
from alttext.models.entities import (
    CaptionRequest,
    CaptionResult,
    Complexity,
    ImageAnalysis,
    ImageRecord,
    ImageType,
    OCRAnalysis,
)
from alttext.ocr.engine import OcrEngine

_log = logging.getLogger(__name__)


def _validate_loaded(record: ImageRecord) -> None:
    element = record.element
    if element is not None and not getattr(element, "complete", True):
        raise ImageNotLoadedError("Image not loaded or invalid")
    if record.width == 0 or record.height == 0:
        raise ImageNotLoadedError("Image dimensions are zero - possible CORS issue")


def _fallback_caption(record: ImageRecord) -> CaptionResult:
    """Meaningful existing alt text wins; otherwise describe from locator keywords and shape."""
    if record.alt.strip() and not is_generic_alt_text(record.alt):
        return caption_from_alt_text(record.alt.strip())
    return generate_basic_description(record)


class ImageAnalyzer:
    """
    Produces an ImageAnalysis for one record. analyze_image() never raises.

    OCR always runs before captioning because the caption request carries OCR text, type and
    complexity. Stage failures are tolerated and recorded in ImageAnalysis.error; a record that
    is not loaded short-circuits into an uncached best-effort result.
    """

    def __init__(
        self,
        ocr_engine: OcrEngine,
        materializer: ImageMaterializer,
        caption_chain: CaptionChain,
        cache: AnalysisCache | None = None,
    ) -> None:
        self.ocr_engine = ocr_engine
        self.materializer = materializer
        self.caption_chain = caption_chain
        self.cache = cache if cache is not None else AnalysisCache()

    async def _caption(self, record: ImageRecord, ocr: OCRAnalysis | None) -> CaptionResult | None:
        locator = await self.materializer.materialize(record)
        request = CaptionRequest(
            image_data_url=locator,
            image_type=ocr.image_type if ocr else ImageType.photo,
            complexity=ocr.complexity if ocr else Complexity.moderate,
            ocr_text=ocr.ocr.text if ocr else "",
            has_text=ocr.has_text if ocr else False,
        )
        if self.caption_chain.has_cloud_capability():
            return await self.caption_chain.generate_caption(request)
        if request.has_text or is_cors_limited(locator):
            return generate_local_caption(request)
        return None

    async def analyze_image(self, record: ImageRecord) -> ImageAnalysis:
        cached = self.cache.get(record)
        if cached is not None:
            return cached
        with image_context(record.id):
            return await self._analyze(record)

    async def _analyze(self, record: ImageRecord) -> ImageAnalysis:
        started = time.perf_counter()
        try:
            _validate_loaded(record)
        except ImageNotLoadedError as e:
            _log.warning("Image analysis failed for %s: %s", record.src, e)
            return ImageAnalysis(
                image=record.model_copy(),
                caption_result=_fallback_caption(record),
                processing_time=time.perf_counter() - started,
                error=str(e),
            )

        errors: list[str] = []
        ocr = await self.ocr_engine.analyze(record)
        if ocr.error:
            errors.append(f"OCR: {ocr.error}")

        caption: CaptionResult | None = None
        try:
            caption = await self._caption(record, ocr)
        except Exception as e:
            _log.warning("Captioning failed for %s, using fallback: %s", record.src, e)
            errors.append(f"Caption: {e}")

        if caption is None:
            caption = _fallback_caption(record) if errors else generate_basic_description(record)

        analysis = ImageAnalysis(
            image=record.model_copy(),
            ocr_result=ocr,
            caption_result=caption,
            processing_time=time.perf_counter() - started,
            error="; ".join(errors) or None,
        )
        self.cache.put(record, analysis)
        return analysis

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_size(self) -> int:
        return len(self.cache)
