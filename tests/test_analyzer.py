"""Tests for single-image analysis and the analysis cache."""

import logging

import pytest

from alttext.ai.chain import CaptionChain
from alttext.ai.local import CORS_NOTE
from alttext.ai.provider_base import MockCaptionProvider
from alttext.core.cache import AnalysisCache
from alttext.core.credentials import ApiKeys
from alttext.core.logging import FlightLogger
from alttext.core.materializer import ImageMaterializer
from alttext.models.entities import ImageRecord, Provenance
from alttext.ocr.engine import OcrEngine
from alttext.workers.analyzer import ImageAnalyzer
from tests.conftest import PAGE_URL, FakeRecognizer, make_element, make_page, provider_factory

pytestmark = [pytest.mark.fast]


def _analyzer(settings, recognizer, page=None, openai=None) -> ImageAnalyzer:
    factory = provider_factory(openai=openai) if openai is not None else None
    chain = CaptionChain(settings, factory)
    if openai is not None:
        chain.set_api_keys(ApiKeys(openai="sk-test"))
    return ImageAnalyzer(OcrEngine(recognizer, page), ImageMaterializer(PAGE_URL), chain, AnalysisCache())


def _record(src="https://example.com/images/receipt.png", alt="", width=300, height=200, complete=True):
    element = make_element(src, width, height, alt=alt, complete=complete)
    return ImageRecord(id="img-1", src=src, alt=alt, width=width, height=height, element=element)


@pytest.mark.asyncio
async def test_same_origin_receipt_caption_quotes_price(settings):
    """OCR text from a same-origin image ends up in the short caption."""
    analyzer = _analyzer(settings, FakeRecognizer("Total: $42.50", 0.85))
    analysis = await analyzer.analyze_image(_record())
    assert analysis.ocr_result.has_text is True
    assert "$42.50" in analysis.caption_result.short_caption
    assert analysis.error is None


@pytest.mark.asyncio
async def test_cross_origin_image_is_cors_limited(settings):
    """A cross-origin image yields a low-confidence caption that explains the limitation."""
    src = "https://images.other.org/skyline.jpg"
    record = _record(src)
    page = make_page(record.element)
    analyzer = _analyzer(settings, FakeRecognizer(fail_direct=True), page, MockCaptionProvider("openai"))
    analysis = await analyzer.analyze_image(record)
    caption = analysis.caption_result
    assert caption.confidence <= 0.4
    assert CORS_NOTE.strip() in caption.long_description
    assert analysis.error is not None


@pytest.mark.asyncio
async def test_cross_origin_without_credentials_still_explains(settings):
    """The explanatory clause is present even when no provider is configured."""
    record = _record("https://images.other.org/skyline.jpg")
    analysis = await _analyzer(settings, FakeRecognizer()).analyze_image(record)
    assert analysis.caption_result.confidence <= 0.4
    assert CORS_NOTE.strip() in analysis.caption_result.long_description


@pytest.mark.asyncio
async def test_cloud_caption_used_when_configured(settings):
    """With a provider configured, the remote caption wins."""
    provider = MockCaptionProvider("openai", short_caption="A receipt on a table.")
    analyzer = _analyzer(settings, FakeRecognizer("Total: $42.50", 0.85), openai=provider)
    record = _record("https://example.com/images/" + "receipt" * 8 + ".png")
    analysis = await analyzer.analyze_image(record)
    assert analysis.caption_result.provenance == Provenance.openai
    assert provider.calls[0].ocr_text == "Total: $42.50"
    assert provider.calls[0].has_text is True


@pytest.mark.asyncio
async def test_second_call_is_cached(settings):
    """An identical record is analyzed once; the cached object is returned as-is."""
    recognizer = FakeRecognizer("Total: $42.50", 0.85)
    analyzer = _analyzer(settings, recognizer)
    first = await analyzer.analyze_image(_record())
    second = await analyzer.analyze_image(_record())
    assert second is first
    assert len(recognizer.sources) == 1
    assert analyzer.get_cache_size() == 1
    analyzer.clear_cache()
    assert analyzer.get_cache_size() == 0


@pytest.mark.asyncio
async def test_basic_description_when_nothing_else(settings):
    """No text and no provider: a keyword and shape based description at 0.3."""
    analyzer = _analyzer(settings, FakeRecognizer())
    analysis = await analyzer.analyze_image(_record("https://example.com/brand-logo.png"))
    caption = analysis.caption_result
    assert caption.short_caption == "Logo or brand image"
    assert caption.long_description == "This appears to be a logo or brand image."
    assert caption.confidence == 0.3
    assert caption.model == "basic-analysis"


@pytest.mark.asyncio
async def test_zero_dimensions_prefers_meaningful_alt(settings):
    """An unloaded image falls back to its existing alt text and is not cached."""
    analyzer = _analyzer(settings, FakeRecognizer())
    record = _record(alt="Golden Gate Bridge at sunset", width=0, height=0)
    analysis = await analyzer.analyze_image(record)
    assert "zero" in analysis.error
    assert analysis.caption_result.short_caption == "Golden Gate Bridge at sunset"
    assert analysis.caption_result.long_description == "This image shows: Golden Gate Bridge at sunset"
    assert analysis.caption_result.confidence == 0.5
    assert analysis.ocr_result is None
    assert analyzer.get_cache_size() == 0


@pytest.mark.asyncio
async def test_incomplete_image_with_generic_alt_gets_basic(settings):
    """Generic alt text is ignored in the fallback."""
    analyzer = _analyzer(settings, FakeRecognizer())
    record = _record("https://example.com/a.png", alt="image", width=400, height=100, complete=False)
    analysis = await analyzer.analyze_image(record)
    assert analysis.error == "Image not loaded or invalid"
    assert analysis.caption_result.short_caption == "Wide banner or header image"


@pytest.mark.asyncio
async def test_ocr_failure_is_tolerated(settings):
    """OCR failing tags the result with an error but still produces a caption."""
    analyzer = _analyzer(settings, FakeRecognizer(fail_always=True))
    analysis = await analyzer.analyze_image(_record(alt="Quarterly sales team", width=200, height=200))
    assert analysis.error.startswith("OCR:")
    assert analysis.caption_result.short_caption == "Quarterly sales team"
    assert analyzer.get_cache_size() == 1


@pytest.mark.asyncio
async def test_analysis_logs_are_tagged_with_image_id(settings, tmp_path):
    """Log records emitted while analyzing carry the record id for per-image forensic dumps."""
    flight = FlightLogger(capacity=50, forensics_dir=tmp_path)
    log = logging.getLogger("alttext.workers.analyzer")
    log.addHandler(flight)
    try:
        await _analyzer(settings, FakeRecognizer()).analyze_image(_record(width=0, height=0))
    finally:
        log.removeHandler(flight)
    messages = [r.getMessage() for r in flight.records("img-1")]
    assert any("Image analysis failed" in m for m in messages)


@pytest.mark.asyncio
async def test_analysis_keeps_its_own_record_copy(settings):
    """Later edits to the tracked record do not leak into a cached analysis."""
    analyzer = _analyzer(settings, FakeRecognizer())
    record = _record()
    analysis = await analyzer.analyze_image(record)
    record.alt = "A receipt"
    record.refresh_needs_description()
    assert analysis.image is not record
    assert analysis.image.alt == ""
    assert (await analyzer.analyze_image(record)).image.alt == ""
