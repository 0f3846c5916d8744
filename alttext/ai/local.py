"""Caption generation that needs no remote provider: OCR-grounded, type-keyed and keyword heuristics."""

import time

from alttext.core.materializer import is_cors_placeholder
from alttext.models.entities import (
    CaptionRequest,
    CaptionResult,
    ImageRecord,
    ImageType,
    Provenance,
)

LOCAL_MODEL = "local-analysis"
BASIC_MODEL = "basic-analysis"
ALT_TEXT_MODEL = "existing-alt-text"

OCR_CONFIDENCE = 0.7
GENERIC_CONFIDENCE = 0.6
CORS_LIMITED_CONFIDENCE = 0.4
BASIC_CONFIDENCE = 0.3
ALT_TEXT_CONFIDENCE = 0.5

OCR_PREVIEW_LENGTH = 100

CORS_NOTE = (
    " Note: This description was generated locally due to browser security restrictions on"
    " cross-origin images. For more detailed AI-powered descriptions, try using images from the"
    " same website domain."
)

LOCAL_CAPTIONS: dict[ImageType, tuple[str, str]] = {
    ImageType.chart: (
        "Chart or graph showing data visualization",
        "This appears to be a chart or graph displaying data in a visual format. The image may"
        " contain numerical data, trends, or comparisons presented graphically. This type of"
        " visualization is commonly used to represent statistical information, business metrics,"
        " or scientific data.",
    ),
    ImageType.diagram: (
        "Diagram showing process or structure",
        "This appears to be a diagram illustrating a process, structure, or relationship. It may"
        " show workflow, organizational structure, or conceptual relationships. Diagrams are"
        " often used to explain complex systems, procedures, or hierarchies in a visual format.",
    ),
    ImageType.screenshot: (
        "Screenshot of interface or application",
        "This appears to be a screenshot showing a user interface, application window, or"
        " digital content. It may display software, websites, or digital media. Screenshots are"
        " commonly used to demonstrate software functionality or document user interfaces.",
    ),
    ImageType.photo: (
        "Photograph showing visual content",
        "This appears to be a photograph containing visual content that may be important for"
        " understanding the context of the webpage. The image likely contains real-world"
        " objects, people, places, or events that are relevant to the page content.",
    ),
    ImageType.unknown: (
        "Image showing visual content",
        "This image contains visual content that may be important for understanding the context"
        " of the webpage. The image appears to be a visual element that supports or enhances the"
        " textual content of the page.",
    ),
}

_TEXT_CONTEXT = {
    ImageType.chart: "part of a chart or graph",
    ImageType.diagram: "part of a diagram",
}

# Ordered (locator keywords, alt keywords, description). First match wins.
_KEYWORD_RULES: list[tuple[tuple[str, ...], tuple[str, ...], str]] = [
    (("chart", "graph"), ("chart", "graph"), "Chart or graph showing data visualization"),
    (("diagram", "flow"), ("diagram", "flow"), "Diagram showing process or structure"),
    (("screenshot", "screen"), ("screenshot",), "Screenshot of interface or application"),
    (("logo",), ("logo",), "Logo or brand image"),
    (("icon",), ("icon",), "Icon or symbol"),
    (("banner",), ("banner",), "Banner or header image"),
    (("product",), ("product",), "Product image"),
    (("gettyimages.com", "istockphoto.com"), (), "Stock photography image from Getty Images or iStock"),
    (("shutterstock.com",), (), "Stock photography image from Shutterstock"),
    (("unsplash.com",), (), "High-quality photography from Unsplash"),
    (("pexels.com",), (), "Stock photography from Pexels"),
    (("profile", "avatar"), (), "Profile picture or avatar image"),
    (("thumbnail", "thumb"), (), "Thumbnail or preview image"),
]


def is_cors_limited(locator: str | None) -> bool:
    """True when the caption chain never had real pixels for this image."""
    return not locator or is_cors_placeholder(locator)


def generate_local_caption(request: CaptionRequest, started: float | None = None) -> CaptionResult:
    """Caption from OCR text when there is any, else from a fixed description for the image type."""
    started = time.perf_counter() if started is None else started
    ocr_text = request.ocr_text.strip()
    if request.has_text and ocr_text:
        preview = ocr_text[:OCR_PREVIEW_LENGTH]
        ellipsis = "..." if len(ocr_text) > OCR_PREVIEW_LENGTH else ""
        short = f'Image containing text: "{preview}{ellipsis}"'
        context = _TEXT_CONTEXT.get(request.image_type, "document text")
        long = f'This image contains text that reads: "{ocr_text}". The text appears to be {context}.'
        confidence = OCR_CONFIDENCE
    else:
        short, long = LOCAL_CAPTIONS.get(request.image_type, LOCAL_CAPTIONS[ImageType.unknown])
        confidence = GENERIC_CONFIDENCE
    if is_cors_limited(request.image_data_url):
        long += CORS_NOTE
        confidence = min(confidence, CORS_LIMITED_CONFIDENCE)
    return CaptionResult(
        short_caption=short,
        long_description=long,
        confidence=confidence,
        model=LOCAL_MODEL,
        processing_time=time.perf_counter() - started,
        provenance=Provenance.local,
    )


def basic_description(record: ImageRecord) -> str:
    src = record.src.lower()
    alt = record.alt.lower()
    for src_words, alt_words, description in _KEYWORD_RULES:
        if any(w in src for w in src_words) or any(w in alt for w in alt_words):
            return description
    if record.width > record.height * 2:
        return "Wide banner or header image"
    if record.height > record.width * 2:
        return "Tall vertical image"
    if record.width == record.height:
        return "Square image"
    return "Image showing visual content"


def generate_basic_description(record: ImageRecord) -> CaptionResult:
    """Lowest-confidence caption, derived only from the locator, alt text and aspect ratio."""
    short = basic_description(record)
    return CaptionResult(
        short_caption=short,
        long_description=f"This appears to be a {short.lower()}.",
        confidence=BASIC_CONFIDENCE,
        model=BASIC_MODEL,
        provenance=Provenance.local,
    )


def caption_from_alt_text(alt: str) -> CaptionResult:
    return CaptionResult(
        short_caption=alt,
        long_description=f"This image shows: {alt}",
        confidence=ALT_TEXT_CONFIDENCE,
        model=ALT_TEXT_MODEL,
        provenance=Provenance.local,
    )
