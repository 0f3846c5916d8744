"""Pydantic data contracts for image records, OCR output, captions and analyses."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from alttext.core.alt_text import needs_description as alt_needs_description


class ImageType(str, Enum):
    photo = "photo"
    diagram = "diagram"
    chart = "chart"
    screenshot = "screenshot"
    unknown = "unknown"


class Complexity(str, Enum):
    simple = "simple"
    moderate = "moderate"
    complex = "complex"


class Provenance(str, Enum):
    """Which generation path produced a caption."""

    openai = "openai"
    huggingface = "huggingface"
    local = "local"


class ServiceState(str, Enum):
    idle = "idle"
    processing = "processing"
    offline = "offline"


class Position(BaseModel):
    """Document-relative box (viewport rect plus scroll offsets)."""

    top: float = 0.0
    left: float = 0.0
    right: float = 0.0
    bottom: float = 0.0


class ImageRecord(BaseModel):
    """
    One description candidate found on a page.

    alt is mutated when a user accepts a generated caption; call refresh_needs_description()
    afterwards. element is the live page element (ImageElement) and is never serialized.
    """

    id: str
    src: str
    alt: str = ""
    width: int
    height: int
    position: Position = Field(default_factory=Position)
    is_visible: bool = True
    has_alt_text: bool = False
    needs_description: bool = True
    element: Any = Field(default=None, exclude=True, repr=False)

    @property
    def cache_key(self) -> tuple[str, int, int]:
        return (self.src, self.width, self.height)

    def refresh_needs_description(self) -> None:
        self.has_alt_text = bool(self.alt.strip())
        self.needs_description = alt_needs_description(self.alt)


class BoundingBox(BaseModel):
    x0: int
    y0: int
    x1: int
    y1: int


class WordBox(BaseModel):
    text: str
    confidence: float
    bbox: BoundingBox


class OCRResult(BaseModel):
    """Text recognized in one image. confidence is in [0, 1]."""

    model_config = {"frozen": True}

    text: str = ""
    confidence: float = 0.0
    words: list[WordBox] = Field(default_factory=list)
    processing_time: float = 0.0


class OCRAnalysis(BaseModel):
    """OCR output plus the classification derived from it."""

    model_config = {"frozen": True}

    ocr: OCRResult
    has_text: bool
    image_type: ImageType
    complexity: Complexity
    error: str | None = None


class CaptionRequest(BaseModel):
    image_data_url: str
    image_type: ImageType = ImageType.photo
    complexity: Complexity = Complexity.moderate
    ocr_text: str = ""
    has_text: bool = False


class CaptionResult(BaseModel):
    model_config = {"frozen": True}

    short_caption: str
    long_description: str
    confidence: float
    model: str
    processing_time: float = 0.0
    provenance: Provenance


class ImageAnalysis(BaseModel):
    """Outcome of analyzing one image. error is set when any stage failed."""

    model_config = {"frozen": True}

    image: ImageRecord
    ocr_result: OCRAnalysis | None = None
    caption_result: CaptionResult | None = None
    processing_time: float = 0.0
    error: str | None = None


class BulkProgress(BaseModel):
    """Snapshot passed to bulk progress callbacks. Terminal when completed == total."""

    total: int
    completed: int = 0
    current: str = ""
    errors: int = 0
    results: list[ImageAnalysis] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.completed == self.total and self.current == ""
