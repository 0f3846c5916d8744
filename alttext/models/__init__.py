"""Data contracts shared by the scanner, OCR engine, caption chain and orchestrator."""

from alttext.models.entities import (
    BoundingBox,
    BulkProgress,
    CaptionRequest,
    CaptionResult,
    Complexity,
    ImageAnalysis,
    ImageRecord,
    ImageType,
    OCRAnalysis,
    OCRResult,
    Position,
    Provenance,
    ServiceState,
    WordBox,
)

__all__ = [
    "BoundingBox",
    "BulkProgress",
    "CaptionRequest",
    "CaptionResult",
    "Complexity",
    "ImageAnalysis",
    "ImageRecord",
    "ImageType",
    "OCRAnalysis",
    "OCRResult",
    "Position",
    "Provenance",
    "ServiceState",
    "WordBox",
]
