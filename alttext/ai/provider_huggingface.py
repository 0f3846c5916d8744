"""Dedicated image captioning provider (Hugging Face inference API, BLIP large)."""

import time
from typing import Any

from alttext.ai.provider_base import HttpCaptionProvider
from alttext.ai.schema import ModelCard
from alttext.core.config import Settings
from alttext.core.errors import ProviderError
from alttext.models.entities import CaptionRequest, CaptionResult, Complexity, Provenance

MODEL_NAME = "blip-image-captioning-large"
CONFIDENCE = 0.8
NUM_BEAMS = 3


def _generated_text(data: Any) -> str:
    """Inference responses are either [{generated_text}] or {generated_text}."""
    if isinstance(data, list):
        first = data[0] if data else None
        return first.get("generated_text", "") if isinstance(first, dict) else ""
    if isinstance(data, dict):
        return data.get("generated_text") or ""
    return ""


class HuggingFaceCaptionProvider(HttpCaptionProvider):
    name = "huggingface"

    def __init__(self, api_key: str, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        super().__init__(api_key, settings.huggingface_endpoint, settings.provider_timeout_seconds)

    def get_model_card(self) -> ModelCard:
        return ModelCard(name=MODEL_NAME, version="inference-api")

    def build_payload(self, request: CaptionRequest) -> dict:
        return {
            "inputs": request.image_data_url,
            "parameters": {
                "max_length": 100 if request.complexity == Complexity.complex else 50,
                "num_beams": NUM_BEAMS,
            },
        }

    def parse_response(self, request: CaptionRequest, data: Any, started: float) -> CaptionResult:
        caption = _generated_text(data).strip()
        if not caption:
            raise ProviderError("No caption received from HuggingFace API")
        return CaptionResult(
            short_caption=caption,
            long_description=caption,
            confidence=CONFIDENCE,
            model=MODEL_NAME,
            processing_time=time.perf_counter() - started,
            provenance=Provenance.huggingface,
        )
