"""Vision-capable chat completion provider (OpenAI API)."""

import time
from typing import Any

from alttext.ai.prompt import build_prompt, parse_caption_response
from alttext.ai.provider_base import HttpCaptionProvider
from alttext.ai.schema import ModelCard
from alttext.core.config import Settings
from alttext.core.errors import ProviderError
from alttext.models.entities import CaptionRequest, CaptionResult, Complexity, Provenance

CONFIDENCE = 0.9
TEMPERATURE = 0.7


class OpenAIVisionProvider(HttpCaptionProvider):
    """First choice in the caption chain. Complex images get the larger model and token budget."""

    name = "openai"

    def __init__(self, api_key: str, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        super().__init__(api_key, settings.openai_endpoint, settings.provider_timeout_seconds)
        self._model = settings.openai_model
        self._complex_model = settings.openai_complex_model

    def get_model_card(self) -> ModelCard:
        return ModelCard(name=self._model, version="chat-completions")

    def model_for(self, request: CaptionRequest) -> str:
        return self._complex_model if request.complexity == Complexity.complex else self._model

    def build_payload(self, request: CaptionRequest) -> dict:
        return {
            "model": self.model_for(request),
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": build_prompt(request)},
                        {"type": "image_url", "image_url": {"url": request.image_data_url}},
                    ],
                }
            ],
            "max_tokens": 500 if request.complexity == Complexity.complex else 200,
            "temperature": TEMPERATURE,
        }

    def parse_response(self, request: CaptionRequest, data: Any, started: float) -> CaptionResult:
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            content = ""
        if not content:
            raise ProviderError("No content received from OpenAI API")
        short, long = parse_caption_response(content)
        return CaptionResult(
            short_caption=short,
            long_description=long,
            confidence=CONFIDENCE,
            model=self.model_for(request),
            processing_time=time.perf_counter() - started,
            provenance=Provenance.openai,
        )
