"""Factory for caption providers. Imports are lazy so unused providers cost nothing."""

from alttext.ai.provider_base import BaseCaptionProvider
from alttext.core.config import Settings


def get_caption_provider(
    provider_name: str, api_key: str | None = None, settings: Settings | None = None
) -> BaseCaptionProvider:
    """Return a caption provider by name."""
    if provider_name == "mock":
        from alttext.ai.provider_base import MockCaptionProvider

        return MockCaptionProvider()
    if not api_key:
        raise ValueError(f"API key required for caption provider: {provider_name}")
    if provider_name == "openai":
        from alttext.ai.provider_openai import OpenAIVisionProvider

        return OpenAIVisionProvider(api_key, settings)
    if provider_name == "huggingface":
        from alttext.ai.provider_huggingface import HuggingFaceCaptionProvider

        return HuggingFaceCaptionProvider(api_key, settings)
    raise ValueError(f"Unknown caption provider: {provider_name}")
