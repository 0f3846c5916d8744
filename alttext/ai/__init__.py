"""AI module: caption providers, prompt contract, local captions and the provider chain."""

from alttext.ai.chain import CaptionChain
from alttext.ai.factory import get_caption_provider
from alttext.ai.local import generate_basic_description, generate_local_caption
from alttext.ai.provider_base import BaseCaptionProvider, MockCaptionProvider
from alttext.ai.schema import ModelCard

__all__ = [
    "BaseCaptionProvider",
    "CaptionChain",
    "MockCaptionProvider",
    "ModelCard",
    "generate_basic_description",
    "generate_local_caption",
    "get_caption_provider",
]
