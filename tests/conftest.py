"""Pytest fixtures: settings without delays, page builders, and fake OCR/caption backends."""

import base64
import io

import pytest
from PIL import Image

from alttext.ai.provider_base import MockCaptionProvider
from alttext.core import config as config_module
from alttext.core.config import Settings
from alttext.ocr.recognizer import BaseTextRecognizer, Recognition, RecognitionSource
from alttext.page.nodes import BoundingRect, ComputedStyle, ImageElement
from alttext.page.static import StaticPage

PAGE_URL = "https://example.com/articles/1"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """No cached config, no credentials from the environment, no config file from the cwd."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("HUGGINGFACE_API_KEY", raising=False)
    monkeypatch.setenv("ALTTEXT_CONFIG", str(tmp_path / "missing_config.yml"))
    config_module.reset_config()
    yield
    config_module.reset_config()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        caption_batch_delay_seconds=0.0,
        bulk_item_delay_seconds=0.0,
        forensics_dir="logs/forensics",
    )


def png_data_url(width: int = 120, height: int = 80, color: str = "navy") -> str:
    buffered = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffered, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffered.getvalue()).decode()


def make_element(
    src: str = "https://example.com/images/photo.jpg",
    width: int = 200,
    height: int = 150,
    *,
    alt: str = "",
    id: str = "",
    top: float = 0.0,
    style: ComputedStyle | None = None,
    complete: bool = True,
) -> ImageElement:
    return ImageElement(
        src=src,
        alt=alt,
        id=id,
        natural_width=width,
        natural_height=height,
        rect=BoundingRect(top=top, left=0.0, width=float(width), height=float(height)),
        style=style or ComputedStyle(),
        complete=complete,
    )


def make_page(*elements: ImageElement, location: str = PAGE_URL) -> StaticPage:
    return StaticPage(location, list(elements))


class FakeRecognizer(BaseTextRecognizer):
    """Recognizer that records calls. Direct locator recognition can be made to fail."""

    name = "fake"

    def __init__(
        self,
        text: str = "",
        confidence: float = 0.0,
        *,
        fail_direct: bool = False,
        fail_always: bool = False,
        fail_initialize: int = 0,
    ) -> None:
        self.text = text
        self.confidence = confidence
        self.fail_direct = fail_direct
        self.fail_always = fail_always
        self.fail_initialize = fail_initialize
        self.initialize_calls = 0
        self.sources: list[RecognitionSource] = []
        self.terminated = False

    def initialize(self) -> None:
        self.initialize_calls += 1
        if self.initialize_calls <= self.fail_initialize:
            raise RuntimeError("engine binary missing")

    def recognize(self, source: RecognitionSource) -> Recognition:
        self.sources.append(source)
        if self.fail_always or (self.fail_direct and isinstance(source, str)):
            raise OSError("cannot decode image")
        return Recognition(text=self.text, confidence=self.confidence)

    def terminate(self) -> None:
        self.terminated = True


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


def provider_factory(**providers: MockCaptionProvider):
    """Caption chain factory returning the given mock for each provider name."""

    def _factory(name: str, api_key: str, settings: Settings) -> MockCaptionProvider:
        return providers[name]

    return _factory
