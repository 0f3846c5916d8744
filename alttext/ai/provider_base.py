"""Abstract base, HTTP base and mock implementation for caption providers."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import requests

from alttext.ai.schema import ModelCard
from alttext.core.errors import ErrorKind, ProviderError, kind_for_status
from alttext.models.entities import CaptionRequest, CaptionResult, Provenance

_log = logging.getLogger(__name__)


class BaseCaptionProvider(ABC):
    """Abstract base for remote caption generation (short caption plus long description)."""

    name: str = "base"

    @abstractmethod
    def get_model_card(self) -> ModelCard:
        """Return model identity (name, version)."""
        ...

    @abstractmethod
    async def caption(self, request: CaptionRequest) -> CaptionResult:
        """Caption the image in request. Raises on any failure; the chain decides what happens next."""
        ...


class HttpCaptionProvider(BaseCaptionProvider):
    """
    Base for providers reached over authenticated JSON POST.

    Uses a persistent requests.Session with connection pooling. Blocking calls run in a worker
    thread so the event loop is never held. HTTP and transport failures surface as ProviderError
    with a kind the chain can route on.
    """

    endpoint: str = ""

    def __init__(self, api_key: str, endpoint: str | None = None, timeout: float = 60.0) -> None:
        self._api_key = api_key
        if endpoint:
            self.endpoint = endpoint
        self._timeout = timeout
        self._session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=20)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def _post(self, json_payload: dict) -> Any:
        """POST JSON to the provider endpoint and return the parsed response."""
        try:
            resp = self._session.post(
                self.endpoint,
                json=json_payload,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            body = e.response.text[:200] if e.response is not None else ""
            raise ProviderError(
                f"{self.name} API error: {status} {body}".strip(),
                kind=kind_for_status(status),
                status_code=status,
            ) from e
        except (requests.ConnectionError, requests.Timeout) as e:
            raise ProviderError(f"{self.name} request failed: {e}", kind=ErrorKind.network) from e
        return resp.json()

    @abstractmethod
    def build_payload(self, request: CaptionRequest) -> dict:
        ...

    @abstractmethod
    def parse_response(self, request: CaptionRequest, data: Any, started: float) -> CaptionResult:
        ...

    async def caption(self, request: CaptionRequest) -> CaptionResult:
        started = time.perf_counter()
        payload = self.build_payload(request)
        _log.debug("Sending %s request (image locator length %s)", self.name, len(request.image_data_url))
        data = await asyncio.to_thread(self._post, payload)
        return self.parse_response(request, data, started)

    def close(self) -> None:
        self._session.close()


class MockCaptionProvider(BaseCaptionProvider):
    """Placeholder provider for testing and development. Pass error to make every call fail."""

    def __init__(
        self,
        name: str = "mock",
        short_caption: str = "A placeholder caption.",
        confidence: float = 0.9,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self._short_caption = short_caption
        self._confidence = confidence
        self._error = error
        self.calls: list[CaptionRequest] = []

    def get_model_card(self) -> ModelCard:
        return ModelCard(name=f"{self.name}-captioner", version="1.0")

    async def caption(self, request: CaptionRequest) -> CaptionResult:
        self.calls.append(request)
        if self._error is not None:
            raise self._error
        provenance = self.name if self.name in Provenance.__members__ else Provenance.local
        return CaptionResult(
            short_caption=self._short_caption,
            long_description=f"{self._short_caption} Described by {self.name}.",
            confidence=self._confidence,
            model=self.get_model_card().name,
            processing_time=0.0,
            provenance=provenance,
        )
