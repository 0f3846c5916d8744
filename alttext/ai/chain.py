"""Prioritized caption provider chain with per-provider rate limits and a local fallback."""

import asyncio
import logging
import time
from typing import Callable

from alttext.ai.factory import get_caption_provider
from alttext.ai.local import generate_local_caption
from alttext.ai.provider_base import BaseCaptionProvider
from alttext.core.config import Settings
from alttext.core.credentials import ApiKeys
from alttext.core.errors import ErrorKind, classify_error
from alttext.core.locators import is_http_url
from alttext.core.materializer import is_cors_placeholder
from alttext.core.rate_limit import RateLimiter
from alttext.models.entities import CaptionRequest, CaptionResult

_log = logging.getLogger(__name__)

# Priority order: vision chat completion first, dedicated captioner second.
PROVIDER_ORDER = ("openai", "huggingface")
MIN_LOCATOR_LENGTH = 50

ProviderFactory = Callable[[str, str, Settings], BaseCaptionProvider]


def gate_reason(request: CaptionRequest) -> str | None:
    """Why the locator cannot be sent to a remote provider, or None if it can."""
    locator = request.image_data_url
    if not locator or len(locator) <= MIN_LOCATOR_LENGTH:
        return "locator too short"
    if "data:image/svg+xml" in locator:
        return "vector image"
    if is_cors_placeholder(locator):
        return "cross-origin placeholder"
    if not (locator.startswith("data:image/") or is_http_url(locator)):
        return "not a data or http(s) locator"
    return None


class CaptionChain:
    """
    Tries each configured remote provider in priority order and falls back to local captions.

    Each provider has its own RateLimiter; a provider whose window is full is skipped for that
    call. A security-class failure abandons the remaining providers at once, since every
    alternate would be handed the same unreadable image. Any other failure moves on to the next
    provider. generate_caption() never raises.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider_factory: ProviderFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or Settings()
        self._provider_factory = provider_factory or get_caption_provider
        self._clock = clock
        self._keys = ApiKeys()
        self._providers: list[BaseCaptionProvider] = []
        self._limiters: dict[str, RateLimiter] = {}

    @property
    def providers(self) -> list[BaseCaptionProvider]:
        return list(self._providers)

    def set_api_keys(self, keys: ApiKeys) -> None:
        """Rebuild the provider list from credentials. Rate limiter state survives key changes."""
        self._keys = keys
        providers = []
        for name in PROVIDER_ORDER:
            api_key = getattr(keys, name)
            if api_key:
                providers.append(self._provider_factory(name, api_key, self.settings))
        self._providers = providers
        _log.info("Caption chain keys set: %s", keys.masked())

    def has_cloud_capability(self) -> bool:
        return bool(self._providers)

    def available_services(self) -> list[str]:
        return [p.name for p in self._providers] + ["local"]

    def rate_limiter(self, provider_name: str) -> RateLimiter:
        limiter = self._limiters.get(provider_name)
        if limiter is None:
            limiter = RateLimiter(
                provider_name, max_requests=self.settings.requests_per_minute, clock=self._clock
            )
            self._limiters[provider_name] = limiter
        return limiter

    def get_rate_limit_stats(self) -> dict[str, dict]:
        return {name: limiter.get_stats() for name, limiter in self._limiters.items()}

    def generate_local_caption(self, request: CaptionRequest) -> CaptionResult:
        return generate_local_caption(request)

    async def generate_caption(self, request: CaptionRequest) -> CaptionResult:
        started = time.perf_counter()
        if not self._providers:
            _log.info("No provider credentials, using local caption")
            return generate_local_caption(request, started)
        reason = gate_reason(request)
        if reason is not None:
            _log.info("Skipping remote providers (%s), using local caption", reason)
            return generate_local_caption(request, started)

        for provider in self._providers:
            if not self.rate_limiter(provider.name).try_acquire():
                continue
            try:
                result = await provider.caption(request)
                _log.info("Caption from %s (%s)", provider.name, result.model)
                return result
            except Exception as e:
                kind = classify_error(e)
                _log.warning("Caption provider %s failed (%s): %s", provider.name, kind.value, e)
                if kind is ErrorKind.security:
                    break
        return generate_local_caption(request, started)

    async def generate_bulk_captions(self, requests: list[CaptionRequest]) -> list[CaptionResult]:
        """Caption in fixed-size concurrent batches with a delay between batches."""
        batch_size = self.settings.caption_batch_size
        results: list[CaptionResult] = []
        for i in range(0, len(requests), batch_size):
            batch = requests[i : i + batch_size]
            try:
                results.extend(await asyncio.gather(*(self.generate_caption(r) for r in batch)))
            except Exception:
                _log.exception("Caption batch %s failed, using local captions", i // batch_size + 1)
                results.extend(generate_local_caption(r) for r in batch)
            if i + batch_size < len(requests):
                await asyncio.sleep(self.settings.caption_batch_delay_seconds)
        return results
