"""Provider credential store with change notification."""

import logging
from typing import Callable

from pydantic import BaseModel, field_validator

from alttext.core.config import Settings

_log = logging.getLogger(__name__)


def clean_api_key(api_key: str | None) -> str | None:
    """Strip whitespace and one pair of surrounding quotes; blank keys become None."""
    if api_key is None:
        return None
    cleaned = api_key.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ("'", '"'):
        cleaned = cleaned[1:-1].strip()
    return cleaned or None


def mask_key(api_key: str | None) -> str:
    """Short, log-safe representation of a key."""
    if not api_key:
        return "none"
    return f"{api_key[:6]}..."


class ApiKeys(BaseModel):
    """Credentials for the remote caption providers."""

    openai: str | None = None
    huggingface: str | None = None

    @field_validator("openai", "huggingface", mode="before")
    @classmethod
    def _clean(cls, v: str | None) -> str | None:
        return clean_api_key(v)

    def masked(self) -> dict[str, str]:
        return {"openai": mask_key(self.openai), "huggingface": mask_key(self.huggingface)}


CredentialListener = Callable[[ApiKeys], None]


class CredentialStore:
    """
    In-memory key-value store for provider credentials.

    update() replaces the stored keys and notifies every subscriber, which is how a running
    service learns about keys changed elsewhere.
    """

    def __init__(self, keys: ApiKeys | None = None) -> None:
        self._keys = keys or ApiKeys()
        self._listeners: list[CredentialListener] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialStore":
        return cls(ApiKeys(openai=settings.openai_api_key, huggingface=settings.huggingface_api_key))

    def get_api_keys(self) -> ApiKeys:
        return self._keys.model_copy()

    def update(self, *, openai: str | None = None, huggingface: str | None = None) -> None:
        self._keys = ApiKeys(openai=openai, huggingface=huggingface)
        _log.info("Credentials updated: %s", self._keys.masked())
        for listener in list(self._listeners):
            listener(self.get_api_keys())

    def subscribe(self, listener: CredentialListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: CredentialListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
