"""Exception hierarchy and error classification for the description pipeline."""

from enum import Enum

import requests


class ErrorKind(str, Enum):
    """Closed set of failure classes used to route the caption chain."""

    auth = "auth"
    network = "network"
    security = "security"
    unknown = "unknown"


class AltTextError(Exception):
    """Base for all pipeline errors."""


class SecurityError(AltTextError):
    """Pixel data cannot be read because of a cross-origin restriction (tainted surface)."""


class ImageNotLoadedError(AltTextError):
    """Image is not loaded or reports zero natural dimensions; fatal for one analyze call only."""


class UnknownImageError(AltTextError):
    """No image with the requested id is known to the service."""


class BulkAnalysisInProgressError(AltTextError):
    """Raised when a bulk run is requested while another one is active."""

    def __init__(self) -> None:
        super().__init__("Bulk analysis already in progress")


class ProviderError(AltTextError):
    """A remote caption provider failed. kind says how the chain should react."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.unknown,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


# Last-resort message keywords for exceptions raised by code we do not control.
_SECURITY_KEYWORDS = ("cors", "canvas", "tainted", "cross-origin", "security restriction")
_AUTH_STATUS = {401, 403}


def kind_for_status(status_code: int | None) -> ErrorKind:
    """Map an HTTP status code to an ErrorKind."""
    if status_code in _AUTH_STATUS:
        return ErrorKind.auth
    if status_code is not None and (status_code == 429 or status_code >= 500):
        return ErrorKind.network
    return ErrorKind.unknown


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify an exception into an ErrorKind.

    Typed checks come first (our own exceptions, requests exceptions, HTTP status codes).
    Message keywords are consulted only for otherwise unknown exceptions, so a change in
    a foreign library's wording degrades to `unknown` rather than misrouting a typed error.
    """
    if isinstance(error, SecurityError):
        return ErrorKind.security
    if isinstance(error, ProviderError):
        return error.kind
    if isinstance(error, requests.HTTPError):
        status = error.response.status_code if error.response is not None else None
        return kind_for_status(status)
    if isinstance(error, (requests.ConnectionError, requests.Timeout, ConnectionError, TimeoutError)):
        return ErrorKind.network
    message = str(error).lower()
    if any(keyword in message for keyword in _SECURITY_KEYWORDS):
        return ErrorKind.security
    return ErrorKind.unknown
