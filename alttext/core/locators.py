"""Helpers for image locators: data URLs, http(s) URLs and origin comparison."""

import logging
from urllib.parse import urlsplit

_log = logging.getLogger(__name__)

# Known page host -> image CDN host relationships treated as same-origin.
CDN_ALLOW_LIST: dict[str, set[str]] = {
    "unsplash.com": {"images.unsplash.com"},
    "www.unsplash.com": {"images.unsplash.com"},
    "pexels.com": {"images.pexels.com"},
}


def is_data_url(locator: str) -> bool:
    return locator.startswith("data:")


def is_http_url(locator: str) -> bool:
    return locator.startswith(("http://", "https://"))


def _origin(url: str) -> tuple[str, str, int | None]:
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")
    port = parts.port
    if port is None:
        port = {"http": 80, "https": 443}.get(parts.scheme)
    return parts.scheme, parts.hostname, port


def is_same_origin(locator: str, page_url: str) -> bool:
    """
    True when the image may be read as if it came from the page's own origin.

    Exact origin match, a known CDN relationship, or hostname suffix containment in
    either direction (cdn.example.com on example.com). Unparseable URLs are never same-origin.
    """
    try:
        img_origin = _origin(locator)
        page_origin = _origin(page_url)
    except ValueError as e:
        _log.debug("Origin check failed: %s", e)
        return False

    if img_origin == page_origin:
        return True

    img_host = img_origin[1]
    page_host = page_origin[1]
    if img_host in CDN_ALLOW_LIST.get(page_host, set()):
        return True
    if img_host.endswith("." + page_host) or page_host.endswith("." + img_host):
        return True
    return False
