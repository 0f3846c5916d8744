"""Load image locators (data URL, http(s) URL, local path) into Pillow images."""

import base64
import binascii
import io
import logging
from pathlib import Path
from urllib.parse import unquote

import requests
from PIL import Image

from alttext.core.locators import is_data_url, is_http_url

_log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def file_non_empty(path: Path, *, min_bytes: int = 1) -> bool:
    """Return True if path exists and has at least min_bytes. Catches OSError."""
    try:
        return path.exists() and path.stat().st_size >= min_bytes
    except OSError:
        return False


def decode_data_url(locator: str) -> bytes:
    """Return the payload of a data: URL. Raises ValueError when malformed."""
    header, sep, payload = locator.partition(",")
    if not sep or not header.startswith("data:"):
        raise ValueError("Malformed data URL")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except binascii.Error as e:
            raise ValueError(f"Malformed base64 payload: {e}") from e
    return unquote(payload).encode("utf-8")


class ImageLoader:
    """
    Resolves a locator to a decoded RGB Pillow image.

    Uses a persistent requests.Session with connection pooling for http(s) locators.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout
        self._session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=20)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def _read_bytes(self, locator: str) -> bytes:
        if is_data_url(locator):
            return decode_data_url(locator)
        if is_http_url(locator):
            resp = self._session.get(locator, timeout=self._timeout)
            resp.raise_for_status()
            return resp.content
        path = Path(locator)
        if not file_non_empty(path):
            raise FileNotFoundError(f"Image file not found or empty: {locator}")
        return path.read_bytes()

    def load(self, locator: str) -> Image.Image:
        """Load and fully decode the image; always returns an RGB copy."""
        data = self._read_bytes(locator)
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGB") if img.mode != "RGB" else img.copy()

    def probe_size(self, locator: str) -> tuple[int, int] | None:
        """Natural (width, height) of the image, or None when it cannot be read."""
        try:
            data = self._read_bytes(locator)
            with Image.open(io.BytesIO(data)) as img:
                return img.size
        except (OSError, ValueError, requests.RequestException) as e:
            _log.debug("Could not probe image size for %s: %s", locator[:80], e)
            return None

    def close(self) -> None:
        self._session.close()
