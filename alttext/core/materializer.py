"""Cross-origin aware conversion of an image record into a transmittable locator."""

import asyncio
import base64
import logging
from io import BytesIO

from PIL import Image

from alttext.core.image_io import ImageLoader
from alttext.core.locators import is_data_url, is_http_url, is_same_origin
from alttext.models.entities import ImageRecord

_log = logging.getLogger(__name__)

# 1x1 transparent PNG handed to the caption chain instead of unreadable cross-origin pixels.
CORS_PLACEHOLDER = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def is_cors_placeholder(locator: str | None) -> bool:
    return bool(locator) and CORS_PLACEHOLDER in locator


def encode_image(image: Image.Image, quality: int = 85) -> str:
    """Convert a Pillow image to a base64 JPEG data URL."""
    if image.mode != "RGB":
        image = image.convert("RGB")
    buffered = BytesIO()
    image.save(buffered, format="JPEG", quality=quality)
    b64 = base64.b64encode(buffered.getvalue()).decode()
    return f"data:image/jpeg;base64,{b64}"


class ImageMaterializer:
    """
    Produces a locator caption providers can consume.

    Data URLs and same-origin URLs pass through unchanged. Local files are encoded into a
    data URL. Cross-origin URLs are never pixel-read: they become CORS_PLACEHOLDER, which
    downstream stages treat as CORS-limited. materialize() never raises.
    """

    def __init__(self, page_url: str, loader: ImageLoader | None = None) -> None:
        self.page_url = page_url
        self._loader = loader

    @property
    def loader(self) -> ImageLoader:
        if self._loader is None:
            self._loader = ImageLoader()
        return self._loader

    async def materialize(self, record: ImageRecord) -> str:
        src = record.src
        if is_data_url(src):
            return src
        if is_http_url(src):
            if is_same_origin(src, self.page_url):
                _log.debug("Using same-origin image directly: %s", src)
                return src
            _log.info("Cross-origin image, using placeholder: %s", src)
            return CORS_PLACEHOLDER
        try:
            image = await asyncio.to_thread(self.loader.load, src)
            return encode_image(image)
        except Exception as e:
            _log.warning("Could not encode local image %s: %s", src, e)
            return CORS_PLACEHOLDER
