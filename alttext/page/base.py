"""Abstract page: the element-query capability the image pipeline consumes."""

import logging
from abc import ABC, abstractmethod
from typing import Callable

from PIL import Image

from alttext.core.errors import SecurityError
from alttext.core.image_io import ImageLoader
from alttext.core.locators import is_data_url, is_http_url, is_same_origin
from alttext.page.nodes import BoundingRect, ComputedStyle, ImageElement, PageNode, Viewport

_log = logging.getLogger(__name__)

InsertionListener = Callable[[PageNode], None]


class BasePage(ABC):
    """
    A document with images. Subclasses provide the element tree; this base provides
    insertion subscriptions and raster surfaces that honour cross-origin rules.
    """

    def __init__(
        self,
        location: str,
        viewport: Viewport | None = None,
        *,
        loader: ImageLoader | None = None,
        enforce_cors: bool = True,
    ) -> None:
        self.location = location
        self.viewport = viewport or Viewport()
        self.enforce_cors = enforce_cors
        self._loader = loader
        self._listeners: list[InsertionListener] = []

    @abstractmethod
    def query_images(self) -> list[ImageElement]:
        """All image elements in document order."""
        ...

    def computed_style(self, element: ImageElement) -> ComputedStyle:
        return element.style

    def bounding_rect(self, element: ImageElement) -> BoundingRect:
        return element.rect

    @property
    def loader(self) -> ImageLoader:
        if self._loader is None:
            self._loader = ImageLoader()
        return self._loader

    def can_read_pixels(self, src: str) -> bool:
        """Data URLs, local files and same-origin URLs are readable; other origins taint the surface."""
        if not self.enforce_cors or is_data_url(src) or not is_http_url(src):
            return True
        return is_same_origin(src, self.location)

    def draw_to_surface(self, element: ImageElement) -> Image.Image:
        """
        Draw the element into a fresh RGB raster at its natural size.

        Raises SecurityError when the source is cross-origin and the page enforces CORS.
        """
        if not self.can_read_pixels(element.src):
            raise SecurityError(f"Surface tainted by cross-origin image: {element.src}")
        image = self.loader.load(element.src)
        width = element.natural_width or image.width
        height = element.natural_height or image.height
        surface = Image.new("RGB", (width, height), "white")
        if image.size != (width, height):
            image = image.resize((width, height))
        surface.paste(image, (0, 0))
        return surface

    def subscribe(self, listener: InsertionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: InsertionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify_inserted(self, node: PageNode) -> None:
        for listener in list(self._listeners):
            try:
                listener(node)
            except Exception:
                _log.error("Insertion listener failed", exc_info=True)
