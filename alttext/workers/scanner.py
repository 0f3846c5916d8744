"""Image discovery: enumerates page images, filters decorative ones, and watches for insertions."""

import logging
import weakref
from typing import Callable

from alttext.core.alt_text import needs_description
from alttext.core.config import Settings
from alttext.models.entities import ImageRecord, Position
from alttext.page.base import BasePage
from alttext.page.nodes import ImageElement, PageNode

_log = logging.getLogger(__name__)

ID_PREFIX = "alttext-img"

ImageCallback = Callable[[ImageRecord], None]


def exclusion_reason(element: ImageElement, page: BasePage, settings: Settings) -> str | None:
    """
    Return why element is not worth describing, or None when it is eligible.

    Rules are applied in order: natural size, small data URI, hidden, far off-screen.
    """
    min_size = settings.min_natural_size
    if element.natural_width < min_size or element.natural_height < min_size:
        return "too_small"
    if element.src.startswith("data:") and len(element.src) < settings.min_data_uri_length:
        return "small_data_uri"
    if page.computed_style(element).is_hidden:
        return "hidden"
    rect = page.bounding_rect(element)
    margin = settings.offscreen_margin
    if rect.top > page.viewport.height + margin or rect.bottom < -margin:
        return "offscreen"
    return None


def _is_in_viewport(element: ImageElement, page: BasePage) -> bool:
    rect = page.bounding_rect(element)
    vp = page.viewport
    return (
        rect.width > 0
        and rect.height > 0
        and not page.computed_style(element).is_hidden
        and rect.top < vp.height
        and rect.bottom > 0
        and rect.left < vp.width
        and rect.right > 0
    )


class ImageScanner:
    """
    Turns page image elements into ImageRecords.

    scan_page() applies the eligibility filter; start_watching() reports every inserted image
    (including images nested in inserted subtrees) without filtering, leaving the choice to
    the subscriber.
    """

    def __init__(self, page: BasePage, settings: Settings | None = None) -> None:
        self.page = page
        self.settings = settings or Settings()
        self._ids: "weakref.WeakKeyDictionary[ImageElement, str]" = weakref.WeakKeyDictionary()
        self._next_index = 0
        self._listeners: list[Callable[[PageNode], None]] = []

    def _record_id(self, element: ImageElement) -> str:
        if element.id:
            return element.id
        existing = self._ids.get(element)
        if existing is None:
            existing = f"{ID_PREFIX}-{self._next_index}"
            self._next_index += 1
            self._ids[element] = existing
        return existing

    def to_record(self, element: ImageElement) -> ImageRecord:
        rect = self.page.bounding_rect(element)
        vp = self.page.viewport
        alt = element.alt or ""
        return ImageRecord(
            id=self._record_id(element),
            src=element.src,
            alt=alt,
            width=element.natural_width or int(rect.width),
            height=element.natural_height or int(rect.height),
            position=Position(
                top=rect.top + vp.scroll_y,
                left=rect.left + vp.scroll_x,
                right=rect.right + vp.scroll_x,
                bottom=rect.bottom + vp.scroll_y,
            ),
            is_visible=_is_in_viewport(element, self.page),
            has_alt_text=bool(alt.strip()),
            needs_description=needs_description(alt),
            element=element,
        )

    def find_images(self) -> list[ImageElement]:
        eligible: list[ImageElement] = []
        skipped: dict[str, int] = {}
        for element in self.page.query_images():
            reason = exclusion_reason(element, self.page, self.settings)
            if reason is None:
                eligible.append(element)
            else:
                skipped[reason] = skipped.get(reason, 0) + 1
        if skipped:
            _log.debug("Scanner skipped images: %s", skipped)
        return eligible

    def scan_page(self) -> list[ImageRecord]:
        records = [self.to_record(el) for el in self.find_images()]
        _log.info("Scanner: found %s eligible images on %s", len(records), self.page.location)
        return records

    def start_watching(self, on_new_image: ImageCallback) -> None:
        """Invoke on_new_image once per inserted image element until stop_watching()."""

        def _on_inserted(node: PageNode) -> None:
            for element in node.iter_images():
                on_new_image(self.to_record(element))

        self._listeners.append(_on_inserted)
        self.page.subscribe(_on_inserted)

    def stop_watching(self) -> None:
        for listener in self._listeners:
            self.page.unsubscribe(listener)
        self._listeners = []

    @property
    def is_watching(self) -> bool:
        return bool(self._listeners)
