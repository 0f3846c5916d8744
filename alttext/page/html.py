"""Page built from static HTML with BeautifulSoup."""

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from alttext.core.image_io import ImageLoader
from alttext.page.nodes import BoundingRect, ComputedStyle, ImageElement, Viewport
from alttext.page.static import StaticPage

_log = logging.getLogger(__name__)

_STYLE_DECL_RE = re.compile(r"\s*([\w-]+)\s*:\s*([^;]+)\s*;?")


def _parse_dimension(value: str | None) -> int:
    if not value:
        return 0
    m = re.match(r"\s*(\d+)", str(value))
    return int(m.group(1)) if m else 0


def parse_inline_style(style: str | None, hidden: bool = False) -> ComputedStyle:
    """Resolve display/visibility/opacity from an inline style attribute."""
    computed = ComputedStyle()
    if hidden:
        computed.display = "none"
    for name, value in _STYLE_DECL_RE.findall(style or ""):
        value = value.strip().lower().replace("!important", "").strip()
        name = name.lower()
        if name == "display":
            computed.display = value
        elif name == "visibility":
            computed.visibility = value
        elif name == "opacity":
            computed.opacity = value
    return computed


class HtmlPage(StaticPage):
    """
    Static page parsed from HTML. Layout is not computed: images are stacked vertically in
    document order using their declared (or probed) sizes.
    """

    @classmethod
    def from_html(
        cls,
        html: str,
        base_url: str,
        *,
        viewport: Viewport | None = None,
        loader: ImageLoader | None = None,
        probe_sizes: bool = False,
        enforce_cors: bool = True,
    ) -> "HtmlPage":
        soup = BeautifulSoup(html, "html.parser")
        viewport = viewport or Viewport()
        images: list[ImageElement] = []
        top = 0.0
        for tag in soup.find_all("img"):
            raw_src = tag.get("src") or ""
            if not raw_src:
                continue
            src = raw_src if raw_src.startswith("data:") else urljoin(base_url, raw_src)
            width = _parse_dimension(tag.get("width"))
            height = _parse_dimension(tag.get("height"))
            if probe_sizes and loader is not None and (not width or not height):
                size = loader.probe_size(src)
                if size is not None:
                    width, height = size
            element = ImageElement(
                src=src,
                alt=tag.get("alt") or "",
                id=tag.get("id") or "",
                natural_width=width,
                natural_height=height,
                rect=BoundingRect(top=top, left=0.0, width=float(width), height=float(height)),
                style=parse_inline_style(tag.get("style"), hidden=tag.has_attr("hidden")),
                complete=bool(width and height),
            )
            images.append(element)
            if not element.style.is_hidden:
                top += height
        _log.debug("Parsed %s images from %s", len(images), base_url)
        return cls(base_url, images, viewport, loader=loader, enforce_cors=enforce_cors)
