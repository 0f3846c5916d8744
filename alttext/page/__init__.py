"""Page abstraction: element tree, computed style, layout boxes and insertion events."""

from alttext.page.base import BasePage
from alttext.page.html import HtmlPage
from alttext.page.nodes import BoundingRect, ComputedStyle, ImageElement, PageNode, Viewport
from alttext.page.static import StaticPage

__all__ = [
    "BasePage",
    "BoundingRect",
    "ComputedStyle",
    "HtmlPage",
    "ImageElement",
    "PageNode",
    "StaticPage",
    "Viewport",
]
