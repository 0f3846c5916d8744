"""Minimal page element tree: the parts of a document the image pipeline reads."""

from dataclasses import dataclass, field


@dataclass
class BoundingRect:
    """Viewport-relative rectangle, like getBoundingClientRect()."""

    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass
class ComputedStyle:
    display: str = "inline"
    visibility: str = "visible"
    opacity: str = "1"

    @property
    def is_hidden(self) -> bool:
        if self.display == "none" or self.visibility == "hidden":
            return True
        try:
            return float(self.opacity) == 0.0
        except ValueError:
            return False


@dataclass
class Viewport:
    width: int = 1280
    height: int = 800
    scroll_x: float = 0.0
    scroll_y: float = 0.0


@dataclass(eq=False)
class PageNode:
    """Generic element. Compared by identity, like DOM nodes."""

    tag: str = "div"
    children: list["PageNode"] = field(default_factory=list)

    def iter_images(self) -> "list[ImageElement]":
        """This node (if it is an image) followed by all nested images, in document order."""
        found: list[ImageElement] = []
        stack: list[PageNode] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, ImageElement):
                found.append(node)
            stack.extend(reversed(node.children))
        return found


@dataclass(eq=False)
class ImageElement(PageNode):
    """An <img>: source, alt text, natural size, layout box and computed style."""

    tag: str = "img"
    src: str = ""
    alt: str = ""
    id: str = ""
    natural_width: int = 0
    natural_height: int = 0
    rect: BoundingRect = field(default_factory=BoundingRect)
    style: ComputedStyle = field(default_factory=ComputedStyle)
    complete: bool = True
