"""In-memory page backed by a PageNode tree."""

from alttext.core.image_io import ImageLoader
from alttext.page.base import BasePage
from alttext.page.nodes import ImageElement, PageNode, Viewport


class StaticPage(BasePage):
    """Page whose element tree is held in memory; insert() mimics DOM insertion."""

    def __init__(
        self,
        location: str,
        nodes: list[PageNode] | None = None,
        viewport: Viewport | None = None,
        *,
        loader: ImageLoader | None = None,
        enforce_cors: bool = True,
    ) -> None:
        super().__init__(location, viewport, loader=loader, enforce_cors=enforce_cors)
        self.root = PageNode(tag="body", children=list(nodes or []))

    def query_images(self) -> list[ImageElement]:
        return self.root.iter_images()

    def insert(self, node: PageNode, parent: PageNode | None = None) -> None:
        """Append node under parent (default: body) and notify subscribers once for the node."""
        (parent or self.root).children.append(node)
        self._notify_inserted(node)

    def remove(self, node: PageNode) -> bool:
        stack = [self.root]
        while stack:
            current = stack.pop()
            if node in current.children:
                current.children.remove(node)
                return True
            stack.extend(current.children)
        return False
