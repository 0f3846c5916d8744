"""Tests for image discovery: eligibility rules, records and insertion watching."""

import pytest

from alttext.page.nodes import ComputedStyle, PageNode, Viewport
from alttext.page.static import StaticPage
from alttext.workers.scanner import ID_PREFIX, ImageScanner, exclusion_reason
from tests.conftest import PAGE_URL, make_element, make_page

pytestmark = [pytest.mark.fast]


def test_small_image_excluded_even_when_visible(settings):
    """A 40x40 image is too small to be worth describing."""
    small = make_element("https://example.com/icon.png", 40, 40)
    big = make_element("https://example.com/hero.jpg", 800, 400, top=60)
    page = make_page(small, big)
    records = ImageScanner(page, settings).scan_page()
    assert [r.src for r in records] == ["https://example.com/hero.jpg"]


def test_exclusion_rules_apply_in_order(settings):
    """Size is checked before visibility, visibility before position."""
    page = make_page()
    tiny_hidden = make_element(width=10, height=10, style=ComputedStyle(display="none"))
    assert exclusion_reason(tiny_hidden, page, settings) == "too_small"
    hidden = make_element(style=ComputedStyle(visibility="hidden"))
    assert exclusion_reason(hidden, page, settings) == "hidden"
    transparent = make_element(style=ComputedStyle(opacity="0"))
    assert exclusion_reason(transparent, page, settings) == "hidden"


def test_small_data_uri_excluded(settings):
    """Short inline data URIs are treated as icons."""
    element = make_element("data:image/png;base64,iVBORw0KGgo=", 100, 100)
    assert exclusion_reason(element, make_page(), settings) == "small_data_uri"


def test_far_offscreen_images_excluded(settings):
    """Images more than the margin beyond the viewport are skipped in both directions."""
    page = StaticPage(PAGE_URL, viewport=Viewport(height=800))
    below = make_element(top=800 + 1001)
    above = make_element(top=-1500, height=200)
    near = make_element(top=800 + 500)
    assert exclusion_reason(below, page, settings) == "offscreen"
    assert exclusion_reason(above, page, settings) == "offscreen"
    assert exclusion_reason(near, page, settings) is None


def test_record_fields(settings):
    """Records carry identity, size, document position and alt-text flags."""
    element = make_element(alt="Golden Gate Bridge at sunset", id="bridge", top=100)
    page = StaticPage(PAGE_URL, [element], Viewport(scroll_y=50))
    record = ImageScanner(page, settings).scan_page()[0]
    assert record.id == "bridge"
    assert (record.width, record.height) == (200, 150)
    assert record.position.top == 150
    assert record.is_visible is True
    assert record.has_alt_text is True
    assert record.needs_description is False
    assert record.element is element


def test_generated_ids_are_stable(settings):
    """Elements without an id get a generated one that does not change between scans."""
    element = make_element()
    scanner = ImageScanner(make_page(element), settings)
    first = scanner.scan_page()[0].id
    second = scanner.scan_page()[0].id
    assert first == second
    assert first.startswith(ID_PREFIX)


def test_watching_reports_nested_images(settings):
    """Watch mode fires once per inserted image, including images inside inserted subtrees."""
    page = make_page()
    scanner = ImageScanner(page, settings)
    seen = []
    scanner.start_watching(seen.append)
    assert scanner.is_watching

    figure = PageNode(tag="figure", children=[make_element("https://example.com/a.jpg")])
    gallery = PageNode(
        tag="div",
        children=[figure, PageNode(tag="p"), make_element("https://example.com/b.jpg")],
    )
    page.insert(gallery)
    page.insert(make_element("https://example.com/c.jpg"))

    assert [r.src for r in seen] == [
        "https://example.com/a.jpg",
        "https://example.com/b.jpg",
        "https://example.com/c.jpg",
    ]


def test_stop_watching_unsubscribes(settings):
    """No callbacks after stop_watching()."""
    page = make_page()
    scanner = ImageScanner(page, settings)
    seen = []
    scanner.start_watching(seen.append)
    scanner.stop_watching()
    page.insert(make_element())
    assert seen == []
    assert not scanner.is_watching
