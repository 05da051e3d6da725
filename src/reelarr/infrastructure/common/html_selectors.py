"""CSS-selector helpers for scraping catalog and landing pages.

Every helper that takes a selector also accepts *fallback_selectors*:
the first selector yielding a match wins, so a renamed class on a
mirror site degrades to the next candidate instead of an empty result.
"""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

# Lazy-loading themes park the real image URL in a data attribute.
_IMAGE_ATTRS = ("data-lazy-src", "data-src", "src")


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the ``lxml`` parser."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Return matches of the first selector that matches anything."""
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def extract_text(
    element: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Stripped text of the first non-empty match.

    With ``selector=""`` the element's own text is returned.
    """
    if selector == "":
        return element.get_text(strip=True) or default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(strip=True)
            if text:
                return text
    return default


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Attribute value from the first match that carries it.

    With ``selector=""`` the attribute is read from *element* itself.
    """
    if selector == "":
        val = element.get(attr)
        return str(val) if val else default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            val = match.get(attr)
            if val:
                return str(val)
    return default


def extract_all_attrs(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
) -> list[str]:
    for sel in (selector, *fallback_selectors):
        matches = element.select(sel)
        if matches:
            return [str(m[attr]) for m in matches if m.get(attr)]
    return []


def extract_image(element: Tag, selector: str = "img") -> str:
    """Image URL of the first ``<img>``, honouring lazy-load attributes."""
    img = element if selector == "" else element.select_one(selector)
    if img is None:
        return ""
    for attr in _IMAGE_ATTRS:
        val = img.get(attr)
        if val and not str(val).startswith("data:"):
            return str(val)
    return ""


def absolute_url(href: str, base_url: str) -> str:
    """Resolve *href* against *base_url*; protocol-relative URLs get https."""
    if href.startswith("//"):
        return f"https:{href}"
    if not base_url:
        return href
    return urljoin(base_url, href)
