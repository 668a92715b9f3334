"""Structural context around an ``<img>`` for alt-text suggestions.

Uses BeautifulSoup with the stdlib ``html.parser`` backend so no native
parser is required.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from mediaquery.models.analysis import Heading, PageContext

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_WHITESPACE = re.compile(r"\s+")
_ROOT_NAMES = {"body", "[document]"}

# Class-name fragments checked before tag names, in priority order.
_SECTION_CLASSES = (
    ("hero", "hero"),
    ("header", "header"),
    ("footer", "footer"),
    ("sidebar", "sidebar"),
    ("nav", "navigation"),
)
_SECTION_TAGS = {
    "header": "header",
    "footer": "footer",
    "nav": "navigation",
    "aside": "sidebar",
    "main": "main-content",
}


def find_images(html: str, image_url: str) -> list[Tag]:
    """Return ``<img>`` elements whose ``src`` or ``data-src`` contains *image_url*."""
    soup = BeautifulSoup(html, "html.parser")
    matches = []
    for img in soup.find_all("img"):
        src = img.get("src") or ""
        data_src = img.get("data-src") or ""
        if image_url in src or image_url in data_src:
            matches.append(img)
    return matches


def surrounding_text(element: Tag, max_length: int = 200) -> str:
    parent = element.parent
    if parent is None:
        return ""
    cleaned = _WHITESPACE.sub(" ", parent.get_text(" ")).strip()
    if len(cleaned) <= max_length:
        return cleaned
    return f"{cleaned[:max_length]}..."


def nearest_heading(element: Tag) -> Heading | None:
    """Closest heading found by searching each ancestor's subtree, stopping below ``<body>``."""
    current: Tag | None = element
    while current is not None:
        for tag in _HEADING_TAGS:
            heading = current.find(tag)
            if heading is not None:
                return Heading(tag=tag.upper(), text=heading.get_text(" ", strip=True))
        current = current.parent
        if current is None or current.name in _ROOT_NAMES:
            break
    return None


def section_context(element: Tag) -> str:
    current: Tag | None = element
    while current is not None and current.name not in _ROOT_NAMES:
        classes = " ".join(current.get("class") or [])
        for fragment, section in _SECTION_CLASSES:
            if fragment in classes:
                return section
        if current.name in _SECTION_TAGS:
            return _SECTION_TAGS[current.name]
        current = current.parent
    return "body"


def build_page_context(element: Tag) -> PageContext:
    parent = element.parent
    return PageContext(
        surrounding_text=surrounding_text(element),
        parent_element=parent.name if parent is not None and parent.name != "[document]" else "unknown",
        nearest_heading=nearest_heading(element),
        section_context=section_context(element),
        current_alt=element.get("alt"),
    )
