"""Element helpers shared by the listing, detail and page parsers."""

from __future__ import annotations

from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import Comment, NavigableString, Tag

from .errors import ParseFailure
from .html_normalize import clean_text

# Lazy-loading markup keeps a placeholder in src; the real asset lives in one
# of these, best first.
IMAGE_ATTRIBUTES = ("srcset", "data-cfsrc", "data-src", "data-lazy-src", "src")


def abs_url(base_url: str, href: Optional[str]) -> str:
    raw = (href or "").strip()
    if not raw:
        return ""
    return urljoin(base_url, raw)


def path_without_domain(url: str) -> str:
    """Return path + query + fragment of an absolute URL (``/`` when empty)."""

    p = urlparse(url)
    path = p.path or "/"
    return urlunparse(("", "", path, p.params, p.query, p.fragment))


def img_attr(element: Tag, base_url: str) -> Optional[str]:
    """Resolve the best image URL an element carries, or None."""

    for name in IMAGE_ATTRIBUTES:
        value = element.get(name)
        if not isinstance(value, str) or not value.strip():
            continue
        if name == "srcset":
            value = value.strip().split()[0].rstrip(",")
        return abs_url(base_url, value)
    return None


def element_url(element: Tag, base_url: str) -> Optional[str]:
    """Absolute href for anchors, image attribute fallback for everything else."""

    href = element.get("href")
    if isinstance(href, str) and href.strip():
        return abs_url(base_url, href)
    return img_attr(element, base_url)


def select_required(root: Tag, selector: str, url: str) -> Tag:
    found = root.select_one(selector)
    if found is None:
        raise ParseFailure(url, selector)
    return found


def text_of(element: Optional[Tag]) -> Optional[str]:
    if element is None:
        return None
    text = clean_text(element.get_text(" ", strip=True))
    return text or None


def own_text(element: Optional[Tag]) -> Optional[str]:
    """Text of the element's direct string children, ignoring nested tags."""

    if element is None:
        return None
    parts = [
        str(child)
        for child in element.children
        if isinstance(child, NavigableString) and not isinstance(child, Comment)
    ]
    text = clean_text(" ".join(parts))
    return text or None


def each_text(elements: Iterable[Tag]) -> List[str]:
    texts: List[str] = []
    for element in elements:
        text = text_of(element)
        if text:
            texts.append(text)
    return texts


def has_class(element: Tag, name: str) -> bool:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return name in classes


__all__ = [
    "IMAGE_ATTRIBUTES",
    "abs_url",
    "path_without_domain",
    "img_attr",
    "element_url",
    "select_required",
    "text_of",
    "own_text",
    "each_text",
    "has_class",
]
