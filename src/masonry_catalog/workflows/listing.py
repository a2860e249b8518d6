"""Listing page parsing for Masonry sites (galleries, models, model chapters)."""

from __future__ import annotations

import logging
import re
from typing import List, Tuple

from bs4 import Tag

from .errors import ParseFailure
from .html_utils import abs_url, has_class, img_attr, path_without_domain, text_of
from .html_normalize import clean_text
from .models import ChapterRef, ContentKind, ContentSummary, ListingPage
from .site_profiles import SiteProfile
from .transport import HtmlDocument

logger = logging.getLogger(__name__)

# Caption of a gallery inside a model's listing; unlike the anchor title it
# does not repeat the model's name.
MODEL_CHAPTER_CAPTION_SELECTOR = ".img-overlay p a"


def _is_video(element: Tag, pattern: "re.Pattern[str]") -> bool:
    for anchor in element.select("a[href]"):
        href = anchor.get("href")
        if isinstance(href, str) and pattern.search(href):
            return True
    return False


def listing_items(document: HtmlDocument, profile: SiteProfile) -> List[Tag]:
    """Listing elements of a page, minus video entries."""

    pattern = re.compile(profile.video_path_pattern)
    items = []
    for element in document.select(profile.listing_item_selector):
        if _is_video(element, pattern):
            logger.debug("skipping video entry in %s", document.url)
            continue
        items.append(element)
    return items


def has_next_page(document: HtmlDocument, selector: str) -> bool:
    control = document.select_one(selector)
    return control is not None and not has_class(control, "disabled")


def gallery_from_element(element: Tag, document: HtmlDocument) -> ContentSummary:
    anchor = element.select_one("a")
    if anchor is None:
        raise ParseFailure(document.url, "a")
    href = abs_url(document.url, anchor.get("href"))
    if not href:
        raise ParseFailure(document.url, "a[href]")
    title = clean_text(anchor.get("title")) or text_of(anchor) or ""
    image = element.select_one("img")
    return ContentSummary(
        reference=path_without_domain(href),
        title=title,
        thumbnail_url=img_attr(image, document.url) if image is not None else None,
        tagline=text_of(element.select_one("label")),
        kind=ContentKind.GALLERY,
    )


def model_from_element(element: Tag, document: HtmlDocument, site_name: str) -> ContentSummary:
    anchor = element.select_one("a:has(img)")
    if anchor is None:
        raise ParseFailure(document.url, "a:has(img)")
    image = anchor.select_one("img")
    href = abs_url(document.url, anchor.get("href"))
    if image is None or not href:
        raise ParseFailure(document.url, "a:has(img)[href]")
    name = clean_text(image.get("alt"))
    return ContentSummary(
        reference=path_without_domain(href),
        # Same model names appear on several sites of the family.
        title=f"{name} @{site_name}",
        thumbnail_url=img_attr(image, document.url),
        kind=ContentKind.MODEL,
        artist=name or None,
        author=site_name,
    )


def parse_listing(document: HtmlDocument, kind: ContentKind, profile: SiteProfile) -> ListingPage:
    """Summaries on a listing page and whether another page follows."""

    items: List[ContentSummary] = []
    for element in listing_items(document, profile):
        if kind is ContentKind.MODEL:
            items.append(model_from_element(element, document, profile.name))
        else:
            items.append(gallery_from_element(element, document))
    return ListingPage(tuple(items), has_next_page(document, profile.next_page_selector))


def chapter_from_element(element: Tag, document: HtmlDocument, order: float) -> ChapterRef:
    caption = element.select_one(MODEL_CHAPTER_CAPTION_SELECTOR)
    if caption is None:
        raise ParseFailure(document.url, MODEL_CHAPTER_CAPTION_SELECTOR)
    href = abs_url(document.url, caption.get("href"))
    if not href:
        raise ParseFailure(document.url, f"{MODEL_CHAPTER_CAPTION_SELECTOR}[href]")
    return ChapterRef(
        reference=path_without_domain(href),
        name=text_of(caption) or "",
        order=order,
    )


def parse_model_chapters(document: HtmlDocument, profile: SiteProfile) -> Tuple[ChapterRef, ...]:
    """One chapter per gallery on a model's latest-first listing.

    The newest gallery gets the highest order so hosts sorting by order keep
    the site's chronology.
    """

    elements = listing_items(document, profile)
    total = len(elements)
    return tuple(
        chapter_from_element(element, document, float(total - idx))
        for idx, element in enumerate(elements)
    )


__all__ = [
    "MODEL_CHAPTER_CAPTION_SELECTOR",
    "listing_items",
    "has_next_page",
    "gallery_from_element",
    "model_from_element",
    "parse_listing",
    "chapter_from_element",
    "parse_model_chapters",
]
