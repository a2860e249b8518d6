"""Detail and chapter resolution keyed by content kind.

Galleries are terminal: one detail fetch, never refreshed, and a single
synthetic chapter pointing back at the gallery itself. Models are live
profiles: their gallery set grows, so details are always refreshed and the
chapters come from a second request to the model's latest-first listing.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .html_utils import each_text, img_attr, select_required, text_of
from .listing import parse_model_chapters
from .models import (
    ChapterRef,
    ContentDetail,
    ContentKind,
    ContentRef,
    ContentStatus,
    UpdatePolicy,
)
from .site_profiles import MODEL_TAG_LABEL_PREFIX, SiteProfile
from .transport import HtmlDocument, Transport

logger = logging.getLogger(__name__)

GALLERY_CHAPTER_NAME = "Gallery"
# sort/latest gives the gallery captions (not descriptions) in release order.
MODEL_CHAPTERS_SUFFIX = "sort/latest/"


def _join(values: List[Optional[str]], sep: str = ", ") -> Optional[str]:
    kept = [v for v in values if v]
    return sep.join(kept) if kept else None


def parse_gallery_detail(document: HtmlDocument, reference: str) -> ContentDetail:
    title = text_of(select_required(document.soup, "header#top h1", document.url))
    artist = author = genre = None
    links = document.select_one("p.link-btn")
    if links is not None:
        artist = _join(each_text(links.select("a[href*='/model/']")))
        author = text_of(links.select_one("a"))
        genre = _join([author, artist, *each_text(links.select("a[href*='/tag/']"))])
    return ContentDetail(
        reference=reference,
        title=title,
        description=text_of(document.select_one("#content > p")),
        artist=artist,
        author=author,
        genre=genre,
        status=ContentStatus.COMPLETED,
        update_policy=UpdatePolicy.FETCH_ONCE,
    )


def parse_model_detail(document: HtmlDocument, reference: str, site_name: Optional[str] = None) -> ContentDetail:
    article = select_required(document.soup, "article.module-model", document.url)
    artist = text_of(article.select_one("h1"))
    header = article.select_one(".header-model")
    info = _join(each_text(header.select("ul.list-inline li")), " ") if header is not None else None
    more = _join(each_text(article.select("div.module-more ul li")), "\n")
    model_tags = each_text(document.select("article.module-model + p a[href*='/model-tag/']"))
    image = article.select_one("img")
    return ContentDetail(
        reference=reference,
        # Same form as the listing title.
        title=f"{artist} @{site_name}" if artist and site_name else artist,
        thumbnail_url=img_attr(image, document.url) if image is not None else None,
        description=_join([info, more], "\n"),
        artist=artist,
        genre=_join([artist, *(f"{MODEL_TAG_LABEL_PREFIX}{tag}" for tag in model_tags)]),
        status=ContentStatus.ONGOING,
        update_policy=UpdatePolicy.ALWAYS_REFRESH,
    )


class DetailResolver:
    """Fetches details and chapter lists for tagged content references."""

    def __init__(self, profile: SiteProfile, transport: Transport) -> None:
        self.profile = profile
        self.transport = transport

    @property
    def headers(self):
        return {"Referer": f"{self.profile.base_url}/"}

    def detail_url(self, ref: ContentRef) -> str:
        return self.profile.base_url + ref.path

    def model_chapters_url(self, ref: ContentRef) -> str:
        path = ref.path if ref.path.endswith("/") else f"{ref.path}/"
        return f"{self.profile.base_url}{path}{MODEL_CHAPTERS_SUFFIX}"

    async def fetch_detail(self, ref: ContentRef) -> ContentDetail:
        document = await self.transport.fetch(self.detail_url(ref), self.headers)
        if ref.kind is ContentKind.MODEL:
            return parse_model_detail(document, ref.path, self.profile.name)
        return parse_gallery_detail(document, ref.path)

    async def fetch_chapters(self, ref: ContentRef) -> Tuple[ChapterRef, ...]:
        if ref.kind is not ContentKind.MODEL:
            return (ChapterRef(reference=ref.path, name=GALLERY_CHAPTER_NAME, order=1.0),)
        document = await self.transport.fetch(self.model_chapters_url(ref), self.headers)
        chapters = parse_model_chapters(document, self.profile)
        logger.debug("model %s has %d galleries", ref.path, len(chapters))
        return chapters


__all__ = [
    "GALLERY_CHAPTER_NAME",
    "MODEL_CHAPTERS_SUFFIX",
    "parse_gallery_detail",
    "parse_model_detail",
    "DetailResolver",
]
