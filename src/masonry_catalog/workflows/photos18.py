"""Adapter for Photos18, a query-parameter gallery site.

Unlike the Masonry family, every listing here is one endpoint driven by
``?sort=&page=&q=&category_id=`` parameters, so there is no URL-scheme
juggling. The interesting parts are the two vocabularies: categories are read
from the sidebar of any listing page that was fetched anyway, keywords need a
separate page and go through the facet cache like Masonry tags. A stored
preference picks the Traditional (default path) or Simplified (``/zh-hans``)
Chinese variant of listing URLs.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import unquote, urlencode

from .detail import GALLERY_CHAPTER_NAME
from .errors import ParseFailure, UnsupportedOperation
from .facet_cache import FacetCache, Vocabulary, VocabularySource
from .filters import FilterGroup, select, vocabulary_or_hint
from .html_utils import abs_url, has_class, own_text, select_required, text_of
from .masonry_source import ChapterLike, chapter_path
from .models import (
    ChapterRef,
    ContentDetail,
    ContentKind,
    ContentRef,
    ContentStatus,
    ContentSummary,
    FacetKind,
    FacetOption,
    ImageRef,
    ListingPage,
    SearchFacets,
    SortMode,
    UpdatePolicy,
)
from .pages import extract_pages
from .preferences import MemoryPreferenceStore, PreferenceStore
from .settings import facet_max_attempts
from .transport import HtmlDocument, Transport
from .url_strategy import check_page

logger = logging.getLogger(__name__)

BASE_URL = "https://www.photos18.com"
SIMPLIFIED_PREFIX = "/zh-hans"
PREF_TRADITIONAL = "ZH_HANT"

SORT_VALUES: Dict[SortMode, str] = {
    SortMode.NEWEST: "created",
    SortMode.POPULAR: "hits",
    SortMode.TRENDING: "views",
    SortMode.RECOMMENDED: "score",
    SortMode.BEST: "likes",
}
SORT_OPTIONS = (
    FacetOption("Latest", SortMode.NEWEST.value),
    FacetOption("Popular", SortMode.POPULAR.value),
    FacetOption("Trend", SortMode.TRENDING.value),
    FacetOption("Recommended", SortMode.RECOMMENDED.value),
    FacetOption("Best", SortMode.BEST.value),
)
DEFAULT_FILTER_SORT = SortMode.TRENDING
ALL_OPTION = FacetOption("All", "")


def strip_lang(path: str) -> str:
    return path[len(SIMPLIFIED_PREFIX):] if path.startswith(SIMPLIFIED_PREFIX) else path


def parse_categories(document: HtmlDocument) -> Vocabulary:
    sidebar = select_required(document.soup, "#w3", document.url)
    options: List[FacetOption] = [ALL_OPTION]
    for item in sidebar.find_all(recursive=False):
        anchor = item.select_one("a")
        href = anchor.get("href") if anchor is not None else None
        if not isinstance(href, str):
            continue
        label = (text_of(item) or "").split(" (")[0]
        options.append(FacetOption(label, href.rstrip("/").rsplit("/", 1)[-1]))
    if len(options) == 1:
        raise ParseFailure(document.url, "#w3 > * a")
    return tuple(options)


def parse_keywords(document: HtmlDocument) -> Vocabulary:
    selector = "div.content form#keywordForm ~ a.tag"
    options: List[FacetOption] = [ALL_OPTION]
    for anchor in document.select(selector):
        href = anchor.get("href")
        if not isinstance(href, str):
            continue
        options.append(FacetOption(text_of(anchor) or "", unquote(href.rsplit("/", 1)[-1])))
    if len(options) == 1:
        raise ParseFailure(document.url, selector)
    return tuple(options)


def parse_listing(document: HtmlDocument, base_url: str = BASE_URL) -> ListingPage:
    container = select_required(document.soup, "#videos", document.url)
    items: List[ContentSummary] = []
    for card in container.find_all(recursive=False):
        body = card.select_one(".card-body")
        link = body.select_one("a") if body is not None else None
        image = card.select_one("img")
        if link is None or image is None:
            raise ParseFailure(document.url, "#videos > * .card-body a")
        src = image.get("src")
        items.append(
            ContentSummary(
                reference=strip_lang(str(link.get("href") or "")),
                title=own_text(link) or "",
                thumbnail_url=abs_url(base_url, src) if isinstance(src, str) else None,
                tagline=own_text(body.select_one("label")),
                kind=ContentKind.GALLERY,
            )
        )
    next_control = document.select_one(".next")
    has_more = next_control is not None and not has_class(next_control, "disabled")
    return ListingPage(tuple(items), has_more)


class Photos18Source:
    def __init__(
        self,
        transport: Transport,
        preferences: Optional[PreferenceStore] = None,
        *,
        base_url: str = BASE_URL,
        max_facet_attempts: Optional[int] = None,
    ) -> None:
        self.transport = transport
        self.preferences = preferences or MemoryPreferenceStore()
        self.base_url = base_url.rstrip("/")
        self.facets = FacetCache(
            transport,
            {
                FacetKind.KEYWORD: VocabularySource(
                    url_factory=lambda: f"{self.base_url_with_lang}/node/keywords",
                    parse=parse_keywords,
                    headers=self.headers,
                ),
            },
            max_attempts=max_facet_attempts if max_facet_attempts is not None else facet_max_attempts(),
        )

    name = "Photos18"

    @property
    def headers(self) -> Dict[str, str]:
        return {"Referer": self.base_url}

    @property
    def use_traditional(self) -> bool:
        return self.preferences.get_bool(PREF_TRADITIONAL, False)

    @property
    def base_url_with_lang(self) -> str:
        return self.base_url if self.use_traditional else f"{self.base_url}{SIMPLIFIED_PREFIX}"

    def _listing_url(self, params: List[Tuple[str, str]]) -> str:
        return f"{self.base_url_with_lang}?{urlencode(params)}"

    def popular_url(self, page: int) -> str:
        return self._listing_url([("sort", SORT_VALUES[SortMode.POPULAR]), ("page", str(check_page(page)))])

    def latest_url(self, page: int) -> str:
        return self._listing_url([("sort", SORT_VALUES[SortMode.NEWEST]), ("page", str(check_page(page)))])

    def search_url(self, page: int, facets: Optional[SearchFacets] = None) -> str:
        # With no filters picked, search sorts the way the filter list shows.
        sort = facets.sort if facets is not None else DEFAULT_FILTER_SORT
        facets = facets or SearchFacets()
        # A typed query wins over a picked keyword; both travel as q.
        query = facets.query.strip() or (facets.keyword or "")
        return self._listing_url(
            [
                ("q", query),
                ("page", str(check_page(page))),
                ("sort", SORT_VALUES[sort]),
                ("category_id", facets.category or ""),
            ]
        )

    async def _listing(self, url: str) -> ListingPage:
        self.facets.ensure_vocabulary(FacetKind.KEYWORD)
        document = await self.transport.fetch(url, self.headers)
        self.facets.populate_from(FacetKind.CATEGORY, document, parse_categories)
        return parse_listing(document, self.base_url)

    async def list_popular(self, page: int) -> ListingPage:
        return await self._listing(self.popular_url(page))

    async def list_latest(self, page: int) -> ListingPage:
        return await self._listing(self.latest_url(page))

    async def search(self, page: int, facets: Optional[SearchFacets] = None) -> ListingPage:
        return await self._listing(self.search_url(page, facets))

    async def fetch_detail(self, ref: ContentRef) -> ContentDetail:
        document = await self.transport.fetch(self.base_url + ref.path, self.headers)
        holder = select_required(document.soup, "div#content div.imgHolder", document.url)
        image = select_required(holder, "img", document.url)
        src = image.get("src")
        return ContentDetail(
            reference=ref.path,
            thumbnail_url=abs_url(document.url, src) if isinstance(src, str) else None,
            status=ContentStatus.COMPLETED,
            update_policy=UpdatePolicy.FETCH_ONCE,
        )

    async def fetch_chapters(self, ref: ContentRef) -> Tuple[ChapterRef, ...]:
        return (ChapterRef(reference=ref.path, name=GALLERY_CHAPTER_NAME, order=1.0),)

    async def fetch_pages(self, chapter: ChapterLike) -> Tuple[ImageRef, ...]:
        document = await self.transport.fetch(self.base_url + chapter_path(chapter), self.headers)
        select_required(document.soup, "#content", document.url)
        return extract_pages(document, "#content img")

    def get_filter_list(self, current: Optional[SearchFacets] = None) -> Tuple[FilterGroup, ...]:
        """Sort, category and keyword groups; keywords load only under a running event loop."""
        keywords = self.facets.ensure_vocabulary(FacetKind.KEYWORD)
        categories = self.facets.vocabulary(FacetKind.CATEGORY)
        sort = current.sort if current is not None else DEFAULT_FILTER_SORT
        return (
            select("Sort by", SORT_OPTIONS, sort.value),
            vocabulary_or_hint(
                "Category",
                categories,
                "Tap 'Reset' to load categories",
                [current.category] if current is not None and current.category else [],
                single=True,
            ),
            vocabulary_or_hint(
                "Keyword",
                keywords,
                "Tap 'Reset' to load keywords",
                [current.keyword] if current is not None and current.keyword else [],
                single=True,
            ),
        )

    def parse_chapter_list(self, document: HtmlDocument):
        raise UnsupportedOperation("parse_chapter_list")

    def image_url_parse(self, document: HtmlDocument):
        raise UnsupportedOperation("image_url_parse")


__all__ = [
    "BASE_URL",
    "PREF_TRADITIONAL",
    "SORT_VALUES",
    "Photos18Source",
    "parse_categories",
    "parse_keywords",
    "parse_listing",
    "strip_lang",
]
