"""The shared Masonry adapter: one algorithm, configured per site."""

from __future__ import annotations

import logging
from functools import partial
from typing import Optional, Protocol, Tuple, Union

from .detail import DetailResolver
from .errors import UnsupportedOperation
from .facet_cache import FacetCache, VocabularySource, parse_input_vocabulary
from .filters import FilterGroup, header, select, separator, vocabulary_or_hint
from .listing import parse_listing
from .models import (
    ChapterRef,
    ContentDetail,
    ContentKind,
    ContentRef,
    FacetKind,
    FacetOption,
    ImageRef,
    ListingPage,
    RequestSpec,
    SearchFacets,
)
from .pages import extract_pages
from .settings import facet_max_attempts
from .site_profiles import MODEL_TAG_LABEL_PREFIX, SiteProfile
from .transport import HtmlDocument, Transport
from .url_strategy import SEARCH_KIND_PARTS, UrlStrategy

logger = logging.getLogger(__name__)

ChapterLike = Union[ChapterRef, str]


class CatalogSource(Protocol):
    """Operations a host application invokes on any catalog adapter."""

    @property
    def name(self) -> str:
        ...

    async def list_popular(self, page: int) -> ListingPage:
        ...

    async def list_latest(self, page: int) -> ListingPage:
        ...

    async def search(self, page: int, facets: Optional[SearchFacets] = None) -> ListingPage:
        ...

    async def fetch_detail(self, ref: ContentRef) -> ContentDetail:
        ...

    async def fetch_chapters(self, ref: ContentRef) -> Tuple[ChapterRef, ...]:
        ...

    async def fetch_pages(self, chapter: ChapterLike) -> Tuple[ImageRef, ...]:
        ...

    def get_filter_list(self, current: Optional[SearchFacets] = None) -> Tuple[FilterGroup, ...]:
        ...


SEARCH_TYPE_OPTIONS = (
    FacetOption("Galleries", SEARCH_KIND_PARTS[ContentKind.GALLERY]),
    FacetOption("Models", SEARCH_KIND_PARTS[ContentKind.MODEL]),
)
SORT_OPTIONS = (
    FacetOption("Newest", "newest"),
    FacetOption("Popular", "popular"),
    FacetOption("Trending", "trending"),
)


def chapter_path(chapter: ChapterLike) -> str:
    return chapter.reference if isinstance(chapter, ChapterRef) else chapter


class MasonrySource:
    """Catalog adapter for one Masonry-family site."""

    def __init__(
        self,
        profile: SiteProfile,
        transport: Transport,
        *,
        max_facet_attempts: Optional[int] = None,
    ) -> None:
        self.profile = profile
        self.transport = transport
        self.urls = UrlStrategy(profile)
        self.details = DetailResolver(profile, transport)
        self.facets = FacetCache(
            transport,
            {
                FacetKind.TAG: VocabularySource(
                    url_factory=lambda: profile.base_url + profile.tag_vocabulary_path,
                    parse=partial(parse_input_vocabulary, selector=profile.tag_vocabulary_selector),
                    headers=self.urls.headers,
                ),
                FacetKind.MODEL_TAG: VocabularySource(
                    url_factory=lambda: profile.base_url + profile.model_tag_vocabulary_path,
                    parse=partial(
                        parse_input_vocabulary,
                        selector=profile.model_tag_vocabulary_selector,
                        label_prefix=MODEL_TAG_LABEL_PREFIX,
                    ),
                    headers=self.urls.headers,
                ),
            },
            max_attempts=max_facet_attempts if max_facet_attempts is not None else facet_max_attempts(),
        )

    @property
    def name(self) -> str:
        return self.profile.name

    async def _listing(self, spec: RequestSpec) -> ListingPage:
        # Vocabularies show up in the next filter list, not this result.
        self.facets.ensure_all()
        document = await self.transport.fetch(spec.url, spec.headers)
        page = parse_listing(document, spec.kind, self.profile)
        logger.debug("%s: %d %s items from %s", self.profile.key, len(page.items), spec.kind.value, spec.url)
        return page

    async def list_popular(self, page: int) -> ListingPage:
        return await self._listing(self.urls.popular(page))

    async def list_latest(self, page: int) -> ListingPage:
        return await self._listing(self.urls.latest(page))

    async def search(self, page: int, facets: Optional[SearchFacets] = None) -> ListingPage:
        return await self._listing(self.urls.resolve(page, facets))

    async def fetch_detail(self, ref: ContentRef) -> ContentDetail:
        return await self.details.fetch_detail(ref)

    async def fetch_chapters(self, ref: ContentRef) -> Tuple[ChapterRef, ...]:
        return await self.details.fetch_chapters(ref)

    async def fetch_pages(self, chapter: ChapterLike) -> Tuple[ImageRef, ...]:
        url = self.profile.base_url + chapter_path(chapter)
        document = await self.transport.fetch(url, self.urls.headers)
        return extract_pages(document, self.profile.page_selector)

    def get_filter_list(self, current: Optional[SearchFacets] = None) -> Tuple[FilterGroup, ...]:
        """Filter groups built from the cached vocabularies.

        Missing vocabularies are scheduled on the running event loop. Called
        outside one, nothing is fetched and the hint groups stay.
        """

        current = current or SearchFacets()
        tags = self.facets.ensure_vocabulary(FacetKind.TAG)
        model_tags = self.facets.ensure_vocabulary(FacetKind.MODEL_TAG)
        return (
            header("Other filters are ignored when doing text search"),
            select("Search type", SEARCH_TYPE_OPTIONS, SEARCH_KIND_PARTS[current.search_kind]),
            separator(),
            header("Some sources might not support Trending"),
            select("Sort by", SORT_OPTIONS, current.sort.value),
            separator(),
            vocabulary_or_hint("Tags", tags, self._hint(FacetKind.TAG, "tags"), current.selected_tags),
            header(
                "Model filters are ignored when Tags filter is selected.\n"
                "Trending is supported if only 1 Model's tag is selected."
            ),
            vocabulary_or_hint(
                "Model tags",
                model_tags,
                self._hint(FacetKind.MODEL_TAG, "Model tags"),
                current.selected_model_tags[:1],
            ),
        )

    def _hint(self, kind: FacetKind, label: str) -> str:
        if self.facets.is_exhausted(kind):
            return f"Could not load {label}"
        return f"Press 'reset' to attempt to load {label}"

    def parse_chapter_list(self, document: HtmlDocument):
        raise UnsupportedOperation("parse_chapter_list")

    def image_url_parse(self, document: HtmlDocument):
        raise UnsupportedOperation("image_url_parse")


__all__ = [
    "CatalogSource",
    "MasonrySource",
    "SEARCH_TYPE_OPTIONS",
    "SORT_OPTIONS",
    "chapter_path",
]
