"""Request URL selection for Masonry sites.

A Masonry site exposes the same listing through several URL schemes
(``/``, ``/archive/page/N/``, ``/updates/sort/<sort>/mpage/N/``,
``/updates/sort/filter/.../mpage/N/``, ``/tag/<t>/page/N/`` ...) that are not
interchangeable: some ignore paging, some drift out of sync, some only exist
for a few sorts. :class:`UrlStrategy` picks one deterministic URL for every
(page, facets) combination and never fails for a valid page number.

Notes on the unfiltered feeds:

* ``/updates/sort/popular/`` is a single page, so popular browsing uses the
  home page first, then that page, then the paged filter endpoint
  (``mpage`` offset by two).
* ``/archive/page/N/`` is sorted by post id and is the cheapest stable
  newest-first listing; ``/updates/sort/newest/mpage/N/`` is sorted by date and
  is the fallback for sites whose archive is unusable.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote

from .models import ContentKind, RequestSpec, SearchFacets, SortMode
from .site_profiles import (
    CH_ARCHIVE,
    CH_MODEL_TAG,
    CH_MODELS,
    CH_ROOT,
    CH_SEARCH,
    CH_TAG,
    CH_UPDATES,
    SiteProfile,
)

logger = logging.getLogger(__name__)

SEARCH_KIND_PARTS = {
    ContentKind.GALLERY: "post",
    ContentKind.MODEL: "model",
}

POPULAR_FILTER_PATH = "updates/sort/filter/ord/popular/content/0/quality/0/tags/0"


def _segment(value: str) -> str:
    return quote(value.strip(), safe="")


def check_page(page: int) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValueError(f"page must be a positive integer, got {page!r}")
    return page


class UrlStrategy:
    """Pure, total mapping from (page, facets) to a RequestSpec for one site."""

    def __init__(self, profile: SiteProfile) -> None:
        self.profile = profile

    @property
    def headers(self) -> Dict[str, str]:
        return {"Referer": f"{self.profile.base_url}/"}

    def resolve(self, page: int, facets: Optional[SearchFacets] = None) -> RequestSpec:
        check_page(page)
        facets = facets or SearchFacets()

        if facets.has_query:
            path, kind, channel = self._search_path(page, facets)
        elif facets.selected_tags:
            joined = "+".join(_segment(tag) for tag in facets.selected_tags)
            path = f"{CH_TAG}/{joined}/{self._paging(CH_TAG, facets.sort, page)}"
            kind, channel = ContentKind.GALLERY, CH_TAG
        elif facets.selected_model_tags:
            # model-tag/ only takes a single value
            value = _segment(facets.selected_model_tags[0])
            path = f"{CH_MODEL_TAG}/{value}/{self._paging(CH_MODEL_TAG, facets.sort, page)}"
            kind, channel = ContentKind.MODEL, CH_MODEL_TAG
        else:
            path, kind, channel = self._browse_path(page, facets)

        url = f"{self.profile.base_url}/{path}"
        logger.debug("resolved page=%d facets=%s -> %s", page, facets, url)
        return RequestSpec(url=url, kind=kind, channel=channel, headers=self.headers)

    def popular(self, page: int) -> RequestSpec:
        return self.resolve(page, SearchFacets(sort=SortMode.POPULAR))

    def latest(self, page: int) -> RequestSpec:
        return self.resolve(page, SearchFacets(sort=SortMode.NEWEST))

    def _search_path(self, page: int, facets: SearchFacets) -> Tuple[str, ContentKind, str]:
        kind_part = SEARCH_KIND_PARTS[facets.search_kind]
        path = f"{CH_SEARCH}/{kind_part}/{_segment(facets.query)}/mpage/{page}/"
        return path, facets.search_kind, CH_SEARCH

    def _paging(self, channel: str, sort: SortMode, page: int) -> str:
        """sort/<part>/mpage/N/ when the channel can sort that way, else page/N/."""

        part = self.profile.sort_part(channel, sort)
        if part:
            return f"sort/{part}/mpage/{page}/"
        return f"page/{page}/"

    def _browse_path(self, page: int, facets: SearchFacets) -> Tuple[str, ContentKind, str]:
        if facets.search_kind is ContentKind.MODEL:
            return f"{CH_MODELS}/{self._paging(CH_MODELS, facets.sort, page)}", ContentKind.MODEL, CH_MODELS

        sort = facets.sort
        if sort is SortMode.POPULAR:
            return self._popular_path(page), ContentKind.GALLERY, CH_UPDATES if page > 1 else CH_ROOT
        if sort is SortMode.NEWEST:
            if self.profile.alternative_latest:
                return f"{CH_UPDATES}/sort/newest/mpage/{page}/", ContentKind.GALLERY, CH_UPDATES
            return f"{CH_ARCHIVE}/page/{page}/", ContentKind.GALLERY, CH_ARCHIVE
        # Trending is not available through site search; it and the remaining
        # sorts go through updates/ with the channel's paging rule.
        return f"{CH_UPDATES}/{self._paging(CH_UPDATES, sort, page)}", ContentKind.GALLERY, CH_UPDATES

    def _popular_path(self, page: int) -> str:
        if not self.profile.split_popular_feed:
            return f"{POPULAR_FILTER_PATH}/mpage/{page}/"
        if page == 1:
            return ""
        if page == 2:
            return f"{CH_UPDATES}/sort/popular/"
        return f"{POPULAR_FILTER_PATH}/mpage/{page - 2}/"


__all__ = [
    "UrlStrategy",
    "SEARCH_KIND_PARTS",
    "POPULAR_FILTER_PATH",
    "check_page",
]
