"""Per-site configuration for the Masonry family of gallery sites.

Every site in the family shares one layout and one adapter; what differs is
captured here as data: base URL, selectors and capability flags. Which sort
orders are page-addressable on which channel was discovered empirically, so
the table is meant to be re-checked against live sites with
``masonry_catalog.tools.fixture_refresher``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from .models import SortMode

# Channels
CH_UPDATES = "updates"
CH_MODELS = "models"
CH_ARCHIVE = "archive"
CH_TAG = "tag"
CH_MODEL_TAG = "model-tag"
CH_SEARCH = "search"
CH_ROOT = "root"

SortPaths = Mapping[str, Mapping[SortMode, str]]

# Sort orders with a sort/<part>/mpage/<n>/ form per channel. Anything absent
# falls back to the channel's plain page/<n>/ listing.
DEFAULT_SORT_PATHS: Dict[str, Dict[SortMode, str]] = {
    CH_TAG: {SortMode.POPULAR: "popular"},
    CH_MODEL_TAG: {SortMode.POPULAR: "popular"},
    CH_UPDATES: {SortMode.NEWEST: "newest", SortMode.POPULAR: "popular"},
    CH_MODELS: {SortMode.NEWEST: "latest", SortMode.POPULAR: "popular"},
}

# Selectors
LISTING_ITEM_SELECTOR = ".list-gallery:not(.static) figure"
# The popular feed has a single page; its "more" link stands in for pagination.
NEXT_PAGE_SELECTOR = ".pagination-a li.next, main#content .link-btn a.overlay-a[href='/updates/sort/popular/']"
VIDEO_PATH_PATTERN = r"/video/"
PAGE_SELECTOR = ".list-gallery a[href^='https://cdn.']"
TAG_VOCABULARY_SELECTOR = "#filter-a span[data-placeholder='Tags'] span:has(> input)"
MODEL_TAG_VOCABULARY_SELECTOR = "#filter-b span[data-placeholder='Tags'] span:has(> input)"
MODEL_TAG_LABEL_PREFIX = "M: "


def _merge_sort_paths(extra: Mapping[str, Mapping[SortMode, str]]) -> Dict[str, Dict[SortMode, str]]:
    merged = {channel: dict(parts) for channel, parts in DEFAULT_SORT_PATHS.items()}
    for channel, parts in extra.items():
        merged.setdefault(channel, {}).update(parts)
    return merged


@dataclass(frozen=True)
class SiteProfile:
    """Selectors and capability flags consumed by the shared Masonry adapter."""

    key: str
    name: str
    base_url: str
    lang: str = "en"
    # Archive listing is inconsistent on some sites; use updates/sort/newest instead.
    alternative_latest: bool = False
    # Popular: root for page 1, updates/sort/popular/ for page 2, filter endpoint after.
    split_popular_feed: bool = True
    sort_paths: SortPaths = field(default_factory=lambda: _merge_sort_paths({}))
    listing_item_selector: str = LISTING_ITEM_SELECTOR
    next_page_selector: str = NEXT_PAGE_SELECTOR
    video_path_pattern: str = VIDEO_PATH_PATTERN
    page_selector: str = PAGE_SELECTOR
    tag_vocabulary_path: str = "/updates/"
    tag_vocabulary_selector: str = TAG_VOCABULARY_SELECTOR
    model_tag_vocabulary_path: str = "/models/"
    model_tag_vocabulary_selector: str = MODEL_TAG_VOCABULARY_SELECTOR

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def sort_part(self, channel: str, sort: SortMode) -> Optional[str]:
        return (self.sort_paths.get(channel) or {}).get(sort)

    def with_overrides(self, **changes) -> "SiteProfile":
        return replace(self, **changes)


def masonry_site(
    key: str,
    name: str,
    base_url: str,
    *,
    extra_sort_paths: Optional[Mapping[str, Mapping[SortMode, str]]] = None,
    **flags,
) -> SiteProfile:
    return SiteProfile(
        key=key,
        name=name,
        base_url=base_url,
        sort_paths=_merge_sort_paths(extra_sort_paths or {}),
        **flags,
    )


_TRENDING = {SortMode.TRENDING: "trending"}

SITES: Dict[str, SiteProfile] = {
    profile.key: profile
    for profile in (
        masonry_site(
            "elitebabes",
            "Elite Babes",
            "https://www.elitebabes.com",
            extra_sort_paths={
                CH_TAG: _TRENDING,
                CH_MODEL_TAG: _TRENDING,
                CH_UPDATES: _TRENDING,
                CH_MODELS: _TRENDING,
            },
        ),
        masonry_site("femjoyhunter", "Femjoy Hunter", "https://www.femjoyhunter.com"),
        masonry_site("ftvhunter", "FTV Hunter", "https://www.ftvhunter.com"),
        masonry_site("joymiihub", "Joymii Hub", "https://www.joymiihub.com", alternative_latest=True),
        masonry_site(
            "metarthunter",
            "Metart Hunter",
            "https://www.metarthunter.com",
            extra_sort_paths={CH_UPDATES: _TRENDING},
        ),
        masonry_site("playmatehunter", "Playmate Hunter", "https://pmatehunter.com"),
        masonry_site("xarthunter", "Xart Hunter", "https://www.xarthunter.com", alternative_latest=True),
    )
}


def get_site(key: str) -> SiteProfile:
    try:
        return SITES[key.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(SITES))
        raise ValueError(f"Unknown site {key!r}; known sites: {known}") from None


__all__ = [
    "CH_UPDATES",
    "CH_MODELS",
    "CH_ARCHIVE",
    "CH_TAG",
    "CH_MODEL_TAG",
    "CH_SEARCH",
    "CH_ROOT",
    "DEFAULT_SORT_PATHS",
    "MODEL_TAG_LABEL_PREFIX",
    "SiteProfile",
    "SITES",
    "masonry_site",
    "get_site",
]
