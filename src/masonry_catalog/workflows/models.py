"""Data model for catalog listings, details, chapters and pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.keys import (
    K_ARTIST,
    K_AUTHOR,
    K_CHANNEL,
    K_DESCRIPTION,
    K_GENRE,
    K_HAS_MORE,
    K_HEADERS,
    K_INDEX,
    K_ITEMS,
    K_KIND,
    K_LABEL,
    K_NAME,
    K_ORDER,
    K_REFERENCE,
    K_STATUS,
    K_TAGLINE,
    K_THUMBNAIL,
    K_TITLE,
    K_UPDATE_POLICY,
    K_URL,
    K_VALUE,
)


class ContentKind(str, Enum):
    GALLERY = "gallery"
    MODEL = "model"


class ContentStatus(str, Enum):
    COMPLETED = "completed"
    ONGOING = "ongoing"


class UpdatePolicy(str, Enum):
    FETCH_ONCE = "fetch_once"
    ALWAYS_REFRESH = "always_refresh"


class SortMode(str, Enum):
    TRENDING = "trending"
    NEWEST = "newest"
    POPULAR = "popular"
    RECOMMENDED = "recommended"
    BEST = "best"


class FacetKind(str, Enum):
    TAG = "tag"
    MODEL_TAG = "model_tag"
    CATEGORY = "category"
    KEYWORD = "keyword"


@dataclass(frozen=True, slots=True)
class ContentRef:
    """Domain-relative path tagged with the kind of content it points at."""

    path: str
    kind: ContentKind = ContentKind.GALLERY


@dataclass(frozen=True, slots=True)
class ContentSummary:
    reference: str
    title: str
    thumbnail_url: Optional[str] = None
    tagline: Optional[str] = None
    kind: ContentKind = ContentKind.GALLERY
    artist: Optional[str] = None
    author: Optional[str] = None

    @property
    def ref(self) -> ContentRef:
        return ContentRef(self.reference, self.kind)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            K_REFERENCE: self.reference,
            K_KIND: self.kind.value,
            K_TITLE: self.title,
            K_THUMBNAIL: self.thumbnail_url,
        }
        if self.tagline:
            payload[K_TAGLINE] = self.tagline
        if self.artist:
            payload[K_ARTIST] = self.artist
        if self.author:
            payload[K_AUTHOR] = self.author
        return payload


@dataclass(frozen=True, slots=True)
class ListingPage:
    items: Tuple[ContentSummary, ...]
    has_more: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_ITEMS: [item.to_dict() for item in self.items],
            K_HAS_MORE: self.has_more,
        }


@dataclass(frozen=True, slots=True)
class ContentDetail:
    reference: str
    status: ContentStatus
    update_policy: UpdatePolicy
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    description: Optional[str] = None
    artist: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_REFERENCE: self.reference,
            K_TITLE: self.title,
            K_THUMBNAIL: self.thumbnail_url,
            K_DESCRIPTION: self.description,
            K_ARTIST: self.artist,
            K_AUTHOR: self.author,
            K_GENRE: self.genre,
            K_STATUS: self.status.value,
            K_UPDATE_POLICY: self.update_policy.value,
        }


@dataclass(frozen=True, slots=True)
class ChapterRef:
    reference: str
    name: str
    order: float = -1.0

    def to_dict(self) -> Dict[str, Any]:
        return {K_REFERENCE: self.reference, K_NAME: self.name, K_ORDER: self.order}


@dataclass(frozen=True, slots=True)
class ImageRef:
    index: int
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {K_INDEX: self.index, K_URL: self.url}


@dataclass(frozen=True, slots=True)
class FacetOption:
    label: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {K_LABEL: self.label, K_VALUE: self.value}


@dataclass(frozen=True, slots=True)
class SearchFacets:
    """Everything a search or filtered browse request can carry.

    Tag and model-tag selections are ordered tuples so that URL building is
    deterministic; when both are set, tags win and model tags are ignored.
    """

    query: str = ""
    search_kind: ContentKind = ContentKind.GALLERY
    sort: SortMode = SortMode.NEWEST
    selected_tags: Tuple[str, ...] = ()
    selected_model_tags: Tuple[str, ...] = ()
    category: Optional[str] = None
    keyword: Optional[str] = None

    @property
    def has_query(self) -> bool:
        return bool(self.query.strip())


@dataclass(frozen=True, slots=True)
class RequestSpec:
    url: str
    kind: ContentKind
    channel: str
    headers: Mapping[str, str] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_URL: self.url,
            K_KIND: self.kind.value,
            K_CHANNEL: self.channel,
            K_HEADERS: dict(self.headers),
        }


__all__ = [
    "ContentKind",
    "ContentStatus",
    "UpdatePolicy",
    "SortMode",
    "FacetKind",
    "ContentRef",
    "ContentSummary",
    "ListingPage",
    "ContentDetail",
    "ChapterRef",
    "ImageRef",
    "FacetOption",
    "SearchFacets",
    "RequestSpec",
]
