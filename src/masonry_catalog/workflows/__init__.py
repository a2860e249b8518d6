"""High-level exports for the catalog workflows."""

from .errors import CatalogError, ParseFailure, TransportFailure, UnsupportedOperation
from .masonry_source import CatalogSource, MasonrySource
from .models import (
    ChapterRef,
    ContentDetail,
    ContentKind,
    ContentRef,
    ContentSummary,
    ImageRef,
    ListingPage,
    SearchFacets,
    SortMode,
)
from .photos18 import Photos18Source
from .site_profiles import SITES, SiteProfile, get_site
from .sources import available_sources, build_source
from .transport import HtmlDocument, HttpTransport
from .url_strategy import UrlStrategy

__all__ = [
    "CatalogError",
    "ParseFailure",
    "TransportFailure",
    "UnsupportedOperation",
    "CatalogSource",
    "MasonrySource",
    "Photos18Source",
    "ChapterRef",
    "ContentDetail",
    "ContentKind",
    "ContentRef",
    "ContentSummary",
    "ImageRef",
    "ListingPage",
    "SearchFacets",
    "SortMode",
    "SITES",
    "SiteProfile",
    "get_site",
    "available_sources",
    "build_source",
    "HtmlDocument",
    "HttpTransport",
    "UrlStrategy",
]
