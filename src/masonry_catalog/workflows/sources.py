"""Source registry: build a ready-to-use adapter from a short site key."""

from __future__ import annotations

from typing import List, Optional, Union

from .masonry_source import MasonrySource
from .photos18 import Photos18Source
from .preferences import JsonPreferenceStore, PreferenceStore
from .settings import load_fetch_config, preferences_path
from .site_profiles import SITES, get_site
from .transport import HttpTransport, Transport

PHOTOS18_KEY = "photos18"

CatalogAdapter = Union[MasonrySource, Photos18Source]


def available_sources() -> List[str]:
    return sorted([*SITES, PHOTOS18_KEY])


def build_source(
    key: str,
    transport: Optional[Transport] = None,
    preferences: Optional[PreferenceStore] = None,
) -> CatalogAdapter:
    """Adapter for ``key``; raises ValueError for unknown keys.

    Photos18 answers unknown paths with redirects to its home page, so its
    default transport does not follow them.
    """

    normalized = (key or "").strip().lower()
    if normalized == PHOTOS18_KEY:
        return Photos18Source(
            transport or HttpTransport(load_fetch_config(follow_redirects=False)),
            preferences or JsonPreferenceStore(preferences_path(), namespace=PHOTOS18_KEY),
        )
    profile = get_site(normalized)
    return MasonrySource(profile, transport or HttpTransport())


__all__ = [
    "PHOTOS18_KEY",
    "CatalogAdapter",
    "available_sources",
    "build_source",
]
