"""Shared serialization keys to avoid magic strings across catalog modules."""

from __future__ import annotations

# Content entries
K_REFERENCE = "reference"
K_KIND = "kind"
K_TITLE = "title"
K_THUMBNAIL = "thumbnail_url"
K_TAGLINE = "tagline"
K_ARTIST = "artist"
K_AUTHOR = "author"
K_GENRE = "genre"
K_DESCRIPTION = "description"
K_STATUS = "status"
K_UPDATE_POLICY = "update_policy"

# Listing pages
K_ITEMS = "items"
K_HAS_MORE = "has_more"

# Chapters and pages
K_NAME = "name"
K_ORDER = "order"
K_INDEX = "index"
K_URL = "url"

# Requests
K_CHANNEL = "channel"
K_HEADERS = "headers"

# Filters
K_LABEL = "label"
K_VALUE = "value"
K_OPTIONS = "options"
K_SELECTED = "selected"
