"""Image list extraction for terminal (gallery) chapters."""

from __future__ import annotations

from typing import List, Tuple

from .errors import ParseFailure
from .html_utils import element_url
from .models import ImageRef
from .transport import HtmlDocument


def extract_pages(document: HtmlDocument, selector: str) -> Tuple[ImageRef, ...]:
    """Ordered images of a gallery page.

    Anchors contribute their absolute href; other elements go through the
    srcset > data-cfsrc > data-src > data-lazy-src > src fallback.
    """

    urls: List[str] = []
    for element in document.select(selector):
        url = element_url(element, document.url)
        if url:
            urls.append(url)
    if not urls:
        raise ParseFailure(document.url, selector, f"no images matched {selector!r} in {document.url}")
    return tuple(ImageRef(index=idx, url=url) for idx, url in enumerate(urls))


__all__ = ["extract_pages"]
