"""HTTP transport and parsed-document wrapper used by the catalog adapters."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple

import aiohttp
from bs4 import BeautifulSoup, Tag

from .errors import TransportFailure
from .html_normalize import decode_bytes_auto
from .settings import FetchConfig, load_fetch_config

logger = logging.getLogger(__name__)


@dataclass
class HtmlDocument:
    """A fetched page: final URL, status and lazily parsed tree."""

    url: str
    text: str
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.text or "", "lxml")
        return self._soup

    def select(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)


class Transport(Protocol):
    async def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> HtmlDocument:
        ...


class HttpTransport:
    """aiohttp-backed transport with bounded retry and a shared session."""

    def __init__(self, config: Optional[FetchConfig] = None) -> None:
        self.config = config or load_fetch_config()
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {
                "User-Agent": self.config.user_agent,
                "Accept-Language": self.config.accept_language,
                "Accept-Encoding": "gzip, deflate",
            }
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def aclose(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> HtmlDocument:
        session = self._ensure_session()
        status, final_url, body, response_headers = await self._fetch_with_retries(session, url, headers)
        if status >= 400:
            raise TransportFailure(url, status=status)
        if 300 <= status < 400:
            # Redirects are only surfaced when following is disabled.
            raise TransportFailure(url, status=status, reason=f"redirect to {response_headers.get('Location', '?')}")
        text = decode_bytes_auto(body, response_headers)
        return HtmlDocument(url=final_url, text=text, status=status, headers=response_headers)

    async def _fetch_with_retries(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Optional[Mapping[str, str]],
    ) -> Tuple[int, str, bytes, Dict[str, str]]:
        delay = self.config.backoff_initial
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                return await self._fetch_once(session, url, headers)
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                if attempt == self.config.max_attempts:
                    raise TransportFailure(url, reason=f"{type(exc).__name__}: {exc}") from exc
                logger.debug("retrying %s after %s (attempt %d)", url, exc, attempt)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.config.backoff_max)
        raise TransportFailure(url, reason="unexpected retry state")

    async def _fetch_once(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Optional[Mapping[str, str]],
    ) -> Tuple[int, str, bytes, Dict[str, str]]:
        logger.debug("GET %s", url)
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            headers=dict(headers) if headers else None,
            allow_redirects=self.config.follow_redirects,
        ) as resp:
            raw_bytes = await resp.read()
            return resp.status, str(resp.url), raw_bytes, dict(resp.headers)


__all__ = [
    "HtmlDocument",
    "Transport",
    "HttpTransport",
]
