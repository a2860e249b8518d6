"""Failure taxonomy shared by the catalog adapters."""

from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for every failure surfaced by an adapter operation."""


class TransportFailure(CatalogError):
    """Network or HTTP error while fetching a catalog document."""

    def __init__(self, url: str, status: Optional[int] = None, reason: Optional[str] = None) -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "request failed")
        if status is not None and reason:
            detail = f"{detail} ({reason})"
        super().__init__(f"{detail} for {url}")


class ParseFailure(CatalogError):
    """An element the adapter relies on is missing from a fetched document."""

    def __init__(self, url: str, selector: str, message: Optional[str] = None) -> None:
        self.url = url
        self.selector = selector
        super().__init__(message or f"expected element {selector!r} not found in {url}")


class UnsupportedOperation(CatalogError, NotImplementedError):
    """A capability the adapter deliberately does not implement."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} is not supported by this source")


__all__ = [
    "CatalogError",
    "TransportFailure",
    "ParseFailure",
    "UnsupportedOperation",
]
