from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, List, Optional

import typer

from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.errors import CatalogError
from .workflows.models import ContentKind, ContentRef, SearchFacets, SortMode
from .workflows.photos18 import BASE_URL as PHOTOS18_BASE_URL
from .workflows.settings import log_level
from .workflows.site_profiles import SITES
from .workflows.sources import PHOTOS18_KEY, CatalogAdapter, available_sources, build_source

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """masonry-catalog (catalog adapter CLI)

Usage:
  masonry-catalog sites
  masonry-catalog popular <site> [--page N]
  masonry-catalog latest <site> [--page N]
  masonry-catalog search <site> [QUERY] [--kind gallery|model] [--sort S] [--tag T]... [--model-tag M]
  masonry-catalog detail <site> <path> [--kind gallery|model]
  masonry-catalog chapters <site> <path> [--kind gallery|model]
  masonry-catalog pages <site> <path>
  masonry-catalog filters <site> [--no-wait]
  masonry-catalog doctor

Every command prints JSON on stdout. Exit codes: 2 bad arguments, 3 fetch/parse failure.

Discoverability:
  --help-full     Expanded help + env vars.
  --find <query>  Search commands, flags, env vars.
  --verbose       Debug logging on stderr.
"""


def _help_full() -> str:
    return """masonry-catalog CLI

Commands:
  sites      List the known sources.
  popular    Popular listing page.
  latest     Newest-first listing page.
  search     Text search, or a filtered browse when no query is given.
  detail     Detail of a gallery or model.
  chapters   Chapters of a gallery (one) or a model (its galleries).
  pages      Image URLs of a gallery.
  filters    Filter list, after loading the tag vocabularies.
  doctor     Environment diagnostics and the per-site capability table.

Environment:
  MASONRY_TIMEOUT             Per-request timeout in seconds (default 20).
  MASONRY_MAX_ATTEMPTS        HTTP attempts per request (default 1).
  MASONRY_BACKOFF_INITIAL     First retry delay in seconds (default 0.8).
  MASONRY_BACKOFF_MAX         Retry delay cap in seconds (default 6).
  MASONRY_USER_AGENT          User-Agent header.
  MASONRY_ACCEPT_LANGUAGE     Accept-Language header.
  MASONRY_FACET_MAX_ATTEMPTS  Vocabulary fetch attempts per kind (default 3).
  MASONRY_FOLLOW_REDIRECTS    Follow HTTP redirects (default 1; photos18 never does).
  MASONRY_PREFERENCES_PATH    JSON preference file.
  MASONRY_LOG_LEVEL           Log level when --verbose is not given.

Values are also read from a .env file in the working directory.
"""


_FIND_INDEX = [
    ("command", "sites", "List the known sources."),
    ("command", "popular", "Popular listing page."),
    ("command", "latest", "Newest-first listing page."),
    ("command", "search", "Text search or filtered browse."),
    ("command", "detail", "Detail of a gallery or model."),
    ("command", "chapters", "Chapters of a gallery or model."),
    ("command", "pages", "Image URLs of a gallery."),
    ("command", "filters", "Filter list with loaded vocabularies."),
    ("command", "doctor", "Environment diagnostics."),
    ("flag", "--page", "Listing page number, starting at 1."),
    ("flag", "--kind", "Content kind: gallery or model."),
    ("flag", "--sort", "Sort order: newest, popular, trending, recommended, best."),
    ("flag", "--tag", "Tag filter; repeat for several tags."),
    ("flag", "--model-tag", "Model tag filter (first one is used)."),
    ("flag", "--category", "Category filter (photos18)."),
    ("flag", "--keyword", "Keyword filter (photos18)."),
    ("flag", "--verbose", "Debug logging on stderr."),
    ("env", "MASONRY_TIMEOUT", "Per-request timeout in seconds."),
    ("env", "MASONRY_MAX_ATTEMPTS", "HTTP attempts per request."),
    ("env", "MASONRY_FACET_MAX_ATTEMPTS", "Vocabulary fetch attempts per kind."),
    ("env", "MASONRY_PREFERENCES_PATH", "JSON preference file."),
    ("env", "MASONRY_LOG_LEVEL", "Log level when --verbose is not given."),
]


def _run_find(query: str) -> str:
    needle = (query or "").strip().lower()
    if not needle:
        return ""
    lines = []
    for category, name, desc in _FIND_INDEX:
        haystack = f"{category} {name} {desc}".lower()
        if needle in haystack:
            lines.append(f"{category} {name} - {desc}")
    return "\n".join(lines)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, log_level(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")


async def _close(source: CatalogAdapter) -> None:
    await source.facets.cancel_pending()
    aclose = getattr(source.transport, "aclose", None)
    if aclose is not None:
        await aclose()


def _run(site: str, operation: Callable[[CatalogAdapter], Awaitable[Any]]) -> None:
    """Build the source, run one async operation, print its JSON payload."""

    async def runner() -> Any:
        source = build_source(site)
        try:
            return await operation(source)
        finally:
            await _close(source)

    try:
        payload = asyncio.run(runner())
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    except CatalogError as exc:
        typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=3)
    _emit(payload)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
    find: Optional[str] = typer.Option(None, "--find", is_eager=True, help="Search commands, flags, env vars."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if find is not None:
        output = _run_find(find)
        if output:
            typer.echo(output)
        raise typer.Exit(code=0)
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)
    _configure_logging(verbose)


@app.command("doctor", add_help_option=True)
def doctor_cmd() -> None:
    """Print environment diagnostics and the per-site capability table."""
    report = build_doctor_report()
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)


@app.command("sites", add_help_option=True)
def sites_cmd() -> None:
    """List the known sources."""
    rows = []
    for key in available_sources():
        if key == PHOTOS18_KEY:
            rows.append({"key": key, "name": "Photos18", "base_url": PHOTOS18_BASE_URL})
        else:
            profile = SITES[key]
            rows.append({"key": key, "name": profile.name, "base_url": profile.base_url})
    _emit(rows)


@app.command("popular", add_help_option=True)
def popular_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    page: int = typer.Option(1, "--page", help="Listing page number, starting at 1."),
) -> None:
    async def operation(source: CatalogAdapter) -> Any:
        return (await source.list_popular(page)).to_dict()

    _run(site, operation)


@app.command("latest", add_help_option=True)
def latest_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    page: int = typer.Option(1, "--page", help="Listing page number, starting at 1."),
) -> None:
    async def operation(source: CatalogAdapter) -> Any:
        return (await source.list_latest(page)).to_dict()

    _run(site, operation)


@app.command("search", add_help_option=True)
def search_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    query: str = typer.Argument("", help="Search text; empty for a filtered browse."),
    page: int = typer.Option(1, "--page", help="Listing page number, starting at 1."),
    kind: ContentKind = typer.Option(ContentKind.GALLERY, "--kind", help="Search galleries or models."),
    sort: SortMode = typer.Option(SortMode.NEWEST, "--sort", help="Sort order."),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="Tag filter; repeat for several tags."),
    model_tag: Optional[List[str]] = typer.Option(None, "--model-tag", help="Model tag filter (first one is used)."),
    category: Optional[str] = typer.Option(None, "--category", help="Category filter (photos18)."),
    keyword: Optional[str] = typer.Option(None, "--keyword", help="Keyword filter (photos18)."),
) -> None:
    """Text search, or a filtered browse when no query is given."""
    facets = SearchFacets(
        query=query,
        search_kind=kind,
        sort=sort,
        selected_tags=tuple(tag or ()),
        selected_model_tags=tuple(model_tag or ()),
        category=category,
        keyword=keyword,
    )

    async def operation(source: CatalogAdapter) -> Any:
        return (await source.search(page, facets)).to_dict()

    _run(site, operation)


@app.command("detail", add_help_option=True)
def detail_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    path: str = typer.Argument(..., help="Domain-relative reference from a listing."),
    kind: ContentKind = typer.Option(ContentKind.GALLERY, "--kind", help="Kind of the reference."),
) -> None:
    async def operation(source: CatalogAdapter) -> Any:
        return (await source.fetch_detail(ContentRef(path, kind))).to_dict()

    _run(site, operation)


@app.command("chapters", add_help_option=True)
def chapters_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    path: str = typer.Argument(..., help="Domain-relative reference from a listing."),
    kind: ContentKind = typer.Option(ContentKind.GALLERY, "--kind", help="Kind of the reference."),
) -> None:
    async def operation(source: CatalogAdapter) -> Any:
        return [chapter.to_dict() for chapter in await source.fetch_chapters(ContentRef(path, kind))]

    _run(site, operation)


@app.command("pages", add_help_option=True)
def pages_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    path: str = typer.Argument(..., help="Chapter reference (a gallery path)."),
) -> None:
    async def operation(source: CatalogAdapter) -> Any:
        return [image.to_dict() for image in await source.fetch_pages(path)]

    _run(site, operation)


@app.command("filters", add_help_option=True)
def filters_cmd(
    site: str = typer.Argument(..., help="Source key (see `sites`)."),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for vocabulary fetches before building."),
) -> None:
    """Print the filter list the host UI would render."""

    async def operation(source: CatalogAdapter) -> Any:
        source.facets.ensure_all()
        if wait:
            await source.facets.wait_idle()
        return [group.to_dict() for group in source.get_filter_list()]

    _run(site, operation)
