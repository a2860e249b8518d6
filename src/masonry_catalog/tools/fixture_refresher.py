"""Fixture refresher CLI: snapshot live catalog pages into local HTML fixtures.

A manifest lists the pages to capture, either as absolute URLs or as a site
key plus a path::

    [
      {"site": "elitebabes", "path": "/updates/sort/trending/mpage/2/", "fixture": "elitebabes/trending-2.html"},
      {"url": "https://www.photos18.com/node/keywords", "fixture": "photos18/keywords.html"}
    ]

Re-running it against the registry is how the per-site capability table is
checked: a sort path that stopped working shows up as an HTTP error or a
fixture without listing items.
"""

from __future__ import annotations

import argparse
import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import requests

from masonry_catalog.workflows.settings import load_fetch_config
from masonry_catalog.workflows.site_profiles import get_site

logger = logging.getLogger(__name__)

ManifestEntry = Dict[str, str]
FetchFunc = Callable[[str], bytes]

INDEX_NAME = "fixtures.json"


def _default_fetch(url: str, *, timeout: float = 30) -> bytes:
    config = load_fetch_config()
    resp = requests.get(
        url,
        timeout=timeout,
        headers={"User-Agent": config.user_agent, "Accept-Language": config.accept_language},
    )
    resp.raise_for_status()
    return resp.content


def load_manifest(path: Path) -> List[ManifestEntry]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, Iterable) or isinstance(data, (str, dict)):
        raise ValueError("fixture manifest must be a list")
    entries: List[ManifestEntry] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        if not (item.get("url") or (item.get("site") and item.get("path"))):
            continue
        entries.append(item)
    return entries


def entry_url(entry: ManifestEntry) -> str:
    url = (entry.get("url") or "").strip()
    if url:
        return url
    profile = get_site(entry["site"])
    path = entry["path"].strip()
    return profile.base_url + (path if path.startswith("/") else f"/{path}")


def refresh_manifest(
    manifest_path: Path,
    output_dir: Path,
    *,
    fetch: Optional[FetchFunc] = None,
    dry_run: bool = False,
    timeout: float = 30,
) -> List[Dict[str, str]]:
    fetcher = fetch or (lambda url: _default_fetch(url, timeout=timeout))
    entries = load_manifest(manifest_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    results: List[Dict[str, str]] = []

    for entry in entries:
        url = entry_url(entry)
        rel = (entry.get("fixture") or "").strip()
        if not rel:
            logger.warning("skipping %s: no fixture name", url)
            continue
        target = output_dir / rel
        if dry_run:
            logger.info("dry-run: would refresh %s -> %s", url, target)
            results.append({"url": url, "path": str(target), "status": "skipped"})
            continue
        try:
            payload = fetcher(url)
        except requests.RequestException as exc:
            logger.warning("failed to refresh %s: %s", url, exc)
            results.append({"url": url, "path": str(target), "status": "failed", "error": str(exc)})
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        logger.info("refreshed %s (%d bytes) -> %s", url, len(payload), target)
        results.append({
            "url": url,
            "path": str(target),
            "status": "ok",
            "bytes": str(len(payload)),
            "sha256": hashlib.sha256(payload).hexdigest(),
        })

    if not dry_run:
        index = {
            "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
            "fixtures": results,
        }
        (output_dir / INDEX_NAME).write_text(json.dumps(index, indent=2), encoding="utf-8")
    return results


def main() -> None:
    parser = argparse.ArgumentParser(description="Snapshot live catalog pages into local HTML fixtures")
    parser.add_argument(
        "--manifest",
        default=Path("tests/fixtures/manifest.json"),
        type=Path,
        help="Path to fixture manifest JSON (default: tests/fixtures/manifest.json)",
    )
    parser.add_argument(
        "--out",
        default=Path("tests/fixtures/html"),
        type=Path,
        help="Directory to write fixtures (default: tests/fixtures/html)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print actions without downloading")
    parser.add_argument("--timeout", type=float, default=30, help="HTTP timeout per URL (seconds)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    results = refresh_manifest(args.manifest, args.out, dry_run=args.dry_run, timeout=args.timeout)
    failed = [r for r in results if r.get("status") == "failed"]
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
