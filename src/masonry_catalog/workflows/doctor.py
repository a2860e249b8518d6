from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import SortMode
from .settings import facet_max_attempts, load_fetch_config, preferences_path
from .site_profiles import CH_MODEL_TAG, CH_MODELS, CH_TAG, CH_UPDATES, SITES


def _check_lxml_available() -> bool:
    try:
        from bs4 import BeautifulSoup

        BeautifulSoup("<p></p>", "lxml")
        return True
    except Exception:
        return False


def _check_writable(path: Path) -> bool:
    try:
        if path.exists():
            return os.access(path, os.W_OK)
        # The store creates missing directories; the nearest existing one decides.
        parent = path.parent
        while not parent.exists() and parent != parent.parent:
            parent = parent.parent
        return os.access(parent, os.W_OK)
    except OSError:
        return False


def site_capabilities() -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for key in sorted(SITES):
        profile = SITES[key]
        trending = [
            channel
            for channel in (CH_UPDATES, CH_MODELS, CH_TAG, CH_MODEL_TAG)
            if profile.sort_part(channel, SortMode.TRENDING)
        ]
        rows.append(
            {
                "key": key,
                "name": profile.name,
                "base_url": profile.base_url,
                "latest": "updates/sort/newest" if profile.alternative_latest else "archive",
                "split_popular_feed": profile.split_popular_feed,
                "trending": trending,
            }
        )
    return rows


def build_doctor_report(*, prefs_path: Optional[Path] = None) -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "ok": True,
        "checks": [],
        "sites": site_capabilities(),
    }

    def add_check(
        name: str,
        status: bool,
        *,
        detail: Optional[str] = None,
        remedy: Optional[str] = None,
        level: str = "warn",
    ) -> None:
        entry = {
            "name": name,
            "status": "ok" if status else "missing",
            "level": level,
            "detail": detail,
        }
        if remedy:
            entry["remedy"] = remedy
        report["checks"].append(entry)
        if not status and level == "warn":
            report["ok"] = False

    lxml_ok = _check_lxml_available()
    add_check(
        "lxml",
        lxml_ok,
        detail="HTML parser available" if lxml_ok else "HTML parser unavailable",
        remedy="Install lxml (pip install lxml).",
        level="warn",
    )

    config = load_fetch_config()
    add_check(
        "MASONRY_TIMEOUT",
        True,
        detail=f"timeout={config.timeout:g}s attempts={config.max_attempts} follow_redirects={config.follow_redirects}",
        level="info",
    )
    add_check(
        "MASONRY_FACET_MAX_ATTEMPTS",
        True,
        detail=f"vocabulary fetches capped at {facet_max_attempts()} per kind",
        level="info",
    )

    prefs = Path(prefs_path) if prefs_path is not None else preferences_path()
    add_check(
        "MASONRY_PREFERENCES_PATH",
        _check_writable(prefs),
        detail=str(prefs),
        remedy="Create the directory or set MASONRY_PREFERENCES_PATH to a writable location.",
        level="warn",
    )
    return report


def format_doctor_report(report: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append("masonry-catalog doctor")
    lines.append(f"Generated: {report.get('generated_at')}")
    lines.append("")
    for check in report.get("checks", []):
        name = check.get("name", "check")
        status = check.get("status", "unknown")
        level = check.get("level", "info")
        lines.append(f"- [{level}] {name}: {status}")
        detail = check.get("detail")
        if detail:
            lines.append(f"  detail: {detail}")
        remedy = check.get("remedy")
        if remedy and status != "ok":
            lines.append(f"  remedy: {remedy}")
    sites = report.get("sites") or []
    if sites:
        lines.append("")
        lines.append("Sites:")
        for row in sites:
            trending = ",".join(row.get("trending") or []) or "-"
            lines.append(
                f"- {row['key']}: {row['base_url']} latest={row['latest']} trending={trending}"
            )
    return "\n".join(lines).rstrip() + "\n"
