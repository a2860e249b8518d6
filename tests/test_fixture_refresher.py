import json

import pytest
import requests

from masonry_catalog.tools.fixture_refresher import INDEX_NAME, entry_url, load_manifest, refresh_manifest


def test_refresh_manifest_writes_fixtures_and_index(tmp_path):
    manifest = tmp_path / "manifest.json"
    manifest.write_text(
        json.dumps(
            [
                {"site": "elitebabes", "path": "/updates/sort/trending/mpage/2/", "fixture": "eb/trending.html"},
                {"url": "https://www.photos18.com/node/keywords", "fixture": "p18/keywords.html"},
                {"url": "https://example.com/no-name"},
            ]
        ),
        encoding="utf-8",
    )

    def fake_fetch(url: str) -> bytes:
        return f"<html>{url}</html>".encode("utf-8")

    out_dir = tmp_path / "html"
    stats = refresh_manifest(manifest, out_dir, fetch=fake_fetch)

    assert [s["status"] for s in stats] == ["ok", "ok"]
    target = out_dir / "eb/trending.html"
    assert target.read_text(encoding="utf-8") == "<html>https://www.elitebabes.com/updates/sort/trending/mpage/2/</html>"
    assert stats[0]["sha256"]
    index = json.loads((out_dir / INDEX_NAME).read_text(encoding="utf-8"))
    assert len(index["fixtures"]) == 2


def test_refresh_manifest_records_failures_and_dry_run(tmp_path):
    manifest = tmp_path / "manifest.json"
    manifest.write_text(json.dumps([{"url": "https://down.test/", "fixture": "down.html"}]), encoding="utf-8")

    def failing_fetch(url: str) -> bytes:
        raise requests.ConnectionError("unreachable")

    stats = refresh_manifest(manifest, tmp_path / "out", fetch=failing_fetch)
    assert stats[0]["status"] == "failed"
    assert not (tmp_path / "out" / "down.html").exists()

    dry = refresh_manifest(manifest, tmp_path / "dry", fetch=failing_fetch, dry_run=True)
    assert dry[0]["status"] == "skipped"
    assert not (tmp_path / "dry" / INDEX_NAME).exists()


def test_load_manifest_rejects_non_list(tmp_path):
    manifest = tmp_path / "manifest.json"
    manifest.write_text(json.dumps({"url": "https://x.test/"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_manifest(manifest)


def test_entry_url_resolves_site_paths():
    assert entry_url({"site": "playmatehunter", "path": "archive/page/2/"}) == "https://pmatehunter.com/archive/page/2/"
