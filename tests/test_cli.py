import json

from typer.testing import CliRunner

import masonry_catalog.cli as cli
from masonry_catalog.workflows.doctor import build_doctor_report, format_doctor_report
from masonry_catalog.workflows.errors import TransportFailure
from masonry_catalog.workflows.masonry_source import MasonrySource
from masonry_catalog.workflows.site_profiles import get_site
from masonry_catalog.workflows.sources import available_sources, build_source
from masonry_catalog.workflows.transport import HtmlDocument

runner = CliRunner()

BASE = "https://www.femjoyhunter.com"

PAGES = {
    f"{BASE}/": """
        <ul class="list-gallery">
          <li><figure><a href="/sunny-day/" title="Sunny Day"><img src="/t.jpg"></a></figure></li>
        </ul>
    """,
    f"{BASE}/updates/": """
        <form id="filter-a"><span data-placeholder="Tags">
          <span><input value="outdoor"><label>Outdoor</label></span>
        </span></form>
    """,
    f"{BASE}/models/": """
        <form id="filter-b"><span data-placeholder="Tags">
          <span><input value="petite"><label>Petite</label></span>
        </span></form>
    """,
}


class FakeTransport:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def fetch(self, url, headers=None):
        self.calls.append(url)
        if url not in self.pages:
            raise TransportFailure(url, status=500)
        return HtmlDocument(url=url, text=self.pages[url])


def _patch_sources(monkeypatch, pages):
    transport = FakeTransport(pages)

    def fake_build_source(key):
        return MasonrySource(get_site(key), transport)

    monkeypatch.setattr(cli, "build_source", fake_build_source)
    return transport


def test_no_args_prints_minimal_help():
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0
    assert "Usage:" in result.output


def test_find_searches_index():
    result = runner.invoke(cli.app, ["--find", "facet"])
    assert result.exit_code == 0
    assert "MASONRY_FACET_MAX_ATTEMPTS" in result.output


def test_sites_lists_registry_and_photos18():
    result = runner.invoke(cli.app, ["sites"])
    assert result.exit_code == 0
    rows = json.loads(result.output)
    assert [row["key"] for row in rows] == available_sources()
    assert {"key": "playmatehunter", "name": "Playmate Hunter", "base_url": "https://pmatehunter.com"} in rows


def test_popular_prints_listing_json(monkeypatch):
    transport = _patch_sources(monkeypatch, PAGES)
    result = runner.invoke(cli.app, ["popular", "femjoyhunter"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["items"][0]["reference"] == "/sunny-day/"
    assert payload["items"][0]["kind"] == "gallery"
    assert payload["has_more"] is False
    assert transport.calls[0] == f"{BASE}/"


def test_fetch_failure_exits_with_code_3(monkeypatch):
    _patch_sources(monkeypatch, PAGES)
    result = runner.invoke(cli.app, ["latest", "femjoyhunter", "--page", "2"])
    assert result.exit_code == 3
    assert "fatal:" in result.output


def test_bad_page_exits_with_code_2(monkeypatch):
    _patch_sources(monkeypatch, PAGES)
    result = runner.invoke(cli.app, ["popular", "femjoyhunter", "--page", "0"])
    assert result.exit_code == 2


def test_unknown_site_exits_with_code_2():
    result = runner.invoke(cli.app, ["popular", "nosuchsite"])
    assert result.exit_code == 2
    assert "Unknown site" in result.output


def test_chapters_for_gallery_need_no_fetch(monkeypatch):
    transport = _patch_sources(monkeypatch, {})
    result = runner.invoke(cli.app, ["chapters", "femjoyhunter", "/sunny-day/"])
    assert result.exit_code == 0
    assert json.loads(result.output) == [{"reference": "/sunny-day/", "name": "Gallery", "order": 1.0}]
    assert transport.calls == []


def test_filters_waits_for_vocabularies(monkeypatch):
    _patch_sources(monkeypatch, PAGES)
    result = runner.invoke(cli.app, ["filters", "femjoyhunter"])

    assert result.exit_code == 0
    groups = json.loads(result.output)
    tags = groups[6]
    assert tags["kind"] == "multiselect"
    assert tags["options"] == [{"label": "Outdoor", "value": "outdoor"}]
    assert groups[8]["options"] == [{"label": "M: Petite", "value": "petite"}]


def test_doctor_reports_sites_and_preferences(monkeypatch, tmp_path):
    monkeypatch.setenv("MASONRY_PREFERENCES_PATH", str(tmp_path / "prefs" / "preferences.json"))
    report = build_doctor_report()

    assert report["ok"] is True
    names = [check["name"] for check in report["checks"]]
    assert "lxml" in names and "MASONRY_PREFERENCES_PATH" in names
    elite = next(row for row in report["sites"] if row["key"] == "elitebabes")
    assert elite["trending"] == ["updates", "models", "tag", "model-tag"]
    joymii = next(row for row in report["sites"] if row["key"] == "joymiihub")
    assert joymii["latest"] == "updates/sort/newest"

    text = format_doctor_report(report)
    assert "Sites:" in text
    result = runner.invoke(cli.app, ["doctor"])
    assert result.exit_code == 0
    assert "masonry-catalog doctor" in result.output


def test_build_source_selects_adapter(tmp_path, monkeypatch):
    monkeypatch.setenv("MASONRY_PREFERENCES_PATH", str(tmp_path / "prefs.json"))
    transport = FakeTransport({})

    masonry = build_source("EliteBabes", transport)
    photos = build_source("photos18", transport)

    assert masonry.name == "Elite Babes"
    assert photos.name == "Photos18"
    assert photos.preferences.path == tmp_path / "prefs.json"
