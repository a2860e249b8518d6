import asyncio

import aiohttp
import pytest

from masonry_catalog.workflows.errors import TransportFailure
from masonry_catalog.workflows.html_normalize import clean_text, decode_bytes_auto
from masonry_catalog.workflows.settings import FetchConfig, facet_max_attempts, load_fetch_config, preferences_path
from masonry_catalog.workflows.transport import HtmlDocument, HttpTransport


def _fetch(transport, url="https://site.test/page/"):
    async def run():
        async with transport:
            return await transport.fetch(url)

    return asyncio.run(run())


def test_http_error_status_raises_transport_failure(monkeypatch):
    async def fake_fetch_with_retries(self, session, url, headers):
        return 404, url, b"missing", {}

    monkeypatch.setattr(HttpTransport, "_fetch_with_retries", fake_fetch_with_retries, raising=False)

    with pytest.raises(TransportFailure) as excinfo:
        _fetch(HttpTransport(FetchConfig()))
    assert excinfo.value.status == 404
    assert "HTTP 404" in str(excinfo.value)


def test_unfollowed_redirect_raises_transport_failure(monkeypatch):
    async def fake_fetch_with_retries(self, session, url, headers):
        return 302, url, b"", {"Location": "/"}

    monkeypatch.setattr(HttpTransport, "_fetch_with_retries", fake_fetch_with_retries, raising=False)

    with pytest.raises(TransportFailure) as excinfo:
        _fetch(HttpTransport(FetchConfig(follow_redirects=False)))
    assert excinfo.value.reason == "redirect to /"


def test_success_decodes_with_charset_header(monkeypatch):
    body = "<h1>Café</h1>".encode("latin-1")

    async def fake_fetch_with_retries(self, session, url, headers):
        return 200, url, body, {"Content-Type": "text/html; charset=ISO-8859-1"}

    monkeypatch.setattr(HttpTransport, "_fetch_with_retries", fake_fetch_with_retries, raising=False)

    document = _fetch(HttpTransport(FetchConfig()))
    assert isinstance(document, HtmlDocument)
    assert document.select_one("h1").get_text() == "Café"


def test_retries_client_errors_up_to_max_attempts(monkeypatch):
    calls = {"count": 0}

    async def flaky_fetch_once(self, session, url, headers):
        calls["count"] += 1
        if calls["count"] < 3:
            raise aiohttp.ClientConnectionError("reset")
        return 200, url, b"<p>ok</p>", {}

    monkeypatch.setattr(HttpTransport, "_fetch_once", flaky_fetch_once, raising=False)

    document = _fetch(HttpTransport(FetchConfig(max_attempts=3, backoff_initial=0.0)))
    assert document.select_one("p").get_text() == "ok"
    assert calls["count"] == 3


def test_single_attempt_by_default(monkeypatch):
    calls = {"count": 0}

    async def failing_fetch_once(self, session, url, headers):
        calls["count"] += 1
        raise asyncio.TimeoutError()

    monkeypatch.setattr(HttpTransport, "_fetch_once", failing_fetch_once, raising=False)

    with pytest.raises(TransportFailure):
        _fetch(HttpTransport(FetchConfig()))
    assert calls["count"] == 1


def test_decode_bytes_auto_handles_empty_and_unknown_charset():
    assert decode_bytes_auto(b"") == ""
    assert decode_bytes_auto(b"plain", {"content-type": "text/html; charset=bogus"}) == "plain"


def test_clean_text_collapses_whitespace_and_zero_width():
    assert clean_text("  Sunny\u200b \n Day ") == "Sunny Day"
    assert clean_text(None) == ""


def test_load_fetch_config_reads_environment(monkeypatch):
    monkeypatch.setenv("MASONRY_TIMEOUT", "7.5")
    monkeypatch.setenv("MASONRY_MAX_ATTEMPTS", "not-a-number")
    monkeypatch.setenv("MASONRY_USER_AGENT", "catalog-test/1.0")
    monkeypatch.setenv("MASONRY_FOLLOW_REDIRECTS", "0")

    config = load_fetch_config()
    assert config.timeout == 7.5
    assert config.max_attempts == 1
    assert config.user_agent == "catalog-test/1.0"
    assert config.follow_redirects is False
    assert load_fetch_config(follow_redirects=True).follow_redirects is True


def test_facet_attempts_and_preferences_path_from_environment(monkeypatch, tmp_path):
    monkeypatch.delenv("MASONRY_FACET_MAX_ATTEMPTS", raising=False)
    assert facet_max_attempts() == 3
    monkeypatch.setenv("MASONRY_FACET_MAX_ATTEMPTS", "5")
    assert facet_max_attempts() == 5

    monkeypatch.setenv("MASONRY_PREFERENCES_PATH", str(tmp_path / "p.json"))
    assert preferences_path() == tmp_path / "p.json"
