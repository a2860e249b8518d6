import asyncio
from functools import partial

import pytest

from masonry_catalog.workflows.errors import ParseFailure, TransportFailure
from masonry_catalog.workflows.facet_cache import FacetCache, VocabularySource, parse_input_vocabulary
from masonry_catalog.workflows.models import FacetKind, FacetOption
from masonry_catalog.workflows.site_profiles import TAG_VOCABULARY_SELECTOR
from masonry_catalog.workflows.transport import HtmlDocument

TAGS_URL = "https://site.test/updates/"

TAGS_HTML = """
<form id="filter-a">
  <span data-placeholder="Tags">
    <span><input type="checkbox" value="blonde"><label>Blonde</label></span>
    <span><input type="checkbox" value="outdoor"><label>Outdoor </label></span>
    <span><input type="checkbox" value=""><label>Empty</label></span>
  </span>
</form>
"""


class FailingTransport:
    def __init__(self):
        self.calls = []

    async def fetch(self, url, headers=None):
        self.calls.append(url)
        raise TransportFailure(url, status=503)


class GatedTransport:
    def __init__(self, html):
        self.html = html
        self.calls = []
        self.gate = None

    async def fetch(self, url, headers=None):
        self.calls.append(url)
        await self.gate.wait()
        return HtmlDocument(url=url, text=self.html)


def _cache(transport, max_attempts=3):
    source = VocabularySource(
        url_factory=lambda: TAGS_URL,
        parse=partial(parse_input_vocabulary, selector=TAG_VOCABULARY_SELECTOR),
    )
    return FacetCache(transport, {FacetKind.TAG: source}, max_attempts=max_attempts)


def test_parse_input_vocabulary_reads_labels_and_values():
    document = HtmlDocument(url=TAGS_URL, text=TAGS_HTML)
    options = parse_input_vocabulary(document, TAG_VOCABULARY_SELECTOR, label_prefix="M: ")
    assert options == (FacetOption("M: Blonde", "blonde"), FacetOption("M: Outdoor", "outdoor"))


def test_parse_input_vocabulary_rejects_empty_page():
    with pytest.raises(ParseFailure):
        parse_input_vocabulary(HtmlDocument(url=TAGS_URL, text="<p>maintenance</p>"), TAG_VOCABULARY_SELECTOR)


def test_gives_up_after_three_failed_attempts():
    transport = FailingTransport()
    cache = _cache(transport)

    async def run():
        for _ in range(3):
            assert await cache.refresh(FacetKind.TAG) == ()
        cache.ensure_vocabulary(FacetKind.TAG)
        await cache.wait_idle()
        return cache.vocabulary(FacetKind.TAG)

    assert asyncio.run(run()) == ()
    assert transport.calls == [TAGS_URL] * 3
    assert cache.attempts(FacetKind.TAG) == 3
    assert cache.is_exhausted(FacetKind.TAG)


def test_unexpected_error_is_logged_and_counted(caplog):
    class BrokenTransport:
        async def fetch(self, url, headers=None):
            raise RuntimeError("session closed")

    cache = _cache(BrokenTransport())

    async def run():
        assert await cache.refresh(FacetKind.TAG) == ()
        cache.ensure_vocabulary(FacetKind.TAG)
        await cache.wait_idle()

    with caplog.at_level("ERROR"):
        asyncio.run(run())
    assert cache.attempts(FacetKind.TAG) == 2
    assert "vocabulary fetch crashed" in caplog.text


def test_concurrent_requests_share_one_fetch():
    transport = GatedTransport(TAGS_HTML)
    cache = _cache(transport)

    async def run():
        transport.gate = asyncio.Event()
        assert cache.ensure_vocabulary(FacetKind.TAG) == ()
        assert cache.ensure_vocabulary(FacetKind.TAG) == ()
        await asyncio.sleep(0)
        cache.ensure_vocabulary(FacetKind.TAG)
        assert len(transport.calls) == 1
        transport.gate.set()
        await cache.wait_idle()

    asyncio.run(run())
    assert [option.value for option in cache.vocabulary(FacetKind.TAG)] == ["blonde", "outdoor"]
    assert cache.attempts(FacetKind.TAG) == 1


def test_populated_vocabulary_is_never_refetched():
    transport = GatedTransport(TAGS_HTML)
    cache = _cache(transport)

    async def run():
        transport.gate = asyncio.Event()
        transport.gate.set()
        await cache.refresh(FacetKind.TAG)
        await cache.refresh(FacetKind.TAG)
        cache.ensure_vocabulary(FacetKind.TAG)
        await cache.wait_idle()

    asyncio.run(run())
    assert transport.calls == [TAGS_URL]
    assert cache.is_populated(FacetKind.TAG)
    assert not cache.is_exhausted(FacetKind.TAG)


def test_ensure_without_event_loop_schedules_nothing():
    transport = FailingTransport()
    cache = _cache(transport)
    assert cache.ensure_vocabulary(FacetKind.TAG) == ()
    assert transport.calls == []
    assert cache.attempts(FacetKind.TAG) == 0


def test_unknown_kind_has_no_source():
    cache = _cache(FailingTransport())

    async def run():
        return await cache.refresh(FacetKind.KEYWORD)

    assert asyncio.run(run()) == ()
    assert cache.attempts(FacetKind.KEYWORD) == 0


def test_cancelled_attempt_counts_against_budget():
    transport = GatedTransport(TAGS_HTML)
    cache = _cache(transport, max_attempts=1)

    async def run():
        transport.gate = asyncio.Event()
        cache.ensure_vocabulary(FacetKind.TAG)
        await cache.cancel_pending()
        cache.ensure_vocabulary(FacetKind.TAG)
        await cache.wait_idle()

    asyncio.run(run())
    assert cache.attempts(FacetKind.TAG) == 1
    assert cache.is_exhausted(FacetKind.TAG)


def test_populate_from_document_does_not_spend_attempts():
    transport = FailingTransport()
    cache = _cache(transport)
    document = HtmlDocument(url="https://site.test/", text=TAGS_HTML)
    parse = partial(parse_input_vocabulary, selector=TAG_VOCABULARY_SELECTOR)

    options = cache.populate_from(FacetKind.CATEGORY, document, parse)

    assert len(options) == 2
    assert cache.is_populated(FacetKind.CATEGORY)
    assert cache.attempts(FacetKind.CATEGORY) == 0
    assert transport.calls == []


def test_populate_from_ignores_unparseable_documents():
    cache = _cache(FailingTransport())
    document = HtmlDocument(url="https://site.test/", text="<p>nothing</p>")
    parse = partial(parse_input_vocabulary, selector=TAG_VOCABULARY_SELECTOR)
    assert cache.populate_from(FacetKind.CATEGORY, document, parse) == ()
    assert not cache.is_populated(FacetKind.CATEGORY)
