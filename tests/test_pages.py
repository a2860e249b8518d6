import pytest

from masonry_catalog.workflows.errors import ParseFailure
from masonry_catalog.workflows.html_utils import img_attr, own_text
from masonry_catalog.workflows.pages import extract_pages
from masonry_catalog.workflows.site_profiles import PAGE_SELECTOR
from masonry_catalog.workflows.transport import HtmlDocument

URL = "https://www.femjoyhunter.com/sunny-day/"


def test_gallery_links_to_cdn_become_pages_in_order():
    html = """
    <ul class="list-gallery">
      <li><a href="https://cdn.femjoyhunter.com/1.jpg"><img src="/t1.jpg"></a></li>
      <li><a href="/other-gallery/"><img src="/t.jpg"></a></li>
      <li><a href="https://cdn.femjoyhunter.com/2.jpg"><img src="/t2.jpg"></a></li>
    </ul>
    """
    pages = extract_pages(HtmlDocument(url=URL, text=html), PAGE_SELECTOR)
    assert [(p.index, p.url) for p in pages] == [
        (0, "https://cdn.femjoyhunter.com/1.jpg"),
        (1, "https://cdn.femjoyhunter.com/2.jpg"),
    ]


def test_data_src_wins_over_src():
    html = '<div id="g"><img src="/placeholder.gif" data-src="/real.jpg"></div>'
    pages = extract_pages(HtmlDocument(url=URL, text=html), "#g img")
    assert pages[0].url == "https://www.femjoyhunter.com/real.jpg"


def test_attribute_fallback_order():
    html = """
    <div id="g">
      <img srcset="/a-1x.jpg 1x, /a-2x.jpg 2x" data-src="/a.jpg" src="/p.gif">
      <img data-cfsrc="/b.jpg" data-lazy-src="/b-lazy.jpg" src="/p.gif">
      <img data-src="" data-lazy-src="/c.jpg" src="/p.gif">
      <img src="/d.jpg">
    </div>
    """
    pages = extract_pages(HtmlDocument(url=URL, text=html), "#g img")
    assert [p.url.rsplit("/", 1)[-1] for p in pages] == ["a-1x.jpg", "b.jpg", "c.jpg", "d.jpg"]


def test_zero_images_is_a_parse_failure():
    with pytest.raises(ParseFailure):
        extract_pages(HtmlDocument(url=URL, text="<p>removed</p>"), PAGE_SELECTOR)


def test_img_attr_without_candidates():
    document = HtmlDocument(url=URL, text="<img alt='x'>")
    assert img_attr(document.select_one("img"), URL) is None


def test_own_text_skips_nested_tags_and_comments():
    document = HtmlDocument(url=URL, text="<a>Title <!-- hidden --><span>badge</span> here</a>")
    assert own_text(document.select_one("a")) == "Title here"
