"""End-to-end tests of a document injection pass."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from linkinjector.engine import index as index_module
from linkinjector.engine.errors import InvalidCatalogError, InvalidConfigError
from linkinjector.engine.index import inject_links, inject_links_into_blocks, validate_catalog
from linkinjector.engine.selector import build_target_url, is_block_eligible, select_best_link
from linkinjector.engine.markup import parse_markup, segment_blocks
from linkinjector.engine.types import EngineState, LinkRecord, LinkReport

from .conftest import make_page

KRG = {"title": "Advanced Keyword Research Guide", "slug": "keyword-research-guide"}

FIVE_PAGES = [
    {"title": "Keyword Research Guide", "slug": "keyword-research-guide"},
    {"title": "Link Building Strategies", "slug": "link-building-strategies"},
    {"title": "Technical SEO Checklist", "slug": "technical-seo-checklist"},
    {"title": "Content Marketing Tips", "slug": "content-marketing-tips"},
    {"title": "Local SEO Optimization", "slug": "local-seo-optimization"},
]

FIVE_BLOCKS = "".join(
    f"<p>Before publishing anything, read the {page['title'].lower()} we maintain for the whole editorial team.</p>"
    for page in FIVE_PAGES
)


def _anchors(html: str):
    return BeautifulSoup(html, "html.parser").find_all("a")


def _assert_no_nested_links(html: str) -> None:
    for anchor in _anchors(html):
        assert anchor.find("a") is None


def test_links_keyword_research_guide():
    html = "<p>Our advanced keyword research guide covers every step for beginners.</p>"
    result = inject_links(html, [KRG])

    anchors = _anchors(result.html)
    assert len(anchors) == 1
    assert anchors[0]["href"] == "/keyword-research-guide/"
    assert 3 <= len(anchors[0].get_text().split()) <= 5
    assert "keyword research" in anchors[0].get_text().lower()
    assert result.report.links_injected == 1
    assert result.report.records[0].target_slug == "keyword-research-guide"


def test_base_url_prefixes_target():
    html = "<p>Our advanced keyword research guide covers every step for beginners.</p>"
    result = inject_links(html, [KRG], base_url="https://example.com/")
    assert _anchors(result.html)[0]["href"] == "https://example.com/keyword-research-guide/"


def test_target_is_linked_only_once():
    html = (
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
        "<p>Teams that follow an advanced keyword research guide publish more useful pages.</p>"
    )
    result = inject_links(html, [KRG])

    assert [record.block_index for record in result.report.records] == [0]
    assert len(_anchors(result.html)) == 1
    second = BeautifulSoup(result.html, "html.parser").find_all("p")[1]
    assert second.find("a") is None


def test_short_block_gets_no_link(engine_config):
    html = "<p>Advanced keyword research guide.</p>"
    result = inject_links(html, [KRG], config=engine_config)

    assert result.html == html
    assert result.report.links_injected == 0
    assert result.report.blocks_eligible == 0

    block = segment_blocks(parse_markup(html), engine_config)[0]
    assert not is_block_eligible(block, engine_config)
    pages = validate_catalog([KRG])
    assert select_best_link(block, pages, EngineState(), engine_config) is None


def test_phrase_inside_existing_link_is_left_alone():
    html = (
        '<p>Our <a href="/other/">advanced keyword research guide</a> '
        "covers every step for beginners and experts alike.</p>"
    )
    result = inject_links(html, [KRG])

    assert result.html == html
    assert result.report.links_injected == 0
    assert result.report.injection_conflicts == 1
    _assert_no_nested_links(result.html)


def test_forbidden_phrase_never_becomes_anchor():
    html = "<p>Please click here to learn more about the keyword research tools we recommend to clients.</p>"
    result = inject_links(html, [{"title": "Click Here To Learn More", "slug": "keyword-research-tools"}])

    for anchor in _anchors(result.html):
        text = anchor.get_text().lower()
        assert "click" not in text
        assert "learn more" not in text


def test_link_cap_is_honoured_in_block_order(engine_config):
    engine_config.raw["max_links_per_document"] = 3
    result = inject_links(FIVE_BLOCKS, FIVE_PAGES, config=engine_config)

    assert result.report.links_injected == 3
    assert [record.block_index for record in result.report.records] == [0, 1, 2]
    assert len(_anchors(result.html)) == 3
    assert len({record.target_slug for record in result.report.records}) == 3


def test_all_blocks_linked_without_cap():
    result = inject_links(FIVE_BLOCKS, FIVE_PAGES)

    report = result.report
    assert report.links_injected == 5
    assert report.unique_targets == 5
    assert report.unique_anchors == 5
    assert report.average_score >= 40
    slugs = [record.target_slug for record in report.records]
    assert slugs == [page["slug"] for page in FIVE_PAGES]
    _assert_no_nested_links(result.html)


def test_camel_case_cap_alias():
    from linkinjector.engine.config import load_config

    config = load_config(None, {"maxLinksPerDocument": 2})
    result = inject_links(FIVE_BLOCKS, FIVE_PAGES, config=config)
    assert result.report.links_injected == 2


def test_existing_link_to_target_marks_it_used():
    html = (
        '<p>We covered this before in <a href="https://example.com/keyword-research-guide">our guide</a>.</p>'
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
    )
    result = inject_links(html, [KRG], base_url="https://example.com")
    assert result.report.links_injected == 0
    assert result.html == html


def test_excluded_zones_are_not_linked():
    html = (
        "<blockquote><p>Our advanced keyword research guide covers every step for beginners.</p></blockquote>"
        '<div class="faq-section"><p>Our advanced keyword research guide covers every step for beginners.</p></div>'
        "<ul><li>Our advanced keyword research guide covers every step for beginners.</li></ul>"
    )
    result = inject_links(html, [KRG])

    assert [record.block_index for record in result.report.records] == [2]
    assert BeautifulSoup(result.html, "html.parser").li.a is not None


def test_skip_first_block(engine_config):
    engine_config.raw["skip_first_block"] = True
    html = (
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
        "<p>Teams that follow an advanced keyword research guide publish more useful pages.</p>"
    )
    result = inject_links(html, [KRG], config=engine_config)
    assert [record.block_index for record in result.report.records] == [1]


def test_heading_is_never_linked():
    html = (
        "<h2>Advanced keyword research guide for every beginner</h2>"
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
    )
    result = inject_links(html, [KRG])
    soup = BeautifulSoup(result.html, "html.parser")
    assert soup.h2.find("a") is None


def test_full_document_round_trip():
    html = (
        "<html><head><title>Post</title></head><body>"
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
        "</body></html>"
    )
    result = inject_links(html, [KRG])
    assert result.html.startswith("<html>")
    assert "<title>Post</title>" in result.html
    assert len(_anchors(result.html)) == 1


def test_block_failure_is_contained(monkeypatch):
    calls = {"count": 0}
    real_select = index_module.select_best_link

    def flaky_select(block, *args, **kwargs):
        calls["count"] += 1
        if block.index == 0:
            raise RuntimeError("boom")
        return real_select(block, *args, **kwargs)

    monkeypatch.setattr(index_module, "select_best_link", flaky_select)
    html = (
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
        "<p>Teams that follow an advanced keyword research guide publish more useful pages.</p>"
    )
    result = inject_links(html, [KRG])

    assert calls["count"] == 2
    assert result.report.block_failures == 1
    assert [record.block_index for record in result.report.records] == [1]


@pytest.mark.parametrize(
    "catalog",
    [
        [],
        "not a list",
        {"title": "A", "slug": "a"},
        [{"title": "Missing slug"}],
        [{"slug": "missing-title"}],
        [{"title": "A", "slug": "a", "keywords": [1, 2]}],
        [{"title": "A", "slug": "a"}, {"title": "B", "slug": "/a/"}],
    ],
)
def test_invalid_catalog_is_rejected(catalog):
    with pytest.raises(InvalidCatalogError):
        inject_links("<p>Anything at all</p>", catalog)


def test_invalid_config_is_rejected(engine_config):
    engine_config.raw["preferred_position"] = "sideways"
    with pytest.raises(InvalidConfigError):
        inject_links("<p>Anything at all</p>", [KRG], config=engine_config)


def test_pre_segmented_blocks_keep_untouched_blocks_identical():
    blocks = [
        "Short intro.",
        "Our advanced keyword research guide covers every step for beginners.",
        "Teams that follow an   advanced keyword research guide publish more useful pages.",
    ]
    result = inject_links_into_blocks(blocks, [KRG])

    assert result.blocks[0] == blocks[0]
    assert result.blocks[2] == blocks[2]
    assert 'href="/keyword-research-guide/"' in result.blocks[1]
    assert 'class="internal-link"' in result.blocks[1]
    assert [record.block_index for record in result.report.records] == [1]


def test_build_target_url_prefers_explicit_url():
    assert build_target_url("https://example.com", make_page("T", "slug", url="https://other.test/x")) == "https://other.test/x"
    assert build_target_url("https://example.com/", make_page("T", "/nested/slug/")) == "https://example.com/nested/slug/"
    assert build_target_url("", make_page("T", "slug")) == "/slug/"


def test_leading_style_and_script_are_kept():
    head = (
        "<style>.x{color:red}</style>"
        '<script type="application/ld+json">{"@type": "Article", "name": "Guide"}</script>'
    )
    html = head + "<p>Our advanced keyword research guide covers every step for beginners.</p>"
    result = inject_links(html, [KRG])

    assert result.report.links_injected == 1
    assert result.html.startswith(head)
    assert len(_anchors(result.html)) == 1


def test_doctype_and_head_survive_injection():
    head = (
        "<!DOCTYPE html>\n<html lang=\"en\"><head><meta charset=\"utf-8\"><title>Post</title></head>\n<body>\n"
    )
    html = head + "<p>Our advanced keyword research guide covers every step for beginners.</p>\n</body></html>\n"
    result = inject_links(html, [KRG])

    assert result.html.startswith(head)
    assert result.html.endswith("\n</body></html>\n")
    assert len(_anchors(result.html)) == 1


def test_untouched_blocks_are_byte_identical():
    untouched = "<p>Line one<br>line&nbsp;two &copy; 2024</p>"
    linked = "<p>Our advanced keyword research guide covers every step for beginners.</p>"
    result = inject_links(untouched + "\n" + linked + "\n" + untouched, [KRG])

    assert result.report.links_injected == 1
    assert result.html.startswith(untouched + "\n<p>")
    assert result.html.endswith("</p>\n" + untouched)


@pytest.mark.parametrize(
    "wrapper",
    ['<div class="stock-photos">{}</div>', '<article id="protocol-basics">{}</article>'],
)
def test_zone_markers_do_not_match_inside_words(wrapper):
    html = wrapper.format("<p>Our advanced keyword research guide covers every step for beginners.</p>")
    result = inject_links(html, [KRG])
    assert result.report.links_injected == 1


def test_zone_marker_matches_word_prefix():
    html = (
        '<div class="key-takeaways">'
        "<p>Our advanced keyword research guide covers every step for beginners.</p>"
        "</div>"
    )
    result = inject_links(html, [KRG])
    assert result.report.links_injected == 0
    assert result.html == html


def test_unique_anchors_ignore_case_and_punctuation():
    report = LinkReport(
        records=[
            LinkRecord(
                target_slug="keyword-research-guide",
                target_url="/keyword-research-guide/",
                anchor_text="Keyword Research Guide",
                score=60.0,
                block_index=0,
            ),
            LinkRecord(
                target_slug="keyword-research-guide",
                target_url="/keyword-research-guide/",
                anchor_text="keyword research guide.",
                score=55.0,
                block_index=3,
            ),
        ]
    )
    assert report.unique_anchors == 1
