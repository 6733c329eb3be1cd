"""Anchor scoring tests."""

from __future__ import annotations

import pytest

from linkinjector.engine.scoring import score_breakdown, score_candidate, score_reason
from linkinjector.engine.text import anchor_key
from linkinjector.engine.types import AnchorCandidate

from .conftest import make_page

BLOCK = "Our advanced keyword research guide covers every step for beginners."


def candidate_for(text: str, block: str = BLOCK) -> AnchorCandidate:
    return AnchorCandidate(
        text=text,
        key=anchor_key(text),
        word_count=len(text.split()),
        block_index=0,
        offset=block.lower().find(text.lower()),
        term_overlap=0,
        semantic_relevance=0.0,
        context_fit=0.0,
    )


def test_exact_title_anchor_clears_threshold(engine_config):
    page = make_page("Advanced Keyword Research Guide", "keyword-research-guide")
    candidate = candidate_for("advanced keyword research guide")
    features = score_breakdown(candidate, page, BLOCK, config=engine_config)

    assert features["word_count_fit"] == 15
    assert features["word_count_sweet_spot"] == 5
    assert features["power_word"] == 10
    assert features["title_relevance"] == pytest.approx(30)
    assert features["early_position"] == -5
    assert score_candidate(candidate, page, BLOCK, config=engine_config) == pytest.approx(sum(features.values()))
    assert score_candidate(candidate, page, BLOCK, config=engine_config) >= engine_config.min_quality_score


def test_forbidden_phrase_is_penalised(engine_config):
    block = "If you want keyword research tips, click here to learn more today."
    page = make_page("Keyword Research Tips", "keyword-research-tips")
    features = score_breakdown(candidate_for("click here to learn more", block), page, block, config=engine_config)

    assert features["forbidden_anchor"] == -25
    assert features["trailing_stopword"] == -5


def test_stopword_edges_are_penalised(engine_config):
    page = make_page("Keyword Research Guide", "keyword-research-guide")
    features = score_breakdown(candidate_for("the keyword research guide"), page, "the keyword research guide", config=engine_config)

    assert features["leading_stopword"] == -8
    assert "trailing_stopword" not in features


def test_word_count_outside_range(engine_config):
    page = make_page("Keyword Research", "keyword-research")
    short = score_breakdown(candidate_for("keyword research"), page, BLOCK, config=engine_config)
    assert short["word_count_short"] == -10
    assert "word_count_fit" not in short

    long_text = "our advanced keyword research guide covers every step for beginners"
    long = score_breakdown(candidate_for(long_text), page, BLOCK, config=engine_config)
    assert long["word_count_long"] == -15


def test_power_words_are_capped(engine_config):
    page = make_page("Proven Guide", "proven-guide")
    text = "proven effective advanced essential guide"
    features = score_breakdown(candidate_for(text, text), page, text, config=engine_config)
    assert features["power_word"] == 15


def test_position_preference(engine_config):
    page = make_page("Link Building Strategies", "link-building-strategies")
    block = "Before you start any outreach campaign, review these link building strategies."
    candidate = candidate_for("link building strategies", block)

    middle = score_breakdown(candidate, page, block, config=engine_config)
    assert middle["position_fit"] == 8

    engine_config.raw["preferred_position"] = "start"
    start = score_breakdown(candidate, page, block, config=engine_config)
    assert "position_fit" not in start

    engine_config.raw["preferred_position"] = "end"
    end = score_breakdown(candidate, page, block, config=engine_config)
    assert end["position_fit"] == 8

    engine_config.raw["preferred_position"] = "any"
    anywhere = score_breakdown(candidate, page, block, config=engine_config)
    assert "position_fit" not in anywhere


def test_heading_duplication_penalty(engine_config):
    page = make_page("Keyword Research Guide", "keyword-research-guide")
    candidate = candidate_for("advanced keyword research guide")

    with_heading = score_breakdown(candidate, page, BLOCK, heading="Keyword Research Guide", config=engine_config)
    without = score_breakdown(candidate, page, BLOCK, heading="Pricing", config=engine_config)

    assert with_heading["heading_duplication"] == -15
    assert "heading_duplication" not in without


def test_keyword_bonus_is_capped(engine_config):
    page = make_page(
        "Research Guide",
        "research-guide",
        keywords=["keyword research", "research guide", "advanced keyword"],
    )
    features = score_breakdown(candidate_for("advanced keyword research guide"), page, BLOCK, config=engine_config)
    assert features["keyword_match"] == 10


def test_score_never_negative(engine_config):
    page = make_page("Unrelated Topic", "unrelated-topic")
    block = "click here"
    candidate = candidate_for("click here", block)
    assert score_candidate(candidate, page, block, config=engine_config) == 0.0


def test_score_reason_mentions_strongest_signals():
    reason = score_reason({"title_relevance": 30.0, "word_count_fit": 15.0, "power_word": 5.0, "early_position": -5.0})
    assert reason == "excellent title match; strong natural length; penalised: early_position"
