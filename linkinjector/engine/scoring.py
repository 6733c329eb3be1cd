"""Anchor quality scoring.

Every signal contributes a signed number of points; the score is their sum,
clamped at zero. Point values come from the ``weights`` and ``penalties``
sections of :class:`~linkinjector.engine.config.EngineConfig` so that the
scale can be tuned without touching code.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

from .config import EngineConfig, load_config
from .lexicon import BOUNDARY_STOPWORDS, POWER_WORDS, forbidden_match, has_descriptive_pattern
from .text import anchor_key, normalize, overlap_ratio, similarity
from .types import AnchorCandidate, TargetPage

FeatureDict = Dict[str, float]

_EDGE_PUNCT_RE = re.compile(r"^[^\w']+|[^\w']+$")

_POSITION_WINDOWS = {
    "start": (0.0, 0.25),
    "middle": (0.25, 0.75),
    "end": (0.6, 1.0),
}


def _bare(word: str) -> str:
    return _EDGE_PUNCT_RE.sub("", word).lower()


def _position_ratio(candidate: AnchorCandidate, block_text: str) -> Optional[float]:
    if not block_text:
        return None
    offset = candidate.offset
    if offset < 0 or offset >= len(block_text):
        offset = block_text.lower().find(candidate.text.lower())
        if offset < 0:
            return None
    return offset / len(block_text)


def _keyword_hits(candidate: AnchorCandidate, page: TargetPage) -> int:
    padded = f" {candidate.key} "
    hits = 0
    for keyword in page.keywords:
        key = anchor_key(keyword)
        if key and f" {key} " in padded:
            hits += 1
    return hits


def score_breakdown(
    candidate: AnchorCandidate,
    page: TargetPage,
    block_text: str,
    heading: Optional[str] = None,
    config: EngineConfig | None = None,
) -> FeatureDict:
    """Return the signed contribution of each scoring signal."""

    config = config or load_config(None)
    words = candidate.text.split()
    word_count = len(words)
    features: FeatureDict = {}

    min_words = config.min_anchor_words
    max_words = config.max_anchor_words
    if min_words <= word_count <= max_words:
        features["word_count_fit"] = config.feature_weight("word_count_fit")
        if 4 <= word_count <= 5:
            features["word_count_sweet_spot"] = config.feature_weight("word_count_sweet_spot")
    elif word_count < min_words:
        features["word_count_short"] = -config.penalty_weight("word_count_short") * (min_words - word_count)
    else:
        features["word_count_long"] = -config.penalty_weight("word_count_long") * (word_count - max_words)

    if words and _bare(words[0]) in BOUNDARY_STOPWORDS:
        features["leading_stopword"] = -config.penalty_weight("leading_stopword")
    if words and _bare(words[-1]) in BOUNDARY_STOPWORDS:
        features["trailing_stopword"] = -config.penalty_weight("trailing_stopword")

    if forbidden_match(candidate.text):
        features["forbidden_anchor"] = -config.penalty_weight("forbidden_anchor")

    # Distinct words only, so repeating "guide" twice earns nothing extra.
    power_words = {_bare(word) for word in words} & POWER_WORDS
    if power_words:
        features["power_word"] = min(
            len(power_words) * config.feature_weight("power_word"),
            config.feature_weight("power_word_cap"),
        )

    if has_descriptive_pattern(candidate.text):
        features["descriptive_pattern"] = config.feature_weight("descriptive_pattern")

    features["title_relevance"] = similarity(candidate.text, page.title) * config.feature_weight("title_relevance")
    features["context_relevance"] = similarity(candidate.text, block_text) * config.feature_weight("context_relevance")

    hits = _keyword_hits(candidate, page)
    if hits:
        features["keyword_match"] = min(
            hits * config.feature_weight("keyword_match"),
            config.feature_weight("keyword_match_cap"),
        )

    ratio = _position_ratio(candidate, block_text)
    if ratio is not None:
        preferred = config.preferred_position
        window = _POSITION_WINDOWS.get(preferred)
        if window and window[0] <= ratio <= window[1]:
            features["position_fit"] = config.feature_weight("position_fit")
        if ratio < 0.1 and preferred != "start":
            features["early_position"] = -config.penalty_weight("early_position")

    if heading:
        anchor_terms = normalize(candidate.text)
        threshold = float(config.get("heading_overlap_ratio", 0.6))
        if anchor_terms and overlap_ratio(anchor_terms, normalize(heading)) >= threshold:
            features["heading_duplication"] = -config.penalty_weight("heading_duplication")

    return features


def score_candidate(
    candidate: AnchorCandidate,
    page: TargetPage,
    block_text: str,
    heading: Optional[str] = None,
    config: EngineConfig | None = None,
) -> float:
    """Return the anchor quality score, never below zero."""

    features = score_breakdown(candidate, page, block_text, heading, config)
    return max(0.0, sum(features.values()))


def score_reason(features: FeatureDict, top_k: int = 2) -> str:
    """Return a human-friendly reason summary based on the strongest signals."""

    positive = sorted(
        ((value, name) for name, value in features.items() if value > 0),
        reverse=True,
    )
    fragments = [_reason_fragment(name, value) for value, name in positive[:top_k]]
    fragments = [fragment for fragment in fragments if fragment]
    penalties = sorted(name for name, value in features.items() if value < 0)
    if penalties:
        fragments.append(f"penalised: {', '.join(penalties)}")
    return "; ".join(fragments)


def _reason_fragment(name: str, value: float) -> str:
    mapping = {
        "title_relevance": "title match",
        "context_relevance": "fits the paragraph",
        "word_count_fit": "natural length",
        "word_count_sweet_spot": "ideal length",
        "power_word": "descriptive wording",
        "descriptive_pattern": "specific phrasing",
        "keyword_match": "target keyword",
        "position_fit": "good placement",
    }
    descriptor = mapping.get(name)
    if not descriptor:
        return ""
    if value >= 20:
        qualifier = "excellent"
    elif value >= 10:
        qualifier = "strong"
    else:
        qualifier = "good"
    return f"{qualifier} {descriptor}"
