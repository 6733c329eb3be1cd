"""Anchor candidate extraction from block text."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from .config import EngineConfig, load_config
from .lexicon import BOUNDARY_STOPWORDS, forbidden_match
from .scoring import score_candidate
from .text import anchor_key, collapse_whitespace, normalize, similarity, strip_tags, target_terms
from .types import AnchorCandidate, EngineState, TargetPage

_WORD_RE = re.compile(r"\S+")
_LEADING_PUNCT_RE = re.compile(r"^[^\w]+")
_TRAILING_PUNCT_RE = re.compile(r"[^\w]+$")
_SENTENCE_END_RE = re.compile(r"[.!?][\"'”’)\]]*$")

Word = Tuple[str, int]


def extract_candidates(
    block_text: str,
    page: TargetPage,
    state: Optional[EngineState] = None,
    config: EngineConfig | None = None,
    *,
    block_index: int = 0,
    heading: Optional[str] = None,
    markup: bool = False,
) -> List[AnchorCandidate]:
    """Return ranked anchor candidates for ``page`` found inside ``block_text``.

    Every contiguous window of ``min_anchor_words`` to ``max_anchor_words``
    words is considered. Windows are cleaned of edge punctuation and edge
    stopwords, and dropped when they are too short, contain a forbidden
    anchor, cross a sentence boundary, were already used in this document,
    or share no significant term with the target page (unless they clear the
    quality threshold on their own).

    ``block_text`` is plain text; pass ``markup=True`` to have tags stripped
    first, otherwise a literal ``<`` in the text is kept as written.
    """

    config = config or load_config(None)
    text = strip_tags(block_text) if markup else collapse_whitespace(block_text)
    words: List[Word] = [(match.group(0), match.start()) for match in _WORD_RE.finditer(text)]

    min_words = config.min_anchor_words
    max_words = config.max_anchor_words
    min_chars = int(config.get("min_anchor_chars", 10))
    check_sentences = bool(config.get("respect_sentence_boundaries", True))
    used_anchors = state.used_anchors if state is not None else set()
    terms = target_terms(page)

    found: Dict[str, AnchorCandidate] = {}
    for length in range(min_words, max_words + 1):
        for start in range(0, len(words) - length + 1):
            window = words[start:start + length]
            if check_sentences and _crosses_sentence(window):
                continue

            cleaned = _strip_edges(window)
            if len(_join(cleaned)) < min_chars:
                continue
            if forbidden_match(_join(cleaned)):
                continue

            trimmed = _trim_stopwords(cleaned)
            if len(trimmed) < min_words:
                continue
            phrase = _join(trimmed)
            if len(phrase) < min_chars:
                continue

            key = anchor_key(phrase)
            if not key or key in used_anchors or key in found:
                continue

            candidate = AnchorCandidate(
                text=phrase,
                key=key,
                word_count=len(trimmed),
                block_index=block_index,
                offset=trimmed[0][1],
                term_overlap=len(set(normalize(phrase)) & terms),
                semantic_relevance=similarity(phrase, page.title),
                context_fit=similarity(phrase, text),
            )
            if candidate.term_overlap == 0:
                direct = score_candidate(candidate, page, text, heading, config)
                if direct < config.min_quality_score:
                    continue
            found[key] = candidate

    ranked = sorted(found.values(), key=_rank_key)
    limit = int(config.get("max_candidates_per_page", 10))
    return ranked[:limit]


def _rank_key(candidate: AnchorCandidate) -> Tuple[int, float, int, int, int]:
    sweet_spot = 0 if 4 <= candidate.word_count <= 5 else 1
    return (
        -candidate.term_overlap,
        -candidate.semantic_relevance,
        sweet_spot,
        candidate.offset,
        candidate.word_count,
    )


def _join(words: Sequence[Word]) -> str:
    return " ".join(word for word, _ in words)


def _crosses_sentence(window: Sequence[Word]) -> bool:
    return any(_SENTENCE_END_RE.search(word) for word, _ in window[:-1])


def _strip_edges(window: Sequence[Word]) -> List[Word]:
    """Strip punctuation from the outer edges of the window."""

    words = list(window)
    while words:
        word, offset = words[0]
        stripped = _LEADING_PUNCT_RE.sub("", word)
        if stripped:
            words[0] = (stripped, offset + len(word) - len(stripped))
            break
        words.pop(0)
    while words:
        word, offset = words[-1]
        stripped = _TRAILING_PUNCT_RE.sub("", word)
        if stripped:
            words[-1] = (stripped, offset)
            break
        words.pop()
    return words


def _is_boundary_stopword(word: str) -> bool:
    bare = _TRAILING_PUNCT_RE.sub("", _LEADING_PUNCT_RE.sub("", word)).lower()
    return not bare or bare in BOUNDARY_STOPWORDS


def _trim_stopwords(words: Sequence[Word]) -> List[Word]:
    trimmed = list(words)
    while trimmed and _is_boundary_stopword(trimmed[0][0]):
        trimmed.pop(0)
    while trimmed and _is_boundary_stopword(trimmed[-1][0]):
        trimmed.pop()
    return _strip_edges(trimmed)
