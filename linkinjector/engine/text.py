"""Shared text utilities for the link engine."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Set

from .lexicon import STOPWORDS

_TOKEN_RE = re.compile(r"[\w']+")
_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def tokenize(text: str) -> List[str]:
    """Return lower-cased word tokens from the provided text."""

    tokens = []
    for raw in _TOKEN_RE.findall(text.lower()):
        token = raw.strip("'")
        if token:
            tokens.append(token)
    return tokens


def normalize(text: str) -> List[str]:
    """Return the significant tokens of ``text``, in order.

    Tokens of two characters or fewer and stopwords are dropped. The output
    re-normalizes to itself when joined with spaces.
    """

    return [token for token in tokenize(text) if len(token) > 2 and token not in STOPWORDS]


def anchor_key(text: str) -> str:
    """Normalized form of an anchor phrase used for uniqueness checks."""

    return " ".join(tokenize(text))


def collapse_whitespace(text: str) -> str:
    return _SPACE_RE.sub(" ", text).strip()


def strip_tags(text: str) -> str:
    """Remove anything that looks like a tag and collapse whitespace."""

    return collapse_whitespace(_TAG_RE.sub(" ", text))


def slug_words(slug: str) -> str:
    return re.sub(r"[-_/]+", " ", slug)


def target_terms(page) -> Set[str]:
    """Significant terms of a target page's title, slug and keywords."""

    terms = set(normalize(page.title))
    terms.update(normalize(slug_words(page.slug)))
    for keyword in page.keywords:
        terms.update(normalize(keyword))
    return terms


def ngrams(tokens: Sequence[str], n: int) -> Set[str]:
    """Return the set of space-joined ``n``-grams for the token sequence."""

    if n <= 0 or len(tokens) < n:
        return set()
    return {" ".join(tokens[index:index + n]) for index in range(len(tokens) - n + 1)}


def jaccard(set_a: Iterable[str], set_b: Iterable[str]) -> float:
    """Return Jaccard similarity for two iterables."""

    set_a = set(set_a)
    set_b = set(set_b)
    if not set_a and not set_b:
        return 0.0
    intersection = set_a & set_b
    union = set_a | set_b
    if not union:
        return 0.0
    return len(intersection) / len(union)


def similarity(text_a: str, text_b: str) -> float:
    """Term-overlap similarity in [0, 1]: word Jaccard blended with bigram Jaccard."""

    tokens_a = normalize(text_a)
    tokens_b = normalize(text_b)
    if not tokens_a or not tokens_b:
        return 0.0
    word_score = jaccard(tokens_a, tokens_b)
    bigram_score = jaccard(ngrams(tokens_a, 2), ngrams(tokens_b, 2))
    return word_score * 0.6 + bigram_score * 0.4


def overlap_ratio(tokens: Sequence[str], reference: Iterable[str]) -> float:
    """Share of ``tokens`` that also appear in ``reference``."""

    if not tokens:
        return 0.0
    reference_set = set(reference)
    return sum(1 for token in tokens if token in reference_set) / len(tokens)
