"""Word lists shared by the tokenizer, extractor and scorer."""

from __future__ import annotations

import re
from typing import FrozenSet, List, Pattern, Tuple

STOPWORDS: FrozenSet[str] = frozenset(
    {
        # articles and determiners
        "the", "a", "an", "this", "that", "these", "those", "each", "every",
        "all", "both", "few", "some", "such", "any", "other", "own", "same",
        # prepositions
        "in", "on", "at", "to", "for", "of", "with", "by", "from", "as",
        "into", "through", "during", "before", "after", "above", "below",
        "between", "under", "over", "about", "again", "further", "once",
        # pronouns
        "it", "its", "they", "them", "their", "you", "your", "we", "our",
        "us", "my", "his", "her", "him", "she", "he", "what", "which",
        "who", "whom", "whose",
        # auxiliaries and modals
        "is", "was", "are", "were", "been", "be", "being", "have", "has",
        "had", "having", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "shall", "can",
        # conjunctions and adverbs
        "and", "or", "but", "nor", "not", "no", "so", "than", "too",
        "very", "just", "also", "now", "then", "here", "there", "when",
        "where", "why", "how", "only", "more", "most", "if", "yet",
        "while", "because", "since", "although",
    }
)

# Words that may not open or close an anchor.
BOUNDARY_STOPWORDS: FrozenSet[str] = STOPWORDS | frozenset(
    {"i", "quite", "rather", "really", "need", "let's", "it's", "that's"}
)

# Generic link texts. Matched as whole words anywhere inside a phrase.
FORBIDDEN_ANCHORS: Tuple[str, ...] = (
    "click here",
    "click below",
    "tap here",
    "go here",
    "visit here",
    "read more",
    "learn more",
    "find out more",
    "find out",
    "check out",
    "check it out",
    "check this out",
    "see more",
    "see also",
    "view more",
    "discover more",
    "explore more",
    "continue reading",
    "more info",
    "more information",
    "more details",
    "additional information",
    "full details",
    "this article",
    "this guide",
    "this post",
    "this page",
    "this link",
    "our website",
    "our blog",
    "related post",
    "related article",
    "here",
    "click",
)

POWER_WORDS: FrozenSet[str] = frozenset(
    {
        "guide", "tutorial", "strategy", "strategies", "techniques", "tips",
        "best", "practices", "complete", "ultimate", "proven", "effective",
        "step-by-step", "comprehensive", "essential", "advanced", "beginner",
        "professional", "expert", "optimize", "optimization", "improve",
        "increase", "boost", "maximize", "tools", "methods", "examples",
        "framework", "checklist", "resources", "benefits", "overview",
    }
)

TOPIC_MODIFIERS: Tuple[str, ...] = (
    "for beginners",
    "for professionals",
    "for ecommerce",
    "for wordpress",
    "for small business",
    "for startups",
    "step by step",
    "from scratch",
    "best practices",
    "complete guide",
    "ultimate guide",
    "how to",
    "without coding",
)

DESCRIPTIVE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(complete|comprehensive|ultimate|definitive)\s+\w+\s+guide\b", re.IGNORECASE),
    re.compile(r"\b(step[- ]by[- ]step|how[- ]to)\s+\w+", re.IGNORECASE),
    re.compile(r"\b(best|top|proven|effective)\s+(practices|strategies|techniques|methods|tips)\b", re.IGNORECASE),
    re.compile(r"\b(beginner|advanced|expert|professional)\s+\w+\s+(guide|tips|tutorial)\b", re.IGNORECASE),
    re.compile(r"\b(essential|critical|important)\s+\w+\s+(tips|strategies|guide)\b", re.IGNORECASE),
]


def _phrase_pattern(phrase: str) -> Pattern[str]:
    words = [re.escape(word) for word in phrase.split()]
    return re.compile(r"(?<![\w'])" + r"\s+".join(words) + r"(?![\w'])", re.IGNORECASE)


_FORBIDDEN_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    (phrase, _phrase_pattern(phrase)) for phrase in FORBIDDEN_ANCHORS
]
_MODIFIER_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    (phrase, _phrase_pattern(phrase)) for phrase in TOPIC_MODIFIERS
]


def forbidden_match(phrase: str) -> str | None:
    """Return the first forbidden anchor contained in ``phrase``, if any."""

    for forbidden, pattern in _FORBIDDEN_PATTERNS:
        if pattern.search(phrase):
            return forbidden
    return None


def has_descriptive_pattern(phrase: str) -> bool:
    """Return True when the phrase carries a topic modifier or descriptive pattern."""

    if any(pattern.search(phrase) for _, pattern in _MODIFIER_PATTERNS):
        return True
    return any(pattern.search(phrase) for pattern in DESCRIPTIVE_PATTERNS)
