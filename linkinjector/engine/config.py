"""Configuration helpers for the link engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .errors import InvalidConfigError

POSITIONS = ("start", "middle", "end", "any")


@dataclass(frozen=True)
class EngineConfig:
    """Typed wrapper around the engine configuration dictionary."""

    raw: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def feature_weight(self, feature: str) -> float:
        weights = self.raw.get("weights", {})
        return float(weights.get(feature, 0.0))

    def penalty_weight(self, feature: str) -> float:
        penalties = self.raw.get("penalties", {})
        return float(penalties.get(feature, 0.0))

    @property
    def min_anchor_words(self) -> int:
        return int(self.raw["min_anchor_words"])

    @property
    def max_anchor_words(self) -> int:
        return int(self.raw["max_anchor_words"])

    @property
    def min_quality_score(self) -> float:
        return float(self.raw["min_quality_score"])

    @property
    def max_links_per_document(self) -> int:
        return int(self.raw["max_links_per_document"])

    @property
    def min_block_chars(self) -> int:
        return int(self.raw["min_block_chars"])

    @property
    def preferred_position(self) -> str:
        return str(self.raw["preferred_position"])

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> "EngineConfig":
        """Return a validated copy with ``overrides`` merged in."""

        if not overrides:
            return self
        data = copy.deepcopy(self.raw)
        merge_into(data, translate_aliases(overrides))
        config = EngineConfig(data)
        config.validate()
        return config

    def validate(self) -> None:
        """Raise :class:`InvalidConfigError` when a value is unusable."""

        try:
            min_words = self.min_anchor_words
            max_words = self.max_anchor_words
            threshold = self.min_quality_score
            max_links = self.max_links_per_document
            min_chars = self.min_block_chars
            per_page = int(self.raw["max_candidates_per_page"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidConfigError(f"Invalid engine configuration: {exc}") from exc

        if min_words < 1 or max_words < min_words:
            raise InvalidConfigError(
                f"Anchor word range [{min_words}, {max_words}] is invalid."
            )
        if max_links < 0:
            raise InvalidConfigError("max_links_per_document must not be negative.")
        if per_page < 1:
            raise InvalidConfigError("max_candidates_per_page must be at least 1.")
        if min_chars < 0 or threshold < 0:
            raise InvalidConfigError("min_block_chars and min_quality_score must not be negative.")
        if self.preferred_position not in POSITIONS:
            raise InvalidConfigError(
                f"preferred_position must be one of {', '.join(POSITIONS)}; got {self.preferred_position!r}."
            )


DEFAULTS: Dict[str, Any] = {
    "min_anchor_words": 3,
    "max_anchor_words": 7,
    "min_anchor_chars": 10,
    "min_quality_score": 40.0,
    "max_links_per_document": 12,
    "min_block_chars": 60,
    "preferred_position": "middle",
    "max_candidates_per_page": 10,
    "max_existing_links_per_block": 2,
    "respect_sentence_boundaries": True,
    "respect_existing_links": True,
    "skip_first_block": False,
    "skip_last_block": False,
    "block_tags": ["p", "li"],
    "excluded_zone_tags": ["blockquote", "table", "details", "figure", "aside", "nav", "pre", "code"],
    "excluded_zone_classes": ["faq", "reference", "takeaway", "toc"],
    "link_class": "internal-link",
    "link_rel": None,
    "link_title": None,
    "weights": {
        "word_count_fit": 15.0,
        "word_count_sweet_spot": 5.0,
        "power_word": 5.0,
        "power_word_cap": 15.0,
        "descriptive_pattern": 8.0,
        "title_relevance": 30.0,
        "context_relevance": 20.0,
        "keyword_match": 5.0,
        "keyword_match_cap": 10.0,
        "position_fit": 8.0,
    },
    "penalties": {
        "word_count_short": 10.0,
        "word_count_long": 5.0,
        "leading_stopword": 8.0,
        "trailing_stopword": 5.0,
        "forbidden_anchor": 25.0,
        "early_position": 5.0,
        "heading_duplication": 15.0,
    },
    "heading_overlap_ratio": 0.6,
}

# camelCase option names accepted from JSON clients.
ALIASES: Dict[str, str] = {
    "minAnchorWords": "min_anchor_words",
    "maxAnchorWords": "max_anchor_words",
    "minQualityScore": "min_quality_score",
    "maxLinksPerDocument": "max_links_per_document",
    "maxLinksPerPost": "max_links_per_document",
    "minWordsBetweenLinks": "min_block_chars",
    "preferredPosition": "preferred_position",
}


def translate_aliases(options: Mapping[str, Any]) -> Dict[str, Any]:
    return {ALIASES.get(key, key): value for key, value in options.items()}


def load_config(
    path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> EngineConfig:
    """Load configuration from YAML, merging with defaults and then ``overrides``."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            user = yaml.safe_load(stream) or {}
        if not isinstance(user, dict):
            raise InvalidConfigError(f"Configuration file {path} must contain a mapping.")
        merge_into(data, translate_aliases(user))

    if overrides:
        merge_into(data, translate_aliases(overrides))

    config = EngineConfig(data)
    config.validate()
    return config


def merge_into(base: Dict[str, Any], override: Mapping[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value
