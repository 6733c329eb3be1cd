"""Typed data structures used by the link injection engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .errors import InvalidCatalogError
from .text import anchor_key


@dataclass(frozen=True)
class TargetPage:
    """A linkable destination from the caller's catalog."""

    title: str
    slug: str
    description: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    category: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], position: int = 0) -> "TargetPage":
        """Build a page from a catalog entry, rejecting entries without title or slug."""

        if not isinstance(data, Mapping):
            raise InvalidCatalogError(f"Catalog entry {position} must be a mapping, got {type(data).__name__}.")
        title = data.get("title")
        slug = data.get("slug")
        if not isinstance(title, str) or not title.strip():
            raise InvalidCatalogError(f"Catalog entry {position} is missing a title.")
        if not isinstance(slug, str) or not slug.strip("/ "):
            raise InvalidCatalogError(f"Catalog entry {position} is missing a slug.")

        keywords = data.get("keywords") or ()
        if isinstance(keywords, str):
            keywords = [keywords]
        if not all(isinstance(keyword, str) for keyword in keywords):
            raise InvalidCatalogError(f"Catalog entry {position} has non-string keywords.")

        for optional in ("description", "category", "url"):
            value = data.get(optional)
            if value is not None and not isinstance(value, str):
                raise InvalidCatalogError(f"Catalog entry {position} has a non-string {optional}.")

        return cls(
            title=title.strip(),
            slug=slug.strip().strip("/"),
            description=data.get("description") or None,
            keywords=tuple(keyword.strip() for keyword in keywords if keyword.strip()),
            category=data.get("category") or None,
            url=data.get("url") or None,
        )


@dataclass
class TextBlock:
    """A paragraph or list item eligible for link insertion."""

    index: int
    element: Any
    text: str
    heading: Optional[str] = None
    zone: Optional[str] = None
    existing_links: int = 0

    @property
    def markup(self) -> str:
        return self.element.decode_contents()


@dataclass(frozen=True)
class AnchorCandidate:
    """A proposed anchor phrase found inside a block."""

    text: str
    key: str
    word_count: int
    block_index: int
    offset: int
    term_overlap: int
    semantic_relevance: float
    context_fit: float


@dataclass(frozen=True)
class LinkDecision:
    """The chosen (anchor, page) pair for one block."""

    candidate: AnchorCandidate
    page: TargetPage
    score: float
    offset: int
    target_url: str

    @property
    def anchor_text(self) -> str:
        return self.candidate.text


class RunPhase(str, Enum):
    SCANNING = "scanning"
    DONE = "done"


@dataclass
class EngineState:
    """Mutable per-document state. Never share an instance between runs."""

    used_target_slugs: Set[str] = field(default_factory=set)
    used_anchors: Set[str] = field(default_factory=set)
    links_injected: int = 0
    phase: RunPhase = RunPhase.SCANNING

    def record(self, decision: LinkDecision) -> None:
        self.used_target_slugs.add(decision.page.slug)
        self.used_anchors.add(decision.candidate.key)
        self.links_injected += 1


@dataclass(frozen=True)
class LinkRecord:
    """Report entry for one injected link."""

    anchor_text: str
    target_slug: str
    target_url: str
    score: float
    block_index: int


@dataclass
class LinkReport:
    """Ordered injected links plus aggregate run statistics."""

    records: List[LinkRecord] = field(default_factory=list)
    blocks_total: int = 0
    blocks_eligible: int = 0
    injection_conflicts: int = 0
    block_failures: int = 0

    @property
    def links_injected(self) -> int:
        return len(self.records)

    @property
    def unique_targets(self) -> int:
        return len({record.target_slug for record in self.records})

    @property
    def unique_anchors(self) -> int:
        return len({anchor_key(record.anchor_text) for record in self.records})

    @property
    def average_score(self) -> float:
        if not self.records:
            return 0.0
        return sum(record.score for record in self.records) / len(self.records)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "links": [
                {
                    "anchorText": record.anchor_text,
                    "targetSlug": record.target_slug,
                    "targetUrl": record.target_url,
                    "score": round(record.score, 2),
                    "blockIndex": record.block_index,
                }
                for record in self.records
            ],
            "stats": {
                "linksInjected": self.links_injected,
                "uniqueTargets": self.unique_targets,
                "uniqueAnchors": self.unique_anchors,
                "averageScore": round(self.average_score, 2),
                "blocksTotal": self.blocks_total,
                "blocksEligible": self.blocks_eligible,
                "injectionConflicts": self.injection_conflicts,
                "blockFailures": self.block_failures,
            },
        }
