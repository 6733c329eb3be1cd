"""Per-block choice of the single best (anchor, page) pair."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .candidates import extract_candidates
from .config import EngineConfig
from .scoring import score_candidate
from .types import EngineState, LinkDecision, TargetPage, TextBlock

logger = logging.getLogger(__name__)


def is_block_eligible(block: TextBlock, config: EngineConfig) -> bool:
    """Return ``True`` when ``block`` may receive a link at all."""

    if block.zone is not None:
        return False
    if block.existing_links >= int(config.get("max_existing_links_per_block", 2)):
        return False
    return len(block.text) >= config.min_block_chars


def build_target_url(base_url: str, page: TargetPage) -> str:
    if page.url:
        return page.url
    base = (base_url or "").rstrip("/")
    return f"{base}/{page.slug.strip('/')}/"


def select_best_link(
    block: TextBlock,
    catalog: Sequence[TargetPage],
    state: EngineState,
    config: EngineConfig,
    base_url: str = "",
) -> Optional[LinkDecision]:
    """Pick the highest scoring candidate across every unused target page.

    Pages are visited in catalog order and candidates in extraction order;
    only a strictly higher score replaces the current best, so ties go to
    the earlier page and the earlier candidate. Returns ``None`` when nothing
    reaches ``min_quality_score``.
    """

    if not is_block_eligible(block, config):
        return None

    best: Optional[LinkDecision] = None
    for page in catalog:
        if page.slug in state.used_target_slugs:
            continue
        candidates = extract_candidates(
            block.text,
            page,
            state,
            config,
            block_index=block.index,
            heading=block.heading,
        )
        for candidate in candidates:
            score = score_candidate(candidate, page, block.text, block.heading, config)
            if best is None or score > best.score:
                best = LinkDecision(
                    candidate=candidate,
                    page=page,
                    score=score,
                    offset=candidate.offset,
                    target_url=build_target_url(base_url, page),
                )

    if best is None:
        logger.debug("Block %s: no candidates for any unused target", block.index)
        return None
    if best.score < config.min_quality_score:
        logger.debug(
            "Block %s: best anchor %r for %s scored %.1f, below threshold %.1f",
            block.index,
            best.anchor_text,
            best.page.slug,
            best.score,
            config.min_quality_score,
        )
        return None
    return best
