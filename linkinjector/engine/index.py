"""Coordinator for a single link injection pass over one document."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Iterable, List, Set

from .config import EngineConfig, load_config
from .errors import InvalidCatalogError
from .injector import inject_into_element, link_attributes
from .markup import (
    fragment_block,
    linked_hrefs,
    mark_edge_blocks,
    normalize_href,
    parse_markup,
    segment_blocks,
    splice_blocks,
)
from .selector import build_target_url, is_block_eligible, select_best_link
from .types import EngineState, LinkRecord, LinkReport, RunPhase, TargetPage, TextBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InjectionResult:
    html: str
    report: LinkReport


@dataclass(frozen=True)
class BlockInjectionResult:
    blocks: List[str]
    report: LinkReport


def validate_catalog(catalog: Any) -> List[TargetPage]:
    """Return the catalog as validated pages, raising :class:`InvalidCatalogError`."""

    if isinstance(catalog, (str, bytes, Mapping)) or not isinstance(catalog, Sequence):
        raise InvalidCatalogError("Catalog must be a list of target pages.")
    if not catalog:
        raise InvalidCatalogError("Catalog must contain at least one target page.")

    pages: List[TargetPage] = []
    seen: Set[str] = set()
    for position, entry in enumerate(catalog):
        page = entry if isinstance(entry, TargetPage) else TargetPage.from_mapping(entry, position)
        slug_key = page.slug.lower()
        if slug_key in seen:
            raise InvalidCatalogError(f"Catalog entry {position} repeats slug {page.slug!r}.")
        seen.add(slug_key)
        pages.append(page)
    return pages


def _already_linked(pages: Iterable[TargetPage], hrefs: Set[str], base_url: str) -> Set[str]:
    if not hrefs:
        return set()
    used: Set[str] = set()
    for page in pages:
        url = normalize_href(build_target_url(base_url, page))
        suffix = "/" + page.slug.lower()
        if url in hrefs or any(href.endswith(suffix) for href in hrefs):
            used.add(page.slug)
    return used


def _run(
    blocks: Sequence[TextBlock],
    pages: Sequence[TargetPage],
    state: EngineState,
    config: EngineConfig,
    base_url: str,
) -> LinkReport:
    report = LinkReport(blocks_total=len(blocks))
    max_links = config.max_links_per_document
    attrs = link_attributes(config.get("link_class"), config.get("link_rel"), config.get("link_title"))

    for block in blocks:
        if state.links_injected >= max_links:
            break
        if not is_block_eligible(block, config):
            continue
        report.blocks_eligible += 1

        try:
            decision = select_best_link(block, pages, state, config, base_url)
        except Exception:
            logger.warning("Skipping block %s after a selection failure", block.index, exc_info=True)
            report.block_failures += 1
            continue
        if decision is None:
            continue

        if not inject_into_element(block.element, decision.anchor_text, decision.target_url, attrs=attrs):
            logger.warning(
                "Block %s: could not place anchor %r for %s safely",
                block.index,
                decision.anchor_text,
                decision.page.slug,
            )
            report.injection_conflicts += 1
            continue

        state.record(decision)
        report.records.append(
            LinkRecord(
                anchor_text=decision.anchor_text,
                target_slug=decision.page.slug,
                target_url=decision.target_url,
                score=decision.score,
                block_index=block.index,
            )
        )
        logger.debug(
            "Block %s: linked %r to %s (score %.1f)",
            block.index,
            decision.anchor_text,
            decision.target_url,
            decision.score,
        )

    state.phase = RunPhase.DONE
    logger.info(
        "Injected %s link(s) across %s eligible of %s block(s); %s conflict(s), %s failure(s)",
        report.links_injected,
        report.blocks_eligible,
        report.blocks_total,
        report.injection_conflicts,
        report.block_failures,
    )
    return report


def inject_links(
    html: str,
    catalog: Any,
    base_url: str = "",
    config: EngineConfig | None = None,
) -> InjectionResult:
    """Insert at most one contextual link per block of ``html``.

    ``catalog`` is a sequence of mappings (or :class:`TargetPage` objects)
    with at least ``title`` and ``slug``. Raises :class:`InvalidCatalogError`
    for a bad catalog; every other problem only affects the block it occurs
    in. Only the blocks that receive a link are rewritten; the rest of
    ``html`` is returned byte for byte.
    """

    pages = validate_catalog(catalog)
    engine_config = config or load_config(None)
    engine_config.validate()

    if not html or not html.strip():
        return InjectionResult(html=html, report=LinkReport())

    soup = parse_markup(html)
    blocks = segment_blocks(soup, engine_config)

    state = EngineState()
    if engine_config.get("respect_existing_links", True):
        state.used_target_slugs.update(_already_linked(pages, linked_hrefs(soup), base_url))

    report = _run(blocks, pages, state, engine_config, base_url)
    if not report.records:
        return InjectionResult(html=html, report=report)

    linked = {record.block_index for record in report.records}
    spliced = splice_blocks(html, [block for block in blocks if block.index in linked])
    if spliced is None:
        logger.debug("Could not locate every linked block in the source; re-serialising the document")
        spliced = str(soup)
    return InjectionResult(html=spliced, report=report)


def inject_links_into_blocks(
    blocks: Sequence[str],
    catalog: Any,
    base_url: str = "",
    config: EngineConfig | None = None,
) -> BlockInjectionResult:
    """Variant of :func:`inject_links` for content that is already split into blocks.

    Each string is treated as one block. Blocks that receive no link are
    returned exactly as given.
    """

    pages = validate_catalog(catalog)
    engine_config = config or load_config(None)
    engine_config.validate()

    text_blocks = [fragment_block(markup or "", index, engine_config) for index, markup in enumerate(blocks)]
    mark_edge_blocks(text_blocks, engine_config)

    state = EngineState()
    if engine_config.get("respect_existing_links", True):
        hrefs: Set[str] = set()
        for block in text_blocks:
            hrefs |= linked_hrefs(block.element)
        state.used_target_slugs.update(_already_linked(pages, hrefs, base_url))

    report = _run(text_blocks, pages, state, engine_config, base_url)
    linked: Set[int] = {record.block_index for record in report.records}
    output: List[str] = [
        text_blocks[index].markup if index in linked else original
        for index, original in enumerate(blocks)
    ]
    return BlockInjectionResult(blocks=output, report=report)
