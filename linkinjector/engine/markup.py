"""HTML parsing, block segmentation and source splicing built on BeautifulSoup.

Documents are parsed with the bundled ``html.parser`` tree builder: it keeps
the input's own structure (no generated ``<html>``/``<head>``/``<body>``) and
records where each start tag sits in the source, which lets changed blocks be
spliced back into the untouched input.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from bs4 import BeautifulSoup, Tag  # type: ignore

from .config import EngineConfig
from .text import collapse_whitespace
from .types import TextBlock

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

_MARKER_SPLIT_RE = re.compile(r"[\s_-]+")


def parse_markup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def strip_existing_links(html: str) -> str:
    """Remove anchor tags from ``html`` while preserving their inner content."""

    if not html:
        return html

    soup = parse_markup(html)
    for anchor in soup.find_all("a"):
        anchor.unwrap()
    return str(soup)


def _line_starts(markup: str) -> List[int]:
    starts = [0]
    for match in re.finditer("\n", markup):
        starts.append(match.end())
    return starts


def _source_offset(element: Tag, line_starts: Sequence[int]) -> Optional[int]:
    line = getattr(element, "sourceline", None)
    column = getattr(element, "sourcepos", None)
    if line is None or column is None or not 0 < line <= len(line_starts):
        return None
    return line_starts[line - 1] + column


def _following_tag(element: Tag) -> Optional[Tag]:
    node = element
    while node is not None:
        sibling = node.next_sibling
        while sibling is not None:
            if isinstance(sibling, Tag):
                return sibling
            sibling = sibling.next_sibling
        node = node.parent
    return None


def source_span(element: Tag, markup: str, line_starts: Sequence[int] | None = None) -> Optional[Tuple[int, int]]:
    """Return the ``(start, end)`` slice of ``markup`` the element was parsed from.

    ``None`` when the span cannot be located exactly, e.g. for an element
    whose closing tag is implied rather than written.
    """

    line_starts = line_starts if line_starts is not None else _line_starts(markup)
    start = _source_offset(element, line_starts)
    if start is None or not markup.startswith("<", start):
        return None
    if markup[start + 1:start + 1 + len(element.name)].lower() != element.name.lower():
        return None

    bound = len(markup)
    following = _following_tag(element)
    if following is not None:
        following_start = _source_offset(following, line_starts)
        if following_start is not None and following_start > start:
            bound = following_start

    closing = re.compile(rf"</\s*{re.escape(element.name)}\s*>", re.IGNORECASE)
    match = closing.search(markup, start, bound)
    if match is None:
        return None
    return start, match.end()


def splice_blocks(markup: str, blocks: Sequence[TextBlock]) -> Optional[str]:
    """Write the changed ``blocks`` back into ``markup``, leaving every other byte alone.

    Returns ``None`` when any block cannot be located in the source.
    """

    line_starts = _line_starts(markup)
    spans = []
    for block in blocks:
        span = source_span(block.element, markup, line_starts)
        if span is None:
            return None
        start, end = span
        original_text = collapse_whitespace(parse_markup(markup[start:end]).get_text())
        if original_text != block.text:
            return None
        spans.append((start, end, block))

    spans.sort(key=lambda item: item[0])
    pieces: List[str] = []
    cursor = 0
    for start, end, block in spans:
        if start < cursor:
            return None
        pieces.append(markup[cursor:start])
        pieces.append(str(block.element))
        cursor = end
    pieces.append(markup[cursor:])
    return "".join(pieces)


def linked_hrefs(root: Tag) -> Set[str]:
    """Return the normalized ``href`` values of every link under ``root``."""

    hrefs = set()
    for anchor in root.find_all("a", href=True):
        hrefs.add(normalize_href(anchor["href"]))
    return hrefs


def normalize_href(href: str) -> str:
    return href.strip().split("#", 1)[0].rstrip("/").lower()


def block_text(element: Tag) -> str:
    return collapse_whitespace(element.get_text())


def excluded_zone(element: Tag, config: EngineConfig) -> Optional[str]:
    """Name the excluded zone ``element`` sits in, or ``None`` when linkable."""

    zone_tags = {tag.lower() for tag in config.get("excluded_zone_tags", [])}
    zone_classes = [name.lower() for name in config.get("excluded_zone_classes", [])]

    node: Optional[Tag] = element
    while node is not None and getattr(node, "name", None):
        name = node.name.lower()
        if name in zone_tags:
            return name
        tokens = _marker_tokens(node)
        for marker in zone_classes:
            if any(token.startswith(marker) for token in tokens):
                return marker
        node = node.parent
    return None


def _marker_tokens(node: Tag) -> List[str]:
    """Lower-cased words of the class names and id, split on dashes and underscores.

    ``key-takeaways`` yields ``key`` and ``takeaways``; a marker matches the
    start of a word, so ``takeaway`` matches while ``toc`` does not match
    ``stock-photos``.
    """

    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    names = list(classes) + [node.get("id") or ""]
    tokens: List[str] = []
    for name in names:
        tokens.extend(token for token in _MARKER_SPLIT_RE.split(name.lower()) if token)
    return tokens


def _nearest_heading(element: Tag) -> Optional[str]:
    heading = element.find_previous(list(HEADING_TAGS))
    if heading is None:
        return None
    return block_text(heading) or None


def _has_nested_block(element: Tag, block_tags: Sequence[str]) -> bool:
    return element.find(list(block_tags)) is not None


def segment_blocks(root: Tag, config: EngineConfig) -> List[TextBlock]:
    """Return the paragraph and list-item blocks under ``root`` in document order.

    Blocks that contain other blocks (a list item wrapping paragraphs) are
    skipped so that each piece of text belongs to exactly one block.
    """

    block_tags = list(config.get("block_tags", ["p", "li"]))
    elements = [
        element
        for element in root.find_all(block_tags)
        if not _has_nested_block(element, block_tags)
    ]

    blocks: List[TextBlock] = []
    for index, element in enumerate(elements):
        blocks.append(
            TextBlock(
                index=index,
                element=element,
                text=block_text(element),
                heading=_nearest_heading(element),
                zone=excluded_zone(element, config),
                existing_links=len(element.find_all("a")),
            )
        )
    mark_edge_blocks(blocks, config)
    return blocks


def fragment_block(markup: str, index: int, config: EngineConfig) -> TextBlock:
    """Wrap a pre-segmented block of markup into a :class:`TextBlock`."""

    root = parse_markup(markup)
    return TextBlock(
        index=index,
        element=root,
        text=block_text(root),
        heading=None,
        zone=_fragment_zone(root, config),
        existing_links=len(root.find_all("a")),
    )


def _fragment_zone(root: Tag, config: EngineConfig) -> Optional[str]:
    # A fragment is excluded when one of its outermost elements is an excluded zone.
    for child in root.children:
        if isinstance(child, Tag):
            zone = excluded_zone(child, config)
            if zone:
                return zone
    return None


def mark_edge_blocks(blocks: Iterable[TextBlock], config: EngineConfig) -> None:
    blocks = list(blocks)
    if not blocks:
        return
    if config.get("skip_first_block") and blocks[0].zone is None:
        blocks[0].zone = "first-block"
    if config.get("skip_last_block") and blocks[-1].zone is None:
        blocks[-1].zone = "last-block"
