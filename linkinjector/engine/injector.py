"""Safe insertion of a single anchor into block markup.

Text nodes are inspected one by one and a node is only considered when none
of its ancestors is a link or a tag where links make no sense. When the
phrase cannot be found in such a node nothing is changed and the caller is
told so.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag  # type: ignore
from bs4.element import PreformattedString  # type: ignore

from .markup import parse_markup

# Tags inside which links should never be inserted
SKIP_TAGS: set[str] = {
    "a", "code", "pre", "script", "style", "button",
    "h1", "h2", "h3", "h4", "h5", "h6",
}


def _phrase_pattern(anchor_text: str) -> Optional[re.Pattern[str]]:
    words = anchor_text.split()
    if not words:
        return None
    body = r"\s+".join(re.escape(word) for word in words)
    return re.compile(rf"(?<![\w']){body}(?![\w'])", re.IGNORECASE)


def _document_of(element: Tag) -> BeautifulSoup:
    node = element
    while node.parent is not None:
        node = node.parent
    return node


def _should_skip(node: NavigableString, stop: Tag) -> bool:
    """Return ``True`` if any ancestor of ``node`` up to ``stop`` is in ``SKIP_TAGS``.

    ``stop`` itself is checked too, so asking to link inside a ``<pre>`` block
    fails rather than nesting a link in it.
    """

    parent = node.parent
    while parent is not None and getattr(parent, "name", None):
        if parent.name.lower() in SKIP_TAGS:
            return True
        if parent is stop:
            break
        parent = parent.parent
    return False


def inject_into_element(
    element: Tag,
    anchor_text: str,
    target_url: str,
    *,
    attrs: Optional[Dict[str, str]] = None,
) -> bool:
    """Wrap the first safe occurrence of ``anchor_text`` under ``element`` in a link.

    The link keeps the matched text exactly as written in the document.
    Returns ``False`` without touching the tree when no safe occurrence
    exists.
    """

    pattern = _phrase_pattern(anchor_text)
    if pattern is None or not target_url:
        return False

    for text_node in list(element.descendants):
        if not isinstance(text_node, NavigableString) or isinstance(text_node, PreformattedString):
            continue
        if _should_skip(text_node, element):
            continue

        original = str(text_node)
        match = pattern.search(original)
        if not match:
            continue

        after = original[match.end():]
        if after:
            text_node.insert_after(NavigableString(after))

        anchor = _document_of(element).new_tag("a", href=target_url)
        for key, value in (attrs or {}).items():
            if value:
                anchor[key] = value
        anchor.string = match.group(0)
        text_node.insert_after(anchor)

        before = original[:match.start()]
        if before:
            text_node.replace_with(NavigableString(before))
        else:
            text_node.extract()
        return True

    return False


def inject(
    block_markup: str,
    anchor_text: str,
    target_url: str,
    *,
    attrs: Optional[Dict[str, str]] = None,
) -> Tuple[str, bool]:
    """Return ``(markup, injected)`` for a standalone block of markup.

    On failure the input string is returned unchanged.
    """

    if not block_markup or not anchor_text:
        return block_markup, False

    soup = parse_markup(block_markup)
    if not inject_into_element(soup, anchor_text, target_url, attrs=attrs):
        return block_markup, False
    return str(soup), True


def link_attributes(link_class: Optional[str], link_rel: Optional[str] = None, link_title: Optional[str] = None) -> Dict[str, str]:
    """Extra anchor attributes from configuration, skipping empty ones."""

    attrs: Dict[str, str] = {}
    if link_class:
        attrs["class"] = link_class
    if link_rel:
        attrs["rel"] = link_rel
    if link_title:
        attrs["title"] = link_title
    return attrs
