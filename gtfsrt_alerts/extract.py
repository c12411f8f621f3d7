"""Title and description extraction from loosely structured alert markup."""

from __future__ import annotations

import logging
import re
import warnings
from typing import Callable, List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

from .models import AlertText

logger = logging.getLogger(__name__)

# SEPTA puts alert titles in <h3> elements and description text in <p> elements.
TITLE_TAG = "h3"
DESCRIPTION_TAG = "p"

_WHITESPACE_RE = re.compile(r"\s+")


class TextBuffer:
    """Accumulates text nodes, keeping words from adjacent nodes apart."""

    def __init__(self) -> None:
        self._parts: List[str] = []

    def append(self, value: str) -> None:
        text = _WHITESPACE_RE.sub(" ", value).lstrip()
        if not text:
            return
        if self._parts and not self._parts[-1].endswith(" "):
            self._parts.append(" ")
        self._parts.append(text)

    def __bool__(self) -> bool:
        return bool(self._parts)

    def __str__(self) -> str:
        return "".join(self._parts).rstrip()


def _is_text(node: PageElement) -> bool:
    # Comments, CDATA, doctypes and processing instructions are not text.
    return isinstance(node, NavigableString) and not isinstance(
        node, PreformattedString
    )


def walk(root: PageElement, visit: Callable[[PageElement], bool]) -> None:
    """Walk ``root`` depth-first in document order.

    ``visit`` is called for every node reached and returns whether the walk
    should descend into that node's children. Declining to descend only prunes
    the node's own subtree; its siblings are still visited.
    """
    stack: List[PageElement] = [root]
    while stack:
        node = stack.pop()
        if not visit(node):
            continue
        if isinstance(node, Tag):
            stack.extend(reversed(node.contents))


def build_text_from_node(node: PageElement, output: TextBuffer) -> None:
    """Append the text of ``node`` and all of its descendants to ``output``."""

    def collect(current: PageElement) -> bool:
        if _is_text(current):
            output.append(str(current))
        return True

    walk(node, collect)


def parse_markup(markup: str) -> BeautifulSoup:
    """Parse an HTML fragment, tolerating unclosed tags and broken nesting."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return BeautifulSoup(markup, "html.parser")


def extract_alert_text(
    markup: Optional[str],
    title_tag: str = TITLE_TAG,
    description_tag: str = DESCRIPTION_TAG,
) -> Optional[AlertText]:
    """Return the title and description found in ``markup``.

    Every ``title_tag`` element contributes its text to the title and every
    ``description_tag`` element to the description, in document order. Markers
    nested inside another marker belong to the outer one. Returns ``None`` for
    empty input.
    """
    if not markup:
        return None

    document = parse_markup(markup)
    title = TextBuffer()
    description = TextBuffer()

    def visit(node: PageElement) -> bool:
        if not isinstance(node, Tag):
            return False
        name = (node.name or "").lower()
        if name == title_tag:
            build_text_from_node(node, title)
            return False
        if name == description_tag:
            build_text_from_node(node, description)
            return False
        return True

    walk(document, visit)

    if not title and not description:
        logger.debug("No title or description markers found in alert markup")

    return AlertText(title=str(title), description=str(description))
