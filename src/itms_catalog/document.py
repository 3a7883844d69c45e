# itms_catalog/document.py

"""Read-only queries over the store's view-description XML.

Every query accepts ``None`` in place of a node and answers with the empty
result, so a chain of lookups through a missing layout container simply ends
in ``None`` instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from itms_catalog.errors import ExtractionError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Document:
    """A parsed store page."""

    root: Tag
    source: str | None = None

    @property
    def page_type(self) -> str | None:
        """The root's ``pageType`` attribute, if the page declares one."""
        return attribute(self.root, "pageType")

    def root_attribute(self, name: str) -> str | None:
        return attribute(self.root, name)


def parse_document(text: str, *, keep_source: bool = False) -> Document:
    """Parse an XML page and return it wrapped as a Document."""
    soup = BeautifulSoup(text, "xml")

    root = next((node for node in soup.children if isinstance(node, Tag)), None)
    if root is None:
        msg = "document is empty or not XML"
        raise ExtractionError("/", msg)

    logger.debug("Parsed document with root <%s>.", root.name)
    return Document(root=root, source=text if keep_source else None)


def first_child(node: Tag | None, tag: str) -> Tag | None:
    for child in _element_children(node):
        if child.name == tag:
            return child
    return None


def last_child(node: Tag | None, tag: str) -> Tag | None:
    found = None
    for child in _element_children(node):
        if child.name == tag:
            found = child
    return found


def children(node: Tag | None, tag: str | None = None) -> list[Tag]:
    """Direct element children in document order, optionally by tag."""
    return [
        child
        for child in _element_children(node)
        if tag is None or child.name == tag
    ]


def descendants(node: Tag | None, tag: str) -> Iterator[Tag]:
    """Lazily yield every element named ``tag`` below ``node``."""
    if node is None:
        return
    for element in node.descendants:
        if isinstance(element, Tag) and element.name == tag:
            yield element


def attribute(node: Tag | None, name: str) -> str | None:
    if node is None:
        return None
    value = node.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        # multi-valued attributes come back as lists from some tree builders
        return " ".join(value)
    return str(value)


def text(node: Tag | None) -> str:
    """Text content with ends trimmed and inner whitespace runs collapsed."""
    if node is None:
        return ""
    return " ".join(node.get_text().split())


def next_sibling(node: Tag | None, tag: str | None = None) -> Tag | None:
    if node is None:
        return None
    for sibling in node.next_siblings:
        if isinstance(sibling, Tag) and (tag is None or sibling.name == tag):
            return sibling
    return None


def next_siblings(node: Tag | None, tag: str | None = None) -> list[Tag]:
    if node is None:
        return []
    return [
        sibling
        for sibling in node.next_siblings
        if isinstance(sibling, Tag) and (tag is None or sibling.name == tag)
    ]


def has_only_text(node: Tag | None) -> bool:
    """True if ``node`` exists and has no element children."""
    if node is None:
        return False
    return not any(True for _ in _element_children(node))


def find_path(node: Tag | None, *tags: str) -> Tag | None:
    """Follow ``first_child`` through ``tags``; None as soon as a step is missing."""
    current = node
    for tag in tags:
        current = first_child(current, tag)
        if current is None:
            return None
    return current


def _element_children(node: Tag | None) -> Iterator[Tag]:
    if node is None:
        return
    for child in node.children:
        if isinstance(child, Tag):
            yield child
