"""Parsed page access for the registry extractors.

This module is the parse collaborator: it turns response bytes into an
LxmlPageElement, a thin wrapper around CheckedHtmlElement that exposes the
handful of operations the extractors need (checked queries, lookup by id,
trimmed text, attributes, and the ordered child sequence).

The child sequence mirrors the DOM: text between tags is a child in its own
right, so positional offsets inside repeating blocks count whitespace runs
as well as elements.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lxml import etree, html
from lxml.html import HtmlElement

from corpweb.common.checked_html import CheckedHtmlElement
from corpweb.common.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextNode:
    """A non-element child of an element: a run of text or a comment.

    Text nodes carry no attributes. Comments contribute no text but still
    occupy a position in the child sequence.

    Attributes:
        text: The text of the node ("" for comments).
        is_comment: True if the node is an HTML comment.
    """

    text: str
    is_comment: bool = False

    def text_content(self) -> str:
        return self.text

    def get_attribute(self, name: str) -> str | None:
        return None

    def tag_name(self) -> str:
        return "#comment" if self.is_comment else "#text"


class LxmlPageElement:
    """Element of a parsed registry page.

    Attributes:
        _element: The underlying CheckedHtmlElement.
        _url: The URL the page was fetched from, used in error context.
    """

    def __init__(self, element: CheckedHtmlElement, url: str = "") -> None:
        self._element = element
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by XPath selector.

        Args:
            selector: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching LxmlPageElement instances.

        Raises:
            SelectionError: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_xpath(
            selector, description, min_count, max_count
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by CSS selector.

        Descendant combinators ("A B C") match each element once, in document
        order, however many qualifying ancestors it has.

        Raises:
            SelectionError: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_css(
            selector, description, min_count, max_count
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def find_by_id(self, element_id: str) -> LxmlPageElement:
        """Return the first element whose id attribute is ``element_id``.

        Raises:
            SelectionError: If no element carries the id. The error's
                description is the id itself.
        """
        return self.query_xpath(f'//*[@id="{element_id}"]', element_id)[0]

    def text_content(self) -> str:
        """Text of the element and all its descendants, untrimmed."""
        return self._element.text_content()

    def get_attribute(self, name: str) -> str | None:
        """Value of the attribute, or None if it doesn't exist."""
        return self._element.get(name)

    def tag_name(self) -> str:
        return self._element.tag.lower()

    def children(self) -> list[PageNode]:
        """Ordered child sequence, text nodes and comments included.

        For ``<div> a <b>x</b> c </div>`` the children are
        ``[" a ", <b>, " c "]``.
        """
        elem = self._element.element
        nodes: list[PageNode] = []
        if elem.text:
            nodes.append(TextNode(elem.text))
        for child in elem:
            if isinstance(child, HtmlElement):
                nodes.append(
                    LxmlPageElement(
                        CheckedHtmlElement(child, self._url), self._url
                    )
                )
            else:
                nodes.append(TextNode("", is_comment=True))
            if child.tail:
                nodes.append(TextNode(child.tail))
        return nodes

    def __repr__(self) -> str:
        return f"<LxmlPageElement {self.tag_name()} url={self._url!r}>"


PageNode = LxmlPageElement | TextNode


def parse_html(content: bytes, url: str = "") -> LxmlPageElement:
    """Parse a response body into a page.

    Args:
        content: Raw response bytes. The encoding is taken from the document
            itself, falling back to lxml's detection.
        url: The URL the bytes came from, kept for error context.

    Returns:
        The document root as an LxmlPageElement.

    Raises:
        ParseError: If the body is empty or lxml cannot build a tree.
    """
    try:
        root = html.document_fromstring(content)
    except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
        raise ParseError(f"could not parse page from {url}", url) from e

    logger.debug(f"Parsed {len(content)} bytes from {url}")
    return LxmlPageElement(CheckedHtmlElement(root, url), url)
