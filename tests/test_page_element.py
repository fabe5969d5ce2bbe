"""Tests for the parse collaborator: parse_html and LxmlPageElement."""

import pytest

from corpweb.common.exceptions import ParseError, SelectionError
from corpweb.common.page_element import LxmlPageElement, TextNode, parse_html

URL = "http://registry.test/CorpSummary.aspx?FEIN=000000007"


@pytest.fixture
def page() -> LxmlPageElement:
    return parse_html(
        b"""<html><body>
        <span id="MainContent_lblEntityName">  ACME CO.  </span>
        <span id="dup">first</span><span id="dup">second</span>
        <div class="p1">Name: <b>OLD</b> Changed: <b>01-02-2003</b></div>
        <div class="p2">A<!-- note --><i>x</i>B</div>
        <a id="link" href="CorpSummary.aspx?FEIN=000000123">ACME</a>
        </body></html>""",
        URL,
    )


class TestParseHtml:
    """Tests for parse_html()."""

    def test_parses_bytes_into_page(self, page):
        """parse_html shall return the document root with the source URL."""
        assert isinstance(page, LxmlPageElement)
        assert page.tag_name() == "html"
        assert page.url == URL

    def test_empty_body_raises_parse_error(self):
        """An empty body shall raise ParseError chained from lxml."""
        with pytest.raises(ParseError) as exc_info:
            parse_html(b"", URL)

        assert exc_info.value.url == URL
        assert exc_info.value.__cause__ is not None


class TestFindById:
    """Tests for LxmlPageElement.find_by_id()."""

    def test_returns_element_with_id(self, page):
        """find_by_id shall return the element carrying the id."""
        element = page.find_by_id("MainContent_lblEntityName")

        assert element.text_content() == "  ACME CO.  "

    def test_returns_first_of_duplicates(self, page):
        """find_by_id shall return the first element in document order."""
        assert page.find_by_id("dup").text_content() == "first"

    def test_missing_id_raises_selection_error(self, page):
        """A missing id shall raise SelectionError described by the id."""
        with pytest.raises(SelectionError) as exc_info:
            page.find_by_id("MainContent_lblEntityType")

        assert exc_info.value.description == "MainContent_lblEntityType"
        assert exc_info.value.actual_count == 0
        assert exc_info.value.request_url == URL


class TestQueries:
    """Tests for checked CSS and XPath queries."""

    def test_query_css_in_document_order(self, page):
        """query_css shall return matches in document order."""
        spans = page.query_css("span", "spans")

        assert [s.text_content().strip() for s in spans] == [
            "ACME CO.",
            "first",
            "second",
        ]

    def test_query_css_zero_allowed(self, page):
        """query_css with min_count=0 shall return an empty list."""
        assert page.query_css(".ErrorMessage", "banner", min_count=0) == []

    def test_query_css_too_few_raises(self, page):
        """query_css shall raise when fewer elements than expected match."""
        with pytest.raises(SelectionError) as exc_info:
            page.query_css("table", "tables")

        assert exc_info.value.selector_type == "css"

    def test_get_attribute(self, page):
        """get_attribute shall return the value or None."""
        link = page.find_by_id("link")

        assert link.get_attribute("href") == "CorpSummary.aspx?FEIN=000000123"
        assert link.get_attribute("title") is None


class TestChildren:
    """Tests for the ordered child sequence."""

    def test_text_runs_are_children(self, page):
        """Text between tags shall occupy its own position."""
        block = page.query_css("div.p1", "block")[0]

        children = block.children()

        assert [c.tag_name() for c in children] == ["#text", "b", "#text", "b"]
        assert children[1].text_content() == "OLD"
        assert children[3].text_content() == "01-02-2003"

    def test_comments_occupy_a_position(self, page):
        """Comments shall be children with no text."""
        block = page.query_css("div.p2", "block")[0]

        children = block.children()

        assert [c.tag_name() for c in children] == [
            "#text",
            "#comment",
            "i",
            "#text",
        ]
        assert children[1].text_content() == ""
        assert children[3].text_content() == "B"

    def test_text_nodes_have_no_attributes(self):
        """TextNode shall report no attributes."""
        assert TextNode("x").get_attribute("href") is None
