"""Checked HTML element wrapper for safe XPath/CSS querying.

This module provides CheckedHtmlElement, a wrapper around lxml.html.HtmlElement
that validates selector results against expected counts. A registry page that
no longer has the shape the extractors expect fails here, at the query, with
a SelectionError that names what was being looked for.
"""

from __future__ import annotations

from lxml.etree import XPathError
from lxml.html import HtmlElement

from corpweb.common.exceptions import SelectionError


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    checked_xpath() and checked_css() validate the number of results against
    expected min/max counts. If the actual count doesn't match expectations,
    they raise SelectionError with clear error context.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @property
    def element(self) -> HtmlElement:
        """The wrapped lxml element."""
        return self._element

    @property
    def request_url(self) -> str:
        return self._request_url

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute XPath query with count validation.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements in document order. Text
            and attribute results are ignored.

        Raises:
            SelectionError: If count doesn't match expectations.

        Example::

            tree = CheckedHtmlElement(lxml.html.fromstring(html))
            rows = tree.checked_xpath("//tr[@class='GridRow']", "officer rows")
        """
        try:
            results = self._element.xpath(xpath)
        except XPathError as e:
            raise SelectionError(
                selector=xpath,
                selector_type="xpath",
                description=description,
                request_url=self._request_url,
                expected_min=min_count,
                expected_max=max_count,
            ) from e

        wrapped: list[CheckedHtmlElement] = [
            CheckedHtmlElement(r, self._request_url)
            for r in results
            if isinstance(r, HtmlElement)
        ]
        self._check_count(
            xpath, "xpath", description, min_count, max_count, len(wrapped)
        )
        return wrapped

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements in document order. Each
            element is wrapped to support nested checked queries.

        Raises:
            SelectionError: If count doesn't match expectations.

        Example::

            tree = CheckedHtmlElement(lxml.html.fromstring(html))
            cells = tree.checked_css(
                "#MainContent_grdOfficers .GridRow td", "officer cells",
                min_count=0,
            )
        """
        # lxml's cssselect() translates to XPath through the cssselect package
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            raise SelectionError(
                selector=selector,
                selector_type="css",
                description=description,
                request_url=self._request_url,
                expected_min=min_count,
                expected_max=max_count,
            ) from e

        self._check_count(
            selector, "css", description, min_count, max_count, len(results)
        )

        return [
            CheckedHtmlElement(result, self._request_url) for result in results
        ]

    def _check_count(
        self,
        selector: str,
        selector_type: str,
        description: str,
        min_count: int,
        max_count: int | None,
        actual_count: int,
    ) -> None:
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise SelectionError(
                selector=selector,
                selector_type=selector_type,
                description=description,
                request_url=self._request_url,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
            )

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element.

        This allows CheckedHtmlElement to be used as a drop-in replacement for
        HtmlElement, while adding the checked methods.
        """
        return getattr(self._element, name)
