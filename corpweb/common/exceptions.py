"""Exception types for registry scraping errors.

This module defines the exception hierarchy used across the fetch, parse,
extract and serialize pipeline. Every failure for a single corporation id is
raised as a CorpwebError subclass so the driver can decide, by kind alone,
whether the batch keeps going.

Causes are attached with ``raise ... from ...``; use cause_chain() to walk
them in order.
"""

from __future__ import annotations

import traceback
from typing import Any


class CorpwebError(Exception):
    """Base class for every failure surfaced for a corporation id."""


# =============================================================================
# Transport
# =============================================================================


class TransportError(CorpwebError):
    """Raised when the registry page could not be fetched.

    Attributes:
        corp_id: The corporation id being fetched, if known.
        url: The URL that was requested.
        message: Human-readable error message.
    """

    def __init__(
        self, message: str, url: str, corp_id: int | None = None
    ) -> None:
        self.message = message
        self.url = url
        self.corp_id = corp_id
        super().__init__(message)


class UnexpectedStatusError(TransportError):
    """Raised when the HTTP response has a non-success status code.

    Attributes:
        status_code: The actual HTTP status code received.
        expected_codes: List of status codes that were expected.
    """

    def __init__(
        self,
        status_code: int,
        expected_codes: list[int],
        url: str,
    ) -> None:
        """Initialize the exception.

        Args:
            status_code: The actual status code received.
            expected_codes: List of expected status codes.
            url: The URL of the request.
        """
        self.status_code = status_code
        self.expected_codes = expected_codes

        expected_str = ", ".join(str(code) for code in expected_codes)
        super().__init__(
            f"HTTP {status_code} from {url} (expected one of: {expected_str})",
            url,
        )


class RequestTimeoutError(TransportError):
    """Raised when a request times out.

    Attributes:
        timeout_seconds: The timeout duration in seconds, if one was set.
    """

    def __init__(self, url: str, timeout_seconds: float | None) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Request to {url} timed out after {timeout_seconds}s", url
        )


# =============================================================================
# Parsing and remote errors
# =============================================================================


class ParseError(CorpwebError):
    """Raised when a response body cannot be turned into a document."""

    def __init__(self, message: str, url: str = "") -> None:
        self.message = message
        self.url = url
        super().__init__(message)


class RemoteError(CorpwebError):
    """Raised when the registry itself reports an error for the id.

    The registry renders unknown or unassigned ids as a normal page carrying
    an error banner. This is the only failure the batch driver treats as
    expected: the id is reported and skipped.

    Attributes:
        text: The banner text as rendered by the registry.
        request_url: The URL of the page that carried the banner.
    """

    def __init__(self, text: str, request_url: str = "") -> None:
        self.text = text
        self.request_url = request_url
        super().__init__(f'corporation database error: "{text}"')


# =============================================================================
# Extraction assumptions
# =============================================================================


class ScraperAssumptionException(CorpwebError):
    """Base class for page-shape assumption violations.

    The extractors assume a fixed page layout: element ids, classes and the
    position of children inside repeating blocks. When one of those
    assumptions does not hold, they raise a subclass of this exception with
    enough context to find the drift.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        The exception text is the message alone. The URL and context are
        kept as attributes and rendered by format_details().

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(message)

    def format_details(self) -> str:
        """Format the URL and context lines.

        Returns:
            Formatted detail string, one item per line.
        """
        parts = [f"URL: {self.request_url}"]

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class SelectionError(ScraperAssumptionException):
    """Raised when an expected element is absent from the page.

    Attributes:
        selector: The selector that was used (id, CSS, XPath or child offset).
        selector_type: Type of selector ("id", "css", "xpath" or "child").
        description: The field id or group field that could not be selected.
        expected_min: Minimum number of elements expected.
        expected_max: Maximum number of elements expected (None = unlimited).
        actual_count: Actual number of elements found.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        request_url: str,
        expected_min: int = 1,
        expected_max: int | None = None,
        actual_count: int = 0,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f'could not select: "{description}" (expected {expected_str} '
            f"elements, found {actual_count})"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


class DateFormatError(ScraperAssumptionException):
    """Raised when a date field is present but not in the expected format.

    Attributes:
        text: The offending text.
        description: The field the text was read from.
        expected_format: The strptime format the text had to match.
    """

    def __init__(
        self,
        text: str,
        description: str,
        expected_format: str,
        request_url: str,
    ) -> None:
        self.text = text
        self.description = description
        self.expected_format = expected_format

        super().__init__(
            f'could not parse date for "{description}": {text!r}',
            request_url,
            {"text": text, "expected_format": expected_format},
        )


# =============================================================================
# Serialization
# =============================================================================


class SerializationError(CorpwebError):
    """Raised when an assembled record cannot be converted to JSON."""

    def __init__(self, message: str, corp_id: int | None = None) -> None:
        self.message = message
        self.corp_id = corp_id
        super().__init__(message)


# =============================================================================
# Reporting helpers
# =============================================================================


def cause_chain(exc: BaseException) -> list[BaseException]:
    """Return the exception followed by its causes, innermost last.

    Explicit causes (``raise ... from``) are followed first; implicit context
    is used only when no explicit cause was set and context was not
    suppressed.
    """
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        chain.append(current)
        seen.add(id(current))
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
    return chain


def format_error_report(
    corp_id: int, exc: BaseException, backtrace: bool = False
) -> str:
    """Render a diagnostic report for a failed corporation id.

    The first line names the id and the error; each further cause gets a
    ``caused by:`` line. With ``backtrace`` the URL and context of any
    assumption violation in the chain follow, then the formatted traceback
    of the outermost error.
    """
    chain = cause_chain(exc)
    lines = [f"error on {corp_id}: {chain[0]}"]
    for cause in chain[1:]:
        lines.append(f"caused by: {cause}")
    if backtrace:
        for error in chain:
            if isinstance(error, ScraperAssumptionException):
                lines.append(error.format_details())
        if exc.__traceback__ is not None:
            lines.append("backtrace:")
            lines.append(
                "".join(traceback.format_tb(exc.__traceback__)).rstrip()
            )
    return "\n".join(lines)
