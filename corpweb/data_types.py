"""Core value types shared by the request managers, extractors and drivers.

- DateMode selects how date fields come out of extraction.
- CorporationRequest addresses one corporation summary page.
- Response carries what the fetch collaborator got back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_BASE_URL = (
    "http://business.sos.ri.gov/CorpWeb/CorpSearch/CorpSummary.aspx"
)


class DateMode(Enum):
    """Output mode for date fields.

    RAW keeps the trimmed page text ("01-15-2003"); TYPED parses it into a
    calendar date and rejects text that is not in month-day-year form.
    """

    RAW = "raw"
    TYPED = "typed"


def registry_url(corp_id: int, base_url: str = DEFAULT_BASE_URL) -> str:
    """Build the summary page URL for a corporation id.

    The registry addresses corporations by a nine-digit, zero-padded FEIN
    query parameter.

    Raises:
        ValueError: If ``corp_id`` is negative.
    """
    if corp_id < 0:
        raise ValueError(f"corporation id must be non-negative, got {corp_id}")
    return f"{base_url}?FEIN={corp_id:09d}"


@dataclass(frozen=True)
class CorporationRequest:
    """A request for one corporation summary page.

    Attributes:
        corp_id: The externally supplied corporation id.
        url: Absolute URL of the summary page.
    """

    corp_id: int
    url: str

    @classmethod
    def for_id(
        cls, corp_id: int, base_url: str = DEFAULT_BASE_URL
    ) -> CorporationRequest:
        return cls(corp_id=corp_id, url=registry_url(corp_id, base_url))


@dataclass
class Response:
    """HTTP response from fetching a page.

    Modeled after httpx.Response to provide a familiar interface.

    Attributes:
        status_code: HTTP status code (200, 404, etc.).
        headers: Response headers.
        content: Raw response bytes.
        text: Decoded response text.
        url: Final URL after any redirects.
        request: The CorporationRequest that triggered this response.
    """

    status_code: int
    headers: dict[str, str]
    content: bytes
    text: str
    url: str
    request: CorporationRequest
