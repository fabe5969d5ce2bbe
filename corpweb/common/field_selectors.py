"""Single-field selection with typed conversion.

select_field() is the one place that decides whether a field is missing
(SelectionError) or malformed (DateFormatError). Extractors never read
field elements directly; they pass a converter instead:

- as_text keeps the trimmed text.
- as_date parses month-day-year text into a calendar date.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, TypeVar

from corpweb.common.exceptions import DateFormatError
from corpweb.common.page_element import LxmlPageElement
from corpweb.data_types import DateMode

T = TypeVar("T")

# Converter signature: (trimmed text, field description, page url) -> value
Converter = Callable[[str, str, str], T]

DATE_FORMAT = "%m-%d-%Y"
_DATE_SHAPE = re.compile(r"\d{2}-\d{2}-\d{4}")


def as_text(text: str, description: str, url: str) -> str:
    return text


def as_date(text: str, description: str, url: str) -> date:
    """Parse ``MM-DD-YYYY`` text.

    Both month and day must be two digits; strptime alone would accept
    "1-5-2003".

    Raises:
        DateFormatError: If the text does not match the format or names an
            impossible date.
    """
    if _DATE_SHAPE.fullmatch(text) is None:
        raise DateFormatError(text, description, DATE_FORMAT, url)
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as e:
        raise DateFormatError(text, description, DATE_FORMAT, url) from e


def converter_for(mode: DateMode) -> Converter[Any]:
    """Return the date converter for an output mode."""
    if mode is DateMode.TYPED:
        return as_date
    return as_text


def date_type_for(mode: DateMode) -> type:
    """Return the Python type date fields take in an output mode."""
    if mode is DateMode.TYPED:
        return date
    return str


def select_field(
    page: LxmlPageElement,
    field_id: str,
    convert: Converter[T] = as_text,  # type: ignore[assignment]
) -> T:
    """Select the element with id ``field_id`` and convert its trimmed text.

    Args:
        page: The parsed page (or any element to search from).
        field_id: The element id, e.g. "MainContent_lblEntityName".
        convert: Conversion applied to the trimmed text.

    Returns:
        The converted value.

    Raises:
        SelectionError: If no element carries the id; its description is
            ``field_id``.
        DateFormatError: If ``convert`` is as_date and the text is malformed.
    """
    element = page.find_by_id(field_id)
    return convert(element.text_content().strip(), field_id, page.url)
