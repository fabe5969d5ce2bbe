"""Group extractors for the repeating sections of a corporation summary page.

The summary page has no per-field markup inside its repeating sections;
fields are identified only by position. Each extractor therefore encodes the
position as its schema. The offsets below must match the page layout
exactly, counting text nodes between tags as children, and are covered by
literal-HTML tests so layout drift surfaces as a failing test rather than as
silently shifted fields.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from corpweb.common.exceptions import SelectionError
from corpweb.common.field_selectors import converter_for, date_type_for
from corpweb.common.page_element import LxmlPageElement, PageNode
from corpweb.data_types import DateMode
from corpweb.registry.models import Merger, Officer, Rename

logger = logging.getLogger(__name__)

# =============================================================================
# Officers
# =============================================================================

OFFICER_CELLS_SELECTOR = "#MainContent_grdOfficers .GridRow td"

# Cells per officer, in order: title, name, address.
OFFICER_CELLS_PER_ROW = 3

# =============================================================================
# Name changes
# =============================================================================

RENAME_BLOCKS_SELECTOR = "#MainContent_tblNameChange div.p1"

# Each block reads label, name, label, date. The date walk resumes where the
# name walk stopped, so the name is child 1 and the date is child 3.
RENAME_NAME_SKIP = 1
RENAME_DATE_SKIP = 1

# =============================================================================
# Mergers
# =============================================================================

MERGED_FROM_CONTAINER = "MainContent_tblMergedWith"
MERGED_INTO_CONTAINER = "MainContent_tblMergedInto"

# Each block reads label, gap, link to the counterpart, label, gap, date.
# The link is child 2; the date walk resumes after it and lands on child 5.
MERGER_LINK_SKIP = 2
MERGER_DATE_SKIP = 2

# The counterpart id is the second "="-separated segment of the link href,
# e.g. "CorpSummary.aspx?FEIN=000012345" -> "000012345".
MERGER_HREF_SEGMENT = 1


def merger_blocks_selector(container_id: str) -> str:
    return f"#{container_id} tr td .p1"


def _advance(children: Iterator[PageNode], skip: int) -> PageNode | None:
    """Skip ``skip`` nodes and return the next one, or None if exhausted."""
    for _ in range(skip):
        if next(children, None) is None:
            return None
    return next(children, None)


def _child_missing(
    block: LxmlPageElement, description: str, position: int
) -> SelectionError:
    return SelectionError(
        selector=f"{block.tag_name()}/child[{position}]",
        selector_type="child",
        description=description,
        request_url=block.url,
        expected_min=1,
        expected_max=1,
        actual_count=0,
    )


def extract_officers(page: LxmlPageElement) -> list[Officer]:
    """Extract officers from the officer grid.

    Every cell under a grid row is read in document order and the flat
    sequence is cut into (title, name, address) triples. A trailing partial
    triple is dropped without error.
    """
    cells = [
        cell.text_content().strip()
        for cell in page.query_css(
            OFFICER_CELLS_SELECTOR, "officer cells", min_count=0
        )
    ]

    remainder = len(cells) % OFFICER_CELLS_PER_ROW
    if remainder:
        logger.debug(
            f"Dropping {remainder} trailing officer cell(s) on {page.url}"
        )

    officers = []
    for start in range(0, len(cells) - remainder, OFFICER_CELLS_PER_ROW):
        title, name, address = cells[start : start + OFFICER_CELLS_PER_ROW]
        officers.append(Officer(title=title, name=name, address=address))
    return officers


def extract_renames(
    page: LxmlPageElement,
    mode: DateMode = DateMode.RAW,
) -> list[Rename[Any]]:
    """Extract former names from the name-change table.

    Raises:
        SelectionError: If a block lacks its name or date child.
        DateFormatError: In typed mode, if a date is malformed.
    """
    convert = converter_for(mode)
    model = Rename[date_type_for(mode)]  # type: ignore[misc]
    renames = []
    for block in page.query_css(
        RENAME_BLOCKS_SELECTOR, "name change blocks", min_count=0
    ):
        children = iter(block.children())

        name_node = _advance(children, RENAME_NAME_SKIP)
        if name_node is None:
            raise _child_missing(block, "rename name", RENAME_NAME_SKIP)
        name = name_node.text_content().strip()

        date_node = _advance(children, RENAME_DATE_SKIP)
        if date_node is None:
            raise _child_missing(
                block, "rename date", RENAME_NAME_SKIP + 1 + RENAME_DATE_SKIP
            )
        date = convert(
            date_node.text_content().strip(), "rename date", page.url
        )

        renames.append(model(name=name, date=date))
    return renames


def _counterpart_id(link: PageNode | None) -> str | None:
    if link is None:
        return None
    href = link.get_attribute("href")
    if href is None:
        return None
    segments = href.split("=")
    if len(segments) <= MERGER_HREF_SEGMENT:
        return None
    return segments[MERGER_HREF_SEGMENT]


def extract_mergers(
    page: LxmlPageElement,
    container_id: str,
    mode: DateMode = DateMode.RAW,
) -> list[Merger[Any]]:
    """Extract mergers listed under one merger table.

    The same traversal serves both directions; only the container differs
    (MERGED_FROM_CONTAINER or MERGED_INTO_CONTAINER).

    Raises:
        SelectionError: If a block lacks its link, the link lacks an href,
            the href has no "=" segment, or the date child is missing.
        DateFormatError: In typed mode, if a date is malformed.
    """
    convert = converter_for(mode)
    model = Merger[date_type_for(mode)]  # type: ignore[misc]
    mergers = []
    for block in page.query_css(
        merger_blocks_selector(container_id),
        f"merger blocks in {container_id}",
        min_count=0,
    ):
        children = iter(block.children())

        corp = _counterpart_id(_advance(children, MERGER_LINK_SKIP))
        if corp is None:
            raise _child_missing(
                block, "merger corporation", MERGER_LINK_SKIP
            )

        date_node = _advance(children, MERGER_DATE_SKIP)
        if date_node is None:
            raise _child_missing(
                block, "merger date", MERGER_LINK_SKIP + 1 + MERGER_DATE_SKIP
            )
        date = convert(
            date_node.text_content().strip(), "merger date", page.url
        )

        mergers.append(model(corp=corp, date=date))
    return mergers
