"""Record assembly for corporation summary pages.

extract_corporation() is the whole per-page extraction: it first checks the
page for the registry's own error banner, then assembles the Corporation
from scalar fields, the principal office and agent sub-records, and the
three group extractors. The first failure aborts the record and propagates
unchanged; no partially filled record is ever returned.
"""

from __future__ import annotations

import logging
from typing import Any

from corpweb.common.exceptions import RemoteError
from corpweb.common.field_selectors import (
    as_text,
    converter_for,
    date_type_for,
    select_field,
)
from corpweb.common.page_element import LxmlPageElement
from corpweb.data_types import DateMode
from corpweb.registry.extractors import (
    MERGED_FROM_CONTAINER,
    MERGED_INTO_CONTAINER,
    extract_mergers,
    extract_officers,
    extract_renames,
)
from corpweb.registry.models import (
    Address,
    Corporation,
    PrincipalAgent,
    PrincipalOffice,
)

logger = logging.getLogger(__name__)

# Class of the banner the registry renders instead of a record.
ERROR_MESSAGE_CLASS = "ErrorMessage"

ENTITY_NAME = "MainContent_lblEntityName"
ENTITY_TYPE = "MainContent_lblEntityType"
PURPOSE = "MainContent_txtComments"
ORGANISATION_DATE = "MainContent_lblOrganisationDate"
# The summary page shows a single organisation date; it is reported as both
# the incorporation and the effective date.
EFFECTIVE_DATE = ORGANISATION_DATE

PRINCIPAL_OFFICE_PREFIX = "MainContent_lblPrinciple"
PRINCIPAL_OFFICE_MAINTAINED = "MainContent_lblConsentFlag"

AGENT_NAME = "MainContent_lblResidentAgentName"
AGENT_ADDRESS_PREFIX = "MainContent_lblResident"
AGENT_RESIGNED = "MainContent_lblResidentAgentFlag"


def detect_remote_error(page: LxmlPageElement) -> None:
    """Raise RemoteError if the page carries the registry's error banner.

    An error page lacks every field element, so this must run before any
    field selection to report the real cause.
    """
    banners = page.query_css(
        f".{ERROR_MESSAGE_CLASS}", "error banner", min_count=0
    )
    if banners:
        raise RemoteError(banners[0].text_content().strip(), page.url)


def extract_address(page: LxmlPageElement, prefix: str) -> Address:
    """Read an address from the five ``<prefix>{Street,...,Country}`` ids."""
    return Address(
        street=select_field(page, f"{prefix}Street"),
        city=select_field(page, f"{prefix}City"),
        state=select_field(page, f"{prefix}State"),
        zip=select_field(page, f"{prefix}Zip"),
        country=select_field(page, f"{prefix}Country"),
    )


def extract_principal_office(page: LxmlPageElement) -> PrincipalOffice:
    return PrincipalOffice(
        address=extract_address(page, PRINCIPAL_OFFICE_PREFIX),
        maintained=select_field(page, PRINCIPAL_OFFICE_MAINTAINED),
    )


def extract_principal_agent(page: LxmlPageElement) -> PrincipalAgent:
    return PrincipalAgent(
        name=select_field(page, AGENT_NAME),
        address=extract_address(page, AGENT_ADDRESS_PREFIX),
        resigned=select_field(page, AGENT_RESIGNED),
    )


def assemble_corporation(
    corp_id: int,
    page: LxmlPageElement,
    mode: DateMode = DateMode.RAW,
) -> Corporation[Any]:
    """Assemble a Corporation from a page already checked for errors.

    Args:
        corp_id: The id the page was fetched for.
        page: The parsed summary page.
        mode: Whether dates stay as text or are parsed.

    Raises:
        SelectionError: If any expected element is missing.
        DateFormatError: In typed mode, if any date is malformed.
    """
    to_date = converter_for(mode)
    model = Corporation[date_type_for(mode)]  # type: ignore[misc]

    principal_office = extract_principal_office(page)
    principal_agent = extract_principal_agent(page)

    return model(
        id=corp_id,
        name=select_field(page, ENTITY_NAME, as_text),
        kind=select_field(page, ENTITY_TYPE, as_text),
        purpose=select_field(page, PURPOSE, as_text),
        date_incorporated=select_field(page, ORGANISATION_DATE, to_date),
        date_effective=select_field(page, EFFECTIVE_DATE, to_date),
        principal_office=principal_office,
        principal_agent=principal_agent,
        officers=extract_officers(page),
        renames=extract_renames(page, mode),
        merged_from=extract_mergers(page, MERGED_FROM_CONTAINER, mode),
        merged_into=extract_mergers(page, MERGED_INTO_CONTAINER, mode),
    )


def extract_corporation(
    corp_id: int,
    page: LxmlPageElement,
    mode: DateMode = DateMode.RAW,
) -> Corporation[Any]:
    """Check a page for the registry error banner, then assemble it.

    Raises:
        RemoteError: If the registry reports an error for the id.
        SelectionError: If any expected element is missing.
        DateFormatError: In typed mode, if any date is malformed.
    """
    detect_remote_error(page)
    corporation = assemble_corporation(corp_id, page, mode)
    logger.debug(
        f"Assembled corporation #{corp_id}: {len(corporation.officers)} "
        f"officers, {len(corporation.renames)} renames, "
        f"{len(corporation.merged_from)}+{len(corporation.merged_into)} "
        "mergers"
    )
    return corporation
