"""Pydantic data models for corporation summary records.

Records are immutable once assembled. Date fields are generic over DateT so
that the raw-text and typed-date output modes share one schema:

    RawCorporation   = Corporation[str]    # "01-15-2003"
    TypedCorporation = Corporation[date]   # "2003-01-15" in JSON
"""

from __future__ import annotations

import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

DateT = TypeVar("DateT", str, datetime.date)


class RecordModel(BaseModel):
    """Base class for registry records: frozen, no extra fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class Address(RecordModel):
    """A postal address as printed on the summary page."""

    street: str = Field(..., description="Street line")
    city: str = Field(..., description="City")
    state: str = Field(..., description="State or province")
    zip: str = Field(..., description="Postal code, unvalidated")
    country: str = Field(..., description="Country")


class PrincipalOffice(RecordModel):
    address: Address
    maintained: str = Field(
        ..., description="Whether the principal office is maintained in-state"
    )


class PrincipalAgent(RecordModel):
    """The registered (resident) agent."""

    name: str = Field(..., description="Agent name")
    address: Address
    resigned: str = Field(..., description="Agent resignation flag")


class Officer(RecordModel):
    title: str = Field(..., description="Officer title, e.g. PRESIDENT")
    name: str = Field(..., description="Officer name")
    address: str = Field(..., description="Officer address, one line")


class Rename(RecordModel, Generic[DateT]):
    """A former name of the corporation."""

    name: str = Field(..., description="Name in effect")
    date: DateT = Field(..., description="Date of the name change")


class Merger(RecordModel, Generic[DateT]):
    """A merger with another corporation, in either direction."""

    corp: str = Field(
        ..., description="Counterpart corporation id, from the link href"
    )
    date: DateT = Field(..., description="Date of the merger")


class Corporation(RecordModel, Generic[DateT]):
    """A corporation summary record."""

    id: int = Field(..., description="Externally supplied corporation id")
    name: str = Field(..., description="Entity name")
    kind: str = Field(..., description="Entity type")
    purpose: str = Field(..., description="Stated purpose, free text")
    date_incorporated: DateT = Field(..., description="Organisation date")
    date_effective: DateT = Field(..., description="Effective date")
    principal_office: PrincipalOffice
    principal_agent: PrincipalAgent
    officers: list[Officer]
    renames: list[Rename[DateT]]
    merged_from: list[Merger[DateT]]
    merged_into: list[Merger[DateT]]


RawCorporation = Corporation[str]
TypedCorporation = Corporation[datetime.date]
