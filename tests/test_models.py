"""Tests for the Corporation models and their JSON form."""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from corpweb.data_types import DateMode
from corpweb.registry.assembler import extract_corporation
from corpweb.registry.models import (
    Address,
    Merger,
    Rename,
    RawCorporation,
    TypedCorporation,
)
from tests.mock_server import CORPORATIONS, generate_corporation_html

FIELD_ORDER = [
    "id",
    "name",
    "kind",
    "purpose",
    "date_incorporated",
    "date_effective",
    "principal_office",
    "principal_agent",
    "officers",
    "renames",
    "merged_from",
    "merged_into",
]


@pytest.fixture
def merged_page(make_page):
    return make_page(generate_corporation_html(CORPORATIONS[9]))


class TestJsonShape:
    """Tests for the serialized record layout."""

    def test_field_order(self, corporation_page):
        """Fields shall serialize in declaration order."""
        corp = extract_corporation(7, corporation_page)

        doc = json.loads(corp.model_dump_json())

        assert list(doc) == FIELD_ORDER
        assert list(doc["principal_office"]) == ["address", "maintained"]
        assert list(doc["principal_agent"]) == ["name", "address", "resigned"]
        assert list(doc["principal_office"]["address"]) == [
            "street",
            "city",
            "state",
            "zip",
            "country",
        ]
        assert list(doc["officers"][0]) == ["title", "name", "address"]
        assert list(doc["renames"][0]) == ["name", "date"]

    def test_raw_dates_are_page_text(self, corporation_page):
        """Raw dates shall serialize as the page text."""
        doc = json.loads(
            extract_corporation(7, corporation_page).model_dump_json()
        )

        assert doc["date_incorporated"] == "01-15-2003"

    def test_typed_dates_are_iso(self, corporation_page):
        """Typed dates shall serialize as ISO dates."""
        corp = extract_corporation(7, corporation_page, DateMode.TYPED)

        doc = json.loads(corp.model_dump_json())

        assert doc["date_incorporated"] == "2003-01-15"
        assert doc["renames"][0]["date"] == "2010-06-30"

    def test_merger_shape(self, merged_page):
        """Mergers shall serialize as corp and date."""
        doc = json.loads(extract_corporation(9, merged_page).model_dump_json())

        assert doc["merged_from"] == [
            {"corp": "000000123", "date": "03-04-2005"}
        ]
        assert doc["merged_into"] == [
            {"corp": "000000456", "date": "12-31-2015"}
        ]


class TestRoundTrip:
    """Tests for serialize-then-parse equality."""

    def test_raw_round_trip(self, merged_page):
        """A raw record shall survive a JSON round trip unchanged."""
        corp = extract_corporation(9, merged_page)

        restored = RawCorporation.model_validate_json(corp.model_dump_json())

        assert restored == corp
        assert restored.model_dump() == corp.model_dump()

    def test_typed_round_trip(self, corporation_page):
        """A typed record shall survive a JSON round trip unchanged."""
        corp = extract_corporation(7, corporation_page, DateMode.TYPED)

        restored = TypedCorporation.model_validate_json(
            corp.model_dump_json()
        )

        assert restored == corp
        assert restored.date_incorporated == date(2003, 1, 15)


class TestModelRules:
    """Tests for model immutability and strictness."""

    def test_records_are_frozen(self, corporation_page):
        """Assembled records shall be immutable."""
        corp = extract_corporation(7, corporation_page)

        with pytest.raises(ValidationError):
            corp.name = "OTHER"

    def test_extra_fields_rejected(self):
        """Unknown fields shall be rejected."""
        with pytest.raises(ValidationError):
            Address(
                street="1 MAIN ST",
                city="PROVIDENCE",
                state="RI",
                zip="02903",
                country="USA",
                county="PROVIDENCE",
            )

    def test_typed_models_reject_bad_dates(self):
        """Typed models shall not accept arbitrary text as a date."""
        with pytest.raises(ValidationError):
            Rename[date](name="OLD CO.", date="not a date")

    def test_typed_merger_accepts_iso_text(self):
        """Typed models shall parse ISO date text, as JSON input carries it."""
        merger = Merger[date].model_validate(
            {"corp": "000000001", "date": "2001-01-01"}
        )

        assert merger.date == date(2001, 1, 1)
