"""
Tests for the Format <-> external descriptor adapters.

Covers:
- Single descriptor conversion and encode_to
- Lazy, restartable descriptor list views
- Default / supported lookups returning empty results for absent levels
- <Format> element reading and writing
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional

import pytest

from wps_commons.conversion import (
    FormatIterable,
    encode_to,
    format_from_element,
    format_of,
    format_of_combination,
    format_to_element,
    formats_of,
    formats_of_combinations,
    get_default_format,
    get_default_input_format,
    get_default_output_format,
    get_supported_formats,
    get_supported_input_formats,
    get_supported_output_formats,
)
from wps_commons.format import Format


# ---------------------------------------------------------------------------
# Stand-ins for the external descriptor types
# ---------------------------------------------------------------------------

@dataclass
class Description:
    mime_type: Optional[str] = None
    encoding: Optional[str] = None
    schema: Optional[str] = None


@dataclass
class Combination:
    format: Description


@dataclass
class Combinations:
    formats: List[Description]


@dataclass
class SupportedData:
    default: Optional[Combination] = None
    supported: Optional[Combinations] = None


@dataclass
class Input:
    complex_data: Optional[SupportedData] = None


@dataclass
class Output:
    complex_output: Optional[SupportedData] = None


@pytest.fixture
def descriptions() -> List[Description]:
    return [
        Description("text/xml", "UTF-8", "feature.xsd"),
        Description("application/json"),
        Description("image/tiff", "Base64", ""),
    ]


@pytest.fixture
def supported_data(descriptions) -> SupportedData:
    return SupportedData(
        default=Combination(descriptions[0]),
        supported=Combinations(descriptions),
    )


# ---------------------------------------------------------------------------
# Single descriptors
# ---------------------------------------------------------------------------

class TestSingleDescriptor:
    """Tests for format_of / encode_to."""

    def test_format_of(self):
        fmt = format_of(Description("text/xml", "UTF-8", "s"))
        assert fmt == Format("text/xml", "UTF-8", "s")

    def test_format_of_normalizes_empty(self):
        assert format_of(Description("", "", "")).is_empty()

    def test_format_of_combination(self):
        assert format_of_combination(Combination(Description("a/b"))) == Format("a/b")

    def test_encode_to_sets_present_fields(self):
        target = Description()
        encode_to(Format("text/xml", "Base64"), target)
        assert target.mime_type == "text/xml"
        assert target.encoding == "Base64"
        assert target.schema is None

    def test_encode_to_leaves_absent_fields_untouched(self):
        target = Description("old/type", "old-encoding", "old.xsd")
        encode_to(Format(None, "UTF-8"), target)
        assert target.mime_type == "old/type"
        assert target.encoding == "UTF-8"
        assert target.schema == "old.xsd"


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

class TestDescriptorLists:
    """Tests for formats_of and the lazy iterable."""

    def test_none_yields_empty(self):
        assert list(formats_of(None)) == []
        assert list(formats_of_combinations(None)) == []

    def test_empty_list_yields_empty(self):
        assert list(formats_of([])) == []

    def test_converts_in_order(self, descriptions):
        assert list(formats_of(descriptions)) == [
            Format("text/xml", "UTF-8", "feature.xsd"),
            Format("application/json"),
            Format("image/tiff", "Base64"),
        ]

    def test_is_restartable(self, descriptions):
        formats = formats_of(descriptions)
        assert list(formats) == list(formats)
        assert len(formats) == 3

    def test_is_lazy(self, descriptions):
        formats = formats_of(descriptions)
        descriptions.append(Description("text/plain"))
        assert Format("text/plain") in list(formats)

    def test_combinations(self, descriptions):
        assert len(list(formats_of_combinations(Combinations(descriptions)))) == 3

    def test_iterable_rejects_none(self):
        with pytest.raises(ValueError):
            FormatIterable(None)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

class TestLookups:
    """Tests for default/supported traversal of optional containers."""

    def test_default_format(self, supported_data):
        assert get_default_format(supported_data) == Format("text/xml", "UTF-8", "feature.xsd")

    def test_supported_formats(self, supported_data):
        assert len(list(get_supported_formats(supported_data))) == 3

    def test_absent_supported_data(self):
        assert get_default_format(None) is None
        assert list(get_supported_formats(None)) == []

    def test_absent_default_and_supported(self):
        empty = SupportedData()
        assert get_default_format(empty) is None
        assert list(get_supported_formats(empty)) == []

    def test_input_description(self, supported_data):
        idt = Input(complex_data=supported_data)
        assert get_default_input_format(idt).has_mime_type("text/xml")
        assert len(list(get_supported_input_formats(idt))) == 3

    def test_output_description(self, supported_data):
        odt = Output(complex_output=supported_data)
        assert get_default_output_format(odt).has_encoding("utf-8")
        assert len(list(get_supported_output_formats(odt))) == 3

    @pytest.mark.parametrize("description", [None, Input(), Input(SupportedData())])
    def test_absent_input_levels(self, description):
        assert get_default_input_format(description) is None
        assert list(get_supported_input_formats(description)) == []

    @pytest.mark.parametrize("description", [None, Output(), Output(SupportedData())])
    def test_absent_output_levels(self, description):
        assert get_default_output_format(description) is None
        assert list(get_supported_output_formats(description)) == []


# ---------------------------------------------------------------------------
# <Format> elements
# ---------------------------------------------------------------------------

class TestFormatElements:
    """Tests for configuration document <Format> elements."""

    def test_writes_only_present_attributes(self):
        parent = ET.Element("Parser")
        element = format_to_element(Format("text/xml", None, "s.xsd"), parent)
        assert element.tag == "Format"
        assert element.attrib == {"mimetype": "text/xml", "schema": "s.xsd"}
        assert list(parent) == [element]

    def test_reads_back(self):
        parent = ET.Element("Generator")
        fmt = Format("image/tiff", "Base64", "tiff.xsd")
        assert format_from_element(format_to_element(fmt, parent)) == fmt

    def test_reads_empty_element(self):
        assert format_from_element(ET.Element("Format")).is_empty()
