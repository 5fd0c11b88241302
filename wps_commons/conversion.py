"""
Adapters between Format and external WPS descriptor objects.

The external objects (complex data descriptions, input/output references,
process input/output descriptions, ...) are only described structurally
by the protocols below; any object exposing the attributes works.

Absent structure is never an error: every lookup that traverses an
optional container returns None (for a single default format) or an
empty iterable (for supported format lists) as soon as a level is missing.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Iterable, Iterator, Optional, Protocol, Sequence

from wps_commons.format import Format

logger = logging.getLogger(__name__)

FORMAT_ELEMENT = "Format"
MIMETYPE_ATTRIBUTE = "mimetype"
ENCODING_ATTRIBUTE = "encoding"
SCHEMA_ATTRIBUTE = "schema"


# ============================================================================
# External descriptor shapes
# ============================================================================

class FormatDescriptor(Protocol):
    """Anything carrying mime_type, encoding and schema attributes."""

    mime_type: Optional[str]
    encoding: Optional[str]
    schema: Optional[str]


class ComplexDataCombination(Protocol):
    format: FormatDescriptor


class ComplexDataCombinations(Protocol):
    formats: Sequence[FormatDescriptor]


class SupportedComplexData(Protocol):
    default: Optional[ComplexDataCombination]
    supported: Optional[ComplexDataCombinations]


class InputDescription(Protocol):
    complex_data: Optional[SupportedComplexData]


class OutputDescription(Protocol):
    complex_output: Optional[SupportedComplexData]


# ============================================================================
# Single descriptors
# ============================================================================

def format_of(descriptor: FormatDescriptor) -> Format:
    """Build a Format from a descriptor's three fields."""
    return Format(descriptor.mime_type, descriptor.encoding, descriptor.schema)


def format_of_combination(combination: ComplexDataCombination) -> Format:
    """Build a Format from the descriptor wrapped by a combination."""
    return format_of(combination.format)


def encode_to(fmt: Format, target: FormatDescriptor) -> None:
    """
    Copy the present fields of fmt onto target.

    Fields absent from fmt are left untouched on target.

    Args:
        fmt: Source format
        target: Object receiving mime_type, encoding and schema
    """
    fmt.set_to(
        lambda value: setattr(target, "encoding", value),
        lambda value: setattr(target, "mime_type", value),
        lambda value: setattr(target, "schema", value),
    )


# ============================================================================
# Descriptor lists
# ============================================================================

class FormatIterable:
    """
    Lazy view of a descriptor sequence as Formats.

    Each call to iter() starts over, so the view can be consumed any
    number of times. Nothing is converted until iterated.
    """

    def __init__(self, descriptors: Sequence[FormatDescriptor]):
        if descriptors is None:
            raise ValueError("descriptors must not be None")
        self._descriptors = descriptors

    def __iter__(self) -> Iterator[Format]:
        for descriptor in self._descriptors:
            yield format_of(descriptor)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self) -> str:
        return f"FormatIterable({len(self._descriptors)} descriptors)"


def formats_of(descriptors: Optional[Sequence[FormatDescriptor]]) -> Iterable[Format]:
    """Return the Formats of a descriptor list, or () if the list is absent."""
    if descriptors is None:
        return ()
    return FormatIterable(descriptors)


def formats_of_combinations(
    combinations: Optional[ComplexDataCombinations],
) -> Iterable[Format]:
    """Return the Formats of a combinations container, or () if absent."""
    if combinations is None:
        return ()
    return formats_of(combinations.formats)


# ============================================================================
# Default / supported lookups
# ============================================================================

def get_default_format(scd: Optional[SupportedComplexData]) -> Optional[Format]:
    """Return the default Format of a supported-complex-data block, if any."""
    if scd is None or scd.default is None:
        return None
    return format_of_combination(scd.default)


def get_supported_formats(scd: Optional[SupportedComplexData]) -> Iterable[Format]:
    """Return the supported Formats of a supported-complex-data block."""
    if scd is None:
        return ()
    return formats_of_combinations(scd.supported)


def get_default_input_format(idt: Optional[InputDescription]) -> Optional[Format]:
    if idt is None:
        return None
    return get_default_format(idt.complex_data)


def get_supported_input_formats(idt: Optional[InputDescription]) -> Iterable[Format]:
    if idt is None:
        return ()
    return get_supported_formats(idt.complex_data)


def get_default_output_format(odt: Optional[OutputDescription]) -> Optional[Format]:
    if odt is None:
        return None
    return get_default_format(odt.complex_output)


def get_supported_output_formats(odt: Optional[OutputDescription]) -> Iterable[Format]:
    if odt is None:
        return ()
    return get_supported_formats(odt.complex_output)


# ============================================================================
# Configuration document <Format> elements
# ============================================================================

def format_to_element(fmt: Format, parent: ET.Element) -> ET.Element:
    """
    Append a <Format> element describing fmt to parent.

    Only present fields become attributes.

    Args:
        fmt: Format to write
        parent: Parser or Generator element

    Returns:
        The new <Format> element
    """
    element = ET.SubElement(parent, FORMAT_ELEMENT)
    fmt.set_to(
        lambda value: element.set(ENCODING_ATTRIBUTE, value),
        lambda value: element.set(MIMETYPE_ATTRIBUTE, value),
        lambda value: element.set(SCHEMA_ATTRIBUTE, value),
    )
    logger.debug("Wrote %r to <%s>", fmt, parent.tag)
    return element


def format_from_element(element: ET.Element) -> Format:
    """Read a Format back from a <Format> element."""
    return Format(
        element.get(MIMETYPE_ATTRIBUTE),
        element.get(ENCODING_ATTRIBUTE),
        element.get(SCHEMA_ATTRIBUTE),
    )
