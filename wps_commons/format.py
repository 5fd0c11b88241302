"""
Format value type for WPS complex data negotiation.

A Format is a (mime type, encoding, schema) triple where every field is
optional. The same type serves two roles:

- As a descriptor of a concrete payload, an absent field means the
  property is unspecified. Use the has_* family.
- As a constraint, an absent field means "accept any". Use the
  matches_* family.

Empty strings are normalized to absent, so a field is either None or a
non-empty string. Instances are frozen and can be shared between threads.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

BASE64_ENCODING = "Base64"
UTF8_ENCODING = "UTF-8"

# Distinguishes has_mime_type() from has_mime_type(None)
_UNSET = object()


def _empty_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


def _equals_ignore_case(present: Optional[str], value: Optional[str]) -> bool:
    return (present or "").lower() == (value or "").lower()


@dataclass(frozen=True, repr=False)
class Format:
    """
    Immutable (mime type, encoding, schema) descriptor.

    Attributes:
        mime_type: MIME type such as "text/xml", or None
        encoding: Encoding such as "UTF-8" or "Base64", or None
        schema: Schema URL, or None
    """

    mime_type: Optional[str] = None
    encoding: Optional[str] = None
    schema: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "mime_type", _empty_to_none(self.mime_type))
        object.__setattr__(self, "encoding", _empty_to_none(self.encoding))
        object.__setattr__(self, "schema", _empty_to_none(self.schema))

    # ------------------------------------------------------------------
    # Presence and equality queries
    # ------------------------------------------------------------------

    def is_empty(self) -> bool:
        """Check whether none of the three fields is present."""
        return not (self.has_mime_type() or self.has_encoding() or self.has_schema())

    def has_mime_type(self, value: Union[str, "Format", None] = _UNSET) -> bool:
        """
        Check the mime type.

        Without an argument, returns whether a mime type is present.
        With a string (or None), compares case-insensitively, treating an
        absent mime type and a None value as the empty string. With another
        Format, compares against that Format's mime type.
        """
        if value is _UNSET:
            return self.mime_type is not None
        if isinstance(value, Format):
            value = value.mime_type
        return _equals_ignore_case(self.mime_type, value)

    def has_encoding(self, value: Union[str, "Format", None] = _UNSET) -> bool:
        """Check the encoding. See has_mime_type() for the argument forms."""
        if value is _UNSET:
            return self.encoding is not None
        if isinstance(value, Format):
            value = value.encoding
        return _equals_ignore_case(self.encoding, value)

    def has_schema(self, value: Union[str, "Format", None] = _UNSET) -> bool:
        """Check the schema. See has_mime_type() for the argument forms."""
        if value is _UNSET:
            return self.schema is not None
        if isinstance(value, Format):
            value = value.schema
        return _equals_ignore_case(self.schema, value)

    # ------------------------------------------------------------------
    # Constraint matching
    # ------------------------------------------------------------------

    def matches_mime_type(self, value: Union[str, "Format", None]) -> bool:
        """
        Check whether value satisfies this Format's mime type constraint.

        An absent mime type matches anything.
        """
        return not self.has_mime_type() or self.has_mime_type(value)

    def matches_encoding(self, value: Union[str, "Format", None]) -> bool:
        """Check value against the encoding constraint (absent matches anything)."""
        return not self.has_encoding() or self.has_encoding(value)

    def matches_schema(self, value: Union[str, "Format", None]) -> bool:
        """Check value against the schema constraint (absent matches anything)."""
        return not self.has_schema() or self.has_schema(value)

    def matches(self, other: "Format") -> bool:
        """Check whether other satisfies all three field constraints."""
        return (
            self.matches_mime_type(other)
            and self.matches_encoding(other)
            and self.matches_schema(other)
        )

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def with_mime_type(self, mime_type: Optional[str]) -> "Format":
        return replace(self, mime_type=mime_type)

    def with_encoding(self, encoding: Optional[str]) -> "Format":
        return replace(self, encoding=encoding)

    def with_schema(self, schema: Optional[str]) -> "Format":
        return replace(self, schema=schema)

    def with_base64_encoding(self) -> "Format":
        return self.with_encoding(BASE64_ENCODING)

    def with_utf8_encoding(self) -> "Format":
        return self.with_encoding(UTF8_ENCODING)

    def without_mime_type(self) -> "Format":
        return self.with_mime_type(None)

    def without_encoding(self) -> "Format":
        return self.with_encoding(None)

    def without_schema(self) -> "Format":
        return self.with_schema(None)

    # ------------------------------------------------------------------
    # Predicate views
    # ------------------------------------------------------------------

    def matching_mime_type(self) -> Callable[["Format"], bool]:
        """Return a predicate testing candidates for an equal mime type."""
        return lambda candidate: self.has_mime_type(candidate)

    def matching_encoding(self) -> Callable[["Format"], bool]:
        """Return a predicate testing candidates for an equal encoding."""
        return lambda candidate: self.has_encoding(candidate)

    def matching_schema(self) -> Callable[["Format"], bool]:
        """Return a predicate testing candidates for an equal schema."""
        return lambda candidate: self.has_schema(candidate)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def set_to(
        self,
        set_encoding: Callable[[str], object],
        set_mime_type: Callable[[str], object],
        set_schema: Callable[[str], object],
    ) -> None:
        """
        Pass each present field to its setter.

        Absent fields are skipped, so the target keeps whatever it had.

        Args:
            set_encoding: Receives the encoding
            set_mime_type: Receives the mime type
            set_schema: Receives the schema
        """
        if self.has_encoding():
            set_encoding(self.encoding)
        if self.has_mime_type():
            set_mime_type(self.mime_type)
        if self.has_schema():
            set_schema(self.schema)

    def __repr__(self) -> str:
        fields = [
            f"{name}={value!r}"
            for name, value in (
                ("mime_type", self.mime_type),
                ("encoding", self.encoding),
                ("schema", self.schema),
            )
            if value is not None
        ]
        return f"Format({', '.join(fields)})"
