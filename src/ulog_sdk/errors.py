"""
ULog SDK Error Hierarchy
========================

This module defines the exception hierarchy for the ULog SDK.
All exceptions inherit from UlogError, allowing callers to catch every
decoding problem with a single except clause if desired.

Exception Hierarchy
-------------------
UlogError (base)
└── UlogFormatError - the buffer is not a decodable ULog file
    ├── MalformedMagicError - first 7 bytes are not the ULog magic
    ├── UnexpectedTagError - a record tag did not match / is unknown
    ├── TruncatedInputError - a read ran past the end of the buffer
    ├── InvalidLengthError - declared size smaller than the fixed fields
    └── InvalidTextError - a text field is not valid UTF-8

Error Context
-------------
Format errors raised while walking the record stream carry the byte offset
of the record that failed and its index in the stream. The parser fills
these in after the fact, so low-level decoders only need to describe what
went wrong:

    ulog.bin: error at offset 0x00000142 (record 7): declared size 1 is
    smaller than the 2 bytes of fixed fields in 'D' record
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class UlogError(Exception):
    """
    Base exception for all ULog SDK errors.

        try:
            log = parse_ulog_file("flight.ulg")
        except UlogError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Format Exceptions
# =============================================================================

class UlogFormatError(UlogError):
    """
    Invalid ULog data.

    Attributes:
        message: The error description
        offset: Byte offset of the failing record (optional)
        record_index: Position of the failing record in the stream (optional)
    """

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        record_index: Optional[int] = None,
    ):
        self.message = message
        self.offset = offset
        self.record_index = record_index
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Prefix the message with offset/record context when known."""
        if self.offset is None:
            return self.message
        where = f"offset 0x{self.offset:08X}"
        if self.record_index is not None:
            where += f" (record {self.record_index})"
        return f"error at {where}: {self.message}"

    def with_context(
        self, offset: int, record_index: Optional[int] = None
    ) -> "UlogFormatError":
        """
        Attach location context to this error and return it.

        Context already set by an inner decoder is kept.
        """
        if self.offset is None:
            self.offset = offset
        if self.record_index is None:
            self.record_index = record_index
        self.args = (self._format_message(),)
        return self


class MalformedMagicError(UlogFormatError):
    """
    The file does not start with the ULog magic bytes.

    The magic is matched byte-for-byte; there is no fallback detection.
    """

    def __init__(self, found: bytes):
        self.found = bytes(found)
        super().__init__(f"invalid ULog magic: {self.found.hex(' ')}")


class UnexpectedTagError(UlogFormatError):
    """
    A record's type tag is not the one expected.

    Raised by a body decoder when the tag byte does not match its own type,
    and by the dispatcher when the tag is not a known record type.
    """

    def __init__(self, tag: int, expected: Optional[int] = None):
        self.tag = tag
        self.expected = expected
        if expected is None:
            message = f"unknown record type {_describe_tag(tag)}"
        else:
            message = (
                f"expected record type {_describe_tag(expected)}, "
                f"got {_describe_tag(tag)}"
            )
        super().__init__(message)


class TruncatedInputError(UlogFormatError):
    """
    A read needed more bytes than remain in the buffer.
    """

    def __init__(self, needed: int, available: int, what: str = "data"):
        self.needed = needed
        self.available = available
        super().__init__(
            f"truncated {what}: need {needed} bytes, {available} available"
        )


class InvalidLengthError(UlogFormatError):
    """
    A record's declared size cannot hold its fixed-width fields.

    The length of a trailing field is computed as the declared size minus
    the fixed fields already consumed; a negative result lands here instead
    of being used as a slice length.
    """

    def __init__(self, msg_size: int, fixed: int, tag: Optional[int] = None):
        self.msg_size = msg_size
        self.fixed = fixed
        self.tag = tag
        suffix = f" in {_describe_tag(tag)} record" if tag is not None else ""
        super().__init__(
            f"declared size {msg_size} is smaller than the {fixed} bytes "
            f"of fixed fields{suffix}"
        )


class InvalidTextError(UlogFormatError):
    """
    A field defined as text is not valid UTF-8.
    """

    def __init__(self, field_name: str, reason: str):
        self.field = field_name
        super().__init__(f"field '{field_name}' is not valid UTF-8: {reason}")


def _describe_tag(tag: int) -> str:
    """Format a tag byte as 'X' (0x58), or just hex when not printable."""
    if 0x20 < tag < 0x7F:
        return f"'{chr(tag)}' (0x{tag:02X})"
    return f"0x{tag:02X}"
