"""
Primitive Byte Readers
======================

Fixed-width little-endian integer reads and raw byte slicing over an
immutable buffer. Every ULog decoder is built from these four operations.

Each read advances the cursor and raises TruncatedInputError if the buffer
is too short. Nothing is consumed by a failed read.

    >>> cur = ByteCursor(b"\\x13\\x00B")
    >>> cur.read_u16_le(), cur.read_u8()
    (19, 66)
"""

import struct

from ulog_sdk.errors import TruncatedInputError


_U16_LE = struct.Struct("<H")
_U64_LE = struct.Struct("<Q")


class ByteCursor:
    """
    Read position over a bytes-like buffer.

    Attributes:
        data: The underlying buffer (never modified)
        offset: Current read position
    """

    __slots__ = ("data", "offset")

    def __init__(self, data: bytes, offset: int = 0):
        if isinstance(data, memoryview):
            data = data.cast("B")
        self.data = data
        self.offset = offset

    def __repr__(self) -> str:
        return f"ByteCursor(offset={self.offset}, remaining={self.remaining})"

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return max(0, len(self.data) - self.offset)

    @property
    def at_end(self) -> bool:
        """True once every byte has been consumed."""
        return self.offset >= len(self.data)

    def _require(self, n: int, what: str) -> None:
        if n > self.remaining:
            raise TruncatedInputError(n, self.remaining, what)

    def read_u8(self, what: str = "u8") -> int:
        """Read one unsigned byte."""
        self._require(1, what)
        value = self.data[self.offset]
        self.offset += 1
        return value

    def read_u16_le(self, what: str = "u16") -> int:
        """Read a little-endian unsigned 16-bit integer."""
        self._require(2, what)
        (value,) = _U16_LE.unpack_from(self.data, self.offset)
        self.offset += 2
        return value

    def read_u64_le(self, what: str = "u64") -> int:
        """Read a little-endian unsigned 64-bit integer."""
        self._require(8, what)
        (value,) = _U64_LE.unpack_from(self.data, self.offset)
        self.offset += 8
        return value

    def take(self, n: int, what: str = "data") -> bytes:
        """
        Consume the next n bytes and return a copy of them.

        Raises:
            ValueError: If n is negative
            TruncatedInputError: If fewer than n bytes remain
        """
        if n < 0:
            raise ValueError(f"negative read length: {n}")
        self._require(n, what)
        chunk = bytes(self.data[self.offset:self.offset + n])
        self.offset += n
        return chunk

    def peek_u8(self, at: int = 0, what: str = "u8") -> int:
        """Return the byte `at` positions ahead without consuming anything."""
        self._require(at + 1, what)
        return self.data[self.offset + at]
