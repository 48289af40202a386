"""
ULog Record Type Definitions
============================

This module defines the data structures produced by the ULog decoder.

File Structure Overview
-----------------------
A ULog file contains:
1. File Header (16 bytes): Magic (7) + version (1) + timestamp (8, LE)
2. Flag Bits record (tag 'B'): always first, always present
3. Records (variable): tag-identified, size-framed messages until EOF

Record Format
-------------
Every record uses the same framing:

    Byte 0-1: Body size (u16, little-endian), excluding these 3 bytes
    Byte 2:   Type tag (ASCII letter)
    Byte 3+:  Body (size bytes)

All multi-byte integers are little-endian.

Record Types
------------
- 'B': Flag Bits (compat/incompat flags, appended data offsets)
- 'F': Format (message type definition text)
- 'I': Info (key/value)
- 'M': Info Multiple (key/value, continuable)
- 'P': Parameter (key/value)
- 'Q': Parameter Default (key/value + default type mask)
- 'A': Add Logged Message (subscription)
- 'R': Remove Logged Message
- 'D': Data (subscription payload)
- 'L': Logging (text message)
- 'C': Logging Tagged (text message with tag)
- 'S': Sync
- 'O': Dropout

Values of Info/Parameter records and Data payloads are kept as raw bytes;
their meaning depends on earlier Format/Add Logged records.
"""

from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional, Type, TypeVar


# =============================================================================
# Constants
# =============================================================================

# "ULog" followed by the format marker bytes
ULOG_MAGIC = bytes([0x55, 0x4C, 0x6F, 0x67, 0x01, 0x12, 0x35])

HEADER_SIZE = 16            # magic (7) + version (1) + timestamp (8)
MESSAGE_HEADER_SIZE = 3     # size (2) + tag (1)
FLAG_BITS_SIZE = 19         # compat (8) + incompat (8) + offsets (3)

# Incompat flag bit 0 of byte 0: data sections appended to the file
INCOMPAT_FLAG_DATA_APPENDED = 0x01


# =============================================================================
# Enumeration Types
# =============================================================================

class MessageType(IntEnum):
    """
    Record type tags.

    Each record header carries one of these ASCII letters identifying the
    shape of the body that follows.
    """
    FLAG_BITS = ord("B")
    FORMAT = ord("F")
    INFO = ord("I")
    INFO_MULTIPLE = ord("M")
    PARAMETER = ord("P")
    PARAMETER_DEFAULT = ord("Q")
    ADD_LOGGED = ord("A")
    REMOVE_LOGGED = ord("R")
    DATA = ord("D")
    LOGGING = ord("L")
    LOGGING_TAGGED = ord("C")
    SYNC = ord("S")
    DROPOUT = ord("O")

    @classmethod
    def get_name(cls, type_byte: int) -> str:
        """Get a human-readable name for a record type."""
        names = {
            cls.FLAG_BITS: "Flag Bits",
            cls.FORMAT: "Format",
            cls.INFO: "Info",
            cls.INFO_MULTIPLE: "Info Multiple",
            cls.PARAMETER: "Parameter",
            cls.PARAMETER_DEFAULT: "Parameter Default",
            cls.ADD_LOGGED: "Add Logged",
            cls.REMOVE_LOGGED: "Remove Logged",
            cls.DATA: "Data",
            cls.LOGGING: "Logging",
            cls.LOGGING_TAGGED: "Logging Tagged",
            cls.SYNC: "Sync",
            cls.DROPOUT: "Dropout",
        }
        return names.get(type_byte, f"Unknown (0x{type_byte:02X})")

    @property
    def letter(self) -> str:
        """The tag as a one-character string."""
        return chr(self.value)


class LogLevel(IntEnum):
    """
    Log levels of Logging records.

    Levels are stored as ASCII digits, following syslog severity order.
    """
    EMERG = ord("0")
    ALERT = ord("1")
    CRIT = ord("2")
    ERR = ord("3")
    WARNING = ord("4")
    NOTICE = ord("5")
    INFO = ord("6")
    DEBUG = ord("7")

    @classmethod
    def get_name(cls, level: int) -> str:
        """Get the level name, or "UNKNOWN" for values outside '0'..'7'."""
        try:
            return cls(level).name
        except ValueError:
            return "UNKNOWN"


# =============================================================================
# File Header
# =============================================================================

@dataclass(frozen=True)
class Header:
    """
    File header (16 bytes at offset 0).

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        0       7       Magic: 55 4C 6F 67 01 12 35
        7       1       Format version
        8       8       Start timestamp in microseconds (LE)
    """
    version: int
    timestamp: int


@dataclass(frozen=True)
class MessageHeader:
    """
    Record header shared by every record.

    msg_size never includes the 3 bytes of the header itself.
    """
    msg_size: int
    msg_type: int

    def get_type_name(self) -> str:
        return MessageType.get_name(self.msg_type)


# =============================================================================
# Flag Bits
# =============================================================================

@dataclass(frozen=True)
class MessageFlagBits:
    """
    Flag bits record (tag 'B', 19-byte body).

    Structure:
        Offset  Size    Description
        0       8       Compatible flags
        8       8       Incompatible flags
        16      3       Appended data offsets

    A strict reader would reject files with unknown incompatible bits set;
    this decoder exposes the flags without enforcing them.
    """
    header: MessageHeader
    compat_flags: bytes
    incompat_flags: bytes
    appended_offsets: bytes

    @property
    def has_appended_data(self) -> bool:
        """True if the 'data appended' incompatible flag is set."""
        return bool(self.incompat_flags[0] & INCOMPAT_FLAG_DATA_APPENDED)

    def has_unknown_incompat_flags(self) -> bool:
        """True if any incompatible flag other than 'data appended' is set."""
        if self.incompat_flags[0] & ~INCOMPAT_FLAG_DATA_APPENDED:
            return True
        return any(self.incompat_flags[1:])


# =============================================================================
# Message Base Class
# =============================================================================

@dataclass(frozen=True)
class Message:
    """
    Base class for every record after the flag bits.

    Each record keeps a copy of its header (size and tag) for diagnostics.
    """
    header: MessageHeader

    @property
    def msg_type(self) -> int:
        return self.header.msg_type

    def get_type_name(self) -> str:
        """Get a human-readable name for this record type."""
        return MessageType.get_name(self.header.msg_type)

    def get_size(self) -> int:
        """Total bytes this record occupied in the file, header included."""
        return MESSAGE_HEADER_SIZE + self.header.msg_size


# =============================================================================
# Definition Records
# =============================================================================

@dataclass(frozen=True)
class MessageFormat(Message):
    """
    Format record (tag 'F').

    The body is the whole type definition, e.g. "vehicle_gps:uint64_t
    timestamp;float lat;". The definition grammar is not interpreted here.
    """
    format: str = ""

    @property
    def name(self) -> str:
        """The message name: text before the first ':'."""
        return self.format.split(":", 1)[0]


@dataclass(frozen=True)
class MessageInfo(Message):
    """
    Info record (tag 'I'): one key/value pair.

    Body: [key_len u8] [key] [value...]
    """
    key_len: int = 0
    key: str = ""
    value: bytes = b""


@dataclass(frozen=True)
class MessageInfoMultiple(Message):
    """
    Info multiple record (tag 'M').

    Body: [is_continued u8] [key_len u8] [key] [value...]

    Values longer than a single record are split over several records with
    the same key; is_continued is non-zero on every part after the first.
    """
    is_continued: int = 0
    key_len: int = 0
    key: str = ""
    value: bytes = b""


@dataclass(frozen=True)
class MessageParameter(Message):
    """
    Parameter record (tag 'P').

    Body: [key_len u8] [key] [value...]
    """
    key_len: int = 0
    key: str = ""
    value: bytes = b""


@dataclass(frozen=True)
class MessageParameterDefault(Message):
    """
    Parameter default record (tag 'Q').

    Body: [default_types u8] [key_len u8] [key] [value...]
    """
    default_types: int = 0
    key_len: int = 0
    key: str = ""
    value: bytes = b""


# =============================================================================
# Subscription Records
# =============================================================================

@dataclass(frozen=True)
class MessageAddLogged(Message):
    """
    Add logged message record (tag 'A').

    Body: [multi_id u8] [msg_id u16] [message_name...]

    Binds msg_id to a format name; multi_id distinguishes instances of the
    same message (e.g. several GPS receivers).
    """
    multi_id: int = 0
    msg_id: int = 0
    message_name: str = ""


@dataclass(frozen=True)
class MessageRemoveLogged(Message):
    """Remove logged message record (tag 'R')."""
    msg_id: int = 0


@dataclass(frozen=True)
class MessageData(Message):
    """
    Data record (tag 'D').

    Body: [msg_id u16] [payload...]
    """
    msg_id: int = 0
    data: bytes = b""


# =============================================================================
# Logging Records
# =============================================================================

@dataclass(frozen=True)
class MessageLogging(Message):
    """
    Logged string record (tag 'L').

    Body: [log_level u8] [timestamp u64] [message...]
    """
    log_level: int = 0
    timestamp: int = 0
    message: str = ""

    def log_level_name(self) -> str:
        return LogLevel.get_name(self.log_level)


@dataclass(frozen=True)
class MessageLoggingTagged(Message):
    """
    Tagged logged string record (tag 'C').

    Body: [log_level u8] [tag u16] [timestamp u64] [message...]
    """
    log_level: int = 0
    tag: int = 0
    timestamp: int = 0
    message: str = ""

    def log_level_name(self) -> str:
        return LogLevel.get_name(self.log_level)


# =============================================================================
# Stream Markers
# =============================================================================

@dataclass(frozen=True)
class MessageSync(Message):
    """Sync record (tag 'S'); sync_magic is the first body byte."""
    sync_magic: int = 0


@dataclass(frozen=True)
class MessageDropout(Message):
    """Dropout record (tag 'O'): a gap of `duration` ms in the log."""
    duration: int = 0


# =============================================================================
# Decoded Log
# =============================================================================

M = TypeVar("M", bound=Message)


@dataclass(frozen=True)
class Ulog:
    """
    A fully decoded ULog file.

    Attributes:
        header: The file header
        flag_bits: The mandatory flag bits record
        messages: Every following record, in file order
    """
    header: Header
    flag_bits: MessageFlagBits
    messages: tuple[Message, ...] = ()

    def iter_messages(self, kind: Type[M]) -> Iterator[M]:
        """
        Iterate over records of one type, in file order.

        Example:
            >>> for rec in log.iter_messages(MessageLogging):
            ...     print(rec.message)
        """
        for message in self.messages:
            if isinstance(message, kind):
                yield message

    def list_formats(self) -> list[str]:
        """Names of all Format records."""
        return [record.name for record in self.iter_messages(MessageFormat)]

    def get_format(self, name: str) -> Optional[MessageFormat]:
        """Get a Format record by message name."""
        for record in self.iter_messages(MessageFormat):
            if record.name == name:
                return record
        return None

    def list_subscriptions(self) -> list[tuple[int, int, str]]:
        """(msg_id, multi_id, message_name) for each Add Logged record."""
        return [
            (record.msg_id, record.multi_id, record.message_name)
            for record in self.iter_messages(MessageAddLogged)
        ]

    def get_info(self) -> dict[str, bytes]:
        """Info values by key; a repeated key keeps the last value."""
        return {record.key: record.value for record in self.iter_messages(MessageInfo)}

    def get_info_multiple(self) -> dict[str, list[bytes]]:
        """
        Info multiple values by key.

        Each key maps to a list of values. Continued records are appended to
        the value they continue, so every list entry is one complete value.
        """
        result: dict[str, list[bytes]] = {}
        for record in self.iter_messages(MessageInfoMultiple):
            parts = result.setdefault(record.key, [])
            if record.is_continued and parts:
                parts[-1] += record.value
            else:
                parts.append(record.value)
        return result

    def get_parameters(self) -> dict[str, bytes]:
        """Parameter values by name; later records override earlier ones."""
        return {
            record.key: record.value for record in self.iter_messages(MessageParameter)
        }

    def count_by_type(self) -> dict[str, int]:
        """Number of records of each type, keyed by type name."""
        counts = Counter(message.get_type_name() for message in self.messages)
        return dict(counts)

    def dropout_total_ms(self) -> int:
        """Sum of all dropout durations in milliseconds."""
        return sum(record.duration for record in self.iter_messages(MessageDropout))

    def get_summary(self) -> dict:
        """
        Get summary information about the log.

        Returns:
            Dictionary with header, flag and record statistics
        """
        return {
            "version": self.header.version,
            "timestamp": self.header.timestamp,
            "compat_flags": self.flag_bits.compat_flags.hex(),
            "incompat_flags": self.flag_bits.incompat_flags.hex(),
            "appended_data": self.flag_bits.has_appended_data,
            "total_records": len(self.messages),
            "format_count": len(self.list_formats()),
            "subscription_count": len(self.list_subscriptions()),
            "dropout_ms": self.dropout_total_ms(),
            "records_by_type": self.count_by_type(),
        }
