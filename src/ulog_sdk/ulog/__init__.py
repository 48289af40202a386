"""
ULog File Handling
==================

This module decodes PX4 ULog flight logs: a 16-byte file header, a
mandatory flag bits record, then a stream of size-framed, tag-identified
records.

This module provides:
- **UlogParser / parse_ulog**: Decode a complete file held in memory
- **Record types**: Frozen dataclasses for every record shape
- **Decoders**: One function per record type, plus the tag dispatcher
- **ByteCursor**: The little-endian primitive readers underneath

Quick Start
-----------
    >>> from ulog_sdk.ulog import parse_ulog_file, MessageLogging
    >>> log = parse_ulog_file("flight.ulg")
    >>> for rec in log.iter_messages(MessageLogging):
    ...     print(rec.log_level_name(), rec.message)

Decoding is strict: the first malformed record raises a UlogFormatError
subclass and no partial log is returned.

Reference
---------
- ULog file format: https://docs.px4.io/main/en/dev_log/ulog_file_format.html
"""

# =============================================================================
# Public API Exports
# =============================================================================

from ulog_sdk.ulog.cursor import ByteCursor

from ulog_sdk.ulog.records import (
    # Constants
    ULOG_MAGIC,
    HEADER_SIZE,
    MESSAGE_HEADER_SIZE,
    FLAG_BITS_SIZE,
    # Enums
    MessageType,
    LogLevel,
    # Data structures
    Header,
    MessageHeader,
    MessageFlagBits,
    Message,
    MessageFormat,
    MessageInfo,
    MessageInfoMultiple,
    MessageParameter,
    MessageParameterDefault,
    MessageAddLogged,
    MessageRemoveLogged,
    MessageData,
    MessageLogging,
    MessageLoggingTagged,
    MessageSync,
    MessageDropout,
    Ulog,
)

from ulog_sdk.ulog.parser import (
    MESSAGE_DECODERS,
    ParserState,
    UlogParser,
    decode_header,
    decode_message_header,
    decode_flag_bits,
    decode_message,
    parse_ulog,
    parse_ulog_file,
)

__all__ = [
    "ByteCursor",
    # Constants
    "ULOG_MAGIC",
    "HEADER_SIZE",
    "MESSAGE_HEADER_SIZE",
    "FLAG_BITS_SIZE",
    # Enums
    "MessageType",
    "LogLevel",
    # Data structures
    "Header",
    "MessageHeader",
    "MessageFlagBits",
    "Message",
    "MessageFormat",
    "MessageInfo",
    "MessageInfoMultiple",
    "MessageParameter",
    "MessageParameterDefault",
    "MessageAddLogged",
    "MessageRemoveLogged",
    "MessageData",
    "MessageLogging",
    "MessageLoggingTagged",
    "MessageSync",
    "MessageDropout",
    "Ulog",
    # Parser
    "MESSAGE_DECODERS",
    "ParserState",
    "UlogParser",
    "decode_header",
    "decode_message_header",
    "decode_flag_bits",
    "decode_message",
    "parse_ulog",
    "parse_ulog_file",
]
