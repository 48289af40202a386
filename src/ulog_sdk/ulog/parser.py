"""
ULog Decoder
============

This module decodes a complete ULog file held in memory into the record
structures defined in ulog_sdk.ulog.records.

Decoding Stages
---------------
1. File header: 7-byte magic, version, start timestamp
2. Flag bits: the mandatory 'B' record right after the header
3. Records: read [size][tag], look the tag up in MESSAGE_DECODERS, and let
   the matching decoder consume exactly `size` body bytes; repeat until the
   buffer is exhausted

Every decoder takes (data, offset) and returns (value, new_offset). Any
failure raises a UlogFormatError subclass and aborts the whole file: there
is no partial result and no scanning forward for the next valid record.

Usage Examples
--------------
Decoding a file:
    >>> from ulog_sdk.ulog import parse_ulog_file
    >>> log = parse_ulog_file("flight.ulg")
    >>> print(f"ULog v{log.header.version}, {len(log.messages)} records")

Decoding a single record:
    >>> record, offset = decode_message(data, offset)

Reference
---------
- ULog file format: https://docs.px4.io/main/en/dev_log/ulog_file_format.html
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union
import logging

from ulog_sdk.errors import (
    InvalidLengthError,
    InvalidTextError,
    MalformedMagicError,
    TruncatedInputError,
    UlogError,
    UlogFormatError,
    UnexpectedTagError,
)
from ulog_sdk.ulog.cursor import ByteCursor
from ulog_sdk.ulog.records import (
    FLAG_BITS_SIZE,
    ULOG_MAGIC,
    Header,
    Message,
    MessageAddLogged,
    MessageData,
    MessageDropout,
    MessageFlagBits,
    MessageFormat,
    MessageHeader,
    MessageInfo,
    MessageInfoMultiple,
    MessageLogging,
    MessageLoggingTagged,
    MessageParameter,
    MessageParameterDefault,
    MessageRemoveLogged,
    MessageSync,
    MessageType,
    Ulog,
)

# Logger for this module
logger = logging.getLogger(__name__)

Decoder = Callable[[bytes, int], tuple[Message, int]]


# =============================================================================
# Field Helpers
# =============================================================================

def _decode_text(raw: bytes, field_name: str) -> str:
    """Decode a text field as strict UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidTextError(field_name, e.reason) from e


def _remaining_length(header: MessageHeader, consumed: int) -> int:
    """
    Length of the trailing field: declared size minus fixed fields.

    Raises:
        InvalidLengthError: If the declared size is smaller than `consumed`
    """
    length = header.msg_size - consumed
    if length < 0:
        raise InvalidLengthError(header.msg_size, consumed, header.msg_type)
    return length


def _begin(
    data: bytes, offset: int, expected_type: int, fixed: int = 0
) -> tuple[MessageHeader, ByteCursor]:
    """
    Read a record header and check it can hold `fixed` bytes of body.

    Returns the header and a cursor positioned at the start of the body.
    """
    header, body_offset = decode_message_header(data, offset, expected_type)
    _remaining_length(header, fixed)
    return header, ByteCursor(data, body_offset)


def _read_key_value(
    cur: ByteCursor, header: MessageHeader, fixed: int
) -> tuple[int, str, bytes]:
    """
    Read [key_len][key][value...] where `fixed` counts every prefix byte
    including key_len itself.
    """
    key_len = cur.read_u8("key length")
    value_len = _remaining_length(header, fixed + key_len)
    key = _decode_text(cur.take(key_len, "key"), "key")
    value = cur.take(value_len, "value")
    return key_len, key, value


# =============================================================================
# Header Decoders
# =============================================================================

def decode_header(data: bytes, offset: int = 0) -> tuple[Header, int]:
    """
    Decode the 16-byte file header.

    Args:
        data: The file bytes
        offset: Position of the header (normally 0)

    Returns:
        Tuple of (Header, offset after the header)

    Raises:
        MalformedMagicError: If the first 7 bytes are not the ULog magic
        TruncatedInputError: If the buffer ends inside the header
    """
    magic = bytes(data[offset:offset + len(ULOG_MAGIC)])
    if magic != ULOG_MAGIC:
        if len(magic) < len(ULOG_MAGIC) and ULOG_MAGIC.startswith(magic):
            raise TruncatedInputError(len(ULOG_MAGIC), len(magic), "file header")
        raise MalformedMagicError(magic)

    cur = ByteCursor(data, offset + len(ULOG_MAGIC))
    version = cur.read_u8("file header")
    timestamp = cur.read_u64_le("file header")
    logger.debug(f"ULog header: version {version}, timestamp {timestamp}")
    return Header(version=version, timestamp=timestamp), cur.offset


def decode_message_header(
    data: bytes, offset: int, expected_type: int
) -> tuple[MessageHeader, int]:
    """
    Decode a record header and require a specific tag.

    Raises:
        UnexpectedTagError: If the tag byte is not `expected_type`
        TruncatedInputError: If fewer than 3 bytes remain
    """
    cur = ByteCursor(data, offset)
    msg_size = cur.read_u16_le("record header")
    msg_type = cur.read_u8("record header")
    if msg_type != expected_type:
        raise UnexpectedTagError(msg_type, expected_type)
    return MessageHeader(msg_size=msg_size, msg_type=msg_type), cur.offset


def decode_flag_bits(data: bytes, offset: int) -> tuple[MessageFlagBits, int]:
    """
    Decode the mandatory flag bits record.

    The body is carved from a slice of exactly msg_size bytes. A declared
    size other than 19 is accepted as long as the three fields fit.
    """
    header, cur = _begin(data, offset, MessageType.FLAG_BITS)
    body = ByteCursor(cur.take(header.msg_size, "flag bits body"))
    compat_flags = body.take(8, "compat flags")
    incompat_flags = body.take(8, "incompat flags")
    appended_offsets = body.take(3, "appended offsets")
    return (
        MessageFlagBits(
            header=header,
            compat_flags=compat_flags,
            incompat_flags=incompat_flags,
            appended_offsets=appended_offsets,
        ),
        cur.offset,
    )


# =============================================================================
# Record Body Decoders
# =============================================================================

def decode_format(data: bytes, offset: int) -> tuple[MessageFormat, int]:
    header, cur = _begin(data, offset, MessageType.FORMAT)
    text = cur.take(header.msg_size, "format")
    return MessageFormat(header=header, format=_decode_text(text, "format")), cur.offset


def decode_info(data: bytes, offset: int) -> tuple[MessageInfo, int]:
    header, cur = _begin(data, offset, MessageType.INFO, fixed=1)
    key_len, key, value = _read_key_value(cur, header, fixed=1)
    return MessageInfo(header=header, key_len=key_len, key=key, value=value), cur.offset


def decode_info_multiple(data: bytes, offset: int) -> tuple[MessageInfoMultiple, int]:
    header, cur = _begin(data, offset, MessageType.INFO_MULTIPLE, fixed=2)
    is_continued = cur.read_u8("is_continued")
    key_len, key, value = _read_key_value(cur, header, fixed=2)
    return (
        MessageInfoMultiple(
            header=header,
            is_continued=is_continued,
            key_len=key_len,
            key=key,
            value=value,
        ),
        cur.offset,
    )


def decode_parameter(data: bytes, offset: int) -> tuple[MessageParameter, int]:
    header, cur = _begin(data, offset, MessageType.PARAMETER, fixed=1)
    key_len, key, value = _read_key_value(cur, header, fixed=1)
    return (
        MessageParameter(header=header, key_len=key_len, key=key, value=value),
        cur.offset,
    )


def decode_parameter_default(
    data: bytes, offset: int
) -> tuple[MessageParameterDefault, int]:
    header, cur = _begin(data, offset, MessageType.PARAMETER_DEFAULT, fixed=2)
    default_types = cur.read_u8("default_types")
    key_len, key, value = _read_key_value(cur, header, fixed=2)
    return (
        MessageParameterDefault(
            header=header,
            default_types=default_types,
            key_len=key_len,
            key=key,
            value=value,
        ),
        cur.offset,
    )


def decode_add_logged(data: bytes, offset: int) -> tuple[MessageAddLogged, int]:
    header, cur = _begin(data, offset, MessageType.ADD_LOGGED, fixed=3)
    multi_id = cur.read_u8("multi_id")
    msg_id = cur.read_u16_le("msg_id")
    name = cur.take(_remaining_length(header, 3), "message name")
    return (
        MessageAddLogged(
            header=header,
            multi_id=multi_id,
            msg_id=msg_id,
            message_name=_decode_text(name, "message_name"),
        ),
        cur.offset,
    )


def decode_remove_logged(data: bytes, offset: int) -> tuple[MessageRemoveLogged, int]:
    header, cur = _begin(data, offset, MessageType.REMOVE_LOGGED, fixed=2)
    body = ByteCursor(cur.take(header.msg_size, "remove logged body"))
    msg_id = body.read_u16_le("msg_id")
    return MessageRemoveLogged(header=header, msg_id=msg_id), cur.offset


def decode_data(data: bytes, offset: int) -> tuple[MessageData, int]:
    header, cur = _begin(data, offset, MessageType.DATA, fixed=2)
    msg_id = cur.read_u16_le("msg_id")
    payload = cur.take(_remaining_length(header, 2), "data payload")
    return MessageData(header=header, msg_id=msg_id, data=payload), cur.offset


def decode_logging(data: bytes, offset: int) -> tuple[MessageLogging, int]:
    header, cur = _begin(data, offset, MessageType.LOGGING, fixed=9)
    log_level = cur.read_u8("log_level")
    timestamp = cur.read_u64_le("timestamp")
    text = cur.take(_remaining_length(header, 9), "log message")
    return (
        MessageLogging(
            header=header,
            log_level=log_level,
            timestamp=timestamp,
            message=_decode_text(text, "message"),
        ),
        cur.offset,
    )


def decode_logging_tagged(data: bytes, offset: int) -> tuple[MessageLoggingTagged, int]:
    header, cur = _begin(data, offset, MessageType.LOGGING_TAGGED, fixed=11)
    log_level = cur.read_u8("log_level")
    tag = cur.read_u16_le("tag")
    timestamp = cur.read_u64_le("timestamp")
    text = cur.take(_remaining_length(header, 11), "log message")
    return (
        MessageLoggingTagged(
            header=header,
            log_level=log_level,
            tag=tag,
            timestamp=timestamp,
            message=_decode_text(text, "message"),
        ),
        cur.offset,
    )


def decode_sync(data: bytes, offset: int) -> tuple[MessageSync, int]:
    header, cur = _begin(data, offset, MessageType.SYNC, fixed=1)
    body = ByteCursor(cur.take(header.msg_size, "sync body"))
    return MessageSync(header=header, sync_magic=body.read_u8("sync magic")), cur.offset


def decode_dropout(data: bytes, offset: int) -> tuple[MessageDropout, int]:
    header, cur = _begin(data, offset, MessageType.DROPOUT, fixed=2)
    body = ByteCursor(cur.take(header.msg_size, "dropout body"))
    return MessageDropout(header=header, duration=body.read_u16_le("duration")), cur.offset


# =============================================================================
# Dispatch
# =============================================================================

# Tag byte -> body decoder. Order is the lookup priority of the format;
# tags are distinct, so at most one decoder can apply.
MESSAGE_DECODERS: dict[int, Decoder] = {
    MessageType.FORMAT: decode_format,
    MessageType.INFO: decode_info,
    MessageType.INFO_MULTIPLE: decode_info_multiple,
    MessageType.PARAMETER: decode_parameter,
    MessageType.PARAMETER_DEFAULT: decode_parameter_default,
    MessageType.ADD_LOGGED: decode_add_logged,
    MessageType.REMOVE_LOGGED: decode_remove_logged,
    MessageType.DATA: decode_data,
    MessageType.LOGGING: decode_logging,
    MessageType.LOGGING_TAGGED: decode_logging_tagged,
    MessageType.SYNC: decode_sync,
    MessageType.DROPOUT: decode_dropout,
}


def decode_message(data: bytes, offset: int) -> tuple[Message, int]:
    """
    Decode the record starting at `offset`.

    Returns:
        Tuple of (record, offset of the next record)

    Raises:
        UnexpectedTagError: If the tag is not a known record type
        TruncatedInputError: If the record runs past the end of the buffer
        InvalidLengthError: If the declared size cannot hold the fixed fields
        InvalidTextError: If a text field is not valid UTF-8
    """
    tag = ByteCursor(data, offset).peek_u8(2, "record header")
    decoder = MESSAGE_DECODERS.get(tag)
    if decoder is None:
        raise UnexpectedTagError(tag)
    return decoder(data, offset)


# =============================================================================
# ULog Parser
# =============================================================================

class ParserState(Enum):
    """Progress of a UlogParser through the file."""
    START = "start"
    HEADER_PARSED = "header_parsed"
    FLAG_BITS_PARSED = "flag_bits_parsed"
    READING_RECORDS = "reading_records"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UlogParser:
    """
    Parser for complete ULog files.

    Parsing runs on construction; a parser that was constructed without
    raising is in the DONE state and holds the whole log.

    Attributes:
        data: The raw file bytes
        header: The parsed file header
        flag_bits: The parsed flag bits record
        messages: Records in file order
        state: Current ParserState

    Example:
        >>> parser = UlogParser.from_file("flight.ulg")
        >>> log = parser.to_ulog()
        >>> print(log.list_formats())
    """
    # Raw file data (private, not exposed in repr)
    data: bytes = field(repr=False)

    header: Optional[Header] = None
    flag_bits: Optional[MessageFlagBits] = None
    messages: list[Message] = field(default_factory=list, repr=False)

    state: ParserState = ParserState.START

    # Any error message from parsing
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        """Parse the data after initialization."""
        self._parse()

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "UlogParser":
        """
        Create a UlogParser from a file path.

        Raises:
            FileNotFoundError: If the file doesn't exist
            UlogFormatError: If the file cannot be decoded
        """
        filepath = Path(filepath)
        data = filepath.read_bytes()
        return cls(data=data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "UlogParser":
        """Create a UlogParser from raw bytes."""
        return cls(data=data)

    @property
    def is_valid(self) -> bool:
        return self.state is ParserState.DONE

    def _parse(self) -> None:
        """
        Run every decoding stage.

        This method is called automatically during initialization.
        """
        try:
            offset = self._parse_header()
            offset = self._parse_flag_bits(offset)
            self._parse_records(offset)
            self.state = ParserState.DONE
        except UlogError as e:
            self.state = ParserState.FAILED
            self.error_message = str(e)
            logger.error(f"Failed to parse ULog: {e}")
            raise
        except Exception as e:
            self.state = ParserState.FAILED
            self.error_message = str(e)
            logger.error(f"Unexpected error parsing ULog: {e}")
            raise UlogFormatError(f"Failed to parse ULog: {e}") from e

        logger.info(
            f"Parsed ULog v{self.header.version}: "
            f"{len(self.messages)} records, {len(self.data)} bytes"
        )

    def _parse_header(self) -> int:
        """Parse the file header and return the offset after it."""
        try:
            self.header, offset = decode_header(self.data, 0)
        except UlogFormatError as e:
            raise e.with_context(0)
        self.state = ParserState.HEADER_PARSED
        return offset

    def _parse_flag_bits(self, offset: int) -> int:
        """Parse the flag bits record that must follow the header."""
        try:
            self.flag_bits, offset_after = decode_flag_bits(self.data, offset)
        except UlogFormatError as e:
            raise e.with_context(offset)

        declared = self.flag_bits.header.msg_size
        if declared != FLAG_BITS_SIZE:
            logger.debug(
                f"Flag bits record declares {declared} bytes, expected {FLAG_BITS_SIZE}"
            )
        if self.flag_bits.has_unknown_incompat_flags():
            logger.warning(
                f"Unknown incompat flags set: {self.flag_bits.incompat_flags.hex()}"
            )
        self.state = ParserState.FLAG_BITS_PARSED
        return offset_after

    def _parse_records(self, offset: int) -> None:
        """
        Decode records until the buffer is exhausted.

        Record format: [size u16][tag u8][size bytes of body]
        """
        self.messages.clear()
        self.state = ParserState.READING_RECORDS

        index = 0
        while offset < len(self.data):
            try:
                message, next_offset = decode_message(self.data, offset)
            except UlogFormatError as e:
                raise e.with_context(offset, index)

            logger.debug(
                f"Record {index} at 0x{offset:08X}: "
                f"{message.get_type_name()} ({message.header.msg_size} bytes)"
            )
            self.messages.append(message)
            offset = next_offset
            index += 1

    def to_ulog(self) -> Ulog:
        """Return the decoded log."""
        return Ulog(
            header=self.header,
            flag_bits=self.flag_bits,
            messages=tuple(self.messages),
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_ulog(data: bytes) -> Ulog:
    """
    Decode a complete ULog file from bytes.

    Args:
        data: The raw file bytes

    Returns:
        The decoded Ulog

    Raises:
        UlogFormatError: If the data is not a valid ULog file
    """
    return UlogParser.from_bytes(data).to_ulog()


def parse_ulog_file(filepath: Union[str, Path]) -> Ulog:
    """
    Read and decode a ULog file from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        UlogFormatError: If the file is not a valid ULog file
    """
    return UlogParser.from_file(filepath).to_ulog()
