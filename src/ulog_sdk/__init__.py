"""
ULog SDK - Decoder for PX4 ULog Flight Logs
===========================================

This package decodes ULog binary flight logs into typed Python objects
for inspection, playback and conversion tooling.

Main Components
---------------
- **ulog**: The decoder
    File header, flag bits and the twelve record types

- **cli**: Command-line tools (ulogdump)
    Inspect and validate .ulg files from the shell

Quick Start
-----------
Decode a log:
    >>> from ulog_sdk import parse_ulog_file
    >>> log = parse_ulog_file("flight.ulg")
    >>> print(log.get_summary())

Or use the command-line tool:
    $ ulogdump info flight.ulg
    $ ulogdump list -t L flight.ulg
    $ ulogdump validate flight.ulg

Reference Documentation
-----------------------
- ULog file format: https://docs.px4.io/main/en/dev_log/ulog_file_format.html
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from ulog_sdk.errors import (
    UlogError,
    UlogFormatError,
    MalformedMagicError,
    UnexpectedTagError,
    TruncatedInputError,
    InvalidLengthError,
    InvalidTextError,
)

from ulog_sdk.ulog import (
    Header,
    MessageFlagBits,
    Message,
    MessageType,
    Ulog,
    UlogParser,
    parse_ulog,
    parse_ulog_file,
)

__all__ = [
    "__version__",
    # Decoder
    "Header",
    "MessageFlagBits",
    "Message",
    "MessageType",
    "Ulog",
    "UlogParser",
    "parse_ulog",
    "parse_ulog_file",
    # Exception hierarchy
    "UlogError",
    "UlogFormatError",
    "MalformedMagicError",
    "UnexpectedTagError",
    "TruncatedInputError",
    "InvalidLengthError",
    "InvalidTextError",
]
