"""
ulogdump - ULog Inspector Command-Line Interface
================================================

This module implements the command-line interface for inspecting ULog
flight logs. It decodes the whole file and prints what it contains.

Commands
--------
- **info**: Show header, flag bits and record counts
- **list**: List records one per line
- **messages**: Print logged text messages
- **validate**: Decode the file and report the first error, if any

Usage Examples
--------------
Show a summary:
    $ ulogdump info flight.ulg

List only Data records, first 20:
    $ ulogdump list -t D -n 20 flight.ulg

Print the text log:
    $ ulogdump messages flight.ulg

Check a file:
    $ ulogdump validate flight.ulg

Environment
-----------
ULOG_LOG_LEVEL sets the log level (DEBUG, INFO, WARNING, ...) when
-v is not given.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from ulog_sdk import __version__
from ulog_sdk.cli.errors import ExitCode, handle_cli_exception
from ulog_sdk.errors import UlogFormatError
from ulog_sdk.ulog import (
    Message,
    MessageAddLogged,
    MessageData,
    MessageDropout,
    MessageFormat,
    MessageInfo,
    MessageInfoMultiple,
    MessageLogging,
    MessageLoggingTagged,
    MessageParameter,
    MessageParameterDefault,
    MessageRemoveLogged,
    MessageSync,
    MessageType,
    UlogParser,
    parse_ulog_file,
)

LOG_LEVEL_ENV = "ULOG_LOG_LEVEL"


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores common options like verbosity.
    """

    def __init__(self) -> None:
        self.verbose: bool = False

    def get_log_level(self) -> int:
        """DEBUG when verbose, else ULOG_LOG_LEVEL, else WARNING."""
        if self.verbose:
            return logging.DEBUG
        if env_level := os.environ.get(LOG_LEVEL_ENV):
            level = logging.getLevelName(env_level.upper())
            if isinstance(level, int):
                return level
        return logging.WARNING

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        logging.basicConfig(
            level=self.get_log_level(),
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
            force=True,
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


class TagChoice(click.ParamType):
    """
    Click parameter type for record tag selection.

    Accepts a tag letter (D, L, ...) and returns the MessageType.
    """
    name = "tag"

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> MessageType:
        """Convert a tag letter to MessageType."""
        if isinstance(value, MessageType):
            return value

        if len(value) == 1:
            try:
                return MessageType(ord(value.upper()))
            except ValueError:
                pass
        letters = ", ".join(t.letter for t in MessageType)
        self.fail(f"Invalid record tag '{value}'. Choose from: {letters}", param, ctx)


TAG = TagChoice()


def describe_message(message: Message) -> str:
    """One-line description of a record for listings."""
    if isinstance(message, MessageFormat):
        return message.format
    if isinstance(message, (MessageInfo, MessageParameter)):
        return f"{message.key} = {message.value.hex()}"
    if isinstance(message, MessageInfoMultiple):
        cont = " (cont.)" if message.is_continued else ""
        return f"{message.key}{cont} = {len(message.value)} bytes"
    if isinstance(message, MessageParameterDefault):
        return (
            f"{message.key} = {message.value.hex()} "
            f"(default types 0x{message.default_types:02X})"
        )
    if isinstance(message, MessageAddLogged):
        return f"msg_id={message.msg_id} multi_id={message.multi_id} {message.message_name}"
    if isinstance(message, MessageRemoveLogged):
        return f"msg_id={message.msg_id}"
    if isinstance(message, MessageData):
        return f"msg_id={message.msg_id} {len(message.data)} bytes"
    if isinstance(message, MessageLoggingTagged):
        return f"[{message.log_level_name()}] tag={message.tag} {message.message}"
    if isinstance(message, MessageLogging):
        return f"[{message.log_level_name()}] {message.message}"
    if isinstance(message, MessageSync):
        return f"magic=0x{message.sync_magic:02X}"
    if isinstance(message, MessageDropout):
        return f"{message.duration} ms"
    return ""


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="ulogdump")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    ULog flight log inspector.

    Decode PX4 ULog files (.ulg) and show what they contain.

    \b
    Commands:
      info      Show header, flags and record counts
      list      List records
      messages  Print logged text messages
      validate  Check that the file decodes

    \b
    Examples:
      ulogdump info flight.ulg
      ulogdump list -t D flight.ulg
      ulogdump validate flight.ulg
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@click.argument(
    "ulog_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_info(ctx: Context, ulog_file: Path) -> None:
    """
    Show summary information about a ULog file.

    \b
    Example:
      ulogdump info flight.ulg
    """
    try:
        log = parse_ulog_file(ulog_file)
        info = log.get_summary()

        click.echo(f"ULog Information: {ulog_file}")
        click.echo("=" * 40)
        click.echo(f"Version:        {info['version']}")
        click.echo(f"Start:          {info['timestamp']} us")
        click.echo(f"Compat flags:   {info['compat_flags']}")
        click.echo(f"Incompat flags: {info['incompat_flags']}")
        click.echo(f"Appended data:  {'yes' if info['appended_data'] else 'no'}")
        click.echo()
        click.echo("Contents:")
        click.echo(f"  Formats:       {info['format_count']}")
        click.echo(f"  Subscriptions: {info['subscription_count']}")
        click.echo(f"  Dropouts:      {info['dropout_ms']} ms")
        click.echo(f"  Total:         {info['total_records']} records")
        for type_name, count in sorted(info["records_by_type"].items()):
            click.echo(f"    {type_name:<18} {count:>8}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decode")


# =============================================================================
# List Command
# =============================================================================

@main.command("list")
@click.argument(
    "ulog_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-t", "--type",
    "tag",
    type=TAG,
    default=None,
    help="Only list records with this tag letter (e.g. D, L, F)",
)
@click.option(
    "-n", "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Stop after this many records",
)
@pass_context
def cmd_list(
    ctx: Context,
    ulog_file: Path,
    tag: Optional[MessageType],
    limit: Optional[int],
) -> None:
    """
    List the records of a ULog file.

    \b
    Output format:
      #      Tag Type               Size  Details
      0      F   Format               42  vehicle_gps:...
    """
    try:
        log = parse_ulog_file(ulog_file)

        click.echo(f"{'#':<6} {'Tag':<3} {'Type':<18} {'Size':>6}  Details")
        click.echo("-" * 60)

        shown = 0
        for index, message in enumerate(log.messages):
            if tag is not None and message.msg_type != tag:
                continue
            if limit is not None and shown >= limit:
                break
            letter = chr(message.msg_type)
            click.echo(
                f"{index:<6} {letter:<3} {message.get_type_name():<18} "
                f"{message.header.msg_size:>6}  {describe_message(message)}"
            )
            shown += 1

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decode")


# =============================================================================
# Messages Command
# =============================================================================

@main.command("messages")
@click.argument(
    "ulog_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_messages(ctx: Context, ulog_file: Path) -> None:
    """
    Print the logged text messages (L and C records).

    \b
    Example:
      ulogdump messages flight.ulg
    """
    try:
        log = parse_ulog_file(ulog_file)

        count = 0
        for message in log.messages:
            if isinstance(message, MessageLoggingTagged):
                click.echo(
                    f"{message.timestamp:>14} {message.log_level_name():<8} "
                    f"[{message.tag}] {message.message}"
                )
            elif isinstance(message, MessageLogging):
                click.echo(
                    f"{message.timestamp:>14} {message.log_level_name():<8} "
                    f"{message.message}"
                )
            else:
                continue
            count += 1

        if count == 0:
            click.echo("No logged messages found")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decode")


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@click.argument(
    "ulog_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_validate(ctx: Context, ulog_file: Path) -> None:
    """
    Validate a ULog file by decoding all of it.

    Checks:
    - Magic number
    - Flag bits record
    - Framing and fields of every record

    \b
    Example:
      ulogdump validate flight.ulg
    """
    try:
        data = ulog_file.read_bytes()

        try:
            parser = UlogParser.from_bytes(data)
        except UlogFormatError as e:
            click.echo("Validation FAILED:")
            click.echo(f"  ERROR: {e.message}")
            if e.offset is not None:
                click.echo(f"  Offset: 0x{e.offset:08X}")
            if e.record_index is not None:
                click.echo(f"  Record: {e.record_index}")
            sys.exit(ExitCode.DECODE_ERROR)

        warnings = []
        if parser.flag_bits.has_unknown_incompat_flags():
            warnings.append(
                f"Unknown incompat flags set: {parser.flag_bits.incompat_flags.hex()}"
            )

        if ctx.verbose:
            click.echo("Validation Details:")
            click.echo("  Magic number: OK")
            click.echo("  Flag bits: OK")
            click.echo(f"  Records parsed: {len(parser.messages)}")

        if warnings:
            click.echo("Validation passed with warnings:")
            for warning in warnings:
                click.echo(f"  WARNING: {warning}")
        else:
            click.echo(f"Validation PASSED: {ulog_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Validation")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
