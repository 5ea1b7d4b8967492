"""
edidkit - EDID Decoder Command-Line Interface
=============================================

This module implements the command-line interface for the EDID decoder.
It provides tools for dumping, summarizing and validating EDID files.

Commands
--------
- **dump**: Print the full annotated field tree (text or JSON)
- **info**: Show identification and summary information
- **timings**: List every supported video mode
- **validate**: Check checksums and structural constants

Input
-----
FILE is a raw binary EDID (``/sys/class/drm/*/edid``) or a hex dump of one
(``xxd -p``, ``xrandr --verbose``, ``edid-decode`` input). Hex dumps are
detected automatically; ``--hex`` forces hex parsing. ``-`` reads stdin.

Usage Examples
--------------
Dump a monitor's EDID:
    $ edidkit dump /sys/class/drm/card0-HDMI-A-1/edid

Dump as JSON:
    $ edidkit dump --json edid.bin > edid.json

Show a summary:
    $ edidkit info edid.bin

List supported modes:
    $ edidkit timings edid.bin

Validate (exit status 1 on any failure):
    $ edidkit validate edid.bin
"""

import json
import logging
import sys
from typing import Any, BinaryIO

import click

from edidkit import __version__
from edidkit.bitstream import Field, FieldArray
from edidkit.cli.errors import ExitCode, handle_cli_exception
from edidkit.config import DecoderConfig
from edidkit.edid import EDIDResult, decode_edid, load_edid_bytes

INDENT = "  "


# =============================================================================
# Shared Helpers
# =============================================================================

def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _decode_file(file: BinaryIO, hex_dump: bool, strict: bool = False) -> EDIDResult:
    """Read FILE, convert a hex dump if needed, and decode it."""
    raw = file.read()
    try:
        data = load_edid_bytes(raw, True if hex_dump else None)
    except ValueError as e:
        raise click.BadParameter(f"not a valid hex dump: {e}", param_hint="FILE") from e
    if not data:
        raise click.BadParameter("input is empty", param_hint="FILE")

    config = DecoderConfig.from_env()
    if strict:
        config.strict_checksums = True
    return decode_edid(data, config=config)


def format_value(field: Field) -> str:
    """Render a field's value with its symbol, unit and description."""
    value = field.value
    if isinstance(value, (bytes, bytearray)):
        text = value.hex(" ") if value else "(empty)"
    elif field.hex and isinstance(value, int):
        text = f"0x{value:02X}"
    elif isinstance(value, float):
        text = f"{value:.4f}"
    else:
        text = repr(value) if isinstance(value, str) else str(value)

    if field.symbol is not None:
        symbol = field.symbol
        if isinstance(symbol, float):
            symbol = f"{symbol:g}"
        text = f"{text} ({symbol}{' ' + field.unit if field.unit else ''})"
    elif field.unit:
        text = f"{text} {field.unit}"

    if field.description:
        text = f"{text} \"{field.description}\""
    return text


def render_tree(node: Any, depth: int = 0, offsets: bool = False) -> list[str]:
    """Render a decoded node as indented text lines."""
    pad = INDENT * depth
    location = ""
    if offsets:
        location = f"[{node.first_bit // 8:3d}.{node.first_bit % 8}+{node.n_bits:>3}] "

    if isinstance(node, Field):
        lines = [f"{pad}{location}{node.name}: {format_value(node)}"]
        for failure in node.validations:
            lines.append(f"{pad}{INDENT}! {failure.message}")
        return lines

    if isinstance(node, FieldArray):
        lines = [f"{pad}{location}{node.name}[{len(node)}]:"]
    else:
        lines = [f"{pad}{location}{node.name}:"]
    for child in node.children:
        lines.extend(render_tree(child, depth + 1, offsets))
    return lines


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="edidkit")
def main() -> None:
    """
    EDID decoder for monitors, TVs and projectors.

    Decode, summarize and validate Extended Display Identification Data.

    \b
    Commands:
      dump      Print the annotated field tree
      info      Show summary information
      timings   List supported video modes
      validate  Check checksums and structure

    \b
    Examples:
      edidkit dump /sys/class/drm/card0-HDMI-A-1/edid
      edidkit dump --json edid.bin
      edidkit info edid.bin
      xxd -p edid.bin | edidkit validate -
    """
    pass


# =============================================================================
# Dump Command
# =============================================================================

@main.command("dump")
@click.argument("edid_file", metavar="FILE", type=click.File("rb"))
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON")
@click.option("--hex", "hex_dump", is_flag=True, help="Treat input as a hex dump")
@click.option("--offsets", is_flag=True, help="Show byte.bit offset and bit length of each node")
@click.option("--strict", is_flag=True, help="Fail on any checksum mismatch")
@click.option("-v", "--verbose", is_flag=True, help="Verbose (debug) logging")
def cmd_dump(
    edid_file: BinaryIO,
    as_json: bool,
    hex_dump: bool,
    offsets: bool,
    strict: bool,
    verbose: bool,
) -> None:
    """
    Decode FILE and print every field.

    \b
    Examples:
      edidkit dump edid.bin
      edidkit dump --offsets edid.bin
      edidkit dump --json edid.bin
    """
    _setup_logging(verbose)
    try:
        result = _decode_file(edid_file, hex_dump, strict)
        if as_json:
            click.echo(json.dumps(result.to_dict(), indent=2, default=str))
        else:
            for line in render_tree(result.tree, offsets=offsets):
                click.echo(line)
    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Decode")


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@click.argument("edid_file", metavar="FILE", type=click.File("rb"))
@click.option("--hex", "hex_dump", is_flag=True, help="Treat input as a hex dump")
@click.option("-v", "--verbose", is_flag=True, help="Verbose (debug) logging")
def cmd_info(edid_file: BinaryIO, hex_dump: bool, verbose: bool) -> None:
    """
    Show identification and summary information for FILE.

    \b
    Output includes:
      - Manufacturer, product code, serial number and name
      - Manufacture date and EDID version
      - Screen size and aspect ratio
      - Extension records
      - Checksum status
    """
    _setup_logging(verbose)
    try:
        result = _decode_file(edid_file, hex_dump)
        info = result.get_info()
        header = result.tree["header"]
        basic = result.tree["basic_display_parameters"]

        click.echo("EDID Information")
        click.echo("=" * 40)
        click.echo(f"Manufacturer:  {info['manufacturer']}")
        click.echo(f"Product Code:  {info['product_code']}")
        click.echo(f"Serial Number: {info['serial_number']}")
        if info["display_name"]:
            click.echo(f"Display Name:  {info['display_name']}")
        if result.display_serial:
            click.echo(f"Serial String: {result.display_serial}")

        if "year_of_manufacture" in header:
            week = header["week_of_manufacture"].value
            year = header["year_of_manufacture"].symbol
            click.echo(f"Manufactured:  week {week}, {year}")
        else:
            click.echo(f"Model Year:    {header['year_of_model'].symbol}")
        click.echo(f"EDID Version:  {info['edid_version']}")

        click.echo()
        click.echo(f"Input:         {basic['input_type'].symbol}")
        h_size = basic["horizontal_screen_size"].value
        v_size = basic["vertical_screen_size"].value
        click.echo(f"Screen Size:   {h_size} x {v_size} cm")
        click.echo(f"Aspect Ratio:  {basic['aspect_ratio'].value}")

        click.echo()
        click.echo(f"Extensions:    {info['extension_count']}")
        for name in info["extensions"]:
            click.echo(f"  - {name}")

        checksums = [f for f in result.tree.walk()
                     if isinstance(f, Field) and f.name == "checksum"]
        bad = [f for f in checksums if not f.is_valid]
        if bad:
            click.echo(f"\nChecksums:     {len(bad)} of {len(checksums)} MISMATCH")
        else:
            click.echo(f"\nChecksums:     {len(checksums)} valid")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Decode")


# =============================================================================
# Timings Command
# =============================================================================

@main.command("timings")
@click.argument("edid_file", metavar="FILE", type=click.File("rb"))
@click.option("--hex", "hex_dump", is_flag=True, help="Treat input as a hex dump")
@click.option("-v", "--verbose", is_flag=True, help="Verbose (debug) logging")
def cmd_timings(edid_file: BinaryIO, hex_dump: bool, verbose: bool) -> None:
    """
    List every video mode FILE advertises.

    \b
    Output format:
      Resolution   Refresh  Source       Notes
      1920x1080    60.00    detailed     preferred
      1024x768     60.00    established
    """
    _setup_logging(verbose)
    try:
        result = _decode_file(edid_file, hex_dump)

        click.echo(f"{'Resolution':<12} {'Refresh':>8}  {'Source':<12} Notes")
        click.echo("-" * 48)
        for mode in result.timings():
            notes = []
            if mode.preferred:
                notes.append("preferred")
            if mode.interlaced:
                notes.append("interlaced")
            if mode.reduced_blanking:
                notes.append("reduced blanking")
            if mode.pixel_clock is not None:
                notes.append(f"{mode.pixel_clock:g} MHz")
            click.echo(
                f"{mode.resolution:<12} {mode.refresh:>8.2f}  {mode.source:<12} {', '.join(notes)}"
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Decode")


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@click.argument("edid_file", metavar="FILE", type=click.File("rb"))
@click.option("--hex", "hex_dump", is_flag=True, help="Treat input as a hex dump")
@click.option("-v", "--verbose", is_flag=True, help="Verbose (debug) logging")
def cmd_validate(edid_file: BinaryIO, hex_dump: bool, verbose: bool) -> None:
    """
    Validate FILE: header magic, checksums and structural constants.

    Exits with status 0 when everything checks out, 1 otherwise.

    \b
    Example:
      edidkit validate edid.bin
    """
    _setup_logging(verbose)
    try:
        result = _decode_file(edid_file, hex_dump)
    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Decode")

    if result.is_valid:
        records = 1 + result.extensions_decoded
        click.echo(f"Valid: {records} record(s), EDID {result.edid_version}")
        return

    click.echo(f"Invalid: {len(result.failures)} problem(s)")
    for failure in result.failures:
        click.echo(f"  {failure}")
    sys.exit(ExitCode.DECODE_ERROR)


if __name__ == "__main__":
    main()
