"""Parse symbols.txt listings."""

import re

from .grammar import parse_number
from .models import SymbolLine, SymbolListing

# Example: memset = .init:0x80003100; // type:function size:0x30 scope:global
SYMBOL_PATTERN = re.compile(
    r'^\s*(?P<name>[^\s=]+)\s*=\s*(?:(?P<section>[A-Za-z0-9.]+):)?'
    r'(?P<address>0[xX][0-9A-Fa-f]+|\d+);(?:\s*//\s*(?P<comment>.*))?$'
)


def parse_symbol_line(text: str, line: int) -> SymbolLine | None:
    """
    Parse one symbols.txt line.

    Args:
        text: Line content without its line ending
        line: 0-based line number

    Returns:
        SymbolLine, or None if the line is malformed
    """
    match = SYMBOL_PATTERN.match(text)
    if not match:
        return None
    return SymbolLine(
        line=line,
        name=match.group("name"),
        section=match.group("section"),
        address=parse_number(match.group("address")),
        comment=match.group("comment"),
    )


def parse_symbols(text: str) -> SymbolListing:
    """
    Parse symbols.txt content.

    Malformed lines never abort parsing; their line numbers are collected in
    the errors list instead. A single empty line at the very end is ignored.

    Args:
        text: Raw symbols.txt content

    Returns:
        SymbolListing with the parsed lines and the malformed line numbers
    """
    listing = SymbolListing()
    lines = text.split("\n")

    for index, raw in enumerate(lines):
        raw = raw.removesuffix("\r")
        symbol = parse_symbol_line(raw, index)
        if symbol is not None:
            listing.lines.append(symbol)
        elif not (index == len(lines) - 1 and raw == ""):
            listing.errors.append(index)

    return listing
