"""Drive the parse pipeline for a symbols.txt / splits.txt pair on disk.

SplitBlame owns the most recent results for one symbols.txt file. Each
reload is a pure function of the current file text that replaces the
previous results wholesale, so callers reacting to file change events can
simply reload again; the last reload wins.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import SplitsParseError
from .grammar import parse_splits
from .mapping import map_symbols_to_splits
from .models import SplitMapping, SplitsFile, SymbolListing
from .symbols import parse_symbols

logger = logging.getLogger(__name__)

SYMBOLS_FILENAME = os.environ.get("SPLITBLAME_SYMBOLS_NAME", "symbols.txt")
SPLITS_FILENAME = os.environ.get("SPLITBLAME_SPLITS_NAME", "splits.txt")
MIN_LABEL_WIDTH = int(os.environ.get("SPLITBLAME_MIN_LABEL_WIDTH", "7"))
ERROR_LABEL = "ERROR"


@dataclass(frozen=True)
class LineAnnotation:
    """Label to show beside one symbols.txt line."""

    line: int
    label: str
    split_index: int = -1


def splits_path_for(symbols_path: Path) -> Path:
    """
    Get the splits.txt path that sits beside a symbols.txt file.

    Args:
        symbols_path: Path to symbols.txt

    Returns:
        Path with the symbols file name replaced by the splits file name
    """
    symbols_path = Path(symbols_path)
    return symbols_path.with_name(symbols_path.name.replace(SYMBOLS_FILENAME, SPLITS_FILENAME))


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class SplitBlame:
    """Split ownership for every line of one symbols.txt file."""

    def __init__(self, symbols_path: Path, splits_path: Optional[Path] = None):
        """
        Initialize and load both files.

        Args:
            symbols_path: Path to symbols.txt
            splits_path: Path to splits.txt (default: beside symbols.txt)

        Raises:
            FileNotFoundError: If either file is missing
        """
        self.symbols_path = Path(symbols_path)
        self.splits_path = Path(splits_path) if splits_path else splits_path_for(self.symbols_path)

        if not self.splits_path.exists():
            raise FileNotFoundError(f"{SPLITS_FILENAME} not found at {self.splits_path}")

        self.symbols: SymbolListing = SymbolListing()
        self.splits: Optional[SplitsFile] = None
        self.mapping: Optional[SplitMapping] = None
        self.last_error: Optional[SplitsParseError] = None

        self.reload_symbols()
        self.reload_splits()

    def reload_symbols(self) -> Optional[SplitMapping]:
        """Re-read symbols.txt and recompute the mapping."""
        self.symbols = parse_symbols(_read_text(self.symbols_path))
        logger.info(
            f"Loaded {len(self.symbols.lines)} symbols from {self.symbols_path} "
            f"({len(self.symbols.errors)} bad lines)"
        )
        return self.refresh()

    def reload_splits(self) -> Optional[SplitMapping]:
        """
        Re-read splits.txt and recompute the mapping.

        If the new text fails to parse, the previously parsed document stays
        in use and the failure is kept in last_error.
        """
        try:
            self.splits = parse_splits(_read_text(self.splits_path))
            self.last_error = None
            logger.info(f"Loaded {len(self.splits.splits)} splits from {self.splits_path}")
        except SplitsParseError as e:
            self.last_error = e
            logger.warning(f"Failed to parse {self.splits_path}, keeping previous splits: {e}")
        return self.refresh()

    def refresh(self) -> Optional[SplitMapping]:
        """Recompute the mapping from the current documents."""
        if self.splits is None:
            self.mapping = None
            return None
        self.mapping = map_symbols_to_splits(self.splits, self.symbols)
        return self.mapping

    def annotations(self) -> list[LineAnnotation]:
        """
        Get the label for every annotated symbols.txt line.

        Labels are friendly split names (empty for unknown addresses),
        padded to a common width. Malformed lines are labelled ERROR even
        when no splits document is available.

        Returns:
            List of LineAnnotation, symbol lines first, then error lines
        """
        groups = self.mapping.groups if self.mapping else []
        width = max([MIN_LABEL_WIDTH, *(len(group.split.split_name) for group in groups)])

        result = [
            LineAnnotation(
                line=symbol.line,
                label=group.split.split_name.ljust(width),
                split_index=group.split.split_index,
            )
            for group in groups
            for symbol in group.lines
        ]
        result.extend(
            LineAnnotation(line=line, label=ERROR_LABEL.ljust(width))
            for line in self.symbols.errors
        )
        return result

    def split_summary(self, split_index: int) -> Optional[str]:
        """
        Describe one split as markdown.

        Each section row notes the symbols.txt line where that section
        begins, when the mapping has seen it.

        Args:
            split_index: Index of the split in the splits document

        Returns:
            Markdown text, or None if there is no such split
        """
        if self.splits is None or not 0 <= split_index < len(self.splits.splits):
            return None

        split = self.splits.splits[split_index]
        rows = [f"### {split.description.name}", "---"]
        for section in split.sections:
            row = f"**{section.name}**: 0x{section.start:X}-0x{section.end:X}"
            line = self.mapping.line_for_section(split_index, section) if self.mapping else None
            if line is not None:
                row += f" (line {line + 1})"
            rows.append(row)
        return "\n\n".join(rows)

    def summary_for_line(self, line: int) -> Optional[str]:
        """Get the summary of the split owning a symbols.txt line."""
        if self.mapping is None:
            return None
        owner = self.mapping.split_for_line(line)
        if owner is None or owner.is_unknown:
            return None
        return self.split_summary(owner.split_index)


async def load_splits(splits_path: Path) -> SplitsFile:
    """
    Async wrapper for reading and parsing splits.txt.

    Args:
        splits_path: Path to splits.txt

    Returns:
        The parsed document
    """
    return parse_splits(_read_text(Path(splits_path)))


async def load_symbols(symbols_path: Path) -> SymbolListing:
    """
    Async wrapper for reading and parsing symbols.txt.

    Args:
        symbols_path: Path to symbols.txt

    Returns:
        SymbolListing with parsed lines and malformed line numbers
    """
    return parse_symbols(_read_text(Path(symbols_path)))


async def open_blame(symbols_path: Path) -> SplitBlame:
    """
    Async wrapper for creating a SplitBlame.

    Args:
        symbols_path: Path to symbols.txt (splits.txt must sit beside it)

    Returns:
        Loaded SplitBlame
    """
    return SplitBlame(symbols_path)
