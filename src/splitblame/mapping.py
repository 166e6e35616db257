"""Map symbols.txt lines onto the splits that own their addresses.

Sections sharing a name (every split's .text, every split's .data, ...)
form one address-ordered timeline. Symbol lines are walked in file order
while a cursor advances along the timeline of each line's section. Addresses
that no split claims get an unknown entry with split_index -1, so every
symbol line ends up owned by something.
"""

import logging
from typing import Optional

from .models import (
    ResolvedSection,
    SplitGroup,
    SplitMapping,
    SplitsFile,
    SymbolListing,
)

logger = logging.getLogger(__name__)


def unknown_section(name: Optional[str], start: int, end: Optional[int] = None) -> ResolvedSection:
    """Create an entry for addresses not claimed by any split."""
    return ResolvedSection(split_name="", split_index=-1, name=name, start=start, end=end)


class Timeline:
    """Address-ordered sections of one name, walked with a forward cursor."""

    def __init__(self, name: str, entries: list[ResolvedSection]):
        self.name = name
        # Stable sort, so ranges starting together keep declaration order
        self.entries = sorted(entries, key=lambda entry: entry.start)
        self.position = 0
        # Largest end among entries skipped so far
        self._skipped_end: Optional[int] = None

    def resolve(self, address: int) -> ResolvedSection:
        """
        Find the entry owning an address, moving the cursor forward.

        Entries ending at or before the address are skipped for good. The
        first remaining entry owns the address if it starts at or before it;
        with overlapping ranges that is the first one by start address. The
        cursor stays on that entry so lines returning to it resolve again.

        Args:
            address: Symbol address

        Returns:
            The owning entry, or an unknown entry filling the gap before the
            next entry (unbounded past the last one)
        """
        while self.position < len(self.entries) and self.entries[self.position].ends_at_or_before(address):
            end = self.entries[self.position].end
            if self._skipped_end is None or end > self._skipped_end:
                self._skipped_end = end
            self.position += 1

        gap_start = address
        if self._skipped_end is not None and self._skipped_end <= address:
            gap_start = self._skipped_end

        if self.position == len(self.entries):
            return unknown_section(self.name, gap_start)

        candidate = self.entries[self.position]
        if candidate.start > address:
            return unknown_section(self.name, gap_start, candidate.start)
        return candidate


def build_timelines(splits: SplitsFile) -> dict[str, Timeline]:
    """
    Group every split's sections into per-name timelines.

    Args:
        splits: Parsed splits document

    Returns:
        Dictionary mapping section names to their timelines
    """
    per_section: dict[str, list[ResolvedSection]] = {}
    for index, split in enumerate(splits.splits):
        friendly_name = split.description.friendly_name
        for section in split.sections:
            per_section.setdefault(section.name, []).append(ResolvedSection(
                split_name=friendly_name,
                split_index=index,
                name=section.name,
                start=section.start,
                end=section.end,
                section=section,
            ))

    return {name: Timeline(name, entries) for name, entries in per_section.items()}


def map_symbols_to_splits(splits: SplitsFile, symbols: SymbolListing) -> SplitMapping:
    """
    Group symbol lines by the split section owning their addresses.

    Ranges are half-open, so a symbol exactly at a section's end belongs to
    whatever comes next. Sections missing from the splits file entirely
    resolve to an unbounded unknown entry. This never raises.

    Args:
        splits: Parsed splits document
        symbols: Parsed symbols listing

    Returns:
        SplitMapping with contiguous runs of lines per owning section and the
        line at which each resolved section was entered
    """
    timelines = build_timelines(splits)
    mapping = SplitMapping()

    # Zero-width start so the first line always resolves
    current = unknown_section("", 0, 0)
    run = []

    for symbol in symbols.lines:
        if current.ends_at_or_before(symbol.address) or symbol.section != current.name:
            if run:
                mapping.groups.append(SplitGroup(split=current, lines=run))
            run = []

            timeline = timelines.get(symbol.section)
            if timeline is None:
                current = unknown_section(symbol.section, symbol.address)
            else:
                current = timeline.resolve(symbol.address)
            # Navigation goes to where a range was first entered
            mapping.line_index.setdefault(current, symbol.line)

        run.append(symbol)

    if run:
        mapping.groups.append(SplitGroup(split=current, lines=run))

    logger.debug(
        f"Mapped {len(symbols.lines)} symbols into {len(mapping.groups)} groups "
        f"across {len(timelines)} section timelines"
    )
    return mapping
