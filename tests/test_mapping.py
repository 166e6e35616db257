"""Tests for mapping symbol lines onto their owning splits.

The fixture splits file declares:
    foo.c  .text [0x100, 0x200)  .data [0x1000, 0x1100)
    bar.c  .text [0x300, 0x400)
"""

import pytest

from src.splitblame import (
    ResolvedSection,
    SplitSection,
    map_symbols_to_splits,
    parse_splits,
    parse_symbols,
)
from src.splitblame.mapping import Timeline, build_timelines


SPLITS_TEXT = """Sections:
\t.text       type:code align:8
\t.data       type:data align:8

main/foo.c:
\t.text       start:0x100 end:0x200
\t.data       start:0x1000 end:0x1100

lib/bar.c:
\t.text       start:0x300 end:0x400
"""


@pytest.fixture
def splits():
    return parse_splits(SPLITS_TEXT)


def map_text(splits, symbols_text):
    return map_symbols_to_splits(splits, parse_symbols(symbols_text))


def group_summary(mapping):
    """(split name, split index, start, end, lines) for each group."""
    return [
        (g.split.split_name, g.split.split_index, g.split.start, g.split.end, [s.line for s in g.lines])
        for g in mapping.groups
    ]


class TestBuildTimelines:
    """Test grouping sections into per-name timelines."""

    def test_timelines_per_section_name(self, splits):
        timelines = build_timelines(splits)
        assert set(timelines) == {".text", ".data"}
        assert [(e.split_name, e.start) for e in timelines[".text"].entries] == [
            ("foo.c", 0x100),
            ("bar.c", 0x300),
        ]

    def test_timeline_sorted_by_start(self):
        doc = parse_splits(
            "Sections:\n\t.text type:code align:4\n\n"
            "late.c:\n\t.text start:0x300 end:0x400\n\n"
            "early.c:\n\t.text start:0x100 end:0x200\n"
        )
        entries = build_timelines(doc)[".text"].entries
        assert [(e.split_name, e.split_index) for e in entries] == [("early.c", 1), ("late.c", 0)]


class TestTimeline:
    """Test resolving addresses along one timeline."""

    def make_timeline(self):
        section = SplitSection(name=".text", start=0x100, end=0x200)
        return Timeline(".text", [ResolvedSection("foo.c", 0, ".text", 0x100, 0x200, section)])

    def test_gap_before_first_section(self):
        resolved = self.make_timeline().resolve(0x50)
        assert resolved.is_unknown
        assert (resolved.start, resolved.end) == (0x50, 0x100)
        assert resolved.contains(0x50)
        assert not resolved.contains(0x100)

    def test_unbounded_after_last_section(self):
        resolved = self.make_timeline().resolve(0x250)
        assert resolved.is_unknown
        assert resolved.is_unbounded
        assert resolved.start == 0x200

    def test_cursor_only_moves_forward(self):
        timeline = self.make_timeline()
        assert timeline.resolve(0x150).split_name == "foo.c"
        assert timeline.resolve(0x150).split_name == "foo.c"
        timeline.resolve(0x250)
        assert timeline.position == 1


class TestMapSymbolsToSplits:
    """Test the full mapping of a listing onto a splits document."""

    def test_single_symbol(self, splits):
        """A symbol inside a section maps to its split's friendly name."""
        mapping = map_text(splits, "sym = .text:0x150;")
        assert group_summary(mapping) == [("foo.c", 0, 0x100, 0x200, [0])]
        assert mapping.line_index[mapping.groups[0].split] == 0

    def test_walk_across_sections_and_gaps(self, splits):
        mapping = map_text(splits, "\n".join([
            "a = .text:0x150;",
            "b = .text:0x180;",
            "c = .text:0x200;",
            "d = .text:0x250;",
            "e = .text:0x300;",
            "f = .text:0x400;",
        ]))
        assert group_summary(mapping) == [
            ("foo.c", 0, 0x100, 0x200, [0, 1]),
            ("", -1, 0x200, 0x300, [2, 3]),
            ("bar.c", 1, 0x300, 0x400, [4]),
            ("", -1, 0x400, None, [5]),
        ]
        assert [mapping.line_index[g.split] for g in mapping.groups] == [0, 2, 4, 5]

    def test_symbol_at_end_goes_to_next_range(self, splits):
        """Ranges are half-open: an address equal to end is not inside."""
        mapping = map_text(splits, "a = .text:0x1FF;\nb = .text:0x200;")
        first, second = mapping.groups
        assert first.split.split_name == "foo.c"
        assert second.split.is_unknown
        assert second.split.start == 0x200

    def test_exactly_one_gap_between_adjacent_sections(self, splits):
        mapping = map_text(splits, "\n".join([
            "a = .text:0x100;",
            "b = .text:0x210;",
            "c = .text:0x220;",
            "d = .text:0x2F0;",
            "e = .text:0x310;",
        ]))
        gaps = [g.split for g in mapping.groups if g.split.is_unknown]
        assert len(gaps) == 1
        assert (gaps[0].name, gaps[0].start, gaps[0].end, gaps[0].split_index) == (".text", 0x200, 0x300, -1)

    def test_gap_before_first_section(self, splits):
        mapping = map_text(splits, "early = .text:0x50;")
        resolved = mapping.groups[0].split
        assert resolved.is_unknown
        assert (resolved.start, resolved.end) == (0x50, 0x100)

    def test_section_missing_from_splits(self, splits):
        """Sections the splits file never mentions map to unbounded unknowns."""
        mapping = map_text(splits, "x = .bss:0x10;\ny = .bss:0x20;")
        assert len(mapping.groups) == 1
        resolved = mapping.groups[0].split
        assert resolved.is_unknown
        assert resolved.is_unbounded
        assert (resolved.name, resolved.start) == (".bss", 0x10)

    def test_symbols_without_section(self, splits):
        mapping = map_text(splits, "x = 0x150;\ny = 0x160;")
        assert len(mapping.groups) == 1
        assert mapping.groups[0].split.name is None
        assert mapping.groups[0].split.is_unknown

    def test_section_change_starts_new_run(self, splits):
        mapping = map_text(splits, "\n".join([
            "a = .text:0x150;",
            "b = .data:0x1010;",
            "c = .text:0x160;",
        ]))
        assert [(g.split.split_name, g.split.name) for g in mapping.groups] == [
            ("foo.c", ".text"),
            ("foo.c", ".data"),
            ("foo.c", ".text"),
        ]
        # Returning to a section resolves to the same entry, which still
        # points back at the line where it was first entered
        assert mapping.groups[0].split == mapping.groups[2].split
        assert mapping.line_index[mapping.groups[0].split] == 0
        assert mapping.line_for_section(0, splits.splits[0].sections[0]) == 0

    def test_overlapping_ranges_first_by_start_wins(self):
        doc = parse_splits(
            "Sections:\n\t.text type:code align:4\n\n"
            "inner.c:\n\t.text start:0x200 end:0x280\n\n"
            "outer.c:\n\t.text start:0x100 end:0x300\n"
        )
        mapping = map_text(doc, "a = .text:0x250;")
        assert mapping.groups[0].split.split_name == "outer.c"

    def test_gap_after_overlapping_ranges(self):
        """A gap starts after every range skipped so far, not just the last one."""
        doc = parse_splits(
            "Sections:\n\t.text type:code align:4\n\n"
            "big.c:\n\t.text start:0x0 end:0x100\n\n"
            "small.c:\n\t.text start:0x10 end:0x50\n\n"
            "c.c:\n\t.text start:0x200 end:0x300\n"
        )
        mapping = map_text(doc, "a = .text:0x150;")
        gap = mapping.groups[0].split
        assert gap.is_unknown
        assert (gap.start, gap.end) == (0x100, 0x200)

    def test_split_without_sections(self):
        doc = parse_splits(
            "Sections:\n\t.text type:code align:4\n\n"
            "empty.c:\n\n"
            "foo.c:\n\t.text start:0x0 end:0x10\n"
        )
        mapping = map_text(doc, "a = .text:0x4;")
        assert (mapping.groups[0].split.split_name, mapping.groups[0].split.split_index) == ("foo.c", 1)

    def test_bad_lines_are_skipped(self, splits):
        mapping = map_text(splits, "a = .text:0x150;\nnot a symbol\nb = .text:0x160;")
        assert group_summary(mapping) == [("foo.c", 0, 0x100, 0x200, [0, 2])]

    def test_empty_listing(self, splits):
        mapping = map_text(splits, "")
        assert mapping.groups == []
        assert mapping.line_index == {}

    def test_lookups(self, splits):
        mapping = map_text(splits, "a = .text:0x150;\nb = .data:0x1010;")
        assert mapping.split_for_line(1).name == ".data"
        assert mapping.split_for_line(5) is None

        foo_data = splits.splits[0].sections[1]
        assert mapping.line_for_section(0, foo_data) == 1
        bar_text = splits.splits[1].sections[0]
        assert mapping.line_for_section(1, bar_text) is None
