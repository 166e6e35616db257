"""Models for splits.txt documents, symbols.txt listings and split mappings."""

from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


# Every splits.txt object has an exact shape: unknown keys and
# mistyped values are rejected rather than coerced.
_EXACT = {"extra": "forbid", "frozen": True, "strict": True}


def format_address(value: int) -> str:
    """Format an address the way range errors report it (e.g. 0X80205CD0)."""
    return f"0X{value:X}"


class SectionDef(BaseModel):
    """Section category declared in the Sections: header block."""

    name: str = Field(description="Section name like .text or .data")
    type: str = Field(description="Section category like code or data")
    align: int = Field(description="Default alignment of the section")

    model_config = _EXACT


class SplitUnit(BaseModel):
    """Header line of one split, naming its source compilation unit."""

    name: str = Field(description="Path-like unit name, e.g. melee/lb/lbcommand.c")
    comment: Optional[int] = None
    order: Optional[int] = None

    model_config = _EXACT

    @property
    def friendly_name(self) -> str:
        """Unit name without its path prefix."""
        return self.name[self.name.rfind("/") + 1:]


class SplitSection(BaseModel):
    """Address range [start, end) of one section owned by a split."""

    name: str = Field(description="Section name like .text")
    start: int = Field(description="First address of the range")
    end: int = Field(description="Address one past the end of the range")
    align: Optional[int] = None
    common: Optional[Literal[True]] = None
    rename: Optional[str] = None
    skip: Optional[Literal[True]] = None

    model_config = _EXACT

    @model_validator(mode="after")
    def _check_range(self) -> "SplitSection":
        if self.start > self.end:
            raise ValueError(
                f"Invalid split range {format_address(self.start)}..{format_address(self.end)}"
            )
        return self


class Split(BaseModel):
    """One split: its unit description and the sections it owns."""

    description: SplitUnit
    sections: list[SplitSection] = Field(default_factory=list)

    model_config = {"frozen": True}


class SplitsFile(BaseModel):
    """A fully parsed splits.txt document."""

    sections_descriptor: list[SectionDef] = Field(default_factory=list)
    splits: list[Split] = Field(default_factory=list)

    model_config = {"frozen": True}


class SymbolLine(BaseModel):
    """One parsed line of symbols.txt."""

    line: int = Field(description="0-based line number in symbols.txt")
    name: str = Field(description="Symbol name")
    section: Optional[str] = Field(
        default=None,
        description="Section qualifier like .text, if present"
    )
    address: int = Field(description="Symbol address")
    comment: Optional[str] = Field(
        default=None,
        description="Text after //, e.g. type:function size:0x30"
    )

    model_config = {"frozen": True}


class SymbolListing(BaseModel):
    """Result of parsing symbols.txt: good lines and bad line numbers."""

    lines: list[SymbolLine] = Field(default_factory=list)
    errors: list[int] = Field(default_factory=list)


@dataclass(frozen=True)
class ResolvedSection:
    """A split section as placed on its section's address timeline.

    Unknown entries cover addresses no split claims: they have
    split_index -1 and no declared section. An end of None means the
    range is unbounded.
    """

    split_name: str
    split_index: int
    name: Optional[str]
    start: int
    end: Optional[int] = None
    section: Optional[SplitSection] = None

    @property
    def is_unknown(self) -> bool:
        return self.split_index < 0

    @property
    def is_unbounded(self) -> bool:
        return self.end is None

    def ends_at_or_before(self, address: int) -> bool:
        return self.end is not None and self.end <= address

    def contains(self, address: int) -> bool:
        return self.start <= address and not self.ends_at_or_before(address)


@dataclass
class SplitGroup:
    """A contiguous run of symbol lines owned by one split section."""

    split: ResolvedSection
    lines: list[SymbolLine] = field(default_factory=list)


@dataclass
class SplitMapping:
    """Symbol lines grouped by owning split, plus where each range begins."""

    groups: list[SplitGroup] = field(default_factory=list)
    # resolved range -> line number where it became current
    line_index: dict[ResolvedSection, int] = field(default_factory=dict)

    def split_for_line(self, line: int) -> Optional[ResolvedSection]:
        """Get the resolved section owning a symbol line, if any."""
        for group in self.groups:
            for symbol in group.lines:
                if symbol.line == line:
                    return group.split
        return None

    def line_for_section(self, split_index: int, section: SplitSection) -> Optional[int]:
        """Get the line where a declared section of a split begins, if seen."""
        for resolved, line in self.line_index.items():
            if resolved.split_index == split_index and resolved.section == section:
                return line
        return None
