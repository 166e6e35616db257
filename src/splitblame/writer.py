"""Write SplitsFile documents back out as splits.txt text."""

from .models import SectionDef, Split, SplitSection, SplitsFile


def _hex(value: int) -> str:
    return f"0x{value:08X}"


def format_section_def(section: SectionDef) -> str:
    return f"\t{section.name:<11} type:{section.type} align:{section.align}"


def format_split_section(section: SplitSection) -> str:
    parts = [f"\t{section.name:<11} start:{_hex(section.start)} end:{_hex(section.end)}"]
    if section.align is not None:
        parts.append(f"align:{section.align}")
    if section.common:
        parts.append("common")
    if section.skip:
        parts.append("skip")
    if section.rename is not None:
        parts.append(f"rename:{section.rename}")
    return " ".join(parts)


def format_split(split: Split) -> str:
    header = [f"{split.description.name}:"]
    if split.description.comment is not None:
        header.append(f"comment:{split.description.comment}")
    if split.description.order is not None:
        header.append(f"order:{split.description.order}")
    lines = [" ".join(header)]
    lines.extend(format_split_section(section) for section in split.sections)
    return "\n".join(lines)


def format_splits(splits: SplitsFile) -> str:
    """
    Format a SplitsFile as splits.txt text.

    Parsing the result with parse_splits gives back an equal document.

    Args:
        splits: Parsed splits document

    Returns:
        splits.txt content ending with a newline
    """
    blocks = ["\n".join(["Sections:", *(format_section_def(s) for s in splits.sections_descriptor)])]
    blocks.extend(format_split(split) for split in splits.splits)
    return "\n\n".join(blocks) + "\n"
