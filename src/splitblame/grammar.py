"""Recursive-descent grammar for splits.txt.

The grammar, top to bottom::

    splits_file    := [endline] sections_block endline split (endline split)* [endline]
    sections_block := "Sections:" newline section_desc (endline section_desc)*
    section_desc   := text attributes
    split          := split_unit (endline split_section)*
    split_unit     := identifier attributes
    split_section  := text attributes
    attributes     := attribute*
    attribute      := identifier (number | text) | "common" | "skip"
    endline        := newline+

Every rule takes a token position and returns ``(value, next_position)``, or
None when it does not match there. Repetitions backtrack over a separator
whose following item fails, so the separator is left for the enclosing rule.

Parsing is all-or-nothing: any failure raises a SplitsParseError subclass
and no partial document is produced.
"""

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ValidationError

from .errors import (
    DuplicateAttributeError,
    GrammarError,
    InvalidRangeError,
    ShapeValidationError,
)
from .models import SectionDef, Split, SplitSection, SplitsFile, SplitUnit
from .tokenizer import Token, TokenKind, tokenize

AttributeValue = Union[int, str, bool]
Attributes = dict[str, AttributeValue]
Result = Optional[tuple[Any, int]]

FLAG_ATTRIBUTES = ("common", "skip")

_EXPECTED_NAMES = {
    TokenKind.NEWLINE: "newline",
    TokenKind.NUMBER: "number",
    TokenKind.SECTIONS: "'Sections:'",
    TokenKind.IDENT_NAME: "identifier",
    TokenKind.TEXT: "text",
}


def parse_number(text: str) -> int:
    """Parse a 0x-prefixed hexadecimal or a decimal number."""
    if text[:2] in ("0x", "0X"):
        return int(text, 16)
    return int(text, 10)


def _build(model: type[BaseModel], values: Attributes, row: Optional[int]) -> Any:
    """Build a model from an attribute map, translating validation errors."""
    try:
        return model.model_validate(values)
    except ValidationError as e:
        details = []
        for error in e.errors():
            key = ".".join(str(part) for part in error["loc"])
            if error["type"] == "value_error":
                detail = error.get("ctx", {}).get("error", error["msg"])
                raise InvalidRangeError(f"{detail} at line {row}", row=row) from e
            if error["type"] == "extra_forbidden":
                details.append(f"unknown attribute '{key}'")
            elif error["type"] == "missing":
                details.append(f"missing attribute '{key}'")
            else:
                details.append(f"attribute '{key}': {error['msg']}")
        raise ShapeValidationError(
            f"Invalid {model.__name__} at line {row}: {'; '.join(details)}", row=row
        ) from e


class _Grammar:
    """Grammar rules over one materialized token list."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        # Furthest failure seen, for error reporting
        self._furthest = -1
        self._expected: list[str] = []

    def _fail(self, pos: int, expected: str) -> None:
        if pos > self._furthest:
            self._furthest = pos
            self._expected = [expected]
        elif pos == self._furthest and expected not in self._expected:
            self._expected.append(expected)

    def _row(self, pos: int) -> Optional[int]:
        if pos < len(self.tokens):
            return self.tokens[pos].row
        return None

    def _token(self, pos: int, kind: TokenKind, text: Optional[str] = None) -> Optional[Token]:
        if pos < len(self.tokens):
            token = self.tokens[pos]
            if token.kind is kind and (text is None or token.text == text):
                return token
        self._fail(pos, repr(text) if text is not None else _EXPECTED_NAMES[kind])
        return None

    def _separated(self, item: Callable[[int], Result], sep: Callable[[int], Result], pos: int, values: list) -> int:
        """Parse (sep item)* onto values and return the position reached."""
        while True:
            after_sep = sep(pos)
            if after_sep is None:
                return pos
            parsed = item(after_sep[1])
            if parsed is None:
                return pos
            values.append(parsed[0])
            pos = parsed[1]

    def error(self, pos: int) -> GrammarError:
        """Build the error describing the furthest point parsing reached."""
        pos = max(pos, self._furthest)
        expected = " or ".join(self._expected) or "end of input"
        if pos < len(self.tokens):
            token = self.tokens[pos]
            return GrammarError(
                f"Expected {expected} at line {token.row}, column {token.column}, got {token.text!r}",
                row=token.row,
                column=token.column,
            )
        row = self.tokens[-1].row if self.tokens else 1
        return GrammarError(f"Expected {expected} at end of input", row=row)

    # Single tokens

    def sections_header(self, pos: int) -> Result:
        if self._token(pos, TokenKind.SECTIONS) is None:
            return None
        return None, pos + 1

    def identifier(self, pos: int) -> Result:
        token = self._token(pos, TokenKind.IDENT_NAME)
        if token is None:
            return None
        return token.text[:-1], pos + 1

    def number(self, pos: int) -> Result:
        token = self._token(pos, TokenKind.NUMBER)
        if token is None:
            return None
        return parse_number(token.text), pos + 1

    def text(self, pos: int) -> Result:
        token = self._token(pos, TokenKind.TEXT)
        if token is None:
            return None
        return token.text, pos + 1

    def endline(self, pos: int) -> Result:
        if self._token(pos, TokenKind.NEWLINE) is None:
            return None
        pos += 1
        while pos < len(self.tokens) and self.tokens[pos].kind is TokenKind.NEWLINE:
            pos += 1
        return None, pos

    # Attributes

    def attribute(self, pos: int) -> Result:
        key = self.identifier(pos)
        if key is not None:
            value = self.number(key[1]) or self.text(key[1])
            if value is not None:
                return {key[0]: value[0]}, value[1]
        for flag in FLAG_ATTRIBUTES:
            if self._token(pos, TokenKind.TEXT, flag) is not None:
                return {flag: True}, pos + 1
        return None

    def attributes(self, pos: int) -> Result:
        row = self._row(pos)
        merged: Attributes = {}
        while True:
            parsed = self.attribute(pos)
            if parsed is None:
                return merged, pos
            attribute, pos = parsed
            size = len(merged)
            merged = {**merged, **attribute}
            # Keys are only ever added; a map that did not grow saw a repeat
            if len(merged) != size + len(attribute):
                raise DuplicateAttributeError(next(iter(attribute)), row=row)

    # Structured objects

    def _named(self, name_rule: Callable[[int], Result], model: type[BaseModel], pos: int) -> Result:
        name = name_rule(pos)
        if name is None:
            return None
        attributes, end = self.attributes(name[1])
        return _build(model, {"name": name[0], **attributes}, self._row(pos)), end

    def section_desc(self, pos: int) -> Result:
        return self._named(self.text, SectionDef, pos)

    def sections_block(self, pos: int) -> Result:
        header = self.sections_header(pos)
        if header is None:
            return None
        # Comment-only lines after the header leave extra newlines
        after_header = self.endline(header[1])
        if after_header is None:
            return None
        first = self.section_desc(after_header[1])
        if first is None:
            return None
        sections = [first[0]]
        return sections, self._separated(self.section_desc, self.endline, first[1], sections)

    def split_unit(self, pos: int) -> Result:
        return self._named(self.identifier, SplitUnit, pos)

    def split_section(self, pos: int) -> Result:
        return self._named(self.text, SplitSection, pos)

    def split(self, pos: int) -> Result:
        unit = self.split_unit(pos)
        if unit is None:
            return None
        sections: list[SplitSection] = []
        end = self._separated(self.split_section, self.endline, unit[1], sections)
        return Split(description=unit[0], sections=sections), end

    def splits_file(self, pos: int) -> Result:
        leading = self.endline(pos)
        if leading is not None:
            pos = leading[1]
        block = self.sections_block(pos)
        if block is None:
            return None
        after_block = self.endline(block[1])
        if after_block is None:
            return None
        first = self.split(after_block[1])
        if first is None:
            return None
        splits = [first[0]]
        pos = self._separated(self.split, self.endline, first[1], splits)
        trailing = self.endline(pos)
        if trailing is not None:
            pos = trailing[1]
        return SplitsFile(sections_descriptor=block[0], splits=splits), pos


RULES = (
    "sections_header",
    "identifier",
    "number",
    "text",
    "endline",
    "attribute",
    "attributes",
    "section_desc",
    "sections_block",
    "split_unit",
    "split_section",
    "split",
    "splits_file",
)


def parse_rule(rule: str, text: str) -> Any:
    """
    Parse text with a single grammar rule, requiring all input be consumed.

    Args:
        rule: One of RULES
        text: Raw splits.txt text

    Returns:
        The value produced by the rule

    Raises:
        SplitsParseError: If tokenizing, parsing or validation fails
    """
    if rule not in RULES:
        raise ValueError(f"Unknown rule: {rule}")
    grammar = _Grammar(list(tokenize(text)))
    parsed = getattr(grammar, rule)(0)
    if parsed is None:
        raise grammar.error(0)
    value, pos = parsed
    if pos != len(grammar.tokens):
        grammar._fail(pos, "end of input")
        raise grammar.error(pos)
    return value


def parse_splits(text: str) -> SplitsFile:
    """
    Parse splits.txt content into a SplitsFile.

    Args:
        text: Raw splits.txt content

    Returns:
        The parsed document

    Raises:
        SplitsParseError: If the text is not a valid splits file
    """
    return parse_rule("splits_file", text)
