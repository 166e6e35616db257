"""Tokenizer for splits.txt."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .errors import TokenizeError


class TokenKind(Enum):
    NEWLINE = "newline"
    NUMBER = "number"
    SECTIONS = "Sections:"
    COMMENT = "comment"
    IDENT_NAME = "identifier"
    TEXT = "text"
    WHITESPACE = "whitespace"


@dataclass(frozen=True)
class Token:
    """A token and its 1-based source position."""

    kind: TokenKind
    text: str
    row: int
    column: int


# (emitted, pattern, kind). Longest match wins, ties go to the earlier entry.
_PATTERNS = [
    (True, re.compile(r"\r?\n"), TokenKind.NEWLINE),
    (True, re.compile(r"0[xX][0-9a-fA-F]+|\d+"), TokenKind.NUMBER),
    (True, re.compile(r"Sections:"), TokenKind.SECTIONS),
    (False, re.compile(r"(?://|#)[^\n]*"), TokenKind.COMMENT),
    (True, re.compile(r"[^ \r\n\t:]+:"), TokenKind.IDENT_NAME),
    (True, re.compile(r"[^ \r\n\t:]+"), TokenKind.TEXT),
    (False, re.compile(r"[ \t\r]+"), TokenKind.WHITESPACE),
]


def tokenize(text: str) -> Iterator[Token]:
    """
    Lazily split splits.txt text into tokens.

    Comments and inline whitespace are consumed but never yielded.

    Args:
        text: Raw splits.txt content

    Yields:
        Tokens in source order

    Raises:
        TokenizeError: If no pattern matches at some position
    """
    pos = 0
    row = 1
    column = 1
    while pos < len(text):
        best = None
        for emitted, pattern, kind in _PATTERNS:
            match = pattern.match(text, pos)
            if match and match.end() > pos and (best is None or match.end() > best[0].end()):
                best = (match, emitted, kind)

        if best is None:
            raise TokenizeError(
                f"Unable to tokenize {text[pos:pos + 10]!r} at line {row}, column {column}",
                row=row,
                column=column,
            )

        match, emitted, kind = best
        if emitted:
            yield Token(kind=kind, text=match.group(), row=row, column=column)

        if kind is TokenKind.NEWLINE:
            row += 1
            column = 1
        else:
            column += match.end() - pos
        pos = match.end()
