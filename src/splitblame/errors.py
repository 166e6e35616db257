"""Exceptions raised while parsing a splits file."""

from typing import Optional


class SplitsParseError(Exception):
    """Base exception for splits.txt parse failures.

    A splits file either parses completely or not at all, so any of these
    means no document is available for that text.
    """

    def __init__(self, message: str, row: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.row = row
        self.column = column


class TokenizeError(SplitsParseError):
    """Raised when no token pattern matches the input."""
    pass


class GrammarError(SplitsParseError):
    """Raised when the token stream does not match the grammar."""
    pass


class ShapeValidationError(SplitsParseError):
    """Raised when an object has unknown, missing or mistyped attributes."""
    pass


class InvalidRangeError(ShapeValidationError):
    """Raised when a split section starts after it ends."""
    pass


class DuplicateAttributeError(SplitsParseError):
    """Raised when one attribute list names the same key twice."""

    def __init__(self, key: str, row: Optional[int] = None):
        super().__init__(f"Duplicate entry '{key}' at line {row}", row=row)
        self.key = key
