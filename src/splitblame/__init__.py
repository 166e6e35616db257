"""Split ownership for decomp symbol listings.

This module parses splits.txt (which source unit owns which address ranges)
and symbols.txt (symbol name to address), and works out which split owns
every symbol line.
"""

from .models import (
    SectionDef,
    SplitUnit,
    SplitSection,
    Split,
    SplitsFile,
    SymbolLine,
    SymbolListing,
    ResolvedSection,
    SplitGroup,
    SplitMapping,
)
from .errors import (
    SplitsParseError,
    TokenizeError,
    GrammarError,
    ShapeValidationError,
    InvalidRangeError,
    DuplicateAttributeError,
)
from .tokenizer import Token, TokenKind, tokenize
from .grammar import parse_rule, parse_splits
from .writer import format_splits
from .symbols import parse_symbols
from .mapping import map_symbols_to_splits
from .blame import (
    LineAnnotation,
    SplitBlame,
    load_splits,
    load_symbols,
    open_blame,
)

__all__ = [
    # Models
    "SectionDef",
    "SplitUnit",
    "SplitSection",
    "Split",
    "SplitsFile",
    "SymbolLine",
    "SymbolListing",
    "ResolvedSection",
    "SplitGroup",
    "SplitMapping",
    "LineAnnotation",
    # Errors
    "SplitsParseError",
    "TokenizeError",
    "GrammarError",
    "ShapeValidationError",
    "InvalidRangeError",
    "DuplicateAttributeError",
    # Parsers and engine
    "Token",
    "TokenKind",
    "tokenize",
    "parse_rule",
    "parse_splits",
    "format_splits",
    "parse_symbols",
    "map_symbols_to_splits",
    "SplitBlame",
    # Async functions
    "load_splits",
    "load_symbols",
    "open_blame",
]

__version__ = "0.1.0"
