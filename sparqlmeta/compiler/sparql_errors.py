"""
SPARQL Parse Errors

Every failure of the lexer or parser surfaces as a single ParseError
category with a discriminant kind:

- LEX: unterminated string/IRI or an unrecognized character
- SYNTAX: grammar violation (expected vs. found)
- RESOURCE_LIMIT: input, token count or nesting depth too large
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ParseErrorKind(Enum):
    """Discriminant for ParseError."""
    LEX = "lex"
    SYNTAX = "syntax"
    RESOURCE_LIMIT = "resource_limit"


@dataclass(frozen=True)
class Position:
    """Location in the query text (1-based line/column, 0-based offset)."""
    line: int
    column: int
    offset: int

    def __str__(self):
        return f"line {self.line}, column {self.column}"


class ParseError(Exception):
    """Base class for all query analysis failures."""

    kind = ParseErrorKind.SYNTAX

    def __init__(self, message: str, position: Optional[Position] = None):
        self.message = message
        self.position = position
        super().__init__(self._format())

    @property
    def line(self) -> Optional[int]:
        return self.position.line if self.position else None

    @property
    def column(self) -> Optional[int]:
        return self.position.column if self.position else None

    def _format(self) -> str:
        label = self.kind.value.replace("_", " ")
        if self.position is None:
            return f"SPARQL {label} error: {self.message}"
        return f"SPARQL {label} error at {self.position}: {self.message}"


class LexError(ParseError):
    """Invalid character or unterminated string/IRI."""

    kind = ParseErrorKind.LEX


class SPARQLSyntaxError(ParseError):
    """
    Grammar violation.

    Example:
        SELECT ?s WHERE { ?s ?p ?o
        → expected "'}'", found "end of input" at the end of the text
    """

    kind = ParseErrorKind.SYNTAX

    def __init__(self, expected: str, found: str, position: Optional[Position] = None):
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected}, found {found}", position)


class ResourceLimitExceeded(ParseError):
    """Input length, token count or nesting depth above the configured ceiling."""

    kind = ParseErrorKind.RESOURCE_LIMIT

    def __init__(self, limit: str, value: int, maximum: int,
                 position: Optional[Position] = None):
        self.limit = limit
        self.value = value
        self.maximum = maximum
        super().__init__(f"{limit} {value} exceeds maximum of {maximum}", position)
