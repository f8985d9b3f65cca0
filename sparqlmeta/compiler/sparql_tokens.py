"""
SPARQL Tokenizer

Turns raw query text into a flat token stream for the recursive-descent
parser. Terminals are defined with pyparsing elements and scanned in
priority order; anything between two matches that is not whitespace is a
lexical error.

Token kinds:
- KEYWORD        SELECT, WHERE, COUNT, a, ... (every bare word)
- VARIABLE       ?name or $name
- IRI            <http://example.org/person/Alice>
- PREFIXED_NAME  foaf:name, :local, ex:, _:b0
- LITERAL        "Alice"@en, "42"^^xsd:integer, 3.14, true
- PUNCTUATION    { } ( ) [ ] . ; , * and expression operators
- EOF            end of input

Example:
    >>> [t.text for t in tokenize("SELECT ?s WHERE { ?s a foaf:Person }")][:4]
    ['SELECT', '?s', 'WHERE', '{']
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pyparsing import (
    CaselessKeyword, Combine, Literal, MatchFirst, Optional as Opt,
    QuotedString, Regex, Suppress, col, lineno,
)

from ..config import ParserLimits
from .sparql_errors import LexError, Position, ResourceLimitExceeded

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    """Lexical categories."""
    KEYWORD = "keyword"
    VARIABLE = "variable"
    IRI = "iri"
    PREFIXED_NAME = "prefixed_name"
    LITERAL = "literal"
    PUNCTUATION = "punctuation"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """Single lexical token; text is the exact source slice."""
    kind: TokenKind
    text: str
    position: Position

    @property
    def end(self) -> int:
        """Offset one past the last character of the token."""
        return self.position.offset + len(self.text)

    def is_keyword(self, *words: str) -> bool:
        """Case-insensitive keyword test (``a`` is matched case-sensitively)."""
        if self.kind is not TokenKind.KEYWORD:
            return False
        if self.text == "a":
            return "a" in words
        return self.text.upper() in words

    def is_punct(self, *symbols: str) -> bool:
        return self.kind is TokenKind.PUNCTUATION and self.text in symbols

    def describe(self) -> str:
        """Human-readable form used in error messages."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        return repr(self.text)


# ============================================================================
# Terminals
# ============================================================================

_IRI_CHAR = r'[^<>"{}|^`\\\x00-\x20]'
_PLX = r"(?:%[0-9A-Fa-f]{2}|\\[_~.\-!$&'()*+,;=/?#@%])"
_PN_PREFIX = r"(?:[^\W\d_](?:[\w.\-]*[\w\-])?)?"
_PN_LOCAL = (
    r"(?:(?:[\w:]|" + _PLX + r")"
    r"(?:(?:[\w.:\-]|" + _PLX + r")*(?:[\w:\-]|" + _PLX + r"))?)?"
)

# Marks a '<' that starts an IRI which never closes. A '<' is only read
# as an IRI opener when it carries a scheme with an authority ('<http://')
# or runs to end of input; otherwise it is the less-than operator.
_UNTERMINATED_IRI = "unterminated IRI"

_PUNCTUATION = ["^^", "&&", "||", "!=", "<=", ">=",
                "{", "}", "(", ")", "[", "]", ".", ";", ",", "*",
                "=", "<", ">", "!", "+", "-", "/", "^", "|", "?"]


def _tag(kind):
    """Parse action replacing the matched tokens with their kind."""
    def action(s, loc, toks):
        return [kind]
    return action


def _build_scanner():
    comment = Suppress(Regex(r"#[^\n]*"))

    iri_ref = Regex(r"<" + _IRI_CHAR + r"*>")
    unterminated_iri = (
        Regex(r"<[A-Za-z][\w+.\-]*://" + _IRI_CHAR + r"*")
        | Regex(r"<" + _IRI_CHAR + r"*[:/]" + _IRI_CHAR + r"*(?=\s*\Z)")
    )

    blank_node_label = Regex(r"_:\w(?:[\w.\-]*[\w\-])?")
    prefixed_name = Regex(_PN_PREFIX + r":" + _PN_LOCAL)

    variable = Regex(r"[?$]\w+")

    # Long strings before short ones so '"""' is not read as '""' + '"'
    string = (
        QuotedString('"""', esc_char="\\", multiline=True)
        | QuotedString("'''", esc_char="\\", multiline=True)
        | QuotedString('"', esc_char="\\")
        | QuotedString("'", esc_char="\\")
    )
    language_tag = Regex(r"@[A-Za-z]+(?:-[A-Za-z0-9]+)*")
    datatype = Literal("^^") + (iri_ref | prefixed_name)
    rdf_literal = Combine(string + Opt(language_tag | datatype))

    number = Regex(r"(?:\d+\.\d*|\.\d+|\d+)[eE][+-]?\d+|\d*\.\d+|\d+")
    boolean = CaselessKeyword("true") | CaselessKeyword("false")

    bare_word = Regex(r"[^\W\d]\w*")

    punctuation = MatchFirst([Literal(p) for p in _PUNCTUATION])

    alternatives = [
        comment,
        iri_ref.set_parse_action(_tag(TokenKind.IRI)),
        unterminated_iri.set_parse_action(_tag(_UNTERMINATED_IRI)),
        rdf_literal.set_parse_action(_tag(TokenKind.LITERAL)),
        blank_node_label.set_parse_action(_tag(TokenKind.PREFIXED_NAME)),
        prefixed_name.set_parse_action(_tag(TokenKind.PREFIXED_NAME)),
        variable.set_parse_action(_tag(TokenKind.VARIABLE)),
        number.set_parse_action(_tag(TokenKind.LITERAL)),
        boolean.set_parse_action(_tag(TokenKind.LITERAL)),
        bare_word.set_parse_action(_tag(TokenKind.KEYWORD)),
        punctuation.set_parse_action(_tag(TokenKind.PUNCTUATION)),
    ]
    # Offsets must match the caller's string, so tabs are not expanded
    return MatchFirst(alternatives).parse_with_tabs()


_SCANNER = _build_scanner()


def _position(text: str, offset: int) -> Position:
    return Position(line=lineno(offset, text), column=col(offset, text), offset=offset)


def _check_gap(text: str, start: int, end: int):
    """Raise LexError if text[start:end] holds anything but whitespace."""
    gap = text[start:end]
    stripped = gap.lstrip()
    if not stripped:
        return
    offset = start + (len(gap) - len(stripped))
    char = text[offset]
    if char in "\"'":
        message = "unterminated string literal"
    else:
        message = f"unexpected character {char!r}"
    raise LexError(message, _position(text, offset))


def tokenize(text: str, limits: Optional[ParserLimits] = None) -> List[Token]:
    """
    Split query text into tokens, ending with an EOF token.

    Args:
        text: SPARQL query text
        limits: Size ceilings (defaults to ParserLimits())

    Returns:
        List of Token

    Raises:
        LexError: Unterminated string/IRI or unrecognized character
        ResourceLimitExceeded: Input or token count above the ceiling
    """
    limits = limits or ParserLimits()

    if len(text) > limits.max_input_length:
        raise ResourceLimitExceeded("input length", len(text), limits.max_input_length)

    tokens: List[Token] = []
    cursor = 0

    for toks, start, end in _SCANNER.scan_string(text):
        _check_gap(text, cursor, start)
        cursor = end

        if not toks:
            continue  # comment

        kind = toks[0]
        if kind == _UNTERMINATED_IRI:
            raise LexError("unterminated IRI", _position(text, start))

        tokens.append(Token(kind=kind, text=text[start:end], position=_position(text, start)))
        if len(tokens) > limits.max_tokens:
            raise ResourceLimitExceeded(
                "token count", len(tokens), limits.max_tokens, _position(text, start)
            )

    _check_gap(text, cursor, len(text))
    tokens.append(Token(kind=TokenKind.EOF, text="", position=_position(text, len(text))))

    logger.debug(f"Tokenized {len(text)} characters into {len(tokens)} tokens")
    return tokens
