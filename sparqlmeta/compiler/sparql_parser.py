"""
SPARQL Query Parser

Recursive-descent parser from the token stream produced by
sparql_tokens.tokenize() to the AST in sparql_ast.

Inspired by:
- W3C SPARQL 1.1 Query and Update grammars
- Apache Jena ARQ

Supported subset:
- Prologue (BASE, PREFIX)
- SELECT [DISTINCT|REDUCED] with *, ?var and (expr AS ?alias) projections
- WHERE groups with triple patterns (';' ',' 'a', blank nodes, collections,
  property paths), nested groups, OPTIONAL, UNION, MINUS, GRAPH, SERVICE,
  FILTER, BIND, VALUES and sub-selects
- GROUP BY, HAVING, ORDER BY, LIMIT, OFFSET and a trailing VALUES block
- ASK, CONSTRUCT, DESCRIBE and update requests, parsed only far enough to
  reach their WHERE clauses

Expressions are never interpreted: FILTER, BIND, projection and modifier
bodies are consumed with balanced brackets and kept as text plus the
variables they mention.

Parsing is all-or-nothing. The first violation raises SPARQLSyntaxError;
nesting beyond ParserLimits.max_depth raises ResourceLimitExceeded.

Example:
    SELECT ?person ?name
    WHERE {
        VALUES ?person { UNDEF }
        ?person foaf:name ?name .
        FILTER (?name != "")
    }
    LIMIT 10
"""

import logging
import re
from contextlib import contextmanager
from typing import List, Optional, Sequence, Tuple

from ..config import ParserLimits
from .sparql_ast import (
    RDF_TYPE, XSD,
    Var, IRI, PrefixedName, Literal, BlankNode, UNDEF,
    PropertyPath, BlankNodePropertyList, Collection,
    Expression, Star, Aliased,
    TriplePattern, ValuesClause, FilterClause, GroupGraphPattern,
    OptionalClause, NestedGroup, UnionClause, MinusClause, GraphClause,
    ServiceClause, BindClause, SubSelect,
    PrefixDecl, Prologue, SelectClause, OrderCondition, SliceClause,
    SolutionModifier, QueryForm, UpdateOperation, Query,
)
from .sparql_errors import ResourceLimitExceeded, SPARQLSyntaxError
from .sparql_tokens import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)


_PATTERN_KEYWORDS = ("OPTIONAL", "MINUS", "GRAPH", "SERVICE", "FILTER", "BIND", "VALUES")
_UPDATE_KEYWORDS = ("INSERT", "DELETE", "LOAD", "CLEAR", "DROP", "CREATE",
                    "ADD", "MOVE", "COPY", "WITH")
# Keywords that open a clause and so never start a function call
_CLAUSE_KEYWORDS = frozenset([
    "SELECT", "WHERE", "GROUP", "HAVING", "ORDER", "LIMIT", "OFFSET", "VALUES",
    "FILTER", "OPTIONAL", "MINUS", "BIND", "GRAPH", "SERVICE", "UNION", "AS",
])

_QUOTED_LITERAL = re.compile(
    r'^(?P<q>"""|\'\'\'|"|\')(?P<body>.*)(?P=q)'
    r'(?:@(?P<lang>[A-Za-z0-9\-]+)|\^\^(?P<dt>.+))?$',
    re.DOTALL,
)
_ESCAPE = re.compile(r'\\(u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|.)', re.DOTALL)
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "b": "\b", "f": "\f",
            '"': '"', "'": "'", "\\": "\\"}


def _unescape(body: str) -> str:
    def replace(match):
        seq = match.group(1)
        if seq[0] in "uU":
            return chr(int(seq[1:], 16))
        return _ESCAPES.get(seq, seq)
    return _ESCAPE.sub(replace, body)


def _make_literal(text: str, sign: str = "") -> Literal:
    """Build a Literal from a LITERAL token's text."""
    match = _QUOTED_LITERAL.match(text)
    if match:
        datatype = match.group("dt")
        if datatype and datatype.startswith("<"):
            datatype = datatype[1:-1]
        return Literal(
            lexical=text,
            value=_unescape(match.group("body")),
            language=match.group("lang"),
            datatype=datatype,
        )

    lowered = text.lower()
    if lowered in ("true", "false"):
        return Literal(lexical=text, value=lowered, datatype=XSD + "boolean")
    if "e" in lowered:
        datatype = XSD + "double"
    elif "." in text:
        datatype = XSD + "decimal"
    else:
        datatype = XSD + "integer"
    return Literal(lexical=sign + text, value=sign + text, datatype=datatype)


def _is_numeric(token: Token) -> bool:
    return token.kind is TokenKind.LITERAL and token.text[:1] in "0123456789."


class _QueryReader:
    """
    Parsing state for one call: the token list, a cursor and the current
    nesting depth. A fresh reader is created for every parse.
    """

    def __init__(self, tokens: Sequence[Token], limits: ParserLimits):
        self.tokens = tokens
        self.limits = limits
        self.pos = 0
        self.depth = 0

    # ========================================================================
    # Token helpers
    # ========================================================================

    def peek(self, ahead: int = 0) -> Token:
        return self.tokens[min(self.pos + ahead, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind is not TokenKind.EOF:
            self.pos += 1
        return token

    def error(self, expected: str, token: Optional[Token] = None) -> SPARQLSyntaxError:
        token = token or self.peek()
        return SPARQLSyntaxError(expected, token.describe(), token.position)

    def accept_punct(self, symbol: str) -> Optional[Token]:
        if self.peek().is_punct(symbol):
            return self.advance()
        return None

    def accept_keyword(self, *words: str) -> Optional[Token]:
        if self.peek().is_keyword(*words):
            return self.advance()
        return None

    def expect_punct(self, symbol: str) -> Token:
        token = self.accept_punct(symbol)
        if token is None:
            raise self.error(f"'{symbol}'")
        return token

    def expect_keyword(self, *words: str) -> Token:
        token = self.accept_keyword(*words)
        if token is None:
            raise self.error(" or ".join(words))
        return token

    def expect_variable(self) -> Token:
        if self.peek().kind is not TokenKind.VARIABLE:
            raise self.error("variable")
        return self.advance()

    def expect_iri(self):
        token = self.peek()
        if token.kind is TokenKind.IRI:
            return IRI(self.advance().text[1:-1])
        if token.kind is TokenKind.PREFIXED_NAME and not token.text.startswith("_:"):
            return self._prefixed_name(self.advance())
        raise self.error("IRI")

    @contextmanager
    def nested(self, token: Token):
        """Count one level of nesting, failing past the configured ceiling."""
        self.depth += 1
        if self.depth > self.limits.max_depth:
            raise ResourceLimitExceeded(
                "nesting depth", self.depth, self.limits.max_depth, token.position
            )
        try:
            yield
        finally:
            self.depth -= 1

    # ========================================================================
    # Query forms
    # ========================================================================

    def query(self) -> Query:
        prologue = self.prologue()
        token = self.peek()

        if token.is_keyword("SELECT"):
            query = self.select_query(prologue)
        elif token.is_keyword("ASK"):
            query = self.ask_query(prologue)
        elif token.is_keyword("CONSTRUCT"):
            query = self.construct_query(prologue)
        elif token.is_keyword("DESCRIBE"):
            query = self.describe_query(prologue)
        elif token.is_keyword(*_UPDATE_KEYWORDS):
            query = self.update_request(prologue)
        else:
            raise self.error("SELECT, ASK, CONSTRUCT, DESCRIBE or an update operation")

        if self.peek().kind is not TokenKind.EOF:
            raise self.error("end of input")
        return query

    def prologue(self, base: Optional[str] = None,
                 prefixes: Tuple[PrefixDecl, ...] = ()) -> Prologue:
        declared = list(prefixes)
        while True:
            if self.accept_keyword("BASE"):
                if self.peek().kind is not TokenKind.IRI:
                    raise self.error("IRI")
                base = self.advance().text[1:-1]
            elif self.accept_keyword("PREFIX"):
                name = self.peek()
                if (name.kind is not TokenKind.PREFIXED_NAME
                        or name.text.startswith("_:")
                        or name.text.index(":") != len(name.text) - 1):
                    raise self.error("prefix name ending in ':'")
                self.advance()
                if self.peek().kind is not TokenKind.IRI:
                    raise self.error("IRI")
                declared.append(PrefixDecl(prefix=name.text[:-1], iri=self.advance().text[1:-1]))
            else:
                return Prologue(base=base, prefixes=tuple(declared))

    def select_query(self, prologue: Prologue) -> Query:
        select_clause = self.select_clause()
        self.dataset_clauses()
        where_clause = self.where_clause()
        modifiers = self.solution_modifier()
        values_clause = self.trailing_values()
        return Query(
            prologue=prologue,
            form=QueryForm.SELECT,
            select_clause=select_clause,
            where_clause=where_clause,
            modifiers=modifiers,
            values_clause=values_clause,
        )

    def ask_query(self, prologue: Prologue) -> Query:
        self.expect_keyword("ASK")
        self.dataset_clauses()
        where_clause = self.where_clause()
        modifiers = self.solution_modifier()
        return Query(prologue=prologue, form=QueryForm.ASK, where_clause=where_clause,
                     modifiers=modifiers, values_clause=self.trailing_values())

    def construct_query(self, prologue: Prologue) -> Query:
        self.expect_keyword("CONSTRUCT")
        if self.peek().is_punct("{"):
            self.group_graph_pattern()  # template
            self.dataset_clauses()
            where_clause = self.where_clause()
        else:
            # CONSTRUCT WHERE { template }
            self.dataset_clauses()
            self.expect_keyword("WHERE")
            where_clause = self.group_graph_pattern()
        modifiers = self.solution_modifier()
        return Query(prologue=prologue, form=QueryForm.CONSTRUCT, where_clause=where_clause,
                     modifiers=modifiers, values_clause=self.trailing_values())

    def describe_query(self, prologue: Prologue) -> Query:
        self.expect_keyword("DESCRIBE")
        if not self.accept_punct("*"):
            described = 0
            while self.peek().kind in (TokenKind.VARIABLE, TokenKind.IRI, TokenKind.PREFIXED_NAME):
                self.advance()
                described += 1
            if not described:
                raise self.error("variable, IRI or '*'")
        self.dataset_clauses()

        where_clause = None
        if self.accept_keyword("WHERE") or self.peek().is_punct("{"):
            where_clause = self.group_graph_pattern()
        modifiers = self.solution_modifier()
        return Query(prologue=prologue, form=QueryForm.DESCRIBE, where_clause=where_clause,
                     modifiers=modifiers, values_clause=self.trailing_values())

    def update_request(self, prologue: Prologue) -> Query:
        operations = []
        while True:
            operations.append(self.update_operation())
            if not self.accept_punct(";"):
                break
            prologue = self.prologue(prologue.base, prologue.prefixes)
            if self.peek().kind is TokenKind.EOF:
                break
        return Query(prologue=prologue, form=QueryForm.UPDATE, operations=tuple(operations))

    def update_operation(self) -> UpdateOperation:
        token = self.peek()

        if self.accept_keyword("LOAD"):
            self.accept_keyword("SILENT")
            self.expect_iri()
            if self.accept_keyword("INTO"):
                self.expect_keyword("GRAPH")
                self.expect_iri()
            return UpdateOperation("LOAD")

        if self.accept_keyword("CLEAR", "DROP"):
            self.accept_keyword("SILENT")
            if self.accept_keyword("GRAPH"):
                self.expect_iri()
            else:
                self.expect_keyword("DEFAULT", "NAMED", "ALL")
            return UpdateOperation(token.text.upper())

        if self.accept_keyword("CREATE"):
            self.accept_keyword("SILENT")
            self.expect_keyword("GRAPH")
            self.expect_iri()
            return UpdateOperation("CREATE")

        if self.accept_keyword("ADD", "MOVE", "COPY"):
            self.accept_keyword("SILENT")
            self.graph_or_default()
            self.expect_keyword("TO")
            self.graph_or_default()
            return UpdateOperation(token.text.upper())

        if self.accept_keyword("INSERT"):
            if self.accept_keyword("DATA"):
                return UpdateOperation("INSERT DATA", insert_template=self.group_graph_pattern())
            return self.modify(insert_template=self.group_graph_pattern())

        if self.accept_keyword("DELETE"):
            if self.accept_keyword("DATA"):
                return UpdateOperation("DELETE DATA", delete_template=self.group_graph_pattern())
            if self.accept_keyword("WHERE"):
                return UpdateOperation("DELETE WHERE", where_clause=self.group_graph_pattern())
            delete_template = self.group_graph_pattern()
            insert_template = None
            if self.accept_keyword("INSERT"):
                insert_template = self.group_graph_pattern()
            return self.modify(delete_template=delete_template, insert_template=insert_template)

        if self.accept_keyword("WITH"):
            self.expect_iri()
            if self.accept_keyword("INSERT"):
                return self.modify(insert_template=self.group_graph_pattern())
            self.expect_keyword("DELETE")
            delete_template = self.group_graph_pattern()
            insert_template = None
            if self.accept_keyword("INSERT"):
                insert_template = self.group_graph_pattern()
            return self.modify(delete_template=delete_template, insert_template=insert_template)

        raise self.error("update operation")

    def modify(self, delete_template=None, insert_template=None) -> UpdateOperation:
        while self.accept_keyword("USING"):
            self.accept_keyword("NAMED")
            self.expect_iri()
        self.expect_keyword("WHERE")
        return UpdateOperation(
            "MODIFY",
            where_clause=self.group_graph_pattern(),
            delete_template=delete_template,
            insert_template=insert_template,
        )

    def graph_or_default(self):
        if self.accept_keyword("DEFAULT"):
            return
        self.accept_keyword("GRAPH")
        self.expect_iri()

    def dataset_clauses(self):
        while self.accept_keyword("FROM"):
            self.accept_keyword("NAMED")
            self.expect_iri()

    # ========================================================================
    # SELECT
    # ========================================================================

    def select_clause(self) -> SelectClause:
        self.expect_keyword("SELECT")
        distinct = self.accept_keyword("DISTINCT") is not None
        reduced = not distinct and self.accept_keyword("REDUCED") is not None

        if self.accept_punct("*"):
            return SelectClause(projections=(Star(),), distinct=distinct, reduced=reduced)

        projections = []
        while True:
            token = self.peek()
            if token.kind is TokenKind.VARIABLE:
                self.advance()
                projections.append(Var(token.text[1:]))
            elif token.is_punct("("):
                self.advance()
                expression = self.scan_expression(stop_at_as=True)
                if not expression.text:
                    raise self.error("expression")
                self.expect_keyword("AS")
                alias = self.expect_variable()
                self.expect_punct(")")
                projections.append(Aliased(expression=expression, alias=alias.text[1:]))
            else:
                break

        if not projections:
            raise self.error("'*', a variable or '(' expression AS ?alias ')'")
        return SelectClause(projections=tuple(projections), distinct=distinct, reduced=reduced)

    def sub_select(self) -> SubSelect:
        select_clause = self.select_clause()
        where_clause = self.where_clause()
        modifiers = self.solution_modifier()
        return SubSelect(
            select_clause=select_clause,
            where_clause=where_clause,
            modifiers=modifiers,
            values_clause=self.trailing_values(),
        )

    def where_clause(self) -> GroupGraphPattern:
        self.accept_keyword("WHERE")
        return self.group_graph_pattern()

    def trailing_values(self) -> Optional[ValuesClause]:
        if self.peek().is_keyword("VALUES"):
            return self.values_clause()
        return None

    # ========================================================================
    # Solution modifiers
    # ========================================================================

    def solution_modifier(self) -> SolutionModifier:
        group_by: List[Expression] = []
        having: List[Expression] = []
        order_by: List[OrderCondition] = []

        if self.accept_keyword("GROUP"):
            self.expect_keyword("BY")
            while True:
                condition = self.group_condition()
                if condition is None:
                    break
                group_by.append(condition)
            if not group_by:
                raise self.error("GROUP BY condition")

        if self.accept_keyword("HAVING"):
            while self.starts_constraint(self.peek()):
                having.append(self.constraint())
            if not having:
                raise self.error("HAVING constraint")

        if self.accept_keyword("ORDER"):
            self.expect_keyword("BY")
            while True:
                condition = self.order_condition()
                if condition is None:
                    break
                order_by.append(condition)
            if not order_by:
                raise self.error("ORDER BY condition")

        limit = offset = None
        if self.peek().is_keyword("LIMIT"):
            limit = self.slice_clause()
            if self.peek().is_keyword("OFFSET"):
                offset = self.slice_clause()
        elif self.peek().is_keyword("OFFSET"):
            offset = self.slice_clause()
            if self.peek().is_keyword("LIMIT"):
                limit = self.slice_clause()

        return SolutionModifier(
            group_by=tuple(group_by),
            having=tuple(having),
            order_by=tuple(order_by),
            limit=limit,
            offset=offset,
        )

    def slice_clause(self) -> SliceClause:
        keyword = self.advance()
        token = self.peek()
        if token.kind is not TokenKind.LITERAL or not token.text.isdigit():
            raise self.error("integer")
        self.advance()
        return SliceClause(keyword=keyword.text, lexical=token.text, value=int(token.text))

    def group_condition(self) -> Optional[Expression]:
        token = self.peek()
        if token.kind is TokenKind.VARIABLE:
            self.advance()
            return Expression(token.text, (token.text[1:],))
        if token.is_punct("("):
            self.advance()
            expression = self.scan_expression(stop_at_as=True)
            if self.accept_keyword("AS"):
                alias = self.expect_variable()
                self.expect_punct(")")
                return Expression(
                    f"({expression.text} AS {alias.text})",
                    _merge_names(expression.variables, (alias.text[1:],)),
                    expression.patterns,
                )
            self.expect_punct(")")
            return expression
        if self.starts_call(token):
            return self.function_call()
        return None

    def order_condition(self) -> Optional[OrderCondition]:
        token = self.peek()
        if token.is_keyword("ASC", "DESC"):
            self.advance()
            self.expect_punct("(")
            expression = self.scan_expression()
            self.expect_punct(")")
            return OrderCondition(expression=expression, descending=token.is_keyword("DESC"))
        if token.kind is TokenKind.VARIABLE:
            self.advance()
            return OrderCondition(expression=Expression(token.text, (token.text[1:],)))
        if self.starts_constraint(token):
            return OrderCondition(expression=self.constraint())
        return None

    # ========================================================================
    # Expressions (scanned, not interpreted)
    # ========================================================================

    def starts_call(self, token: Token) -> bool:
        """True if ``token`` (the current token) opens a function call."""
        if not self.peek(1).is_punct("("):
            return False
        if token.kind is TokenKind.KEYWORD:
            return token.text.upper() not in _CLAUSE_KEYWORDS
        return token.kind is TokenKind.IRI or (
            token.kind is TokenKind.PREFIXED_NAME and not token.text.startswith("_:")
        )

    def starts_constraint(self, token: Token) -> bool:
        return (token.is_punct("(")
                or token.is_keyword("EXISTS", "NOT")
                or self.starts_call(token))

    def constraint(self) -> Expression:
        """FILTER/HAVING body: '(' expr ')', EXISTS/NOT EXISTS group or a call."""
        token = self.peek()
        if token.is_punct("("):
            self.advance()
            expression = self.scan_expression()
            if not expression.text:
                raise self.error("expression")
            self.expect_punct(")")
            return expression
        if token.is_keyword("NOT", "EXISTS"):
            return self.exists_expression()
        if self.starts_call(token):
            return self.function_call()
        raise self.error("constraint")

    def exists_expression(self) -> Expression:
        """``[NOT] EXISTS { ... }``; the group is parsed as a graph pattern."""
        start = self.pos
        self.accept_keyword("NOT")
        self.expect_keyword("EXISTS")
        pattern = self.group_graph_pattern()
        consumed = self.tokens[start:self.pos]
        names: List[str] = []
        for token in consumed:
            if token.kind is TokenKind.VARIABLE and token.text[1:] not in names:
                names.append(token.text[1:])
        return Expression(" ".join(t.text for t in consumed), tuple(names), (pattern,))

    def function_call(self) -> Expression:
        name = self.advance()
        self.expect_punct("(")
        arguments = self.scan_expression()
        self.expect_punct(")")
        return Expression(f"{name.text}({arguments.text})", arguments.variables,
                          arguments.patterns)

    def scan_expression(self, closer: str = ")", stop_at_as: bool = False) -> Expression:
        """
        Consume tokens up to (not including) the unbalanced ``closer``, or up
        to a top-level AS when ``stop_at_as`` is set.
        """
        other_closer = "}" if closer == ")" else ")"
        texts: List[str] = []
        names: List[str] = []
        patterns: List[GroupGraphPattern] = []
        nesting = 0

        while True:
            token = self.peek()
            if token.kind is TokenKind.EOF:
                raise self.error(f"'{closer}'")
            if nesting == 0:
                if token.is_punct(closer):
                    break
                if stop_at_as and token.is_keyword("AS"):
                    break
                if token.is_punct(other_closer):
                    raise self.error(f"'{closer}'")

            if token.is_keyword("EXISTS") and self.peek(1).is_punct("{"):
                self.depth += nesting
                try:
                    exists = self.exists_expression()
                finally:
                    self.depth -= nesting
                texts.append(exists.text)
                names[:] = _merge_names(tuple(names), exists.variables)
                patterns.extend(exists.patterns)
                continue

            if token.is_punct("(", "{"):
                nesting += 1
                if self.depth + nesting > self.limits.max_depth:
                    raise ResourceLimitExceeded(
                        "nesting depth", self.depth + nesting, self.limits.max_depth,
                        token.position,
                    )
            elif token.is_punct(")", "}"):
                nesting -= 1
            elif token.kind is TokenKind.VARIABLE and token.text[1:] not in names:
                names.append(token.text[1:])

            texts.append(token.text)
            self.advance()

        return Expression(" ".join(texts), tuple(names), tuple(patterns))

    # ========================================================================
    # Group graph patterns
    # ========================================================================

    def group_graph_pattern(self) -> GroupGraphPattern:
        open_brace = self.peek()
        self.expect_punct("{")
        with self.nested(open_brace):
            if self.peek().is_keyword("SELECT"):
                elements = [self.sub_select()]
            else:
                elements = self.group_body()
            self.expect_punct("}")
        return GroupGraphPattern(elements=tuple(elements))

    def starts_pattern_not_triples(self, token: Token) -> bool:
        return token.is_punct("{") or token.is_keyword(*_PATTERN_KEYWORDS)

    def starts_term(self, token: Token) -> bool:
        if token.kind in (TokenKind.VARIABLE, TokenKind.IRI,
                          TokenKind.PREFIXED_NAME, TokenKind.LITERAL):
            return True
        if token.is_punct("[", "("):
            return True
        return token.is_punct("+", "-") and _is_numeric(self.peek(1))

    def group_body(self) -> list:
        elements = []
        while True:
            token = self.peek()
            if token.is_punct("}"):
                break
            if token.kind is TokenKind.EOF:
                raise self.error("'}'")

            if self.starts_pattern_not_triples(token):
                elements.append(self.graph_pattern_not_triples())
                self.accept_punct(".")
            elif self.starts_term(token):
                elements.extend(self.triples_same_subject())
                if not self.accept_punct(".") and not self.starts_pattern_not_triples(self.peek()):
                    break
            else:
                raise self.error("triple pattern, graph pattern or '}'")
        return elements

    def graph_pattern_not_triples(self):
        token = self.peek()

        if token.is_punct("{"):
            alternatives = [self.group_graph_pattern()]
            while self.accept_keyword("UNION"):
                alternatives.append(self.group_graph_pattern())
            if len(alternatives) > 1:
                return UnionClause(alternatives=tuple(alternatives))
            return NestedGroup(pattern=alternatives[0])

        if self.accept_keyword("OPTIONAL"):
            return OptionalClause(pattern=self.group_graph_pattern())

        if self.accept_keyword("MINUS"):
            return MinusClause(pattern=self.group_graph_pattern())

        if self.accept_keyword("GRAPH"):
            graph = self.var_or_iri()
            return GraphClause(graph=graph, pattern=self.group_graph_pattern())

        if self.accept_keyword("SERVICE"):
            silent = self.accept_keyword("SILENT") is not None
            endpoint = self.var_or_iri()
            return ServiceClause(endpoint=endpoint, pattern=self.group_graph_pattern(),
                                 silent=silent)

        if self.accept_keyword("FILTER"):
            return FilterClause(expression=self.constraint())

        if self.accept_keyword("BIND"):
            self.expect_punct("(")
            expression = self.scan_expression(stop_at_as=True)
            if not expression.text:
                raise self.error("expression")
            self.expect_keyword("AS")
            variable = self.expect_variable()
            self.expect_punct(")")
            return BindClause(expression=expression, variable=variable.text[1:])

        return self.values_clause()

    def values_clause(self) -> ValuesClause:
        keyword = self.expect_keyword("VALUES")
        rows = []

        if self.peek().kind is TokenKind.VARIABLE:
            variables = [self.advance().text[1:]]
            self.expect_punct("{")
            while not self.peek().is_punct("}"):
                rows.append((self.data_value(),))
        elif self.accept_punct("("):
            variables = []
            while self.peek().kind is TokenKind.VARIABLE:
                variables.append(self.advance().text[1:])
            self.expect_punct(")")
            self.expect_punct("{")
            while not self.peek().is_punct("}"):
                row_start = self.peek()
                self.expect_punct("(")
                row = []
                while not self.peek().is_punct(")"):
                    row.append(self.data_value())
                self.advance()
                if len(row) != len(variables):
                    raise SPARQLSyntaxError(
                        f"{len(variables)} values in VALUES row",
                        f"{len(row)}",
                        row_start.position,
                    )
                rows.append(tuple(row))
        else:
            raise self.error("variable or '(' after VALUES")

        close = self.expect_punct("}")
        return ValuesClause(
            variables=tuple(variables),
            rows=tuple(rows),
            span=(keyword.position.offset, close.end),
        )

    def data_value(self):
        token = self.peek()
        if token.is_keyword("UNDEF"):
            self.advance()
            return UNDEF
        if token.kind is TokenKind.IRI:
            return IRI(self.advance().text[1:-1])
        if token.kind is TokenKind.PREFIXED_NAME and not token.text.startswith("_:"):
            return self._prefixed_name(self.advance())
        if token.kind is TokenKind.LITERAL:
            return _make_literal(self.advance().text)
        if token.is_punct("+", "-") and _is_numeric(self.peek(1)):
            sign = self.advance().text
            return _make_literal(self.advance().text, sign)
        raise self.error("IRI, literal or UNDEF")

    def var_or_iri(self):
        if self.peek().kind is TokenKind.VARIABLE:
            return Var(self.advance().text[1:])
        return self.expect_iri()

    # ========================================================================
    # Triple patterns
    # ========================================================================

    def triples_same_subject(self) -> List[TriplePattern]:
        triples: List[TriplePattern] = []
        token = self.peek()

        if token.is_punct("[") and not self.peek(1).is_punct("]"):
            subject = self.graph_node()
            if self.starts_verb(self.peek()):
                self.property_list(subject, triples)
            else:
                # '[ :p ?o ] .' on its own stands for its inner triples
                triples.extend(subject.triples)
        else:
            subject = self.graph_node()
            self.property_list(subject, triples)
        return triples

    def property_list(self, subject, triples: List[TriplePattern]):
        """predicate-object list: verb objects (';' verb objects)*"""
        while True:
            verb = self.verb()
            triples.append(TriplePattern(subject, verb, self.graph_node()))
            while self.accept_punct(","):
                triples.append(TriplePattern(subject, verb, self.graph_node()))

            if not self.accept_punct(";"):
                return
            while self.accept_punct(";"):
                pass
            if not self.starts_verb(self.peek()):
                return

    def starts_verb(self, token: Token) -> bool:
        if token.kind in (TokenKind.VARIABLE, TokenKind.IRI):
            return True
        if token.kind is TokenKind.PREFIXED_NAME:
            return not token.text.startswith("_:")
        return token.is_keyword("a") or token.is_punct("^", "(", "!")

    def verb(self):
        token = self.peek()
        if token.kind is TokenKind.VARIABLE:
            self.advance()
            return Var(token.text[1:])
        if not self.starts_verb(token):
            raise self.error("predicate")

        start = self.pos
        self.path_alternative()
        consumed = self.tokens[start:self.pos]
        if len(consumed) == 1:
            return self._path_iri(consumed[0])
        return PropertyPath("".join(t.text for t in consumed))

    def path_alternative(self):
        self.path_sequence()
        while self.accept_punct("|"):
            self.path_sequence()

    def path_sequence(self):
        self.path_element()
        while self.accept_punct("/"):
            self.path_element()

    def path_element(self):
        self.accept_punct("^")
        token = self.peek()
        if token.is_punct("("):
            with self.nested(token):
                self.advance()
                self.path_alternative()
                self.expect_punct(")")
        elif self.accept_punct("!"):
            self.negated_property_set()
        else:
            self._path_iri(self.path_primary())
        if self.peek().is_punct("*", "+", "?"):
            self.advance()

    def negated_property_set(self):
        token = self.peek()
        if token.is_punct("("):
            with self.nested(token):
                self.advance()
                if not self.accept_punct(")"):
                    self.accept_punct("^")
                    self.path_primary()
                    while self.accept_punct("|"):
                        self.accept_punct("^")
                        self.path_primary()
                    self.expect_punct(")")
        else:
            self.accept_punct("^")
            self.path_primary()

    def path_primary(self) -> Token:
        token = self.peek()
        if token.kind is TokenKind.IRI or token.is_keyword("a") or (
                token.kind is TokenKind.PREFIXED_NAME and not token.text.startswith("_:")):
            return self.advance()
        raise self.error("IRI or 'a' in property path")

    def _path_iri(self, token: Token):
        if token.kind is TokenKind.IRI:
            return IRI(token.text[1:-1])
        if token.kind is TokenKind.PREFIXED_NAME:
            return self._prefixed_name(token)
        return IRI(RDF_TYPE)

    def _prefixed_name(self, token: Token) -> PrefixedName:
        prefix, _, local = token.text.partition(":")
        return PrefixedName(prefix=prefix, local=local)

    def graph_node(self):
        """Subject/object position: term, blank node property list or collection."""
        token = self.peek()

        if token.is_punct("["):
            if self.peek(1).is_punct("]"):
                self.advance()
                self.advance()
                return BlankNode()
            with self.nested(token):
                self.advance()
                inner: List[TriplePattern] = []
                self.property_list(BlankNode(), inner)
                self.expect_punct("]")
            return BlankNodePropertyList(triples=tuple(inner))

        if token.is_punct("("):
            with self.nested(token):
                self.advance()
                items = []
                while not self.peek().is_punct(")"):
                    if self.peek().kind is TokenKind.EOF:
                        raise self.error("')'")
                    items.append(self.graph_node())
                self.advance()
            return Collection(items=tuple(items))

        return self.graph_term()

    def graph_term(self):
        token = self.peek()
        if token.kind is TokenKind.VARIABLE:
            return Var(self.advance().text[1:])
        if token.kind is TokenKind.IRI:
            return IRI(self.advance().text[1:-1])
        if token.kind is TokenKind.PREFIXED_NAME:
            self.advance()
            if token.text.startswith("_:"):
                return BlankNode(label=token.text[2:])
            return self._prefixed_name(token)
        if token.kind is TokenKind.LITERAL:
            return _make_literal(self.advance().text)
        if token.is_punct("+", "-") and _is_numeric(self.peek(1)):
            sign = self.advance().text
            return _make_literal(self.advance().text, sign)
        raise self.error("RDF term or variable")


def _merge_names(*groups: Tuple[str, ...]) -> Tuple[str, ...]:
    merged: List[str] = []
    for group in groups:
        for name in group:
            if name not in merged:
                merged.append(name)
    return tuple(merged)


class SPARQLParser:
    """
    SPARQL query parser.

    Architecture:
    1. Tokenize with pyparsing terminals (sparql_tokens)
    2. Recursive descent with an explicit nesting counter (_QueryReader)
    3. Immutable AST (sparql_ast)

    The parser keeps no per-query state, so one instance can serve any
    number of threads.

    Example:
        parser = SPARQLParser()
        ast = parser.parse("SELECT ?s ?p WHERE { ?s ?p ?o . } LIMIT 10")
        print(ast.select_clause.projections)  # (Var(name='s'), Var(name='p'))
    """

    def __init__(self, limits: Optional[ParserLimits] = None):
        self.limits = limits or ParserLimits()

    def parse(self, query_string: str) -> Query:
        """
        Parse SPARQL query string into AST.

        Args:
            query_string: SPARQL query text

        Returns:
            Query AST node

        Raises:
            LexError: Invalid character or unterminated literal/IRI
            SPARQLSyntaxError: Grammar violation
            ResourceLimitExceeded: Input, token count or nesting too large
        """
        tokens = tokenize(query_string, self.limits)
        return self.parse_tokens(tokens)

    def parse_tokens(self, tokens: Sequence[Token]) -> Query:
        """Parse an already tokenized query (must end with an EOF token)."""
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            raise ValueError("token stream must end with an EOF token")
        if len(tokens) - 1 > self.limits.max_tokens:
            raise ResourceLimitExceeded(
                "token count", len(tokens) - 1, self.limits.max_tokens, tokens[0].position
            )

        query = _QueryReader(tokens, self.limits).query()
        logger.debug(f"Parsed {query.form.value} query from {len(tokens)} tokens")
        return query


# ============================================================================
# Convenience Functions
# ============================================================================

def parse_sparql(query_string: str, limits: Optional[ParserLimits] = None) -> Query:
    """
    Convenience function to parse a SPARQL query.

    Example:
        >>> ast = parse_sparql("SELECT * WHERE { ?s ?p ?o . } LIMIT 10")
        >>> ast.modifiers.limit.value
        10
    """
    return SPARQLParser(limits).parse(query_string)
