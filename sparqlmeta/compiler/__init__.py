"""
sparqlmeta Query Compiler

Front end for SPARQL query text.

This module provides:
- Tokenizer built from pyparsing terminals
- Recursive-descent SPARQL parser with resource limits
- AST node definitions
- ParseError taxonomy
"""

from .sparql_errors import (
    ParseErrorKind,
    Position,
    ParseError,
    LexError,
    SPARQLSyntaxError,
    ResourceLimitExceeded,
)

from .sparql_tokens import Token, TokenKind, tokenize

from .sparql_ast import (
    # RDF Terms
    Var,
    IRI,
    PrefixedName,
    Literal,
    BlankNode,
    Undef,
    UNDEF,
    PropertyPath,
    BlankNodePropertyList,
    Collection,
    # Expressions and projections
    Expression,
    Star,
    Aliased,
    # Graph patterns
    TriplePattern,
    ValuesClause,
    FilterClause,
    GroupGraphPattern,
    OptionalClause,
    NestedGroup,
    UnionClause,
    MinusClause,
    GraphClause,
    ServiceClause,
    BindClause,
    SubSelect,
    # Query clauses
    PrefixDecl,
    Prologue,
    SelectClause,
    OrderCondition,
    SliceClause,
    SolutionModifier,
    UpdateOperation,
    # Top-level
    QueryForm,
    Query,
)

from .sparql_parser import SPARQLParser, parse_sparql

__all__ = [
    # Errors
    'ParseErrorKind',
    'Position',
    'ParseError',
    'LexError',
    'SPARQLSyntaxError',
    'ResourceLimitExceeded',
    # Tokens
    'Token',
    'TokenKind',
    'tokenize',
    # AST nodes
    'Var',
    'IRI',
    'PrefixedName',
    'Literal',
    'BlankNode',
    'Undef',
    'UNDEF',
    'PropertyPath',
    'BlankNodePropertyList',
    'Collection',
    'Expression',
    'Star',
    'Aliased',
    'TriplePattern',
    'ValuesClause',
    'FilterClause',
    'GroupGraphPattern',
    'OptionalClause',
    'NestedGroup',
    'UnionClause',
    'MinusClause',
    'GraphClause',
    'ServiceClause',
    'BindClause',
    'SubSelect',
    'PrefixDecl',
    'Prologue',
    'SelectClause',
    'OrderCondition',
    'SliceClause',
    'SolutionModifier',
    'UpdateOperation',
    'QueryForm',
    'Query',
    # Parser
    'SPARQLParser',
    'parse_sparql',
]
