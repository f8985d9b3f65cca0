"""
SPARQL AST Node Definitions

Abstract Syntax Tree produced by SPARQLParser and consumed by the
output and variable-group extractors.

Nodes are frozen dataclasses with tuples for sequences, so a parsed query
can be handed to any number of readers without being mutated.

Graph pattern elements form a closed set (see GraphPatternElement);
walkers dispatch on it with isinstance and reject anything else.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union


RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
XSD = "http://www.w3.org/2001/XMLSchema#"


# ============================================================================
# RDF Terms
# ============================================================================

@dataclass(frozen=True)
class Var:
    """
    SPARQL variable, stored without its sigil.

    Examples:
        ?person → Var("person")
        $x      → Var("x")
    """
    name: str

    def to_sparql(self) -> str:
        return f"?{self.name}"


@dataclass(frozen=True)
class IRI:
    """Absolute or relative IRI reference, without < >."""
    value: str

    def to_sparql(self) -> str:
        return f"<{self.value}>"


@dataclass(frozen=True)
class PrefixedName:
    """
    Prefixed name, left unexpanded.

    Example:
        foaf:name → PrefixedName(prefix="foaf", local="name")
    """
    prefix: str
    local: str

    def to_sparql(self) -> str:
        return f"{self.prefix}:{self.local}"


@dataclass(frozen=True)
class Literal:
    """
    RDF literal.

    ``lexical`` is the literal exactly as written in the query;
    ``value`` is the unquoted lexical form.

    Examples:
        "Alice"@en → value="Alice", language="en"
        42         → value="42", datatype=xsd:integer
    """
    lexical: str
    value: str
    language: Optional[str] = None
    datatype: Optional[str] = None

    def to_sparql(self) -> str:
        return self.lexical


@dataclass(frozen=True)
class BlankNode:
    """Blank node; ``label`` is None for ``[]``."""
    label: Optional[str] = None

    def to_sparql(self) -> str:
        return f"_:{self.label}" if self.label else "[]"


@dataclass(frozen=True)
class Undef:
    """UNDEF placeholder in a VALUES row."""

    def to_sparql(self) -> str:
        return "UNDEF"


UNDEF = Undef()


@dataclass(frozen=True)
class PropertyPath:
    """Property path predicate (sequence, alternative, inverse, modifiers)."""
    text: str


@dataclass(frozen=True)
class BlankNodePropertyList:
    """
    Anonymous node with its own predicate-object list.

    Example:
        [ foaf:name ?name ] → triples with subject BlankNode()
    """
    triples: Tuple["TriplePattern", ...]


@dataclass(frozen=True)
class Collection:
    """RDF collection ``( item ... )`` used as a triple term."""
    items: Tuple["Term", ...]


Term = Union[Var, IRI, PrefixedName, Literal, BlankNode,
             BlankNodePropertyList, Collection, PropertyPath]
DataValue = Union[IRI, PrefixedName, Literal, Undef]


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class Expression:
    """
    Unevaluated expression body.

    Only the token text and referenced variable names are kept; the
    expression grammar is never interpreted. The group patterns of any
    EXISTS or NOT EXISTS inside the expression are parsed and kept in
    ``patterns``, in document order.

    Example:
        COUNT(DISTINCT ?s) → text="COUNT ( DISTINCT ?s )", variables=("s",)
    """
    text: str
    variables: Tuple[str, ...] = ()
    patterns: Tuple["GroupGraphPattern", ...] = ()


# ============================================================================
# Projections
# ============================================================================

@dataclass(frozen=True)
class Star:
    """SELECT *"""


@dataclass(frozen=True)
class Aliased:
    """
    Projected expression.

    Example:
        (COUNT(?s) AS ?count) → alias="count"
    """
    expression: Expression
    alias: str


Projection = Union[Var, Star, Aliased]


# ============================================================================
# Graph Patterns
# ============================================================================

@dataclass(frozen=True)
class TriplePattern:
    """
    Single triple pattern.

    Example:
        ?person a foaf:Person
        → subject=Var("person"), predicate=IRI(rdf:type),
          object=PrefixedName("foaf", "Person")
    """
    subject: Term
    predicate: Term
    object: Term


@dataclass(frozen=True)
class ValuesClause:
    """
    Inline data block.

    Example:
        VALUES (?a ?b) { (UNDEF UNDEF) (<x> "y") }
        → variables=("a", "b"), rows=((UNDEF, UNDEF), (IRI("x"), Literal(...)))

    ``span`` holds the source offsets of the whole block, from the VALUES
    keyword to one past the closing brace.
    """
    variables: Tuple[str, ...]
    rows: Tuple[Tuple[DataValue, ...], ...]
    span: Tuple[int, int] = (0, 0)

    def has_undef_row(self) -> bool:
        """True if some row leaves every variable UNDEF."""
        return any(row and all(isinstance(v, Undef) for v in row) for row in self.rows)


@dataclass(frozen=True)
class FilterClause:
    """FILTER constraint; the body is scanned for variables only."""
    expression: Expression


@dataclass(frozen=True)
class GroupGraphPattern:
    """``{ ... }`` group: an ordered list of pattern elements."""
    elements: Tuple["GraphPatternElement", ...] = ()


@dataclass(frozen=True)
class OptionalClause:
    pattern: GroupGraphPattern


@dataclass(frozen=True)
class NestedGroup:
    pattern: GroupGraphPattern


@dataclass(frozen=True)
class UnionClause:
    """``{ ... } UNION { ... } [UNION ...]``"""
    alternatives: Tuple[GroupGraphPattern, ...]


@dataclass(frozen=True)
class MinusClause:
    pattern: GroupGraphPattern


@dataclass(frozen=True)
class GraphClause:
    """``GRAPH ?g { ... }`` or ``GRAPH <iri> { ... }``"""
    graph: Term
    pattern: GroupGraphPattern


@dataclass(frozen=True)
class ServiceClause:
    endpoint: Term
    pattern: GroupGraphPattern
    silent: bool = False


@dataclass(frozen=True)
class BindClause:
    """``BIND (expr AS ?var)``"""
    expression: Expression
    variable: str


@dataclass(frozen=True)
class SubSelect:
    """Nested ``{ SELECT ... WHERE { ... } }`` query."""
    select_clause: "SelectClause"
    where_clause: GroupGraphPattern
    modifiers: "SolutionModifier"
    values_clause: Optional[ValuesClause] = None


GraphPatternElement = Union[
    TriplePattern, ValuesClause, FilterClause, OptionalClause, NestedGroup,
    UnionClause, MinusClause, GraphClause, ServiceClause, BindClause, SubSelect,
]


# ============================================================================
# Query Clauses
# ============================================================================

@dataclass(frozen=True)
class PrefixDecl:
    prefix: str
    iri: str


@dataclass(frozen=True)
class Prologue:
    """BASE and PREFIX declarations."""
    base: Optional[str] = None
    prefixes: Tuple[PrefixDecl, ...] = ()

    def prefix_map(self) -> Dict[str, str]:
        """Prefix → namespace IRI; later declarations win."""
        return {decl.prefix: decl.iri for decl in self.prefixes}


@dataclass(frozen=True)
class SelectClause:
    """
    SELECT clause with projections in declared order.

    Examples:
        SELECT *                         → (Star(),)
        SELECT DISTINCT ?person          → (Var("person"),), distinct=True
        SELECT (COUNT(?s) AS ?n)         → (Aliased(..., "n"),)
    """
    projections: Tuple[Projection, ...]
    distinct: bool = False
    reduced: bool = False


@dataclass(frozen=True)
class OrderCondition:
    expression: Expression
    descending: bool = False


@dataclass(frozen=True)
class SliceClause:
    """
    LIMIT or OFFSET as written.

    Example:
        limit 00015 → keyword="limit", lexical="00015", value=15
    """
    keyword: str
    lexical: str
    value: int

    @property
    def text(self) -> str:
        return f"{self.keyword} {self.lexical}"


@dataclass(frozen=True)
class SolutionModifier:
    """GROUP BY, HAVING, ORDER BY, LIMIT and OFFSET."""
    group_by: Tuple[Expression, ...] = ()
    having: Tuple[Expression, ...] = ()
    order_by: Tuple[OrderCondition, ...] = ()
    limit: Optional[SliceClause] = None
    offset: Optional[SliceClause] = None


class QueryForm(Enum):
    SELECT = "SELECT"
    ASK = "ASK"
    CONSTRUCT = "CONSTRUCT"
    DESCRIBE = "DESCRIBE"
    UPDATE = "UPDATE"


@dataclass(frozen=True)
class UpdateOperation:
    """
    One operation of an update request.

    ``operation`` is the leading keyword sequence, e.g. "INSERT DATA",
    "DELETE WHERE", "MODIFY", "LOAD".
    """
    operation: str
    where_clause: Optional[GroupGraphPattern] = None
    delete_template: Optional[GroupGraphPattern] = None
    insert_template: Optional[GroupGraphPattern] = None


# ============================================================================
# Top-Level Query
# ============================================================================

@dataclass(frozen=True)
class Query:
    """
    Parsed SPARQL request.

    ``select_clause`` is None for every form other than SELECT;
    update requests carry their operations instead of a WHERE clause.
    """
    prologue: Prologue
    form: QueryForm
    select_clause: Optional[SelectClause] = None
    where_clause: Optional[GroupGraphPattern] = None
    modifiers: SolutionModifier = field(default_factory=SolutionModifier)
    values_clause: Optional[ValuesClause] = None
    operations: Tuple[UpdateOperation, ...] = ()

    def __str__(self):
        parts = [self.form.value]
        if self.select_clause is not None:
            if self.select_clause.distinct:
                parts.append("DISTINCT")
            if any(isinstance(p, Star) for p in self.select_clause.projections):
                parts.append("*")
            else:
                parts.append(f"{len(self.select_clause.projections)} projections")
        if self.where_clause is not None:
            parts.append(f"WHERE ({len(self.where_clause.elements)} elements)")
        if self.operations:
            parts.append(f"{len(self.operations)} operations")
        if self.modifiers.limit:
            parts.append(f"LIMIT {self.modifiers.limit.value}")
        return f"Query({' '.join(parts)})"


# ============================================================================
# Utility Functions
# ============================================================================

def is_variable(term) -> bool:
    """Check if term is a variable."""
    return isinstance(term, Var)


def term_variables(term) -> Iterator[str]:
    """Yield variable names in a triple term, in document order."""
    if isinstance(term, Var):
        yield term.name
    elif isinstance(term, BlankNodePropertyList):
        for triple in term.triples:
            yield from triple_variables(triple)
    elif isinstance(term, Collection):
        for item in term.items:
            yield from term_variables(item)


def triple_variables(triple: TriplePattern) -> Iterator[str]:
    """Yield subject, predicate and object variables in that order."""
    yield from term_variables(triple.subject)
    yield from term_variables(triple.predicate)
    yield from term_variables(triple.object)
