"""
VALUES Variable-Group Extraction

Each VALUES block in a query declares variables that must be supplied
together. Blocks are collected depth-first in document order: WHERE
clause (nested groups, OPTIONAL, UNION, MINUS, GRAPH, SERVICE and
sub-selects with their trailing VALUES), then the query's own trailing
VALUES block. Update requests contribute the WHERE clause of each
operation in turn.

Variables that only occur in triple patterns or FILTER expressions are
never reported, and a name recurring across blocks yields independent
groups.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from ..compiler.sparql_ast import (
    Query, GroupGraphPattern,
    TriplePattern, ValuesClause, FilterClause, OptionalClause, NestedGroup,
    UnionClause, MinusClause, GraphClause, ServiceClause, BindClause, SubSelect,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariableGroup:
    """
    Ordered set of variable names declared by one VALUES block.

    Example:
        VALUES (?a ?b) { (UNDEF UNDEF) } → VariableGroup(("a", "b"))
    """
    variables: Tuple[str, ...]

    @classmethod
    def from_values(cls, clause: ValuesClause) -> "VariableGroup":
        names: List[str] = []
        for name in clause.variables:
            if name not in names:
                names.append(name)
        return cls(tuple(names))

    def __iter__(self):
        return iter(self.variables)

    def __len__(self):
        return len(self.variables)

    def __contains__(self, name):
        return name in self.variables

    def to_list(self) -> List[str]:
        return list(self.variables)


def iter_values_clauses(query: Query) -> Iterator[ValuesClause]:
    """Yield every VALUES block of a query in document order."""
    if query.where_clause is not None:
        yield from _walk(query.where_clause)
    if query.values_clause is not None:
        yield query.values_clause
    for operation in query.operations:
        if operation.where_clause is not None:
            yield from _walk(operation.where_clause)


def _walk(pattern: GroupGraphPattern) -> Iterator[ValuesClause]:
    for element in pattern.elements:
        if isinstance(element, ValuesClause):
            yield element
        elif isinstance(element, (OptionalClause, NestedGroup, MinusClause,
                                  GraphClause, ServiceClause)):
            yield from _walk(element.pattern)
        elif isinstance(element, UnionClause):
            for alternative in element.alternatives:
                yield from _walk(alternative)
        elif isinstance(element, SubSelect):
            yield from _walk(element.where_clause)
            if element.values_clause is not None:
                yield element.values_clause
        elif isinstance(element, (FilterClause, BindClause)):
            for exists_pattern in element.expression.patterns:
                yield from _walk(exists_pattern)
        elif isinstance(element, TriplePattern):
            continue
        else:
            raise TypeError(f"Unknown graph pattern element: {type(element).__name__}")


class VariableGroupExtractor:
    """
    Collects one VariableGroup per VALUES block.

    With ``placeholders_only`` set, only blocks holding a row where every
    value is UNDEF (a parameter slot) are reported.
    """

    def __init__(self, placeholders_only: bool = False):
        self.placeholders_only = placeholders_only

    def extract(self, query: Query) -> List[VariableGroup]:
        groups = [
            VariableGroup.from_values(clause)
            for clause in iter_values_clauses(query)
            if not self.placeholders_only or clause.has_undef_row()
        ]
        logger.debug(f"Detected {len(groups)} VALUES variable groups")
        return groups


def extract_variable_groups(query: Query) -> List[VariableGroup]:
    return VariableGroupExtractor().extract(query)
