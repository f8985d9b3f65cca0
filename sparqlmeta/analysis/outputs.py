"""
Query Output Extraction

Resolves the ordered list of result column names a SELECT query produces.

Rules:
1. Only the outermost SELECT contributes; sub-select projections are not
   outputs of the query.
2. ?var → "var", (expr AS ?alias) → "alias".
3. SELECT * → variables bound anywhere in the WHERE clause, in order of
   first appearance. MINUS and FILTER bind nothing.
4. Duplicates collapse to their first occurrence.

SELECT * resolution is a best-effort approximation of engine behaviour,
not an exact one.
"""

import logging
from typing import List

from ..compiler.sparql_ast import (
    Query, SelectClause, GroupGraphPattern,
    Var, Star, Aliased,
    TriplePattern, ValuesClause, FilterClause, OptionalClause, NestedGroup,
    UnionClause, MinusClause, GraphClause, ServiceClause, BindClause, SubSelect,
    triple_variables,
)

logger = logging.getLogger(__name__)


def _append_unique(names: List[str], name: str):
    if name not in names:
        names.append(name)


class OutputExtractor:
    """
    Extracts output names from a parsed query.

    Example:
        extractor = OutputExtractor()
        extractor.extract(parse_sparql("SELECT ?s (COUNT(?o) AS ?n) WHERE { ?s ?p ?o }"))
        # ['s', 'n']
    """

    def extract(self, query: Query) -> List[str]:
        if query.select_clause is None:
            return []
        return self.projection_names(query.select_clause, query.where_clause)

    def projection_names(self, select_clause: SelectClause,
                         where_clause: GroupGraphPattern) -> List[str]:
        names: List[str] = []
        for projection in select_clause.projections:
            if isinstance(projection, Star):
                for name in self.bound_variables(where_clause):
                    _append_unique(names, name)
            elif isinstance(projection, Var):
                _append_unique(names, projection.name)
            elif isinstance(projection, Aliased):
                _append_unique(names, projection.alias)
            else:
                raise TypeError(f"Unknown projection: {type(projection).__name__}")
        return names

    def bound_variables(self, pattern: GroupGraphPattern) -> List[str]:
        """Variables a group can bind, in first-appearance order."""
        names: List[str] = []
        self._collect(pattern, names)
        return names

    def _collect(self, pattern: GroupGraphPattern, names: List[str]):
        for element in pattern.elements:
            if isinstance(element, TriplePattern):
                for name in triple_variables(element):
                    _append_unique(names, name)
            elif isinstance(element, ValuesClause):
                for name in element.variables:
                    _append_unique(names, name)
            elif isinstance(element, (OptionalClause, NestedGroup, ServiceClause)):
                self._collect(element.pattern, names)
            elif isinstance(element, UnionClause):
                for alternative in element.alternatives:
                    self._collect(alternative, names)
            elif isinstance(element, GraphClause):
                if isinstance(element.graph, Var):
                    _append_unique(names, element.graph.name)
                self._collect(element.pattern, names)
            elif isinstance(element, BindClause):
                _append_unique(names, element.variable)
            elif isinstance(element, SubSelect):
                for name in self.projection_names(element.select_clause, element.where_clause):
                    _append_unique(names, name)
            elif isinstance(element, (MinusClause, FilterClause)):
                continue
            else:
                raise TypeError(f"Unknown graph pattern element: {type(element).__name__}")


def extract_outputs(query: Query) -> List[str]:
    """Output names of a parsed query; [] for non-SELECT forms."""
    outputs = OutputExtractor().extract(query)
    logger.debug(f"Detected {len(outputs)} outputs for {query.form.value} query")
    return outputs
