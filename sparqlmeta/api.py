"""
sparqlmeta API

Text-in, metadata-out entry points. Every call parses the query afresh
and raises a ParseError subclass on invalid input; nothing is cached or
shared between calls.

Usage:
    from sparqlmeta import detect_query_outputs, detect_variables

    detect_query_outputs("SELECT ?s (COUNT(?o) AS ?n) WHERE { ?s ?p ?o } GROUP BY ?s")
    # ['s', 'n']

    [g.to_list() for g in detect_variables("SELECT * WHERE { VALUES (?a ?b) { (UNDEF UNDEF) } }")]
    # [['a', 'b']]
"""

import logging
from typing import List, Optional

from .analysis import (
    DetectedParameters,
    VariableGroup,
    extract_outputs,
    extract_parameters,
    extract_variable_groups,
    substitute_bindings,
)
from .analysis.bindings import Bindings
from .compiler import Query, SPARQLParser
from .config import AnalyzerConfig, ParserLimits

logger = logging.getLogger(__name__)


def parse_query(text: str, limits: Optional[ParserLimits] = None) -> Query:
    """
    Parse SPARQL text into a Query AST.

    Raises:
        ParseError: LexError, SPARQLSyntaxError or ResourceLimitExceeded
    """
    return SPARQLParser(limits).parse(text)


def detect_variables(text: str, limits: Optional[ParserLimits] = None) -> List[VariableGroup]:
    """One VariableGroup per VALUES block, in document order."""
    return extract_variable_groups(parse_query(text, limits))


def detect_query_outputs(text: str, limits: Optional[ParserLimits] = None) -> List[str]:
    """Ordered output names of a SELECT query; [] for other query forms."""
    return extract_outputs(parse_query(text, limits))


def detect_parameters(text: str, limits: Optional[ParserLimits] = None) -> DetectedParameters:
    """Placeholder VALUES groups and LIMIT/OFFSET placeholder slots."""
    return extract_parameters(parse_query(text, limits))


def apply_bindings(text: str, bindings: Bindings,
                   limits: Optional[ParserLimits] = None) -> str:
    """
    Substitute bindings into placeholder VALUES rows.

    Raises:
        ParseError: The query text does not parse
        BindingError: A binding holds a blank node
    """
    return substitute_bindings(text, parse_query(text, limits), bindings)


class QueryAnalyzer:
    """
    Analysis operations sharing one configuration.

    Example:
        analyzer = QueryAnalyzer()
        analyzer.outputs("SELECT ?x WHERE { ?x ?p ?o }")  # ['x']
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()
        self.parser = SPARQLParser(self.config.limits)

    @property
    def limits(self) -> ParserLimits:
        return self.config.limits

    def parse(self, text: str) -> Query:
        return self.parser.parse(text)

    def outputs(self, text: str) -> List[str]:
        return extract_outputs(self.parse(text))

    def variables(self, text: str) -> List[VariableGroup]:
        return extract_variable_groups(self.parse(text))

    def parameters(self, text: str) -> DetectedParameters:
        return extract_parameters(self.parse(text))

    def bind(self, text: str, bindings: Bindings) -> str:
        return substitute_bindings(text, self.parse(text), bindings)
