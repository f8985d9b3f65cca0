"""
sparqlmeta - SPARQL query metadata extraction

Parses stored SPARQL queries and reports what a tool needs to run them:
output column names, VALUES parameter groups, LIMIT/OFFSET placeholders,
and placeholder substitution from SPARQL JSON bindings.
"""

__version__ = "0.1.0"

from .api import (
    parse_query,
    detect_variables,
    detect_query_outputs,
    detect_parameters,
    apply_bindings,
    QueryAnalyzer,
)
from .analysis import BindingError, DetectedParameters, VariableGroup
from .compiler import (
    ParseError,
    ParseErrorKind,
    LexError,
    SPARQLSyntaxError,
    ResourceLimitExceeded,
    Query,
)
from .config import AnalyzerConfig, ParserLimits, get_config, init_config

__all__ = [
    '__version__',
    'parse_query',
    'detect_variables',
    'detect_query_outputs',
    'detect_parameters',
    'apply_bindings',
    'QueryAnalyzer',
    'BindingError',
    'DetectedParameters',
    'VariableGroup',
    'ParseError',
    'ParseErrorKind',
    'LexError',
    'SPARQLSyntaxError',
    'ResourceLimitExceeded',
    'Query',
    'AnalyzerConfig',
    'ParserLimits',
    'get_config',
    'init_config',
]
