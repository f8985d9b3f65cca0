"""
sparqlmeta Query Analysis

Metadata extracted from parsed queries:
- Output column names (outputs)
- VALUES variable groups (variables)
- Parameter slots: placeholder VALUES blocks, LIMIT/OFFSET (parameters)
- Binding substitution into placeholder VALUES rows (bindings)
"""

from .outputs import OutputExtractor, extract_outputs
from .variables import (
    VariableGroup,
    VariableGroupExtractor,
    extract_variable_groups,
    iter_values_clauses,
)
from .parameters import DetectedParameters, extract_parameters, is_slice_placeholder
from .bindings import (
    BindingError,
    BindingSet,
    load_binding_sets,
    render_binding_value,
    render_values_clause,
    substitute_bindings,
)

__all__ = [
    'OutputExtractor',
    'extract_outputs',
    'VariableGroup',
    'VariableGroupExtractor',
    'extract_variable_groups',
    'iter_values_clauses',
    'DetectedParameters',
    'extract_parameters',
    'is_slice_placeholder',
    'BindingError',
    'BindingSet',
    'load_binding_sets',
    'render_binding_value',
    'render_values_clause',
    'substitute_bindings',
]
