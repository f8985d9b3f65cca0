"""
Binding Substitution

Fills VALUES placeholder rows (rows where every value is UNDEF) with
caller-supplied bindings and returns the rewritten query text.

Accepted binding documents:

    SPARQL JSON results
        {"head": {"vars": ["city"]},
         "results": {"bindings": [{"city": {"type": "uri", "value": "..."}}]}}

    Argument sets
        {"head": {"vars": ["city"]},
         "arguments": {"bindings": [...]}}     (or "arguments": [...])

Argument sets without head.vars take their variables from the first row.

Only the text of rewritten VALUES blocks changes; everything else in the
query is kept byte for byte.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..compiler.sparql_ast import Query, Undef, ValuesClause
from .variables import VariableGroup, iter_values_clauses

logger = logging.getLogger(__name__)


BindingDocument = Mapping
Bindings = Union[BindingDocument, Sequence[BindingDocument]]


class BindingError(ValueError):
    """Binding value that cannot appear in a VALUES block."""


_IRI_PATTERN = re.compile(r'[^<>"{}|^`\\\x00-\x20]*')
_LANGUAGE_TAG = re.compile(r'[A-Za-z]+(?:-[A-Za-z0-9]+)*')


@dataclass
class BindingSet:
    """Variables and rows taken from one binding document."""
    variables: List[str]
    rows: List[Dict[str, Any]]

    def covers(self, group: VariableGroup) -> bool:
        return all(name in self.variables for name in group)


# ============================================================================
# Binding documents
# ============================================================================

def _document_rows(document: BindingDocument) -> Optional[list]:
    results = document.get('results')
    if isinstance(results, Mapping) and isinstance(results.get('bindings'), list):
        return results['bindings']

    arguments = document.get('arguments')
    if isinstance(arguments, Mapping) and isinstance(arguments.get('bindings'), list):
        return arguments['bindings']
    if isinstance(arguments, list):
        return arguments
    return None


def load_binding_sets(bindings: Bindings) -> List[BindingSet]:
    """
    Normalize one or more binding documents.

    Malformed documents are skipped with a warning.
    """
    if isinstance(bindings, Mapping):
        documents = [bindings]
    else:
        documents = list(bindings)

    binding_sets = []
    for index, document in enumerate(documents):
        if not isinstance(document, Mapping):
            logger.warning(f"Skipping binding document {index}: not a JSON object")
            continue

        rows = _document_rows(document)
        if rows is None:
            logger.warning(
                f"Skipping binding document {index}: no results.bindings or arguments"
            )
            continue
        if not all(isinstance(row, Mapping) for row in rows):
            logger.warning(f"Skipping binding document {index}: rows must be JSON objects")
            continue

        head = document.get('head')
        variables = head.get('vars') if isinstance(head, Mapping) else None
        if variables is None and 'arguments' in document:
            variables = list(rows[0].keys()) if rows else []
        if not isinstance(variables, list) or not all(isinstance(v, str) for v in variables):
            logger.warning(f"Skipping binding document {index}: head.vars missing or invalid")
            continue

        binding_sets.append(BindingSet(variables=variables, rows=[dict(row) for row in rows]))
    return binding_sets


# ============================================================================
# Rendering
# ============================================================================

def _escape_string(value: str) -> str:
    return (value.replace('\\', '\\\\')
                 .replace('"', '\\"')
                 .replace('\n', '\\n')
                 .replace('\r', '\\r')
                 .replace('\t', '\\t'))


def _render_iri(variable: str, iri: str) -> str:
    if not _IRI_PATTERN.fullmatch(iri):
        raise BindingError(f"Invalid IRI for variable {variable}: {iri!r}")
    return f"<{iri}>"


def render_binding_value(variable: str, binding: Any) -> str:
    """
    Render one SPARQL JSON term for a VALUES row.

    Examples:
        {"type": "uri", "value": "http://x"}                  → <http://x>
        {"type": "literal", "value": "a", "xml:lang": "en"}   → "a"@en
        missing                                               → UNDEF

    Raises:
        BindingError: Blank node, or an IRI, datatype or language tag that
            would not stay inside a single VALUES term
    """
    if not binding:
        return "UNDEF"
    if not isinstance(binding, Mapping):
        logger.warning(f"Unsupported binding for variable {variable}: {binding!r}")
        return "UNDEF"

    kind = binding.get('type')
    value = binding.get('value')

    if kind == 'bnode':
        raise BindingError(f"Illegal binding type in VALUES: 'bnode' for variable {variable}")
    if value is None:
        logger.warning(f"Binding for variable {variable} has no value")
        return "UNDEF"

    if kind == 'uri':
        return _render_iri(variable, str(value))
    if kind in ('literal', 'typed-literal'):
        rendered = f'"{_escape_string(str(value))}"'
        language = binding.get('xml:lang')
        if language:
            if not _LANGUAGE_TAG.fullmatch(str(language)):
                raise BindingError(f"Invalid language tag for variable {variable}: {language!r}")
            return f"{rendered}@{language}"
        if binding.get('datatype'):
            return f"{rendered}^^{_render_iri(variable, str(binding['datatype']))}"
        return rendered

    logger.warning(f"Unsupported binding type in VALUES: {kind} for variable {variable}")
    return "UNDEF"


def render_values_clause(clause: ValuesClause, binding_rows: List[Dict[str, Any]]) -> str:
    """
    Rebuild a VALUES block without its all-UNDEF rows, plus one row per binding.

    The declared variable list is kept as written, repeated names included,
    so existing rows still line up with the header.
    """
    variables = clause.variables

    rows: List[List[str]] = [
        [value.to_sparql() for value in row]
        for row in clause.rows
        if not (row and all(isinstance(value, Undef) for value in row))
    ]
    for binding in binding_rows:
        rows.append([render_binding_value(name, binding.get(name)) for name in variables])

    if len(variables) == 1:
        body = " ".join(row[0] for row in rows)
        return f"VALUES ?{variables[0]} {{ {body} }}"

    header = " ".join(f"?{name}" for name in variables)
    body = " ".join(f"({' '.join(row)})" for row in rows)
    return f"VALUES ({header}) {{ {body} }}"


# ============================================================================
# Substitution
# ============================================================================

def substitute_bindings(text: str, query: Query, bindings: Bindings) -> str:
    """
    Rewrite placeholder VALUES blocks of an already parsed query.

    Args:
        text: Query text ``query`` was parsed from
        query: Parsed query
        bindings: One binding document or a list of them

    Returns:
        Rewritten query text

    Raises:
        BindingError: A binding row holds a blank node or a value that
            cannot be written as a single VALUES term
    """
    binding_sets = load_binding_sets(bindings)
    edits: List[Tuple[Tuple[int, int], str]] = []

    for clause in iter_values_clauses(query):
        if not clause.has_undef_row():
            continue
        group = VariableGroup.from_values(clause)
        chosen = next((s for s in binding_sets if s.rows and s.covers(group)), None)
        if chosen is None:
            logger.info(f"No bindings cover VALUES variables {group.to_list()}")
            continue
        edits.append((clause.span, render_values_clause(clause, chosen.rows)))

    # Right to left so earlier spans stay valid
    for (start, end), replacement in sorted(edits, reverse=True):
        text = text[:start] + replacement + text[end:]

    logger.debug(f"Rewrote {len(edits)} VALUES blocks")
    return text
