"""
Parameter Slot Detection

A stored query marks the places a caller fills in:

- VALUES blocks with a row of all UNDEF, e.g. VALUES ?city { UNDEF }
- LIMIT/OFFSET values written with three leading zeros, e.g. LIMIT 00010

Only the top-level LIMIT and OFFSET are considered.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..compiler.sparql_ast import Query, SliceClause
from .variables import VariableGroup, VariableGroupExtractor

logger = logging.getLogger(__name__)


# Three zeros then at least one more digit
_SLICE_PLACEHOLDER = re.compile(r"^000\d+$")


@dataclass
class DetectedParameters:
    """Parameter slots of one query."""
    values_parameters: List[VariableGroup] = field(default_factory=list)
    limit_parameters: List[str] = field(default_factory=list)
    offset_parameters: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.values_parameters or self.limit_parameters or self.offset_parameters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'values_parameters': [group.to_list() for group in self.values_parameters],
            'limit_parameters': list(self.limit_parameters),
            'offset_parameters': list(self.offset_parameters),
        }


def is_slice_placeholder(clause: Optional[SliceClause]) -> bool:
    """
    Check whether a LIMIT/OFFSET clause is a placeholder.

    Examples:
        LIMIT 00010 → True
        LIMIT 005   → False
        LIMIT 10    → False
    """
    return clause is not None and _SLICE_PLACEHOLDER.match(clause.lexical) is not None


def extract_parameters(query: Query) -> DetectedParameters:
    detected = DetectedParameters(
        values_parameters=VariableGroupExtractor(placeholders_only=True).extract(query),
    )
    if is_slice_placeholder(query.modifiers.limit):
        detected.limit_parameters.append(query.modifiers.limit.text)
    if is_slice_placeholder(query.modifiers.offset):
        detected.offset_parameters.append(query.modifiers.offset.text)

    logger.debug(
        f"Detected parameters: {len(detected.values_parameters)} VALUES groups, "
        f"{len(detected.limit_parameters)} LIMIT, {len(detected.offset_parameters)} OFFSET"
    )
    return detected
