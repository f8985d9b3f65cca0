#!/usr/bin/env python
"""
Parameter slot detection tests

VALUES placeholders and LIMIT/OFFSET 000N placeholders.
"""

import pytest

from sparqlmeta.analysis import DetectedParameters, VariableGroup, is_slice_placeholder
from sparqlmeta.api import detect_parameters
from sparqlmeta.compiler import SPARQLSyntaxError, SliceClause


BASE = "SELECT ?s WHERE { ?s ?p ?o }"


class TestSlicePlaceholders:
    """LIMIT/OFFSET values written with three leading zeros."""

    @pytest.mark.parametrize("suffix, expected", [
        ("LIMIT 00010", ["LIMIT 00010"]),
        ("limit 00015", ["limit 00015"]),
        ("LIMIT 0001", ["LIMIT 0001"]),
        ("LIMIT 005", []),
        ("LIMIT 10", []),
        ("LIMIT 000", []),
        ("", []),
    ])
    def test_limit(self, suffix, expected):
        assert detect_parameters(f"{BASE} {suffix}").limit_parameters == expected

    def test_offset(self):
        detected = detect_parameters(f"{BASE} LIMIT 00010 OFFSET 0005")
        assert detected.limit_parameters == ["LIMIT 00010"]
        assert detected.offset_parameters == ["OFFSET 0005"]

    def test_offset_not_placeholder(self):
        assert detect_parameters(f"{BASE} OFFSET 20").offset_parameters == []

    def test_sub_select_limit_ignored(self):
        text = "SELECT ?s WHERE { { SELECT ?s WHERE { ?s ?p ?o } LIMIT 00010 } }"
        assert detect_parameters(text).limit_parameters == []

    def test_duplicate_limit_is_error(self):
        with pytest.raises(SPARQLSyntaxError):
            detect_parameters(f"{BASE} LIMIT 00010 LIMIT 00020")

    def test_is_slice_placeholder(self):
        assert is_slice_placeholder(SliceClause("LIMIT", "00010", 10))
        assert not is_slice_placeholder(SliceClause("LIMIT", "0010", 10))
        assert not is_slice_placeholder(None)


class TestValuesPlaceholders:
    """Only blocks with an all-UNDEF row are parameters."""

    def test_undef_block_reported(self, people_query):
        detected = detect_parameters(people_query)
        assert detected.values_parameters == [VariableGroup(("person",))]
        assert detected.limit_parameters == ["LIMIT 00010"]

    def test_bound_block_ignored(self):
        text = "SELECT * WHERE { VALUES ?a { UNDEF } VALUES ?b { <http://x> } }"
        assert detect_parameters(text).values_parameters == [VariableGroup(("a",))]

    def test_partially_undef_row_ignored(self):
        text = "SELECT * WHERE { VALUES (?a ?b) { (UNDEF <http://x>) } }"
        assert detect_parameters(text).values_parameters == []

    def test_undef_row_among_bound_rows(self):
        text = "SELECT * WHERE { VALUES (?a ?b) { (<http://x> 1) (UNDEF UNDEF) } }"
        assert detect_parameters(text).values_parameters == [VariableGroup(("a", "b"))]

    def test_exists_block(self):
        text = "SELECT ?s WHERE { ?s ?p ?o FILTER EXISTS { VALUES ?tag { UNDEF } ?s ex:tag ?tag } }"
        assert detect_parameters(text).values_parameters == [VariableGroup(("tag",))]

    def test_update_where(self):
        text = "DELETE WHERE { VALUES ?s { UNDEF } ?s ?p ?o }"
        assert detect_parameters(text).values_parameters == [VariableGroup(("s",))]


class TestDetectedParameters:
    """Result container."""

    def test_empty(self):
        detected = detect_parameters(BASE)
        assert detected.is_empty()
        assert detected == DetectedParameters()

    def test_to_dict(self, people_query):
        assert detect_parameters(people_query).to_dict() == {
            "values_parameters": [["person"]],
            "limit_parameters": ["LIMIT 00010"],
            "offset_parameters": [],
        }
