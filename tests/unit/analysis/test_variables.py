#!/usr/bin/env python
"""
VALUES variable-group tests
"""

import pytest

from sparqlmeta.analysis import VariableGroup, VariableGroupExtractor, iter_values_clauses
from sparqlmeta.api import detect_query_outputs, detect_variables
from sparqlmeta.compiler import (
    GroupGraphPattern, Prologue, Query, QueryForm, SPARQLSyntaxError,
)


def groups(text):
    return [group.to_list() for group in detect_variables(text)]


class TestVariableGroups:
    """One group per VALUES block."""

    def test_multi_variable_block(self):
        assert groups("SELECT * WHERE { VALUES (?a ?b) { (UNDEF UNDEF) } }") == [["a", "b"]]

    def test_two_single_variable_blocks_in_order(self):
        text = "SELECT * WHERE { VALUES ?a { UNDEF } ?a ?p ?o VALUES ?b { UNDEF } }"
        assert groups(text) == [["a"], ["b"]]

    def test_no_values(self):
        assert groups("SELECT ?s WHERE { ?s ?p ?o FILTER (?o > 3) }") == []

    def test_triple_and_filter_variables_not_reported(self):
        text = "SELECT * WHERE { VALUES ?city { UNDEF } ?person ex:livesIn ?city FILTER (?age > 3) }"
        assert groups(text) == [["city"]]

    def test_blocks_with_values_also_reported(self):
        assert groups("SELECT * WHERE { VALUES ?x { <http://a> } }") == [["x"]]

    def test_recurring_names_stay_independent(self):
        text = (
            "SELECT * WHERE { VALUES ?x { UNDEF } ?x ?p ?y "
            "VALUES (?x ?y) { (UNDEF UNDEF) } }"
        )
        assert groups(text) == [["x"], ["x", "y"]]

    def test_duplicate_names_in_block_collapse(self):
        assert groups("SELECT * WHERE { VALUES (?x ?x) { (1 2) } }") == [["x"]]

    def test_example_with_empty_prefix_and_semicolon(self):
        text = "SELECT ?name ?age WHERE { VALUES ?name {UNDEF} VALUES ?age {UNDEF} ?p :name ?name ; :age ?age }"
        assert groups(text) == [["name"], ["age"]]
        assert detect_query_outputs(text) == ["name", "age"]

    def test_exists_blocks(self):
        text = (
            "SELECT ?s WHERE { VALUES ?a { UNDEF } ?s ?p ?o "
            "FILTER NOT EXISTS { VALUES ?blocked { UNDEF } ?s ex:tag ?blocked } "
            "BIND (EXISTS { VALUES ?c { UNDEF } ?s ex:c ?c } AS ?hasC) }"
        )
        assert groups(text) == [["a"], ["blocked"], ["c"]]

    def test_depth_first_document_order(self):
        text = (
            "SELECT * WHERE { VALUES ?a { UNDEF } "
            "OPTIONAL { VALUES ?b { UNDEF } } "
            "{ VALUES ?c { UNDEF } } UNION { VALUES ?d { UNDEF } } "
            "MINUS { VALUES ?m { UNDEF } } "
            "GRAPH ?g { VALUES ?e { UNDEF } } } "
            "VALUES ?f { UNDEF }"
        )
        assert groups(text) == [["a"], ["b"], ["c"], ["d"], ["m"], ["e"], ["f"]]

    def test_sub_select_blocks(self):
        text = (
            "SELECT * WHERE { { SELECT ?s WHERE { VALUES ?s { UNDEF } ?s ?p ?o } "
            "VALUES ?t { UNDEF } } }"
        )
        assert groups(text) == [["s"], ["t"]]

    def test_describe_with_nested_sub_select(self):
        text = "DESCRIBE ?s WHERE { { SELECT ?s WHERE { VALUES ?s { UNDEF } ?s ?p ?o } } }"
        assert groups(text) == [["s"]]


class TestUpdateRequests:
    """Update operations contribute their WHERE clauses."""

    def test_delete_where(self):
        assert groups("DELETE WHERE { VALUES ?s { UNDEF } ?s ?p ?o }") == [["s"]]

    def test_modify(self):
        text = (
            "DELETE { ?s ex:p ?o } INSERT { ?s ex:q ?o } "
            "WHERE { VALUES (?s ?o) { (UNDEF UNDEF) } ?s ex:p ?o }"
        )
        assert groups(text) == [["s", "o"]]

    @pytest.mark.parametrize("text", [
        "LOAD <http://example.org/data>",
        "CREATE GRAPH <http://example.org/g>",
        "INSERT DATA { <http://a> <http://b> <http://c> }",
    ])
    def test_operations_without_where(self, text):
        assert groups(text) == []


class TestVariableGroup:
    """Group container behaviour."""

    def test_container_protocol(self):
        group = VariableGroup(("a", "b"))
        assert list(group) == ["a", "b"]
        assert len(group) == 2
        assert "a" in group
        assert "c" not in group
        assert group.to_list() == ["a", "b"]

    def test_placeholders_only(self, parser):
        query = parser.parse(
            "SELECT * WHERE { VALUES ?a { UNDEF } VALUES ?b { <http://x> } }"
        )
        extracted = VariableGroupExtractor(placeholders_only=True).extract(query)
        assert extracted == [VariableGroup(("a",))]

    def test_iter_values_clauses(self, parser):
        query = parser.parse("SELECT * WHERE { VALUES ?a { UNDEF } } VALUES ?b { UNDEF }")
        assert [c.variables for c in iter_values_clauses(query)] == [("a",), ("b",)]

    def test_unknown_element_rejected(self):
        query = Query(
            prologue=Prologue(),
            form=QueryForm.SELECT,
            where_clause=GroupGraphPattern(elements=(42,)),
        )
        with pytest.raises(TypeError):
            VariableGroupExtractor().extract(query)


class TestErrors:
    """No silent fallback."""

    def test_parse_error_propagates(self):
        with pytest.raises(SPARQLSyntaxError) as exc_info:
            detect_variables("SELECT ?s WHERE { ?s ?p ?o")
        assert exc_info.value.expected == "'}'"

    def test_repeated_calls_identical(self):
        text = "SELECT * WHERE { VALUES (?a ?b) { (UNDEF UNDEF) } }"
        assert detect_variables(text) == detect_variables(text)
