#!/usr/bin/env python
"""
CLI tests

Runs the typer application in-process with CliRunner.
"""

import json

import orjson
import pytest
from typer.testing import CliRunner

from sparqlmeta import __version__
from sparqlmeta.cli import app


@pytest.fixture
def runner():
    return CliRunner()


class TestVersion:

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestOutputsCommand:

    def test_json(self, runner, query_file):
        path = query_file("SELECT (COUNT(?s) AS ?count) WHERE { ?s ?p ?o }")
        result = runner.invoke(app, ["outputs", str(path), "--json"])
        assert result.exit_code == 0
        assert orjson.loads(result.output) == ["count"]

    def test_table(self, runner, query_file):
        path = query_file("SELECT ?s ?p WHERE { ?s ?p ?o }")
        result = runner.invoke(app, ["outputs", str(path)])
        assert result.exit_code == 0
        assert "Query Outputs" in result.output

    def test_stdin(self, runner):
        result = runner.invoke(app, ["outputs", "-", "--json"], input="SELECT * WHERE { ?s ?p ?o }")
        assert result.exit_code == 0
        assert orjson.loads(result.output) == ["s", "p", "o"]

    def test_syntax_error(self, runner, query_file):
        path = query_file("SELECT ?s WHERE { ?s ?p ?o")
        result = runner.invoke(app, ["outputs", str(path)])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["outputs", str(tmp_path / "absent.rq")])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestVariablesCommand:

    def test_json(self, runner, query_file):
        path = query_file("SELECT * WHERE { VALUES (?a ?b) { (UNDEF UNDEF) } VALUES ?c { UNDEF } }")
        result = runner.invoke(app, ["variables", str(path), "--json"])
        assert result.exit_code == 0
        assert orjson.loads(result.output) == [["a", "b"], ["c"]]

    def test_table(self, runner, query_file):
        path = query_file("SELECT * WHERE { VALUES ?city { UNDEF } }")
        result = runner.invoke(app, ["variables", str(path)])
        assert result.exit_code == 0
        assert "?city" in result.output


class TestParametersCommand:

    def test_json(self, runner, query_file, people_query):
        path = query_file(people_query)
        result = runner.invoke(app, ["parameters", str(path), "--json"])
        assert result.exit_code == 0
        assert orjson.loads(result.output) == {
            "values_parameters": [["person"]],
            "limit_parameters": ["LIMIT 00010"],
            "offset_parameters": [],
        }

    def test_table(self, runner, query_file, people_query):
        result = runner.invoke(app, ["parameters", str(query_file(people_query))])
        assert result.exit_code == 0
        assert "LIMIT 00010" in result.output


class TestBindCommand:

    def test_bind(self, runner, query_file, tmp_path, people_query, person_bindings):
        bindings_path = tmp_path / "bindings.json"
        bindings_path.write_text(json.dumps(person_bindings))
        result = runner.invoke(app, ["bind", str(query_file(people_query)), "-b", str(bindings_path)])
        assert result.exit_code == 0
        assert "VALUES ?person { <http://example.org/alice> <http://example.org/bob> }" in result.output

    def test_invalid_json(self, runner, query_file, tmp_path, people_query):
        bindings_path = tmp_path / "bindings.json"
        bindings_path.write_text("{broken")
        result = runner.invoke(app, ["bind", str(query_file(people_query)), "-b", str(bindings_path)])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_bnode_binding(self, runner, query_file, tmp_path, people_query):
        bindings_path = tmp_path / "bindings.json"
        bindings_path.write_text(json.dumps({
            "head": {"vars": ["person"]},
            "results": {"bindings": [{"person": {"type": "bnode", "value": "b0"}}]},
        }))
        result = runner.invoke(app, ["bind", str(query_file(people_query)), "-b", str(bindings_path)])
        assert result.exit_code == 1


class TestParseCommand:

    def test_summary(self, runner, query_file, people_query):
        result = runner.invoke(app, ["parse", str(query_file(people_query))])
        assert result.exit_code == 0
        assert "Query(SELECT" in result.output
        assert "Prefixes" in result.output

    def test_config_option(self, runner, query_file, tmp_path):
        config_path = tmp_path / "limits.json"
        config_path.write_text(json.dumps({"limits": {"max_depth": 2}}))
        path = query_file("SELECT * WHERE { { { } } }")
        result = runner.invoke(app, ["--config", str(config_path), "parse", str(path)])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_log_level_option(self, runner, query_file):
        path = query_file("ASK { ?s ?p ?o }")
        result = runner.invoke(app, ["--loglevel", "ERROR", "parse", str(path)])
        assert result.exit_code == 0
