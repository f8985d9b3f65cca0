# -*- coding: utf-8 -*-
"""Pytest configuration for sparqlmeta tests."""

import pytest

import sparqlmeta.config as config_module
from sparqlmeta.compiler import SPARQLParser


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep user config files and SPARQLMETA_* variables out of every test."""
    for name in ("SPARQLMETA_MAX_DEPTH", "SPARQLMETA_MAX_INPUT_LENGTH",
                 "SPARQLMETA_MAX_TOKENS", "SPARQLMETA_LOG_LEVEL",
                 "SPARQLMETA_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "_config", None)
    yield tmp_path


@pytest.fixture
def parser():
    """Parser with default limits."""
    return SPARQLParser()


@pytest.fixture
def people_query():
    """SELECT query with a single-variable VALUES placeholder."""
    return (
        "PREFIX foaf: <http://xmlns.com/foaf/0.1/>\n"
        "SELECT ?person ?name\n"
        "WHERE {\n"
        "  VALUES ?person { UNDEF }\n"
        "  ?person foaf:name ?name .\n"
        "}\n"
        "LIMIT 00010\n"
    )


@pytest.fixture
def person_bindings():
    """SPARQL JSON results binding ?person to two IRIs."""
    return {
        "head": {"vars": ["person"]},
        "results": {
            "bindings": [
                {"person": {"type": "uri", "value": "http://example.org/alice"}},
                {"person": {"type": "uri", "value": "http://example.org/bob"}},
            ]
        },
    }


@pytest.fixture
def query_file(tmp_path):
    """Write a query to a temporary file and return its path."""
    def write(text, name="query.rq"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return write


# Custom markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
