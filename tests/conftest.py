"""Shared fixtures: a small FOAF graph and a fake SPARQL endpoint response."""
from __future__ import annotations

import json
from email.message import Message

import pytest
from rdflib import Graph, Literal, Namespace
from rdflib.namespace import FOAF

from queryengine.config import EngineConfig
from queryengine.engine import QueryEngine

EX = Namespace("http://example.org/")

PEOPLE_QUERY = """
PREFIX foaf: <http://xmlns.com/foaf/0.1/>
SELECT ?s ?name WHERE { ?s foaf:name ?name } ORDER BY ?s
"""


class FakeResponse:
    """Minimal stand-in for the object urllib.request.urlopen returns."""

    def __init__(self, body: str | bytes, content_type: str) -> None:
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self.headers = Message()
        self.headers["Content-Type"] = content_type
        self.close_calls = 0

    def read(self) -> bytes:
        return self._body

    def close(self) -> None:
        self.close_calls += 1


def sparql_json(variables: list[str], bindings: list[dict]) -> str:
    return json.dumps({"head": {"vars": variables}, "results": {"bindings": bindings}})


def uri(value: str) -> dict:
    return {"type": "uri", "value": value}


def literal(value: str, **extra: str) -> dict:
    return {"type": "literal", "value": value, **extra}


@pytest.fixture
def people() -> Graph:
    graph = Graph()
    graph.add((EX.a, FOAF.name, Literal("Alice")))
    graph.add((EX.b, FOAF.name, Literal("Bob")))
    return graph


@pytest.fixture
def engine() -> QueryEngine:
    return QueryEngine(EngineConfig(endpoint="http://sparql.test/sparql"))


