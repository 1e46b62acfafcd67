"""
Tests for the SPARQL protocol client (result decoding and HTTP failures).

Uses unittest.mock to replace urllib.request.urlopen; no network calls.
"""
from __future__ import annotations

import io
import json
import logging
import urllib.error
from unittest.mock import patch

import pytest
from rdflib import BNode, Literal, URIRef
from rdflib.namespace import XSD

from queryengine.sparql.client import (
    HttpReply,
    ResultFormatError,
    open_query,
    read_bindings,
    read_boolean,
    read_graph,
)

from tests.conftest import FakeResponse, literal, sparql_json, uri

XML_RESULTS = """<?xml version="1.0"?>
<sparql xmlns="http://www.w3.org/2005/sparql-results#">
  <head><variable name="s"/><variable name="label"/></head>
  <results>
    <result>
      <binding name="s"><uri>http://example.org/a</uri></binding>
      <binding name="label"><literal xml:lang="en">Alice</literal></binding>
    </result>
    <result>
      <binding name="s"><bnode>r1</bnode></binding>
    </result>
  </results>
</sparql>
"""


class TestReadBindings:

    def test_json_terms(self):
        body = sparql_json(
            ["s", "n", "label", "b"],
            [{
                "s": uri("http://example.org/a"),
                "n": literal("7", datatype=str(XSD.integer)),
                "label": literal("Alice", **{"xml:lang": "en"}),
                "b": {"type": "bnode", "value": "x1"},
            }],
        )
        variables, rows = read_bindings(body, "application/sparql-results+json")
        assert variables == ["s", "n", "label", "b"]
        row = rows[0]
        assert row["s"] == URIRef("http://example.org/a")
        assert row["n"] == Literal("7", datatype=XSD.integer)
        assert row["label"] == Literal("Alice", lang="en")
        assert row["b"] == BNode("x1")

    def test_json_unbound_variable_is_absent(self):
        body = sparql_json(["s", "name"], [{"s": uri("http://example.org/b")}])
        _, rows = read_bindings(body, "application/sparql-results+json")
        assert rows[0].get("name") is None

    def test_xml_terms(self):
        variables, rows = read_bindings(XML_RESULTS, "application/sparql-results+xml")
        assert variables == ["s", "label"]
        assert rows[0]["s"] == URIRef("http://example.org/a")
        assert rows[0]["label"] == Literal("Alice", lang="en")
        assert rows[1].get("s") == BNode("r1")
        assert rows[1].get("label") is None

    def test_solution_with_nothing_bound_is_kept(self):
        body = sparql_json(["name", "mbox"], [{}])
        variables, rows = read_bindings(body, "application/sparql-results+json")
        assert variables == ["name", "mbox"]
        assert len(rows) == 1
        assert rows[0].get("name") is None and rows[0].get("mbox") is None

    def test_unknown_content_type(self):
        with pytest.raises(ResultFormatError):
            read_bindings("<a> <b> <c> .", "text/turtle")

    def test_broken_json(self):
        with pytest.raises(ResultFormatError):
            read_bindings("{not json", "application/sparql-results+json")

    def test_broken_xml(self):
        with pytest.raises(ResultFormatError):
            read_bindings("<sparql><head>", "application/sparql-results+xml")

    def test_ask_document_is_not_select_results(self):
        with pytest.raises(ResultFormatError):
            read_bindings('{"head": {}, "boolean": true}', "application/sparql-results+json")

    def test_unknown_binding_type(self):
        body = sparql_json(["x"], [{"x": {"type": "mystery", "value": "?"}}])
        with pytest.raises(ResultFormatError):
            read_bindings(body, "application/sparql-results+json")


class TestReadBoolean:

    @pytest.mark.parametrize("answer", [True, False])
    def test_json(self, answer):
        body = json.dumps({"head": {}, "boolean": answer})
        assert read_boolean(body, "application/sparql-results+json") is answer

    def test_xml(self):
        body = '<sparql xmlns="http://www.w3.org/2005/sparql-results#"><head/><boolean>true</boolean></sparql>'
        assert read_boolean(body, "application/sparql-results+xml") is True

    def test_plain_text(self):
        assert read_boolean("false\n", "text/plain") is False

    def test_missing_boolean(self):
        with pytest.raises(ResultFormatError):
            read_boolean(sparql_json([], []), "application/sparql-results+json")


class TestReadGraph:

    def test_turtle(self):
        body = '@prefix ex: <http://example.org/> . ex:a ex:name "Alice" .'
        graph = read_graph(body, "text/turtle")
        assert len(graph) == 1

    def test_result_document_is_not_a_graph(self):
        with pytest.raises(ResultFormatError):
            read_graph(sparql_json([], []), "application/sparql-results+json")


class TestOpenQuery:

    def test_posts_form_encoded_query(self):
        response = FakeResponse(sparql_json([], []), "application/sparql-results+json; charset=utf-8")
        with patch("queryengine.sparql.client.urllib.request.urlopen", return_value=response) as urlopen:
            result = open_query("http://sparql.test/sparql", "SELECT * WHERE { ?s ?p ?o }", timeout=5)

        assert result.ok
        assert result.data.content_type == "application/sparql-results+json"
        assert result.data.charset == "utf-8"
        request = urlopen.call_args.args[0]
        assert request.data.startswith(b"query=SELECT")
        assert urlopen.call_args.kwargs["timeout"] == 5

    def test_connection_error_is_a_fail(self):
        with patch(
            "queryengine.sparql.client.urllib.request.urlopen",
            side_effect=urllib.error.URLError("Connection refused"),
        ):
            result = open_query("http://sparql.test/sparql", "ASK {}")
        assert not result.ok
        assert "connection error" in result.error

    def test_http_error_is_a_fail_with_body(self):
        error = urllib.error.HTTPError(
            "http://sparql.test/sparql", 400, "Bad Request", {}, io.BytesIO(b"Parse error line 1"),
        )
        with patch("queryengine.sparql.client.urllib.request.urlopen", side_effect=error):
            result = open_query("http://sparql.test/sparql", "SELEC")
        assert not result.ok
        assert result.error == "SPARQL HTTP 400: Bad Request"
        assert result.context == "Parse error line 1"

    def test_timeout_is_a_fail(self):
        with patch("queryengine.sparql.client.urllib.request.urlopen", side_effect=TimeoutError()):
            result = open_query("http://sparql.test/sparql", "ASK {}", timeout=3)
        assert result.error == "SPARQL timeout after 3s"

    def test_malformed_url_is_a_fail(self):
        result = open_query("not a url", "ASK {}")
        assert not result.ok
        assert "rejected" in result.error

    def test_request_is_not_logged_at_info(self, caplog):
        caplog.set_level(logging.INFO, logger="queryengine.sparql.client")
        response = FakeResponse(sparql_json([], []), "application/sparql-results+json")
        with patch("queryengine.sparql.client.urllib.request.urlopen", return_value=response):
            open_query("http://sparql.test/sparql", "ASK {}")
        assert "http://sparql.test/sparql" not in caplog.text


class TestHttpReply:

    def test_invalid_utf8_body_raises(self):
        reply = HttpReply(
            response=FakeResponse(b'{"head": {"vars": ["n"]}, "x": "\xff"}', "application/sparql-results+json"),
            content_type="application/sparql-results+json",
            charset="utf-8",
        )
        with pytest.raises(ResultFormatError, match="not valid utf-8"):
            reply.read_text()

    def test_declared_charset_is_honoured(self):
        reply = HttpReply(
            response=FakeResponse("Zoë".encode("latin-1"), "text/plain"),
            content_type="text/plain",
            charset="iso-8859-1",
        )
        assert reply.read_text() == "Zoë"
