# SPDX-License-Identifier: MIT
#
#  █████╗ ██████╗  █████╗ ███████╗
# ██╔══██╗██╔══██╗██╔══██╗██╔════╝
# ███████║██████╔╝███████║███████╗
# ██╔══██║██╔══██╗██╔══██║╚════██║
# ██║  ██║██║  ██║██║  ██║███████║
# ╚═╝  ╚═╝╚═╝  ╚═╝╚═╝  ╚═╝╚══════╝
# Copyright (C) 2026 Riza Emre ARAS <r.emrearas@proton.me>
#
# Licensed under the MIT License.
# See LICENSE and THIRD_PARTY_LICENSES for details.
"""SPARQL protocol client using urllib.

Opens a POST request against an endpoint and hands back the live response;
the readers below hand its body to rdflib's result and graph parsers.
No engine logic, pure transport and result-format decoding.
"""

from __future__ import annotations

import io
import ssl
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

import certifi
from rdflib import Graph
from rdflib.query import Result as QueryResult
from rdflib.query import ResultRow

from queryengine.logger import get_logger
from queryengine.result import Fail, Ok, Result
from queryengine.sparql.types import QueryForm

log = get_logger(__name__)

_ssl_ctx = ssl.create_default_context(cafile=certifi.where())

_RESULT_TYPES = "application/sparql-results+json, application/sparql-results+xml;q=0.9"
_GRAPH_TYPES = (
    "text/turtle, application/n-triples;q=0.9, "
    "application/rdf+xml;q=0.8, application/ld+json;q=0.7"
)

ACCEPT = {
    QueryForm.SELECT: _RESULT_TYPES,
    QueryForm.ASK: _RESULT_TYPES,
    QueryForm.CONSTRUCT: _GRAPH_TYPES,
    QueryForm.DESCRIBE: _GRAPH_TYPES,
}
ACCEPT_ANY = (
    "application/sparql-results+json, application/sparql-results+xml;q=0.9, "
    "text/turtle;q=0.8, application/n-triples;q=0.7, "
    "application/rdf+xml;q=0.6, application/ld+json;q=0.5"
)

# rdflib result parser names by media type
RESULT_FORMATS = {
    "application/sparql-results+json": "json",
    "application/json": "json",
    "application/sparql-results+xml": "xml",
    "application/xml": "xml",
    "text/xml": "xml",
    "text/csv": "csv",
    "text/tab-separated-values": "tsv",
}

# rdflib parser names by media type
GRAPH_FORMATS = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "application/n-triples": "nt",
    "text/plain": "nt",
    "application/rdf+xml": "xml",
    "application/ld+json": "json-ld",
    "text/n3": "n3",
    "text/rdf+n3": "n3",
    "application/n-quads": "nquads",
    "application/trig": "trig",
}


class ResultFormatError(ValueError):
    """Response body is not a result document the requested form understands."""


@dataclass(slots=True)
class HttpReply:
    """An open endpoint response; the caller owns it and must close it."""

    response: Any
    content_type: str
    charset: str

    def read_text(self) -> str:
        body = self.response.read()
        try:
            return body.decode(self.charset)
        except (UnicodeDecodeError, LookupError) as exc:
            raise ResultFormatError(f"Response body is not valid {self.charset}: {exc}") from exc

    def close(self) -> None:
        self.response.close()


def open_query(
    endpoint: str,
    query: str,
    timeout: int = 30,
    accept: str = ACCEPT_ANY,
) -> Result[HttpReply]:
    """POST a SPARQL query and return the still-open response."""
    encoded_body = urllib.parse.urlencode({"query": query}).encode("utf-8")

    log.debug("SPARQL query → %s (%d bytes)", endpoint, len(encoded_body))

    try:
        req = urllib.request.Request(
            endpoint,
            data=encoded_body,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": accept,
            },
            method="POST",
        )
        resp = urllib.request.urlopen(req, timeout=timeout, context=_ssl_ctx)
    except urllib.error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="replace")[:500]
        exc.close()
        return Fail(
            error=f"SPARQL HTTP {exc.code}: {exc.reason}",
            context=body,
        )
    except urllib.error.URLError as exc:
        return Fail(error=f"SPARQL connection error: {exc.reason}")
    except TimeoutError:
        return Fail(error=f"SPARQL timeout after {timeout}s")
    except ValueError as exc:
        # urllib rejects malformed or scheme-less URLs before connecting
        return Fail(error=f"SPARQL endpoint rejected: {exc}", context=endpoint)

    return Ok(data=HttpReply(
        response=resp,
        content_type=resp.headers.get_content_type(),
        charset=resp.headers.get_content_charset() or "utf-8",
    ))


# ── Result readers ─────────────────────────────────────────────

def _parse_results(text: str, content_type: str) -> QueryResult:
    fmt = RESULT_FORMATS.get(content_type)
    if fmt is None:
        raise ResultFormatError(f"Cannot read SPARQL results from '{content_type}'")
    try:
        return QueryResult.parse(io.BytesIO(text.encode("utf-8")), format=fmt)
    except Exception as exc:
        raise ResultFormatError(f"Invalid SPARQL {fmt} results: {type(exc).__name__}: {exc}") from exc


def read_bindings(text: str, content_type: str) -> tuple[list[str], list[ResultRow]]:
    """Decode a SELECT result document into (variables, rows).

    Rows with no bound variable are kept, one per solution.
    """
    result = _parse_results(text, content_type)
    if result.type != "SELECT":
        raise ResultFormatError(f"Expected SELECT results, got {result.type}")
    labels = list(result.vars or [])
    rows = [ResultRow(binding, labels) for binding in result.bindings]
    log.debug("SPARQL returned %d bindings", len(rows))
    return [str(v) for v in labels], rows


def read_boolean(text: str, content_type: str) -> bool:
    """Decode an ASK result document."""
    if content_type in ("text/boolean", "text/plain"):
        answer = text.strip().lower()
        if answer in ("true", "false"):
            return answer == "true"
        raise ResultFormatError(f"Cannot read ASK result from '{content_type}'")

    result = _parse_results(text, content_type)
    if result.type != "ASK":
        raise ResultFormatError(f"Expected an ASK answer, got {result.type}")
    return bool(result.askAnswer)


def read_graph(text: str, content_type: str) -> Graph:
    """Parse a CONSTRUCT/DESCRIBE response body into a fresh graph."""
    fmt = GRAPH_FORMATS.get(content_type)
    if fmt is None:
        raise ResultFormatError(f"Cannot read a graph from '{content_type}'")
    graph = Graph()
    graph.parse(data=text, format=fmt)
    log.debug("SPARQL returned %d triples", len(graph))
    return graph
