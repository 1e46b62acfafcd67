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

"""Query forms and query targets shared by the engine and its handles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from rdflib import Graph
from rdflib.term import Node

# One SELECT row: variable name -> bound term. Unbound names are absent
# (or map to None, which is what rdflib's ResultRow.get returns).
Solution = Mapping[str, Any]


class QueryForm(str, Enum):
    SELECT = "select"
    ASK = "ask"
    CONSTRUCT = "construct"
    DESCRIBE = "describe"

    @classmethod
    def parse(cls, value: str | QueryForm) -> QueryForm:
        """Accept either an enum member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(f.value for f in cls)
            raise ValueError(f"Unknown query form '{value}' (expected one of: {names})") from None


@dataclass(frozen=True, slots=True)
class LocalTarget:
    """Run against an in-process rdflib graph."""

    graph: Graph


@dataclass(frozen=True, slots=True)
class RemoteTarget:
    """Run against a SPARQL endpoint over HTTP."""

    endpoint: str


Target = LocalTarget | RemoteTarget


def resolve_target(target: Target | Graph | str | None, default_endpoint: str) -> Target:
    """Normalize whatever the caller passed into exactly one target.

    None falls back to the default endpoint, a bare Graph becomes a local
    target and a bare string is taken as an endpoint URL.
    """
    if target is None:
        return RemoteTarget(endpoint=default_endpoint)
    if isinstance(target, (LocalTarget, RemoteTarget)):
        return target
    if isinstance(target, Graph):
        return LocalTarget(graph=target)
    if isinstance(target, str):
        return RemoteTarget(endpoint=target)
    raise TypeError(f"Unsupported query target: {type(target).__name__}")


def render_term(node: Node) -> str:
    """Lexical form of a term: the IRI, literal text or blank node id."""
    return str(node)
