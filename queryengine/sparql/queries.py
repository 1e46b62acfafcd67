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
"""SPARQL query text helpers.

Template rendering ({{variable}} placeholders), PREFIX injection and
query-form detection. String work only; parsing belongs to the engine.
"""

from __future__ import annotations

import re
from typing import Mapping

from queryengine.sparql.types import QueryForm


_IRI = re.compile(r"<[^<>\s]*>")
_STRING = re.compile(r"'''.*?'''|\"\"\".*?\"\"\"|'[^'\n]*'|\"[^\"\n]*\"", re.DOTALL)
_COMMENT = re.compile(r"#[^\n]*")
_FORM = re.compile(r"(?<![\w:?$])(SELECT|ASK|CONSTRUCT|DESCRIBE)(?![\w:])", re.IGNORECASE)
_PREFIX = re.compile(r"(?<![\w:?$])PREFIX\s+([\w.-]*):", re.IGNORECASE)


def render_template(template: str, variables: Mapping[str, str]) -> str:
    """Replace all {{key}} placeholders in template with variable values."""
    rendered = template
    for key, value in variables.items():
        rendered = rendered.replace("{{" + key + "}}", str(value))
    return rendered


def _code_only(query: str) -> str:
    """Query text with IRIs, string literals and comments blanked out."""
    text = _IRI.sub("<>", query)
    text = _STRING.sub('""', text)
    return _COMMENT.sub("", text)


def declared_prefixes(query: str) -> set[str]:
    """Prefix names declared by PREFIX lines outside comments and strings."""
    return {m.group(1) for m in _PREFIX.finditer(_code_only(query))}


def with_prefixes(query: str, prefixes: Mapping[str, str]) -> str:
    """Prepend PREFIX lines for every configured prefix the query lacks."""
    present = declared_prefixes(query)
    missing = [
        f"PREFIX {name}: <{iri}>"
        for name, iri in prefixes.items()
        if name not in present
    ]
    if not missing:
        return query
    return "\n".join(missing) + "\n" + query


def detect_form(query: str) -> QueryForm:
    """Infer the query form from its first SELECT/ASK/CONSTRUCT/DESCRIBE keyword.

    IRIs, string literals and comments are blanked out first so that
    '#' fragments or quoted keywords do not confuse the scan.
    """
    match = _FORM.search(_code_only(query))
    if match is None:
        raise ValueError("Cannot detect query form: no SELECT, ASK, CONSTRUCT or DESCRIBE keyword")
    return QueryForm.parse(match.group(1))
