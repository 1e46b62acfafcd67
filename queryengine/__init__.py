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

"""RDF query engine: SPARQL over local rdflib graphs or remote endpoints."""

from queryengine.config import DEFAULT_ENDPOINT, EngineConfig
from queryengine.engine import QueryEngine
from queryengine.result import Fail, Ok, Result, unwrap_or
from queryengine.sparql.types import LocalTarget, QueryForm, RemoteTarget

__all__ = [
    "DEFAULT_ENDPOINT",
    "EngineConfig",
    "Fail",
    "LocalTarget",
    "Ok",
    "QueryEngine",
    "QueryForm",
    "RemoteTarget",
    "Result",
    "unwrap_or",
]
