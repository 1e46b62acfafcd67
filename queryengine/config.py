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

"""Loads a query workflow YAML file into typed dataclasses.

Engine settings (default endpoint, debug, timeout, base URI, prefixes)
plus the named queries to run. Environment variables can override the
engine block; see apply_env.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from queryengine.result import CONFIG, Fail, Ok, Result
from queryengine.sparql.types import QueryForm

DEFAULT_ENDPOINT = "http://sparql.plantbreeding.nl:8080/sparql/"
DEFAULT_TIMEOUT = 30

_TRUE = {"1", "true", "yes", "on"}


# ── Engine ─────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class EngineConfig:
    endpoint: str = DEFAULT_ENDPOINT
    debug: bool = False
    timeout: int = DEFAULT_TIMEOUT
    base_uri: str | None = None
    prefixes: dict[str, str] = field(default_factory=dict)


# ── Queries ────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class QueryStep:
    """One named query: template, optional target and extraction keys."""
    name: str
    template: str
    description: str = ""
    form: QueryForm | None = None
    keys: str | tuple[str, ...] | None = None
    graph: Path | None = None
    endpoint: str | None = None
    required: bool = False


# ── Top-level ──────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class WorkflowConfig:
    engine: EngineConfig
    variables: dict[str, str]
    queries: list[QueryStep]


# ── Loader ─────────────────────────────────────────────────────

def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        endpoint=raw.get("endpoint", DEFAULT_ENDPOINT),
        debug=bool(raw.get("debug", False)),
        timeout=int(raw.get("timeout", DEFAULT_TIMEOUT)),
        base_uri=raw.get("base_uri"),
        prefixes={str(k): str(v) for k, v in (raw.get("prefixes") or {}).items()},
    )


def _build_keys(raw: Any) -> str | tuple[str, ...] | None:
    if raw is None or isinstance(raw, str):
        return raw
    return tuple(str(k) for k in raw)


def _build_steps(raw_steps: list[dict[str, Any]], base_dir: Path) -> list[QueryStep]:
    steps: list[QueryStep] = []
    for s in raw_steps:
        graph = s.get("graph")
        steps.append(QueryStep(
            name=s["name"],
            template=s["template"],
            description=s.get("description", ""),
            form=QueryForm.parse(s["form"]) if s.get("form") else None,
            keys=_build_keys(s.get("keys")),
            graph=(base_dir / graph) if graph else None,
            endpoint=s.get("endpoint"),
            required=bool(s.get("required", False)),
        ))
    return steps


def load_config(path: Path) -> Result[WorkflowConfig]:
    """Load a workflow YAML into WorkflowConfig. No validation beyond structure.

    Local graph paths are resolved relative to the YAML file.
    """
    if not path.exists():
        return Fail(error=f"Config file not found: {path}", kind=CONFIG)

    try:
        raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        return Fail(error=f"YAML parse error: {exc}", context=str(path), kind=CONFIG)

    try:
        config = WorkflowConfig(
            engine=_build_engine(raw.get("engine") or {}),
            variables={str(k): str(v) for k, v in (raw.get("variables") or {}).items()},
            queries=_build_steps(raw.get("queries") or [], path.resolve().parent),
        )
    except (KeyError, TypeError, ValueError) as exc:
        return Fail(error=f"Config structure error: {exc}", context=str(path), kind=CONFIG)

    return Ok(data=config)


def apply_env(config: EngineConfig, environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Override engine settings from QUERYENGINE_* environment variables."""
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}
    if env.get("QUERYENGINE_ENDPOINT"):
        changes["endpoint"] = env["QUERYENGINE_ENDPOINT"]
    if env.get("QUERYENGINE_DEBUG"):
        changes["debug"] = env["QUERYENGINE_DEBUG"].strip().lower() in _TRUE
    if env.get("QUERYENGINE_TIMEOUT"):
        changes["timeout"] = int(env["QUERYENGINE_TIMEOUT"])
    return dataclasses.replace(config, **changes) if changes else config
