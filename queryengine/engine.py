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

"""Query engine: runs SPARQL on a local rdflib graph or a remote endpoint.

Every call follows the same path:
  1. pick the target (explicit graph/URL, or the configured endpoint)
  2. open one execution handle for (query, target)
  3. run exactly one of select / ask / construct / describe
  4. for SELECT, consume the rows while the handle is still open
  5. close the handle, whatever happened in 2-4

A handle that cannot be opened is reported as a Fail, never raised.
CONSTRUCT and DESCRIBE turn that Fail into an empty graph. Errors raised
while executing an opened handle propagate to the caller.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence

from rdflib import Graph

from queryengine.config import EngineConfig
from queryengine.logger import get_logger
from queryengine.result import Ok, Result, unwrap_or
from queryengine.sparql.execution import (
    BindingSequence,
    ExecutionError,
    LocalExecution,
    QueryExecution,
    RemoteExecution,
)
from queryengine.sparql.projector import log_solutions, project_rows, project_values
from queryengine.sparql.queries import with_prefixes
from queryengine.sparql.types import (
    LocalTarget,
    QueryForm,
    Solution,
    Target,
    resolve_target,
)

log = get_logger(__name__)

TargetLike = Target | Graph | str | None


class QueryEngine:
    """Facade over rdflib (local) and the SPARQL protocol (remote)."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        config = config or EngineConfig()
        self._endpoint = config.endpoint
        self.debug = config.debug
        self.timeout = config.timeout
        self.base_uri = config.base_uri
        self.prefixes = dict(config.prefixes)

    @property
    def endpoint(self) -> str:
        """Endpoint used when a call names no target."""
        return self._endpoint

    @endpoint.setter
    def endpoint(self, url: str) -> None:
        self._endpoint = url
        log.info("QueryEngine - Endpoint: %s", url)

    # ── Handles ────────────────────────────────────────────────

    def _execution(self, query: str, target: TargetLike, form: QueryForm | None) -> QueryExecution:
        resolved = resolve_target(target, self._endpoint)
        text = with_prefixes(query, self.prefixes) if self.prefixes else query
        if isinstance(resolved, LocalTarget):
            return LocalExecution(text, resolved.graph, base=self.base_uri)
        return RemoteExecution(resolved.endpoint, text, timeout=self.timeout, form=form)

    def _open(self, execution: QueryExecution) -> Result[QueryExecution]:
        if self.debug:
            log.info("Service: \n%s", execution.describe())
            log.info("Query: \n%s", execution.query)

        opened = execution.open()
        if not opened.ok:
            level = logging.ERROR if isinstance(execution, RemoteExecution) else logging.WARNING
            log.log(level, "%s", opened.error)
            log.log(level, "Query: \n%s", execution.query)
            if self.debug:
                log.info("Service: \n%s", execution.describe())
                log.log(level, "Detail: %s", opened.context)
        return opened

    @contextmanager
    def session(self, query: str, target: TargetLike = None) -> Iterator[QueryExecution]:
        """Yield an open handle and close it on exit.

        For callers that stream SELECT rows themselves. Raises ExecutionError
        when the handle cannot be opened.
        """
        execution = self._execution(query, target, form=None)
        try:
            opened = self._open(execution)
            if not opened.ok:
                raise ExecutionError(opened.error)
            yield execution
        finally:
            execution.close()

    # ── Dispatch ───────────────────────────────────────────────

    def execute(
        self,
        query: str,
        form: QueryForm | str,
        target: TargetLike = None,
        consume: Callable[[BindingSequence], Any] | None = None,
    ) -> Result[Any]:
        """Run `query` in the given form and return its raw result.

        SELECT rows are handed to `consume` while the handle is open; the
        default materializes them into a list of solutions.
        """
        form = QueryForm.parse(form)
        execution = self._execution(query, target, form)
        try:
            opened = self._open(execution)
            if not opened.ok:
                return opened
            raw = execution.run(form)
            if form is QueryForm.SELECT:
                raw = consume(raw) if consume else list(raw)
            return Ok(data=raw)
        finally:
            execution.close()

    # ── SELECT ─────────────────────────────────────────────────

    def select(self, query: str, target: TargetLike = None) -> Result[list[Solution]]:
        """Run a SELECT and return every solution row."""
        return self.execute(query, QueryForm.SELECT, target)

    def select_values(
        self,
        query: str,
        key: str,
        into: list[str] | None = None,
        target: TargetLike = None,
    ) -> Result[list[str]]:
        """Run a SELECT and append the values bound to `key` to `into`.

        `into` is extended in place and returned inside the Ok, so one list
        can collect several queries. Rows where `key` is unbound add nothing.
        """
        values = into if into is not None else []
        return self.execute(
            query,
            QueryForm.SELECT,
            target,
            consume=lambda rows: project_values(rows, key, values, debug=self.debug),
        )

    def select_rows(
        self,
        query: str,
        keys: Sequence[str],
        into: list[tuple[str, ...]] | None = None,
        target: TargetLike = None,
    ) -> Result[list[tuple[str, ...]]]:
        """Run a SELECT and append one tuple per row, fields ordered as `keys`."""
        rows = into if into is not None else []
        return self.execute(
            query,
            QueryForm.SELECT,
            target,
            consume=lambda solutions: project_rows(solutions, keys, rows, debug=self.debug),
        )

    def print_select(
        self,
        query: str,
        keys: str | Sequence[str],
        target: TargetLike = None,
    ) -> Result[int]:
        """Run a SELECT and log the bound values of `keys`; returns rows visited."""
        return self.execute(
            query,
            QueryForm.SELECT,
            target,
            consume=lambda rows: log_solutions(rows, keys, debug=self.debug),
        )

    # ── ASK / CONSTRUCT / DESCRIBE ─────────────────────────────

    def ask(self, query: str, target: TargetLike = None) -> Result[bool]:
        return self.execute(query, QueryForm.ASK, target)

    def construct(self, query: str, target: TargetLike = None) -> Graph:
        """Run a CONSTRUCT. An unopenable query yields an empty graph."""
        return unwrap_or(self.execute(query, QueryForm.CONSTRUCT, target), Graph())

    def describe(self, query: str, target: TargetLike = None) -> Graph:
        """Run a DESCRIBE. An unopenable query yields an empty graph."""
        return unwrap_or(self.execute(query, QueryForm.DESCRIBE, target), Graph())
