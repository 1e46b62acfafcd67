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

"""Execution handles: one query bound to one target, opened and closed once.

Lifecycle:
  UNOPENED -> OPEN -> EXECUTED -> CLOSED

CLOSED is reachable from every state, so a handle whose acquisition failed
can still be closed without a second failure. A handle runs at most one
exec_* method. SELECT rows come back as a BindingSequence that is only
valid while the handle is open.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Sequence

from rdflib import Graph
from rdflib.plugins.sparql import prepareQuery
from rdflib.query import ResultRow

from queryengine.logger import get_logger
from queryengine.result import Fail, Ok, Result
from queryengine.sparql.client import (
    ACCEPT,
    ACCEPT_ANY,
    HttpReply,
    open_query,
    read_bindings,
    read_boolean,
    read_graph,
)
from queryengine.sparql.types import QueryForm, Solution

log = get_logger(__name__)


class ExecutionError(RuntimeError):
    """Base class for misuse of an execution handle or its results."""


class ExecutionStateError(ExecutionError):
    """exec_* called on a handle that is not open, or called twice."""


class ExecutionClosedError(ExecutionError):
    """Results pulled from a handle that has already been released."""


class ResultsConsumedError(ExecutionError):
    """A single-pass binding sequence was iterated a second time."""


class QueryFormMismatchError(ExecutionError):
    """exec_select on a CONSTRUCT query and the like."""


class ExecutionState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    EXECUTED = "executed"
    CLOSED = "closed"


class BindingSequence:
    """Forward-only SELECT rows owned by an execution handle.

    Iterate it once, before the owning handle closes. A second iteration
    raises ResultsConsumedError and any pull after close raises
    ExecutionClosedError.
    """

    def __init__(
        self,
        rows: Iterable[Solution],
        owner: QueryExecution,
        variables: Sequence[str] = (),
    ) -> None:
        self.variables = list(variables)
        self._rows: Iterator[Solution] = iter(rows)
        self._owner = owner
        self._started = False

    def __iter__(self) -> BindingSequence:
        if self._started:
            raise ResultsConsumedError("Binding sequence is single-pass and was already iterated")
        self._check_owner()
        self._started = True
        return self

    def __next__(self) -> Solution:
        self._check_owner()
        return next(self._rows)

    def _check_owner(self) -> None:
        if self._owner.closed:
            raise ExecutionClosedError("Binding sequence used after its execution was closed")


class QueryExecution:
    """Base handle. Subclasses acquire, run each form, and release."""

    def __init__(self, query: str) -> None:
        self.query = query
        self.state = ExecutionState.UNOPENED

    @property
    def closed(self) -> bool:
        return self.state is ExecutionState.CLOSED

    def __enter__(self) -> QueryExecution:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def describe(self) -> str:
        raise NotImplementedError

    # ── Lifecycle ──────────────────────────────────────────────

    def open(self) -> Result[QueryExecution]:
        """Acquire the underlying resource. Never raises for bad queries or dead endpoints."""
        if self.state is not ExecutionState.UNOPENED:
            raise ExecutionStateError(f"Cannot open a handle in state '{self.state.value}'")
        acquired = self._acquire()
        if not acquired.ok:
            return acquired
        self.state = ExecutionState.OPEN
        return Ok(data=self)

    def close(self) -> None:
        """Release the handle. Closing an unopened handle releases nothing."""
        if self.closed:
            log.debug("Execution already closed")
            return
        held = self.state is not ExecutionState.UNOPENED
        self.state = ExecutionState.CLOSED
        if held:
            self._release()

    def _begin(self, form: QueryForm) -> None:
        if self.state is ExecutionState.CLOSED:
            raise ExecutionClosedError(f"Cannot run {form.value}: execution is closed")
        if self.state is not ExecutionState.OPEN:
            raise ExecutionStateError(f"Cannot run {form.value} in state '{self.state.value}'")
        self._check_form(form)
        self.state = ExecutionState.EXECUTED

    # ── Execution ──────────────────────────────────────────────

    def exec_select(self) -> BindingSequence:
        self._begin(QueryForm.SELECT)
        return self._select()

    def exec_ask(self) -> bool:
        self._begin(QueryForm.ASK)
        return self._ask()

    def exec_construct(self) -> Graph:
        self._begin(QueryForm.CONSTRUCT)
        return self._graph_result()

    def exec_describe(self) -> Graph:
        self._begin(QueryForm.DESCRIBE)
        return self._graph_result()

    def run(self, form: QueryForm) -> BindingSequence | bool | Graph:
        """Dispatch to exactly one exec_* method."""
        dispatch: dict[QueryForm, Callable[[], Any]] = {
            QueryForm.SELECT: self.exec_select,
            QueryForm.ASK: self.exec_ask,
            QueryForm.CONSTRUCT: self.exec_construct,
            QueryForm.DESCRIBE: self.exec_describe,
        }
        return dispatch[form]()

    # ── Subclass hooks ─────────────────────────────────────────

    def _acquire(self) -> Result[None]:
        raise NotImplementedError

    def _release(self) -> None:
        raise NotImplementedError

    def _check_form(self, form: QueryForm) -> None:
        pass

    def _select(self) -> BindingSequence:
        raise NotImplementedError

    def _ask(self) -> bool:
        raise NotImplementedError

    def _graph_result(self) -> Graph:
        raise NotImplementedError


_ALGEBRA_FORMS = {
    "SelectQuery": QueryForm.SELECT,
    "AskQuery": QueryForm.ASK,
    "ConstructQuery": QueryForm.CONSTRUCT,
    "DescribeQuery": QueryForm.DESCRIBE,
}


class LocalExecution(QueryExecution):
    """Runs a query in-process against an rdflib graph."""

    def __init__(
        self,
        query: str,
        graph: Graph,
        base: str | None = None,
    ) -> None:
        super().__init__(query)
        self.graph = graph
        self._base = base
        self._prepared: Any = None

    def describe(self) -> str:
        return f"local graph ({len(self.graph)} triples)"

    def _acquire(self) -> Result[None]:
        try:
            self._prepared = prepareQuery(self.query, base=self._base)
        except Exception as exc:
            return Fail(error=f"SPARQL parse error: {type(exc).__name__}: {exc}", context=self.query)
        return Ok(data=None)

    def _release(self) -> None:
        self._prepared = None

    def _check_form(self, form: QueryForm) -> None:
        actual = _ALGEBRA_FORMS.get(self._prepared.algebra.name)
        if actual is not form:
            found = actual.value if actual else self._prepared.algebra.name
            raise QueryFormMismatchError(f"Cannot run {form.value} on a {found} query")

    def _select(self) -> BindingSequence:
        result = self.graph.query(self._prepared)
        labels = list(result.vars or [])
        # Result.__iter__ skips solutions with nothing bound; bindings keeps them
        rows = (ResultRow(binding, labels) for binding in result.bindings)
        return BindingSequence(rows, owner=self, variables=[str(v) for v in labels])

    def _ask(self) -> bool:
        return bool(self.graph.query(self._prepared).askAnswer)

    def _graph_result(self) -> Graph:
        return self.graph.query(self._prepared).graph


class RemoteExecution(QueryExecution):
    """Runs a query on a SPARQL endpoint; holds the open HTTP response."""

    def __init__(
        self,
        endpoint: str,
        query: str,
        timeout: int = 30,
        form: QueryForm | None = None,
    ) -> None:
        super().__init__(query)
        self.endpoint = endpoint
        self.timeout = timeout
        self._accept = ACCEPT[form] if form else ACCEPT_ANY
        self._reply: HttpReply | None = None

    def describe(self) -> str:
        return self.endpoint

    def _acquire(self) -> Result[None]:
        opened = open_query(self.endpoint, self.query, timeout=self.timeout, accept=self._accept)
        if not opened.ok:
            return Fail(error=opened.error, context=opened.context or self.query)
        self._reply = opened.data
        return Ok(data=None)

    def _release(self) -> None:
        if self._reply is not None:
            self._reply.close()
            self._reply = None

    def _select(self) -> BindingSequence:
        variables, rows = read_bindings(self._reply.read_text(), self._reply.content_type)
        return BindingSequence(rows, owner=self, variables=variables)

    def _ask(self) -> bool:
        return read_boolean(self._reply.read_text(), self._reply.content_type)

    def _graph_result(self) -> Graph:
        return read_graph(self._reply.read_text(), self._reply.content_type)
