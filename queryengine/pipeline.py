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

"""Workflow runner: executes the queries listed in a WorkflowConfig.

For each step, in file order:
  1. render the template with the workflow variables
  2. pick the form (configured, or detected from the query text)
  3. pick the target (local graph file, explicit endpoint, or default)
  4. run it through one shared QueryEngine and store the output in context

SELECT steps with keys store extracted strings, SELECT steps without keys
store one {variable: value} dict per row, ASK stores a bool and
CONSTRUCT/DESCRIBE store an rdflib Graph (empty when the query failed).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rdflib import Graph

from queryengine.config import QueryStep, WorkflowConfig
from queryengine.engine import QueryEngine
from queryengine.logger import RunSummary, get_logger
from queryengine.result import WORKFLOW, Fail, Ok, Result
from queryengine.sparql.client import ResultFormatError
from queryengine.sparql.execution import BindingSequence, ExecutionError
from queryengine.sparql.queries import detect_form, render_template
from queryengine.sparql.types import QueryForm, render_term

log = get_logger(__name__)


def _row_dicts(rows: BindingSequence) -> list[dict[str, str]]:
    """Every bound variable of every row, as plain strings."""
    out: list[dict[str, str]] = []
    for row in rows:
        values = {}
        for name in rows.variables:
            node = row.get(name)
            if node is not None:
                values[name] = render_term(node)
        out.append(values)
    return out


class GraphCache:
    """Parses each local graph file once per run."""

    def __init__(self) -> None:
        self._graphs: dict[Path, Graph] = {}

    def load(self, path: Path) -> Result[Graph]:
        if path in self._graphs:
            return Ok(data=self._graphs[path])
        if not path.exists():
            return Fail(error=f"Graph file not found: {path}", kind=WORKFLOW)
        graph = Graph()
        try:
            graph.parse(str(path))
        except Exception as exc:
            return Fail(error=f"Graph parse error: {type(exc).__name__}: {exc}", context=str(path), kind=WORKFLOW)
        log.info("Loaded %s (%d triples)", path.name, len(graph))
        self._graphs[path] = graph
        return Ok(data=graph)


def prepare_step(step: QueryStep, variables: dict[str, str]) -> Result[tuple[str, QueryForm]]:
    """Render the step's query and settle its form (configured, else detected)."""
    query = render_template(step.template, variables)
    try:
        form = step.form or detect_form(query)
    except ValueError as exc:
        return Fail(error=str(exc), context=query, kind=WORKFLOW)
    return Ok(data=(query, form))


def run_step(step: QueryStep, engine: QueryEngine, variables: dict[str, str], graphs: GraphCache) -> Result[Any]:
    """Run one configured query and return its output."""
    prepared = prepare_step(step, variables)
    if not prepared.ok:
        return prepared
    query, form = prepared.data

    target: Graph | str | None = step.endpoint
    if step.graph is not None:
        loaded = graphs.load(step.graph)
        if not loaded.ok:
            return loaded
        target = loaded.data

    try:
        if form is QueryForm.SELECT:
            if isinstance(step.keys, str):
                return engine.select_values(query, step.keys, target=target)
            if step.keys:
                return engine.select_rows(query, step.keys, target=target)
            return engine.execute(query, form, target, consume=_row_dicts)
        return engine.execute(query, form, target)
    except (ExecutionError, ResultFormatError) as exc:
        return Fail(error=f"{type(exc).__name__}: {exc}", context=query, kind=WORKFLOW)


def _size(output: Any) -> int:
    if isinstance(output, bool):
        return int(output)
    if isinstance(output, (list, Graph)):
        return len(output)
    return 0


def run_workflow(
    config: WorkflowConfig,
    engine: QueryEngine | None = None,
    summary: RunSummary | None = None,
) -> Result[dict[str, Any]]:
    """Execute every query step, building up the output context.

    A failed optional step is logged and skipped (CONSTRUCT/DESCRIBE steps
    still record an empty graph). A failed required step stops the run.
    """
    engine = engine or QueryEngine(config.engine)
    summary = summary if summary is not None else RunSummary()
    graphs = GraphCache()
    context: dict[str, Any] = {}

    for step in config.queries:
        log.info("── Query step: %s ──", step.name)
        counter = summary.counter(step.name)

        result = run_step(step, engine, config.variables, graphs)
        if not result.ok:
            log.warning("Step '%s' failed: %s", step.name, result.error)
            counter.failed += 1
            if step.required:
                log.info(summary.report())
                return Fail(error=f"Required step '{step.name}' failed: {result.error}", kind=WORKFLOW)
            prepared = prepare_step(step, config.variables)
            if prepared.ok and prepared.data[1] in (QueryForm.CONSTRUCT, QueryForm.DESCRIBE):
                context[step.name] = Graph()
            continue

        context[step.name] = result.data
        counter.ok += 1
        counter.items += _size(result.data)
        log.info("Step '%s' complete", step.name)

    log.info(summary.report())
    return Ok(data=context)
