# SPDX-License-Identifier: MIT
"""
█████╗ ██████╗  █████╗ ███████╗
██╔══██╗██╔══██╗██╔══██╗██╔════╝
███████║██████╔╝███████║███████╗
██╔══██║██╔══██╗██╔══██║╚════██║
██║  ██║██║  ██║██║  ██║███████║
╚═╝  ╚═╝╚═╝  ╚═╝╚═╝  ╚═╝╚══════╝
Copyright (C) 2026 Riza Emre ARAS <r.emrearas@proton.me>

Licensed under the MIT License.
See LICENSE and THIRD_PARTY_LICENSES for details.

RDF Query Engine: workflow runner

Reads a YAML query workflow, runs each SPARQL query against a local
graph file or a SPARQL endpoint, and prints the extracted results as YAML.

Usage: python main.py --workflow=queries.yaml [--endpoint URL] [--debug]
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from rdflib import Graph

from queryengine.config import apply_env, load_config
from queryengine.engine import QueryEngine
from queryengine.logger import get_logger
from queryengine.pipeline import run_workflow

log = get_logger("main")


def _printable(value: Any) -> Any:
    """Graphs become Turtle text, tuples become lists, the rest passes."""
    if isinstance(value, Graph):
        return value.serialize(format="turtle")
    if isinstance(value, (list, tuple)):
        return [_printable(v) for v in value]
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="queryengine",
        description="Run a YAML workflow of SPARQL queries and print the results",
    )
    parser.add_argument(
        "--workflow",
        type=Path,
        required=True,
        help="Path to workflow YAML (e.g. queries.yaml)",
    )
    parser.add_argument("--endpoint", help="Override the default SPARQL endpoint")
    parser.add_argument("--debug", action="store_true", help="Log queries and every extracted value")
    args = parser.parse_args(argv)

    load_dotenv()

    workflow = args.workflow.resolve()
    cfg_result = load_config(workflow)
    if not cfg_result.ok:
        log.error(cfg_result.error)
        return 1

    config = cfg_result.data
    engine_config = apply_env(config.engine)
    if args.endpoint:
        engine_config = dataclasses.replace(engine_config, endpoint=args.endpoint)
    if args.debug:
        engine_config = dataclasses.replace(engine_config, debug=True)

    log.info("Workflow: %s", workflow.name)
    log.info("Endpoint: %s", engine_config.endpoint)

    result = run_workflow(config, engine=QueryEngine(engine_config))
    if not result.ok:
        log.error("Workflow failed: %s", result.error)
        return 1

    output = {name: _printable(value) for name, value in result.data.items()}
    yaml.safe_dump(output, sys.stdout, sort_keys=False, allow_unicode=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
