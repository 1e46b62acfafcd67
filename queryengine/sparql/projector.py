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
"""SELECT result projector: pulls named variables out of solution rows.

Walks the rows once, in the order the engine yields them, and appends the
lexical form of each bound value to a caller-owned list. Unbound variables
are skipped, never padded: a single-key projection can come back shorter
than the row count and a multi-key tuple can be shorter than its key list.
"""

from __future__ import annotations

from typing import Iterable, Sequence, overload

from queryengine.logger import get_logger
from queryengine.sparql.types import Solution, render_term

log = get_logger(__name__)


def _variable(key: str) -> str:
    return key.lstrip("?$")


def project_values(
    solutions: Iterable[Solution],
    key: str,
    into: list[str] | None = None,
    debug: bool = False,
) -> list[str]:
    """Append the value bound to `key` in every row to `into`."""
    values = into if into is not None else []
    name = _variable(key)
    count = 0
    for solution in solutions:
        if debug:
            log.info("soln: %s", solution)
        node = solution.get(name)
        if node is not None:
            values.append(render_term(node))
        count += 1
    if debug:
        log.info("%d solutions in the result set", count)
    return values


def project_rows(
    solutions: Iterable[Solution],
    keys: Sequence[str],
    into: list[tuple[str, ...]] | None = None,
    debug: bool = False,
) -> list[tuple[str, ...]]:
    """Append one tuple per row, fields in the order of `keys`."""
    rows = into if into is not None else []
    names = [_variable(k) for k in keys]
    count = 0
    for solution in solutions:
        fields: list[str] = []
        for name in names:
            node = solution.get(name)
            if node is not None:
                fields.append(render_term(node))
                if debug:
                    log.info("%s : %s", name, fields[-1])
            elif debug:
                log.info("%s is unbound", name)
        rows.append(tuple(fields))
        count += 1
    if debug:
        log.info("%d solutions in the result set", count)
    return rows


@overload
def project(solutions: Iterable[Solution], keys: str, into: list[str] | None = ..., debug: bool = ...) -> list[str]: ...


@overload
def project(
    solutions: Iterable[Solution],
    keys: Sequence[str],
    into: list[tuple[str, ...]] | None = ...,
    debug: bool = ...,
) -> list[tuple[str, ...]]: ...


def project(solutions, keys, into=None, debug=False):
    """Single key -> flat list of strings, several keys -> list of tuples."""
    if isinstance(keys, str):
        return project_values(solutions, keys, into, debug=debug)
    return project_rows(solutions, keys, into, debug=debug)


def log_solutions(
    solutions: Iterable[Solution],
    keys: str | Sequence[str],
    debug: bool = False,
) -> int:
    """Write every bound (key, value) pair to the log instead of collecting it.

    Returns the number of solutions visited.
    """
    if isinstance(keys, str):
        log.info("%s", keys)
        keys = [keys]
    names = [_variable(k) for k in keys]
    count = 0
    for solution in solutions:
        for name in names:
            node = solution.get(name)
            if node is not None:
                log.info("%s:%s", name, render_term(node))
        count += 1
    if debug:
        log.info("%d solutions in the result set", count)
    return count
