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

"""Result pattern for query outcomes that can fail softly.

Opening a query execution never raises: a handle that cannot be acquired
(bad query, dead endpoint, HTTP error) comes back as a Fail instead.
Callers branch on `.ok` before touching `.data`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ACQUISITION = "acquisition"
CONFIG = "config"
WORKFLOW = "workflow"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying typed data."""

    data: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True, slots=True)
class Fail:
    """Failed result: message, optional context (usually the query) and kind."""

    error: str
    context: Any = None
    kind: str = ACQUISITION
    ok: bool = field(default=False, init=False)


Result = Ok[T] | Fail


def unwrap_or(result: Result[T], default: T) -> T:
    """Return the carried data, or `default` when the result failed."""
    if result.ok:
        return result.data
    return default
